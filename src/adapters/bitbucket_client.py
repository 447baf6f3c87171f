"""Cliente de la API REST de Bitbucket Cloud (2.0).

Única autoridad para convertir una operación lógica en una llamada HTTP y un
resultado tipado: conoce rutas, verbos y codificación del query string.

Reglas:
- Exactamente un request por llamada; sin reintentos ni caché.
- Las opciones `None` no aparecen en el query string (la API distingue un
  parámetro vacío de uno ausente).
- Status fuera de 2xx -> `RemoteApiError`; sin respuesta -> `TransportError`.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.models import Credentials, Paginated, Pipeline, PipelineStep, PullRequest, Repository
from core.errors import RemoteApiError, TransportError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

UNKNOWN_ERROR_BODY: dict[str, Any] = {"message": "Unknown error"}


def build_query(**options: Any) -> dict[str, str]:
    """Query params solo con los valores definidos, en orden de declaración."""

    out: dict[str, str] = {}
    for key, value in options.items():
        if value is None:
            continue
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, bool):
            value = "true" if value else "false"
        out[key] = str(value)
    return out


def build_path(*segments: Any) -> str:
    """Une segmentos de ruta escapando cada componente (incluida `/`)."""

    return "/" + "/".join(quote(str(s), safe="") for s in segments)


def _decode_error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return dict(UNKNOWN_ERROR_BODY)


class BitbucketClient:
    """Cliente asíncrono y sin estado por llamada.

    Mantiene un `httpx.AsyncClient` durante su vida (conexiones reutilizadas);
    las credenciales se fijan en la construcción y no cambian.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        credentials: Credentials | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        if credentials is None:
            logger.warning("No Bitbucket credentials configured; only public resources are reachable")
        self._http = build_async_client(self._settings, credentials=credentials, transport=transport)

    async def __aenter__(self) -> "BitbucketClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # --- núcleo HTTP --------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        kwargs: dict[str, Any] = {}
        if params:
            kwargs["params"] = params
        if body is not None:
            kwargs["json"] = body

        logger.debug("%s %s", method, path)
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            # Cualquier fallo sin respuesta utilizable (red, timeout, decodificación).
            logger.warning("%s %s failed without response: %s", method, path, exc.__class__.__name__)
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            logger.warning("%s %s -> HTTP %s", method, path, response.status_code)
            raise RemoteApiError(response.status_code, response.reason_phrase, _decode_error_body(response))
        return response

    async def _fetch(self, model: type[M], method: str, path: str, **kwargs: Any) -> M:
        response = await self._request(method, path, **kwargs)
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            # 2xx cuyo body no cumple el contrato publicado.
            raise RemoteApiError(
                response.status_code,
                response.reason_phrase,
                {"message": f"Unexpected response body: {exc.__class__.__name__}"},
            ) from exc

    # --- repositorios -------------------------------------------------------

    async def list_repositories(
        self,
        workspace: str | None = None,
        *,
        role: str | None = None,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> Paginated[Repository]:
        path = build_path("repositories", workspace) if workspace else "/repositories"
        return await self._fetch(
            Paginated[Repository],
            "GET",
            path,
            params=build_query(role=role, page=page, pagelen=pagelen),
        )

    async def get_repository(self, workspace: str, repo_slug: str) -> Repository:
        return await self._fetch(Repository, "GET", build_path("repositories", workspace, repo_slug))

    # --- pipelines ----------------------------------------------------------

    async def list_pipelines(
        self,
        workspace: str,
        repo_slug: str,
        *,
        sort: str | None = None,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> Paginated[Pipeline]:
        return await self._fetch(
            Paginated[Pipeline],
            "GET",
            build_path("repositories", workspace, repo_slug, "pipelines"),
            params=build_query(sort=sort, page=page, pagelen=pagelen),
        )

    async def get_pipeline(self, workspace: str, repo_slug: str, pipeline_uuid: str) -> Pipeline:
        return await self._fetch(
            Pipeline,
            "GET",
            build_path("repositories", workspace, repo_slug, "pipelines", pipeline_uuid),
        )

    async def list_pipeline_steps(self, workspace: str, repo_slug: str, pipeline_uuid: str) -> Paginated[PipelineStep]:
        return await self._fetch(
            Paginated[PipelineStep],
            "GET",
            build_path("repositories", workspace, repo_slug, "pipelines", pipeline_uuid, "steps"),
        )

    # --- pull requests ------------------------------------------------------

    async def list_pull_requests(
        self,
        workspace: str,
        repo_slug: str,
        *,
        state: str | None = None,
        sort: str | None = None,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> Paginated[PullRequest]:
        return await self._fetch(
            Paginated[PullRequest],
            "GET",
            build_path("repositories", workspace, repo_slug, "pullrequests"),
            params=build_query(state=state, sort=sort, page=page, pagelen=pagelen),
        )

    async def get_pull_request(self, workspace: str, repo_slug: str, pull_request_id: int) -> PullRequest:
        return await self._fetch(
            PullRequest,
            "GET",
            build_path("repositories", workspace, repo_slug, "pullrequests", pull_request_id),
        )

    async def create_pull_request(self, workspace: str, repo_slug: str, body: dict[str, Any]) -> PullRequest:
        return await self._fetch(
            PullRequest,
            "POST",
            build_path("repositories", workspace, repo_slug, "pullrequests"),
            body=body,
        )

    async def update_pull_request(
        self, workspace: str, repo_slug: str, pull_request_id: int, body: dict[str, Any]
    ) -> PullRequest:
        return await self._fetch(
            PullRequest,
            "PUT",
            build_path("repositories", workspace, repo_slug, "pullrequests", pull_request_id),
            body=body,
        )

    async def merge_pull_request(
        self, workspace: str, repo_slug: str, pull_request_id: int, body: dict[str, Any] | None = None
    ) -> PullRequest:
        return await self._fetch(
            PullRequest,
            "POST",
            build_path("repositories", workspace, repo_slug, "pullrequests", pull_request_id, "merge"),
            body=body or {},
        )

    async def decline_pull_request(self, workspace: str, repo_slug: str, pull_request_id: int) -> PullRequest:
        # Sin body: la API no espera payload para declinar.
        return await self._fetch(
            PullRequest,
            "POST",
            build_path("repositories", workspace, repo_slug, "pullrequests", pull_request_id, "decline"),
        )
