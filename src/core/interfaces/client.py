"""Contrato del cliente de la API remota.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- El catálogo se enlaza a este contrato, no a httpx: los tests pueden usar
  un fake y el adaptador real es intercambiable.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from core.domain.models import Paginated, Pipeline, PipelineStep, PullRequest, Repository


@runtime_checkable
class SourceControlClient(Protocol):
    """Operaciones de repositorios, pipelines y pull requests.

    Reglas de diseño:
    - Todo es asíncrono: la llamada HTTP es el único punto de suspensión.
    - Las opciones llegan como keywords y los valores `None` no viajan.
    - Los fallos se lanzan (`RemoteApiError`/`TransportError`), nunca se devuelven.
    """

    async def list_repositories(
        self,
        workspace: str | None = None,
        *,
        role: str | None = None,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> Paginated[Repository]: ...

    async def get_repository(self, workspace: str, repo_slug: str) -> Repository: ...

    async def list_pipelines(
        self,
        workspace: str,
        repo_slug: str,
        *,
        sort: str | None = None,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> Paginated[Pipeline]: ...

    async def get_pipeline(self, workspace: str, repo_slug: str, pipeline_uuid: str) -> Pipeline: ...

    async def list_pipeline_steps(
        self, workspace: str, repo_slug: str, pipeline_uuid: str
    ) -> Paginated[PipelineStep]: ...

    async def list_pull_requests(
        self,
        workspace: str,
        repo_slug: str,
        *,
        state: str | None = None,
        sort: str | None = None,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> Paginated[PullRequest]: ...

    async def get_pull_request(self, workspace: str, repo_slug: str, pull_request_id: int) -> PullRequest: ...

    async def create_pull_request(self, workspace: str, repo_slug: str, body: dict[str, Any]) -> PullRequest: ...

    async def update_pull_request(
        self, workspace: str, repo_slug: str, pull_request_id: int, body: dict[str, Any]
    ) -> PullRequest: ...

    async def merge_pull_request(
        self, workspace: str, repo_slug: str, pull_request_id: int, body: dict[str, Any] | None = None
    ) -> PullRequest: ...

    async def decline_pull_request(self, workspace: str, repo_slug: str, pull_request_id: int) -> PullRequest: ...
