"""Contratos de entrada de cada operación (Pydantic v2).

Por qué un modelo por operación:
- El dispatcher valida cualquier payload con la misma rutina (`model_validate`)
  y las violaciones salen enumerables desde `ValidationError.errors()`.
- `extra="forbid"` rechaza campos inesperados; los tipos `Strict*` evitan
  coerciones silenciosas ("10" no es un entero, `true` no es un texto).

Los nombres aceptados son los del protocolo desplegado (`repoSlug`,
`pipelineUuid`, `pullRequestId`, `pagelen`). `pageSize` e `id` se aceptan
como alias.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar

from pydantic import AliasChoices, BaseModel, Field, StrictBool, StrictInt, StrictStr
from pydantic.config import ConfigDict

# Topes de `pagelen` que aplica Bitbucket Cloud por colección.
MAX_PAGELEN = 100
MAX_PULL_REQUEST_PAGELEN = 50


class RepositoryRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    CONTRIBUTOR = "contributor"
    MEMBER = "member"


class PullRequestState(str, Enum):
    OPEN = "OPEN"
    MERGED = "MERGED"
    DECLINED = "DECLINED"
    SUPERSEDED = "SUPERSEDED"


class MergeStrategy(str, Enum):
    MERGE_COMMIT = "merge_commit"
    SQUASH = "squash"
    FAST_FORWARD = "fast_forward"


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class OperationParams(StrictModel):
    """Base de los contratos de entrada.

    `path_fields` lista los campos que van en la ruta; el resto son opciones
    (query string o body según la operación).
    """

    path_fields: ClassVar[tuple[str, ...]] = ()

    def options(self) -> dict[str, Any]:
        """Campos no-ruta con valor definido (los ausentes no viajan)."""

        return self.model_dump(
            mode="json",
            exclude=set(self.path_fields),
            exclude_none=True,
        )


def public_name(model: type[BaseModel], field: str) -> str:
    """Nombre con el que el campo viaja en el protocolo."""

    info = model.model_fields[field]
    if info.alias:
        return info.alias
    alias = info.validation_alias
    if isinstance(alias, AliasChoices) and isinstance(alias.choices[0], str):
        return alias.choices[0]
    if isinstance(alias, str):
        return alias
    return field


def _page_field() -> Any:
    return Field(default=None, ge=1, description="Número de página (1-based).")


def _pagelen_field(maximum: int) -> Any:
    return Field(
        default=None,
        ge=1,
        le=maximum,
        validation_alias=AliasChoices("pagelen", "pageSize"),
        description=f"Tamaño de página (máx. {maximum}).",
    )


def _workspace_field() -> Any:
    return Field(..., min_length=1, description="Workspace (usuario o equipo).")


def _repo_slug_field() -> Any:
    return Field(..., min_length=1, alias="repoSlug", description="Slug del repositorio.")


def _pull_request_id_field() -> Any:
    return Field(
        ...,
        ge=1,
        validation_alias=AliasChoices("pullRequestId", "id"),
        description="Id numérico del pull request.",
    )


# --- Repositorios -----------------------------------------------------------


class ListRepositoriesParams(OperationParams):
    path_fields = ("workspace",)

    workspace: StrictStr | None = Field(
        default=None,
        min_length=1,
        description="Si se omite, lista los repositorios visibles para el usuario.",
    )
    role: RepositoryRole | None = None
    page: StrictInt | None = _page_field()
    pagelen: StrictInt | None = _pagelen_field(MAX_PAGELEN)


class RepositoryParams(OperationParams):
    path_fields = ("workspace", "repo_slug")

    workspace: StrictStr = _workspace_field()
    repo_slug: StrictStr = _repo_slug_field()


# --- Pipelines --------------------------------------------------------------


class ListPipelinesParams(RepositoryParams):
    sort: StrictStr | None = Field(default=None, min_length=1, description="Clave de orden, p.ej. `-created_on`.")
    page: StrictInt | None = _page_field()
    pagelen: StrictInt | None = _pagelen_field(MAX_PAGELEN)


class PipelineParams(RepositoryParams):
    path_fields = ("workspace", "repo_slug", "pipeline_uuid")

    pipeline_uuid: StrictStr = Field(..., min_length=1, alias="pipelineUuid")


# --- Pull requests ----------------------------------------------------------


class ListPullRequestsParams(RepositoryParams):
    state: PullRequestState | None = None
    sort: StrictStr | None = Field(default=None, min_length=1)
    page: StrictInt | None = _page_field()
    pagelen: StrictInt | None = _pagelen_field(MAX_PULL_REQUEST_PAGELEN)


class PullRequestParams(RepositoryParams):
    path_fields = ("workspace", "repo_slug", "pull_request_id")

    pull_request_id: StrictInt = _pull_request_id_field()


class BranchName(StrictModel):
    name: StrictStr = Field(..., min_length=1)


class RepositoryName(StrictModel):
    full_name: StrictStr = Field(..., min_length=1)


class EndpointRef(StrictModel):
    """Rama (y opcionalmente repo, para forks) de origen o destino."""

    branch: BranchName
    repository: RepositoryName | None = None


class ReviewerRef(StrictModel):
    uuid: StrictStr = Field(..., min_length=1)


class CreatePullRequestParams(RepositoryParams):
    """Alta de PR: `source.branch.name` y `destination.branch.name` son obligatorios."""

    title: StrictStr = Field(..., min_length=1)
    source: EndpointRef
    destination: EndpointRef
    description: StrictStr | None = None
    close_source_branch: StrictBool | None = None
    reviewers: list[ReviewerRef] | None = None


class UpdatePullRequestParams(PullRequestParams):
    """Actualización parcial: solo viajan los campos presentes."""

    title: StrictStr | None = Field(default=None, min_length=1)
    description: StrictStr | None = None
    reviewers: list[ReviewerRef] | None = None
    close_source_branch: StrictBool | None = None


class MergePullRequestParams(PullRequestParams):
    merge_strategy: MergeStrategy | None = None
    message: StrictStr | None = None
    close_source_branch: StrictBool | None = None
