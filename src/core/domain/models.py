"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Las entidades remotas son proyecciones de solo lectura: `extra="allow"`
  conserva cualquier campo que la API añada sin que tengamos que declararlo.

Nota:
- Los nombres Python siguen el contrato de la API (snake_case de Bitbucket).
  Los timestamps se guardan como texto para devolverlos tal cual llegaron.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, SecretStr
from pydantic.config import ConfigDict

T = TypeVar("T")


class Credentials(BaseModel):
    """Par identidad/secreto para Basic auth.

    El secreto es `SecretStr`: su `repr` y su volcado quedan enmascarados.
    """

    model_config = ConfigDict(frozen=True)

    identity: str = Field(..., min_length=1, description="Usuario de Bitbucket.")
    secret: SecretStr = Field(..., description="App password.")


class RemoteEntity(BaseModel):
    """Base para entidades remotas: tolerante a campos desconocidos."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Account(RemoteEntity):
    display_name: str | None = None
    uuid: str | None = None
    type: str | None = None


class Participant(Account):
    role: str | None = None
    approved: bool | None = None


class Commit(RemoteEntity):
    hash: str | None = None
    type: str | None = None


class Branch(RemoteEntity):
    name: str | None = None


class RepositorySummary(RemoteEntity):
    name: str | None = None
    full_name: str | None = None
    uuid: str | None = None
    type: str | None = None


class Endpoint(RemoteEntity):
    """Origen o destino de un pull request (rama + repo + commit)."""

    branch: Branch | None = None
    repository: RepositorySummary | None = None
    commit: Commit | None = None


class Rendered(RemoteEntity):
    raw: str | None = None
    html: str | None = None
    markup: str | None = None


class Repository(RemoteEntity):
    uuid: str = Field(..., description="Identificador estable del repositorio.")
    name: str | None = None
    full_name: str | None = None
    description: str | None = None
    owner: Account | None = None
    is_private: bool | None = None
    created_on: str | None = None
    updated_on: str | None = None
    size: int | None = None
    language: str | None = None
    has_issues: bool | None = None
    has_wiki: bool | None = None
    fork_policy: str | None = None
    links: dict[str, Any] | None = None


class PipelineState(RemoteEntity):
    name: str | None = None
    type: str | None = None
    result: dict[str, Any] | None = None


class PipelineTarget(RemoteEntity):
    type: str | None = None
    ref_type: str | None = None
    ref_name: str | None = None
    commit: Commit | None = None


class Pipeline(RemoteEntity):
    uuid: str = Field(..., description="UUID del pipeline (con llaves).")
    build_number: int | None = None
    created_on: str | None = None
    completed_on: str | None = None
    state: PipelineState | None = None
    target: PipelineTarget | None = None
    creator: Account | None = None
    repository: RepositorySummary | None = None


class PipelineStep(RemoteEntity):
    uuid: str = Field(..., description="UUID del step.")
    name: str | None = None
    state: PipelineState | None = None
    started_on: str | None = None
    completed_on: str | None = None
    duration_in_seconds: int | None = None


class PullRequest(RemoteEntity):
    id: int = Field(..., description="Id numérico del PR dentro del repo.")
    title: str | None = None
    description: str | None = None
    state: str | None = None
    author: Account | None = None
    source: Endpoint | None = None
    destination: Endpoint | None = None
    created_on: str | None = None
    updated_on: str | None = None
    close_source_branch: bool | None = None
    comment_count: int | None = None
    task_count: int | None = None
    links: dict[str, Any] | None = None
    summary: Rendered | None = None
    reviewers: list[Account] | None = None
    participants: list[Participant] | None = None
    merge_commit: Commit | None = None


class Paginated(RemoteEntity, Generic[T]):
    """Página de una colección remota.

    Invariante del contrato remoto: `len(items) <= page_size` y `next_cursor`
    presente solo si existen más páginas.
    """

    items: list[T] = Field(default_factory=list, alias="values")
    page_size: int | None = Field(default=None, alias="pagelen")
    total_size: int | None = Field(default=None, alias="size")
    page: int | None = None
    next_cursor: str | None = Field(default=None, alias="next")
    previous_cursor: str | None = Field(default=None, alias="previous")

    @property
    def has_next(self) -> bool:
        return self.next_cursor is not None


def dump_remote(entity: BaseModel) -> dict[str, Any]:
    """Vuelca una entidad con los nombres y campos que envió la API."""

    return entity.model_dump(mode="json", by_alias=True, exclude_unset=True)
