"""Catálogo de operaciones expuestas.

Por qué un registro y no herencia:
- Las operaciones no comparten comportamiento; cada una es un registro
  inmutable (nombre + contrato de entrada + función de invocación).
- El dispatcher evalúa todos los contratos con la misma rutina.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Iterable, Mapping

from pydantic import BaseModel

from core.domain import params as p
from core.interfaces.client import SourceControlClient

Invoker = Callable[[SourceControlClient, Any], Awaitable[BaseModel]]


@dataclass(frozen=True)
class OperationDescriptor:
    name: str
    params_model: type[p.OperationParams]
    invoke: Invoker
    summary: str
    mutating: bool = False

    @property
    def path_fields(self) -> tuple[str, ...]:
        return self.params_model.path_fields


def _descriptors() -> Iterable[OperationDescriptor]:
    yield OperationDescriptor(
        name="bitbucket/getRepositories",
        params_model=p.ListRepositoriesParams,
        invoke=lambda c, a: c.list_repositories(a.workspace, **a.options()),
        summary="List repositories (optionally within a workspace).",
    )
    yield OperationDescriptor(
        name="bitbucket/getRepository",
        params_model=p.RepositoryParams,
        invoke=lambda c, a: c.get_repository(a.workspace, a.repo_slug),
        summary="Get one repository.",
    )
    yield OperationDescriptor(
        name="bitbucket/getPipelines",
        params_model=p.ListPipelinesParams,
        invoke=lambda c, a: c.list_pipelines(a.workspace, a.repo_slug, **a.options()),
        summary="List pipelines of a repository.",
    )
    yield OperationDescriptor(
        name="bitbucket/getPipeline",
        params_model=p.PipelineParams,
        invoke=lambda c, a: c.get_pipeline(a.workspace, a.repo_slug, a.pipeline_uuid),
        summary="Get one pipeline.",
    )
    yield OperationDescriptor(
        name="bitbucket/getPipelineSteps",
        params_model=p.PipelineParams,
        invoke=lambda c, a: c.list_pipeline_steps(a.workspace, a.repo_slug, a.pipeline_uuid),
        summary="List the steps of a pipeline.",
    )
    yield OperationDescriptor(
        name="bitbucket/getPullRequests",
        params_model=p.ListPullRequestsParams,
        invoke=lambda c, a: c.list_pull_requests(a.workspace, a.repo_slug, **a.options()),
        summary="List pull requests of a repository.",
    )
    yield OperationDescriptor(
        name="bitbucket/getPullRequest",
        params_model=p.PullRequestParams,
        invoke=lambda c, a: c.get_pull_request(a.workspace, a.repo_slug, a.pull_request_id),
        summary="Get one pull request.",
    )
    yield OperationDescriptor(
        name="bitbucket/createPullRequest",
        params_model=p.CreatePullRequestParams,
        invoke=lambda c, a: c.create_pull_request(a.workspace, a.repo_slug, a.options()),
        summary="Create a pull request.",
        mutating=True,
    )
    yield OperationDescriptor(
        name="bitbucket/updatePullRequest",
        params_model=p.UpdatePullRequestParams,
        invoke=lambda c, a: c.update_pull_request(a.workspace, a.repo_slug, a.pull_request_id, a.options()),
        summary="Update title, description, reviewers or close-source-branch.",
        mutating=True,
    )
    yield OperationDescriptor(
        name="bitbucket/mergePullRequest",
        params_model=p.MergePullRequestParams,
        invoke=lambda c, a: c.merge_pull_request(a.workspace, a.repo_slug, a.pull_request_id, a.options()),
        summary="Merge a pull request.",
        mutating=True,
    )
    yield OperationDescriptor(
        name="bitbucket/declinePullRequest",
        params_model=p.PullRequestParams,
        invoke=lambda c, a: c.decline_pull_request(a.workspace, a.repo_slug, a.pull_request_id),
        summary="Decline a pull request.",
        mutating=True,
    )


def build_catalog(
    descriptors: Iterable[OperationDescriptor] | None = None,
) -> Mapping[str, OperationDescriptor]:
    """Construye el catálogo inmutable; un nombre duplicado es un error de arranque."""

    catalog: dict[str, OperationDescriptor] = {}
    for descriptor in descriptors if descriptors is not None else _descriptors():
        if descriptor.name in catalog:
            raise ValueError(f"Duplicate operation name: {descriptor.name}")
        catalog[descriptor.name] = descriptor
    return MappingProxyType(catalog)
