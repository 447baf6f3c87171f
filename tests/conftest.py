"""Shared fixtures: settings without env files and a recording HTTP transport."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest
import pytest_asyncio

from adapters.bitbucket_client import BitbucketClient
from core.config import AppSettings
from core.services.dispatcher import MethodDispatcher

BASE_URL = "https://api.bitbucket.org/2.0"

REPOSITORY = {
    "uuid": "{repo-uuid}",
    "name": "widgets",
    "full_name": "acme/widgets",
    "is_private": True,
    "owner": {"display_name": "Acme", "uuid": "{acme}"},
    "created_on": "2024-01-02T03:04:05.000000+00:00",
    "mainbranch": {"name": "main", "type": "branch"},
}

PIPELINE = {
    "uuid": "{pipe-1}",
    "build_number": 7,
    "state": {"name": "COMPLETED", "type": "pipeline_state_completed", "result": {"name": "SUCCESSFUL"}},
    "target": {"type": "pipeline_ref_target", "ref_type": "branch", "ref_name": "main", "commit": {"hash": "abc123"}},
    "created_on": "2024-01-02T03:04:05Z",
    "completed_on": None,
}

STEP = {"uuid": "{step-1}", "name": "Build", "state": {"name": "COMPLETED"}, "duration_in_seconds": 42}

PULL_REQUEST = {
    "id": 42,
    "title": "Add gadgets",
    "state": "OPEN",
    "source": {"branch": {"name": "feature/gadgets"}, "commit": {"hash": "f00"}},
    "destination": {"branch": {"name": "main"}},
    "close_source_branch": False,
    "author": {"display_name": "Bob", "uuid": "{bob}", "type": "user"},
    "reviewers": [],
}


def page(values: list[dict[str, Any]], *, pagelen: int = 10, size: int | None = None, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"values": values, "pagelen": pagelen, "size": len(values) if size is None else size, "page": 1}
    body.update(extra)
    return body


class Recorder:
    """`httpx.MockTransport` handler that records requests and answers from a route table.

    A route value is `(status, json_body)`, a raw `httpx.Response`, a callable
    taking the request, or an exception instance to raise.
    """

    def __init__(self, routes: dict[tuple[str, str], Any] | None = None) -> None:
        self.routes = routes or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            raise AssertionError(f"Unexpected call: {key}")
        route = self.routes[key]
        if isinstance(route, Exception):
            raise route
        if callable(route):
            route = route(request)
        if isinstance(route, httpx.Response):
            return route
        status, body = route
        return httpx.Response(status, json=body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        username="alice",
        password="s3cret",
        api_base_url=BASE_URL,
        http_timeout_seconds=5,
    )


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def make_client(settings: AppSettings) -> Callable[..., BitbucketClient]:
    def _make(handler: Recorder, *, anonymous: bool = False) -> BitbucketClient:
        credentials = None if anonymous else settings.credentials()
        return BitbucketClient(settings, credentials=credentials, transport=httpx.MockTransport(handler))

    return _make


@pytest_asyncio.fixture
async def client(make_client: Callable[..., BitbucketClient], recorder: Recorder):
    bb = make_client(recorder)
    yield bb
    await bb.aclose()


@pytest.fixture
def dispatcher(client: BitbucketClient) -> MethodDispatcher:
    return MethodDispatcher(client)
