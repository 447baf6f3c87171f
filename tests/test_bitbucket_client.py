from __future__ import annotations

import base64

import httpx
import pytest

from adapters.bitbucket_client import build_path, build_query
from adapters.http_client import build_auth_header
from conftest import BASE_URL, PIPELINE, PULL_REQUEST, REPOSITORY, STEP, Recorder, page
from core.domain.models import Credentials, Paginated, PullRequest, Repository
from core.domain.params import PullRequestState, RepositoryRole
from core.errors import RemoteApiError, TransportError


def test_auth_header_is_basic_identity_secret():
    header = build_auth_header(Credentials(identity="alice", secret="s3cret"))
    expected = base64.b64encode(b"alice:s3cret").decode("ascii")
    assert header == {"Authorization": f"Basic {expected}"}


def test_auth_header_empty_without_credentials():
    assert build_auth_header(None) == {}


def test_build_query_drops_absent_values_and_keeps_order():
    query = build_query(role=RepositoryRole.OWNER, page=None, pagelen=10, state=PullRequestState.MERGED)
    assert list(query.items()) == [("role", "owner"), ("pagelen", "10"), ("state", "MERGED")]


def test_build_path_escapes_each_segment():
    assert build_path("repositories", "acme", "a/b") == "/repositories/acme/a%2Fb"


async def test_list_repositories_builds_query_and_auth(client, recorder: Recorder):
    recorder.routes[("GET", "/2.0/repositories")] = (200, page([REPOSITORY], pagelen=10))

    result = await client.list_repositories(role="owner", pagelen=10)

    request = recorder.last
    assert request.url.query == b"role=owner&pagelen=10"
    assert request.headers["Authorization"] == "Basic " + base64.b64encode(b"alice:s3cret").decode()
    assert isinstance(result, Paginated)
    assert len(result.items) <= 10
    assert isinstance(result.items[0], Repository)
    assert result.items[0].full_name == "acme/widgets"
    assert result.has_next is False


async def test_list_repositories_in_workspace_without_options(client, recorder: Recorder):
    recorder.routes[("GET", "/2.0/repositories/acme")] = (200, page([], size=0))

    await client.list_repositories("acme")

    assert recorder.last.url.query == b""


async def test_pagination_cursors_are_exposed(client, recorder: Recorder):
    body = page([PULL_REQUEST], pagelen=1, size=3, next="https://api.bitbucket.org/2.0/next-page")
    recorder.routes[("GET", "/2.0/repositories/acme/widgets/pullrequests")] = (200, body)

    result = await client.list_pull_requests("acme", "widgets", state="OPEN", page=1, pagelen=1)

    assert recorder.last.url.query == b"state=OPEN&page=1&pagelen=1"
    assert result.has_next
    assert result.total_size == 3
    assert result.previous_cursor is None


async def test_get_repository(client, recorder: Recorder):
    recorder.routes[("GET", "/2.0/repositories/acme/widgets")] = (200, REPOSITORY)

    repo = await client.get_repository("acme", "widgets")

    assert repo.uuid == "{repo-uuid}"
    # unknown remote fields survive
    assert repo.model_extra["mainbranch"] == {"name": "main", "type": "branch"}


async def test_pipeline_paths_keep_uuid_braces(client, recorder: Recorder):
    recorder.routes[("GET", "/2.0/repositories/acme/widgets/pipelines/{pipe-1}")] = (200, PIPELINE)
    recorder.routes[("GET", "/2.0/repositories/acme/widgets/pipelines/{pipe-1}/steps")] = (200, page([STEP]))
    recorder.routes[("GET", "/2.0/repositories/acme/widgets/pipelines")] = (200, page([PIPELINE]))

    pipeline = await client.get_pipeline("acme", "widgets", "{pipe-1}")
    steps = await client.list_pipeline_steps("acme", "widgets", "{pipe-1}")
    pipelines = await client.list_pipelines("acme", "widgets", sort="-created_on")

    assert pipeline.build_number == 7
    assert steps.items[0].duration_in_seconds == 42
    assert recorder.last.url.params["sort"] == "-created_on"
    assert pipelines.items[0].target.commit.hash == "abc123"


async def test_create_pull_request_posts_json_body(client, recorder: Recorder):
    recorder.routes[("POST", "/2.0/repositories/acme/widgets/pullrequests")] = (201, PULL_REQUEST)
    body = {
        "title": "Add gadgets",
        "source": {"branch": {"name": "feature/gadgets"}},
        "destination": {"branch": {"name": "main"}},
    }

    pr = await client.create_pull_request("acme", "widgets", body)

    assert isinstance(pr, PullRequest)
    assert recorder.last_json() == body
    assert recorder.last.headers["Content-Type"] == "application/json"


async def test_update_pull_request_uses_put(client, recorder: Recorder):
    recorder.routes[("PUT", "/2.0/repositories/acme/widgets/pullrequests/42")] = (200, {**PULL_REQUEST, "title": "New"})

    pr = await client.update_pull_request("acme", "widgets", 42, {"title": "New"})

    assert pr.title == "New"
    assert recorder.last_json() == {"title": "New"}


async def test_merge_without_options_sends_empty_object(client, recorder: Recorder):
    recorder.routes[("POST", "/2.0/repositories/acme/widgets/pullrequests/42/merge")] = (
        200,
        {**PULL_REQUEST, "state": "MERGED"},
    )

    pr = await client.merge_pull_request("acme", "widgets", 42)

    assert pr.state == "MERGED"
    assert recorder.last_json() == {}


async def test_decline_posts_without_body(client, recorder: Recorder):
    recorder.routes[("POST", "/2.0/repositories/acme/widgets/pullrequests/42/decline")] = (
        200,
        {**PULL_REQUEST, "state": "DECLINED"},
    )

    pr = await client.decline_pull_request("acme", "widgets", 42)

    assert pr.state == "DECLINED"
    assert recorder.last.content == b""
    assert "Content-Type" not in recorder.last.headers


async def test_http_error_with_json_body(client, recorder: Recorder):
    error_body = {"type": "error", "error": {"message": "Repository acme/nope not found"}}
    recorder.routes[("GET", "/2.0/repositories/acme/nope")] = (404, error_body)

    with pytest.raises(RemoteApiError) as info:
        await client.get_repository("acme", "nope")

    assert info.value.status == 404
    assert info.value.status_text == "Not Found"
    assert info.value.body == error_body


async def test_http_error_with_undecodable_body(client, recorder: Recorder):
    recorder.routes[("GET", "/2.0/repositories/acme/widgets")] = httpx.Response(502, text="<html>bad gateway</html>")

    with pytest.raises(RemoteApiError) as info:
        await client.get_repository("acme", "widgets")

    assert info.value.status == 502
    assert info.value.body == {"message": "Unknown error"}


async def test_no_response_is_transport_error(client, recorder: Recorder):
    recorder.routes[("GET", "/2.0/repositories/acme/widgets")] = httpx.ConnectError("connection refused")

    with pytest.raises(TransportError) as info:
        await client.get_repository("acme", "widgets")

    assert "connection refused" in info.value.detail
    assert not isinstance(info.value, RemoteApiError)


async def test_anonymous_client_sends_no_authorization(make_client, recorder: Recorder):
    recorder.routes[("GET", "/2.0/repositories/acme/widgets")] = (200, REPOSITORY)

    async with make_client(recorder, anonymous=True) as anonymous:
        await anonymous.get_repository("acme", "widgets")

    assert "Authorization" not in recorder.last.headers


@pytest.mark.parametrize(
    "failure",
    [httpx.TooManyRedirects("redirect loop"), httpx.DecodingError("bad gzip stream"), httpx.ReadTimeout("read timed out")],
)
async def test_any_request_error_is_transport_error(client, recorder: Recorder, failure: httpx.RequestError):
    recorder.routes[("GET", "/2.0/repositories/acme/widgets")] = failure

    with pytest.raises(TransportError) as info:
        await client.get_repository("acme", "widgets")

    assert info.value.detail == str(failure)
    assert info.value.__cause__ is failure


async def test_redirect_is_not_followed(client, recorder: Recorder):
    recorder.routes[("GET", "/2.0/repositories/acme/old-widgets")] = httpx.Response(
        301, headers={"Location": f"{BASE_URL}/repositories/acme/widgets"}
    )

    with pytest.raises(RemoteApiError) as info:
        await client.get_repository("acme", "old-widgets")

    assert info.value.status == 301
    assert info.value.body == {"message": "Unknown error"}
    assert len(recorder.requests) == 1


async def test_list_pipelines_without_options(client, recorder: Recorder):
    recorder.routes[("GET", "/2.0/repositories/acme/widgets/pipelines")] = (200, page([PIPELINE]))

    await client.list_pipelines("acme", "widgets")
    assert recorder.last.url.query == b""

    await client.list_pipelines("acme", "widgets", sort="-created_on")
    assert dict(recorder.last.url.params) == {"sort": "-created_on"}
