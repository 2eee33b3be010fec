"""Unit tests for the Weblate REST client."""

from __future__ import annotations

import json
import secrets
import typing as typ

import httpx
import pytest

from keysync.weblate import (
    AddonPreset,
    Category,
    ComponentSpec,
    WeblateAPIError,
    WeblateClient,
    WeblateConfig,
    WeblateConfigError,
)

_TOKEN = secrets.token_hex(8)
_API = "https://weblate.test/api"
_HTTP_SERVER_ERROR = 500

Route = tuple[int, object] | typ.Callable[[httpx.Request], httpx.Response]


class _FakeServer:
    """Routes requests by method and raw path; records every request."""

    def __init__(self, routes: dict[tuple[str, str], Route]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.raw_path.decode("ascii").split("?", 1)[0]
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"detail": "Not found."})
        if callable(route):
            return route(request)
        status, payload = route
        return httpx.Response(status, json=payload)

    def bodies(self, method: str) -> list[dict[str, typ.Any]]:
        return [
            json.loads(request.content)
            for request in self.requests
            if request.method == method
        ]


def _make_client(
    routes: dict[tuple[str, str], Route],
) -> tuple[WeblateClient, _FakeServer]:
    server = _FakeServer(routes)
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(server))
    client = WeblateClient(
        WeblateConfig(server_url="https://weblate.test", token=_TOKEN, project="acme"),
        http_client=http_client,
    )
    return client, server


def _page(results: list[dict[str, object]], next_url: str | None = None) -> object:
    return {"count": len(results), "next": next_url, "results": results}


def _category(category_id: int, name: str) -> dict[str, object]:
    return {
        "id": category_id,
        "name": name,
        "slug": name.replace("/", "-"),
        "url": f"{_API}/categories/{category_id}/",
    }


_MASTER = Category(id=1, name="master", slug="master", url=f"{_API}/categories/1/")


def _component(
    name: str, *, category_id: int = 1, linked: str | None = None
) -> dict[str, object]:
    return {
        "name": name,
        "slug": name,
        "filemask": f"src/i18n/{name}/*.json",
        "template": f"src/i18n/{name}/en.json",
        "linked_component": linked,
        "category": f"{_API}/categories/{category_id}/",
        "url": f"{_API}/components/acme/master%2F{name}/",
    }


def test_empty_token_is_rejected() -> None:
    """A blank token never reaches the network."""
    with pytest.raises(WeblateConfigError, match="non-empty"):
        WeblateClient(WeblateConfig(server_url="https://w", token=" ", project="p"))


def test_url_builders() -> None:
    """Linked repositories and browser URLs use category and component slugs."""
    client, _ = _make_client({})

    assert client.linked_repo_url("master", "common") == "weblate://acme/master/common"
    assert client.component_web_url("Project A_common", "feature-x__4") == (
        "https://weblate.test/projects/acme/feature-x__4/project-a_common/"
    )


@pytest.mark.asyncio
async def test_find_category_follows_pagination() -> None:
    """Categories are matched by branch name across pages."""
    client, server = _make_client(
        {
            ("GET", "/api/projects/acme/categories/"): lambda request: (
                httpx.Response(
                    200,
                    json=_page(
                        [_category(2, "feature/x__4")],
                        next_url=f"{_API}/projects/acme/categories/?page=2",
                    ),
                )
                if "page=2" not in str(request.url)
                else httpx.Response(200, json=_page([_category(1, "master")]))
            ),
        }
    )

    category = await client.find_category_for_branch("master")
    missing = await client.find_category_for_branch("develop")

    assert category == _MASTER
    assert missing is None
    assert server.requests[0].headers["Authorization"] == f"Token {_TOKEN}"


@pytest.mark.asyncio
async def test_create_category_is_idempotent() -> None:
    """An existing category is returned without POSTing."""
    client, server = _make_client(
        {
            ("GET", "/api/projects/acme/categories/"): (
                200,
                _page([_category(1, "master")]),
            )
        }
    )

    category = await client.create_category_for_branch("master")

    assert category.was_recently_created is False
    assert server.bodies("POST") == []


@pytest.mark.asyncio
async def test_create_category_posts_slugged_branch() -> None:
    """A missing category is created and flagged as recently created."""
    client, server = _make_client(
        {
            ("GET", "/api/projects/acme/categories/"): (200, _page([])),
            ("POST", "/api/categories/"): (201, _category(9, "feature/x__4")),
        }
    )

    category = await client.create_category_for_branch("feature/x__4")

    assert category.id == 9
    assert category.was_recently_created is True
    assert server.bodies("POST") == [
        {
            "name": "feature/x__4",
            "slug": "feature-x__4",
            "project": f"{_API}/projects/acme/",
        }
    ]


@pytest.mark.asyncio
async def test_components_are_filtered_by_category() -> None:
    """Only components whose category URL matches are returned."""
    client, _ = _make_client(
        {
            ("GET", "/api/projects/acme/components/"): (
                200,
                _page(
                    [
                        _component("common"),
                        _component("billing", linked="common"),
                        _component("other", category_id=2),
                    ]
                ),
            ),
        }
    )

    components = await client.get_components_in_category(1)
    main = await client.get_main_component_in_category(1)

    assert [component.name for component in components] == ["common", "billing"]
    assert main is not None
    assert main.name == "common"


@pytest.mark.asyncio
async def test_create_component_posts_payload_and_addons() -> None:
    """New owning components carry the VCS binding and trunk addons."""
    client, server = _make_client(
        {
            ("POST", "/api/projects/acme/components/"): (201, _component("common")),
            ("POST", "/api/components/acme/master%2Fcommon/addons/"): (201, {}),
        }
    )

    component = await client.create_component(
        ComponentSpec(
            name="common",
            file_mask="src/i18n/common/*.json",
            source="src/i18n/common/en.json",
            category=_MASTER,
            repo="git@github.com:acme/app.git",
            branch="master",
            push="git@github.com:acme/app.git",
            apply_addons=AddonPreset.MAIN_BRANCH,
        )
    )

    assert component.name == "common"
    payload, *addons = server.bodies("POST")
    assert payload == {
        "name": "common",
        "slug": "common",
        "category": f"{_API}/categories/1/",
        "vcs": "git",
        "repo": "git@github.com:acme/app.git",
        "file_format": "json",
        "filemask": "src/i18n/common/*.json",
        "template": "src/i18n/common/en.json",
        "new_base": "src/i18n/common/en.json",
        "source_language": {"code": "en"},
        "branch": "master",
        "push": "git@github.com:acme/app.git",
    }
    assert [addon["name"] for addon in addons] == [
        "weblate.json.customize",
        "weblate.cleanup.generic",
    ]


@pytest.mark.asyncio
async def test_pull_request_component_records_author() -> None:
    """Pull-request components describe their origin and skip addons."""
    client, server = _make_client(
        {("POST", "/api/projects/acme/components/"): (201, _component("billing__4"))}
    )

    await client.create_component(
        ComponentSpec(
            name="billing__4",
            file_mask="m/*.json",
            source="m/en.json",
            category=_MASTER,
            repo="weblate://acme/master/common__4",
            pull_request_author="octocat",
            pull_request_number=4,
        )
    )

    (payload,) = server.bodies("POST")
    assert payload["description"] == "Pull request #4 by @octocat"
    assert "branch" not in payload
    assert "push" not in payload


@pytest.mark.asyncio
async def test_existing_component_is_returned_unchanged() -> None:
    """Without update_if_exist nothing is written."""
    client, server = _make_client(
        {("GET", "/api/components/acme/master%2Fcommon/"): (200, _component("common"))}
    )

    await client.create_component(
        ComponentSpec(
            name="common",
            file_mask="x/*.json",
            source="x/en.json",
            category=_MASTER,
            repo="git@github.com:acme/app.git",
        )
    )

    assert [request.method for request in server.requests] == ["GET"]


@pytest.mark.asyncio
async def test_existing_component_is_patched_when_updating() -> None:
    """update_if_exist re-binds the repository and masks."""
    client, server = _make_client(
        {
            ("GET", "/api/components/acme/master%2Fcommon/"): (
                200,
                _component("common"),
            ),
            ("PATCH", "/api/components/acme/master%2Fcommon/"): (
                200,
                _component("common"),
            ),
        }
    )

    await client.create_component(
        ComponentSpec(
            name="common",
            file_mask="x/*.json",
            source="x/en.json",
            category=_MASTER,
            repo="git@github.com:acme/app.git",
            branch="feature",
            push="git@github.com:acme/app.git",
            update_if_exist=True,
        )
    )

    assert server.bodies("PATCH") == [
        {
            "repo": "git@github.com:acme/app.git",
            "filemask": "x/*.json",
            "template": "x/en.json",
            "new_base": "x/en.json",
            "branch": "feature",
            "push": "git@github.com:acme/app.git",
        }
    ]


@pytest.mark.asyncio
async def test_component_task_states() -> None:
    """Tasks are read from task_url; a purged task counts as idle."""
    running = {**_component("common"), "task_url": f"{_API}/tasks/abc/"}
    purged = {**_component("billing"), "task_url": f"{_API}/tasks/gone/"}
    client, _ = _make_client(
        {
            ("GET", "/api/components/acme/master%2Fcommon/"): (200, running),
            ("GET", "/api/components/acme/master%2Fbilling/"): (200, purged),
            ("GET", "/api/components/acme/master%2Fidle/"): (200, _component("idle")),
            ("GET", "/api/tasks/abc/"): (200, {"completed": False, "progress": 40}),
        }
    )

    task = await client.get_component_task("common", "master")

    assert task is not None
    assert task.completed is False
    assert task.progress == 40
    assert await client.get_component_task("billing", "master") is None
    assert await client.get_component_task("idle", "master") is None


@pytest.mark.asyncio
async def test_repository_and_statistics() -> None:
    """Repository status and paginated statistics are decoded."""
    client, server = _make_client(
        {
            ("GET", "/api/components/acme/master%2Fcommon/repository/"): (
                200,
                {"needs_commit": True, "needs_push": False, "merge_failure": None},
            ),
            ("POST", "/api/components/acme/master%2Fcommon/repository/"): (
                200,
                {"result": True},
            ),
            ("GET", "/api/components/acme/master%2Fcommon/statistics/"): (
                200,
                _page(
                    [
                        {"code": "en", "translated": 10, "total": 10},
                        {"code": "de", "translated": 0, "total": 10},
                    ]
                ),
            ),
        }
    )

    status = await client.get_component_repository("common", "master")
    await client.pull_component_remote_changes("common", "master")
    statistics = await client.get_component_statistics("common", "master")

    assert status.needs_commit is True
    assert status.merge_failure is None
    assert server.bodies("POST") == [{"operation": "pull"}]
    assert [(entry.code, entry.translated) for entry in statistics] == [
        ("en", 10),
        ("de", 0),
    ]


@pytest.mark.asyncio
async def test_http_errors_raise_api_error() -> None:
    """Non-2xx responses propagate as WeblateAPIError with the status."""
    client, _ = _make_client(
        {("DELETE", "/api/categories/3/"): (_HTTP_SERVER_ERROR, {"detail": "boom"})}
    )

    with pytest.raises(WeblateAPIError) as excinfo:
        await client.remove_category(3)

    assert excinfo.value.status_code == _HTTP_SERVER_ERROR


@pytest.mark.asyncio
async def test_network_errors_raise_api_error() -> None:
    """Transport failures are wrapped in WeblateAPIError."""

    def _fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    client, _ = _make_client({("DELETE", "/api/components/acme/master%2Fold/"): _fail})

    with pytest.raises(WeblateAPIError, match="unreachable"):
        await client.remove_component("old", "master")
