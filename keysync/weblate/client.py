"""Weblate REST client used by the synchronisation flows."""

from __future__ import annotations

import typing as typ
import urllib.parse

import httpx
import msgspec

from keysync.common.slug import slugify
from keysync.logging import get_logger, log_debug, log_info

from .errors import WeblateAPIError, WeblateConfigError, WeblateResponseShapeError
from .models import (
    AddonPreset,
    Category,
    ComponentSpec,
    ComponentTask,
    RepositoryStatus,
    TranslationStatistics,
    WeblateComponent,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .config import WeblateConfig

logger = get_logger(__name__)

_HTTP_ERROR_STATUS_THRESHOLD = 400
_HTTP_NOT_FOUND = 404

# Addons installed per preset: (addon name, configuration).
_ADDON_PRESETS: dict[AddonPreset, tuple[tuple[str, dict[str, object]], ...]] = {
    AddonPreset.MAIN_BRANCH: (
        ("weblate.json.customize", {"sort_keys": 1, "indent": 4, "style": "spaces"}),
        ("weblate.cleanup.generic", {}),
    ),
}


class WeblateAPI(typ.Protocol):
    """Operations the synchronisation flows need from Weblate."""

    def linked_repo_url(self, category_slug: str, component_slug: str) -> str:
        """Return the ``weblate://`` URL linking to another component."""
        ...

    def component_web_url(self, component_name: str, category_slug: str) -> str:
        """Return the browser URL of a component."""
        ...

    async def create_category_for_branch(self, branch: str) -> Category:
        """Return the branch's category, creating it when missing."""
        ...

    async def find_category_for_branch(self, branch: str) -> Category | None:
        """Return the branch's category, or ``None``."""
        ...

    async def remove_category(self, category_id: int) -> None:
        """Delete a category together with its components."""
        ...

    async def create_component(self, spec: ComponentSpec) -> WeblateComponent:
        """Create a component, or converge an existing one with the same name."""
        ...

    async def remove_component(self, component_name: str, category_slug: str) -> None:
        """Delete one component."""
        ...

    async def get_components_in_category(
        self, category_id: int
    ) -> list[WeblateComponent]:
        """Return every component in a category."""
        ...

    async def get_main_component_in_category(
        self, category_id: int
    ) -> WeblateComponent | None:
        """Return the component owning the category's VCS checkout."""
        ...

    async def get_component_task(
        self, component_name: str, category_slug: str
    ) -> ComponentTask | None:
        """Return the component's background task, or ``None`` when idle."""
        ...

    async def pull_component_remote_changes(
        self, component_name: str, category_slug: str
    ) -> None:
        """Ask Weblate to pull upstream changes into the component."""
        ...

    async def get_component_repository(
        self, component_name: str, category_slug: str
    ) -> RepositoryStatus:
        """Return the repository status of a component."""
        ...

    async def get_component_statistics(
        self, component_name: str, category_slug: str
    ) -> list[TranslationStatistics]:
        """Return per-language translation statistics of a component."""
        ...


def main_component_of(
    components: cabc.Iterable[WeblateComponent],
) -> WeblateComponent | None:
    """Return the first component that is not linked to another one."""
    return next(
        (component for component in components if not component.linked_component),
        None,
    )


def _category_id_from_url(url: str | None) -> int | None:
    if not url:
        return None
    segment = url.rstrip("/").rsplit("/", 1)[-1]
    return int(segment) if segment.isdigit() else None


T = typ.TypeVar("T")


def _convert(data: object, model: type[T], *, field: str) -> T:
    try:
        return msgspec.convert(data, type=model)
    except msgspec.ValidationError as exc:
        raise WeblateResponseShapeError.missing(f"{field}: {exc}") from exc


class WeblateClient:
    """httpx implementation of :class:`WeblateAPI`."""

    def __init__(
        self,
        config: WeblateConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client for the configured Weblate project."""
        if not config.token.strip():
            raise WeblateConfigError.empty_token()

        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            headers={
                "Authorization": f"Token {config.token}",
                "User-Agent": config.user_agent,
                "Accept": "application/json",
            },
        )

    @property
    def config(self) -> WeblateConfig:
        """Read-only access to the client configuration."""
        return self._config

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    def _api_url(self, path: str) -> str:
        return urllib.parse.urljoin(self._config.api_root, path)

    def _component_path(self, component_name: str, category_slug: str) -> str:
        # Weblate addresses categorised components as "<category>%2F<component>".
        return (
            f"components/{self._config.project}/"
            f"{category_slug}%2F{slugify(component_name)}/"
        )

    def _category_api_url(self, category: Category) -> str:
        return category.url or self._api_url(f"categories/{category.id}/")

    def linked_repo_url(self, category_slug: str, component_slug: str) -> str:
        """Return the ``weblate://`` URL linking to another component."""
        return f"weblate://{self._config.project}/{category_slug}/{component_slug}"

    def component_web_url(self, component_name: str, category_slug: str) -> str:
        """Return the browser URL of a component."""
        return (
            f"{self._config.server_url.rstrip('/')}/projects/{self._config.project}/"
            f"{category_slug}/{slugify(component_name)}/"
        )

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: dict[str, object] | None = None,
        allow_missing: bool = False,
    ) -> object | None:
        """Send a request and return the decoded JSON body.

        Returns ``None`` for empty bodies, and for 404 responses when
        ``allow_missing`` is set.
        """
        log_debug(logger, "Weblate %s %s", method, url)
        try:
            response = await self._client.request(method, url, json=json)
        except httpx.RequestError as exc:
            raise WeblateAPIError.network_error(method, url, str(exc)) from exc

        if allow_missing and response.status_code == _HTTP_NOT_FOUND:
            return None
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise WeblateAPIError.http_error(method, url, response.status_code)
        if not response.content:
            return None
        return response.json()

    async def _iter_results(self, path: str) -> typ.AsyncIterator[object]:
        """Yield ``results`` entries across every page of a list endpoint."""
        next_url: str | None = self._api_url(path)
        while next_url is not None:
            page = await self._request("GET", next_url)
            if not isinstance(page, dict):
                raise WeblateResponseShapeError.missing(path)
            results = page.get("results")
            if not isinstance(results, list):
                raise WeblateResponseShapeError.missing(f"{path}.results")
            for item in results:
                yield item
            raw_next = page.get("next")
            next_url = raw_next if isinstance(raw_next, str) and raw_next else None

    async def find_category_for_branch(self, branch: str) -> Category | None:
        """Return the category named after ``branch``, or ``None``."""
        async for item in self._iter_results(
            f"projects/{self._config.project}/categories/"
        ):
            if isinstance(item, dict) and item.get("name") == branch:
                return _convert(item, Category, field="category")
        return None

    async def create_category_for_branch(self, branch: str) -> Category:
        """Return the branch's category, creating it when missing.

        ``was_recently_created`` is only True when this call created it.
        """
        existing = await self.find_category_for_branch(branch)
        if existing is not None:
            return existing

        data = await self._request(
            "POST",
            self._api_url("categories/"),
            json={
                "name": branch,
                "slug": slugify(branch),
                "project": self._api_url(f"projects/{self._config.project}/"),
            },
        )
        category = _convert(data, Category, field="category")
        log_info(logger, "Created category %s (id=%d)", category.slug, category.id)
        return msgspec.structs.replace(category, was_recently_created=True)

    async def remove_category(self, category_id: int) -> None:
        """Delete a category; Weblate cascades to its components."""
        await self._request("DELETE", self._api_url(f"categories/{category_id}/"))

    async def get_component(
        self, component_name: str, category_slug: str
    ) -> WeblateComponent | None:
        """Return one component, or ``None`` when it does not exist."""
        data = await self._request(
            "GET",
            self._api_url(self._component_path(component_name, category_slug)),
            allow_missing=True,
        )
        if data is None:
            return None
        return _convert(data, WeblateComponent, field="component")

    async def get_components_in_category(
        self, category_id: int
    ) -> list[WeblateComponent]:
        """Return every component whose category is ``category_id``."""
        components: list[WeblateComponent] = []
        async for item in self._iter_results(
            f"projects/{self._config.project}/components/"
        ):
            if not isinstance(item, dict):
                continue
            if _category_id_from_url(item.get("category")) != category_id:
                continue
            components.append(_convert(item, WeblateComponent, field="component"))
        return components

    async def get_main_component_in_category(
        self, category_id: int
    ) -> WeblateComponent | None:
        """Return the category's unlinked component, or ``None``."""
        return main_component_of(await self.get_components_in_category(category_id))

    def _component_payload(self, spec: ComponentSpec) -> dict[str, object]:
        payload: dict[str, object] = {
            "name": spec.name,
            "slug": slugify(spec.name),
            "category": self._category_api_url(spec.category),
            "vcs": "git",
            "repo": spec.repo,
            "file_format": self._config.file_format,
            "filemask": spec.file_mask,
            "template": spec.source,
            "new_base": spec.source,
            "source_language": {"code": self._config.main_language},
        }
        if spec.branch:
            payload["branch"] = spec.branch
        if spec.push:
            payload["push"] = spec.push
        if spec.pull_request_number is not None:
            payload["description"] = (
                f"Pull request #{spec.pull_request_number}"
                f" by @{spec.pull_request_author or 'unknown'}"
            )
        return payload

    async def create_component(self, spec: ComponentSpec) -> WeblateComponent:
        """Create a component, or converge an existing one with the same name.

        An existing component is patched with the new repository binding and
        masks when ``spec.update_if_exist`` is set, and returned unchanged
        otherwise.
        """
        existing = await self.get_component(spec.name, spec.category.slug)
        if existing is not None:
            if not spec.update_if_exist:
                log_debug(logger, "Component %s already exists", spec.name)
                return existing
            return await self._update_component(spec)

        data = await self._request(
            "POST",
            self._api_url(f"projects/{self._config.project}/components/"),
            json=self._component_payload(spec),
        )
        component = _convert(data, WeblateComponent, field="component")
        log_info(logger, "Created component %s in %s", spec.name, spec.category.slug)
        if spec.apply_addons is not None:
            await self._install_addons(spec, spec.apply_addons)
        return component

    async def _update_component(self, spec: ComponentSpec) -> WeblateComponent:
        patch: dict[str, object] = {
            "repo": spec.repo,
            "filemask": spec.file_mask,
            "template": spec.source,
            "new_base": spec.source,
        }
        if spec.branch:
            patch["branch"] = spec.branch
        if spec.push:
            patch["push"] = spec.push
        data = await self._request(
            "PATCH",
            self._api_url(self._component_path(spec.name, spec.category.slug)),
            json=patch,
        )
        log_info(logger, "Updated component %s in %s", spec.name, spec.category.slug)
        return _convert(data, WeblateComponent, field="component")

    async def _install_addons(self, spec: ComponentSpec, preset: AddonPreset) -> None:
        url = self._api_url(
            self._component_path(spec.name, spec.category.slug) + "addons/"
        )
        for addon_name, configuration in _ADDON_PRESETS[preset]:
            await self._request(
                "POST", url, json={"name": addon_name, "configuration": configuration}
            )

    async def remove_component(self, component_name: str, category_slug: str) -> None:
        """Delete one component."""
        await self._request(
            "DELETE",
            self._api_url(self._component_path(component_name, category_slug)),
        )

    async def get_component_task(
        self, component_name: str, category_slug: str
    ) -> ComponentTask | None:
        """Return the component's background task, or ``None`` when idle."""
        component = await self.get_component(component_name, category_slug)
        if component is None or not component.task_url:
            return None
        data = await self._request("GET", component.task_url, allow_missing=True)
        if data is None:
            # Weblate drops finished tasks from its result backend.
            return None
        return _convert(data, ComponentTask, field="task")

    async def pull_component_remote_changes(
        self, component_name: str, category_slug: str
    ) -> None:
        """Ask Weblate to pull upstream changes into the component."""
        await self._request(
            "POST",
            self._api_url(
                self._component_path(component_name, category_slug) + "repository/"
            ),
            json={"operation": "pull"},
        )

    async def get_component_repository(
        self, component_name: str, category_slug: str
    ) -> RepositoryStatus:
        """Return the repository status of a component."""
        data = await self._request(
            "GET",
            self._api_url(
                self._component_path(component_name, category_slug) + "repository/"
            ),
        )
        return _convert(data, RepositoryStatus, field="repository")

    async def get_component_statistics(
        self, component_name: str, category_slug: str
    ) -> list[TranslationStatistics]:
        """Return per-language translation statistics of a component."""
        path = self._component_path(component_name, category_slug) + "statistics/"
        return [
            _convert(item, TranslationStatistics, field="statistics")
            async for item in self._iter_results(path)
        ]
