"""Converge a Weblate category onto the discovered resource groups.

The owning group is created first because every other component links to its
VCS checkout. The remaining components are independent of each other and are
created concurrently.
"""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

from keysync.errors import MainComponentNotFoundError
from keysync.logging import get_logger, log_info
from keysync.weblate import ComponentSpec, main_component_of

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from keysync.discovery import ResourceGroup
    from keysync.weblate import AddonPreset, Category, WeblateAPI, WeblateComponent

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class ComponentBinding:
    """Git binding and metadata shared by the components of one run.

    Attributes
    ----------
    repo
        Git URL the owning component clones from and pushes to.
    branch
        Git branch the owning component tracks.
    apply_addons
        Addon preset installed on newly created components.
    name_suffix
        Appended to every group name, e.g. ``"__42"`` for pull requests.
    pull_request_author, pull_request_number
        Recorded on pull-request components.

    """

    repo: str
    branch: str
    apply_addons: AddonPreset | None = None
    name_suffix: str = ""
    pull_request_author: str | None = None
    pull_request_number: int | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Components touched by :meth:`ComponentReconciler.create_components`."""

    owner: WeblateComponent
    components: list[WeblateComponent]


T = typ.TypeVar("T")


async def _run_all(
    coros: cabc.Iterable[cabc.Coroutine[typ.Any, typ.Any, T]],
) -> list[T]:
    """Run coroutines concurrently and return results in input order.

    The first failure cancels the rest and is re-raised unwrapped.
    """
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(coro) for coro in coros]
    except ExceptionGroup as exc_group:
        raise exc_group.exceptions[0] from exc_group
    return [task.result() for task in tasks]


def _split_owner(
    groups: cabc.Sequence[ResourceGroup],
    name_suffix: str,
    current_owner: str | None,
) -> tuple[ResourceGroup, list[ResourceGroup]]:
    """Pick the owning group, preferring the one behind ``current_owner``."""
    owners = [group for group in groups if group.is_owner]
    if len(owners) != 1:
        msg = f"expected exactly one owning resource group, found {len(owners)}"
        raise ValueError(msg)
    owner = next(
        (
            group
            for group in groups
            if group.component_name(name_suffix) == current_owner
        ),
        owners[0],
    )
    return owner, [group for group in groups if group is not owner]


class ComponentReconciler:
    """Create, clone and prune the components of a category."""

    def __init__(self, client: WeblateAPI) -> None:
        """Bind the reconciler to a Weblate API implementation."""
        self._client = client

    def _spec(
        self,
        *,
        name: str,
        file_mask: str,
        source: str,
        category: Category,
        binding: ComponentBinding,
        repo: str,
        owns_checkout: bool,
        update_if_exist: bool,
    ) -> ComponentSpec:
        return ComponentSpec(
            name=name,
            file_mask=file_mask,
            source=source,
            category=category,
            repo=repo,
            branch=binding.branch if owns_checkout else None,
            push=binding.repo if owns_checkout else None,
            apply_addons=binding.apply_addons,
            pull_request_author=binding.pull_request_author,
            pull_request_number=binding.pull_request_number,
            update_if_exist=update_if_exist,
        )

    async def create_components(
        self,
        category: Category,
        groups: cabc.Sequence[ResourceGroup],
        binding: ComponentBinding,
        *,
        update_if_exist: bool = False,
    ) -> ReconcileResult:
        """Create (or converge) one component per resource group.

        The category's current unlinked component keeps the checkout while its
        group is still discovered, whatever the listing order. When it is gone
        (or the category has none), the designated owner group is bound to git
        and every discovered component is re-linked to it, so the category
        ends the run with exactly one checkout.

        Parameters
        ----------
        category
            Category receiving the components.
        groups
            Discovered groups; exactly one must be the owner.
        binding
            Git binding of the owning component and shared metadata.
        update_if_exist
            Re-bind components that already exist even when the current
            checkout is kept.

        Returns
        -------
        ReconcileResult
            The owning component and every component created or converged,
            owner first.

        """
        existing = await self._client.get_main_component_in_category(category.id)
        existing_name = existing.name if existing is not None else None
        owner_group, rest = _split_owner(groups, binding.name_suffix, existing_name)
        owner_name = owner_group.component_name(binding.name_suffix)
        rebind = update_if_exist or owner_name != existing_name
        if existing is not None and owner_name != existing.name:
            log_info(
                logger,
                "Moving checkout of %s from %s to %s",
                category.slug,
                existing.name,
                owner_name,
            )

        owner = await self._client.create_component(
            self._spec(
                name=owner_name,
                file_mask=owner_group.file_mask,
                source=owner_group.source,
                category=category,
                binding=binding,
                repo=binding.repo,
                owns_checkout=True,
                update_if_exist=rebind,
            )
        )
        link = self._client.linked_repo_url(category.slug, owner.slug)

        linked = await _run_all(
            self._client.create_component(
                self._spec(
                    name=group.component_name(binding.name_suffix),
                    file_mask=group.file_mask,
                    source=group.source,
                    category=category,
                    binding=binding,
                    repo=link,
                    owns_checkout=False,
                    update_if_exist=rebind,
                )
            )
            for group in rest
        )
        log_info(
            logger,
            "Synchronised %d component(s) in %s linked to %s",
            len(linked) + 1,
            category.slug,
            owner.name,
        )
        return ReconcileResult(owner=owner, components=[owner, *linked])

    async def clone_category(
        self,
        source: Category,
        destination: Category,
        binding: ComponentBinding,
    ) -> list[WeblateComponent]:
        """Copy every component of ``source`` into ``destination``.

        The copies carry ``binding.name_suffix`` and link to the main
        component of ``source``, so the destination shares its checkout until
        the owner is re-bound.

        Raises
        ------
        MainComponentNotFoundError
            If ``source`` has no unlinked component.

        """
        components = await self._client.get_components_in_category(source.id)
        source_main = main_component_of(components)
        if source_main is None:
            raise MainComponentNotFoundError(source.slug)

        link = self._client.linked_repo_url(source.slug, source_main.slug)
        cloned = await _run_all(
            self._client.create_component(
                ComponentSpec(
                    name=f"{component.name}{binding.name_suffix}",
                    file_mask=component.filemask,
                    source=component.template,
                    category=destination,
                    repo=link,
                    pull_request_author=binding.pull_request_author,
                    pull_request_number=binding.pull_request_number,
                )
            )
            for component in components
        )
        log_info(
            logger,
            "Cloned %d component(s) from %s into %s",
            len(cloned),
            source.slug,
            destination.slug,
        )
        return cloned

    async def remove_missing_components(
        self,
        category: Category,
        groups: cabc.Sequence[ResourceGroup],
        *,
        name_suffix: str = "",
    ) -> list[str]:
        """Delete components whose resource group no longer exists.

        Linked components are removed before an unlinked one so no component
        is left pointing at a deleted checkout.

        Returns
        -------
        list[str]
            Names of the removed components.

        """
        expected = {group.component_name(name_suffix) for group in groups}
        current = await self._client.get_components_in_category(category.id)
        stale = sorted(
            (component for component in current if component.name not in expected),
            key=lambda component: component.linked_component is None,
        )
        for component in stale:
            log_info(
                logger, "Removing component %s from %s", component.name, category.slug
            )
            await self._client.remove_component(component.name, category.slug)
        return [component.name for component in stale]
