"""Synchronisation service driving the three operating modes.

``sync-master`` mirrors the trunk branch into its Weblate category.
``validate-pull-request`` mirrors a pull request into a category seeded from
trunk and rejects PRs that would leave Weblate in a broken state.
``remove-branch`` deletes the pull-request category once the PR is closed.

Usage
-----
>>> from keysync.config import SyncConfig
>>> from keysync.weblate import WeblateClient, WeblateConfig
>>> weblate = WeblateClient(WeblateConfig.from_env())
>>> service = SyncService(
...     SyncServiceDependencies(weblate=weblate),
...     SyncConfig.from_env(),
... )
>>> outcome = await service.run()

"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import time
import typing as typ
from pathlib import Path

from keysync.config import ActionMode
from keysync.discovery import discover_resource_groups
from keysync.errors import (
    CategoryNotFoundError,
    MergeConflictError,
    NoResourceGroupsError,
    SyncFailure,
    UnpushedChangesError,
    UntranslatedComponentsError,
)
from keysync.logging import get_logger, log_exception, log_info
from keysync.weblate import AddonPreset

from .barrier import TaskBarrier
from .health import (
    classify_repository,
    find_untranslated_components,
    pull_remote_changes,
    untranslated_components_message,
)
from .models import SyncOutcome
from .reconcile import ComponentBinding, ComponentReconciler

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from keysync.config import SyncConfig
    from keysync.discovery import ResourceGroup
    from keysync.github import PullRequestCommenter
    from keysync.observability import SyncEventLogger
    from keysync.weblate import Category, WeblateAPI, WeblateComponent

    from .models import RepositoryErrors

logger = get_logger(__name__)


@dc.dataclass(frozen=True, slots=True)
class SyncServiceDependencies:
    """Collaborators of :class:`SyncService`.

    Attributes
    ----------
    weblate
        Weblate API implementation.
    commenter
        Posts failure messages on the pull request. Required for
        ``validate-pull-request``.

    """

    weblate: WeblateAPI
    commenter: PullRequestCommenter | None = None


class SyncService:
    """Run one synchronisation mode against Weblate."""

    def __init__(
        self,
        dependencies: SyncServiceDependencies,
        config: SyncConfig,
        *,
        event_logger: SyncEventLogger | None = None,
        root: Path | None = None,
    ) -> None:
        """Configure the service.

        Parameters
        ----------
        dependencies
            Weblate client and optional pull-request commenter.
        config
            Run configuration.
        event_logger
            Optional structured event logger for run lifecycle events.
        root
            Repository checkout that keyset paths are relative to; defaults
            to the working directory.

        Raises
        ------
        ValueError
            If ``validate-pull-request`` is configured without a commenter.

        """
        if (
            config.mode is ActionMode.VALIDATE_PULL_REQUEST
            and dependencies.commenter is None
        ):
            msg = "validate-pull-request requires a pull request commenter"
            raise ValueError(msg)

        self._weblate = dependencies.weblate
        self._commenter = dependencies.commenter
        self._config = config
        self._event_logger = event_logger
        self._root = root if root is not None else Path.cwd()
        self._barrier = TaskBarrier(
            dependencies.weblate,
            timeout_s=config.task_timeout_s,
            poll_interval_s=config.task_poll_interval_s,
        )
        self._reconciler = ComponentReconciler(dependencies.weblate)

    @property
    def _branch(self) -> str:
        if self._config.mode.is_pull_request:
            return self._config.pull_request_branch
        return self._config.branch_name

    def _handlers(
        self,
    ) -> dict[ActionMode, cabc.Callable[[], cabc.Awaitable[SyncOutcome]]]:
        return {
            ActionMode.SYNC_MASTER: self.sync_master,
            ActionMode.VALIDATE_PULL_REQUEST: self.validate_pull_request,
            ActionMode.REMOVE_BRANCH: self.remove_branch,
        }

    async def run(self) -> SyncOutcome:
        """Run the configured mode and return its outcome.

        In pull-request modes every :class:`SyncFailure` is posted as a PR
        comment before it is re-raised.

        Raises
        ------
        SyncFailure
            For every classified fatal condition.

        """
        mode = self._config.mode
        handler = self._handlers()[mode]
        started = time.perf_counter()
        if self._event_logger is not None:
            self._event_logger.log_run_started(mode=mode, branch=self._branch)

        try:
            outcome = await handler()
        except Exception as exc:
            if isinstance(exc, SyncFailure) and mode.is_pull_request:
                await self._comment(exc.message)
            if self._event_logger is not None:
                self._event_logger.log_run_failed(
                    mode=mode,
                    branch=self._branch,
                    error=exc,
                    duration=dt.timedelta(seconds=time.perf_counter() - started),
                )
            raise

        if self._event_logger is not None:
            self._event_logger.log_run_completed(
                outcome, dt.timedelta(seconds=time.perf_counter() - started)
            )
        return outcome

    async def _comment(self, body: str) -> None:
        number = self._config.pull_request_number
        if self._commenter is None or number is None:
            return
        try:
            await self._commenter.create_comment(number, body)
        except Exception as exc:  # noqa: BLE001 - the original failure wins
            log_exception(logger, "Failed to comment on pull request", exc)

    def _discover(self) -> list[ResourceGroup]:
        groups = discover_resource_groups(
            self._config.keysets_path,
            self._config.main_language,
            root=self._root,
            anchor_segment=self._config.anchor_segment,
        )
        if not groups:
            raise NoResourceGroupsError(self._config.keysets_path)
        return groups

    async def _pull_or_fail(self, category: Category) -> None:
        failure = await pull_remote_changes(self._weblate, category, self._barrier)
        if failure is not None:
            raise MergeConflictError(failure)

    async def _wait_for_category(self, category: Category) -> None:
        components = await self._weblate.get_components_in_category(category.id)
        await self._barrier.wait_components_tasks(
            (component.name for component in components), category.slug
        )

    def _check_repository(self, errors: RepositoryErrors, outcome: SyncOutcome) -> None:
        """Raise for fatal repository conditions and record warnings."""
        if errors.is_clean:
            return
        if errors.merge_failure_error is not None:
            raise MergeConflictError(errors.merge_failure_error)
        if errors.needs_commit_error is not None:
            outcome.warnings.append(errors.needs_commit_error)
            if self._event_logger is not None:
                self._event_logger.log_run_warning(
                    mode=outcome.mode,
                    branch=outcome.branch,
                    message=errors.needs_commit_error,
                )
        if errors.needs_push_error is not None:
            raise UnpushedChangesError(errors.needs_push_error)

    async def _finish(
        self,
        category: Category,
        groups: list[ResourceGroup],
        owner: WeblateComponent,
        synced: int,
    ) -> SyncOutcome:
        """Wait, prune stale components and check the owner's repository."""
        await self._wait_for_category(category)
        removed = await self._reconciler.remove_missing_components(
            category, groups, name_suffix=self._config.name_suffix
        )
        outcome = SyncOutcome(
            mode=self._config.mode,
            branch=category.name,
            category_slug=category.slug,
            components_synced=synced,
            components_removed=len(removed),
        )
        errors = await classify_repository(self._weblate, owner.name, category.slug)
        self._check_repository(errors, outcome)
        return outcome

    async def sync_master(self) -> SyncOutcome:
        """Mirror the trunk branch into its category."""
        config = self._config
        category = await self._weblate.create_category_for_branch(config.branch_name)
        log_info(logger, "Using category %s for %s", category.slug, config.branch_name)
        if not category.was_recently_created:
            await self._pull_or_fail(category)

        groups = self._discover()
        result = await self._reconciler.create_components(
            category,
            groups,
            ComponentBinding(
                repo=config.git_repo,
                branch=config.branch_name,
                apply_addons=AddonPreset.MAIN_BRANCH,
            ),
        )
        return await self._finish(
            category, groups, result.owner, len(result.components)
        )

    async def validate_pull_request(self) -> SyncOutcome:
        """Mirror a pull request and reject it when Weblate would break.

        A new PR category is seeded from the trunk category, then its owning
        component is re-bound to the PR branch. An existing PR category is
        pulled first so merge conflicts surface before anything changes.
        """
        config = self._config
        category = await self._weblate.create_category_for_branch(
            config.pull_request_branch
        )
        log_info(logger, "Using category %s for pull request", category.slug)
        binding = ComponentBinding(
            repo=config.git_repo,
            branch=config.branch_name,
            name_suffix=config.name_suffix,
            pull_request_author=config.pull_request_author,
            pull_request_number=config.pull_request_number,
        )

        if category.was_recently_created:
            master = await self._weblate.find_category_for_branch(config.master_branch)
            if master is None:
                raise CategoryNotFoundError(config.master_branch)
            cloned = await self._reconciler.clone_category(master, category, binding)
            await self._barrier.wait_components_tasks(
                (component.name for component in cloned), category.slug
            )
        else:
            await self._pull_or_fail(category)

        groups = self._discover()
        result = await self._reconciler.create_components(
            category,
            groups,
            binding,
            update_if_exist=category.was_recently_created,
        )
        if not category.was_recently_created:
            await self._weblate.pull_component_remote_changes(
                result.owner.name, category.slug
            )

        outcome = await self._finish(
            category, groups, result.owner, len(result.components)
        )

        untranslated = await find_untranslated_components(
            self._weblate, result.components, category.slug, config.main_language
        )
        if untranslated:
            urls = [
                self._weblate.component_web_url(name, category.slug)
                for name in untranslated
            ]
            raise UntranslatedComponentsError(
                untranslated_components_message(urls), untranslated
            )
        return outcome

    async def remove_branch(self) -> SyncOutcome:
        """Delete the pull-request category, if it exists."""
        branch = self._config.pull_request_branch
        category = await self._weblate.find_category_for_branch(branch)
        if category is None:
            log_info(logger, "No category for %s; nothing to remove", branch)
            return SyncOutcome(mode=self._config.mode, branch=branch, category_slug="")

        components = await self._weblate.get_components_in_category(category.id)
        await self._weblate.remove_category(category.id)
        log_info(logger, "Removed category %s", category.slug)
        return SyncOutcome(
            mode=self._config.mode,
            branch=branch,
            category_slug=category.slug,
            components_removed=len(components),
        )
