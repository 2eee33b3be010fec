"""Wait for Weblate background tasks before touching a category.

Weblate clones, pulls and updates repositories in background tasks. Deleting
or re-linking a component while such a task is running can leave the
category pointing at a half-updated checkout, so destructive steps first wait
until every component of the category is idle.
"""

from __future__ import annotations

import asyncio
import typing as typ

from keysync.errors import TaskTimeoutError
from keysync.logging import get_logger, log_debug, log_info

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from keysync.weblate import WeblateAPI

logger = get_logger(__name__)

_DEFAULT_TIMEOUT_S = 600.0
_DEFAULT_POLL_INTERVAL_S = 2.0


class TaskBarrier:
    """Bounded, cooperative wait on component background tasks."""

    def __init__(
        self,
        client: WeblateAPI,
        *,
        timeout_s: float = _DEFAULT_TIMEOUT_S,
        poll_interval_s: float = _DEFAULT_POLL_INTERVAL_S,
    ) -> None:
        """Configure the barrier.

        Parameters
        ----------
        client
            Weblate API used to read component task state.
        timeout_s
            Total time allowed before giving up with ``TaskTimeoutError``.
        poll_interval_s
            Delay between two polls of the still-running components.

        """
        self._client = client
        self._timeout_s = timeout_s
        self._poll_interval_s = poll_interval_s

    async def _running(self, names: list[str], category_slug: str) -> list[str]:
        """Return the subset of ``names`` whose task has not completed."""
        running: list[str] = []
        for name in names:
            task = await self._client.get_component_task(name, category_slug)
            if task is not None and not task.completed:
                running.append(name)
        return running

    async def wait_components_tasks(
        self, component_names: cabc.Iterable[str], category_slug: str
    ) -> None:
        """Return once every named component's task reached a terminal state.

        Completed tasks count as terminal whether they succeeded or failed; a
        component without a task is idle. The barrier never returns while any
        named component is still busy.

        Raises
        ------
        TaskTimeoutError
            If components are still busy after ``timeout_s``.

        """
        pending = list(dict.fromkeys(component_names))
        if not pending:
            return

        log_info(
            logger,
            "Waiting for tasks of %d component(s) in %s",
            len(pending),
            category_slug,
        )
        try:
            async with asyncio.timeout(self._timeout_s):
                while True:
                    pending = await self._running(pending, category_slug)
                    if not pending:
                        break
                    log_debug(
                        logger,
                        "Still running in %s: %s",
                        category_slug,
                        ", ".join(pending),
                    )
                    await asyncio.sleep(self._poll_interval_s)
        except TimeoutError as exc:
            raise TaskTimeoutError(pending, self._timeout_s) from exc

        log_info(logger, "All component tasks finished in %s", category_slug)
