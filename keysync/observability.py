"""Structured run events for synchronisation modes.

Every run emits one ``sync.run.started`` event and then exactly one of
``sync.run.completed`` or ``sync.run.failed``. Non-fatal conditions such as
uncommitted Weblate changes emit ``sync.run.warning`` in between.

Usage
-----
>>> event_logger = SyncEventLogger()
>>> event_logger.log_run_started(mode="sync-master", branch="master")

"""

from __future__ import annotations

import enum
import typing as typ

from keysync.logging import get_logger, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    import datetime as dt

    from keysync.sync.models import SyncOutcome

logger = get_logger(__name__)


class SyncEventType(enum.StrEnum):
    """Structured log event types for synchronisation runs."""

    RUN_STARTED = "sync.run.started"
    RUN_COMPLETED = "sync.run.completed"
    RUN_FAILED = "sync.run.failed"
    RUN_WARNING = "sync.run.warning"


class SyncEventLogger:
    """Emit structured synchronisation events via femtologging."""

    def log_run_started(self, *, mode: str, branch: str) -> None:
        """Log the start of a run for ``branch`` in ``mode``."""
        log_info(
            logger,
            "[%s] mode=%s branch=%s",
            SyncEventType.RUN_STARTED,
            mode,
            branch,
        )

    def log_run_completed(self, outcome: SyncOutcome, duration: dt.timedelta) -> None:
        """Log a successful run with its reconciliation counters.

        Parameters
        ----------
        outcome
            Result returned by the mode handler.
        duration
            Wall-clock time of the run.

        """
        log_info(
            logger,
            "[%s] mode=%s branch=%s category=%s duration_seconds=%.3f "
            "components_synced=%d components_removed=%d warnings=%d",
            SyncEventType.RUN_COMPLETED,
            outcome.mode,
            outcome.branch,
            outcome.category_slug,
            duration.total_seconds(),
            outcome.components_synced,
            outcome.components_removed,
            len(outcome.warnings),
        )

    def log_run_warning(self, *, mode: str, branch: str, message: str) -> None:
        """Log a non-fatal condition that does not fail the run."""
        log_warning(
            logger,
            "[%s] mode=%s branch=%s message=%s",
            SyncEventType.RUN_WARNING,
            mode,
            branch,
            message,
        )

    def log_run_failed(
        self,
        *,
        mode: str,
        branch: str,
        error: BaseException,
        duration: dt.timedelta,
    ) -> None:
        """Log a failed run with the error type and message."""
        log_error(
            logger,
            "[%s] mode=%s branch=%s duration_seconds=%.3f "
            "error_type=%s error_message=%s",
            SyncEventType.RUN_FAILED,
            mode,
            branch,
            duration.total_seconds(),
            type(error).__name__,
            str(error),
            exc_info=error,
        )
