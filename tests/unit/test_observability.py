"""Unit tests for synchronisation run events."""

from __future__ import annotations

import datetime as dt

import pytest

from keysync.errors import MergeConflictError
from keysync.observability import SyncEventLogger, SyncEventType
from keysync.sync import SyncOutcome
from tests.helpers.femtologging_capture import capture_logs

_LOGGER = "keysync.observability"


@pytest.fixture
def event_logger() -> SyncEventLogger:
    """Return a fresh event logger."""
    return SyncEventLogger()


def test_run_started_is_info(event_logger: SyncEventLogger) -> None:
    """Start events carry the mode and branch."""
    with capture_logs(_LOGGER) as capture:
        event_logger.log_run_started(mode="sync-master", branch="master")
        record = capture.wait_for_count(1)[0]

    assert record.level == "INFO"
    assert SyncEventType.RUN_STARTED in record.message
    assert "mode=sync-master branch=master" in record.message


def test_run_completed_reports_counters(event_logger: SyncEventLogger) -> None:
    """Completion events include the reconciliation counters."""
    outcome = SyncOutcome(
        mode="validate-pull-request",
        branch="feature__42",
        category_slug="feature__42",
        components_synced=2,
        components_removed=1,
        warnings=["uncommitted"],
    )

    with capture_logs(_LOGGER) as capture:
        event_logger.log_run_completed(outcome, dt.timedelta(seconds=1.5))
        record = capture.wait_for_count(1)[0]

    assert SyncEventType.RUN_COMPLETED in record.message
    assert "duration_seconds=1.500" in record.message
    assert "components_synced=2" in record.message
    assert "components_removed=1" in record.message
    assert "warnings=1" in record.message


def test_run_warning_and_failure_levels(event_logger: SyncEventLogger) -> None:
    """Warnings log at WARN and failures at ERROR with the error type."""
    with capture_logs(_LOGGER) as capture:
        event_logger.log_run_warning(
            mode="sync-master", branch="master", message="uncommitted changes"
        )
        event_logger.log_run_failed(
            mode="sync-master",
            branch="master",
            error=MergeConflictError("conflict"),
            duration=dt.timedelta(seconds=2),
        )
        warning, failure = capture.wait_for_count(2)[:2]

    assert warning.level in {"WARN", "WARNING"}
    assert SyncEventType.RUN_WARNING in warning.message
    assert failure.level == "ERROR"
    assert SyncEventType.RUN_FAILED in failure.message
    assert "error_type=MergeConflictError" in failure.message
