"""Unit tests for femtologging integration helpers.

Run with:
    pytest tests/unit/test_logging.py
"""

from __future__ import annotations

import pytest

from keysync.logging import (
    configure_logging,
    log_debug,
    log_error,
    log_exception,
    log_info,
    log_warning,
    normalize_log_level,
)


class _FakeLogger:
    """Collects log calls for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, object | None, bool]] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        self.calls.append((level, message, exc_info, stack_info))
        return message


@pytest.mark.parametrize(
    ("raw", "expected", "invalid"),
    [
        ("debug", "DEBUG", False),
        (" Warn ", "WARN", False),
        (None, "INFO", True),
        ("", "INFO", True),
        ("chatty", "INFO", True),
    ],
)
def test_normalize_log_level(
    raw: str | None,
    expected: str,
    invalid: bool,  # noqa: FBT001
) -> None:
    """Levels are upper-cased and unknown values fall back to INFO."""
    assert normalize_log_level(raw) == (expected, invalid)


def test_percent_formatting_is_applied_before_logging() -> None:
    """Arguments are interpolated into the template."""
    logger = _FakeLogger()

    log_info(logger, "synced %d component(s) in %s", 3, "master")
    log_debug(logger, "literal %s without args")

    assert logger.calls == [
        ("INFO", "synced 3 component(s) in master", None, False),
        ("DEBUG", "literal %s without args", None, False),
    ]


def test_log_warning_forwards_exc_info() -> None:
    """log_warning attaches the exception to the record."""
    logger = _FakeLogger()
    exc = PermissionError("denied")

    log_warning(logger, "Failed to read %s", "keysets", exc_info=exc)

    assert logger.calls == [("WARNING", "Failed to read keysets", exc, False)]


def test_log_error_and_exception_use_error_level() -> None:
    """log_error and log_exception both emit ERROR."""
    logger = _FakeLogger()
    exc = RuntimeError("boom")

    log_error(logger, "run failed: %s", "merge")
    log_exception(logger, "comment failed", exc)

    assert logger.calls == [
        ("ERROR", "run failed: merge", None, False),
        ("ERROR", "comment failed", exc, False),
    ]


def test_configure_logging_passes_level_and_force(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """configure_logging hands the normalised level to basicConfig."""
    captured: dict[str, object] = {}

    def fake_basic_config(**kwargs: object) -> None:
        captured.update(kwargs)

    monkeypatch.setattr("keysync.logging.basicConfig", fake_basic_config)

    assert configure_logging("error", force=True) == ("ERROR", False)
    assert captured == {"level": "ERROR", "force": True}
