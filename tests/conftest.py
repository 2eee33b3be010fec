"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import pytest

from keysync.config import ActionMode, SyncConfig
from keysync.discovery import scanner
from tests.helpers.fake_weblate import FakeCommenter, FakeWeblate

if typ.TYPE_CHECKING:
    from pathlib import Path

GIT_REPO = "git@github.com:acme/app.git"
KEYSETS_PATH = "src/i18n-keysets"


class MakeKeysets(typ.Protocol):
    """Callable fixture creating keyset directories in listing order."""

    def __call__(self, *names: str) -> Path: ...


class MakeConfig(typ.Protocol):
    """Callable fixture building a run configuration."""

    def __call__(
        self, mode: ActionMode, **overrides: typ.Any  # noqa: ANN401
    ) -> SyncConfig: ...


@pytest.fixture
def fake_weblate() -> FakeWeblate:
    """Return an empty in-memory Weblate."""
    return FakeWeblate()


@pytest.fixture
def commenter() -> FakeCommenter:
    """Return a recording pull-request commenter."""
    return FakeCommenter()


@pytest.fixture
def make_keysets(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> MakeKeysets:
    """Create keyset directories under ``tmp_path``.

    Directory listings are pinned to creation order so the first name given
    owns the VCS binding.
    """
    order: list[str] = []

    def _listing(directory: Path) -> list[str]:
        return [name for name in order if (directory / name).is_dir()]

    monkeypatch.setattr(scanner, "_list_subdirectories", _listing)

    def _make(*names: str) -> Path:
        for name in names:
            keyset = tmp_path / KEYSETS_PATH / name
            keyset.mkdir(parents=True, exist_ok=True)
            (keyset / "en.json").write_text("{}", encoding="utf-8")
            order.append(name)
        (tmp_path / KEYSETS_PATH).mkdir(parents=True, exist_ok=True)
        return tmp_path

    return _make


@pytest.fixture
def make_config() -> MakeConfig:
    """Build configurations with fast task polling."""

    def _make(mode: ActionMode, **overrides: typ.Any) -> SyncConfig:  # noqa: ANN401
        values: dict[str, typ.Any] = {
            "mode": mode,
            "git_repo": GIT_REPO,
            "branch_name": "feature" if mode.is_pull_request else "master",
            "keysets_path": KEYSETS_PATH,
            "task_timeout_s": 1.0,
            "task_poll_interval_s": 0.001,
        }
        if mode.is_pull_request:
            values["pull_request_number"] = 42
            values["pull_request_author"] = "octocat"
        values.update(overrides)
        return SyncConfig(**values)

    return _make
