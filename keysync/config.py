"""Run configuration for the synchronisation modes.

Usage
-----
Build the configuration from the CI environment:

>>> import os
>>> os.environ.update(
...     KEYSYNC_MODE="sync-master",
...     KEYSYNC_GIT_REPO="git@github.com:octo/reef.git",
...     KEYSYNC_BRANCH="master",
...     KEYSYNC_KEYSETS_PATH="src/i18n-keysets",
... )
>>> config = SyncConfig.from_env()
>>> config.mode
<ActionMode.SYNC_MASTER: 'sync-master'>

"""

from __future__ import annotations

import dataclasses as dc
import enum
import os

from keysync.errors import ConfigError

_DEFAULT_MASTER_BRANCH = "master"
_DEFAULT_MAIN_LANGUAGE = "en"
_DEFAULT_ANCHOR_SEGMENT = "projects"
_DEFAULT_TASK_TIMEOUT_S = 600.0
_DEFAULT_TASK_POLL_INTERVAL_S = 2.0


class ActionMode(enum.StrEnum):
    """Operating modes selected by ``KEYSYNC_MODE``."""

    SYNC_MASTER = "sync-master"
    VALIDATE_PULL_REQUEST = "validate-pull-request"
    REMOVE_BRANCH = "remove-branch"

    @property
    def is_pull_request(self) -> bool:
        """Return True for modes operating on a pull-request mirror."""
        return self is not ActionMode.SYNC_MASTER


def _required(env_var: str) -> str:
    value = os.environ.get(env_var, "").strip()
    if not value:
        raise ConfigError.missing(env_var)
    return value


def _optional(env_var: str) -> str | None:
    return os.environ.get(env_var, "").strip() or None


def _positive_float(env_var: str, default: float) -> float:
    raw = os.environ.get(env_var, "")
    if not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError.invalid_number(env_var, raw) from exc
    if value <= 0:
        raise ConfigError.invalid_number(env_var, raw)
    return value


def _pull_request_number(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        number = int(raw)
    except ValueError as exc:
        raise ConfigError.invalid_number("KEYSYNC_PULL_REQUEST_NUMBER", raw) from exc
    if number < 1:
        raise ConfigError.invalid_number("KEYSYNC_PULL_REQUEST_NUMBER", raw)
    return number


def parse_mode(value: str) -> ActionMode:
    """Parse a mode name, raising :class:`ConfigError` for unknown values."""
    try:
        return ActionMode(value.strip().lower())
    except ValueError as exc:
        raise ConfigError.invalid_mode(value, (m.value for m in ActionMode)) from exc


@dc.dataclass(frozen=True, slots=True)
class SyncConfig:
    """Settings shared by the three operating modes.

    Attributes
    ----------
    mode
        Which flow to run.
    git_repo
        Repository URL Weblate clones from and pushes to.
    branch_name
        Branch being synchronised. For pull-request modes this is the PR head
        branch.
    keysets_path
        Directory holding keyset directories, or a glob matching several.
    main_language
        Source language code; ``<keyset>/<main_language>.json`` is the
        template file of each component.
    master_branch
        Trunk branch whose category seeds new pull-request mirrors.
    pull_request_number
        Pull request being validated or removed.
    pull_request_author
        Login of the pull request author, recorded on PR components.
    anchor_segment
        Path segment whose successor prefixes component names discovered
        through a glob.
    task_timeout_s
        Upper bound on waiting for Weblate background tasks.
    task_poll_interval_s
        Delay between task status polls.

    """

    mode: ActionMode
    git_repo: str
    branch_name: str
    keysets_path: str
    main_language: str = _DEFAULT_MAIN_LANGUAGE
    master_branch: str = _DEFAULT_MASTER_BRANCH
    pull_request_number: int | None = None
    pull_request_author: str | None = None
    anchor_segment: str = _DEFAULT_ANCHOR_SEGMENT
    task_timeout_s: float = _DEFAULT_TASK_TIMEOUT_S
    task_poll_interval_s: float = _DEFAULT_TASK_POLL_INTERVAL_S

    def __post_init__(self) -> None:
        """Check the fields each mode depends on."""
        if self.mode.is_pull_request and self.pull_request_number is None:
            raise ConfigError.missing("KEYSYNC_PULL_REQUEST_NUMBER")
        if (
            self.mode is ActionMode.VALIDATE_PULL_REQUEST
            and not self.pull_request_author
        ):
            raise ConfigError.missing("KEYSYNC_PULL_REQUEST_AUTHOR")

    @property
    def pull_request_branch(self) -> str:
        """Return the category name of the pull-request mirror."""
        return f"{self.branch_name}__{self.pull_request_number}"

    @property
    def name_suffix(self) -> str:
        """Return the suffix appended to component names in this mode."""
        if self.mode.is_pull_request:
            return f"__{self.pull_request_number}"
        return ""

    @classmethod
    def from_env(cls, *, mode: str | None = None) -> SyncConfig:
        """Create configuration from ``KEYSYNC_*`` environment variables.

        Parameters
        ----------
        mode
            Optional mode overriding ``KEYSYNC_MODE``, e.g. from the CLI.

        Raises
        ------
        ConfigError
            If a required variable is missing or a value is malformed.

        """
        raw_mode = mode or _required("KEYSYNC_MODE")
        return cls(
            mode=parse_mode(raw_mode),
            git_repo=_required("KEYSYNC_GIT_REPO"),
            branch_name=_required("KEYSYNC_BRANCH"),
            keysets_path=_required("KEYSYNC_KEYSETS_PATH"),
            main_language=_optional("KEYSYNC_MAIN_LANGUAGE") or _DEFAULT_MAIN_LANGUAGE,
            master_branch=_optional("KEYSYNC_MASTER_BRANCH") or _DEFAULT_MASTER_BRANCH,
            pull_request_number=_pull_request_number(
                _optional("KEYSYNC_PULL_REQUEST_NUMBER")
            ),
            pull_request_author=_optional("KEYSYNC_PULL_REQUEST_AUTHOR"),
            anchor_segment=(
                _optional("KEYSYNC_PROJECT_ANCHOR") or _DEFAULT_ANCHOR_SEGMENT
            ),
            task_timeout_s=_positive_float(
                "KEYSYNC_TASK_TIMEOUT_S", _DEFAULT_TASK_TIMEOUT_S
            ),
            task_poll_interval_s=_positive_float(
                "KEYSYNC_TASK_POLL_INTERVAL_S", _DEFAULT_TASK_POLL_INTERVAL_S
            ),
        )
