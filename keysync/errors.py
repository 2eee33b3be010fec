"""Failure conditions raised by the synchronisation flows.

``SyncFailure`` subclasses are the classified fatal outcomes of a run. Their
message is user-facing: the CLI prints it when marking the run failed and the
pull-request flow posts it verbatim as a PR comment. Transport errors from the
Weblate and GitHub clients are not part of this hierarchy and propagate
unchanged.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class SyncFailure(Exception):  # noqa: N818 - reads as the run outcome
    """Base class for fatal conditions that end a run."""

    @property
    def message(self) -> str:
        """Return the user-facing failure message."""
        return str(self)


class CategoryNotFoundError(SyncFailure):
    """Raised when the category for a branch is expected but missing."""

    def __init__(self, branch: str) -> None:
        """Initialise with the branch whose category was not found."""
        self.branch = branch
        super().__init__(f"Not found category for branch '{branch}'")


class MainComponentNotFoundError(SyncFailure):
    """Raised when no component in a category owns the VCS binding."""

    def __init__(self, category_slug: str) -> None:
        """Initialise with the category lacking an unlinked component."""
        self.category_slug = category_slug
        super().__init__(
            f"Category '{category_slug}' has no main component: every component "
            "is linked to another one, so the VCS binding cannot be resolved"
        )


class NoResourceGroupsError(SyncFailure):
    """Raised when discovery finds nothing to synchronise."""

    def __init__(self, keysets_path: str) -> None:
        """Initialise with the path or pattern that produced no groups."""
        self.keysets_path = keysets_path
        super().__init__(f"No keyset directories found in '{keysets_path}'")


class MergeConflictError(SyncFailure):
    """Raised when Weblate could not merge upstream changes."""


class UnpushedChangesError(SyncFailure):
    """Raised when Weblate holds commits that were never pushed upstream."""


class UntranslatedComponentsError(SyncFailure):
    """Raised when pull-request components contain no translations at all."""

    def __init__(self, message: str, component_names: cabc.Sequence[str]) -> None:
        """Initialise with the formatted message and offending components."""
        self.component_names = tuple(component_names)
        super().__init__(message)


class TaskTimeoutError(SyncFailure):
    """Raised when component tasks do not finish within the allowed time."""

    def __init__(self, pending: cabc.Iterable[str], timeout_s: float) -> None:
        """Initialise with the components still busy and the elapsed budget."""
        self.pending = tuple(sorted(pending))
        self.timeout_s = timeout_s
        names = ", ".join(self.pending)
        super().__init__(
            f"Weblate tasks did not finish within {timeout_s:g}s for: {names}"
        )


class ConfigError(ValueError):
    """Raised when the run configuration is missing or invalid."""

    @classmethod
    def missing(cls, env_var: str) -> ConfigError:
        """Return an error for a required environment variable."""
        return cls(f"{env_var} environment variable is required")

    @classmethod
    def invalid_mode(cls, value: str, valid: cabc.Iterable[str]) -> ConfigError:
        """Return an error for an unknown operating mode."""
        options = ", ".join(f"'{mode}'" for mode in sorted(valid))
        return cls(f"Invalid mode '{value}'. Valid options are: {options}")

    @classmethod
    def invalid_number(cls, env_var: str, value: str) -> ConfigError:
        """Return an error for a value that must be a positive number."""
        return cls(f"{env_var} must be a positive number, got: {value!r}")
