"""Value objects produced by the synchronisation flows."""

from __future__ import annotations

import dataclasses


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryErrors:
    """Problems found in a component's Weblate repository after a sync.

    Each field is either ``None`` or a message suitable for a PR comment.
    The fields are computed independently, but a merge failure makes the
    other two meaningless, so callers check it first.
    """

    merge_failure_error: str | None = None
    needs_commit_error: str | None = None
    needs_push_error: str | None = None

    @property
    def is_clean(self) -> bool:
        """Return True when no condition was detected."""
        return (
            self.merge_failure_error is None
            and self.needs_commit_error is None
            and self.needs_push_error is None
        )


@dataclasses.dataclass(slots=True)
class SyncOutcome:
    """Summary of a successful run.

    Attributes
    ----------
    mode
        Operating mode that produced the outcome.
    branch
        Name of the category the run worked on.
    category_slug
        Slug of that category; empty when ``remove-branch`` found nothing.
    components_synced
        Components created or converged from discovered keysets.
    components_removed
        Components deleted because their keyset disappeared.
    warnings
        Non-fatal conditions reported during the run.

    """

    mode: str
    branch: str
    category_slug: str
    components_synced: int = 0
    components_removed: int = 0
    warnings: list[str] = dataclasses.field(default_factory=list)
