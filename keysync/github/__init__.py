"""GitHub client used to report pull-request validation failures."""

from __future__ import annotations

from .client import GitHubCommentClient, GitHubConfig, PullRequestCommenter
from .errors import GitHubAPIError, GitHubConfigError

__all__ = [
    "GitHubAPIError",
    "GitHubCommentClient",
    "GitHubConfig",
    "GitHubConfigError",
    "PullRequestCommenter",
]
