"""GitHub API errors."""

from __future__ import annotations


class GitHubAPIError(RuntimeError):
    """Raised when GitHub returns an error response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int) -> GitHubAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(f"GitHub REST HTTP {status_code}", status_code=status_code)

    @classmethod
    def network_error(cls, detail: str) -> GitHubAPIError:
        """Return an error for connection failures and timeouts."""
        return cls(f"GitHub REST request failed: {detail}")


class GitHubConfigError(RuntimeError):
    """Raised when GitHub client configuration is invalid."""

    @classmethod
    def missing_token(cls) -> GitHubConfigError:
        """Return an error when no GitHub token is configured."""
        return cls("KEYSYNC_GITHUB_TOKEN (or GITHUB_TOKEN) is required for GitHub API")

    @classmethod
    def invalid_repository(cls, value: str) -> GitHubConfigError:
        """Return an error when GITHUB_REPOSITORY is not ``owner/name``."""
        return cls(f"GITHUB_REPOSITORY must be 'owner/name', got {value!r}")

    @classmethod
    def empty_token(cls) -> GitHubConfigError:
        """Return an error when the provided token is empty."""
        return cls("GitHub token must be non-empty")
