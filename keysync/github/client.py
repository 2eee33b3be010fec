"""GitHub REST client for pull-request comments."""

from __future__ import annotations

import dataclasses
import os
import typing as typ

import httpx

from keysync.logging import get_logger, log_info

from .errors import GitHubAPIError, GitHubConfigError

logger = get_logger(__name__)

_HTTP_ERROR_STATUS_THRESHOLD = 400
_DEFAULT_API_URL = "https://api.github.com"


class PullRequestCommenter(typ.Protocol):
    """Interface for posting feedback on a pull request."""

    async def create_comment(self, pull_request_number: int, body: str) -> None:
        """Post ``body`` as a comment on the pull request."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubConfig:
    """Configuration for the GitHub REST API client."""

    token: str
    owner: str
    repo: str
    api_url: str = _DEFAULT_API_URL
    timeout_s: float = 20.0
    user_agent: str = "keysync/0.1"

    @classmethod
    def from_env(cls) -> GitHubConfig:
        """Build configuration from the GitHub Actions environment.

        Uses ``KEYSYNC_GITHUB_TOKEN`` (falling back to ``GITHUB_TOKEN``),
        ``GITHUB_REPOSITORY`` and the optional ``GITHUB_API_URL``.
        """
        token = (
            os.environ.get("KEYSYNC_GITHUB_TOKEN", "").strip()
            or os.environ.get("GITHUB_TOKEN", "").strip()
        )
        if not token:
            raise GitHubConfigError.missing_token()

        repository = os.environ.get("GITHUB_REPOSITORY", "").strip()
        owner, _, repo = repository.partition("/")
        if not owner or not repo or "/" in repo:
            raise GitHubConfigError.invalid_repository(repository)

        api_url = os.environ.get("GITHUB_API_URL", "").strip() or _DEFAULT_API_URL
        return cls(token=token, owner=owner, repo=repo, api_url=api_url)


class GitHubCommentClient:
    """REST implementation of :class:`PullRequestCommenter`."""

    def __init__(
        self,
        config: GitHubConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        if not config.token.strip():
            raise GitHubConfigError.empty_token()

        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            headers={
                "Authorization": f"Bearer {config.token}",
                "User-Agent": config.user_agent,
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def create_comment(self, pull_request_number: int, body: str) -> None:
        """Post ``body`` as a comment on the pull request."""
        url = (
            f"{self._config.api_url.rstrip('/')}/repos/{self._config.owner}/"
            f"{self._config.repo}/issues/{pull_request_number}/comments"
        )
        try:
            response = await self._client.post(url, json={"body": body})
        except httpx.RequestError as exc:
            raise GitHubAPIError.network_error(str(exc)) from exc
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GitHubAPIError.http_error(response.status_code)
        log_info(logger, "Commented on pull request #%d", pull_request_number)
