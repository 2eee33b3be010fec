"""Configuration for the Weblate REST client."""

from __future__ import annotations

import dataclasses
import os

from .errors import WeblateConfigError

_DEFAULT_FILE_FORMAT = "json"
_DEFAULT_TIMEOUT_S = 60.0


def _required(env_var: str) -> str:
    value = os.environ.get(env_var, "").strip()
    if not value:
        raise WeblateConfigError.missing(env_var)
    return value


@dataclasses.dataclass(frozen=True, slots=True)
class WeblateConfig:
    """Connection settings for one Weblate project.

    Attributes
    ----------
    server_url
        Base URL of the Weblate instance, without the ``/api/`` suffix.
    token
        API token sent as ``Authorization: Token <token>``.
    project
        Slug of the Weblate project that holds the branch categories.
    file_format
        Weblate file format identifier for created components.
    main_language
        Source language code of created components.
    timeout_s
        Per-request timeout in seconds.

    """

    server_url: str
    token: str
    project: str
    file_format: str = _DEFAULT_FILE_FORMAT
    main_language: str = "en"
    timeout_s: float = _DEFAULT_TIMEOUT_S
    user_agent: str = "keysync/0.1"

    @property
    def api_root(self) -> str:
        """Return the absolute URL of the REST API root."""
        return f"{self.server_url.rstrip('/')}/api/"

    @classmethod
    def from_env(cls, *, main_language: str = "en") -> WeblateConfig:
        """Build configuration from ``KEYSYNC_WEBLATE_*`` variables.

        Reads ``KEYSYNC_WEBLATE_URL``, ``KEYSYNC_WEBLATE_TOKEN`` and
        ``KEYSYNC_WEBLATE_PROJECT`` (all required) plus the optional
        ``KEYSYNC_FILE_FORMAT``.
        """
        return cls(
            server_url=_required("KEYSYNC_WEBLATE_URL"),
            token=_required("KEYSYNC_WEBLATE_TOKEN"),
            project=_required("KEYSYNC_WEBLATE_PROJECT"),
            file_format=os.environ.get("KEYSYNC_FILE_FORMAT", "").strip()
            or _DEFAULT_FILE_FORMAT,
            main_language=main_language,
        )
