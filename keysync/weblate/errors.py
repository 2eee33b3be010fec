"""Weblate API errors."""

from __future__ import annotations


class WeblateAPIError(RuntimeError):
    """Raised when Weblate returns an error response or is unreachable."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, method: str, url: str, status_code: int) -> WeblateAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(
            f"Weblate API {method} {url} failed with HTTP {status_code}",
            status_code=status_code,
        )

    @classmethod
    def network_error(cls, method: str, url: str, detail: str) -> WeblateAPIError:
        """Return an error for DNS, connection or timeout failures."""
        return cls(f"Weblate API {method} {url} failed: {detail}")


class WeblateResponseShapeError(RuntimeError):
    """Raised when a Weblate payload is missing expected fields."""

    @classmethod
    def missing(cls, field: str) -> WeblateResponseShapeError:
        """Return an error for a missing or mistyped response field."""
        return cls(f"Weblate response missing expected field: {field}")


class WeblateConfigError(RuntimeError):
    """Raised when the Weblate client configuration is invalid."""

    @classmethod
    def missing(cls, env_var: str) -> WeblateConfigError:
        """Return an error for a required environment variable."""
        return cls(f"{env_var} is required for the Weblate API")

    @classmethod
    def empty_token(cls) -> WeblateConfigError:
        """Return an error when the provided token is empty."""
        return cls("Weblate token must be non-empty")
