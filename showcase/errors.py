from __future__ import annotations


class ShowcaseError(Exception):
    """Base class for errors raised by showcase."""


class ConfigError(ShowcaseError):
    pass


class UpstreamFetchError(ShowcaseError):
    """A GitHub API call failed: non-2xx response or transport error.

    ``status`` is the HTTP status code when a response was received, ``None``
    for timeouts, connection failures and malformed fields.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class NotFoundError(ShowcaseError):
    """The requested repository or resource does not exist."""
