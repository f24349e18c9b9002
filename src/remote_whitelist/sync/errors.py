"""Error types raised by the whitelist sync core."""

from __future__ import annotations


class WhitelistError(Exception):
    """Base class for whitelist sync errors."""


class ConfigurationError(WhitelistError):
    """Raised when the target container or source URL is missing."""


class FetchError(WhitelistError):
    """Raised when the remote list could not be downloaded.

    ``code`` carries the HTTP status, or 0 for transport-level failures.
    """

    def __init__(self, url: str, code: int, message: str) -> None:
        super().__init__(f"{code} - {message}")
        self.url = url
        self.code = code
        self.message = message


class NotCoordinatorError(WhitelistError):
    """Raised when a non-coordinator attempts to write the replicated value."""
