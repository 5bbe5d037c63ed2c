"""Error types raised by termfix."""

from __future__ import annotations


class TermfixError(Exception):
    """Base class for failures that abort a suggestion cycle."""


class ConfigurationError(TermfixError):
    """Credential settings are missing, empty, or unreadable."""


class ProviderUnsupported(TermfixError):
    """The configured provider has no known completion endpoint."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"Unsupported API provider: {provider!r}")
        self.provider = provider


class NetworkError(TermfixError):
    """The completion request could not reach the provider."""


class ApiError(TermfixError):
    """The provider answered with an error status or an unusable payload."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
