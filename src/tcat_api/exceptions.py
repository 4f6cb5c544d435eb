"""Exception hierarchy for the TCAT data service."""

from __future__ import annotations


class TransitError(Exception):
    """Base exception for all service errors."""


class ConfigurationError(TransitError):
    """Required configuration is missing or invalid."""


class StartupError(TransitError):
    """The service could not reach a servable state at startup."""


class SourceError(TransitError):
    """A single upstream source failed to produce a result."""

    def __init__(self, message: str, *, source: str = "") -> None:
        self.source = source
        super().__init__(message)


class AuthError(SourceError):
    """Bearer token could not be fetched or refreshed."""


class NetworkError(SourceError):
    """Transport failure: connection error, timeout or non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        source: str = "",
        status_code: int | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, source=source)


class DecodeError(SourceError):
    """Payload is not a well-formed feed message or JSON document."""


class FieldError(SourceError, ValueError):
    """A single field could not be decoded.

    Also a ``ValueError`` so that raising it inside a pydantic validator
    is reported as a validation error for the offending field.
    """


class StaticTableError(SourceError):
    """The local route table could not be opened or has no header row."""
