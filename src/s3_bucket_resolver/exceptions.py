"""Exceptions raised while resolving bucket configuration."""

from __future__ import annotations


class ResolverError(Exception):
    """Base class for resolver failures."""


class ConfigurationError(ResolverError):
    """A required field is missing or mutually exclusive options are both set."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        if field:
            message = f"{field}: {message}"
        super().__init__(message)


class AmbiguousRepresentationError(ConfigurationError):
    """Conflicting representations were supplied for the same setting."""
