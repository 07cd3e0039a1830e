"""Resolve declarative S3 bucket configuration into provider descriptors."""

from .exceptions import AmbiguousRepresentationError, ConfigurationError, ResolverError
from .models import ResolvedBucket
from .resolver import ConfigResolver

__version__ = "0.1.0"

__all__ = [
    "ConfigResolver",
    "ResolvedBucket",
    "ResolverError",
    "ConfigurationError",
    "AmbiguousRepresentationError",
]
