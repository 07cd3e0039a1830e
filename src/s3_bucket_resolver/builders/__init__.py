"""Builders for resolved bucket descriptors."""

from .bucket import (
    resolve_bucket,
    resolve_encryption_default,
    resolve_public_access_block,
    resolve_versioning,
)
from .lifecycle import resolve_lifecycle_rules
from .policy import GrantCategory, resolve_policy

__all__ = [
    "resolve_bucket",
    "resolve_encryption_default",
    "resolve_versioning",
    "resolve_public_access_block",
    "resolve_lifecycle_rules",
    "resolve_policy",
    "GrantCategory",
]
