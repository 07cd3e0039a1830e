"""Models for resolved bucket configuration."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .constants import DEFAULT_ACL, DEFAULT_REQUEST_PAYER, POLICY_VERSION


def freeze(value: Any) -> Any:
    """Return a read-only deep copy: mappings become proxies, lists become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Convert a descriptor or frozen value back to plain dicts and lists."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: thaw(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    return value


def _freeze_fields(instance: Any, *names: str) -> None:
    for name in names:
        object.__setattr__(instance, name, freeze(getattr(instance, name)))


@dataclass(frozen=True)
class BucketSpec:
    """Flat bucket options."""

    bucket: str | None = None
    bucket_prefix: str | None = None
    acl: str = DEFAULT_ACL
    tags: Mapping[str, str] = field(default_factory=dict)
    force_destroy: bool = False
    acceleration_status: str | None = None
    region: str | None = None
    request_payer: str = DEFAULT_REQUEST_PAYER
    create: bool = True

    def __post_init__(self) -> None:
        _freeze_fields(self, "tags")


@dataclass(frozen=True)
class VersioningSetting:
    """Resolved versioning configuration."""

    enabled: bool
    mfa_delete: bool = False


@dataclass(frozen=True)
class EncryptionRule:
    """Resolved default server-side encryption rule."""

    sse_algorithm: str
    kms_master_key_id: str | None = None


@dataclass(frozen=True)
class Expiration:
    date: str | None = None
    days: int | None = None
    expired_object_delete_marker: bool | None = None


@dataclass(frozen=True)
class Transition:
    storage_class: str
    date: str | None = None
    days: int | None = None


@dataclass(frozen=True)
class NoncurrentVersionExpiration:
    days: int | None = None


@dataclass(frozen=True)
class NoncurrentVersionTransition:
    storage_class: str
    days: int | None = None


@dataclass(frozen=True)
class LifecycleRuleDescriptor:
    """A single lifecycle rule with its nested blocks.

    Zero-or-one blocks (``expiration``, ``noncurrent_version_expiration``) are
    tuples of length 0 or 1; repeatable blocks keep their input order.
    """

    enabled: bool
    id: str | None = None
    prefix: str | None = None
    tags: Mapping[str, str] = field(default_factory=dict)
    abort_incomplete_multipart_upload_days: int | None = None
    expiration: tuple[Expiration, ...] = ()
    transition: tuple[Transition, ...] = ()
    noncurrent_version_expiration: tuple[NoncurrentVersionExpiration, ...] = ()
    noncurrent_version_transition: tuple[NoncurrentVersionTransition, ...] = ()

    def __post_init__(self) -> None:
        _freeze_fields(self, "tags")


@dataclass(frozen=True)
class BucketDescriptor:
    """Normalized bucket with its optional configuration blocks."""

    bucket: str | None
    bucket_prefix: str | None
    acl: str
    tags: Mapping[str, str]
    force_destroy: bool
    acceleration_status: str | None
    region: str | None
    request_payer: str
    cors_rule: tuple[Mapping[str, Any], ...] = ()
    logging: tuple[Mapping[str, Any], ...] = ()
    server_side_encryption_configuration: tuple[EncryptionRule, ...] = ()
    versioning: tuple[VersioningSetting, ...] = ()
    lifecycle_rule: tuple[LifecycleRuleDescriptor, ...] = ()

    def __post_init__(self) -> None:
        _freeze_fields(self, "tags", "cors_rule", "logging")

    def arn(self, partition: str) -> str | None:
        """Return the bucket ARN, or None when the name is provider-generated."""
        if not self.bucket:
            return None
        return f"arn:{partition}:s3:::{self.bucket}"


@dataclass(frozen=True)
class PublicAccessBlock:
    """Public access guards for the bucket."""

    block_public_acls: bool = True
    block_public_policy: bool = True
    ignore_public_acls: bool = True
    restrict_public_buckets: bool = True


@dataclass(frozen=True)
class PolicyDocument:
    """Bucket access policy document."""

    statements: tuple[Mapping[str, Any], ...]
    version: str = POLICY_VERSION

    def __post_init__(self) -> None:
        _freeze_fields(self, "statements")

    def to_dict(self) -> dict[str, Any]:
        return {"Version": self.version, "Statement": thaw(self.statements)}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)


@dataclass(frozen=True)
class ResolvedBucket:
    """Output of a resolution pass.

    All three parts are None when bucket creation was not requested.
    """

    bucket: BucketDescriptor | None = None
    public_access_block: PublicAccessBlock | None = None
    policy: PolicyDocument | None = None

    @property
    def created(self) -> bool:
        return self.bucket is not None

    def to_dict(self) -> dict[str, Any]:
        """Render the descriptors as plain data, omitting absent parts."""
        result: dict[str, Any] = {}
        if self.bucket is not None:
            result["bucket"] = thaw(self.bucket)
        if self.public_access_block is not None:
            result["public_access_block"] = thaw(self.public_access_block)
        if self.policy is not None:
            result["policy"] = self.policy.to_dict()
        return result

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)
