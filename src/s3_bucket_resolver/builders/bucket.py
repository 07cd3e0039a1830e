"""Builder for bucket descriptors."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..constants import SSE_ALGORITHM_DEFAULT, SSE_ALGORITHM_KMS
from ..exceptions import AmbiguousRepresentationError, ConfigurationError
from ..models import (
    BucketDescriptor,
    BucketSpec,
    EncryptionRule,
    PublicAccessBlock,
    VersioningSetting,
)

logger = logging.getLogger(__name__)

ACCELERATION_STATUSES = frozenset({"Enabled", "Suspended"})
REQUEST_PAYERS = frozenset({"BucketOwner", "Requester"})

CORS_KEYS = frozenset(
    {"allowed_headers", "allowed_methods", "allowed_origins", "expose_headers", "max_age_seconds"}
)
LOGGING_KEYS = frozenset({"target_bucket", "target_prefix"})
ENCRYPTION_KEYS = frozenset({"sse_algorithm", "kms_master_key_id"})
VERSIONING_KEYS = frozenset({"enabled", "mfa_delete"})
PUBLIC_ACCESS_BLOCK_KEYS = (
    "block_public_acls",
    "block_public_policy",
    "ignore_public_acls",
    "restrict_public_buckets",
)


def coerce_bool(value: Any) -> bool | None:
    """Interpret a value as a boolean.

    Accepts real booleans and the strings ``"true"``/``"false"`` (any case).

    Returns:
        The boolean, or None when the value has no boolean interpretation
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return None


def require_bool(value: Any, field: str, default: bool | None = None) -> bool:
    """Coerce a field to a boolean, falling back to ``default`` when unset."""
    if value is None:
        if default is None:
            raise ConfigurationError("is required", field=field)
        return default
    result = coerce_bool(value)
    if result is None:
        raise ConfigurationError(f"expected a boolean, got {value!r}", field=field)
    return result


def check_keys(block: Mapping[str, Any], allowed: frozenset[str], field: str) -> None:
    """Reject keys that the block does not define."""
    unknown = sorted(set(block) - allowed)
    if unknown:
        raise ConfigurationError(f"unsupported keys {unknown}", field=field)


def optional_block(value: Any, field: str) -> tuple[dict[str, Any], ...]:
    """Encode an optional mapping as a zero-or-one tuple."""
    if value is None:
        return ()
    if not isinstance(value, Mapping):
        raise ConfigurationError("expected a mapping", field=field)
    if not value:
        return ()
    return (dict(value),)


def resolve_encryption_default(encryption: Mapping[str, Any] | None) -> EncryptionRule | None:
    """Resolve the default server-side encryption rule.

    The algorithm is the explicit ``sse_algorithm`` when given, otherwise
    ``aws:kms`` when a ``kms_master_key_id`` is present, otherwise ``AES256``.

    Args:
        encryption: Encryption options, possibly empty

    Returns:
        The encryption rule, or None when no options were given
    """
    if not encryption:
        return None
    if not isinstance(encryption, Mapping):
        raise ConfigurationError("expected a mapping", field="server_side_encryption_configuration")
    check_keys(encryption, ENCRYPTION_KEYS, "server_side_encryption_configuration")

    kms_master_key_id = encryption.get("kms_master_key_id") or None
    sse_algorithm = encryption.get("sse_algorithm") or None
    if sse_algorithm is None:
        sse_algorithm = SSE_ALGORITHM_KMS if kms_master_key_id else SSE_ALGORITHM_DEFAULT

    return EncryptionRule(sse_algorithm=sse_algorithm, kms_master_key_id=kms_master_key_id)


def resolve_versioning(
    versioning: Any = None,
    structured: Mapping[str, Any] | None = None,
    *,
    strict: bool = False,
) -> VersioningSetting | None:
    """Resolve versioning from its boolean or structured form.

    The boolean form is tried first, then a non-empty mapping with
    ``enabled``/``mfa_delete`` keys. Anything else is absent; an empty mapping
    never turns into ``enabled=False``.

    Args:
        versioning: A boolean, a boolean string, or a structured mapping
        structured: A structured mapping supplied separately
        strict: Reject versioning supplied in two non-empty forms

    Returns:
        The versioning setting, or None when absent

    Raises:
        AmbiguousRepresentationError: If both forms are given and ``strict`` is set
        ConfigurationError: If a value has neither form
    """
    if structured is not None and not isinstance(structured, Mapping):
        raise ConfigurationError("expected a mapping", field="versioning_configuration")
    if isinstance(versioning, Mapping):
        if versioning and structured:
            if strict:
                raise AmbiguousRepresentationError("supplied as two structured mappings", field="versioning")
            logger.warning("Versioning supplied as two structured mappings; using versioning")
        if versioning:
            structured = versioning
        versioning = None

    boolean = coerce_bool(versioning)
    if versioning is not None and boolean is None:
        raise ConfigurationError(f"expected a boolean or a mapping, got {versioning!r}", field="versioning")

    if boolean is not None:
        if structured:
            if strict:
                raise AmbiguousRepresentationError(
                    "supplied both as a boolean and as a structured mapping", field="versioning"
                )
            logger.warning("Versioning supplied in both forms; using the boolean form")
        return VersioningSetting(enabled=boolean, mfa_delete=False)

    if structured:
        check_keys(structured, VERSIONING_KEYS, "versioning")
        return VersioningSetting(
            enabled=require_bool(structured.get("enabled"), "versioning.enabled", default=False),
            mfa_delete=require_bool(structured.get("mfa_delete"), "versioning.mfa_delete", default=False),
        )

    return None


def resolve_public_access_block(options: Mapping[str, Any] | None = None) -> PublicAccessBlock:
    """Resolve the public access block; every guard defaults to on."""
    options = options or {}
    return PublicAccessBlock(
        **{key: require_bool(options.get(key), key, default=True) for key in PUBLIC_ACCESS_BLOCK_KEYS}
    )


def _validate_spec(spec: BucketSpec) -> None:
    if spec.bucket and spec.bucket_prefix:
        raise ConfigurationError("bucket and bucket_prefix are mutually exclusive", field="bucket")
    if spec.acceleration_status is not None and spec.acceleration_status not in ACCELERATION_STATUSES:
        raise ConfigurationError(
            f"must be one of {sorted(ACCELERATION_STATUSES)}", field="acceleration_status"
        )
    if spec.request_payer not in REQUEST_PAYERS:
        raise ConfigurationError(f"must be one of {sorted(REQUEST_PAYERS)}", field="request_payer")


def resolve_bucket(
    spec: BucketSpec,
    cors: Mapping[str, Any] | None = None,
    logging_target: Mapping[str, Any] | None = None,
    encryption: Mapping[str, Any] | None = None,
    versioning: Any = None,
    *,
    versioning_config: Mapping[str, Any] | None = None,
    strict: bool = False,
) -> BucketDescriptor | None:
    """Create a bucket descriptor from flat options and optional blocks.

    Args:
        spec: Flat bucket options
        cors: CORS rule options
        logging_target: Access logging options
        encryption: Default encryption options
        versioning: Versioning as a boolean or a mapping
        versioning_config: Versioning as a separate structured mapping
        strict: Reject ambiguous versioning input

    Returns:
        The bucket descriptor, or None when ``spec.create`` is false
    """
    if not spec.create:
        return None

    _validate_spec(spec)

    cors_rule = optional_block(cors, "cors_rule")
    for rule in cors_rule:
        check_keys(rule, CORS_KEYS, "cors_rule")
        for required in ("allowed_methods", "allowed_origins"):
            if not rule.get(required):
                raise ConfigurationError("is required", field=f"cors_rule.{required}")

    logging_block = optional_block(logging_target, "logging")
    for target in logging_block:
        check_keys(target, LOGGING_KEYS, "logging")
        if not target.get("target_bucket"):
            raise ConfigurationError("is required", field="logging.target_bucket")

    encryption_rule = resolve_encryption_default(encryption)
    versioning_setting = resolve_versioning(versioning, versioning_config, strict=strict)

    return BucketDescriptor(
        bucket=spec.bucket or None,
        bucket_prefix=spec.bucket_prefix or None,
        acl=spec.acl,
        tags=dict(spec.tags),
        force_destroy=spec.force_destroy,
        acceleration_status=spec.acceleration_status,
        region=spec.region,
        request_payer=spec.request_payer,
        cors_rule=cors_rule,
        logging=logging_block,
        server_side_encryption_configuration=(encryption_rule,) if encryption_rule else (),
        versioning=(versioning_setting,) if versioning_setting else (),
    )
