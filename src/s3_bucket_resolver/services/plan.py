"""Dry-run planning of the S3 API calls that realize resolved descriptors."""

from __future__ import annotations

import json
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..constants import BUCKET_NAME_MAX_LENGTH, DEFAULT_REGION, GENERATED_NAME_PLACEHOLDER
from ..models import BucketDescriptor, LifecycleRuleDescriptor, PublicAccessBlock, ResolvedBucket, thaw

GENERATED_NAME_DEFAULT_PREFIX = "bucket-"


@dataclass(frozen=True)
class PlannedCall:
    """A single S3 client call with its parameters."""

    operation: str
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"operation": self.operation, "params": self.params}


def generate_bucket_name(prefix: str | None) -> str:
    """Generate a unique bucket name from a prefix."""
    prefix = prefix or GENERATED_NAME_DEFAULT_PREFIX
    return (prefix + uuid.uuid4().hex)[:BUCKET_NAME_MAX_LENGTH]


def planned_bucket_name(descriptor: BucketDescriptor) -> str:
    """Name used in a dry-run plan; provider-generated names get a placeholder."""
    if descriptor.bucket:
        return descriptor.bucket
    return f"{descriptor.bucket_prefix or ''}{GENERATED_NAME_PLACEHOLDER}"


def _tag_set(tags: dict[str, str]) -> list[dict[str, str]]:
    return [{"Key": key, "Value": tags[key]} for key in sorted(tags)]


def _public_access_block_params(block: PublicAccessBlock) -> dict[str, bool]:
    return {
        "BlockPublicAcls": block.block_public_acls,
        "BlockPublicPolicy": block.block_public_policy,
        "IgnorePublicAcls": block.ignore_public_acls,
        "RestrictPublicBuckets": block.restrict_public_buckets,
    }


def _lifecycle_filter(rule: LifecycleRuleDescriptor) -> dict[str, Any]:
    prefix = rule.prefix or ""
    if not rule.tags:
        return {"Prefix": prefix}
    if not prefix and len(rule.tags) == 1:
        return {"Tag": _tag_set(rule.tags)[0]}
    return {"And": {"Prefix": prefix, "Tags": _tag_set(rule.tags)}}


def _drop_none(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def lifecycle_rule_params(rule: LifecycleRuleDescriptor) -> dict[str, Any]:
    """Convert a lifecycle rule descriptor to the provider's rule shape."""
    params: dict[str, Any] = {"Status": "Enabled" if rule.enabled else "Disabled", "Filter": _lifecycle_filter(rule)}
    if rule.id:
        params["ID"] = rule.id
    if rule.abort_incomplete_multipart_upload_days is not None:
        params["AbortIncompleteMultipartUpload"] = {
            "DaysAfterInitiation": rule.abort_incomplete_multipart_upload_days
        }
    for expiration in rule.expiration:
        params["Expiration"] = _drop_none(
            {
                "Date": expiration.date,
                "Days": expiration.days,
                "ExpiredObjectDeleteMarker": expiration.expired_object_delete_marker,
            }
        )
    if rule.transition:
        params["Transitions"] = [
            _drop_none({"Date": t.date, "Days": t.days, "StorageClass": t.storage_class})
            for t in rule.transition
        ]
    for expiration in rule.noncurrent_version_expiration:
        params["NoncurrentVersionExpiration"] = _drop_none({"NoncurrentDays": expiration.days})
    if rule.noncurrent_version_transition:
        params["NoncurrentVersionTransitions"] = [
            _drop_none({"NoncurrentDays": t.days, "StorageClass": t.storage_class})
            for t in rule.noncurrent_version_transition
        ]
    return params


def cors_rule_params(rule: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a CORS rule to the provider's rule shape."""
    rule = thaw(rule)
    return _drop_none(
        {
            "AllowedHeaders": rule.get("allowed_headers"),
            "AllowedMethods": rule.get("allowed_methods"),
            "AllowedOrigins": rule.get("allowed_origins"),
            "ExposeHeaders": rule.get("expose_headers"),
            "MaxAgeSeconds": rule.get("max_age_seconds"),
        }
    )


def build_plan(resolved: ResolvedBucket, bucket_name: str | None = None) -> list[PlannedCall]:
    """Build the ordered S3 calls that realize the resolved descriptors.

    Args:
        resolved: Output of a resolution pass
        bucket_name: Concrete name to use for a provider-generated bucket

    Returns:
        Planned calls, empty when bucket creation was not requested
    """
    descriptor = resolved.bucket
    if descriptor is None:
        return []

    name = descriptor.bucket or bucket_name or planned_bucket_name(descriptor)
    calls = []

    create_params: dict[str, Any] = {"Bucket": name, "ACL": descriptor.acl}
    if descriptor.region and descriptor.region != DEFAULT_REGION:
        create_params["CreateBucketConfiguration"] = {"LocationConstraint": descriptor.region}
    calls.append(PlannedCall("create_bucket", create_params))

    if resolved.public_access_block is not None:
        calls.append(
            PlannedCall(
                "put_public_access_block",
                {
                    "Bucket": name,
                    "PublicAccessBlockConfiguration": _public_access_block_params(resolved.public_access_block),
                },
            )
        )

    if descriptor.tags:
        calls.append(PlannedCall("put_bucket_tagging", {"Bucket": name, "Tagging": {"TagSet": _tag_set(descriptor.tags)}}))

    for versioning in descriptor.versioning:
        calls.append(
            PlannedCall(
                "put_bucket_versioning",
                {
                    "Bucket": name,
                    "VersioningConfiguration": {
                        "Status": "Enabled" if versioning.enabled else "Suspended",
                        "MFADelete": "Enabled" if versioning.mfa_delete else "Disabled",
                    },
                },
            )
        )

    for encryption in descriptor.server_side_encryption_configuration:
        calls.append(
            PlannedCall(
                "put_bucket_encryption",
                {
                    "Bucket": name,
                    "ServerSideEncryptionConfiguration": {
                        "Rules": [
                            {
                                "ApplyServerSideEncryptionByDefault": _drop_none(
                                    {
                                        "SSEAlgorithm": encryption.sse_algorithm,
                                        "KMSMasterKeyID": encryption.kms_master_key_id,
                                    }
                                )
                            }
                        ]
                    },
                },
            )
        )

    if descriptor.lifecycle_rule:
        calls.append(
            PlannedCall(
                "put_bucket_lifecycle_configuration",
                {
                    "Bucket": name,
                    "LifecycleConfiguration": {
                        "Rules": [lifecycle_rule_params(rule) for rule in descriptor.lifecycle_rule]
                    },
                },
            )
        )

    if descriptor.cors_rule:
        calls.append(
            PlannedCall(
                "put_bucket_cors",
                {"Bucket": name, "CORSConfiguration": {"CORSRules": [cors_rule_params(r) for r in descriptor.cors_rule]}},
            )
        )

    for target in descriptor.logging:
        calls.append(
            PlannedCall(
                "put_bucket_logging",
                {
                    "Bucket": name,
                    "BucketLoggingStatus": {
                        "LoggingEnabled": {
                            "TargetBucket": target["target_bucket"],
                            "TargetPrefix": target.get("target_prefix") or "",
                        }
                    },
                },
            )
        )

    if descriptor.acceleration_status:
        calls.append(
            PlannedCall(
                "put_bucket_accelerate_configuration",
                {"Bucket": name, "AccelerateConfiguration": {"Status": descriptor.acceleration_status}},
            )
        )

    calls.append(
        PlannedCall(
            "put_bucket_request_payment",
            {"Bucket": name, "RequestPaymentConfiguration": {"Payer": descriptor.request_payer}},
        )
    )

    if resolved.policy is not None:
        calls.append(PlannedCall("put_bucket_policy", {"Bucket": name, "Policy": resolved.policy.to_json()}))

    return calls


def render_plan(calls: list[PlannedCall]) -> str:
    """Render planned calls as deterministic JSON."""
    return json.dumps([call.to_dict() for call in calls], indent=2, sort_keys=True)
