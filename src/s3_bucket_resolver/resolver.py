"""Configuration resolver for S3 buckets."""

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any, Callable, TypeVar

from . import metrics
from .builders.bucket import (
    PUBLIC_ACCESS_BLOCK_KEYS,
    require_bool,
    resolve_bucket,
    resolve_public_access_block,
)
from .builders.lifecycle import resolve_lifecycle_rules
from .builders.policy import resolve_policy
from .constants import (
    DEFAULT_ACL,
    DEFAULT_CROSS_ACCOUNT_BUCKET_ACTIONS,
    DEFAULT_CROSS_ACCOUNT_FORCED_ACLS,
    DEFAULT_CROSS_ACCOUNT_OBJECT_ACTIONS,
    DEFAULT_CROSS_ACCOUNT_OBJECT_ACTIONS_WITH_FORCED_ACL,
    DEFAULT_PARTITION,
    DEFAULT_REQUEST_PAYER,
    OP_RESOLVE,
    OP_RESOLVE_BUCKET,
    OP_RESOLVE_LIFECYCLE,
    OP_RESOLVE_POLICY,
    REASON_FAILED,
    REASON_INVALID,
    REASON_RESOLVED,
    REASON_SKIPPED,
)
from .exceptions import ConfigurationError
from .logging import log_resolution_event
from .models import BucketSpec, ResolvedBucket
from .tracing import add_span_attribute, trace_span
from .utils.errors import sanitize_exception

logger = logging.getLogger(__name__)

T = TypeVar("T")

DOCUMENT_KEYS = frozenset(
    {
        "create_bucket",
        "bucket",
        "bucket_prefix",
        "acl",
        "tags",
        "force_destroy",
        "acceleration_status",
        "region",
        "request_payer",
        "partition",
        "cors_rule",
        "logging",
        "server_side_encryption_configuration",
        "versioning",
        "versioning_configuration",
        "lifecycle_rule",
        "policy",
        "cross_account_identifiers",
        "cross_account_bucket_actions",
        "cross_account_object_actions",
        "cross_account_object_actions_with_forced_acl",
        "cross_account_forced_acls",
        *PUBLIC_ACCESS_BLOCK_KEYS,
    }
)


def _string_list(document: Mapping[str, Any], key: str, default: Sequence[str] = ()) -> list[str]:
    value = document.get(key)
    if value is None:
        return list(default)
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise ConfigurationError("expected a list of strings", field=key)
    if not all(isinstance(item, str) for item in value):
        raise ConfigurationError("expected a list of strings", field=key)
    return list(value)


def bucket_spec_from_document(document: Mapping[str, Any]) -> BucketSpec:
    """Create the flat bucket options from a configuration document."""
    tags = document.get("tags") or {}
    if not isinstance(tags, Mapping):
        raise ConfigurationError("expected a mapping", field="tags")

    return BucketSpec(
        bucket=document.get("bucket"),
        bucket_prefix=document.get("bucket_prefix"),
        acl=document.get("acl") or DEFAULT_ACL,
        tags={str(k): str(v) for k, v in tags.items()},
        force_destroy=require_bool(document.get("force_destroy"), "force_destroy", default=False),
        acceleration_status=document.get("acceleration_status"),
        region=document.get("region"),
        request_payer=document.get("request_payer") or DEFAULT_REQUEST_PAYER,
        create=require_bool(document.get("create_bucket"), "create_bucket", default=True),
    )


class ConfigResolver:
    """Resolve bucket configuration documents into descriptors.

    Holds only immutable options, so one instance can be shared freely.
    """

    def __init__(self, strict_versioning: bool = False, partition: str = DEFAULT_PARTITION):
        """Initialize the resolver.

        Args:
            strict_versioning: Reject versioning supplied in both forms
            partition: Default partition for ARNs when the document sets none
        """
        self.strict_versioning = strict_versioning
        self.partition = partition

    def _measured(self, operation: str, bucket: str | None, fn: Callable[[], T]) -> T:
        """Run a resolution step with metrics, tracing and error logging.

        A failure is counted and logged once, by the innermost step it
        escapes from; enclosing steps re-raise it untouched.
        """
        start_time = time.time()
        with trace_span(operation, operation=operation):
            try:
                result = fn()
            except Exception as e:
                if getattr(e, "resolve_operation", None) is None:
                    e.resolve_operation = operation
                    invalid = isinstance(e, ConfigurationError)
                    metrics.resolve_total.labels(operation=operation, result="failed").inc()
                    log_resolution_event(
                        logger,
                        operation=operation,
                        bucket=bucket,
                        event="error",
                        reason=REASON_INVALID if invalid else REASON_FAILED,
                        message=sanitize_exception(e),
                        level=logging.WARNING if invalid else logging.ERROR,
                        error_type=type(e).__name__,
                    )
                raise
            finally:
                duration = time.time() - start_time
                metrics.resolve_duration_seconds.labels(operation=operation).observe(duration)
        metrics.resolve_total.labels(operation=operation, result="success").inc()
        return result

    def resolve(self, document: Mapping[str, Any]) -> ResolvedBucket:
        """Resolve a configuration document.

        Args:
            document: Bucket configuration document

        Returns:
            The resolved descriptors; empty when ``create_bucket`` is false

        Raises:
            ConfigurationError: If the document is invalid
        """
        if not isinstance(document, Mapping):
            raise ConfigurationError("bucket configuration must be a mapping")
        bucket_name = document.get("bucket") or document.get("bucket_prefix")
        return self._measured(OP_RESOLVE, bucket_name, lambda: self._resolve(document, bucket_name))

    def _resolve(self, document: Mapping[str, Any], bucket_name: str | None) -> ResolvedBucket:
        # Nothing else in the document is read once creation is disabled
        if not require_bool(document.get("create_bucket"), "create_bucket", default=True):
            log_resolution_event(
                logger,
                operation=OP_RESOLVE,
                bucket=bucket_name,
                event="skipped",
                reason=REASON_SKIPPED,
                message="Bucket creation disabled; nothing to resolve",
            )
            return ResolvedBucket()

        unknown = sorted(set(document) - DOCUMENT_KEYS)
        if unknown:
            raise ConfigurationError(f"unsupported keys {unknown}")

        spec = bucket_spec_from_document(document)
        add_span_attribute("bucket.name", bucket_name or "")

        descriptor = self._measured(
            OP_RESOLVE_BUCKET,
            bucket_name,
            lambda: resolve_bucket(
                spec,
                cors=document.get("cors_rule"),
                logging_target=document.get("logging"),
                encryption=document.get("server_side_encryption_configuration"),
                versioning=document.get("versioning"),
                versioning_config=document.get("versioning_configuration"),
                strict=self.strict_versioning,
            ),
        )
        lifecycle_rules = self._measured(
            OP_RESOLVE_LIFECYCLE,
            bucket_name,
            lambda: resolve_lifecycle_rules(document.get("lifecycle_rule")),
        )
        descriptor = dataclasses.replace(descriptor, lifecycle_rule=lifecycle_rules)

        partition = document.get("partition") or self.partition
        policy = self._measured(
            OP_RESOLVE_POLICY,
            bucket_name,
            lambda: resolve_policy(
                base_policy=document.get("policy"),
                identifiers=_string_list(document, "cross_account_identifiers"),
                bucket_actions=_string_list(
                    document, "cross_account_bucket_actions", DEFAULT_CROSS_ACCOUNT_BUCKET_ACTIONS
                ),
                object_actions=_string_list(
                    document, "cross_account_object_actions", DEFAULT_CROSS_ACCOUNT_OBJECT_ACTIONS
                ),
                object_actions_with_forced_acl=_string_list(
                    document,
                    "cross_account_object_actions_with_forced_acl",
                    DEFAULT_CROSS_ACCOUNT_OBJECT_ACTIONS_WITH_FORCED_ACL,
                ),
                forced_acl_values=_string_list(
                    document, "cross_account_forced_acls", DEFAULT_CROSS_ACCOUNT_FORCED_ACLS
                ),
                bucket_arn=descriptor.arn(partition),
                partition=partition,
            ),
        )

        resolved = ResolvedBucket(
            bucket=descriptor,
            public_access_block=resolve_public_access_block(document),
            policy=policy,
        )
        log_resolution_event(
            logger,
            operation=OP_RESOLVE,
            bucket=bucket_name,
            event="resolved",
            reason=REASON_RESOLVED,
            message="Bucket configuration resolved",
            lifecycle_rules=len(lifecycle_rules),
            policy_statements=len(policy.statements) if policy else 0,
        )
        return resolved
