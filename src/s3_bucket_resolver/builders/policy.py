"""Builder for bucket access policy documents."""

from __future__ import annotations

import enum
import json
import re
from collections.abc import Mapping, Sequence
from typing import Any

from ..constants import (
    DEFAULT_PARTITION,
    POLICY_ACL_CONDITION_KEY,
    POLICY_VERSION,
    SID_BUCKET_ACTIONS,
    SID_OBJECT_ACTIONS,
    SID_OBJECT_ACTIONS_WITH_FORCED_ACL,
)
from ..exceptions import ConfigurationError
from ..models import PolicyDocument

ACCOUNT_ID_PATTERN = re.compile(r"^\d{12}$")


class GrantCategory(enum.IntEnum):
    """Cross-account grant categories in their canonical statement order."""

    BUCKET = 1
    OBJECT = 2
    OBJECT_WITH_FORCED_ACL = 3

    @property
    def sid(self) -> str:
        return {
            GrantCategory.BUCKET: SID_BUCKET_ACTIONS,
            GrantCategory.OBJECT: SID_OBJECT_ACTIONS,
            GrantCategory.OBJECT_WITH_FORCED_ACL: SID_OBJECT_ACTIONS_WITH_FORCED_ACL,
        }[self]

    def resource(self, bucket_arn: str) -> str:
        if self is GrantCategory.BUCKET:
            return bucket_arn
        return f"{bucket_arn}/*"


def principal_arn(identifier: str, partition: str = DEFAULT_PARTITION) -> str:
    """Expand a bare account id to its root ARN; anything else passes through."""
    identifier = identifier.strip()
    if ACCOUNT_ID_PATTERN.match(identifier):
        return f"arn:{partition}:iam::{identifier}:root"
    return identifier


def parse_base_policy(base_policy: str | Mapping[str, Any] | None) -> dict[str, Any] | None:
    """Parse a caller-supplied policy into a document with a statement list."""
    if base_policy is None or base_policy == "":
        return None
    if isinstance(base_policy, str):
        try:
            document = json.loads(base_policy)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"is not valid JSON: {e.msg}", field="policy") from e
    else:
        document = base_policy
    if not isinstance(document, Mapping):
        raise ConfigurationError("must be a JSON object", field="policy")

    statements = document.get("Statement", [])
    if isinstance(statements, Mapping):
        statements = [statements]
    if not isinstance(statements, list):
        raise ConfigurationError("Statement must be an object or a list", field="policy")
    for position, statement in enumerate(statements):
        if not isinstance(statement, Mapping):
            raise ConfigurationError("expected a statement object", field=f"policy.Statement[{position}]")
    return {"Version": document.get("Version", POLICY_VERSION), "Statement": [dict(s) for s in statements]}


def build_grant_statement(
    category: GrantCategory,
    actions: Sequence[str],
    principals: Sequence[str],
    bucket_arn: str,
    forced_acl_values: Sequence[str] = (),
) -> dict[str, Any]:
    """Build the policy statement for one grant category."""
    statement: dict[str, Any] = {
        "Sid": category.sid,
        "Effect": "Allow",
        "Principal": {"AWS": list(principals)},
        "Action": list(actions),
        "Resource": category.resource(bucket_arn),
    }
    if category is GrantCategory.OBJECT_WITH_FORCED_ACL and forced_acl_values:
        statement["Condition"] = {"StringEquals": {POLICY_ACL_CONDITION_KEY: list(forced_acl_values)}}
    return statement


def resolve_policy(
    base_policy: str | Mapping[str, Any] | None,
    identifiers: Sequence[str],
    bucket_actions: Sequence[str],
    object_actions: Sequence[str],
    object_actions_with_forced_acl: Sequence[str],
    forced_acl_values: Sequence[str],
    bucket_arn: str | None = None,
    partition: str = DEFAULT_PARTITION,
) -> PolicyDocument | None:
    """Compose the bucket policy from a base document and cross-account grants.

    Base statements come first. One statement per non-empty grant category is
    appended in canonical order (bucket, object, object with forced ACL); a
    generated statement replaces a base statement that has the same ``Sid``.

    Args:
        base_policy: Policy JSON (or its parsed form) to merge into
        identifiers: Account ids or principal ARNs receiving the grants
        bucket_actions: Actions granted on the bucket
        object_actions: Actions granted on the bucket's objects
        object_actions_with_forced_acl: Object actions requiring an ACL header
        forced_acl_values: Accepted values of the ACL header
        bucket_arn: ARN of the bucket
        partition: Partition used to expand bare account ids

    Returns:
        The policy document, or None when there is nothing to attach

    Raises:
        ConfigurationError: If the base policy is malformed, or grants are
            requested for a bucket without a known ARN
    """
    base = parse_base_policy(base_policy)
    grants = {
        GrantCategory.BUCKET: list(bucket_actions),
        GrantCategory.OBJECT: list(object_actions),
        GrantCategory.OBJECT_WITH_FORCED_ACL: list(object_actions_with_forced_acl),
    }
    active = [category for category in sorted(grants) if grants[category]] if identifiers else []

    if base is None and not active:
        return None

    generated = []
    if active:
        if not bucket_arn:
            raise ConfigurationError(
                "cross-account grants require an explicit bucket name", field="cross_account_identifiers"
            )
        principals = [principal_arn(identifier, partition) for identifier in identifiers]
        generated = [
            build_grant_statement(category, grants[category], principals, bucket_arn, forced_acl_values)
            for category in active
        ]

    statements = []
    version = POLICY_VERSION
    if base is not None:
        version = base["Version"]
        overridden = {statement["Sid"] for statement in generated}
        statements.extend(s for s in base["Statement"] if s.get("Sid") not in overridden)
    statements.extend(generated)

    return PolicyDocument(statements=tuple(statements), version=version)
