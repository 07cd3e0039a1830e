"""Builder for lifecycle rule descriptors."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from ..exceptions import ConfigurationError
from ..models import (
    Expiration,
    LifecycleRuleDescriptor,
    NoncurrentVersionExpiration,
    NoncurrentVersionTransition,
    Transition,
)
from .bucket import check_keys, require_bool

RULE_KEYS = frozenset(
    {
        "id",
        "prefix",
        "tags",
        "enabled",
        "abort_incomplete_multipart_upload_days",
        "expiration",
        "transition",
        "noncurrent_version_expiration",
        "noncurrent_version_transition",
    }
)
EXPIRATION_KEYS = frozenset({"date", "days", "expired_object_delete_marker"})
TRANSITION_KEYS = frozenset({"date", "days", "storage_class"})
NONCURRENT_EXPIRATION_KEYS = frozenset({"days"})
NONCURRENT_TRANSITION_KEYS = frozenset({"days", "storage_class"})


def _optional_int(value: Any, field: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"expected an integer, got {value!r}", field=field)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"expected an integer, got {value!r}", field=field) from e


def _single(value: Any, field: str) -> Mapping[str, Any] | None:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ConfigurationError("expected a mapping", field=field)
    return value or None


def _repeated(value: Any, field: str) -> list[Mapping[str, Any]]:
    if value is None:
        return []
    if isinstance(value, Mapping) or not isinstance(value, Sequence) or isinstance(value, str):
        raise ConfigurationError("expected a list of mappings", field=field)
    for item in value:
        if not isinstance(item, Mapping):
            raise ConfigurationError("expected a list of mappings", field=field)
    return list(value)


def _storage_class(block: Mapping[str, Any], field: str) -> str:
    storage_class = block.get("storage_class")
    if not storage_class:
        raise ConfigurationError("is required", field=f"{field}.storage_class")
    return storage_class


def resolve_lifecycle_rule(rule: Mapping[str, Any], index: int = 0) -> LifecycleRuleDescriptor:
    """Resolve one lifecycle rule.

    Args:
        rule: Rule options
        index: Position of the rule, used in error messages

    Raises:
        ConfigurationError: If ``enabled`` or a transition's ``storage_class`` is missing
    """
    field = f"lifecycle_rule[{index}]"
    if not isinstance(rule, Mapping):
        raise ConfigurationError("expected a mapping", field=field)
    check_keys(rule, RULE_KEYS, field)

    if rule.get("enabled") is None:
        raise ConfigurationError("is required", field=f"{field}.enabled")
    enabled = require_bool(rule["enabled"], f"{field}.enabled")

    tags = rule.get("tags") or {}
    if not isinstance(tags, Mapping):
        raise ConfigurationError("expected a mapping", field=f"{field}.tags")

    expiration: tuple[Expiration, ...] = ()
    block = _single(rule.get("expiration"), f"{field}.expiration")
    if block:
        check_keys(block, EXPIRATION_KEYS, f"{field}.expiration")
        marker = block.get("expired_object_delete_marker")
        expiration = (
            Expiration(
                date=block.get("date"),
                days=_optional_int(block.get("days"), f"{field}.expiration.days"),
                expired_object_delete_marker=(
                    None
                    if marker is None
                    else require_bool(marker, f"{field}.expiration.expired_object_delete_marker")
                ),
            ),
        )

    transitions = []
    for position, item in enumerate(_repeated(rule.get("transition"), f"{field}.transition")):
        item_field = f"{field}.transition[{position}]"
        check_keys(item, TRANSITION_KEYS, item_field)
        transitions.append(
            Transition(
                storage_class=_storage_class(item, item_field),
                date=item.get("date"),
                days=_optional_int(item.get("days"), f"{item_field}.days"),
            )
        )

    noncurrent_expiration: tuple[NoncurrentVersionExpiration, ...] = ()
    block = _single(rule.get("noncurrent_version_expiration"), f"{field}.noncurrent_version_expiration")
    if block:
        check_keys(block, NONCURRENT_EXPIRATION_KEYS, f"{field}.noncurrent_version_expiration")
        noncurrent_expiration = (
            NoncurrentVersionExpiration(
                days=_optional_int(block.get("days"), f"{field}.noncurrent_version_expiration.days")
            ),
        )

    noncurrent_transitions = []
    for position, item in enumerate(
        _repeated(rule.get("noncurrent_version_transition"), f"{field}.noncurrent_version_transition")
    ):
        item_field = f"{field}.noncurrent_version_transition[{position}]"
        check_keys(item, NONCURRENT_TRANSITION_KEYS, item_field)
        noncurrent_transitions.append(
            NoncurrentVersionTransition(
                storage_class=_storage_class(item, item_field),
                days=_optional_int(item.get("days"), f"{item_field}.days"),
            )
        )

    return LifecycleRuleDescriptor(
        enabled=enabled,
        id=rule.get("id"),
        prefix=rule.get("prefix"),
        tags={str(k): str(v) for k, v in tags.items()},
        abort_incomplete_multipart_upload_days=_optional_int(
            rule.get("abort_incomplete_multipart_upload_days"),
            f"{field}.abort_incomplete_multipart_upload_days",
        ),
        expiration=expiration,
        transition=tuple(transitions),
        noncurrent_version_expiration=noncurrent_expiration,
        noncurrent_version_transition=tuple(noncurrent_transitions),
    )


def resolve_lifecycle_rules(rules: Sequence[Mapping[str, Any]] | None) -> tuple[LifecycleRuleDescriptor, ...]:
    """Resolve lifecycle rules, preserving their order."""
    return tuple(
        resolve_lifecycle_rule(rule, index)
        for index, rule in enumerate(_repeated(rules, "lifecycle_rule"))
    )
