"""Unit tests for lifecycle rule resolution."""

from __future__ import annotations

import pytest

from s3_bucket_resolver.builders.lifecycle import resolve_lifecycle_rule, resolve_lifecycle_rules
from s3_bucket_resolver.exceptions import ConfigurationError
from s3_bucket_resolver.models import (
    Expiration,
    LifecycleRuleDescriptor,
    NoncurrentVersionExpiration,
    NoncurrentVersionTransition,
    Transition,
)


class TestLifecycleRules:
    """Test lifecycle rule resolution."""

    def test_minimal_rule(self) -> None:
        """Test that a rule with only enabled has every nested block absent."""
        rule = resolve_lifecycle_rule({"enabled": False})

        assert rule == LifecycleRuleDescriptor(enabled=False)
        assert rule.expiration == ()
        assert rule.transition == ()
        assert rule.noncurrent_version_expiration == ()
        assert rule.noncurrent_version_transition == ()

    def test_enabled_required(self) -> None:
        """Test that a rule without enabled is rejected."""
        with pytest.raises(ConfigurationError, match=r"lifecycle_rule\[1\].enabled"):
            resolve_lifecycle_rules([{"enabled": True}, {"id": "no-flag", "prefix": "logs/"}])

    def test_enabled_must_be_boolean(self) -> None:
        """Test that a non-boolean enabled flag is rejected."""
        with pytest.raises(ConfigurationError, match="enabled"):
            resolve_lifecycle_rule({"enabled": "sometimes"})

    def test_full_rule(self) -> None:
        """Test resolving a rule with every nested block."""
        rule = resolve_lifecycle_rule(
            {
                "id": "archive",
                "prefix": "logs/",
                "tags": {"class": "logs"},
                "enabled": True,
                "abort_incomplete_multipart_upload_days": 7,
                "expiration": {"days": 365},
                "transition": [
                    {"days": 30, "storage_class": "STANDARD_IA"},
                    {"days": 90, "storage_class": "GLACIER"},
                ],
                "noncurrent_version_expiration": {"days": 90},
                "noncurrent_version_transition": [{"days": 30, "storage_class": "GLACIER"}],
            }
        )

        assert rule.id == "archive"
        assert rule.tags == {"class": "logs"}
        assert rule.abort_incomplete_multipart_upload_days == 7
        assert rule.expiration == (Expiration(days=365),)
        assert rule.transition == (
            Transition(storage_class="STANDARD_IA", days=30),
            Transition(storage_class="GLACIER", days=90),
        )
        assert rule.noncurrent_version_expiration == (NoncurrentVersionExpiration(days=90),)
        assert rule.noncurrent_version_transition == (NoncurrentVersionTransition(storage_class="GLACIER", days=30),)

    def test_empty_nested_blocks_absent(self) -> None:
        """Test that empty nested mappings and lists are absent."""
        rule = resolve_lifecycle_rule(
            {
                "enabled": True,
                "expiration": {},
                "transition": [],
                "noncurrent_version_expiration": {},
                "noncurrent_version_transition": [],
            }
        )

        assert rule == LifecycleRuleDescriptor(enabled=True)

    def test_transition_requires_storage_class(self) -> None:
        """Test that a transition without a storage class is rejected."""
        with pytest.raises(ConfigurationError, match=r"transition\[0\].storage_class"):
            resolve_lifecycle_rule({"enabled": True, "transition": [{"days": 30}]})

    def test_noncurrent_transition_requires_storage_class(self) -> None:
        """Test that a noncurrent transition without a storage class is rejected."""
        with pytest.raises(ConfigurationError, match="noncurrent_version_transition"):
            resolve_lifecycle_rule({"enabled": True, "noncurrent_version_transition": [{"days": 30}]})

    def test_order_preserved(self) -> None:
        """Test that rules keep their input order."""
        rules = resolve_lifecycle_rules(
            [{"id": "z", "enabled": True}, {"id": "a", "enabled": True}, {"id": "m", "enabled": False}]
        )

        assert [rule.id for rule in rules] == ["z", "a", "m"]

    def test_transition_order_preserved(self) -> None:
        """Test that transitions keep their input order."""
        rule = resolve_lifecycle_rule(
            {
                "enabled": True,
                "transition": [
                    {"days": 90, "storage_class": "GLACIER"},
                    {"days": 30, "storage_class": "STANDARD_IA"},
                ],
            }
        )

        assert [t.storage_class for t in rule.transition] == ["GLACIER", "STANDARD_IA"]

    def test_date_expiration(self) -> None:
        """Test date-based expiration."""
        rule = resolve_lifecycle_rule({"enabled": True, "expiration": {"date": "2030-01-01T00:00:00Z"}})

        assert rule.expiration == (Expiration(date="2030-01-01T00:00:00Z"),)

    def test_invalid_days(self) -> None:
        """Test that non-integer days are rejected."""
        with pytest.raises(ConfigurationError, match="expiration.days"):
            resolve_lifecycle_rule({"enabled": True, "expiration": {"days": "soon"}})

    def test_delete_marker_flag(self) -> None:
        """Test that the expired object delete marker accepts boolean strings."""
        rule = resolve_lifecycle_rule({"enabled": True, "expiration": {"expired_object_delete_marker": "true"}})

        assert rule.expiration == (Expiration(expired_object_delete_marker=True),)

    def test_invalid_delete_marker_flag(self) -> None:
        """Test that a non-boolean delete marker flag is rejected, not dropped."""
        with pytest.raises(ConfigurationError, match="expiration.expired_object_delete_marker"):
            resolve_lifecycle_rule({"enabled": True, "expiration": {"expired_object_delete_marker": "yes"}})

    def test_tags_must_be_mapping(self) -> None:
        """Test that rule tags must be a mapping."""
        with pytest.raises(ConfigurationError, match=r"lifecycle_rule\[0\]\.tags"):
            resolve_lifecycle_rule({"enabled": True, "tags": "abc"})

    def test_unknown_key(self) -> None:
        """Test that unknown rule keys are rejected."""
        with pytest.raises(ConfigurationError, match="unsupported keys"):
            resolve_lifecycle_rule({"enabled": True, "status": "Enabled"})

    def test_no_rules(self) -> None:
        """Test that absent and empty rule lists resolve to no rules."""
        assert resolve_lifecycle_rules(None) == ()
        assert resolve_lifecycle_rules([]) == ()

    def test_rules_must_be_list(self) -> None:
        """Test that a mapping is not accepted as a rule list."""
        with pytest.raises(ConfigurationError, match="lifecycle_rule"):
            resolve_lifecycle_rules({"enabled": True})
