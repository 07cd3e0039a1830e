"""Unit tests for the configuration resolver."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from prometheus_client import REGISTRY

from s3_bucket_resolver.exceptions import AmbiguousRepresentationError, ConfigurationError
from s3_bucket_resolver.models import ResolvedBucket
from s3_bucket_resolver.resolver import ConfigResolver, bucket_spec_from_document


@pytest.fixture
def resolver() -> ConfigResolver:
    """Create a resolver."""
    return ConfigResolver()


@pytest.fixture
def document() -> dict:
    """A document exercising every optional block."""
    return {
        "bucket": "test-bucket",
        "region": "eu-west-1",
        "tags": {"Environment": "production"},
        "versioning": {"enabled": True, "mfa_delete": False},
        "server_side_encryption_configuration": {"kms_master_key_id": "alias/test"},
        "cors_rule": {"allowed_methods": ["GET"], "allowed_origins": ["https://example.com"]},
        "logging": {"target_bucket": "access-logs"},
        "lifecycle_rule": [{"id": "expire", "enabled": True, "expiration": {"days": 30}}],
        "cross_account_identifiers": ["111122223333"],
    }


class TestConfigResolver:
    """Test whole-document resolution."""

    def test_resolve_full_document(self, resolver: ConfigResolver, document: dict) -> None:
        """Test resolving a document with every block."""
        resolved = resolver.resolve(document)

        assert resolved.created
        assert resolved.bucket.bucket == "test-bucket"
        assert resolved.bucket.server_side_encryption_configuration[0].sse_algorithm == "aws:kms"
        assert resolved.bucket.versioning[0].enabled is True
        assert len(resolved.bucket.lifecycle_rule) == 1
        assert resolved.public_access_block.restrict_public_buckets is True
        sids = [s["Sid"] for s in resolved.policy.statements]
        assert sids == [
            "AllowCrossAccountBucketActions",
            "AllowCrossAccountObjectActions",
            "AllowCrossAccountObjectActionsWithForcedAcl",
        ]

    def test_default_grant_actions(self, resolver: ConfigResolver, document: dict) -> None:
        """Test the default actions and forced ACL of each grant category."""
        statements = resolver.resolve(document).policy.to_dict()["Statement"]

        assert statements[0]["Action"] == ["s3:ListBucket"]
        assert statements[1]["Action"] == ["s3:GetObject"]
        assert statements[2]["Action"] == ["s3:PutObject", "s3:PutObjectAcl"]
        assert statements[2]["Condition"]["StringEquals"]["s3:x-amz-acl"] == ["bucket-owner-full-control"]

    def test_emptied_grant_category_skipped(self, resolver: ConfigResolver, document: dict) -> None:
        """Test that an emptied action list drops its statement."""
        document["cross_account_object_actions"] = []

        sids = [s["Sid"] for s in resolver.resolve(document).policy.statements]
        assert sids == ["AllowCrossAccountBucketActions", "AllowCrossAccountObjectActionsWithForcedAcl"]

    def test_idempotent(self, resolver: ConfigResolver, document: dict) -> None:
        """Test that resolving twice gives byte-identical output."""
        assert resolver.resolve(document).to_json() == resolver.resolve(document).to_json()
        assert ConfigResolver().resolve(document).to_json() == resolver.resolve(dict(document)).to_json()

    def test_create_disabled(self, resolver: ConfigResolver, document: dict) -> None:
        """Test that disabling creation yields an empty result."""
        document["create_bucket"] = False

        resolved = resolver.resolve(document)
        assert resolved == ResolvedBucket()
        assert resolved.to_dict() == {}
        assert json.loads(resolved.to_json()) == {}

    def test_no_policy_without_identifiers(self, resolver: ConfigResolver) -> None:
        """Test that no policy is emitted without identifiers or base policy."""
        resolved = resolver.resolve({"bucket": "test-bucket"})

        assert resolved.policy is None
        assert "policy" not in resolved.to_dict()

    def test_partition(self, resolver: ConfigResolver, document: dict) -> None:
        """Test that the partition is used for ARNs."""
        document["partition"] = "aws-us-gov"

        statement = resolver.resolve(document).policy.to_dict()["Statement"][0]
        assert statement["Resource"] == "arn:aws-us-gov:s3:::test-bucket"
        assert statement["Principal"]["AWS"] == ["arn:aws-us-gov:iam::111122223333:root"]

    def test_unknown_key(self, resolver: ConfigResolver) -> None:
        """Test that unknown document keys are rejected."""
        with pytest.raises(ConfigurationError, match="unsupported keys"):
            resolver.resolve({"bucket": "test-bucket", "versioning_enabled": True})

    def test_not_a_mapping(self, resolver: ConfigResolver) -> None:
        """Test that a non-mapping document is rejected."""
        with pytest.raises(ConfigurationError):
            resolver.resolve(["bucket"])

    def test_name_prefix_conflict(self, resolver: ConfigResolver) -> None:
        """Test that a name and a prefix together are rejected."""
        with pytest.raises(ConfigurationError, match="mutually exclusive"):
            resolver.resolve({"bucket": "test-bucket", "bucket_prefix": "test-"})

    def test_prefix_with_grants(self, resolver: ConfigResolver) -> None:
        """Test that grants for a prefix-named bucket are rejected."""
        with pytest.raises(ConfigurationError, match="explicit bucket name"):
            resolver.resolve({"bucket_prefix": "test-", "cross_account_identifiers": ["111122223333"]})

    def test_strict_versioning(self, document: dict) -> None:
        """Test that a strict resolver rejects both versioning forms."""
        document["versioning"] = True
        document["versioning_configuration"] = {"enabled": False}

        assert ConfigResolver().resolve(document).bucket.versioning[0].enabled is True
        with pytest.raises(AmbiguousRepresentationError):
            ConfigResolver(strict_versioning=True).resolve(document)

    def test_identifiers_must_be_list(self, resolver: ConfigResolver) -> None:
        """Test that a bare string is not accepted as an identifier list."""
        with pytest.raises(ConfigurationError, match="cross_account_identifiers"):
            resolver.resolve({"bucket": "test-bucket", "cross_account_identifiers": "111122223333"})

    def test_metrics_recorded(self, resolver: ConfigResolver) -> None:
        """Test that resolution outcomes are counted."""
        labels = {"operation": "resolve", "result": "success"}
        before = REGISTRY.get_sample_value("s3_bucket_resolver_resolve_total", labels) or 0.0

        resolver.resolve({"bucket": "test-bucket"})

        assert REGISTRY.get_sample_value("s3_bucket_resolver_resolve_total", labels) == before + 1

    def test_failure_metrics_recorded(self, resolver: ConfigResolver) -> None:
        """Test that failed resolutions are counted."""
        labels = {"operation": "resolve_lifecycle_rules", "result": "failed"}
        before = REGISTRY.get_sample_value("s3_bucket_resolver_resolve_total", labels) or 0.0

        with pytest.raises(ConfigurationError):
            resolver.resolve({"bucket": "test-bucket", "lifecycle_rule": [{"id": "x"}]})

        assert REGISTRY.get_sample_value("s3_bucket_resolver_resolve_total", labels) == before + 1

    def test_step_failure_counted_once(self, resolver: ConfigResolver) -> None:
        """Test that a failing step is not counted again for the whole pass."""
        step = {"operation": "resolve_lifecycle_rules", "result": "failed"}
        whole = {"operation": "resolve", "result": "failed"}
        before_step = REGISTRY.get_sample_value("s3_bucket_resolver_resolve_total", step) or 0.0
        before_whole = REGISTRY.get_sample_value("s3_bucket_resolver_resolve_total", whole) or 0.0

        with pytest.raises(ConfigurationError):
            resolver.resolve({"bucket": "test-bucket", "lifecycle_rule": [{"id": "x"}]})

        assert REGISTRY.get_sample_value("s3_bucket_resolver_resolve_total", step) == before_step + 1
        assert (REGISTRY.get_sample_value("s3_bucket_resolver_resolve_total", whole) or 0.0) == before_whole

    def test_unexpected_error_counted(self, resolver: ConfigResolver) -> None:
        """Test that errors other than configuration errors are counted as failures."""
        labels = {"operation": "resolve_policy", "result": "failed"}
        before = REGISTRY.get_sample_value("s3_bucket_resolver_resolve_total", labels) or 0.0

        with patch("s3_bucket_resolver.resolver.resolve_policy", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                resolver.resolve({"bucket": "test-bucket"})

        assert REGISTRY.get_sample_value("s3_bucket_resolver_resolve_total", labels) == before + 1

    def test_create_disabled_skips_validation(self, resolver: ConfigResolver) -> None:
        """Test that a document with creation disabled is not validated further."""
        resolved = resolver.resolve(
            {"create_bucket": "false", "tags": ["a"], "force_destroy": "maybe", "versioning_enabled": True}
        )

        assert resolved == ResolvedBucket()

    def test_invalid_base_policy_statement(self, resolver: ConfigResolver) -> None:
        """Test that a malformed policy statement is a configuration error."""
        with pytest.raises(ConfigurationError, match="Statement"):
            resolver.resolve({"bucket": "test-bucket", "policy": '{"Statement": ["x"]}'})


class TestImmutability:
    """Test that resolved descriptors cannot be modified."""

    def test_descriptor_mappings_read_only(self, resolver: ConfigResolver, document: dict) -> None:
        """Test that nested mappings of a descriptor reject assignment."""
        resolved = resolver.resolve(document)

        with pytest.raises(TypeError):
            resolved.bucket.tags["Environment"] = "staging"
        with pytest.raises(TypeError):
            resolved.bucket.cors_rule[0]["allowed_methods"] = ["PUT"]
        assert resolved.bucket.cors_rule[0]["allowed_methods"] == ("GET",)

    def test_input_changes_not_shared(self, resolver: ConfigResolver, document: dict) -> None:
        """Test that changing the input document after resolution has no effect."""
        resolved = resolver.resolve(document)

        document["cors_rule"]["allowed_methods"].append("PUT")
        document["logging"]["target_bucket"] = "other-logs"

        assert resolved.bucket.cors_rule[0]["allowed_methods"] == ("GET",)
        assert resolved.bucket.logging[0]["target_bucket"] == "access-logs"

    def test_to_dict_plain_data(self, resolver: ConfigResolver, document: dict) -> None:
        """Test that rendering gives plain dicts and lists."""
        data = resolver.resolve(document).to_dict()

        assert data["bucket"]["cors_rule"] == [
            {"allowed_methods": ["GET"], "allowed_origins": ["https://example.com"]}
        ]
        assert data["bucket"]["tags"] == {"Environment": "production"}
        assert isinstance(data["policy"]["Statement"][0]["Principal"], dict)


class TestBucketSpecFromDocument:
    """Test flat option extraction."""

    def test_defaults(self) -> None:
        """Test defaults of an empty document."""
        spec = bucket_spec_from_document({})

        assert spec.create is True
        assert spec.acl == "private"
        assert spec.request_payer == "BucketOwner"
        assert spec.tags == {}

    def test_string_booleans(self) -> None:
        """Test that boolean strings are accepted for flags."""
        spec = bucket_spec_from_document({"force_destroy": "true", "create_bucket": "false"})

        assert spec.force_destroy is True
        assert spec.create is False

    def test_tags_must_be_mapping(self) -> None:
        """Test that tags must be a mapping."""
        with pytest.raises(ConfigurationError, match="tags"):
            bucket_spec_from_document({"tags": ["a"]})
