"""Tests for structured logging."""

from __future__ import annotations

import json
import logging

import pytest

from s3_bucket_resolver.logging import log_resolution_event, sanitize_secrets


class TestStructuredLogging:
    """Test structured log events."""

    def test_log_resolution_event(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that events are logged as JSON."""
        logger = logging.getLogger("test.resolution")
        with caplog.at_level(logging.INFO, logger="test.resolution"):
            log_resolution_event(
                logger,
                operation="resolve",
                bucket="test-bucket",
                event="resolved",
                reason="Resolved",
                message="done",
                lifecycle_rules=2,
            )

        data = json.loads(caplog.records[0].getMessage())
        assert data["operation"] == "resolve"
        assert data["bucket"] == "test-bucket"
        assert data["lifecycle_rules"] == 2

    def test_secrets_redacted(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that secret fields are redacted."""
        logger = logging.getLogger("test.secrets")
        with caplog.at_level(logging.WARNING, logger="test.secrets"):
            log_resolution_event(
                logger, "apply", "b", "error", "Failed", "boom", level=logging.WARNING, secret_key="s3cr3t"
            )

        assert "s3cr3t" not in caplog.text
        assert caplog.records[0].levelno == logging.WARNING

    def test_sanitize_secrets(self) -> None:
        """Test redacting known secret fields."""
        assert sanitize_secrets({"access_key": "a", "bucket": "b"}) == {"access_key": "***REDACTED***", "bucket": "b"}
