"""Structured logging configuration for the S3 bucket resolver."""

import json
import logging
import sys
from typing import Any


def setup_structured_logging(level: int = logging.INFO) -> None:
    """Configure structured JSON logging on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def log_resolution_event(
    logger: logging.Logger,
    operation: str,
    bucket: str | None,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured resolution or provisioning event."""
    log_data = {
        "component": "s3-bucket-resolver",
        "operation": operation,
        "bucket": bucket,
        "event": event,
        "reason": reason,
        "message": message,
    }
    log_data.update(sanitize_secrets(kwargs))
    logger.log(level, json.dumps(log_data, sort_keys=True, default=str))


def sanitize_secrets(log_data: dict[str, Any]) -> dict[str, Any]:
    """Remove secret fields from log data."""
    secret_fields = {"access_key", "secret_key", "session_token", "password"}
    sanitized = log_data.copy()
    for field in secret_fields:
        if field in sanitized:
            sanitized[field] = "***REDACTED***"
    return sanitized
