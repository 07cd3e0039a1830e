"""Error sanitization utilities to keep credentials out of terminal output."""

import re

# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    (re.compile(r"\b(AKIA|ASIA)[A-Z0-9]{16}\b"), "[REDACTED]"),
    (re.compile(r"(secret[_\s]?access[_\s]?key[=:\s]+)[A-Za-z0-9/+=]{40}", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(session[_\s]?token[=:\s]+)[A-Za-z0-9/+=]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(arn:[a-z-]+:(?:iam|kms|sts)::?[a-z0-9-]*:)\d{12}"), r"\1[REDACTED]"),
]


def sanitize_error_message(message: str) -> str:
    """Sanitize an error message to remove credentials and account ids.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message
    for pattern, replacement in SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message."""
    return sanitize_error_message(str(error))
