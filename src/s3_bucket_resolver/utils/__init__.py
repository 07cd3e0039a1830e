"""Utility functions for the S3 bucket resolver."""

from .errors import sanitize_error_message, sanitize_exception

__all__ = [
    "sanitize_error_message",
    "sanitize_exception",
]
