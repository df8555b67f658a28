"""Logging utilities for icloudpy modules."""

import logging
from typing import Any

# Keys whose values never reach the logs
SECRET_KEYS = (
    'password',
    'token',
    'cookie',
    'scnt',
    'verificationcode',
    'securitycode',
    'receipt',
    'wrapping_key',
)


def get_logger(name: str) -> logging.Logger:
    """Get a logger that automatically inherits from root logger.

    This ensures that loggers work with basicConfig() without needing
    explicit setup_logging() calls. The logger will:
    - Propagate to root logger (default behavior)
    - Only set a default level if root logger has no handlers

    Args:
        name: Logger name (typically 'icloudpy.<component>')

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.propagate = True

    # Only set default level if root logger has no handlers
    # (i.e., basicConfig hasn't been called yet)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logger.setLevel(logging.WARNING)  # Default to WARNING if no basicConfig

    return logger


def redact(payload: Any) -> Any:
    """Return a copy of a JSON-like payload with secret values masked."""
    if isinstance(payload, list):
        return [redact(item) for item in payload]
    if not isinstance(payload, dict):
        return payload
    redacted = {}
    for key, value in payload.items():
        key_l = str(key).lower()
        if any(secret in key_l for secret in SECRET_KEYS):
            redacted[key] = '***'
        else:
            redacted[key] = redact(value)
    return redacted


def truncate(text: str, limit: int = 1000) -> str:
    """Shorten long log lines."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}...[truncated {len(text) - limit} chars]"
