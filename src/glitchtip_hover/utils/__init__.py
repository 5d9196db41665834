"""Utility functions and helpers.

This module provides various utilities for glitchtip-hover:
- security: Secret redaction, URL validation
- async_helpers: Exceptions, retry and timeout helpers
- logging: Structured logging with secret sanitization
- health: Health check utilities
"""

from glitchtip_hover.utils.async_helpers import (
    ConfigIncompleteError,
    HoverError,
    MalformedResponseError,
    TransportError,
)
from glitchtip_hover.utils.health import (
    HealthChecker,
    HealthReport,
    HealthStatus,
)
from glitchtip_hover.utils.logging import (
    LogEventNames,
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
)
from glitchtip_hover.utils.security import (
    RedactionError,
    SecretRedactor,
    SecurityError,
)

__all__ = [
    # Errors
    "ConfigIncompleteError",
    # Health
    "HealthChecker",
    "HealthReport",
    "HealthStatus",
    "HoverError",
    # Logging
    "LogEventNames",
    "LogFormat",
    "LogLevel",
    "MalformedResponseError",
    # Security
    "RedactionError",
    "SecretRedactor",
    "SecurityError",
    "TransportError",
    "bind_context",
    "clear_context",
    "configure_from_settings",
    "configure_logging",
]
