"""Structured logging for glitchtip-hover.

structlog renders every entry as JSON or console text through the stdlib root
logger. Secrets are redacted from all values before rendering, and each entry
carries the service name and version.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

import structlog

from glitchtip_hover._version import __version__
from glitchtip_hover.utils.security import SecretRedactor

if TYPE_CHECKING:
    from glitchtip_hover.config.schema import LoggingConfig


class LogFormat(StrEnum):
    """Log output format options."""

    JSON = "json"
    CONSOLE = "console"


class LogLevel(StrEnum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# Global redactor instance for log sanitization
_redactor: SecretRedactor | None = None


def _get_redactor() -> SecretRedactor:
    """Get or create the global secret redactor."""
    global _redactor
    if _redactor is None:
        _redactor = SecretRedactor(placeholder="[REDACTED]")
    return _redactor


def sanitize_log_value(value: Any) -> Any:
    """Recursively sanitize secrets from log values.

    Args:
        value: Value to sanitize (can be nested dict/list/str)

    Returns:
        Sanitized value with secrets redacted
    """
    redactor = _get_redactor()

    if isinstance(value, str):
        return redactor.redact(value)
    elif isinstance(value, dict):
        return {k: sanitize_log_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return type(value)(sanitize_log_value(v) for v in value)
    else:
        return value


def secret_sanitizer(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor to sanitize secrets from log entries."""
    result = sanitize_log_value(event_dict)
    return cast(MutableMapping[str, Any], result)


def add_context_processor(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Add the service name and version to all log entries."""
    event_dict["service"] = "glitchtip-hover"
    event_dict["version"] = __version__
    return event_dict


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    log_format: LogFormat | str = LogFormat.CONSOLE,
    log_file: Path | str | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Log lines go to stderr so command output on stdout stays clean, and
    additionally to ``log_file`` when one is given.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_file: Optional file that receives a copy of every log line.
            Missing parent directories are created.

    Raises:
        OSError: If the log file cannot be opened.
    """
    level = LogLevel(level.upper())
    log_format = LogFormat(log_format.lower())
    numeric_level = getattr(logging, level.value)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_context_processor,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        secret_sanitizer,
        structlog.processors.format_exc_info,
    ]
    if log_format == LogFormat.JSON:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(exception_formatter=structlog.dev.plain_traceback)
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(format="%(message)s", level=numeric_level, handlers=handlers, force=True)


def configure_from_settings(settings: LoggingConfig, debug: bool = False) -> None:
    """Apply the ``logging`` section of the configuration.

    ``debug`` forces DEBUG regardless of the configured level.
    """
    configure_logging(
        level=LogLevel.DEBUG if debug else settings.level,
        log_format=settings.format,
        log_file=settings.file.path if settings.file.enabled else None,
    )


def bind_context(**kwargs: Any) -> None:
    """Bind contextual variables for all subsequent log calls.

    Example:
        bind_context(cycle=3)
        log.info("issue_attributed")  # Includes cycle
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound contextual variables."""
    structlog.contextvars.clear_contextvars()


class LogEventNames:
    """Standard log event names for consistency."""

    # Sync cycle
    SYNC_CYCLE_START = "sync_cycle_start"
    SYNC_CYCLE_COMPLETE = "sync_cycle_complete"
    SYNC_CYCLE_FAILED = "sync_cycle_failed"
    SYNC_CONFIG_INCOMPLETE = "sync_config_incomplete"
    SYNC_CYCLE_JOINED = "sync_cycle_joined"
    INDEX_PUBLISHED = "index_published"

    # Per-issue processing
    ISSUE_SKIPPED = "issue_skipped"
    ISSUE_ATTRIBUTED = "issue_attributed"
    ISSUE_PROCESSING_ERROR = "issue_processing_error"

    # Remote API
    ISSUES_FETCHED = "issues_fetched"
    API_REQUEST_FAILED = "api_request_failed"
    API_MALFORMED_RESPONSE = "api_malformed_response"

    # Frame resolution and file search
    STACKTRACE_MISSING = "stacktrace_missing"
    FRAME_RESOLVED = "frame_resolved"
    LOCAL_FILE_SEARCH = "local_file_search"
    LOCAL_FILE_SEARCH_FAILED = "local_file_search_failed"

    # Scheduler
    SCHEDULER_STARTED = "scheduler_started"
    SCHEDULER_STOPPED = "scheduler_stopped"

    # Health checks
    HEALTH_CHECK_START = "health_check_start"
    HEALTH_CHECK_COMPLETE = "health_check_complete"
