"""Structured logging built on Loguru.

Two output formats are supported:
- **console**: colored, human-readable lines with the bound context inline
- **json**: one JSON object per line for log collectors

Standard library loggers (uvicorn, httpx) are routed into Loguru through
``InterceptHandler`` so every line shares one format. Request-scoped values
such as the correlation ID are attached with ``logger.contextualize`` by the
request context middleware and show up in every line logged for the request.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Final, Protocol, cast

import orjson
from loguru import logger

from userhub.core.error_context import REDACTED, is_sensitive_field


class _LoggingState:
    """Tracks whether logging has been configured."""

    def __init__(self) -> None:
        self.configured = False


_state = _LoggingState()


class LogConfigProtocol(Protocol):
    """Protocol for log configuration objects."""

    @property
    def log_level(self) -> str:
        """Logging level."""
        ...

    @property
    def log_formatter_type(self) -> str | None:
        """Log formatter type."""
        ...


class SettingsProtocol(Protocol):
    """Protocol for settings objects that setup_logging can accept."""

    @property
    def debug(self) -> bool:
        """Debug mode flag."""
        ...

    @property
    def log_config(self) -> LogConfigProtocol:
        """Log configuration."""
        ...


CORRELATION_ID_DISPLAY_LENGTH: Final[int] = 8
MAX_FIELD_VALUE_LENGTH: Final[int] = 100

# Shown first, in this order
PRIORITY_FIELDS: Final[tuple[str, ...]] = (
    "correlation_id",
    "request_id",
    "client_ip",
    "method",
    "path",
    "status_code",
    "duration_ms",
)


def _escape(text: str) -> str:
    """Escape braces and markup so Loguru prints ``text`` literally."""
    return text.replace("{", "{{").replace("}", "}}").replace("<", r"\<")


def _format_field(key: str, value: object) -> str:
    """Render one context field for the console formatter."""
    if is_sensitive_field(key):
        return f"{key}={REDACTED}"

    if key == "correlation_id":
        str_value = str(value)[:CORRELATION_ID_DISPLAY_LENGTH]
    elif key == "duration_ms":
        str_value = f"{value}ms"
    else:
        str_value = str(value)
        if len(str_value) > MAX_FIELD_VALUE_LENGTH:
            str_value = str_value[: MAX_FIELD_VALUE_LENGTH - 3] + "..."

    if key in PRIORITY_FIELDS:
        return str_value
    return f"{key}={str_value}"


def format_console_with_context(record: dict[str, Any]) -> str:
    """Format a log record for the console with all context fields visible.

    Args:
        record: Loguru record to format.

    Returns:
        str: Loguru format string for the record.
    """
    timestamp = record["time"].strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
    parts = [
        f"<green>{timestamp}</green>",
        f"<level>{record['level'].name: <8}</level>",
        f"<cyan>{record['name']}:{record['function']}:{record['line']}</cyan>",
    ]

    extra: dict[str, Any] = record.get("extra", {})
    context: list[str] = []
    for key in PRIORITY_FIELDS:
        if extra.get(key) not in (None, ""):
            field = _escape(_format_field(key, extra[key]))
            context.append(f"<yellow>{field}</yellow>")
    for key, value in extra.items():
        if key in PRIORITY_FIELDS or key.startswith("_") or value is None:
            continue
        context.append(f"<dim>{_escape(_format_field(key, value))}</dim>")
    if context:
        parts.append(" ".join(f"[{item}]" for item in context))

    parts.append(_escape(str(record["message"])))

    line = " | ".join(parts) + "\n"
    if record.get("exception"):
        line += "{exception}"
    return line


def serialize_for_json(record: dict[str, Any]) -> str:
    """Format a log record as a single JSON line.

    Args:
        record: Loguru record to format.

    Returns:
        str: JSON-formatted log entry with newline.
    """
    log_entry: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    for key, value in record.get("extra", {}).items():
        if key.startswith("_"):
            continue
        log_entry[key] = REDACTED if is_sensitive_field(key) else value

    if exc := record.get("exception"):
        log_entry["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value) if exc.value else None,
        }

    return orjson.dumps(log_entry, default=str).decode() + "\n"


class InterceptHandler(logging.Handler):
    """Forward standard library log records to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        """Forward log record to Loguru.

        Args:
            record: Standard library LogRecord to forward.
        """
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so Loguru reports the real caller
        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _json_sink(message: object) -> None:
    """Write a Loguru message as JSON to stdout."""
    record = getattr(message, "record", None)
    if record is None:
        return
    sys.stdout.write(serialize_for_json(record))
    sys.stdout.flush()


def setup_logging(settings: SettingsProtocol) -> None:
    """Configure Loguru once for the process.

    Args:
        settings: Application settings containing log configuration.
    """
    if _state.configured:
        return

    logger.remove()

    formatter_type = settings.log_config.log_formatter_type or "console"
    level = settings.log_config.log_level

    if formatter_type == "json":
        logger.add(
            _json_sink,
            level=level,
            enqueue=True,
            diagnose=False,
            backtrace=False,
        )
    else:
        logger.add(
            sys.stdout,
            format=cast("Any", format_console_with_context),
            level=level,
            enqueue=True,
            colorize=True,
            diagnose=settings.debug,
            backtrace=settings.debug,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers = [InterceptHandler()]
        uvicorn_logger.propagate = False

    # httpx logs every request at INFO; the external API client logs its own
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger.info(
        "Logging configured with {} formatter",
        formatter_type,
        log_level=level,
    )

    _state.configured = True
