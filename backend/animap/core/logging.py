"""Logging configuration."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog

from animap.core.config import Settings, get_settings

APP_LOG_FILE = "animap.json.log"
HTTP_LOG_FILE = "animap.http.json.log"

HTTP_LOGGERS = ("httpx", "httpcore", "httpcore.connection", "httpcore.http11")

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,  # resolution_id, catalog, ...
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
]


def _close_handlers(logger: logging.Logger) -> None:
    """Close and drop all handlers of a logger."""
    for handler in logger.handlers[:]:
        handler.close()
    logger.handlers.clear()


def _json_formatter() -> structlog.stdlib.ProcessorFormatter:
    """Formatter that renders stdlib records (httpx, ...) as JSON lines."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
    )


def setup_logging(debug: bool = False, logs_dir: Path | None = None) -> None:
    """Setup structured logging with structlog.

    Configures:
    - Application logs: stdout (pretty in debug, JSON otherwise), or a JSON
      file when ``logs_dir`` is given
    - HTTP client logs (httpx/httpcore): separate JSON file at WARNING level

    Args:
        debug: Enable debug logging
        logs_dir: Optional directory for log files
    """
    log_level = logging.DEBUG if debug else logging.INFO

    app_handler: logging.Handler | None = None
    http_handler: logging.Handler | None = None
    if logs_dir:
        try:
            logs_dir.mkdir(parents=True, exist_ok=True)
            app_handler = logging.FileHandler(logs_dir / APP_LOG_FILE, encoding="utf-8")
            http_handler = logging.FileHandler(logs_dir / HTTP_LOG_FILE, encoding="utf-8")
            http_handler.setFormatter(_json_formatter())
        except OSError as e:
            # If file logging fails, log to stderr but don't crash
            sys.stderr.write(f"Warning: Failed to setup file logging: {e}\n")
            app_handler = http_handler = None

    if app_handler is None:
        app_handler = logging.StreamHandler(sys.stdout)
    app_handler.setLevel(log_level)

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=[app_handler],
        force=True,
    )

    for name in HTTP_LOGGERS:
        http_logger = logging.getLogger(name)
        _close_handlers(http_logger)
        http_logger.setLevel(logging.WARNING)
        if http_handler is not None:
            http_logger.propagate = False
            http_logger.addHandler(http_handler)
        else:
            http_logger.propagate = True

    # File logs are always JSON; console is pretty in debug mode
    if logs_dir and http_handler is not None:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        exception_formatter: structlog.types.Processor = structlog.processors.dict_tracebacks
    elif debug:
        renderer = structlog.dev.ConsoleRenderer(colors=True)
        exception_formatter = structlog.processors.format_exc_info
    else:
        renderer = structlog.processors.JSONRenderer()
        exception_formatter = structlog.processors.dict_tracebacks

    processors = [*_SHARED_PROCESSORS]
    if not isinstance(renderer, structlog.dev.ConsoleRenderer):
        processors.append(exception_formatter)
    processors.append(renderer)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logger = structlog.get_logger("animap.logging")
    logger.info(
        "Logging configured",
        level=logging.getLevelName(log_level),
        debug=debug,
        app_log_file=str(logs_dir / APP_LOG_FILE) if app_handler and logs_dir else None,
        http_log_file=str(logs_dir / HTTP_LOG_FILE) if http_handler and logs_dir else None,
        http_log_level=logging.getLevelName(logging.WARNING),
    )


def configure_logging(settings: Settings | None = None) -> None:
    """Setup logging from settings.

    Args:
        settings: Settings to use (if None, uses the cached settings)
    """
    if settings is None:
        settings = get_settings()
    setup_logging(
        debug=settings.is_debug,
        logs_dir=settings.logs_dir if settings.file_logging else None,
    )
