"""
RSSVault Logging Configuration
==============================

Logging for the ingestion pipeline. Component loggers live under the
``rssvault`` namespace and carry feed context (feed id and URL) that both
formatters surface: the JSON formatter as top-level keys, the console
formatter as a short ``[component feed-id]`` tag.
"""

import logging
import logging.handlers
import sys
import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional

ROOT_LOGGER_NAME = "rssvault"

# Keys promoted to the top level of JSON records when present
CONTEXT_FIELDS = ("component", "feed_id", "feed_url")

_RECORD_ATTRIBUTES = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRIBUTES}


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with feed context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        extra = _extra_fields(record)

        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            if key in extra:
                log_data[key] = extra.pop(key)

        if extra:
            log_data["extra"] = extra
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Compact colored console output for interactive CLI runs."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        component = getattr(record, "component", None) or (record.name or "root").rsplit(".", 1)[-1]
        feed_id = getattr(record, "feed_id", None)
        tag = f"{component} {feed_id[:8]}" if feed_id else component

        formatted = (
            f"{color}[{timestamp}] {record.levelname:8}{self.RESET} "
            f"[{tag}] {record.getMessage()}"
        )
        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)
        return formatted


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    structured: bool = False,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Attach console and/or rotating file handlers to a logger.

    Existing handlers are replaced, so calling this twice does not duplicate
    output. File output is always JSON.

    Args:
        name: Logger name
        level: Logging level name
        log_file: Path to log file, None for no file output
        console: Whether to log to stdout
        structured: JSON instead of colored text on the console
        max_file_size: Rotate the log file after this many bytes
        backup_count: Number of rotated files to keep

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            StructuredFormatter() if structured else ColoredConsoleFormatter()
        )
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_file_size, backupCount=backup_count, encoding="utf-8"
        )
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


class LoggerAdapter(logging.LoggerAdapter):
    """Merges the adapter's feed context into each record's extras."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger_for_component(
    component_name: str,
    feed_id: Optional[str] = None,
    feed_url: Optional[str] = None,
) -> LoggerAdapter:
    """Get a logger adapter for an ingestion component.

    Args:
        component_name: Component name, e.g. 'pipeline' or 'feed_parser'
        feed_id: Feed the messages are about (optional)
        feed_url: URL of that feed (optional)

    Returns:
        Logger adapter named ``rssvault.<component_name>``
    """
    extra_context = {"component": component_name}
    if feed_id:
        extra_context["feed_id"] = feed_id
    if feed_url:
        extra_context["feed_url"] = feed_url

    return LoggerAdapter(logging.getLogger(f"{ROOT_LOGGER_NAME}.{component_name}"), extra_context)


def configure_application_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = "logs/rssvault.log",
    enable_console: bool = True,
    structured_logging: bool = False,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """Configure the ``rssvault`` logger tree and quiet chatty libraries."""
    setup_logger(
        name=ROOT_LOGGER_NAME,
        level=log_level,
        log_file=log_file,
        console=enable_console,
        structured=structured_logging,
        max_file_size=max_file_size,
        backup_count=backup_count,
    )

    for library in ("aiohttp", "feedparser", "bs4"):
        logging.getLogger(library).setLevel(logging.WARNING)


class PerformanceLogger:
    """Context manager that logs how long an ingestion step took."""

    def __init__(self, logger, operation: str, **kwargs):
        """Initialize performance logger.

        Args:
            logger: Logger or adapter to report to
            operation: Operation being timed
            **kwargs: Additional context for the operation
        """
        self.logger = logger
        self.operation = operation
        self.context = kwargs
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[int] = None

    def __enter__(self) -> "PerformanceLogger":
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is None:
            return

        seconds = time.perf_counter() - self.start_time
        self.duration_ms = int(seconds * 1000)
        context = {**self.context, "duration_ms": self.duration_ms, "success": exc_type is None}

        if exc_type:
            self.logger.error(f"Failed {self.operation} in {seconds:.3f}s", extra=context)
        else:
            self.logger.info(f"Completed {self.operation} in {seconds:.3f}s", extra=context)
