# -*- coding: utf-8 -*-
"""
Centralized logging configuration for the workstation bootstrap.

Console output is human-readable and decorated with a symbol per level;
an optional log file receives JSON-structured records, one per line, so a
bootstrap run can be inspected after the terminal is gone.
"""

import json
import logging
import os
import socket
import sys
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional

from settings.config_models import SYMBOLS_DEFAULT

CONSOLE_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(symbol)s %(message)s"
CONSOLE_LOG_FORMAT_WITH_PREFIX = "{log_prefix} %(asctime)s - %(levelname)s - %(symbol)s %(message)s"

# Attributes every LogRecord carries; anything else arrived through `extra`.
_RESERVED_RECORD_ATTRS = frozenset(
    [
        "name", "msg", "args", "levelname", "levelno", "pathname",
        "filename", "module", "lineno", "funcName", "created", "msecs",
        "relativeCreated", "thread", "threadName", "processName",
        "process", "getMessage", "exc_info", "exc_text", "stack_info",
        "taskName", "symbol", "message", "asctime",
    ]
)


class SymbolFormatter(logging.Formatter):
    """
    A custom formatter that adds symbols to log messages based on the log level.
    """

    def __init__(self, fmt=None, datefmt=None, style="%", symbols=None):
        super().__init__(fmt, datefmt, style)
        self.symbols = symbols or SYMBOLS_DEFAULT

    def format(self, record):
        if record.levelno == logging.DEBUG:
            record.symbol = self.symbols.get("debug", "🐛")
        elif record.levelno == logging.INFO:
            record.symbol = self.symbols.get("info", "ℹ️")
        elif record.levelno == logging.WARNING:
            record.symbol = self.symbols.get("warning", "⚠️")
        elif record.levelno == logging.ERROR:
            record.symbol = self.symbols.get("error", "❌")
        elif record.levelno == logging.CRITICAL:
            record.symbol = self.symbols.get("critical", "🔥")
        else:
            record.symbol = ""

        return super().format(record)


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging.

    Formats log records as JSON with consistent structure including:
    - timestamp (ISO format, UTC)
    - level
    - service name
    - message
    - additional metadata passed through `extra`
    """

    def __init__(self, service_name: str = "workstation-bootstrap"):
        super().__init__()
        self.service_name = service_name
        self.hostname = socket.gethostname()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process": record.process,
            "hostname": self.hostname,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_ATTRS
        }
        if extra_fields:
            log_entry["extra"] = extra_fields

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(
    service_name: str,
    log_level: Optional[str] = None,
    enable_console: bool = True,
    log_file_path: Optional[str] = None,
    log_prefix: Optional[str] = None,
    symbols: Optional[Dict[str, str]] = None,
) -> logging.Logger:
    """
    Set up logging for a bootstrap run.

    Args:
        service_name: Name of the top-level logger (e.g., "bootstrap", "update")
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Falls back to $LOG_LEVEL, then INFO.
        enable_console: Whether to enable console logging
        log_file_path: Path to a JSON log file; None disables file logging
        log_prefix: Optional prefix for console lines
        symbols: Level symbols for the console formatter

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.environ.get("LOG_LEVEL", "INFO")

    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
        log_level = "INFO"

    if log_prefix:
        console_format = CONSOLE_LOG_FORMAT_WITH_PREFIX.format(
            log_prefix=log_prefix
        )
    else:
        console_format = CONSOLE_LOG_FORMAT

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers: List[logging.Handler] = []
    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            SymbolFormatter(console_format, symbols=symbols)
        )
        handlers.append(console_handler)

    if log_file_path:
        try:
            os.makedirs(os.path.dirname(os.path.abspath(log_file_path)), exist_ok=True)
            file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
            file_handler.setFormatter(JSONFormatter(service_name))
            handlers.append(file_handler)
        except OSError as e:
            print(
                f"Warning: Could not open log file {log_file_path}: {e}",
                file=sys.stderr,
            )

    for handler in handlers:
        handler.setLevel(numeric_level)
        root_logger.addHandler(handler)

    logger = logging.getLogger(service_name)
    logger.debug(
        "Logging initialized",
        extra={
            "log_level": log_level.upper(),
            "console_enabled": enable_console,
            "file_enabled": bool(log_file_path),
        },
    )
    return logger


def log_performance(func):
    """
    Decorator to log how long a step took and whether it succeeded.

    Usage:
        @log_performance
        def run_entry_playbook(...):
            ...
    """

    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__)
        start_time = time.time()

        try:
            result = func(*args, **kwargs)
            duration = time.time() - start_time
            logger.info(
                f"{func.__name__} completed in {duration:.1f}s",
                extra={
                    "step_function": func.__name__,
                    "duration_seconds": round(duration, 3),
                    "status": "success",
                },
            )
            return result
        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                f"{func.__name__} failed after {duration:.1f}s",
                extra={
                    "step_function": func.__name__,
                    "duration_seconds": round(duration, 3),
                    "status": "error",
                    "error": str(e),
                },
            )
            raise

    wrapper.__name__ = func.__name__
    wrapper.__doc__ = func.__doc__
    wrapper.__wrapped__ = func
    return wrapper
