"""
Logging utilities for the asset uploader.

Provides structured logging with entry/exit decorators, JSON formatting,
correlation IDs per upload batch, and the explicit per-run ``UploadLogger``
that the orchestrator and its collaborators write their progress lines to.

Features:
    - Structured JSON logging for CI environments (LOG_FORMAT=json)
    - Correlation ID tracking across one batch run
    - Entry/exit decorators with timing for sync and async functions
    - Colorized console output for local builds
    - Verbose-only output gated by the ``enableLog`` option

Example usage:
    >>> from asset_uploader.utils.logging import get_logger, UploadLogger
    >>>
    >>> upload_log = UploadLogger(get_logger("asset_uploader"), enabled=True)
    >>> upload_log.log("Upload starts......")
    >>> upload_log.debug("Final configuration: ...")  # only with enabled=True
"""

import functools
import inspect
import json
import logging
import os
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, TypeVar, cast

import coloredlogs

# Type variable for generic decorator typing
F = TypeVar("F", bound=Callable[..., Any])

# Context variable for correlation ID (one per batch run)
_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Global logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
JSON_LOG_FORMAT = os.getenv("LOG_FORMAT", "text").lower() == "json"

# Prefix on every progress line written through UploadLogger
LOG_TAG = "[asset-uploader]:"

# Standard LogRecord attributes excluded from the JSON "extra" block
_RESERVED_RECORD_KEYS = frozenset(
    [
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "getMessage",
    ]
)


# ============================================================================
# Correlation ID Management
# ============================================================================

def get_correlation_id() -> str:
    """
    Get current correlation ID or generate new one.

    Returns:
        Current correlation ID (generates UUID if not set)
    """
    corr_id = _correlation_id.get()
    if corr_id is None:
        corr_id = str(uuid.uuid4())
        _correlation_id.set(corr_id)
    return corr_id


def set_correlation_id(corr_id: str) -> None:
    """
    Set correlation ID for current context.

    The orchestrator calls this once per batch so every line logged by the
    concurrent per-file pipelines carries the same id.

    Args:
        corr_id: Correlation ID to set
    """
    _correlation_id.set(corr_id)


def clear_correlation_id() -> None:
    """Clear correlation ID for current context."""
    _correlation_id.set(None)


# ============================================================================
# JSON Formatter
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Outputs logs in JSON format with standard fields and custom metadata.

    Example output:
        {
            "timestamp": "2026-01-04T10:30:15.123456+00:00",
            "level": "INFO",
            "logger": "asset_uploader.uploader.task",
            "message": "Uploaded successfully 3/12: static/app/index.js",
            "correlation_id": "batch-5f0c...",
            "extra": {"remote_key": "static/app/index.js", "event": "upload_success"}
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON string.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
            "source": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_KEYS
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        # CI runners usually expose these
        log_data["environment"] = {
            "hostname": os.getenv("HOSTNAME", "unknown"),
            "ci_job": os.getenv("CI_JOB_ID", ""),
        }

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO", enable_colors: bool = True) -> None:
    """
    Configure global logging settings for the application.

    Sets up structured JSON logging when LOG_FORMAT=json, colorized text
    through coloredlogs otherwise.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_colors: Whether to enable colorized console output (default: True)

    Example:
        >>> setup_logging(level="DEBUG", enable_colors=False)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    if JSON_LOG_FORMAT:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(console_handler)
    elif enable_colors:
        coloredlogs.install(
            level=log_level,
            fmt=LOG_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            logger=root_logger,
        )
    else:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(
            logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        )
        root_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


# ============================================================================
# Per-run upload logger
# ============================================================================

class UploadLogger:
    """
    Progress logger handed to the orchestrator at construction.

    ``log``, ``warn`` and ``error`` always emit. ``debug`` is the verbose
    channel: it emits at INFO when ``enabled`` is set (the ``enableLog``
    option) and at DEBUG otherwise, so configuration dumps stay out of normal
    build output.

    Args:
        logger: Underlying standard library logger
        enabled: Whether verbose lines are promoted to INFO
    """

    def __init__(self, logger: Optional[logging.Logger] = None, enabled: bool = False) -> None:
        self.logger = logger or get_logger("asset_uploader")
        self.enabled = enabled

    def _format(self, message: str) -> str:
        return f"{LOG_TAG} {message}"

    def log(self, message: str, **extra: Any) -> None:
        self.logger.info(self._format(message), extra=extra or None)

    def warn(self, message: str, **extra: Any) -> None:
        self.logger.warning(self._format(message), extra=extra or None)

    def error(self, message: str, **extra: Any) -> None:
        self.logger.error(self._format(message), extra=extra or None)

    def debug(self, message: str, **extra: Any) -> None:
        level = logging.INFO if self.enabled else logging.DEBUG
        self.logger.log(level, self._format(message), extra=extra or None)


# ============================================================================
# Function call decorator
# ============================================================================

def _format_call_arguments(func: Callable[..., Any], args: Any, kwargs: Any) -> str:
    arg_names = func.__code__.co_varnames[: func.__code__.co_argcount]
    args_repr = [f"{name}={value!r}" for name, value in zip(arg_names, args)]
    kwargs_repr = [f"{key}={value!r}" for key, value in kwargs.items()]
    return ", ".join(args_repr + kwargs_repr)


def log_function_call(func: F) -> F:
    """
    Decorator that logs function entry and exit with parameters and return values.

    Works for plain functions and coroutine functions. Entry and exit are
    logged at DEBUG, and arguments and results are only formatted when DEBUG
    is enabled for the module logger. Exceptions are logged at ERROR with
    traceback and re-raised.

    Args:
        func: Function to be decorated

    Returns:
        Wrapped function with logging

    Example:
        >>> @log_function_call
        ... def collect_output_files(out_dir: str) -> list:
        ...     return []
        >>>
        >>> # 2026-01-04 10:30:15 - module - DEBUG - ENTER collect_output_files(...)
        >>> # 2026-01-04 10:30:15 - module - DEBUG - EXIT collect_output_files -> [] (0.00s)
    """
    logger = get_logger(func.__module__)

    def _enter(args: Any, kwargs: Any) -> datetime:
        if not logger.isEnabledFor(logging.DEBUG):
            return datetime.now()
        logger.debug(
            f"ENTER {func.__name__}",
            extra={
                "function": func.__name__,
                "arguments": _format_call_arguments(func, args, kwargs),
                "correlation_id": get_correlation_id(),
                "event": "function_entry",
            },
        )
        return datetime.now()

    def _exit(start_time: datetime, result: Any) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        execution_time = (datetime.now() - start_time).total_seconds()
        logger.debug(
            f"EXIT {func.__name__} -> {result!r} ({execution_time:.2f}s)",
            extra={
                "function": func.__name__,
                "duration_seconds": execution_time,
                "event": "function_exit",
                "status": "success",
            },
        )

    def _error(start_time: datetime, error: Exception) -> None:
        execution_time = (datetime.now() - start_time).total_seconds()
        logger.error(
            f"ERROR {func.__name__} raised {type(error).__name__}: {error}",
            extra={
                "function": func.__name__,
                "duration_seconds": execution_time,
                "event": "function_error",
                "status": "error",
                "error_type": type(error).__name__,
            },
            exc_info=True,
        )

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = _enter(args, kwargs)
            try:
                result = await func(*args, **kwargs)
            except Exception as error:
                _error(start_time, error)
                raise
            _exit(start_time, result)
            return result

        return cast(F, async_wrapper)

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start_time = _enter(args, kwargs)
        try:
            result = func(*args, **kwargs)
        except Exception as error:
            _error(start_time, error)
            raise
        _exit(start_time, result)
        return result

    return cast(F, wrapper)
