"""
quizstreak Logging Subsystem

Purpose
-------
One logging stack for the services, the repositories and the bootstrap:
records are produced on the event loop, handed to a bounded queue and
written by a listener thread, so a slow console or disk never stalls a
challenge.

Outputs
-------
- Console: JSON in production, coloured text on a TTY, plain text otherwise
- File (optional): ``logs/quizstreak.json.log``, JSON, rotated at UTC midnight

Context
-------
`LogContext` binds user_id, session_id, operation and a short correlation id
to a ContextVar. `ContextFilter` copies them onto each record before it is
queued. Fields passed through ``extra=`` are kept as-is and end up under
"extra" in JSON output.

Settings are read from Config when `setup_logging()` runs, not at import, so
the config package can log through this module.
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional


_request_context: ContextVar[Dict[str, Any]] = ContextVar(
    "request_context",
    default={},
)

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "quizstreak.json.log"
QUEUE_MAX_SIZE = 10_000

# Third-party loggers that are too chatty at INFO.
QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncpg", "asyncio")

_INITIALIZED_FLAG = "_quizstreak_logging_initialized"


# ============================================================================
# Settings
# ============================================================================


@dataclass(frozen=True, slots=True)
class LoggerConfig:
    """Resolved logging settings. Build with `LoggerConfig.from_config()`."""

    environment: str = "development"
    level: int = logging.INFO
    use_json: bool = False
    use_colors: bool = False
    use_file: bool = False
    logs_dir: Optional[Path] = None
    backup_count: int = 1

    @classmethod
    def from_config(cls) -> "LoggerConfig":
        from quizstreak.core.config.config import Config

        environment = str(Config.ENVIRONMENT).lower()
        production = environment == "production"

        level = getattr(logging, str(Config.LOG_LEVEL).upper(), None)
        if not isinstance(level, int):
            level = logging.INFO

        use_json = production if Config.LOG_JSON is None else bool(Config.LOG_JSON)
        return cls(
            environment=environment,
            level=level,
            use_json=use_json,
            use_colors=bool(Config.LOG_COLORS) and not use_json and sys.stdout.isatty(),
            use_file=bool(Config.LOG_TO_FILE),
            logs_dir=Path(Config.LOGS_DIR).resolve(),
        )


# ============================================================================
# Logging Metrics / Health
# ============================================================================


@dataclass(slots=True)
class LoggingMetrics:
    records_enqueued: int = 0
    records_dropped: int = 0
    listener_errors: int = 0


@dataclass(frozen=True, slots=True)
class LoggingHealth:
    initialized: bool
    queue_size: int
    queue_max_size: int
    records_enqueued: int
    records_dropped: int
    listener_errors: int


_logging_metrics: LoggingMetrics = LoggingMetrics()
_log_queue: Optional["queue.Queue[logging.LogRecord]"] = None
_queue_listener: Optional[QueueListener] = None


# ============================================================================
# Filters & Formatters
# ============================================================================


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context: Dict[str, Any] = _request_context.get({})

        # Explicit extra={...} wins over the ambient context.
        defaults = {
            "user_id": context.get("user_id", "N/A"),
            "session_id": context.get("session_id", "N/A"),
            "correlation_id": context.get("correlation_id") or "N/A",
            "component": context.get("component") or record.name.split(".", 1)[0],
            "operation": context.get("operation") or "N/A",
        }
        for attr, value in defaults.items():
            if not hasattr(record, attr):
                setattr(record, attr, value)

        return True


class ColoredFormatter(logging.Formatter):
    COLORS: Dict[str, str] = {
        "DEBUG": "\033[90m",
        "INFO": "\033[94m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "CRITICAL": "\033[91m\033[1m",
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        original = record.levelname
        prefix = self.COLORS.get(original, "")
        reset = self.COLORS["RESET"] if prefix else ""

        if prefix:
            record.levelname = f"{prefix}{original}{reset}"

        try:
            return super().format(record)
        finally:
            record.levelname = original


class JSONFormatter(logging.Formatter):
    STANDARD_ATTRS = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
        "asctime",
    }

    CONTEXT_ATTRS = {
        "user_id",
        "session_id",
        "correlation_id",
        "component",
        "operation",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        created_dt = datetime.fromtimestamp(record.created, tz=timezone.utc)

        log_data: Dict[str, Any] = {
            "timestamp": created_dt.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for attr in self.CONTEXT_ATTRS:
            value = getattr(record, attr, None)
            if value not in (None, "N/A"):
                log_data[attr] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra: Dict[str, Any] = {}
        for key, val in record.__dict__.items():
            if key in self.STANDARD_ATTRS or key in self.CONTEXT_ATTRS:
                continue
            if key.startswith("_"):
                continue
            extra[key] = val

        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, ensure_ascii=False, default=str)


# ============================================================================
# Queue Handler & Listener
# ============================================================================


class QuizStreakQueueHandler(QueueHandler):
    """Non-blocking enqueue; a full queue drops the record and counts it."""

    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            _logging_metrics.records_dropped += 1
            sys.stderr.write("quizstreak: log queue full, record dropped\n")
        else:
            _logging_metrics.records_enqueued += 1


class QuizStreakQueueListener(QueueListener):
    def handleError(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        _logging_metrics.listener_errors += 1
        sys.stderr.write(f"quizstreak: log handler failed for record from {record.name}\n")


# ============================================================================
# Global Setup
# ============================================================================


def _console_formatter(settings: LoggerConfig) -> logging.Formatter:
    if settings.use_json:
        return JSONFormatter()
    formatter_cls = ColoredFormatter if settings.use_colors else logging.Formatter
    return formatter_cls(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT)


def _build_handlers(settings: LoggerConfig) -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_console_formatter(settings))
    handlers: List[logging.Handler] = [console]

    if settings.use_file and settings.logs_dir is not None:
        settings.logs_dir.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            filename=str(settings.logs_dir / LOG_FILE_NAME),
            when="midnight",
            backupCount=settings.backup_count,
            encoding="utf-8",
            utc=True,
        )
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(settings.level)
    return handlers


def setup_logging(settings: Optional[LoggerConfig] = None) -> None:
    """
    Route the root logger through the queue. Calling it again is a no-op
    until `shutdown_logging()` has run.
    """
    global _queue_listener, _logging_metrics, _log_queue

    root = logging.getLogger()
    if getattr(root, _INITIALIZED_FLAG, False):
        return

    settings = settings or LoggerConfig.from_config()
    _logging_metrics = LoggingMetrics()
    _log_queue = queue.Queue(QUEUE_MAX_SIZE)

    _queue_listener = QuizStreakQueueListener(
        _log_queue, *_build_handlers(settings), respect_handler_level=True
    )
    _queue_listener.start()

    queue_handler = QuizStreakQueueHandler(_log_queue)
    queue_handler.setLevel(settings.level)
    # Context must be captured on the producing task, not on the listener thread.
    queue_handler.addFilter(ContextFilter())

    root.handlers.clear()
    root.setLevel(settings.level)
    root.addHandler(queue_handler)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    setattr(root, _INITIALIZED_FLAG, True)

    logging.getLogger(__name__).info(
        "Logging initialized",
        extra={
            "environment": settings.environment,
            "log_level": logging.getLevelName(settings.level),
            "json": settings.use_json,
            "file_sink": settings.use_file,
        },
    )


def shutdown_logging() -> None:
    """Flush the queue, stop the listener thread and detach root handlers."""
    global _queue_listener, _log_queue

    root = logging.getLogger()
    if not getattr(root, _INITIALIZED_FLAG, False):
        return

    logging.getLogger(__name__).info("Logging shutting down")

    if _queue_listener is not None:
        # stop() drains whatever is still queued before returning.
        _queue_listener.stop()
        for handler in _queue_listener.handlers:
            handler.close()
        _queue_listener = None

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    setattr(root, _INITIALIZED_FLAG, False)
    _log_queue = None


def get_logging_health() -> LoggingHealth:
    return LoggingHealth(
        initialized=bool(getattr(logging.getLogger(), _INITIALIZED_FLAG, False)),
        queue_size=_log_queue.qsize() if _log_queue is not None else 0,
        queue_max_size=_log_queue.maxsize if _log_queue is not None else 0,
        records_enqueued=_logging_metrics.records_enqueued,
        records_dropped=_logging_metrics.records_dropped,
        listener_errors=_logging_metrics.listener_errors,
    )


# ============================================================================
# Public API
# ============================================================================


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Bind user/session context to every log record emitted inside the block.

    Blocks nest: inner fields are layered over the outer context and the
    outer context comes back on exit. Each block gets its own correlation id
    unless one is passed in.

    >>> async with LogContext(user_id="u-1", operation="record_completion"):
    ...     logger.info("Completion saved")
    """

    def __init__(
        self,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ) -> None:
        fields = {
            "user_id": user_id,
            "session_id": session_id,
            "component": component,
            "operation": operation,
            **extra,
        }
        self.fields: Dict[str, Any] = {
            key: str(value) if key in ("user_id", "session_id") else value
            for key, value in fields.items()
            if value is not None
        }
        self.fields["correlation_id"] = correlation_id or uuid.uuid4().hex[:8]
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        self._token = _request_context.set({**_request_context.get({}), **self.fields})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _request_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def get_log_context() -> Dict[str, Any]:
    return dict(_request_context.get({}))


def clear_log_context() -> None:
    _request_context.set({})
