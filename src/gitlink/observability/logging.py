"""Logging setup: human-readable console narrative plus optional JSON-lines log file."""

from __future__ import annotations

import contextvars
import json
import logging
import logging.handlers
import queue
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Final

import structlog

_DEFAULT_LOGGER_NAME: Final[str] = "gitlink"
_DEFAULT_MAX_BYTES: Final[int] = 25 * 1024
_DEFAULT_BACKUP_COUNT: Final[int] = 5
_INDENT: Final[str] = "  "

_STANDARD_LOG_RECORD_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
    }
)

_PROJECT_CONTEXT: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "gitlink_project", default=None
)

_ACTIVE_HANDLE_LOCK = threading.Lock()
_ACTIVE_HANDLE: LoggingHandle | None = None


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Configuration for console + optional file logging."""

    logger_name: str = _DEFAULT_LOGGER_NAME
    level: int | str = "INFO"
    debug: bool = False
    log_file: Path | str | None = None
    log_to_stdout: bool = True
    max_bytes: int = _DEFAULT_MAX_BYTES
    backup_count: int = _DEFAULT_BACKUP_COUNT


class _ConsoleFormatter(logging.Formatter):
    """Plain narrative lines; warnings and errors carry a level tag."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.levelno >= logging.WARNING:
            stripped = message.lstrip(" ")
            indent = message[: len(message) - len(stripped)]
            message = f"{indent}[{record.levelname}] {stripped}"
        if record.exc_info is not None:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


class _JsonLineFormatter(logging.Formatter):
    """Formatter that emits canonical JSON objects per log line."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, object] = {
            "timestamp": _iso8601z_from_epoch(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage().strip(),
        }
        project = getattr(record, "project", None)
        if isinstance(project, str) and project:
            event["project"] = project

        extras = _extract_extra_fields(record)
        if extras:
            event["fields"] = extras
        if record.exc_info is not None:
            event["exception"] = self.formatException(record.exc_info)
        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class _ContextQueueHandler(logging.handlers.QueueHandler):
    """Queue handler that stamps the active project before hand-off."""

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        project = _PROJECT_CONTEXT.get()
        if project is not None and not hasattr(record, "project"):
            record.project = project
        return super().prepare(record)


def _is_narrative_record(record: logging.LogRecord) -> bool:
    return not getattr(record, "_structured", False)


def _mark_structured(
    _logger: Any, _method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    event_dict["_structured"] = True
    return event_dict


def configure_structlog() -> None:
    """Route structlog events through the stdlib tree so they reach the JSON log file.

    Structured events stay out of the console narrative.
    """

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            _mark_structured,
            structlog.stdlib.render_to_log_kwargs,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


class LoggingHandle:
    """Runtime handle for an active logging setup."""

    def __init__(
        self,
        *,
        logger: logging.Logger,
        log_path: Path | None,
        queue_handler: logging.handlers.QueueHandler,
        sink_handlers: tuple[logging.Handler, ...],
        listener: logging.handlers.QueueListener,
    ) -> None:
        self.logger = logger
        self.log_path = log_path
        self._queue_handler = queue_handler
        self._sink_handlers = sink_handlers
        self._listener = listener
        self._shutdown_lock = threading.Lock()
        self._is_shutdown = False

    @property
    def is_shutdown(self) -> bool:
        return self._is_shutdown

    def shutdown(self) -> None:
        with self._shutdown_lock:
            if self._is_shutdown:
                return
            self._listener.stop()
            self.logger.removeHandler(self._queue_handler)
            self._queue_handler.close()
            for handler in self._sink_handlers:
                handler.flush()
                handler.close()
            self._is_shutdown = True


def setup_logging(config: LoggingConfig | None = None) -> LoggingHandle:
    """Configure queue-backed logging for one run and return its handle."""

    resolved = config or LoggingConfig()
    _shutdown_previous_active_handle()

    level = logging.DEBUG if resolved.debug else _parse_log_level(resolved.level)
    sink_handlers: list[logging.Handler] = []

    if resolved.log_to_stdout:
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(_ConsoleFormatter())
        console.addFilter(_is_narrative_record)
        sink_handlers.append(console)

    log_path: Path | None = None
    if resolved.log_file:
        log_path = Path(resolved.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max(1, int(resolved.max_bytes)),
            backupCount=max(1, int(resolved.backup_count)),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(_JsonLineFormatter())
        sink_handlers.append(file_handler)

    configure_structlog()

    logger = logging.getLogger(resolved.logger_name)
    logger.setLevel(level)
    logger.propagate = False
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()

    log_queue: queue.Queue[logging.LogRecord] = queue.Queue()
    queue_handler = _ContextQueueHandler(log_queue)
    queue_handler.setLevel(level)
    listener = logging.handlers.QueueListener(
        log_queue,
        *sink_handlers,
        respect_handler_level=True,
    )
    listener.start()
    logger.addHandler(queue_handler)

    handle = LoggingHandle(
        logger=logger,
        log_path=log_path,
        queue_handler=queue_handler,
        sink_handlers=tuple(sink_handlers),
        listener=listener,
    )
    with _ACTIVE_HANDLE_LOCK:
        global _ACTIVE_HANDLE
        _ACTIVE_HANDLE = handle
    return handle


def shutdown_logging(handle: LoggingHandle | None = None) -> None:
    """Stop the listener and close all sinks."""

    resolved = handle if handle is not None else get_active_logging_handle()
    if resolved is None:
        return
    resolved.shutdown()
    with _ACTIVE_HANDLE_LOCK:
        global _ACTIVE_HANDLE
        if _ACTIVE_HANDLE is resolved:
            _ACTIVE_HANDLE = None


def get_active_logging_handle() -> LoggingHandle | None:
    with _ACTIVE_HANDLE_LOCK:
        return _ACTIVE_HANDLE


@contextmanager
def project_scope(name: str) -> Iterator[None]:
    """Tag every record emitted in scope with the project being linked."""

    token = _PROJECT_CONTEXT.set(name)
    try:
        yield
    finally:
        _PROJECT_CONTEXT.reset(token)


class LogScope:
    """Indentation-scoped progress narrative passed explicitly down the call chain.

    ``indented()`` always restores the previous depth, including when the body
    raises. Use ``fork()`` to hand an independent scope to parallel work.
    """

    __slots__ = ("_depth", "_logger")

    def __init__(self, logger: logging.Logger | None = None, *, depth: int = 0) -> None:
        self._logger = logger if logger is not None else logging.getLogger(_DEFAULT_LOGGER_NAME)
        self._depth = depth

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def fork(self) -> LogScope:
        return LogScope(self._logger, depth=self._depth)

    @contextmanager
    def indented(self) -> Iterator[LogScope]:
        self._depth += 1
        try:
            yield self
        finally:
            self._depth -= 1

    def debug(self, message: str, *args: object) -> None:
        self._log(logging.DEBUG, message, args)

    def info(self, message: str, *args: object) -> None:
        self._log(logging.INFO, message, args)

    def warning(self, message: str, *args: object, exc_info: BaseException | None = None) -> None:
        self._log(logging.WARNING, message, args, exc_info=exc_info)

    def error(self, message: str, *args: object, exc_info: BaseException | None = None) -> None:
        self._log(logging.ERROR, message, args, exc_info=exc_info)

    def blank(self) -> None:
        self._logger.info("")

    def _log(
        self,
        level: int,
        message: str,
        args: tuple[object, ...],
        *,
        exc_info: BaseException | None = None,
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        prefix = _INDENT * self._depth
        self._logger.log(level, prefix + message, *args, exc_info=exc_info)


def _shutdown_previous_active_handle() -> None:
    existing = get_active_logging_handle()
    if existing is not None:
        existing.shutdown()
    with _ACTIVE_HANDLE_LOCK:
        global _ACTIVE_HANDLE
        _ACTIVE_HANDLE = None


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    normalized = value.strip().upper()
    parsed = logging.getLevelName(normalized)
    if isinstance(parsed, int):
        return parsed
    raise ValueError(f"unsupported logging level {value!r}")


def _iso8601z_from_epoch(epoch_seconds: float) -> str:
    timestamp = datetime.fromtimestamp(epoch_seconds, tz=UTC)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _extract_extra_fields(record: logging.LogRecord) -> dict[str, object]:
    fields: dict[str, object] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_LOG_RECORD_FIELDS or key == "project" or key.startswith("_"):
            continue
        if isinstance(value, (str, int, float, bool)) or value is None:
            fields[key] = value
        else:
            fields[key] = str(value)
    return fields


__all__ = [
    "LogScope",
    "LoggingConfig",
    "LoggingHandle",
    "configure_structlog",
    "get_active_logging_handle",
    "project_scope",
    "setup_logging",
    "shutdown_logging",
]
