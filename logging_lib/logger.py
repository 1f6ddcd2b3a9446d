"""Structured logging facade."""

from __future__ import annotations

import traceback
from contextlib import contextmanager
from contextvars import ContextVar, Token
from threading import RLock
from typing import Any, Dict, List, Mapping, MutableMapping, Optional

from .config import LoggingSettings, get_settings
from .dispatcher import Dispatcher
from .redaction import RedactionRegistry, build_registry
from .sampling import should_emit
from .schema import build_log_record
from .sinks.memory import InMemorySink
from .sinks.stdout import StdoutSink


_CONTEXT: ContextVar[Mapping[str, Any]] = ContextVar("logging_lib_context", default={})


class StructuredLogger:
    """Structured logger bound to a component name."""

    def __init__(self, name: str, manager: "LoggerManager") -> None:
        self._name = name
        self._manager = manager

    @property
    def name(self) -> str:
        return self._name

    def debug(self, message: str, **fields: Any) -> None:
        self._log("DEBUG", message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log("INFO", message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log("WARNING", message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self._log("ERROR", message, **fields)

    def critical(self, message: str, **fields: Any) -> None:
        self._log("CRITICAL", message, **fields)

    def exception(self, message: str, **fields: Any) -> None:
        """Log an error message with the active exception's traceback."""

        fields.setdefault("exc_info", traceback.format_exc())
        self._log("ERROR", message, **fields)

    def _log(self, level: str, message: str, **fields: Any) -> None:
        manager = self._manager
        settings = manager.settings

        if not should_emit(level, settings):
            return

        runtime_context = dict(manager.base_context)
        runtime_context.update(_CONTEXT.get())

        explicit_context = fields.pop("context", {}) or {}
        if explicit_context:
            runtime_context.update(explicit_context)

        # ``extra`` mirrors the stdlib calling convention; flatten it into fields
        extra = fields.pop("extra", None)
        if isinstance(extra, Mapping):
            for key, value in extra.items():
                fields.setdefault(key, value)

        record = build_log_record(
            level=level,
            message=message,
            settings=settings,
            component=self._name,
            context=runtime_context,
            **fields,
        )
        redactor = manager.redactor
        sanitized = redactor.apply(record) if redactor else record

        manager.dispatcher.submit(sanitized)


class LoggerManager:
    """Owns settings, sinks and the logger cache."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._loggers: Dict[str, StructuredLogger] = {}
        self._settings: LoggingSettings | None = None
        self._dispatcher: Dispatcher | None = None
        self._base_context: MutableMapping[str, Any] = {}
        self._redactor: Optional[RedactionRegistry] = None

    def configure(self, settings: LoggingSettings) -> None:
        with self._lock:
            self._settings = settings
            self._loggers.clear()

            sinks = []
            for sink_name in settings.sinks:
                name = sink_name.strip().lower()

                if name == "stdout":
                    sinks.append(StdoutSink(settings))
                elif name == "memory":
                    sinks.append(InMemorySink())

            if not sinks:
                sinks.append(StdoutSink(settings))

            self._dispatcher = Dispatcher(sinks)
            self._base_context = dict(settings.default_context)
            self._redactor = build_registry(settings.redaction)

    @property
    def dispatcher(self) -> Dispatcher:
        with self._lock:
            if self._dispatcher is None:
                self.configure(self.settings)
            assert self._dispatcher is not None
            return self._dispatcher

    @property
    def settings(self) -> LoggingSettings:
        with self._lock:
            settings = self._settings

            if settings is None:
                settings = get_settings()
                self.configure(settings)

            return settings

    @property
    def base_context(self) -> Mapping[str, Any]:
        return dict(self._base_context)

    @property
    def redactor(self) -> Optional[RedactionRegistry]:
        return self._redactor

    def get_logger(self, name: str) -> StructuredLogger:
        with self._lock:
            logger = self._loggers.get(name)

            if logger is None:
                logger = StructuredLogger(name, self)
                self._loggers[name] = logger

            return logger

    def reset(self) -> None:
        with self._lock:
            self._loggers.clear()
            self._settings = None
            self._dispatcher = None
            self._base_context.clear()
            self._redactor = None


_MANAGER = LoggerManager()


def configure_manager(settings: LoggingSettings) -> None:
    _MANAGER.configure(settings)


def get_logger(name: str) -> StructuredLogger:
    """Get a logger with a given name."""

    return _MANAGER.get_logger(name)


@contextmanager
def logger_context(**context: Any):
    """Context manager for temporary context variables."""

    token = push_context(**context)
    try:
        yield
    finally:
        pop_context(token)


def reset_loggers() -> None:
    _MANAGER.reset()


def get_memory_records() -> List[Mapping[str, object]]:
    """Return records captured by the memory sink, if one is configured."""

    dispatcher = _MANAGER._dispatcher

    if dispatcher is None:
        return []

    for sink in dispatcher.sinks:
        if isinstance(sink, InMemorySink):
            return list(sink.records)

    return []


def push_context(**context: Any) -> Token:
    current = dict(_CONTEXT.get())
    current.update(context)
    return _CONTEXT.set(current)


def pop_context(token: Token) -> None:
    _CONTEXT.reset(token)


def get_context() -> Mapping[str, Any]:
    return dict(_CONTEXT.get())


def clear_context() -> None:
    _CONTEXT.set({})
