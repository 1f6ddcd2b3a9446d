"""Synchronous dispatcher fanning log records out to sinks."""

from __future__ import annotations

import sys
import threading
from typing import Iterable, List, Mapping, Protocol


class Sink(Protocol):
    """A sink for log records."""

    def emit(self, record: Mapping[str, object]) -> None:  # pragma: no cover - protocol
        ...


class Dispatcher:
    """Deliver each record to every registered sink.

    A failing sink never breaks the caller; the failure is reported on stderr
    and the remaining sinks still receive the record.
    """

    def __init__(self, sinks: Iterable[Sink]) -> None:
        self._sinks: List[Sink] = list(sinks)
        self._lock = threading.RLock()

    @property
    def sinks(self) -> List[Sink]:
        with self._lock:
            return list(self._sinks)

    def register_sink(self, sink: Sink) -> None:
        """Register a sink with the dispatcher."""

        with self._lock:
            self._sinks.append(sink)

    def submit(self, record: Mapping[str, object]) -> None:
        """Submit a record to every sink."""

        for sink in self.sinks:
            try:
                sink.emit(record)
            except Exception as exc:
                sys.stderr.write(f"logging_lib: sink {type(sink).__name__} failed: {exc}\n")
