from __future__ import annotations

import threading
import time
from typing import Any, Callable

from app_platform.config.breaker import BreakerConfig


class BreakerOpen(RuntimeError):
    """Raised instead of calling through while the breaker is open."""

    def __init__(self) -> None:
        super().__init__("breaker_open")


class CircuitBreaker:
    """Circuit breaker with monotonic time and a single half-open trial call.

    States: CLOSED -> OPEN -> HALF_OPEN -> CLOSED
    - failure_threshold: failures to OPEN within window_seconds
    - half_open_after_s: time to transition OPEN -> HALF_OPEN
    Calls are never retried here; an open breaker only saves the caller a
    round trip to a dependency that is known to be failing.
    """

    def __init__(
        self,
        *,
        failure_threshold: int = 5,
        window_seconds: int = 30,
        half_open_after_s: int = 15,
        time_func: Callable[[], float] = time.monotonic,
    ) -> None:
        self._lock = threading.Lock()
        self._state = "CLOSED"  # CLOSED | OPEN | HALF_OPEN
        self._failures: list[float] = []
        self._opened_at: float = 0.0
        self._half_open_trial_inflight = False
        self._threshold = max(1, int(failure_threshold))
        self._window_s = float(window_seconds)
        self._half_open_after = float(half_open_after_s)
        self._time = time_func

    @classmethod
    def from_config(cls, config: BreakerConfig, **kwargs: Any) -> "CircuitBreaker":
        return cls(
            failure_threshold=config.failure_threshold,
            window_seconds=config.window_seconds,
            half_open_after_s=config.half_open_after_seconds,
            **kwargs,
        )

    @property
    def state(self) -> str:
        with self._lock:
            return self._state

    # --------------- State helpers ---------------
    def _prune(self, now: float) -> None:
        cutoff = now - self._window_s
        self._failures = [ts for ts in self._failures if ts >= cutoff]

    def allow_call(self) -> bool:
        now = self._time()
        with self._lock:
            if self._state == "CLOSED":
                return True
            if self._state == "OPEN" and (now - self._opened_at) >= self._half_open_after:
                self._state = "HALF_OPEN"
                self._half_open_trial_inflight = False
            if self._state == "HALF_OPEN" and not self._half_open_trial_inflight:
                self._half_open_trial_inflight = True
                return True
            return False

    def on_success(self) -> None:
        with self._lock:
            if self._state == "HALF_OPEN":
                self._state = "CLOSED"
                self._half_open_trial_inflight = False
                self._failures.clear()

    def on_failure(self) -> None:
        now = self._time()
        with self._lock:
            if self._state == "HALF_OPEN":
                self._state = "OPEN"
                self._opened_at = now
                self._half_open_trial_inflight = False
                return
            self._failures.append(now)
            self._prune(now)
            if len(self._failures) >= self._threshold:
                self._state = "OPEN"
                self._opened_at = now

    def call(self, fn: Callable[[], Any], *, failure_types: tuple = (Exception,)) -> Any:
        """Run ``fn`` if admitted; exceptions of ``failure_types`` count as failures."""

        if not self.allow_call():
            raise BreakerOpen()
        try:
            result = fn()
        except failure_types:
            self.on_failure()
            raise
        except BaseException:
            # Not a dependency failure; release a half-open trial untouched
            with self._lock:
                self._half_open_trial_inflight = False
            raise
        self.on_success()
        return result

    # --------------- Introspection ---------------
    def snapshot(self) -> dict:
        with self._lock:
            return {
                "state": self._state,
                "failures": len(self._failures),
                "window_s": self._window_s,
                "half_open_after_s": self._half_open_after,
            }
