"""Deadlines for blocking calls made while serving a request."""

from __future__ import annotations

import concurrent.futures
import time
from typing import Any, Callable, Optional, TypeVar

from logging_lib import wrap_with_context

T = TypeVar("T")


class DeadlineExceeded(TimeoutError):
    """A guarded call did not finish within its deadline."""


class DeadlineGuard:
    """Run blocking calls in a shared worker pool and stop waiting at a deadline.

    The worker keeps running after a timeout (threads cannot be killed); the
    caller just stops waiting for it. Pool size therefore bounds how many
    wedged calls can pile up before new ones queue behind them.
    """

    def __init__(self, timeout_s: float, *, max_workers: int = 8, name: str = "auth-io") -> None:
        if timeout_s <= 0:
            raise ValueError("timeout_s must be positive")
        self._timeout_s = float(timeout_s)
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=name
        )

    @property
    def timeout_s(self) -> float:
        return self._timeout_s

    def call(
        self,
        fn: Callable[..., T],
        *args: Any,
        timeout_s: Optional[float] = None,
        deadline: Optional[float] = None,
        **kwargs: Any,
    ) -> T:
        """Return ``fn(*args, **kwargs)`` or raise ``DeadlineExceeded``.

        ``deadline`` is an absolute ``time.monotonic()`` value; when given, the
        wait is the smaller of the time left before the deadline and the timeout.
        """

        wait = self._timeout_s if timeout_s is None else timeout_s
        if deadline is not None:
            wait = min(wait, deadline - time.monotonic())
        if wait <= 0:
            raise DeadlineExceeded("deadline already passed")

        future = self._executor.submit(wrap_with_context(fn), *args, **kwargs)
        try:
            return future.result(timeout=wait)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise DeadlineExceeded(f"{getattr(fn, '__name__', 'call')} exceeded {wait:.3f}s") from None

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
