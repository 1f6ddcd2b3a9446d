"""Deterministic fakes shared by the unit suites."""

from __future__ import annotations

import threading
from typing import Dict, Optional

from redis.exceptions import ConnectionError as RedisConnectionError


TEST_SECRET = "unit-test-signing-secret-0123456789abcdef"
TEST_COST = 4
BASE_TIME = 1_700_000_000.0


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = BASE_TIME) -> None:
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """Minimal Redis subset used by the revocation store (SET PX, EXISTS, PING)."""

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self._data: Dict[str, tuple[str, Optional[float]]] = {}
        self.calls: list[str] = []
        self.fail = False
        self.block: Optional[threading.Event] = None

    def _enter(self, op: str) -> None:
        self.calls.append(op)
        if self.block is not None:
            self.block.wait(5)
        if self.fail:
            raise RedisConnectionError("connection refused")

    def _alive(self, key: str) -> bool:
        entry = self._data.get(key)
        if entry is None:
            return False
        _, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return False
        return True

    def set(self, key, value, ex=None, px=None, nx=False):
        self._enter("set")
        expires_at = None
        if px is not None:
            expires_at = self._clock() + px / 1000.0
        elif ex is not None:
            expires_at = self._clock() + ex
        self._data[key] = (value, expires_at)
        return True

    def exists(self, *keys):
        self._enter("exists")
        return sum(1 for key in keys if self._alive(key))

    def ping(self):
        self._enter("ping")
        return True

    def pttl(self, key):
        if not self._alive(key):
            return -2
        _, expires_at = self._data[key]
        if expires_at is None:
            return -1
        return int(round((expires_at - self._clock()) * 1000))

