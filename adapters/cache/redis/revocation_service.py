"""Revocation ledger for logged-out tokens, backed by Redis key expiry."""

from __future__ import annotations

import math
import threading
import time
from typing import Callable, Dict, Optional, Protocol

import redis
from redis.exceptions import RedisError

from app_platform.config.auth import AuthConfig
from app_platform.config.breaker import BreakerConfig
from app_platform.utils.circuit_breaker import BreakerOpen, CircuitBreaker
from domains.auth.exceptions import RevocationStoreError
from logging_lib import get_logger

logger = get_logger("auth.revocation")


class RevocationStore(Protocol):
    """Protocol for revocation store.

    ``is_revoked`` must raise ``RevocationStoreError`` when it cannot answer;
    returning False on failure would let revoked tokens through.
    """

    def revoke(self, token_id: str, ttl_s: float) -> None: ...
    def is_revoked(self, token_id: str) -> bool: ...
    def ping(self) -> bool: ...


class RedisRevocationStore:
    """One Redis key per revoked token, expiring with the token itself."""

    def __init__(
        self,
        redis_client,
        key_prefix: str = "auth:revoked",
        *,
        breaker: Optional[CircuitBreaker] = None,
    ):
        if redis_client is None:
            raise ValueError("Redis client is required")

        self._r = redis_client
        self._prefix = key_prefix.rstrip(":")
        self._breaker = breaker

    def _key(self, token_id: str) -> str:
        return f"{self._prefix}:{token_id}"

    def _call(self, op: str, fn: Callable[[], object]) -> object:
        try:
            if self._breaker is None:
                return fn()
            return self._breaker.call(fn, failure_types=(RedisError, OSError))
        except BreakerOpen as exc:
            logger.warning("revocation_store_breaker_open", op=op)
            raise RevocationStoreError("revocation store circuit open") from exc
        except (RedisError, OSError) as exc:
            logger.error("revocation_store_error", op=op, error=type(exc).__name__)
            raise RevocationStoreError(f"revocation store {op} failed: {exc}") from exc

    def revoke(self, token_id: str, ttl_s: float) -> None:
        if ttl_s <= 0:
            # Token already past expiry, nothing left to revoke
            return

        ttl_ms = max(1, math.ceil(ttl_s * 1000))
        self._call("revoke", lambda: self._r.set(self._key(token_id), "1", px=ttl_ms))

    def is_revoked(self, token_id: str) -> bool:
        return bool(self._call("is_revoked", lambda: self._r.exists(self._key(token_id))))

    def ping(self) -> bool:
        try:
            return bool(self._call("ping", self._r.ping))
        except RevocationStoreError:
            return False


class InMemoryRevocationStore:
    """Process-local revocation store for tests and single-process local runs.

    Expired entries are dropped on every write and count, so tokens that are
    never presented again do not accumulate.
    """

    def __init__(self, *, time_func: Callable[[], float] = time.time):
        self._now = time_func
        self._lock = threading.Lock()
        self._entries: Dict[str, float] = {}

    def _purge(self, now: float) -> None:
        expired = [jti for jti, exp in self._entries.items() if exp <= now]
        for jti in expired:
            del self._entries[jti]

    def revoke(self, token_id: str, ttl_s: float) -> None:
        if ttl_s <= 0:
            return
        now = float(self._now())
        with self._lock:
            self._purge(now)
            self._entries[token_id] = now + float(ttl_s)

    def is_revoked(self, token_id: str) -> bool:
        now = float(self._now())
        with self._lock:
            expires_at = self._entries.get(token_id)
            if expires_at is None:
                return False
            if expires_at <= now:
                del self._entries[token_id]
                return False
            return True

    def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        now = float(self._now())
        with self._lock:
            self._purge(now)
            return len(self._entries)


def build_redis_client(url: str, *, timeout_s: float):
    """Build a Redis client whose every socket operation is bounded."""

    return redis.Redis.from_url(
        url,
        socket_timeout=timeout_s,
        socket_connect_timeout=timeout_s,
        retry_on_timeout=False,
        health_check_interval=30,
    )


def build_revocation_store(
    config: AuthConfig,
    *,
    breaker_config: Optional[BreakerConfig] = None,
    redis_client=None,
) -> RevocationStore:
    """Pick Redis when configured (or a client is supplied), else process memory."""

    if redis_client is None and config.redis_url:
        redis_client = build_redis_client(config.redis_url, timeout_s=config.cache_timeout_s)

    if redis_client is None:
        logger.warning("revocation_store_in_memory")
        return InMemoryRevocationStore()

    breaker = CircuitBreaker.from_config(breaker_config or BreakerConfig.from_env())
    logger.info("revocation_store_redis", key_prefix=config.revocation_key_prefix)
    return RedisRevocationStore(redis_client, config.revocation_key_prefix, breaker=breaker)
