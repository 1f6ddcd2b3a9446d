"""Circuit breaker configuration for the revocation cache."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class BreakerConfig:
    """Circuit breaker settings for the revocation cache."""

    failure_threshold: int = 5            # trips after N failures
    window_seconds: int = 30              # rolling window for failure count
    half_open_after_seconds: int = 15     # time before trying half-open

    @classmethod
    def from_env(cls) -> "BreakerConfig":
        return cls(
            failure_threshold=int(os.getenv("AUTH_BREAKER_FAILURES", "5")),
            window_seconds=int(os.getenv("AUTH_BREAKER_WINDOW_S", "30")),
            half_open_after_seconds=int(os.getenv("AUTH_BREAKER_HALF_OPEN_S", "15")),
        )
