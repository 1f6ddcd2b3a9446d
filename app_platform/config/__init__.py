"""Configuration utilities and loaders."""

from .auth import AuthConfig
from .breaker import BreakerConfig

__all__ = [
    "AuthConfig",
    "BreakerConfig",
]
