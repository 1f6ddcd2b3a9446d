"""Password hashing and session token primitives."""

from .passwords import DEFAULT_COST, MAX_COST, MIN_COST, PasswordHasher, validate_cost  # noqa: F401
from .tokens import SUPPORTED_ALGORITHMS, TokenCodec, TokenSettings  # noqa: F401

__all__ = [
    "PasswordHasher",
    "validate_cost",
    "MIN_COST",
    "MAX_COST",
    "DEFAULT_COST",
    "TokenCodec",
    "TokenSettings",
    "SUPPORTED_ALGORITHMS",
]
