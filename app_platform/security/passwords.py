"""bcrypt password hashing."""

from __future__ import annotations

import bcrypt

from domains.auth.exceptions import InvalidCostFactor

MIN_COST = 4
MAX_COST = 31
DEFAULT_COST = 10
# bcrypt only reads the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def validate_cost(cost: object) -> int:
    if isinstance(cost, bool) or not isinstance(cost, int):
        raise InvalidCostFactor(f"cost factor must be an integer, got {cost!r}")
    if not MIN_COST <= cost <= MAX_COST:
        raise InvalidCostFactor(f"cost factor {cost} outside {MIN_COST}..{MAX_COST}")
    return cost


class PasswordHasher:
    """Salted adaptive hashing of user passwords.

    ``hash`` produces a self-describing bcrypt digest (algorithm, cost and
    salt are all encoded in it), so ``verify`` needs nothing but the digest.
    ``verify`` never raises: every malformed input is simply a mismatch.
    """

    def __init__(self, default_cost: int = DEFAULT_COST) -> None:
        self._default_cost = validate_cost(default_cost)
        self._dummy_digest = bcrypt.hashpw(
            b"dummy-password-for-timing", bcrypt.gensalt(rounds=self._default_cost)
        )

    @property
    def default_cost(self) -> int:
        return self._default_cost

    def hash(self, plaintext: str, cost: int | None = None) -> str:
        rounds = self._default_cost if cost is None else validate_cost(cost)
        secret = plaintext.encode("utf-8")
        if len(secret) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password longer than {MAX_PASSWORD_BYTES} bytes")
        return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=rounds)).decode("ascii")

    def verify(self, plaintext: str, digest: str) -> bool:
        if not plaintext or not digest:
            return False
        secret = plaintext.encode("utf-8")
        if len(secret) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(secret, digest.encode("ascii"))
        except (ValueError, TypeError, UnicodeError):
            return False

    def dummy_verify(self, plaintext: str) -> bool:
        """Burn one verification at the default cost; always False.

        Used when the username is unknown so the response time does not
        reveal whether the account exists.
        """

        candidate = (plaintext or "x").encode("utf-8")[:MAX_PASSWORD_BYTES]
        bcrypt.checkpw(candidate, self._dummy_digest)
        return False
