from dataclasses import dataclass
import time
from typing import Optional


@dataclass
class Credential:
    """Stored login credential as read from the user store."""
    user_id: int
    username: str
    password_hash: str
    enabled: bool = True
    account_locked: bool = False
    account_expired: bool = False
    credentials_expired: bool = False

    def is_active(self) -> bool:
        return self.enabled and not (
            self.account_locked or self.account_expired or self.credentials_expired
        )


@dataclass(frozen=True)
class VerifiedToken:
    """Claims of a token whose signature and expiry have been checked."""
    subject_id: str
    token_id: str
    issued_at: int
    expires_at: int

    def remaining(self, now: Optional[float] = None) -> float:
        current = time.time() if now is None else now
        return self.expires_at - current


@dataclass(frozen=True)
class IssuedToken:
    """Freshly minted token plus the claims it carries."""
    token: str
    token_id: str
    subject_id: str
    issued_at: int
    expires_at: int

    def as_bearer(self) -> str:
        return f"Bearer {self.token}"

    def expires_in(self, now: Optional[float] = None) -> int:
        current = time.time() if now is None else now
        return max(0, int(self.expires_at - current))


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """Identity attached to a request after successful authorization."""
    subject_id: str
    token_id: str
    expires_at: int
