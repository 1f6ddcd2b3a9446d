"""Signed bearer tokens for end-user sessions (HMAC JWTs)."""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from typing import Any, Callable, MutableMapping, Optional

try:
    from jose import jwt  # type: ignore[import]
    from jose.exceptions import JWTError  # type: ignore[import]
except ImportError as exc:  # pragma: no cover - dependency validation
    raise ImportError(
        "python-jose[cryptography] is required for session token support"
    ) from exc

from domains.auth.exceptions import ConfigurationError, Expired, InvalidSignature
from domains.auth.models import IssuedToken, VerifiedToken

__all__ = [
    "SUPPORTED_ALGORITHMS",
    "TokenSettings",
    "TokenCodec",
]

SUPPORTED_ALGORITHMS = ("HS256", "HS384", "HS512")
MIN_SECRET_LENGTH = 32


@dataclass(frozen=True)
class TokenSettings:
    """Signing material for session tokens, fixed at startup."""

    secret: str
    algorithm: str = "HS256"
    issuer: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.secret:
            raise ConfigurationError("token signing secret is required")
        if self.algorithm not in SUPPORTED_ALGORITHMS:
            raise ConfigurationError(f"unsupported token algorithm '{self.algorithm}'")

    def __repr__(self) -> str:
        return f"TokenSettings(algorithm={self.algorithm!r}, issuer={self.issuer!r})"


class TokenCodec:
    """Issue and verify signed, time-bounded session tokens.

    Verification checks the signature before anything else, so a tampered
    token reports ``InvalidSignature`` whether or not it has also expired.
    Expiry is evaluated against ``time_func`` rather than jose's own clock.
    """

    def __init__(
        self,
        settings: TokenSettings,
        *,
        time_func: Callable[[], float] = time.time,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._settings = settings
        self._time = time_func
        self._new_id = id_factory or _random_identifier

    @property
    def algorithm(self) -> str:
        return self._settings.algorithm

    def issue(self, subject_id: str | int, ttl: int) -> IssuedToken:
        if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl < 0:
            raise ValueError(f"ttl must be a non-negative integer number of seconds (got {ttl!r})")

        subject = str(subject_id)
        if not subject:
            raise ValueError("subject_id is required")

        now = int(self._time())
        exp = now + ttl
        token_id = self._new_id()

        claims: MutableMapping[str, Any] = {
            "sub": subject,
            "jti": token_id,
            "iat": now,
            "exp": exp,
        }
        if self._settings.issuer:
            claims["iss"] = self._settings.issuer

        token = jwt.encode(claims, self._settings.secret, algorithm=self._settings.algorithm)

        return IssuedToken(
            token=token,
            token_id=token_id,
            subject_id=subject,
            issued_at=now,
            expires_at=exp,
        )

    def verify(self, token: str) -> VerifiedToken:
        if not token or not isinstance(token, str):
            raise InvalidSignature("empty token")

        options = {
            "verify_signature": True,
            "verify_exp": False,
            "verify_nbf": False,
            "verify_iat": False,
            "verify_aud": False,
            "verify_iss": self._settings.issuer is not None,
        }

        try:
            claims = jwt.decode(
                token,
                self._settings.secret,
                algorithms=[self._settings.algorithm],
                issuer=self._settings.issuer,
                options=options,
            )
        except JWTError as exc:
            raise InvalidSignature("token verification failed") from exc

        verified = _claims_to_token(claims)

        if self._time() >= verified.expires_at:
            raise Expired("token expired")

        return verified


def _claims_to_token(claims: Any) -> VerifiedToken:
    if not isinstance(claims, dict):
        raise InvalidSignature("token claims malformed")

    subject = claims.get("sub")
    token_id = claims.get("jti")
    issued_at = claims.get("iat", 0)
    expires_at = claims.get("exp")

    if not isinstance(subject, str) or not subject:
        raise InvalidSignature("token missing 'sub' claim")
    if not isinstance(token_id, str) or not token_id:
        raise InvalidSignature("token missing 'jti' claim")
    for value in (issued_at, expires_at):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidSignature("token time claims malformed")

    return VerifiedToken(
        subject_id=subject,
        token_id=token_id,
        issued_at=issued_at,
        expires_at=expires_at,
    )


def _random_identifier(num_bytes: int = 32) -> str:
    return secrets.token_urlsafe(num_bytes)
