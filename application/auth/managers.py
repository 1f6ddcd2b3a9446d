"""Login, logout and per-request authorization."""

from __future__ import annotations

import hashlib
import time
from typing import Callable, Optional

from adapters.cache.redis.revocation_service import RevocationStore
from adapters.db.sqlite.users import CredentialStore
from app_platform.security.passwords import PasswordHasher
from app_platform.security.tokens import TokenCodec
from app_platform.utils.timeouts import DeadlineExceeded, DeadlineGuard
from domains.auth.exceptions import (
    AuthUnavailable,
    CredentialStoreError,
    Expired,
    InvalidCredentials,
    InvalidSignature,
    RevocationStoreError,
    TokenRevoked,
)
from domains.auth.models import AuthenticatedIdentity, IssuedToken
from logging_lib import get_logger


logger = get_logger("auth.session")


def _scrub_identifier(value: Optional[str]) -> Optional[str]:
    """Scrub an identifier to a short hash."""

    if not value:
        return None

    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:12]


class AuthSessionManager:
    """Orchestrate the token lifecycle.

    A token is valid while its signature checks out, ``now < exp`` and its
    ``jti`` is absent from the revocation store. Signature and expiry are
    decided locally; the store is consulted only for tokens that pass both,
    and any failure to reach it denies the request.

    Hash calls run through ``hash_guard`` and revocation store calls through
    ``cache_guard``. The pools are independent: a saturated hash pool never
    delays a revocation lookup, and no request thread waits on a wedged
    dependency longer than its deadline.
    """

    def __init__(
        self,
        *,
        credentials: CredentialStore,
        hasher: PasswordHasher,
        codec: TokenCodec,
        revocations: RevocationStore,
        hash_guard: DeadlineGuard,
        cache_guard: DeadlineGuard,
        access_token_ttl_s: int,
        time_func: Callable[[], float] = time.time,
    ) -> None:
        if access_token_ttl_s <= 0:
            raise ValueError("access_token_ttl_s must be positive")

        self._credentials = credentials
        self._hasher = hasher
        self._codec = codec
        self._revocations = revocations
        self._hash_guard = hash_guard
        self._cache_guard = cache_guard
        self._ttl_s = access_token_ttl_s
        self._now = time_func

    @property
    def access_token_ttl_s(self) -> int:
        return self._ttl_s

    def login(self, username: str, password: str) -> IssuedToken:
        """Exchange a username and password for a fresh token."""

        if not username or not password:
            logger.info("login_rejected", reason="blank_credentials")
            raise InvalidCredentials()

        try:
            credential = self._credentials.get_by_username(username)
        except CredentialStoreError as exc:
            logger.error("login_store_unavailable", error=str(exc))
            raise AuthUnavailable("credential store unavailable") from exc

        try:
            if credential is None:
                self._hash_guard.call(self._hasher.dummy_verify, password)
                matched = False
                reason = "unknown_user"
            else:
                matched = self._hash_guard.call(self._hasher.verify, password, credential.password_hash)
                reason = "bad_password"
        except DeadlineExceeded as exc:
            logger.error("login_hash_timeout")
            raise AuthUnavailable("password verification timed out") from exc

        if not matched:
            logger.info("login_rejected", reason=reason, user=_scrub_identifier(username))
            raise InvalidCredentials()

        if not credential.is_active():
            logger.info("login_rejected", reason="account_inactive", user=_scrub_identifier(username))
            raise InvalidCredentials()

        issued = self._codec.issue(credential.user_id, self._ttl_s)
        logger.info(
            "login_succeeded",
            subject_id=issued.subject_id,
            jti=_scrub_identifier(issued.token_id),
            expires_at=issued.expires_at,
        )
        return issued

    def logout(self, token: str) -> None:
        """Revoke ``token`` for the rest of its lifetime.

        Tokens that already fail signature or expiry checks are left alone;
        they cannot authorize anything anyway.
        """

        try:
            verified = self._codec.verify(token)
        except (InvalidSignature, Expired) as exc:
            logger.info("logout_noop", reason=exc.code)
            return

        remaining = verified.expires_at - self._now()
        try:
            self._cache_guard.call(self._revocations.revoke, verified.token_id, remaining)
        except (RevocationStoreError, DeadlineExceeded) as exc:
            logger.error("logout_revoke_failed", jti=_scrub_identifier(verified.token_id), error=str(exc))
            raise AuthUnavailable("could not record revocation") from exc

        logger.info(
            "logout_succeeded",
            subject_id=verified.subject_id,
            jti=_scrub_identifier(verified.token_id),
            ttl_s=round(max(0.0, remaining), 3),
        )

    def authorize(self, token: str, *, deadline: Optional[float] = None) -> AuthenticatedIdentity:
        """Resolve the identity behind ``token`` or raise.

        ``deadline`` is an absolute ``time.monotonic()`` value past which the
        revocation lookup is abandoned and the request denied.
        """

        verified = self._codec.verify(token)
        jti = _scrub_identifier(verified.token_id)

        try:
            revoked = self._cache_guard.call(
                self._revocations.is_revoked, verified.token_id, deadline=deadline
            )
        except (RevocationStoreError, DeadlineExceeded) as exc:
            logger.error("authorize_store_unavailable", jti=jti, error=str(exc))
            raise AuthUnavailable("cannot confirm token is not revoked") from exc

        if revoked:
            logger.info("authorize_revoked", subject_id=verified.subject_id, jti=jti)
            raise TokenRevoked()

        return AuthenticatedIdentity(
            subject_id=verified.subject_id,
            token_id=verified.token_id,
            expires_at=verified.expires_at,
        )
