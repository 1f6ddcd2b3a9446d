"""Authentication error taxonomy.

Every failure the auth core can report is one of the ``AuthError`` subclasses
below. Each carries a stable ``code`` and a client-safe ``message``; the HTTP
layer turns them into wire payloads, the core never does.
"""


class AuthError(Exception):
    code = "AUTH_ERROR"
    message = "Authentication error"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.message)
        self.detail = detail


class InvalidCredentials(AuthError):
    """Unknown user or wrong password; the two are never told apart."""

    code = "AUTH_FAILED"
    message = "Invalid credentials"


class InvalidSignature(AuthError):
    code = "INVALID_TOKEN"
    message = "Invalid token"


class Expired(AuthError):
    code = "TOKEN_EXPIRED"
    message = "Token expired"


class TokenRevoked(AuthError):
    code = "TOKEN_REVOKED"
    message = "Token revoked"


class MissingToken(AuthError):
    code = "AUTH_REQUIRED"
    message = "Authentication required"


class AuthUnavailable(AuthError):
    """A dependency needed to decide (revocation cache, credential store) failed."""

    code = "AUTH_UNAVAILABLE"
    message = "Authentication service unavailable"


class InvalidCostFactor(AuthError):
    code = "INVALID_COST_FACTOR"
    message = "Hash cost factor out of range"


class ConfigurationError(AuthError):
    code = "AUTH_MISCONFIGURED"
    message = "Authentication is misconfigured"


class RevocationStoreError(Exception):
    """The revocation cache could not answer."""


class CredentialStoreError(Exception):
    """The credential store could not answer."""
