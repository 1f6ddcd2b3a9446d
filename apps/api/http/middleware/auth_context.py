"""Bearer token extraction and request-scoped identity helpers.

``parse_bearer_token`` accepts exactly ``Bearer <token>``: one scheme, one
space, one token with no embedded whitespace. Everything else is treated as
no token at all rather than parsed leniently.

The resolved identity is stored on both ``flask.g`` and the request object
so handlers and logging hooks can read it without importing the middleware.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from flask import g, request

from domains.auth.exceptions import MissingToken
from domains.auth.models import AuthenticatedIdentity


_BEARER_RE = re.compile(r"Bearer ([^\s]+)")
_REQUEST_IDENTITY_ATTR = "identity"


def parse_bearer_token(header_value: Optional[str]) -> str:
    """Return the token from an ``Authorization`` header or raise ``MissingToken``."""

    if not header_value or not isinstance(header_value, str):
        raise MissingToken("authorization header missing")

    match = _BEARER_RE.fullmatch(header_value)
    if match is None:
        raise MissingToken("authorization header malformed")

    return match.group(1)


def attach_identity(identity: AuthenticatedIdentity, req: Any = None) -> None:
    target = req if req is not None else request
    setattr(target, _REQUEST_IDENTITY_ATTR, identity)
    g.identity = identity


def get_cached_identity(req: Any = None) -> Optional[AuthenticatedIdentity]:
    target = req if req is not None else request
    identity = getattr(target, _REQUEST_IDENTITY_ATTR, None)
    if isinstance(identity, AuthenticatedIdentity):
        return identity
    return None


def current_identity() -> AuthenticatedIdentity:
    """Identity for the current request; raises if the middleware did not run."""

    identity = get_cached_identity()
    if identity is None:
        raise MissingToken("request was not authorized")
    return identity


__all__ = [
    "parse_bearer_token",
    "attach_identity",
    "get_cached_identity",
    "current_identity",
]
