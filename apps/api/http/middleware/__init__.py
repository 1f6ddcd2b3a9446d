from .auth import require_auth
from .auth_context import (
    attach_identity,
    current_identity,
    get_cached_identity,
    parse_bearer_token,
)
from .security import add_security_headers

__all__ = [
    "require_auth",
    "attach_identity",
    "current_identity",
    "get_cached_identity",
    "parse_bearer_token",
    "add_security_headers",
]
