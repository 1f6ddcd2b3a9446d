"""HTTP authentication middleware.

``require_auth`` is the single enforcement point for protected routes: it
pulls the bearer token, asks the request's ``AuthSessionManager`` to
authorize it, and only then calls the view. Every failure short-circuits
with the mapped error response and the view never runs.
"""

from __future__ import annotations

from functools import wraps

from flask import g, request

from logging_lib import get_logger as get_structured_logger

from app_platform.errors.api import auth_error_response
from domains.auth.exceptions import AuthError, AuthUnavailable
from .auth_context import attach_identity, parse_bearer_token


logger = get_structured_logger("api.http.middleware.auth")


def require_auth(f):
    """Decorator for protected endpoints."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        manager = getattr(request, "auth_manager", None)

        if manager is None:
            logger.error(
                "Auth manager not attached to request",
                extra={"endpoint": request.endpoint},
            )
            return auth_error_response(AuthUnavailable("auth manager missing"))

        try:
            token = parse_bearer_token(request.headers.get("Authorization"))
            identity = manager.authorize(token, deadline=g.get("request_deadline"))
        except AuthError as exc:
            log = logger.error if isinstance(exc, AuthUnavailable) else logger.warning
            log(
                "Authorization failed",
                extra={"endpoint": request.endpoint, "code": exc.code},
            )
            return auth_error_response(exc)

        attach_identity(identity)
        logger.debug(
            "Authorization succeeded",
            extra={"endpoint": request.endpoint, "subject_id": identity.subject_id},
        )

        return f(*args, **kwargs)

    return decorated_function
