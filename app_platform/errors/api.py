"""Central API error codes and registration helpers."""

from __future__ import annotations

from typing import Any, Dict

from flask import jsonify
from werkzeug.exceptions import HTTPException

from domains.auth.exceptions import AuthError
from logging_lib import get_logger

logger = get_logger("api.errors")


ERRORS: Dict[str, int] = {
    'MISSING_FIELDS': 400,
    'INVALID_ARGUMENT': 400,
    'NOT_FOUND': 404,
    'METHOD_NOT_ALLOWED': 405,
    'AUTH_FAILED': 401,
    'INVALID_TOKEN': 401,
    'TOKEN_EXPIRED': 401,
    'TOKEN_REVOKED': 401,
    'AUTH_REQUIRED': 401,
    'AUTH_UNAVAILABLE': 503,
    'INTERNAL_ERROR': 500,
}


def make_error(message: str, code: str) -> Any:
    """Make an error response."""

    status = ERRORS.get(code, 500)
    response = jsonify({'error': message, 'code': code})
    response.status_code = status

    if status == 401:
        response.headers['WWW-Authenticate'] = 'Bearer'
    if status in (401, 503):
        response.headers['Cache-Control'] = 'no-store'

    return response


def auth_error_response(exc: AuthError) -> Any:
    """Wire form of an auth failure; unknown subclasses fail as internal."""

    if exc.code not in ERRORS:
        return make_error('Internal server error', 'INTERNAL_ERROR')
    return make_error(exc.message, exc.code)


def register_error_handlers(app) -> None:
    """Register error handlers."""

    @app.errorhandler(AuthError)
    def _h_auth(e: AuthError):
        return auth_error_response(e)

    @app.errorhandler(404)
    def _h_404(_e):
        return make_error('Not found', 'NOT_FOUND')

    @app.errorhandler(405)
    def _h_405(_e):
        return make_error('Method not allowed', 'METHOD_NOT_ALLOWED')

    @app.errorhandler(Exception)
    def _h_exc(e: Exception):
        """Handle all other errors."""

        if isinstance(e, HTTPException):
            response = make_error(e.description or e.name, 'INVALID_ARGUMENT')
            response.status_code = e.code or 500
            return response

        logger.exception('unhandled_exception', error=type(e).__name__)
        return make_error('Internal server error', 'INTERNAL_ERROR')
