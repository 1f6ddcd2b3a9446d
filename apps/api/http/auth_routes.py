"""Login, logout and identity routes.

The session manager is attached to the request by ``apps.api.main`` in a
``before_request`` hook, so this module holds no state of its own.
"""

from __future__ import annotations

import hashlib
from typing import Optional

from flask import Blueprint, jsonify, request

from app_platform.errors.api import auth_error_response, make_error
from domains.auth.exceptions import AuthError, AuthUnavailable
from logging_lib import get_logger as get_structured_logger

from .middleware import current_identity, parse_bearer_token, require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api")

logger = get_structured_logger("auth.routes")


def _scrub_identifier(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()
    return digest[:12]


@auth_bp.route("/login", methods=["POST"])
def login():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}

    username = payload.get("username")
    password = payload.get("password")
    if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
        logger.warning(
            "Login attempt missing required fields",
            extra={"username_present": bool(username)},
        )
        return make_error("Missing required fields", "MISSING_FIELDS")

    manager = getattr(request, "auth_manager", None)
    if manager is None:
        logger.error("Auth runtime not initialized for login")
        return auth_error_response(AuthUnavailable())

    logger.info(
        "Login attempt received",
        extra={"username_hash": _scrub_identifier(username)},
    )

    try:
        issued = manager.login(username, password)
    except AuthError as exc:
        return auth_error_response(exc)

    return jsonify(
        {
            "accessToken": issued.token,
            "tokenType": "Bearer",
            "expiresIn": manager.access_token_ttl_s,
        }
    ), 200


@auth_bp.route("/logout", methods=["GET", "POST"])
@require_auth
def logout():
    token = parse_bearer_token(request.headers.get("Authorization"))

    try:
        request.auth_manager.logout(token)
    except AuthError as exc:
        return auth_error_response(exc)

    return jsonify({"status": "success", "message": "Successfully logged out!"}), 200


@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    identity = current_identity()
    return jsonify({"subjectId": identity.subject_id, "expiresAt": identity.expires_at}), 200
