"""Authentication API composition root.

Entry points:
    - :func:`create_app` constructs and wires a Flask application instance.
    - :func:`bootstrap_runtime` builds the underlying service dependencies.
    - :func:`register_healthcheck` exposes a readiness endpoint.

Every collaborator (signing settings, revocation store, credential store,
worker pool) is built once here and handed to the components that use it.
Nothing lives in module-level singletons, so the app is safe to run under
Gunicorn with several worker processes importing this module.
"""

from __future__ import annotations

import atexit
import os
import time
from dataclasses import dataclass
from typing import Optional

from flask import Flask, g, jsonify, request

from adapters.cache.redis.revocation_service import RevocationStore, build_revocation_store
from adapters.db.sqlite.users import CredentialStore, SQLiteCredentialStore
from app_platform.config.auth import AuthConfig
from app_platform.config.breaker import BreakerConfig
from app_platform.errors.api import register_error_handlers
from app_platform.security.passwords import PasswordHasher
from app_platform.security.tokens import TokenCodec
from app_platform.utils.timeouts import DeadlineExceeded, DeadlineGuard
from application.auth.managers import AuthSessionManager
from logging_lib import configure as configure_structured_logging, get_logger as get_structured_logger
from logging_lib.flask_ext import register_flask_context

from apps.api.http.middleware import add_security_headers

logger = get_structured_logger("auth.main")


DEFAULT_CONFIG_PATH = os.getenv("AUTH_CONFIG_PATH", "configs/auth_config.json")


@dataclass(slots=True)
class AuthRuntime:
    """Container for the auth runtime dependencies."""

    config: AuthConfig
    credentials: CredentialStore
    revocations: RevocationStore
    hash_guard: DeadlineGuard
    cache_guard: DeadlineGuard
    session_manager: AuthSessionManager

    def close(self) -> None:
        """Stop both worker pools; in-flight calls are abandoned."""

        self.hash_guard.shutdown()
        self.cache_guard.shutdown()


def create_app(
    config: Optional[AuthConfig] = None,
    *,
    config_path: str | None = None,
    runtime: Optional[AuthRuntime] = None,
) -> Flask:
    """Construct the auth Flask application.

    Parameters
    ----------
    config:
        Explicit configuration; when omitted it is read from ``config_path``
        (falling back to the environment).
    runtime:
        Pre-built dependencies, used by tests to swap in fakes.
    """

    configure_structured_logging(service="auth", env=os.getenv("AUTH_ENV", "local"))
    logger.info("Creating auth application")

    app = Flask(__name__)
    register_flask_context(app, service="auth")
    register_error_handlers(app)

    if runtime is None:
        runtime = bootstrap_runtime(app, config=config, config_path=config_path)
    app.config.setdefault("AUTH_RUNTIME", runtime)

    register_healthcheck(app, runtime)
    _register_request_hooks(app, runtime)
    _register_blueprints(app)

    return app


def build_hash_guard(config: AuthConfig) -> DeadlineGuard:
    return DeadlineGuard(
        config.hash_timeout_s, max_workers=config.hash_worker_threads, name="auth-hash"
    )


def build_cache_guard(config: AuthConfig) -> DeadlineGuard:
    return DeadlineGuard(
        config.cache_timeout_s, max_workers=config.worker_threads, name="auth-cache"
    )


def build_session_manager(
    config: AuthConfig,
    *,
    credentials: CredentialStore,
    revocations: RevocationStore,
    hash_guard: Optional[DeadlineGuard] = None,
    cache_guard: Optional[DeadlineGuard] = None,
    hasher: Optional[PasswordHasher] = None,
    codec: Optional[TokenCodec] = None,
) -> AuthSessionManager:
    """Wire an ``AuthSessionManager`` from configuration and stores."""

    return AuthSessionManager(
        credentials=credentials,
        hasher=hasher or PasswordHasher(config.bcrypt_cost),
        codec=codec or TokenCodec(config.token_settings()),
        revocations=revocations,
        hash_guard=hash_guard or build_hash_guard(config),
        cache_guard=cache_guard or build_cache_guard(config),
        access_token_ttl_s=config.access_token_ttl_s,
    )


def bootstrap_runtime(
    app: Flask,
    *,
    config: Optional[AuthConfig] = None,
    config_path: str | None = None,
) -> AuthRuntime:
    """Initialize configuration and shared dependencies."""

    auth_config = config or AuthConfig.from_file(config_path or DEFAULT_CONFIG_PATH)
    auth_config.validate()

    credentials = SQLiteCredentialStore(auth_config.db_path)
    revocations = build_revocation_store(auth_config, breaker_config=BreakerConfig.from_env())
    hash_guard = build_hash_guard(auth_config)
    cache_guard = build_cache_guard(auth_config)

    session_manager = build_session_manager(
        auth_config,
        credentials=credentials,
        revocations=revocations,
        hash_guard=hash_guard,
        cache_guard=cache_guard,
    )

    logger.info(
        "Auth runtime initialized",
        extra={
            "env": auth_config.env,
            "db_path": auth_config.db_path,
            "revocation_backend": type(revocations).__name__,
            "token_ttl_s": auth_config.access_token_ttl_s,
            "algorithm": auth_config.jwt_algorithm,
        },
    )

    runtime = AuthRuntime(
        config=auth_config,
        credentials=credentials,
        revocations=revocations,
        hash_guard=hash_guard,
        cache_guard=cache_guard,
        session_manager=session_manager,
    )
    atexit.register(runtime.close)

    return runtime


def register_healthcheck(app: Flask, runtime: AuthRuntime) -> None:
    """Readiness endpoint; reports 503 while the revocation store is down."""

    @app.route("/healthz", methods=["GET"])
    def _healthcheck():
        try:
            store_ok = runtime.cache_guard.call(runtime.revocations.ping)
        except DeadlineExceeded:
            store_ok = False

        status = {
            "status": "ok" if store_ok else "degraded",
            "revocation_store": "up" if store_ok else "down",
        }
        return jsonify(status), 200 if store_ok else 503


def _register_request_hooks(app: Flask, runtime: AuthRuntime) -> None:
    """Attach request lifecycle hooks so blueprints can pull dependencies."""

    @app.before_request
    def _attach_runtime_to_request() -> None:
        request.auth_config = runtime.config
        request.auth_manager = runtime.session_manager
        g.request_deadline = time.monotonic() + runtime.config.request_timeout_s

    @app.after_request
    def _apply_security_headers(response):
        return add_security_headers(response, request.path)


def _register_blueprints(app: Flask) -> None:
    from apps.api.http.auth_routes import auth_bp  # noqa: WPS433

    app.register_blueprint(auth_bp)


def main() -> None:  # pragma: no cover - CLI entrypoint
    app = create_app()
    port = int(os.getenv("AUTH_SERVICE_PORT", "8080"))
    host = os.getenv("AUTH_SERVICE_HOST", "0.0.0.0")
    logger.info("Starting auth service", extra={"host": host, "port": port})
    app.run(host=host, port=port, threaded=True)


if __name__ == "__main__":  # pragma: no cover
    main()
