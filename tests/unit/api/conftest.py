"""API specific fixtures for unit tests."""

from __future__ import annotations

from typing import Any

import pytest

from adapters.cache.redis.revocation_service import RedisRevocationStore
from apps.api.main import AuthRuntime, create_app


@pytest.fixture
def make_client(auth_config, credentials, revocations, hash_guard, cache_guard, make_manager):
    """Build a test client around an app wired with in-process fakes."""

    def _make(**runtime_overrides: Any):
        params = dict(
            config=auth_config,
            credentials=credentials,
            revocations=revocations,
            hash_guard=hash_guard,
            cache_guard=cache_guard,
        )
        params.update(runtime_overrides)
        params.setdefault(
            "session_manager",
            make_manager(
                revocations=params["revocations"],
                hash_guard=params["hash_guard"],
                cache_guard=params["cache_guard"],
            ),
        )
        app = create_app(runtime=AuthRuntime(**params))
        app.config["TESTING"] = True
        return app.test_client()

    return _make


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def redis_client(make_client, fake_redis):
    return make_client(revocations=RedisRevocationStore(fake_redis, "auth:revoked"))
