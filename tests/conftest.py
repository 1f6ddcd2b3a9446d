"""Shared fixtures for the auth service unit suites.

Every collaborator is a deterministic in-process fake: a settable clock, a
tiny Redis stand-in with key expiry, and an in-memory credential store. No
test talks to a real Redis or sleeps on wall-clock token expiry.
"""

from __future__ import annotations

import pytest

import logging_lib
from adapters.cache.redis.revocation_service import InMemoryRevocationStore
from adapters.db.sqlite.users import InMemoryCredentialStore
from app_platform.config.auth import AuthConfig
from app_platform.security.passwords import PasswordHasher
from app_platform.security.tokens import TokenCodec, TokenSettings
from app_platform.utils.timeouts import DeadlineGuard
from application.auth.managers import AuthSessionManager
from domains.auth.models import Credential

from tests.utils.fakes import TEST_COST, TEST_SECRET, FakeClock, FakeRedis


def pytest_configure(config: pytest.Config) -> None:  # pragma: no cover - configuration hook
    """Register markers used across the suites."""

    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "auth: Authentication related tests")
    config.addinivalue_line("markers", "logging: Logging library focused tests")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    for item in items:
        item.add_marker(pytest.mark.unit)

        fspath = str(item.fspath)
        if "auth" in fspath:
            item.add_marker(pytest.mark.auth)
        if "logging" in fspath:
            item.add_marker(pytest.mark.logging)


@pytest.fixture(autouse=True)
def _memory_logging(monkeypatch):
    """Route structured logs to the memory sink for every test."""

    monkeypatch.setenv("LOG_SINKS", "memory")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    logging_lib.configure()
    yield
    logging_lib.clear_context()
    logging_lib.reset_loggers()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis(clock) -> FakeRedis:
    redis_fake = FakeRedis(clock)
    yield redis_fake
    if redis_fake.block is not None:
        redis_fake.block.set()


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(TEST_COST)


@pytest.fixture(scope="session")
def admin_credential(hasher) -> Credential:
    return Credential(user_id=1, username="admin", password_hash=hasher.hash("admin1234"))


@pytest.fixture
def token_settings() -> TokenSettings:
    return TokenSettings(secret=TEST_SECRET)


@pytest.fixture
def codec(token_settings, clock) -> TokenCodec:
    return TokenCodec(token_settings, time_func=clock)


@pytest.fixture
def credentials(admin_credential) -> InMemoryCredentialStore:
    return InMemoryCredentialStore([admin_credential])


@pytest.fixture
def revocations(clock) -> InMemoryRevocationStore:
    return InMemoryRevocationStore(time_func=clock)


@pytest.fixture
def hash_guard() -> DeadlineGuard:
    deadline_guard = DeadlineGuard(2.0, max_workers=2)
    yield deadline_guard
    deadline_guard.shutdown()


@pytest.fixture
def cache_guard() -> DeadlineGuard:
    deadline_guard = DeadlineGuard(0.5, max_workers=4)
    yield deadline_guard
    deadline_guard.shutdown()


@pytest.fixture
def make_manager(credentials, hasher, codec, revocations, hash_guard, cache_guard, clock):
    """Factory building a session manager with any collaborator overridden."""

    def _make(**overrides) -> AuthSessionManager:
        params = dict(
            credentials=credentials,
            hasher=hasher,
            codec=codec,
            revocations=revocations,
            hash_guard=hash_guard,
            cache_guard=cache_guard,
            access_token_ttl_s=3600,
            time_func=clock,
        )
        params.update(overrides)
        return AuthSessionManager(**params)

    return _make


@pytest.fixture
def manager(make_manager) -> AuthSessionManager:
    return make_manager()


@pytest.fixture
def auth_config(tmp_path) -> AuthConfig:
    return AuthConfig(
        env="local",
        jwt_secret=TEST_SECRET,
        bcrypt_cost=TEST_COST,
        access_token_ttl_s=3600,
        cache_timeout_s=0.5,
        db_path=str(tmp_path / "auth.db"),
    )
