"""
Unit tests for AuthConfig using pytest.
"""

import dataclasses
import json
from unittest.mock import patch

import pytest

from app_platform.config.auth import AuthConfig
from domains.auth.exceptions import ConfigurationError

from tests.utils.fakes import TEST_SECRET


@pytest.mark.auth
@pytest.mark.unit
class TestAuthConfig:
    """Loading, validation and derived settings."""

    def test_default_config(self):
        config = AuthConfig()
        assert config.env == "local"
        assert config.jwt_algorithm == "HS256"
        assert config.access_token_ttl_s == 3600
        assert config.bcrypt_cost == 10
        assert config.redis_url is None
        assert config.revocation_key_prefix == "auth:revoked"

    def test_from_env(self):
        with patch.dict('os.environ', {
            'AUTH_ENV': 'prod',
            'AUTH_JWT_SECRET': TEST_SECRET,
            'AUTH_JWT_ISSUER': 'auth-service',
            'AUTH_ACCESS_TOKEN_TTL_S': '900',
            'AUTH_BCRYPT_COST': '12',
            'AUTH_REDIS_URL': 'redis://cache:6379/0',
            'AUTH_CACHE_TIMEOUT_S': '0.25',
            'AUTH_DB_PATH': '/var/lib/auth/users.db',
        }):
            config = AuthConfig.from_env()

        assert config.env == 'prod'
        assert config.jwt_secret == TEST_SECRET
        assert config.jwt_issuer == 'auth-service'
        assert config.access_token_ttl_s == 900
        assert config.bcrypt_cost == 12
        assert config.redis_url == 'redis://cache:6379/0'
        assert config.cache_timeout_s == 0.25
        assert config.db_path == '/var/lib/auth/users.db'

    def test_from_file_success(self, tmp_path):
        path = tmp_path / "auth.json"
        path.write_text(json.dumps({'jwt_secret': TEST_SECRET, 'access_token_ttl_s': 60}))

        config = AuthConfig.from_file(str(path))

        assert config.jwt_secret == TEST_SECRET
        assert config.access_token_ttl_s == 60

    def test_from_file_missing_falls_back_to_env(self, tmp_path):
        with patch.dict('os.environ', {'AUTH_JWT_SECRET': 'from-env-' + TEST_SECRET}):
            config = AuthConfig.from_file(str(tmp_path / "absent.json"))

        assert config.jwt_secret == 'from-env-' + TEST_SECRET

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"jwt_secrett": "typo"}'])
    def test_from_file_rejects_bad_content(self, tmp_path, content):
        path = tmp_path / "auth.json"
        path.write_text(content)

        with pytest.raises(ConfigurationError):
            AuthConfig.from_file(str(path))

    def test_from_file_coerces_numeric_strings(self, tmp_path):
        path = tmp_path / "auth.json"
        path.write_text(json.dumps({
            'jwt_secret': TEST_SECRET,
            'bcrypt_cost': "12",
            'cache_timeout_s': 1,
            'jwt_issuer': None,
        }))

        config = AuthConfig.from_file(str(path))

        assert config.bcrypt_cost == 12
        assert config.cache_timeout_s == 1.0
        assert isinstance(config.cache_timeout_s, float)
        assert config.jwt_issuer is None
        assert config.validate() is True

    @pytest.mark.parametrize(
        "data",
        [
            {'bcrypt_cost': "twelve"},
            {'bcrypt_cost': True},
            {'bcrypt_cost': [12]},
            {'bcrypt_cost': 12.5},
            {'jwt_secret': 123},
            {'cache_timeout_s': "fast"},
            {'redis_url': 6379},
        ],
    )
    def test_from_file_rejects_wrong_types(self, tmp_path, data):
        path = tmp_path / "auth.json"
        path.write_text(json.dumps(data))

        with pytest.raises(ConfigurationError):
            AuthConfig.from_file(str(path))

    @pytest.mark.parametrize("name", ['AUTH_BCRYPT_COST', 'AUTH_CACHE_TIMEOUT_S', 'AUTH_HASH_WORKER_THREADS'])
    def test_from_env_rejects_non_numeric_values(self, name):
        with patch.dict('os.environ', {name: 'abc'}):
            with pytest.raises(ConfigurationError):
                AuthConfig.from_env()

    def test_validate_accepts_sane_config(self, auth_config):
        assert auth_config.validate() is True

    @pytest.mark.parametrize(
        "overrides",
        [
            {"jwt_secret": ""},
            {"jwt_algorithm": "RS256"},
            {"access_token_ttl_s": 0},
            {"bcrypt_cost": 3},
            {"bcrypt_cost": 32},
            {"cache_timeout_s": 0},
            {"worker_threads": 0},
            {"hash_worker_threads": 0},
            {"env": "prod", "jwt_secret": "short"},
            {"env": "prod", "redis_url": None},
        ],
    )
    def test_validate_rejects(self, auth_config, overrides):
        with pytest.raises(ConfigurationError):
            dataclasses.replace(auth_config, **overrides).validate()

    def test_short_secret_is_tolerated_locally(self, auth_config):
        assert dataclasses.replace(auth_config, jwt_secret="short").validate() is True

    def test_repr_hides_secret(self, auth_config):
        assert TEST_SECRET not in repr(auth_config)
        assert "jwt_secret=***" in repr(auth_config)

    def test_token_settings(self, auth_config):
        settings = dataclasses.replace(auth_config, jwt_issuer="auth-service").token_settings()

        assert settings.secret == TEST_SECRET
        assert settings.algorithm == "HS256"
        assert settings.issuer == "auth-service"
