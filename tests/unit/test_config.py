"""Tests for settings and domain-specific configuration."""

from pathlib import Path

import pytest
from pydantic import SecretStr, ValidationError

from chathub.core.config import DEFAULT_SYSTEM_PROMPT, Settings
from chathub.core.settings import (
    AppConfig,
    DatabaseConfig,
    FileUploadConfig,
    RateLimitConfig,
)


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "session_secret_key": "secret",
        "database_url": "mysql+aiomysql://u:p@localhost/chathub",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[arg-type]


class TestSettings:
    def test_required_fields(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SESSION_SECRET_KEY", raising=False)
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]

    def test_defaults(self) -> None:
        s = _settings()
        assert s.app.name == "chathub"
        assert s.app.system_prompt == DEFAULT_SYSTEM_PROMPT
        assert s.auth.algorithm == "HS256"
        assert s.auth.token_type == "session"
        assert s.redis.revoked_session_prefix == "session_revoked:"
        assert s.rate_limit == RateLimitConfig(chat_stream="20/minute", upload="10/minute")

    def test_domain_groups(self) -> None:
        s = _settings(llm_provider="anthropic", llm_temperature=0.2, port=9000)
        assert s.llm.provider == "anthropic"
        assert s.llm.temperature == 0.2
        assert s.server.port == 9000

    def test_invalid_provider(self) -> None:
        with pytest.raises(ValidationError):
            _settings(llm_provider="cohere")

    def test_max_file_size_bytes(self) -> None:
        assert _settings(max_file_size_mb=2).max_file_size_bytes == 2 * 1024 * 1024


class TestDatabaseConfig:
    def _config(self, url: str) -> DatabaseConfig:
        return DatabaseConfig(url=SecretStr(url), pool_size=5, max_overflow=5)

    def test_mysql_gets_charset(self) -> None:
        config = self._config("mysql+aiomysql://u:p@db/chathub")
        assert config.async_url.endswith("?charset=utf8mb4")
        assert not config.is_sqlite

    def test_sqlite_untouched(self) -> None:
        config = self._config("sqlite+aiosqlite:///:memory:")
        assert config.async_url == "sqlite+aiosqlite:///:memory:"
        assert config.is_sqlite


class TestFrozenConfigs:
    def test_app_config_is_frozen(self) -> None:
        config = AppConfig(name="x", env="production", debug=False, system_prompt="p")
        assert config.is_production
        with pytest.raises(ValidationError):
            config.name = "y"  # type: ignore[misc]

    def test_file_upload_config(self) -> None:
        config = FileUploadConfig(
            storage_path=Path("/tmp/files"), public_base_url="/files", max_file_size_mb=1
        )
        assert config.max_file_size_bytes == 1024 * 1024
