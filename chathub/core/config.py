"""Application configuration using Pydantic Settings V2."""

from functools import cached_property
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from chathub.core.settings import (
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    FileUploadConfig,
    LLMConfig,
    RateLimitConfig,
    RedisConfig,
    ServerConfig,
)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful, friendly, and knowledgeable AI assistant.\n\n"
    "Your core principles:\n"
    "- Be concise and clear in your responses\n"
    "- Ask clarifying questions when needed\n"
    "- Admit when you don't know something\n"
    "- Format code blocks properly with syntax highlighting\n"
    "- Use markdown formatting for better readability"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Flat fields are loaded directly from environment variables.
    Domain properties provide grouped access (e.g. settings.llm.provider).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # LLM Provider
    llm_provider: Literal["openai", "anthropic"] = Field(
        default="openai",
        description="LLM provider to use",
    )
    llm_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for chat replies and titles",
    )

    # OpenAI
    openai_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="OpenAI API key",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model name",
    )

    # Anthropic
    anthropic_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Anthropic API key",
    )
    anthropic_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Anthropic model name",
    )

    # App
    app_name: str = Field(
        default="chathub",
        description="Application name",
    )
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=True,
        description="Debug mode",
    )
    system_prompt: str = Field(
        default=DEFAULT_SYSTEM_PROMPT,
        description="System prompt prepended to every model call",
    )

    # File Upload
    file_storage_path: Path = Field(
        default=Path("./data/files"),
        description="Directory holding uploaded attachment payloads",
    )
    file_public_base_url: str = Field(
        default="/files",
        description="URL prefix under which stored attachments are served",
    )
    max_file_size_mb: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum file size in MB",
    )

    # Server
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=8004,
        ge=1,
        le=65535,
        description="Server port",
    )
    reload: bool = Field(
        default=False,
        description="Enable uvicorn auto-reload",
    )

    # Session verification
    session_secret_key: SecretStr = Field(
        description="Secret shared with the session provider for token signing",
    )
    session_algorithm: str = Field(
        default="HS256",
        description="Session token signing algorithm",
    )

    # Rate limits
    chat_stream_rate_limit: str = Field(
        default="20/minute",
        description="Chat stream endpoint rate limit",
    )
    upload_rate_limit: str = Field(
        default="10/minute",
        description="File upload endpoint rate limit",
    )

    # Database
    database_url: SecretStr = Field(
        description="Async database URL (mysql+aiomysql://...)",
    )
    database_pool_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Connection pool size",
    )
    database_max_overflow: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Connections allowed beyond the pool size",
    )

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    revoked_session_prefix: str = Field(
        default="session_revoked:",
        description="Key prefix under which the provider publishes revoked sessions",
    )

    # --- Domain properties ---

    @cached_property
    def llm(self) -> LLMConfig:
        """LLM provider configuration."""
        return LLMConfig(
            provider=self.llm_provider,
            openai_api_key=self.openai_api_key,
            openai_model=self.openai_model,
            anthropic_api_key=self.anthropic_api_key,
            anthropic_model=self.anthropic_model,
            temperature=self.llm_temperature,
        )

    @cached_property
    def app(self) -> AppConfig:
        """Application environment configuration."""
        return AppConfig(
            name=self.app_name,
            env=self.app_env,
            debug=self.debug,
            system_prompt=self.system_prompt,
        )

    @cached_property
    def file_upload(self) -> FileUploadConfig:
        """File upload configuration."""
        return FileUploadConfig(
            storage_path=self.file_storage_path,
            public_base_url=self.file_public_base_url,
            max_file_size_mb=self.max_file_size_mb,
        )

    @cached_property
    def server(self) -> ServerConfig:
        """Server configuration."""
        return ServerConfig(
            host=self.host,
            port=self.port,
            reload=self.reload,
        )

    @cached_property
    def auth(self) -> AuthConfig:
        """Session token verification configuration."""
        return AuthConfig(
            secret_key=self.session_secret_key,
            algorithm=self.session_algorithm,
        )

    @cached_property
    def rate_limit(self) -> RateLimitConfig:
        """Per-endpoint rate limits."""
        return RateLimitConfig(
            chat_stream=self.chat_stream_rate_limit,
            upload=self.upload_rate_limit,
        )

    @cached_property
    def database(self) -> DatabaseConfig:
        """Database connection configuration."""
        return DatabaseConfig(
            url=self.database_url,
            pool_size=self.database_pool_size,
            max_overflow=self.database_max_overflow,
        )

    @cached_property
    def redis(self) -> RedisConfig:
        """Redis connection configuration."""
        return RedisConfig(
            url=self.redis_url,
            revoked_session_prefix=self.revoked_session_prefix,
        )

    # --- Convenience properties (delegate to domain configs) ---

    @property
    def max_file_size_bytes(self) -> int:
        """Get maximum file size in bytes."""
        return self.file_upload.max_file_size_bytes

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app.is_development


# Global settings instance
settings = Settings()
