"""Domain-specific configuration models."""

from chathub.core.settings.app_config import AppConfig
from chathub.core.settings.auth_config import AuthConfig
from chathub.core.settings.database_config import DatabaseConfig
from chathub.core.settings.file_upload_config import FileUploadConfig
from chathub.core.settings.llm_config import LLMConfig
from chathub.core.settings.rate_limit_config import RateLimitConfig
from chathub.core.settings.redis_config import RedisConfig
from chathub.core.settings.server_config import ServerConfig

__all__ = [
    "AppConfig",
    "AuthConfig",
    "DatabaseConfig",
    "FileUploadConfig",
    "LLMConfig",
    "RateLimitConfig",
    "RedisConfig",
    "ServerConfig",
]
