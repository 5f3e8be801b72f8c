"""Database connection configuration."""

from pydantic import BaseModel, SecretStr


class DatabaseConfig(BaseModel, frozen=True):
    """Database connection and pool settings."""

    url: SecretStr
    pool_size: int
    max_overflow: int

    @property
    def async_url(self) -> str:
        """DB URL, with utf8mb4 charset forced for MySQL."""
        base = self.url.get_secret_value()
        if base.startswith("mysql") and "?" not in base:
            return f"{base}?charset=utf8mb4"
        return base

    @property
    def is_sqlite(self) -> bool:
        """SQLite engines do not accept pool sizing arguments."""
        return self.url.get_secret_value().startswith("sqlite")
