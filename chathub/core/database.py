"""Async database engine and session configuration."""

from collections.abc import AsyncGenerator
from typing import Any

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from chathub.core.settings import DatabaseConfig


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Process-lifetime handle owning the engine and its session factory.

    Built once in the application lifespan and stored on ``app.state``;
    handlers reach it through :func:`get_database` instead of a module global.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        if engine.dialect.name == "sqlite":
            event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_config(cls, config: DatabaseConfig, echo: bool = False) -> "Database":
        """Create a pooled engine from the database settings."""
        kwargs: dict[str, Any] = {"echo": echo}
        if not config.is_sqlite:
            kwargs.update(
                pool_size=config.pool_size,
                max_overflow=config.max_overflow,
                pool_recycle=3600,
                pool_pre_ping=True,
            )
        return cls(create_async_engine(config.async_url, **kwargs))

    async def create_all(self) -> None:
        """Create missing tables (development only; migrations own production)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()


def get_database(request: Request) -> Database:
    """Return the database handle installed by the lifespan."""
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database not initialized")
    return database


async def get_async_session(
    request: Request,
) -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session committed at the end of the request."""
    database = get_database(request)
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
