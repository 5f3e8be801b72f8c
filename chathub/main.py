"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from chathub.api.v1.chats_router import router as chats_router
from chathub.api.v1.files_router import router as files_router
from chathub.api.v1.messages_router import router as messages_router
from chathub.api.v1.messages_router import trailing_router
from chathub.api.v1.shared_router import router as shared_router
from chathub.api.v1.stream_router import router as stream_router
from chathub.core.config import settings
from chathub.core.database import Database
from chathub.core.exceptions import (
    AppException,
    app_exception_handler,
    validation_exception_handler,
)
from chathub.core.middleware import SessionMiddleware
from chathub.core.rate_limit import limiter, rate_limit_exceeded_handler
from chathub.core.redis import close_redis, init_redis
from chathub.schemas.response_schema import ApiResponse, success_response

logger = structlog.get_logger()

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.app.env,
        llm_provider=settings.llm.provider,
    )
    database = Database.from_config(settings.database, echo=settings.app.debug)
    app.state.database = database
    app.state.redis = await init_redis(settings.redis)
    if settings.app.is_development:
        await database.create_all()
    yield
    await close_redis(app.state.redis)
    await database.dispose()
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.app.name,
    description="AI chat backend with streamed replies and per-request chat ownership checks",
    version=API_VERSION,
    lifespan=lifespan,
    debug=settings.app.debug,
)

# Rate limiter
app.state.limiter = limiter

# Exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]

# Middleware (registration order: inner→outer, execution order: outer→inner)
app.add_middleware(SessionMiddleware)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.app.is_development else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=ApiResponse[dict])
async def health_check() -> dict:
    """Health check endpoint."""
    return success_response({"status": "healthy"})


@app.get("/", response_model=ApiResponse[dict])
async def root() -> dict:
    """Root endpoint."""
    return success_response(
        {
            "app": settings.app.name,
            "version": API_VERSION,
            "docs": "/docs",
        }
    )


# Register routers
app.include_router(chats_router)
app.include_router(messages_router)
app.include_router(trailing_router)
app.include_router(stream_router)
app.include_router(files_router)
app.include_router(shared_router)
