"""ASGI session middleware."""

import json

import structlog
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send

from chathub.core.config import settings
from chathub.core.exceptions import UnauthorizedError, error_body
from chathub.services.session_service import SessionService

logger = structlog.get_logger()

PUBLIC_PATHS: set[str] = {
    "",
    "/",
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
}

PUBLIC_PREFIXES: tuple[str, ...] = ("/docs", "/redoc", "/api/v1/shared/")


class SessionMiddleware:
    """Pure ASGI middleware resolving the caller's session (SSE-compatible).

    Protected paths without a valid session are answered with 401
    ``unauthorized:chat``. Resolved identity is written to ``scope["state"]``
    for :func:`chathub.dependencies.get_current_user`.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "")
        if method == "OPTIONS":
            await self.app(scope, receive, send)
            return

        path = scope["path"]
        normalized = path.rstrip("/") or "/"
        if normalized in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES):
            await self.app(scope, receive, send)
            return

        app_state = scope["app"].state
        session_service = SessionService(
            config=settings.auth,
            redis_client=getattr(app_state, "redis", None),
            revoked_prefix=settings.redis.revoked_session_prefix,
        )
        session = await session_service.get_session(Headers(scope=scope))
        if session is None:
            await self._send_error(send, UnauthorizedError())
            return

        scope.setdefault("state", {})
        scope["state"]["user_id"] = session.user_id
        scope["state"]["is_anonymous"] = session.is_anonymous
        scope["state"]["session_id"] = session.session_id
        scope["state"]["session_expires_at"] = session.expires_at

        await self.app(scope, receive, send)

    @staticmethod
    async def _send_error(send: Send, exc: UnauthorizedError) -> None:
        """Send a JSON error response directly."""
        body = json.dumps(error_body(exc.status_code, exc.message, exc.code)).encode()

        await send(
            {
                "type": "http.response.start",
                "status": exc.status_code,
                "headers": [
                    [b"content-type", b"application/json"],
                    [b"content-length", str(len(body)).encode()],
                ],
            }
        )
        await send({"type": "http.response.body", "body": body})
