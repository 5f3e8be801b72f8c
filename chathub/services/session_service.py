"""Read-only access to sessions issued by the external auth provider."""

import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
import redis.asyncio as redis
import structlog

from chathub.core.settings import AuthConfig

logger = structlog.get_logger()

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Session:
    """Caller identity resolved from a session token."""

    user_id: str
    is_anonymous: bool
    session_id: str
    expires_at: datetime


class SessionService:
    """Resolve request credentials into a :class:`Session`.

    Tokens are HS256 JWTs signed by the auth provider. The provider publishes
    revoked sessions to Redis under ``revoked_prefix + jti``; such sessions
    resolve to ``None`` exactly like missing or expired ones.
    """

    def __init__(
        self,
        config: AuthConfig,
        redis_client: redis.Redis | None,  # type: ignore[type-arg]
        revoked_prefix: str,
    ) -> None:
        self._secret = config.secret_key.get_secret_value()
        self._algorithm = config.algorithm
        self._token_type = config.token_type
        self._redis = redis_client
        self._revoked_prefix = revoked_prefix

    async def get_session(self, headers: Mapping[str, str]) -> Session | None:
        """Return the caller's session, or ``None`` when there is no valid one."""
        auth_header = headers.get("authorization", "")
        if not auth_header.startswith(BEARER_PREFIX):
            return None
        token = auth_header[len(BEARER_PREFIX) :]

        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            logger.info("Session expired")
            return None
        except jwt.InvalidTokenError:
            logger.info("Session token rejected")
            return None

        if payload.get("type") != self._token_type or not payload.get("sub"):
            return None

        jti = str(payload.get("jti", ""))
        if await self.is_revoked(jti):
            logger.info("Session revoked", session_id=jti)
            return None

        return Session(
            user_id=str(payload["sub"]),
            is_anonymous=bool(payload.get("is_anonymous", False)),
            session_id=jti,
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=UTC),
        )

    async def is_revoked(self, jti: str) -> bool:
        """Check the provider's revocation list."""
        if self._redis is None or not jti:
            return False
        return await self._redis.get(f"{self._revoked_prefix}{jti}") is not None


def sign_session_token(
    config: AuthConfig,
    user_id: str,
    is_anonymous: bool = False,
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    """Sign a session token the way the auth provider does.

    Used by local tooling and tests; production tokens come from the provider.
    """
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "is_anonymous": is_anonymous,
        "type": config.token_type,
        "jti": str(uuid.uuid4()),
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(
        payload, config.secret_key.get_secret_value(), algorithm=config.algorithm
    )
