"""Session token verification configuration."""

from pydantic import BaseModel, SecretStr


class AuthConfig(BaseModel, frozen=True):
    """Settings shared with the external session provider.

    The provider signs session tokens with ``secret_key``; this service only
    verifies them and never issues or stores sessions of its own.
    """

    secret_key: SecretStr
    algorithm: str
    token_type: str = "session"
