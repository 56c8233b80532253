"""JWT Token Service."""

from datetime import datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from app.config import get_settings

SESSION_SCOPE = "session"
REMEMBER_SCOPE = "remember"


class JWTService:
    """Signs the session token and the remember-me user id."""

    def __init__(self) -> None:
        settings = get_settings()
        self.secret_key = settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM
        self.expire_minutes = settings.JWT_EXPIRE_MINUTES
        self.remember_days = settings.REMEMBER_COOKIE_DAYS

    def _encode(self, user_id: int, scope: str, expires: timedelta) -> str:
        payload = {
            "sub": str(user_id),
            "scope": scope,
            "exp": datetime.utcnow() + expires,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def create_token(self, user_id: int) -> str:
        """Create a session token for the given user."""
        return self._encode(user_id, SESSION_SCOPE, timedelta(minutes=self.expire_minutes))

    def create_remember_token(self, user_id: int) -> str:
        """Create the long-lived signed user id stored next to the remember token."""
        return self._encode(user_id, REMEMBER_SCOPE, timedelta(days=self.remember_days))

    def decode_token(self, token: str, scope: str = SESSION_SCOPE) -> dict[str, Any] | None:
        """Decode and validate a token of the given scope. Returns None if invalid."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
        if payload.get("scope") != scope:
            return None
        return payload

    def user_id_from_token(self, token: str, scope: str = SESSION_SCOPE) -> int | None:
        """Return the user id carried by a valid token."""
        payload = self.decode_token(token, scope)
        if not payload:
            return None
        try:
            return int(payload["sub"])
        except (KeyError, ValueError):
            return None


_jwt_service: JWTService | None = None


def get_jwt_service() -> JWTService:
    """Get singleton JWT service instance."""
    global _jwt_service
    if _jwt_service is None:
        _jwt_service = JWTService()
    return _jwt_service
