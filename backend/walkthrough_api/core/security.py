"""Password hashing and JWT access tokens."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from walkthrough_api.core.config import Settings
from walkthrough_api.core.errors import AuthenticationError

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Unknown or malformed hash
        return False


def _resolve_expiry(settings: Settings, expires_delta: Optional[timedelta]) -> datetime:
    delta = expires_delta
    if delta is None:
        minutes = settings.access_token_expire_minutes
        delta = timedelta(minutes=minutes) if minutes > 0 else timedelta(days=1)
    return datetime.now(timezone.utc) + delta


def create_access_token(
    settings: Settings,
    subject: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    to_encode: dict[str, Any] = {
        "sub": subject,
        "role": role,
        "exp": _resolve_expiry(settings, expires_delta),
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> dict[str, Any]:
    """Return the token claims; raises AuthenticationError when invalid or expired."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise AuthenticationError() from exc
    if not payload.get("sub"):
        raise AuthenticationError()
    return payload
