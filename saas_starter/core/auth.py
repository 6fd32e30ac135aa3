"""
Session token and password utilities
"""

from datetime import timedelta
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Response
from typing import Optional
import uuid

from saas_starter.core.config import get_settings
from saas_starter.core.errors import InvalidToken
from saas_starter.core.timestamps import from_unix, utc_now
from saas_starter.schemas.token import SessionPayload

settings = get_settings()
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_session_token(
    user_id: uuid.UUID,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create signed session token for a user"""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)
    issued_at = utc_now()
    expire = issued_at + expires_delta

    to_encode = {
        "sub": str(user_id),
        "user": {"id": str(user_id)},
        "exp": expire,
        "iat": issued_at,
    }

    return jwt.encode(to_encode, settings.AUTH_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_session_token(token: str) -> SessionPayload:
    """Decode and validate a session token, raising InvalidToken on failure"""
    try:
        payload = jwt.decode(token, settings.AUTH_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise InvalidToken(str(e))

    try:
        return SessionPayload(
            user_id=uuid.UUID(payload["sub"]),
            expires=from_unix(payload["exp"]),
        )
    except (KeyError, TypeError, ValueError):
        raise InvalidToken("Malformed session payload")


def set_session_cookie(response: Response, user_id: uuid.UUID) -> str:
    """Issue a fresh token and store it in the session cookie"""
    token = create_session_token(user_id)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return token


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
