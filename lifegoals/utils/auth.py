"""Authentication and authorization utilities."""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from lifegoals.config import settings


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Example:
        >>> hashed = hash_password("mypassword123")
        >>> hashed.startswith("$2b$")
        True
    """
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )


def create_access_token(
    user_id: str, expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token for a user.

    Each token carries a unique ``jti`` so it can be revoked on sign-out.

    Args:
        user_id: User ID to encode in token
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_expiration_minutes)
    )

    to_encode = {
        "sub": user_id,
        "jti": uuid.uuid4().hex,
        "exp": expire,
    }

    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    """
    Verify a JWT access token and return its claims.

    Raises:
        JWTError: If token is invalid, expired or missing the 'sub' claim
    """
    payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    if payload.get("sub") is None:
        raise JWTError("Token payload missing 'sub' claim")
    return payload


def verify_access_token(token: str) -> str:
    """
    Verify and decode a JWT access token.

    Returns:
        User ID from token

    Raises:
        JWTError: If token is invalid or expired

    Example:
        >>> token = create_access_token(user_id="user123")
        >>> verify_access_token(token)
        'user123'
    """
    return decode_access_token(token)["sub"]
