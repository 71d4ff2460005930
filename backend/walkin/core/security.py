"""Password hashing and access tokens."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from walkin.core.config import settings

# Password hashing
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ALGORITHM = "HS256"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    subject: str,
    claims: Optional[dict[str, Any]] = None,
    expires_delta: Optional[timedelta] = None,
    secret_key: Optional[str] = None,
) -> str:
    """
    Create a signed access token.

    Args:
        subject: User uid, stored as the ``sub`` claim
        claims: Extra claims (e.g. ``role``)
        expires_delta: Token lifetime; defaults to ACCESS_TOKEN_EXPIRE_MINUTES
        secret_key: Signing key; defaults to SECRET_KEY

    Returns:
        Encoded JWT
    """
    to_encode = dict(claims or {})
    expires_delta = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta

    to_encode.update({"sub": subject, "exp": expire, "type": "access"})
    return jwt.encode(to_encode, secret_key or settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str, secret_key: Optional[str] = None) -> Optional[dict[str, Any]]:
    """
    Decode and verify an access token.

    Returns:
        The claims, or None if the token is invalid, expired or not an
        access token
    """
    try:
        payload = jwt.decode(token, secret_key or settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != "access" or not payload.get("sub"):
        return None
    return payload
