"""
Security utilities for Lyric.

Provides bcrypt password verification, JWT access token management and the
bearer-token dependencies that resolve the calling user's id.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import get_settings
from .database import utcnow
from .errors import AppError

logger = logging.getLogger(__name__)

# Password hashing context using bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"
TOKEN_TYPE_ACCESS = "access"

# HTTP Bearer token scheme; missing headers are reported by the dependencies below
security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Hashed password string
    """
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a password against its hash.

    Malformed hashes count as a mismatch.

    Args:
        plain: Plain text password to verify
        hashed: Hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def create_access_token(
    user_id: int,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Create a signed JWT access token.

    Args:
        user_id: User ID stored in the "sub" claim as a decimal string
        email: User email
        role: User role
        expires_delta: Optional custom lifetime (defaults to WEB_AUTH_TOKEN_TTL)
        now: Issue time (defaults to the current time)

    Returns:
        Encoded JWT token string
    """
    settings = get_settings()
    if expires_delta is None:
        expires_delta = settings.auth_token_ttl
    issued_at = now or utcnow()

    claims = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + expires_delta).timestamp()),
        "typ": TOKEN_TYPE_ACCESS,
    }
    return jwt.encode(claims, settings.auth_token_secret, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decode and validate a JWT token.

    Args:
        token: JWT token string to decode

    Returns:
        Decoded token payload

    Raises:
        JWTError: If token is invalid or expired
    """
    return jwt.decode(
        token,
        get_settings().auth_token_secret,
        algorithms=[ALGORITHM],
        options={"verify_sub": False, "require_sub": True, "require_exp": True},
    )


def user_id_from_claims(claims: Optional[dict[str, Any]]) -> int:
    """
    Extract the user id from the "sub" claim.

    "sub" is written as a decimal string but may arrive as a JSON number
    after a round trip through other clients, so both forms are accepted.

    Raises:
        AppError: 401 when the claim is missing, non-positive or not an integer
    """
    if not claims:
        raise AppError.unauthorized()

    sub = claims.get("sub")
    user_id: Optional[int] = None

    if isinstance(sub, bool):
        user_id = None
    elif isinstance(sub, str):
        text = sub.strip()
        if text.isascii() and text.isdigit():
            user_id = int(text)
    elif isinstance(sub, int):
        user_id = sub
    elif isinstance(sub, float) and sub.is_integer():
        user_id = int(sub)

    if user_id is None or user_id <= 0:
        raise AppError.unauthorized()
    return user_id


def _verify_credentials(credentials: Optional[HTTPAuthorizationCredentials]) -> dict:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AppError.unauthorized()
    try:
        claims = decode_token(credentials.credentials)
    except JWTError as exc:
        logger.debug("rejected bearer token: %s", exc)
        raise AppError.unauthorized()
    if claims.get("typ", TOKEN_TYPE_ACCESS) != TOKEN_TYPE_ACCESS:
        raise AppError.unauthorized()
    return claims


async def require_claims(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    FastAPI dependency that verifies the bearer token and stores its claims
    on request.state.claims.

    Raises:
        AppError: 401 if the token is missing, invalid or expired
    """
    claims = _verify_credentials(credentials)
    request.state.claims = claims
    return claims


async def require_user_id(claims: dict = Depends(require_claims)) -> int:
    """
    FastAPI dependency returning the authenticated user's id.

    Usage:
        @router.post("/feedback")
        async def create(user_id: int = Depends(require_user_id)):
            ...
    """
    return user_id_from_claims(claims)


async def optional_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[int]:
    """
    Resolve the user id when a valid bearer token is present, else None.

    Invalid tokens on public routes are ignored rather than rejected.
    """
    if credentials is None:
        return None
    try:
        claims = _verify_credentials(credentials)
        user_id = user_id_from_claims(claims)
    except AppError:
        return None
    request.state.claims = claims
    return user_id
