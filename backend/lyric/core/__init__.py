# Core modules for the Lyric backend
from .config import Settings, get_settings, parse_duration
from .database import AsyncSessionLocal, Base, async_engine, get_async_session, utcnow
from .errors import AppError, ValidationErrors, register_exception_handlers
from .security import (
    create_access_token,
    decode_token,
    hash_password,
    optional_user_id,
    require_claims,
    require_user_id,
    verify_password,
)

__all__ = [
    "Settings",
    "get_settings",
    "parse_duration",
    "AsyncSessionLocal",
    "Base",
    "async_engine",
    "get_async_session",
    "utcnow",
    "AppError",
    "ValidationErrors",
    "register_exception_handlers",
    "create_access_token",
    "decode_token",
    "hash_password",
    "optional_user_id",
    "require_claims",
    "require_user_id",
    "verify_password",
]
