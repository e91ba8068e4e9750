"""
Admin authentication: signed session cookies and the page dependencies built on them.
"""

from .deps import (
    LOGIN_PATH,
    AdminLoginRequired,
    admin_login_redirect_handler,
    admin_user,
    clear_if_invalid,
    require_admin,
)
from .session import (
    ADMIN_ROLES,
    ROLE_ADMIN,
    SOURCE_CODE,
    SOURCE_PASSWORD,
    AdminClaims,
    InvalidSession,
    NoSession,
    SessionManager,
    get_session_manager,
)

__all__ = [
    "LOGIN_PATH",
    "AdminLoginRequired",
    "admin_login_redirect_handler",
    "admin_user",
    "clear_if_invalid",
    "require_admin",
    "ADMIN_ROLES",
    "ROLE_ADMIN",
    "SOURCE_CODE",
    "SOURCE_PASSWORD",
    "AdminClaims",
    "InvalidSession",
    "NoSession",
    "SessionManager",
    "get_session_manager",
]
