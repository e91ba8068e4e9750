"""
Admin session dependencies for the server-rendered admin pages.

admin_user (WithUser mode) resolves the signed-in admin or None; a cookie
that fails validation is flagged on request.state so the page clears it
with clear_if_invalid(). require_admin (Require mode) redirects to the
login page instead of returning None.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import Depends, Request
from fastapi.responses import RedirectResponse, Response

from .session import AdminClaims, InvalidSession, NoSession, SessionManager, get_session_manager

logger = logging.getLogger(__name__)

LOGIN_PATH = "/admin/login"


class AdminLoginRequired(Exception):
    """Raised by require_admin; rendered as a 302 to the login page."""

    def __init__(self, redirect: str = "", clear_cookie: bool = False):
        super().__init__("admin login required")
        self.redirect = redirect
        self.clear_cookie = clear_cookie


async def admin_user(
    request: Request,
    sessions: SessionManager = Depends(get_session_manager),
) -> Optional[AdminClaims]:
    try:
        claims = sessions.validate(request)
    except NoSession:
        return None
    except InvalidSession:
        logger.info("clearing invalid admin session from %s", request.client.host if request.client else "-")
        request.state.clear_admin_session = True
        return None
    request.state.admin = claims
    return claims


async def require_admin(
    request: Request,
    sessions: SessionManager = Depends(get_session_manager),
) -> AdminClaims:
    try:
        claims = sessions.validate(request)
    except NoSession:
        raise AdminLoginRequired(redirect=_current_path(request))
    except InvalidSession:
        raise AdminLoginRequired(redirect=_current_path(request), clear_cookie=True)
    request.state.admin = claims
    return claims


def _current_path(request: Request) -> str:
    path = request.url.path
    if request.url.query:
        path += "?" + request.url.query
    return path


async def admin_login_redirect_handler(request: Request, exc: AdminLoginRequired) -> RedirectResponse:
    location = LOGIN_PATH
    if exc.redirect and exc.redirect != LOGIN_PATH:
        location += "?" + urlencode({"redirect": exc.redirect})
    response = RedirectResponse(location, status_code=302)
    if exc.clear_cookie:
        get_session_manager().clear(response)
    return response


def clear_if_invalid(request: Request, response: Response) -> Response:
    """Expire the session cookie on the response when admin_user rejected it."""
    if getattr(request.state, "clear_admin_session", False):
        get_session_manager().clear(response)
    return response
