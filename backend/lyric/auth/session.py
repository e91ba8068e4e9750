"""
Signed admin session cookies.

The cookie value is

    base64url(json(claims)) + "." + base64url(hmac_sha256(secret, json(claims)))

with unpadded URL-safe base64. Nothing is stored server side: a session is
valid while its signature matches and iat + TTL has not passed.
"""

import base64
import binascii
import hashlib
import hmac
import json
import re
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Request, Response

from lyric.core.config import Settings, get_settings
from lyric.core.database import utcnow

ROLE_ADMIN = "admin"
ROLE_EDITOR = "editor"
ADMIN_ROLES = (ROLE_ADMIN, ROLE_EDITOR)

# How the session was obtained; only emailed-code sessions map to a users row
SOURCE_PASSWORD = "password"
SOURCE_CODE = "code"
SESSION_SOURCES = (SOURCE_PASSWORD, SOURCE_CODE)

_BASE64URL = re.compile(r"^[A-Za-z0-9_-]*$")


class NoSession(Exception):
    """The request carries no admin session cookie."""


class InvalidSession(Exception):
    """The admin session cookie is malformed, tampered with or expired."""


@dataclass
class AdminClaims:
    id: int
    username: str
    role: str = ROLE_ADMIN
    iat: int = 0
    source: str = SOURCE_PASSWORD


def _encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _decode(value: str) -> bytes:
    if not _BASE64URL.match(value):
        raise InvalidSession()
    try:
        return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))
    except (binascii.Error, ValueError):
        raise InvalidSession()


class SessionManager:
    """
    Issues, validates and clears admin session cookies.

    Usage:
        sessions = SessionManager.from_settings(get_settings())
        sessions.issue(response, AdminClaims(id=1, username="root"))
        claims = sessions.validate(request)
    """

    def __init__(self, cookie_name: str, secret: str, ttl: timedelta, secure: bool = False):
        self.cookie_name = cookie_name
        self.secret = secret.encode("utf-8")
        self.ttl = ttl
        self.secure = secure

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionManager":
        return cls(
            cookie_name=settings.admin_session_cookie,
            secret=settings.admin_session_secret,
            ttl=settings.admin_session_ttl,
            secure=settings.admin_session_secure,
        )

    def _sign(self, payload: bytes) -> bytes:
        return hmac.new(self.secret, payload, hashlib.sha256).digest()

    def encode(self, claims: AdminClaims) -> str:
        payload = json.dumps(asdict(claims), separators=(",", ":")).encode("utf-8")
        return _encode(payload) + "." + _encode(self._sign(payload))

    def decode(self, value: str, now: Optional[datetime] = None) -> AdminClaims:
        """
        Verify a cookie value and return its claims.

        Raises:
            InvalidSession: on any structural, signature or expiry failure
        """
        parts = value.split(".")
        if len(parts) != 2:
            raise InvalidSession()
        payload = _decode(parts[0])
        signature = _decode(parts[1])
        if not hmac.compare_digest(signature, self._sign(payload)):
            raise InvalidSession()

        try:
            data = json.loads(payload)
        except ValueError:
            raise InvalidSession()
        if not isinstance(data, dict):
            raise InvalidSession()

        user_id = data.get("id")
        username = data.get("username")
        role = data.get("role") or ROLE_ADMIN
        issued_at = data.get("iat")
        source = data.get("source") or SOURCE_PASSWORD
        if (
            not isinstance(user_id, int)
            or isinstance(user_id, bool)
            or not isinstance(username, str)
            or not isinstance(role, str)
            or not isinstance(issued_at, int)
            or isinstance(issued_at, bool)
            or issued_at == 0
            or source not in SESSION_SOURCES
        ):
            raise InvalidSession()

        current = now or utcnow()
        expires = datetime.fromtimestamp(issued_at, tz=timezone.utc) + self.ttl
        if current > expires:
            raise InvalidSession()
        return AdminClaims(id=user_id, username=username, role=role, iat=issued_at, source=source)

    def issue(self, response: Response, claims: AdminClaims, now: Optional[datetime] = None) -> AdminClaims:
        """
        Sign the claims and set the session cookie on the response.

        Raises:
            ValueError: when the claims carry no id or a blank username
        """
        if claims.id == 0 or not claims.username.strip():
            raise ValueError("issue admin session: missing principal")
        if claims.iat == 0:
            claims.iat = int((now or utcnow()).timestamp())

        expires = datetime.fromtimestamp(claims.iat, tz=timezone.utc) + self.ttl
        response.set_cookie(
            key=self.cookie_name,
            value=self.encode(claims),
            max_age=int(self.ttl.total_seconds()),
            expires=expires,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite="strict",
        )
        return claims

    def validate(self, request: Request, now: Optional[datetime] = None) -> AdminClaims:
        """
        Raises:
            NoSession: when the cookie is absent
            InvalidSession: when the cookie does not verify
        """
        value = request.cookies.get(self.cookie_name)
        if value is None:
            raise NoSession()
        return self.decode(value, now)

    def clear(self, response: Response) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value="",
            max_age=-1,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite="strict",
        )


def get_session_manager() -> SessionManager:
    return SessionManager.from_settings(get_settings())
