"""
Unit tests for signed admin session cookies.

Tests:
- Encode/decode of claims
- Tampering, expiry and malformed values
- Sign-in source claim
- Cookie attributes on issue and clear
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import Response

from lyric.auth.session import SOURCE_CODE, SOURCE_PASSWORD, AdminClaims, InvalidSession, SessionManager

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sessions() -> SessionManager:
    return SessionManager("admin_session", "secret", timedelta(hours=1), secure=True)


def issued(sessions: SessionManager) -> str:
    return sessions.encode(AdminClaims(id=7, username="root", role="editor", iat=int(NOW.timestamp())))


class TestDecode:
    """Tests for SessionManager.decode."""

    def test_round_trip(self, sessions: SessionManager):
        claims = sessions.decode(issued(sessions), now=NOW)
        assert claims == AdminClaims(id=7, username="root", role="editor", iat=int(NOW.timestamp()))

    def test_expired(self, sessions: SessionManager):
        with pytest.raises(InvalidSession):
            sessions.decode(issued(sessions), now=NOW + timedelta(hours=1, seconds=1))

    def test_valid_at_exact_expiry(self, sessions: SessionManager):
        assert sessions.decode(issued(sessions), now=NOW + timedelta(hours=1)).id == 7

    def test_tampered_payload(self, sessions: SessionManager):
        payload, signature = issued(sessions).split(".")
        flipped = ("A" if payload[0] != "A" else "B") + payload[1:]
        with pytest.raises(InvalidSession):
            sessions.decode(f"{flipped}.{signature}", now=NOW)

    def test_tampered_signature(self, sessions: SessionManager):
        payload, signature = issued(sessions).split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
        with pytest.raises(InvalidSession):
            sessions.decode(f"{payload}.{flipped}", now=NOW)

    def test_other_secret(self, sessions: SessionManager):
        other = SessionManager("admin_session", "different", timedelta(hours=1))
        with pytest.raises(InvalidSession):
            other.decode(issued(sessions), now=NOW)

    @pytest.mark.parametrize("value", ["", "abc", "a.b.c", "!!!.???", "e30.e30"])
    def test_malformed(self, sessions: SessionManager, value: str):
        with pytest.raises(InvalidSession):
            sessions.decode(value, now=NOW)

    def test_zero_iat_rejected(self, sessions: SessionManager):
        value = sessions.encode(AdminClaims(id=7, username="root", iat=0))
        with pytest.raises(InvalidSession):
            sessions.decode(value, now=NOW)

    def test_source_round_trip(self, sessions: SessionManager):
        value = sessions.encode(AdminClaims(id=7, username="a@mail.com", iat=int(NOW.timestamp()), source=SOURCE_CODE))
        assert sessions.decode(value, now=NOW).source == SOURCE_CODE
        assert sessions.decode(issued(sessions), now=NOW).source == SOURCE_PASSWORD

    def test_unknown_source_rejected(self, sessions: SessionManager):
        value = sessions.encode(AdminClaims(id=7, username="root", iat=int(NOW.timestamp()), source="sso"))
        with pytest.raises(InvalidSession):
            sessions.decode(value, now=NOW)


class TestIssue:
    """Tests for SessionManager.issue and clear."""

    def test_sets_cookie_attributes(self, sessions: SessionManager):
        response = Response()
        claims = sessions.issue(response, AdminClaims(id=1, username="root"), now=NOW)

        assert claims.iat == int(NOW.timestamp())
        cookie = response.headers["set-cookie"]
        assert cookie.startswith("admin_session=")
        assert "HttpOnly" in cookie
        assert "SameSite=strict" in cookie
        assert "Secure" in cookie
        assert "Path=/" in cookie
        assert "Max-Age=3600" in cookie

    @pytest.mark.parametrize("claims", [AdminClaims(id=0, username="root"), AdminClaims(id=1, username="  ")])
    def test_rejects_missing_principal(self, sessions: SessionManager, claims: AdminClaims):
        with pytest.raises(ValueError):
            sessions.issue(Response(), claims, now=NOW)

    def test_clear_expires_cookie(self, sessions: SessionManager):
        response = Response()
        sessions.clear(response)
        cookie = response.headers["set-cookie"]
        assert cookie.startswith('admin_session="";') or cookie.startswith("admin_session=;")
        assert "Max-Age=-1" in cookie
