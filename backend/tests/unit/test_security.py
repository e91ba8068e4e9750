"""
Unit tests for password hashing, access tokens and claim parsing.
"""

from datetime import timedelta

import pytest
from jose import JWTError

from lyric.core.errors import AppError
from lyric.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    user_id_from_claims,
    verify_password,
)


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("S3cret-pass")
        assert hashed != "S3cret-pass"
        assert verify_password("S3cret-pass", hashed)
        assert not verify_password("wrong", hashed)

    def test_malformed_hash_is_a_mismatch(self):
        assert not verify_password("anything", "not-a-bcrypt-hash")


class TestAccessTokens:
    def test_claims(self):
        claims = decode_token(create_access_token(42, "abc@mail.com", "musician"))
        assert claims["sub"] == "42"
        assert claims["email"] == "abc@mail.com"
        assert claims["role"] == "musician"
        assert claims["typ"] == "access"
        assert claims["exp"] > claims["iat"]

    def test_expired_token_rejected(self):
        token = create_access_token(42, "abc@mail.com", "musician", expires_delta=timedelta(seconds=-1))
        with pytest.raises(JWTError):
            decode_token(token)


class TestUserIdFromClaims:
    """The sub claim may be a decimal string or a JSON number."""

    @pytest.mark.parametrize("sub,expected", [("42", 42), (" 7 ", 7), (42, 42), (42.0, 42)])
    def test_accepted(self, sub, expected):
        assert user_id_from_claims({"sub": sub}) == expected

    @pytest.mark.parametrize("sub", [None, "", "0", "-3", "abc", "4.5", 0, -1, 4.5, True, [1]])
    def test_rejected(self, sub):
        with pytest.raises(AppError) as exc_info:
            user_id_from_claims({"sub": sub})
        assert exc_info.value.status_code == 401

    def test_missing_claims(self):
        with pytest.raises(AppError):
            user_id_from_claims(None)
