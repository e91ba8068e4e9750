"""
Pydantic schemas for OTP login requests.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict


class LoginRequest(BaseModel):
    """Schema for POST /api/login; username is the email address."""

    model_config = ConfigDict(extra="forbid", strict=True)

    username: str = ""


class CodeRequest(BaseModel):
    """
    Schema for POST /api/code.

    The code may arrive as a JSON string or number, so it is coerced by the
    login service rather than by pydantic.
    """

    model_config = ConfigDict(extra="forbid")

    code: Any = None
