"""
Pydantic schemas for feedback and user lookup.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class FeedbackPayload(BaseModel):
    model_config = ConfigDict(strict=True)

    message: str = ""


class FeedbackItem(BaseModel):
    id: int
    message: str
    created_at: datetime


class UserItem(BaseModel):
    id: int
    email: str
