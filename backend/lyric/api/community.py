"""
Feedback and user lookup endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.api.deps import get_db, require_user_id
from lyric.core.errors import ValidationErrors
from lyric.schemas import FeedbackPayload
from lyric.services.catalogue import UserService
from lyric.services.feedback import FeedbackService

router = APIRouter()


@router.post("/feedback", status_code=status.HTTP_201_CREATED)
async def create_feedback(
    data: FeedbackPayload,
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    feedback = await FeedbackService(db).create(user_id, data.message)
    return {"data": jsonable_encoder(feedback)}


@router.post("/users")
async def search_users(email: Optional[str] = None, db: AsyncSession = Depends(get_db)) -> dict:
    """
    Find users by email fragment, used when sharing playlists.

    Raises:
        AppError 422: {"email": "email is required"}
    """
    fragment = (email or "").strip()
    errors = ValidationErrors()
    if not fragment:
        errors.add("email", "email is required")
    errors.raise_if_any()

    users = await UserService(db).search_by_email(fragment)
    return {"data": [user.model_dump() for user in users]}
