"""
Feedback service: free-text messages left by signed-in users.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from lyric.core.database import utcnow
from lyric.core.errors import ValidationErrors
from lyric.models import Feedback
from lyric.schemas import FeedbackItem


class FeedbackService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, user_id: int, message: str) -> FeedbackItem:
        """
        Store a feedback message.

        Raises:
            AppError: 422 {"message": "message is required"} for blank input
        """
        text = message.strip()
        errors = ValidationErrors()
        if not text:
            errors.add("message", "message is required")
        errors.raise_if_any()

        feedback = Feedback(user_id=user_id, message=text, created_at=utcnow())
        self.db.add(feedback)
        await self.db.flush()
        return FeedbackItem(id=feedback.id, message=feedback.message, created_at=feedback.created_at)
