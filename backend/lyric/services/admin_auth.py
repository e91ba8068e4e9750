"""
Password authentication for provisioned admin accounts.
"""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.core.security import verify_password
from lyric.models import AdminUser


class InvalidCredentials(Exception):
    """Username or password did not match an admin account."""


@dataclass
class AdminPrincipal:
    id: int
    username: str


class AdminAuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def authenticate(self, username: str, password: str) -> AdminPrincipal:
        """
        Check a username/password pair against the stored bcrypt hash.

        Raises:
            InvalidCredentials: for blank input, unknown users or a wrong password
        """
        name = (username or "").strip()
        if not name or not (password or "").strip():
            raise InvalidCredentials()

        admin = (
            await self.db.execute(select(AdminUser).where(AdminUser.username == name))
        ).scalar_one_or_none()
        if admin is None or not verify_password(password, admin.password_hash):
            raise InvalidCredentials()
        return AdminPrincipal(id=admin.id, username=admin.username)
