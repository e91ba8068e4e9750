"""
User models for Lyric.

Stores musician accounts, their one-time login codes, and the separately
provisioned admin accounts.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lyric.core.database import Base, utcnow

USER_STATUS_ACTIVE = "active"
USER_STATUS_DELETED = "deleted"
DEFAULT_ROLE = "musician"


class User(Base):
    """User model representing a registered musician (or editor/admin role)."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Serial primary key"
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        doc="Lowercased email address, used as the login name"
    )
    role: Mapped[str] = mapped_column(
        String(32),
        default=DEFAULT_ROLE,
        nullable=False,
        doc="Role: musician, editor or admin"
    )
    status: Mapped[str] = mapped_column(
        String(16),
        default=USER_STATUS_ACTIVE,
        nullable=False,
        doc="Account status: active or deleted"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        doc="Account creation timestamp"
    )

    # Relationships
    login_codes: Mapped[List["LoginCode"]] = relationship(
        "LoginCode",
        back_populates="user",
        cascade="all, delete-orphan"
    )

    @property
    def is_active(self) -> bool:
        return (self.status or "").strip().lower() == USER_STATUS_ACTIVE

    def __repr__(self) -> str:
        return f"<User(id={self.id!r}, email={self.email!r}, status={self.status!r})>"


class LoginCode(Base):
    """
    One-time login code issued to a user.

    A code is redeemable while used_at is NULL and expires_at has not passed.
    Issuing a new code deletes the user's previous codes in the same
    transaction, so at most one live code exists per user.
    """

    __tablename__ = "user_login_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Foreign key to the owning user"
    )
    code: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        index=True,
        doc="Numeric code as digits"
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        doc="Code is rejected after this instant"
    )
    used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Redemption timestamp; set exactly once"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    user: Mapped["User"] = relationship("User", back_populates="login_codes")

    def __repr__(self) -> str:
        return f"<LoginCode(id={self.id!r}, user_id={self.user_id!r}, used_at={self.used_at!r})>"


class AdminUser(Base):
    """Admin account with a bcrypt password, provisioned out of band."""

    __tablename__ = "admin_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        doc="Unique admin username"
    )
    password_hash: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        doc="Hashed password (bcrypt)"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AdminUser(id={self.id!r}, username={self.username!r})>"
