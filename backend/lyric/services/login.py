"""
Passwordless OTP login.

Flow:
    1. request_otp(username) finds or creates the user, replaces any earlier
       codes with a fresh numeric code and hands it to the mailer.
    2. verify_code(code) redeems an unused, unexpired code exactly once and
       mints a bearer token for its user.

The code row is locked (SELECT ... FOR UPDATE) while it is checked and
marked used, so concurrent redemptions of one code yield a single token.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.core.config import Settings, get_settings
from lyric.core.database import utcnow
from lyric.core.errors import AppError
from lyric.core.security import create_access_token
from lyric.models import LoginCode, User
from lyric.models.user import DEFAULT_ROLE, USER_STATUS_ACTIVE, USER_STATUS_DELETED

from .mailer import Mailer, MailerError

logger = logging.getLogger(__name__)

DIGITS = "0123456789"

USERNAME_REQUIRED = "username is required"
USERNAME_INVALID = "username must be a valid email"
CODE_REQUIRED = "code is required"
CODE_NOT_NUMERIC = "code must be numeric"
CODE_INVALID = "code is invalid"
ACCOUNT_NOT_ACTIVE = "account is not active"
SEND_FAILED = "failed to send login code"


@dataclass
class VerifyResult:
    token: str
    user: User


def normalise_email(username: str) -> str:
    """
    Trim and lowercase a username and check it is a single plain email address.

    Raises:
        AppError: 422 {"username": ...} when blank or not an email
    """
    email = (username or "").strip().lower()
    if not email:
        raise AppError.validation({"username": USERNAME_REQUIRED})
    try:
        parsed = validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise AppError.validation({"username": USERNAME_INVALID})
    if parsed.normalized.lower() != email:
        raise AppError.validation({"username": USERNAME_INVALID})
    return email


def normalise_code(value: Any) -> str:
    """
    Coerce a JSON code value to its string form.

    Strings are trimmed; non-negative numbers are truncated to integers;
    anything else is rejected.

    Raises:
        AppError: 422 {"code": ...}
    """
    if value is None:
        raise AppError.validation({"code": CODE_REQUIRED})
    if isinstance(value, bool):
        raise AppError.validation({"code": CODE_NOT_NUMERIC})
    if isinstance(value, str):
        code = value.strip()
        if not code:
            raise AppError.validation({"code": CODE_REQUIRED})
        return code
    if isinstance(value, (int, float)):
        if value < 0 or value != value:
            raise AppError.validation({"code": CODE_NOT_NUMERIC})
        return str(int(value))
    raise AppError.validation({"code": CODE_NOT_NUMERIC})


def generate_code(length: int) -> str:
    """Numeric code drawn uniformly from 0-9 with the secrets RNG."""
    return "".join(secrets.choice(DIGITS) for _ in range(length))


class LoginService:
    """
    Usage:
        service = LoginService(db, mailer)
        await service.request_otp("abc@mail.com")
        result = await service.verify_code("123456")
    """

    def __init__(self, db: AsyncSession, mailer: Mailer, settings: Optional[Settings] = None):
        self.db = db
        self.mailer = mailer
        self.settings = settings or get_settings()

    async def find_or_create_user(self, email: str) -> User:
        user = (await self.db.execute(select(User).where(User.email == email))).scalar_one_or_none()
        if user is not None:
            return user

        user = User(email=email, role=DEFAULT_ROLE, status=USER_STATUS_ACTIVE, created_at=utcnow())
        self.db.add(user)
        await self.db.flush()
        logger.info("created user %d for %s", user.id, email)
        return user

    async def request_otp(self, username: str, now: Optional[datetime] = None) -> User:
        """
        Issue a fresh login code and deliver it.

        The code is committed before delivery, so a mail failure leaves it
        redeemable and a repeated request simply replaces it.

        Raises:
            AppError: 422 for a bad username, 403 for inactive accounts,
                500 "failed to send login code" when delivery fails
        """
        email = normalise_email(username)
        user = await self.find_or_create_user(email)
        if not user.is_active:
            raise AppError.forbidden(ACCOUNT_NOT_ACTIVE)

        code = generate_code(self.settings.auth_otp_length)
        expires_at = (now or utcnow()) + self.settings.auth_otp_ttl

        await self.db.execute(delete(LoginCode).where(LoginCode.user_id == user.id))
        await self.db.execute(
            insert(LoginCode).values(
                user_id=user.id,
                code=code,
                expires_at=expires_at,
                created_at=utcnow(),
            )
        )
        await self.db.commit()

        try:
            await self.mailer.send_otp(user.email, code, expires_at)
        except MailerError as exc:
            logger.error("deliver otp to %s: %s", user.email, exc)
            raise AppError.internal(exc, SEND_FAILED)
        return user

    async def verify_code(self, value: Any, now: Optional[datetime] = None) -> VerifyResult:
        """
        Redeem a login code and mint an access token.

        Raises:
            AppError: 422 {"code": ...} when the code is missing, malformed,
                unknown, expired or already used; 403 when the account is
                not active (the code stays unused)
        """
        code = normalise_code(value)
        if len(code) != self.settings.auth_otp_length or not all(ch in DIGITS for ch in code):
            raise AppError.validation({"code": CODE_INVALID})

        attempted_at = now or utcnow()
        row = (
            await self.db.execute(
                select(LoginCode, User)
                .join(User, User.id == LoginCode.user_id)
                .where(
                    LoginCode.code == code,
                    LoginCode.used_at.is_(None),
                    LoginCode.expires_at >= attempted_at,
                )
                .order_by(LoginCode.id.asc())
                .limit(1)
                .with_for_update(of=LoginCode)
            )
        ).first()
        if row is None:
            raise AppError.validation({"code": CODE_INVALID})

        login_code, user = row
        if not user.is_active:
            raise AppError.forbidden(ACCOUNT_NOT_ACTIVE)

        result = await self.db.execute(
            update(LoginCode)
            .where(LoginCode.id == login_code.id, LoginCode.used_at.is_(None))
            .values(used_at=attempted_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AppError.validation({"code": CODE_INVALID})

        token = create_access_token(user.id, user.email, user.role, now=attempted_at)
        logger.info("user %d signed in", user.id)
        return VerifyResult(token=token, user=user)

    async def current_user(self, user_id: int) -> User:
        """
        Raises:
            AppError: 401 when the user is missing or no longer active
        """
        user = await self.db.get(User, user_id)
        if user is None or not user.is_active:
            raise AppError.unauthorized()
        return user

    async def delete_account(self, user_id: int) -> None:
        """Mark the account deleted and drop its unused login codes."""
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.status == USER_STATUS_ACTIVE)
            .values(status=USER_STATUS_DELETED)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AppError.unauthorized()
        await self.db.execute(
            delete(LoginCode).where(LoginCode.user_id == user_id, LoginCode.used_at.is_(None))
        )
        logger.info("user %d deleted their account", user_id)
