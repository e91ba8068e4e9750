"""
OTP login and account endpoints.

POST /api/login starts a login by mailing a one-time code; POST /api/code
redeems it for a bearer token.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.api.deps import get_db, get_mailer, require_user_id
from lyric.schemas import CodeRequest, LoginRequest
from lyric.services.login import LoginService
from lyric.services.mailer import Mailer

router = APIRouter()


@router.post("/login")
async def request_login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """
    Issue a login code for the email in "username".

    Unknown emails get an account on first request.

    Raises:
        AppError 422: username missing or not an email
        AppError 403: account is not active
        AppError 500: the code could not be delivered
    """
    await LoginService(db, mailer).request_otp(data.username)
    return {"data": {"message": "Success"}}


@router.post("/code")
async def verify_code(
    data: CodeRequest,
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """
    Redeem a login code for an access token.

    Raises:
        AppError 422: {"code": ...} for missing, malformed or unusable codes
        AppError 403: account is not active
    """
    result = await LoginService(db, mailer).verify_code(data.code)
    return {"data": {"access_token": result.token}}


@router.post("/me")
async def current_user(
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    user = await LoginService(db, mailer).current_user(user_id)
    return {"data": {"username": user.email, "role": user.role}}


@router.delete("/me")
async def delete_account(
    user_id: int = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    await LoginService(db, mailer).delete_account(user_id)
    return {"data": {"message": "Account deleted successfully"}}
