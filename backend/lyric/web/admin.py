"""
Admin pages.

Sign-in works two ways: an emailed code for users holding the admin or
editor role, or a username/password pair for provisioned admin accounts.
Both end in a signed session cookie. Every page other than the sign-in
forms requires that cookie and redirects to /admin/login without it.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.api.deps import get_db, get_mailer
from lyric.auth import (
    ADMIN_ROLES,
    LOGIN_PATH,
    ROLE_ADMIN,
    SOURCE_CODE,
    SOURCE_PASSWORD,
    AdminClaims,
    SessionManager,
    admin_user,
    clear_if_invalid,
    get_session_manager,
    require_admin,
)
from lyric.core.errors import AppError
from lyric.models import Album, Artist, Language, Level, Song, User, Writer
from lyric.services.admin_auth import AdminAuthService, InvalidCredentials
from lyric.services.catalogue import UserService, named_options
from lyric.services.login import LoginService
from lyric.services.mailer import Mailer
from lyric.services.params import parse_int_or_default, parse_search
from lyric.services.songs import SongService

from .forms import SongForm
from .templating import templates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", default_response_class=HTMLResponse)

DEFAULT_REDIRECT = "/admin/songs"

REQUEST_FAILED = "Can't process your request now"
INVALID_CODE = "Invalid code."
NO_PERMISSION = "You don't have permission to access this page"
INVALID_CREDENTIALS = "Invalid username or password."
SAVE_FAILED = "Failed to save the song. Please try again."


def safe_redirect(target: Optional[str]) -> str:
    """Only same-site absolute paths are followed; anything else goes to the song list."""
    target = (target or "").strip()
    if not target.startswith("/") or target.startswith("//") or "\\" in target:
        return DEFAULT_REDIRECT
    return target


def _form_text(form, name: str) -> str:
    value = form.get(name)
    return value.strip() if isinstance(value, str) else ""


def _signed_in(
    sessions: SessionManager,
    claims: AdminClaims,
    redirect: str,
) -> RedirectResponse:
    response = RedirectResponse(safe_redirect(redirect), status_code=status.HTTP_302_FOUND)
    sessions.issue(response, claims)
    return response


def _login_page(
    request: Request,
    redirect: str = "",
    email: str = "",
    error: str = "",
    status_code: int = status.HTTP_200_OK,
) -> Response:
    response = templates.TemplateResponse(
        request,
        "admin/login.html",
        {"redirect": redirect, "email": email, "error": error},
        status_code=status_code,
    )
    return clear_if_invalid(request, response)


# =============================================================================
# Sign-in
# =============================================================================


@router.get("/login")
async def login_form(
    request: Request,
    redirect: Optional[str] = None,
    admin: Optional[AdminClaims] = Depends(admin_user),
) -> Response:
    if admin is not None:
        return RedirectResponse(DEFAULT_REDIRECT, status_code=status.HTTP_302_FOUND)
    return _login_page(request, redirect=safe_redirect(redirect) if redirect else "")


@router.post("/login")
async def request_code(
    request: Request,
    admin: Optional[AdminClaims] = Depends(admin_user),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> Response:
    form = await request.form()
    email = _form_text(form, "email")
    redirect = _form_text(form, "redirect")

    try:
        await LoginService(db, mailer).request_otp(email)
    except AppError as exc:
        logger.info("admin code request for %r failed: %s", email, exc.message)
        return _login_page(request, redirect=redirect, email=email, error=REQUEST_FAILED)

    response = templates.TemplateResponse(
        request,
        "admin/verify.html",
        {"email": email, "redirect": redirect, "error": ""},
    )
    return clear_if_invalid(request, response)


@router.post("/verify")
async def verify_code(
    request: Request,
    admin: Optional[AdminClaims] = Depends(admin_user),
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    sessions: SessionManager = Depends(get_session_manager),
) -> Response:
    form = await request.form()
    email = _form_text(form, "email")
    redirect = _form_text(form, "redirect")

    try:
        result = await LoginService(db, mailer).verify_code(_form_text(form, "code"))
    except AppError:
        response = templates.TemplateResponse(
            request,
            "admin/verify.html",
            {"email": email, "redirect": redirect, "error": INVALID_CODE},
        )
        return clear_if_invalid(request, response)

    user = result.user
    if user.role not in ADMIN_ROLES:
        logger.warning("user %d with role %s tried to open the admin", user.id, user.role)
        return _login_page(request, redirect=redirect, email=email, error=NO_PERMISSION)

    claims = AdminClaims(id=user.id, username=user.email, role=user.role, source=SOURCE_CODE)
    return _signed_in(sessions, claims, redirect)


@router.post("/password")
async def password_login(
    request: Request,
    admin: Optional[AdminClaims] = Depends(admin_user),
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
) -> Response:
    form = await request.form()
    redirect = _form_text(form, "redirect")

    try:
        principal = await AdminAuthService(db).authenticate(
            _form_text(form, "username"),
            form.get("password") if isinstance(form.get("password"), str) else "",
        )
    except InvalidCredentials:
        return _login_page(
            request,
            redirect=redirect,
            error=INVALID_CREDENTIALS,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    claims = AdminClaims(
        id=principal.id, username=principal.username, role=ROLE_ADMIN, source=SOURCE_PASSWORD
    )
    return _signed_in(sessions, claims, redirect)


@router.get("/logout")
async def logout(sessions: SessionManager = Depends(get_session_manager)) -> Response:
    response = RedirectResponse(LOGIN_PATH, status_code=status.HTTP_302_FOUND)
    sessions.clear(response)
    return response


# =============================================================================
# Songs
# =============================================================================


async def _form_options(db: AsyncSession) -> dict:
    return {
        "levels": await named_options(db, Level),
        "languages": await named_options(db, Language),
        "albums": await named_options(db, Album),
        "artists": await named_options(db, Artist),
        "writers": await named_options(db, Writer),
    }


async def _render_song_form(
    request: Request,
    db: AsyncSession,
    admin: AdminClaims,
    form: SongForm,
    action: str,
    options: Optional[dict] = None,
    **context,
) -> Response:
    return templates.TemplateResponse(
        request,
        "admin/song_form.html",
        {
            "admin": admin,
            "form": form,
            "action": action,
            **(options or await _form_options(db)),
            **context,
        },
    )


async def _creator_id(db: AsyncSession, admin: AdminClaims) -> Optional[int]:
    """Users row behind the session; password sessions have none."""
    if admin.source != SOURCE_CODE:
        return None
    return (await db.execute(select(User.id).where(User.id == admin.id))).scalar_one_or_none()


@router.get("/songs")
async def song_list(
    request: Request,
    q: Optional[str] = None,
    admin: AdminClaims = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Response:
    query = parse_search(q)
    songs = await SongService(db).admin_list(query)
    return templates.TemplateResponse(
        request,
        "admin/songs.html",
        {"admin": admin, "songs": songs, "query": query},
    )


@router.get("/songs/create")
async def create_song_form(
    request: Request,
    created: Optional[str] = None,
    admin: AdminClaims = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Response:
    return await _render_song_form(
        request, db, admin, SongForm(), "/admin/songs/create", created=created == "1"
    )


@router.post("/songs/create")
async def create_song(
    request: Request,
    admin: AdminClaims = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Response:
    form = SongForm.from_form(await request.form())
    options = await _form_options(db)
    action = "/admin/songs/create"
    if not form.validate([item.id for item in options["levels"]], [item.id for item in options["languages"]]):
        return await _render_song_form(request, db, admin, form, action, options)

    try:
        song_id = await SongService(db).create(form.to_payload(), await _creator_id(db, admin))
    except AppError as exc:
        logger.warning("admin %s create song: %s", admin.username, exc.message)
        await db.rollback()
        return await _render_song_form(request, db, admin, form, action, options, error=SAVE_FAILED)

    logger.info("admin %s created song %d", admin.username, song_id)
    return RedirectResponse("/admin/songs/create?created=1", status_code=status.HTTP_302_FOUND)


@router.get("/songs/{song_id}/edit")
async def edit_song_form(
    request: Request,
    song_id: str,
    updated: Optional[str] = None,
    admin: AdminClaims = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Response:
    song_pk = parse_int_or_default(song_id, 0)
    if song_pk <= 0:
        raise AppError.not_found("song not found")
    song = await SongService(db).get(song_pk)

    language_id = (await db.execute(select(Song.language_id).where(Song.id == song_pk))).scalar_one_or_none()
    return await _render_song_form(
        request,
        db,
        admin,
        SongForm.from_song(song, language_id),
        f"/admin/songs/{song_pk}/edit",
        song_id=song_pk,
        updated=updated == "1",
    )


@router.post("/songs/{song_id}/edit")
async def edit_song(
    request: Request,
    song_id: str,
    admin: AdminClaims = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Response:
    song_pk = parse_int_or_default(song_id, 0)
    if song_pk <= 0:
        raise AppError.not_found("song not found")

    form = SongForm.from_form(await request.form())
    options = await _form_options(db)
    action = f"/admin/songs/{song_pk}/edit"
    if not form.validate([item.id for item in options["levels"]], [item.id for item in options["languages"]]):
        return await _render_song_form(request, db, admin, form, action, options, song_id=song_pk)

    try:
        await SongService(db).update(song_pk, form.to_payload(), None)
    except AppError as exc:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            raise
        await db.rollback()
        return await _render_song_form(
            request, db, admin, form, action, options, song_id=song_pk, error=SAVE_FAILED
        )

    logger.info("admin %s updated song %d", admin.username, song_pk)
    return RedirectResponse(f"/admin/songs/{song_pk}/edit?updated=1", status_code=status.HTTP_302_FOUND)


@router.post("/songs/{song_id}/delete")
async def delete_song(
    song_id: str,
    q: Optional[str] = None,
    admin: AdminClaims = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Response:
    song_pk = parse_int_or_default(song_id, 0)
    if song_pk <= 0:
        raise AppError.not_found("song not found")

    await SongService(db).admin_delete(song_pk)
    logger.info("admin %s deleted song %d", admin.username, song_pk)

    location = "/admin/songs"
    query = parse_search(q)
    if query:
        location += "?" + urlencode({"q": query})
    return RedirectResponse(location, status_code=status.HTTP_302_FOUND)


# =============================================================================
# Users
# =============================================================================


@router.get("/users")
async def user_list(
    request: Request,
    admin: AdminClaims = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Response:
    users = await UserService(db).list_all()
    return templates.TemplateResponse(request, "admin/users.html", {"admin": admin, "users": users})
