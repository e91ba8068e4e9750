"""
Shared test fixtures for Lyric backend tests.

Provides:
- Test database (SQLite in-memory, foreign keys on)
- Async HTTP client with the database and mailer dependencies overridden
- mail_outbox capturing delivered login codes
- Catalogue seed data and signed-in users
"""

import os
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncGenerator, Awaitable, Callable, Dict, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
os.environ["WEB_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["WEB_ADMIN_SESSION_SECRET"] = "test-admin-session-secret"
os.environ["WEB_AUTH_TOKEN_SECRET"] = "test-secret-key-for-testing-purposes-only-32chars"
os.environ["APP_ENV"] = "test"
os.environ["WEB_LOG_LEVEL"] = "WARNING"

from lyric.api.deps import get_db, get_mailer
from lyric.core.database import Base
from lyric.core.security import hash_password
from lyric.main import app
from lyric.models import (
    AdminUser,
    Album,
    AlbumArtist,
    AlbumSong,
    Artist,
    ArtistSong,
    Language,
    Level,
    Playlist,
    PlaylistSong,
    Song,
    SongWriter,
    User,
    Writer,
)
from lyric.services.mailer import Mailer, MailerError


# =============================================================================
# Test Database Configuration
# =============================================================================

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False,
)


@event.listens_for(test_engine.sync_engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestAsyncSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    """Override database dependency for testing."""
    async with TestAsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# =============================================================================
# Mailer
# =============================================================================


@dataclass
class SentCode:
    email: str
    code: str
    expires_at: datetime


class RecordingMailer(Mailer):
    """Keeps every delivered code; set fail=True to simulate a relay outage."""

    def __init__(self) -> None:
        self.sent: List[SentCode] = []
        self.fail = False

    async def send_otp(self, email: str, code: str, expires_at: datetime) -> None:
        if self.fail:
            raise MailerError("relay unavailable")
        self.sent.append(SentCode(email=email, code=code, expires_at=expires_at))

    def last_code(self, email: str) -> str:
        for sent in reversed(self.sent):
            if sent.email == email:
                return sent.code
        raise AssertionError(f"no code sent to {email}")


@pytest.fixture
def mail_outbox() -> RecordingMailer:
    return RecordingMailer()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide an async database session for seeding and assertions.

    Creates all tables before the test and drops them after.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestAsyncSessionLocal() as session:
        yield session
        await session.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# =============================================================================
# Test Client Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def async_client(
    test_db: AsyncSession,
    mail_outbox: RecordingMailer,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Provide an async HTTP client for testing the FastAPI application.

    Overrides the database and mailer dependencies.
    """
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mail_outbox

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# =============================================================================
# User Fixtures
# =============================================================================


async def sign_in(client: AsyncClient, outbox: RecordingMailer, email: str) -> Dict[str, str]:
    """Run the OTP flow for email and return bearer headers."""
    response = await client.post("/api/login", json={"username": email})
    assert response.status_code == 200, f"Failed to request code: {response.text}"

    response = await client.post("/api/code", json={"code": outbox.last_code(email)})
    assert response.status_code == 200, f"Failed to verify code: {response.text}"
    token = response.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


async def user_id_for(db: AsyncSession, email: str) -> int:
    return (await db.execute(select(User.id).where(User.email == email))).scalar_one()


@pytest.fixture
def login_as(async_client: AsyncClient, mail_outbox: RecordingMailer) -> Callable[[str], Awaitable[Dict[str, str]]]:
    """Sign in any email through the OTP flow."""

    async def _login(email: str) -> Dict[str, str]:
        return await sign_in(async_client, mail_outbox, email)

    return _login


@pytest.fixture
def user_id_of(test_db: AsyncSession) -> Callable[[str], Awaitable[int]]:
    """Look up a user id by email."""

    async def _lookup(email: str) -> int:
        return await user_id_for(test_db, email)

    return _lookup


@pytest_asyncio.fixture
async def auth_headers(async_client: AsyncClient, mail_outbox: RecordingMailer) -> Dict[str, str]:
    """Bearer headers for abc@mail.com."""
    return await sign_in(async_client, mail_outbox, "abc@mail.com")


@pytest_asyncio.fixture
async def second_auth_headers(async_client: AsyncClient, mail_outbox: RecordingMailer) -> Dict[str, str]:
    """Bearer headers for a second user, other@mail.com."""
    return await sign_in(async_client, mail_outbox, "other@mail.com")


@pytest_asyncio.fixture
async def admin_account(test_db: AsyncSession) -> Dict[str, str]:
    """Provisioned password admin."""
    test_db.add(AdminUser(username="root", password_hash=hash_password("S3cret-pass")))
    await test_db.commit()
    return {"username": "root", "password": "S3cret-pass"}


# =============================================================================
# Catalogue Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def catalogue(test_db: AsyncSession) -> Dict[str, int]:
    """
    Seed a small catalogue.

    One song "Amazing Grace" on album "Hymns" (1990) by artist "Choir",
    written by "Newton", level "beginner", language "English"; a second song
    "Blessed Assurance" with no relations and release year 2001.
    """
    english = Language(name="English")
    vietnamese = Language(name="Vietnamese")
    beginner = Level(name="beginner")
    advanced = Level(name="advanced")
    album = Album(name="Hymns", release_year=1990)
    artist = Artist(name="Choir")
    writer = Writer(name="Newton")
    test_db.add_all([english, vietnamese, beginner, advanced, album, artist, writer])
    await test_db.flush()

    grace = Song(
        title="Amazing Grace",
        level_id=beginner.id,
        key="C",
        language_id=english.id,
        lyric="Key: C\n||\nVerse 1\n[C]Amazing [G]grace",
        release_year=1779,
        album_id=album.id,
        status="created",
    )
    assurance = Song(
        title="Blessed Assurance",
        level_id=advanced.id,
        language_id=vietnamese.id,
        lyric="[D]Blessed as[A]surance",
        release_year=2001,
        status="created",
    )
    test_db.add_all([grace, assurance])
    await test_db.flush()

    test_db.add_all(
        [
            AlbumSong(album_id=album.id, song_id=grace.id),
            AlbumArtist(album_id=album.id, artist_id=artist.id),
            ArtistSong(artist_id=artist.id, song_id=grace.id),
            SongWriter(song_id=grace.id, writer_id=writer.id),
        ]
    )
    await test_db.commit()

    return {
        "english": english.id,
        "vietnamese": vietnamese.id,
        "beginner": beginner.id,
        "advanced": advanced.id,
        "album": album.id,
        "artist": artist.id,
        "writer": writer.id,
        "grace": grace.id,
        "assurance": assurance.id,
    }


async def add_playlist(db: AsyncSession, name: str, user_id: int, song_ids: List[int]) -> int:
    playlist = Playlist(name=name, user_id=user_id)
    db.add(playlist)
    await db.flush()
    db.add_all([PlaylistSong(playlist_id=playlist.id, song_id=song_id) for song_id in song_ids])
    await db.commit()
    return playlist.id


@pytest.fixture
def make_playlist(test_db: AsyncSession) -> Callable[..., Awaitable[int]]:
    """Create a playlist owned by user_id holding song_ids."""

    async def _make(name: str, user_id: int, song_ids: List[int]) -> int:
        return await add_playlist(test_db, name, user_id, song_ids)

    return _make
