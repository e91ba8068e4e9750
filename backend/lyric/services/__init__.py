"""
Domain services for Lyric.

Each service wraps an AsyncSession and exposes the queries and mutations
the API routers and HTML pages call.
"""

from .admin_auth import AdminAuthService, AdminPrincipal, InvalidCredentials
from .albums import AlbumFilters, AlbumService
from .catalogue import ChordService, LanguageService, LevelService, ReleaseYearService, UserService
from .contributors import ArtistService, ContributorFilters, WriterService
from .feedback import FeedbackService
from .login import LoginService, VerifyResult
from .mailer import LoggingMailer, Mailer, MailerError, SMTPMailer, get_mailer
from .pagination import Page
from .playlists import PlaylistFilters, PlaylistService
from .songs import SongFilters, SongService
from .trending import TrendingService

__all__ = [
    "AdminAuthService",
    "AdminPrincipal",
    "InvalidCredentials",
    "AlbumFilters",
    "AlbumService",
    "ChordService",
    "LanguageService",
    "LevelService",
    "ReleaseYearService",
    "UserService",
    "ArtistService",
    "ContributorFilters",
    "WriterService",
    "FeedbackService",
    "LoginService",
    "VerifyResult",
    "LoggingMailer",
    "Mailer",
    "MailerError",
    "SMTPMailer",
    "get_mailer",
    "Page",
    "PlaylistFilters",
    "PlaylistService",
    "SongFilters",
    "SongService",
    "TrendingService",
]
