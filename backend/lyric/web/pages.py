"""
Public server-rendered pages.

    /              trending sets, albums and artists
    /search        song, album and artist results in tabs
    /library       every song by title, plus a JSON payload for client scripts
    /charts/{id}   a trending set and the songs of its level
    /songs/{id}    song detail rendered by the chord engine
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.api.deps import get_db
from lyric.chords import Layout, build_song_view
from lyric.chords.view import DEFAULT_COLUMNS, DEFAULT_GAP, DEFAULT_LINE_GAP
from lyric.core.errors import AppError
from lyric.services.albums import AlbumFilters, AlbumService
from lyric.services.catalogue import LanguageService
from lyric.services.contributors import ArtistService, ContributorFilters
from lyric.services.pagination import MAX_PER_PAGE
from lyric.services.params import parse_int_or_default, parse_search
from lyric.services.songs import SongFilters, SongService
from lyric.services.trending import TrendingService

from .templating import templates

router = APIRouter(default_response_class=HTMLResponse)

SEARCH_TABS = ("songs", "albums", "artists")
SEARCH_PAGE_SIZE = 20


def _not_found(request: Request, message: str) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "pages/not_found.html",
        {"message": message},
        status_code=status.HTTP_404_NOT_FOUND,
    )


@router.get("/")
async def home(request: Request, db: AsyncSession = Depends(get_db)) -> HTMLResponse:
    service = TrendingService(db)
    return templates.TemplateResponse(
        request,
        "pages/home.html",
        {
            "sets": await service.sets(),
            "albums": await service.albums(),
            "artists": await service.artists(),
        },
    )


@router.get("/search")
async def search(
    request: Request,
    query: Optional[str] = None,
    tab: Optional[str] = None,
    language: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
) -> HTMLResponse:
    term = parse_search(query)
    active_tab = (tab or "").strip().lower()
    if active_tab not in SEARCH_TABS:
        active_tab = SEARCH_TABS[0]
    selected_language = parse_search(language).lower() or None

    songs = await SongService(db).list(
        SongFilters(search=term, language=selected_language, per_page=SEARCH_PAGE_SIZE)
    )
    albums = await AlbumService(db).list(AlbumFilters(search=term, per_page=SEARCH_PAGE_SIZE))
    artists = await ArtistService(db).list(ContributorFilters(search=term, per_page=SEARCH_PAGE_SIZE))

    return templates.TemplateResponse(
        request,
        "pages/search.html",
        {
            "query": term,
            "tab": active_tab,
            "tabs": SEARCH_TABS,
            "language": selected_language,
            "languages": await LanguageService(db).names(),
            "songs": songs,
            "albums": albums,
            "artists": artists,
        },
    )


@router.get("/library")
async def library(request: Request, db: AsyncSession = Depends(get_db)) -> HTMLResponse:
    songs = await SongService(db).list(SongFilters(order_by_title=True, per_page=MAX_PER_PAGE))
    return templates.TemplateResponse(
        request,
        "pages/library.html",
        {
            "songs": songs.data,
            "total": songs.total,
            "payload": [song.model_dump(include={"id", "title", "key", "level", "language"}) for song in songs.data],
        },
    )


@router.get("/charts/{set_id}")
async def chart(
    request: Request,
    set_id: str,
    language: Optional[str] = None,
    all: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
) -> HTMLResponse:
    set_pk = parse_int_or_default(set_id, 0)
    if set_pk <= 0:
        return _not_found(request, "Chart not found")
    try:
        trending = await TrendingService(db).get_set(set_pk)
    except AppError as exc:
        if exc.status_code != status.HTTP_404_NOT_FOUND:
            raise
        return _not_found(request, "Chart not found")

    languages = await LanguageService(db).names()
    show_all = (all or "").strip() == "1"
    selected = parse_search(language).lower()
    if selected not in [name.lower() for name in languages]:
        selected = languages[0].lower() if languages else ""

    songs = await SongService(db).list(
        SongFilters(
            level_id=trending.level_id,
            language=None if show_all else (selected or None),
            is_trending=True,
            per_page=MAX_PER_PAGE,
        )
    )
    return templates.TemplateResponse(
        request,
        "pages/chart.html",
        {
            "chart": trending,
            "songs": songs.data,
            "languages": languages,
            "selected_language": None if show_all else selected,
            "show_all": show_all,
        },
    )


@router.get("/songs/{song_id}")
async def song_detail(
    request: Request,
    song_id: str,
    db: AsyncSession = Depends(get_db),
) -> HTMLResponse:
    song_pk = parse_int_or_default(song_id, 0)
    if song_pk <= 0:
        return _not_found(request, "Song not found")
    try:
        song = await SongService(db).get(song_pk)
    except AppError as exc:
        if exc.status_code != status.HTTP_404_NOT_FOUND:
            raise
        return _not_found(request, "Song not found")

    params = request.query_params
    layout = Layout.from_params(
        mode=params.get("view"),
        transpose=parse_int_or_default(params.get("transpose"), 0),
        gap=parse_int_or_default(params.get("gap"), DEFAULT_GAP),
        line_gap=parse_int_or_default(params.get("lineGap"), DEFAULT_LINE_GAP),
        columns=parse_int_or_default(params.get("columns"), DEFAULT_COLUMNS),
    )
    view = build_song_view(song.id, song.title, song.lyric, key=song.key, layout=layout)
    return templates.TemplateResponse(request, "pages/song.html", {"song": song, "view": view})
