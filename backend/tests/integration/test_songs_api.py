"""
Integration tests for the song endpoints.

Tests:
- Listing with filters, bookmarks and pagination
- Create, read, update and delete with ownership
- Status changes and level votes
- Playlist sync for a song
"""

from datetime import timedelta
from typing import Dict

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lyric.core.database import utcnow
from lyric.models import LevelSong, Play, PlaylistSong, Song


def song_body(catalogue: Dict[str, int], **overrides) -> dict:
    body = {
        "title": "It Is Well",
        "level_id": catalogue["beginner"],
        "key": "D",
        "language_id": catalogue["english"],
        "release_year": 1873,
        "album_ids": [catalogue["album"]],
        "artist_ids": [catalogue["artist"]],
        "writer_ids": [catalogue["writer"]],
        "lyric": "[D]When peace like a [G]river",
    }
    body.update(overrides)
    return body


async def create_song(client: AsyncClient, headers: dict, body: dict) -> int:
    response = await client.post("/api/songs", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]["song_id"]


class TestListSongs:
    """Tests for GET /api/songs."""

    @pytest.mark.asyncio
    async def test_newest_first_with_relations(self, async_client: AsyncClient, catalogue: dict):
        response = await async_client.get("/api/songs")
        assert response.status_code == 200
        body = response.json()
        assert body["page"] == 1
        assert body["per_page"] == 10
        assert body["total"] == 2
        assert [song["id"] for song in body["data"]] == [catalogue["assurance"], catalogue["grace"]]

        grace = body["data"][1]
        assert grace["title"] == "Amazing Grace"
        assert grace["level"] == "Beginner"
        assert grace["language"] == "english"
        assert grace["release_year"] == 1990
        assert grace["artists"] == [{"id": catalogue["artist"], "name": "Choir"}]
        assert grace["writers"] == [{"id": catalogue["writer"], "name": "Newton"}]
        assert grace["albums"] == [{"id": catalogue["album"], "name": "Hymns", "release_year": 1990}]
        assert grace["is_bookmark"] is False

    @pytest.mark.asyncio
    async def test_filters(
        self,
        async_client: AsyncClient,
        catalogue: dict,
        auth_headers: dict,
        user_id_of,
        make_playlist,
    ):
        user_id = await user_id_of("abc@mail.com")
        playlist_id = await make_playlist("Sunday", user_id, [catalogue["grace"]])

        for query in (
            f"album_id={catalogue['album']}",
            f"artist_id={catalogue['artist']}",
            f"writer_id={catalogue['writer']}",
            "release_year=1990",
            "search=GRACE",
            "language=English",
            f"level_id={catalogue['beginner']}",
        ):
            response = await async_client.get(f"/api/songs?{query}")
            assert response.status_code == 200
            body = response.json()
            assert body["total"] == 1, query
            assert body["data"][0]["id"] == catalogue["grace"]

        response = await async_client.get(f"/api/songs?playlist_id={playlist_id}")
        body = response.json()
        assert body["total"] == 1
        assert body["data"][0]["is_bookmark"] is True

        response = await async_client.get("/api/songs?release_year=1779")
        assert response.json() == {"data": [], "page": 1, "per_page": 10, "total": 0}

    @pytest.mark.asyncio
    async def test_bookmarks_follow_user_id(
        self, async_client: AsyncClient, catalogue: dict, auth_headers: dict, user_id_of, make_playlist
    ):
        user_id = await user_id_of("abc@mail.com")
        await make_playlist("Sunday", user_id, [catalogue["grace"]])

        anonymous = (await async_client.get("/api/songs")).json()["data"]
        assert not any(song["is_bookmark"] for song in anonymous)

        scoped = (await async_client.get(f"/api/songs?user_id={user_id}")).json()["data"]
        assert {song["id"]: song["is_bookmark"] for song in scoped} == {
            catalogue["grace"]: True,
            catalogue["assurance"]: False,
        }

    @pytest.mark.asyncio
    async def test_caller_overrides_user_id(
        self,
        async_client: AsyncClient,
        catalogue: dict,
        auth_headers: dict,
        second_auth_headers: dict,
        user_id_of,
        make_playlist,
    ):
        other_id = await user_id_of("other@mail.com")
        await make_playlist("Theirs", other_id, [catalogue["grace"]])

        response = await async_client.get(f"/api/songs?user_id={other_id}", headers=auth_headers)
        assert not any(song["is_bookmark"] for song in response.json()["data"])

        response = await async_client.get("/api/songs", headers=second_auth_headers)
        flags = {song["id"]: song["is_bookmark"] for song in response.json()["data"]}
        assert flags[catalogue["grace"]] is True

    @pytest.mark.asyncio
    async def test_trending_orders_level_by_recent_plays(
        self, async_client: AsyncClient, catalogue: dict, test_db: AsyncSession
    ):
        zed = Song(
            title="Zed",
            level_id=catalogue["beginner"],
            language_id=catalogue["english"],
            lyric="[C]z",
            status="created",
        )
        test_db.add(zed)
        await test_db.flush()
        now = utcnow()
        test_db.add_all([Play(song_id=catalogue["grace"], created_at=now) for _ in range(3)])
        test_db.add_all(
            [Play(song_id=zed.id, created_at=now - timedelta(days=40)) for _ in range(5)]
        )
        await test_db.commit()

        level = catalogue["beginner"]
        response = await async_client.get(f"/api/songs?level_id={level}")
        assert [song["title"] for song in response.json()["data"]] == ["Zed", "Amazing Grace"]

        response = await async_client.get(f"/api/songs?is_trending=1&level_id={level}")
        body = response.json()
        assert body["total"] == 2
        assert [song["title"] for song in body["data"]] == ["Amazing Grace", "Zed"]

        response = await async_client.get("/api/songs?is_trending=1")
        assert [song["title"] for song in response.json()["data"]][0] == "Zed"

    @pytest.mark.asyncio
    async def test_playlist_ids_in_bookmark_scope(
        self,
        async_client: AsyncClient,
        catalogue: dict,
        auth_headers: dict,
        user_id_of,
        make_playlist,
    ):
        user_id = await user_id_of("abc@mail.com")
        sunday = await make_playlist("Sunday", user_id, [catalogue["grace"]])
        choir = await make_playlist("Choir", user_id, [catalogue["grace"], catalogue["assurance"]])

        response = await async_client.get("/api/songs", headers=auth_headers)
        ids = {song["id"]: song["playlist_ids"] for song in response.json()["data"]}
        assert ids == {catalogue["grace"]: [sunday, choir], catalogue["assurance"]: [choir]}

        response = await async_client.get(f"/api/songs?playlist_id={sunday}")
        data = response.json()["data"]
        assert [(song["id"], song["playlist_ids"], song["is_bookmark"]) for song in data] == [
            (catalogue["grace"], [sunday], True)
        ]

        response = await async_client.get("/api/songs")
        assert all(song["playlist_ids"] == [] for song in response.json()["data"])

    @pytest.mark.asyncio
    async def test_user_level_id_is_callers_vote(
        self,
        async_client: AsyncClient,
        catalogue: dict,
        auth_headers: dict,
        second_auth_headers: dict,
    ):
        grace = catalogue["grace"]
        response = await async_client.post(
            f"/api/songs/{grace}/levels/{catalogue['advanced']}", headers=auth_headers
        )
        assert response.status_code == 200

        response = await async_client.get("/api/songs", headers=auth_headers)
        levels = {song["id"]: song["user_level_id"] for song in response.json()["data"]}
        assert levels == {grace: catalogue["advanced"], catalogue["assurance"]: None}

        response = await async_client.get(f"/api/songs/{grace}", headers=auth_headers)
        assert response.json()["data"]["user_level_id"] == catalogue["advanced"]

        response = await async_client.get("/api/songs", headers=second_auth_headers)
        assert all(song["user_level_id"] is None for song in response.json()["data"])

        response = await async_client.get("/api/songs")
        assert all(song["user_level_id"] is None for song in response.json()["data"])

    @pytest.mark.asyncio
    async def test_pagination(self, async_client: AsyncClient, catalogue: dict):
        response = await async_client.get("/api/songs?page=2&per_page=1")
        body = response.json()
        assert body["total"] == 2
        assert [song["id"] for song in body["data"]] == [catalogue["grace"]]

        response = await async_client.get("/api/songs?page=5&per_page=1")
        assert response.json()["data"] == []

    @pytest.mark.asyncio
    async def test_bad_parameters(self, async_client: AsyncClient, catalogue: dict):
        response = await async_client.get("/api/songs?page=abc&artist_id=-1&release_year=soon")
        assert response.status_code == 422
        assert response.json() == {
            "errors": {
                "page": "must be a positive integer",
                "artist_id": "must be a positive integer",
                "release_year": "must be an integer",
            }
        }

        response = await async_client.get("/api/songs?page=0&per_page=-5")
        assert response.status_code == 422
        assert response.json() == {
            "errors": {"page": "must be a positive integer", "per_page": "must be a positive integer"}
        }


class TestSongCrud:
    """Tests for song create/read/update/delete."""

    @pytest.mark.asyncio
    async def test_create_and_get(
        self, async_client: AsyncClient, catalogue: dict, auth_headers: dict, test_db: AsyncSession, user_id_of
    ):
        song_id = await create_song(async_client, auth_headers, song_body(catalogue))

        response = await async_client.get(f"/api/songs/{song_id}")
        assert response.status_code == 200
        song = response.json()["data"]
        assert song["title"] == "It Is Well"
        assert song["status"] == "created"
        assert song["release_year"] == 1990
        assert song["album_id"] == catalogue["album"]
        assert [artist["name"] for artist in song["artists"]] == ["Choir"]

        created_by = await test_db.scalar(select(Song.created_by).where(Song.id == song_id))
        assert created_by == await user_id_of("abc@mail.com")

        plays = await test_db.scalar(select(func.count()).select_from(Play).where(Play.song_id == song_id))
        assert plays == 1

    @pytest.mark.asyncio
    async def test_create_requires_token(self, async_client: AsyncClient, catalogue: dict):
        response = await async_client.post("/api/songs", json=song_body(catalogue))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_validation(self, async_client: AsyncClient, catalogue: dict, auth_headers: dict):
        response = await async_client.post(
            "/api/songs",
            json={"title": " ", "artist_ids": [0]},
            headers=auth_headers,
        )
        assert response.status_code == 422
        assert response.json() == {
            "errors": {
                "title": "title is required",
                "level_id": "level_id is required",
                "language_id": "language_id is required",
                "lyric": "lyric is required",
                "artist_ids": "artist_ids must contain positive integers",
            }
        }

    @pytest.mark.asyncio
    async def test_create_wrong_types(self, async_client: AsyncClient, catalogue: dict, auth_headers: dict):
        response = await async_client.post(
            "/api/songs",
            json=song_body(catalogue, level_id="1"),
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json() == {"errors": {"message": "invalid JSON payload"}}

        response = await async_client.post(
            "/api/songs",
            json=song_body(catalogue, mood="happy"),
            headers=auth_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_unknown_reference(
        self, async_client: AsyncClient, catalogue: dict, auth_headers: dict, test_db: AsyncSession
    ):
        response = await async_client.post(
            "/api/songs",
            json=song_body(catalogue, writer_ids=[9999]),
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json() == {"errors": {"message": "invalid resources"}}

        titles = (await test_db.execute(select(Song.title))).scalars().all()
        assert "It Is Well" not in titles

    @pytest.mark.asyncio
    async def test_get_missing_or_bad_id(self, async_client: AsyncClient, catalogue: dict):
        response = await async_client.get("/api/songs/9999")
        assert response.status_code == 404
        assert response.json() == {"errors": {"message": "song not found"}}

        response = await async_client.get("/api/songs/abc")
        assert response.status_code == 400
        assert response.json() == {"errors": {"message": "id must be a positive integer"}}

    @pytest.mark.asyncio
    async def test_update_replaces_relations(self, async_client: AsyncClient, catalogue: dict, auth_headers: dict):
        song_id = await create_song(async_client, auth_headers, song_body(catalogue))

        response = await async_client.put(
            f"/api/songs/{song_id}",
            json=song_body(catalogue, title="It Is Well With My Soul", album_ids=[], artist_ids=[], release_year=1876),
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json() == {"data": {"message": "Song updated successfully"}}

        song = (await async_client.get(f"/api/songs/{song_id}")).json()["data"]
        assert song["title"] == "It Is Well With My Soul"
        assert song["artists"] == []
        assert song["albums"] == []
        assert song["album_id"] is None
        assert song["release_year"] == 1876

    @pytest.mark.asyncio
    async def test_only_owner_mutates(
        self, async_client: AsyncClient, catalogue: dict, auth_headers: dict, second_auth_headers: dict
    ):
        song_id = await create_song(async_client, auth_headers, song_body(catalogue))

        response = await async_client.put(f"/api/songs/{song_id}", json=song_body(catalogue), headers=second_auth_headers)
        assert response.status_code == 404

        response = await async_client.delete(f"/api/songs/{song_id}", headers=second_auth_headers)
        assert response.status_code == 404

        response = await async_client.post(f"/api/songs/{song_id}/status/pending", headers=second_auth_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete(self, async_client: AsyncClient, catalogue: dict, auth_headers: dict):
        song_id = await create_song(async_client, auth_headers, song_body(catalogue))

        response = await async_client.delete(f"/api/songs/{song_id}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"data": {"message": "Song deleted successfully"}}

        response = await async_client.get(f"/api/songs/{song_id}")
        assert response.status_code == 404


class TestSongStatusAndLevel:
    """Tests for status changes and level votes."""

    @pytest.mark.asyncio
    async def test_owner_status_changes(
        self, async_client: AsyncClient, catalogue: dict, auth_headers: dict, test_db: AsyncSession
    ):
        song_id = await create_song(async_client, auth_headers, song_body(catalogue))

        response = await async_client.post(f"/api/songs/{song_id}/status/Pending", headers=auth_headers)
        assert response.status_code == 200
        assert await test_db.scalar(select(Song.status).where(Song.id == song_id)) == "pending"

        response = await async_client.post(f"/api/songs/{song_id}/status/approved", headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"errors": {"message": "invalid status"}}

    @pytest.mark.asyncio
    async def test_assign_level(
        self, async_client: AsyncClient, catalogue: dict, auth_headers: dict, test_db: AsyncSession
    ):
        song_id = catalogue["grace"]
        level_id = catalogue["advanced"]

        for _ in range(2):
            response = await async_client.post(f"/api/songs/{song_id}/levels/{level_id}", headers=auth_headers)
            assert response.status_code == 200

        assert await test_db.scalar(select(Song.level_id).where(Song.id == song_id)) == level_id
        votes = await test_db.scalar(select(func.count()).select_from(LevelSong).where(LevelSong.song_id == song_id))
        assert votes == 1

    @pytest.mark.asyncio
    async def test_assign_level_errors(self, async_client: AsyncClient, catalogue: dict, auth_headers: dict):
        response = await async_client.post(f"/api/songs/{catalogue['grace']}/levels/9999", headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"errors": {"message": "level not found"}}

        response = await async_client.post(f"/api/songs/9999/levels/{catalogue['beginner']}", headers=auth_headers)
        assert response.status_code == 404

        response = await async_client.post(f"/api/songs/0/levels/{catalogue['beginner']}", headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"errors": {"message": "song_id must be a positive integer"}}


class TestSyncPlaylists:
    """Tests for POST /api/songs/{id}/playlists."""

    @pytest.mark.asyncio
    async def test_other_users_playlists_untouched(
        self,
        async_client: AsyncClient,
        catalogue: dict,
        auth_headers: dict,
        second_auth_headers: dict,
        test_db: AsyncSession,
        user_id_of,
        make_playlist,
    ):
        song_id = catalogue["grace"]
        user_id = await user_id_of("abc@mail.com")
        other_id = await user_id_of("other@mail.com")
        first = await make_playlist("First", user_id, [song_id])
        second = await make_playlist("Second", user_id, [])
        theirs = await make_playlist("Theirs", other_id, [song_id])

        response = await async_client.post(
            f"/api/songs/{song_id}/playlists", json={"playlist_ids": [second]}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json() == {"data": {"message": "Playlists synced successfully"}}

        playlists = (
            await test_db.execute(select(PlaylistSong.playlist_id).where(PlaylistSong.song_id == song_id))
        ).scalars().all()
        assert sorted(playlists) == sorted([second, theirs])
        assert first not in playlists

    @pytest.mark.asyncio
    async def test_empty_list_clears_own(
        self, async_client: AsyncClient, catalogue: dict, auth_headers: dict, test_db: AsyncSession, user_id_of, make_playlist
    ):
        song_id = catalogue["grace"]
        await make_playlist("First", await user_id_of("abc@mail.com"), [song_id])

        response = await async_client.post(f"/api/songs/{song_id}/playlists", json={}, headers=auth_headers)
        assert response.status_code == 200
        count = await test_db.scalar(
            select(func.count()).select_from(PlaylistSong).where(PlaylistSong.song_id == song_id)
        )
        assert count == 0

    @pytest.mark.asyncio
    async def test_foreign_playlist_rejected(
        self,
        async_client: AsyncClient,
        catalogue: dict,
        auth_headers: dict,
        second_auth_headers: dict,
        test_db: AsyncSession,
        user_id_of,
        make_playlist,
    ):
        song_id = catalogue["grace"]
        mine = await make_playlist("Mine", await user_id_of("abc@mail.com"), [song_id])
        theirs = await make_playlist("Theirs", await user_id_of("other@mail.com"), [])

        response = await async_client.post(
            f"/api/songs/{song_id}/playlists", json={"playlist_ids": [theirs]}, headers=auth_headers
        )
        assert response.status_code == 401
        assert response.json() == {"errors": {"message": "unauthorized playlist access"}}

        playlists = (
            await test_db.execute(select(PlaylistSong.playlist_id).where(PlaylistSong.song_id == song_id))
        ).scalars().all()
        assert playlists == [mine]

    @pytest.mark.asyncio
    async def test_validation(self, async_client: AsyncClient, catalogue: dict, auth_headers: dict):
        response = await async_client.post(
            f"/api/songs/{catalogue['grace']}/playlists", json={"playlist_ids": [0]}, headers=auth_headers
        )
        assert response.status_code == 422
        assert response.json() == {"errors": {"playlist_ids": "playlist_ids must contain positive integers"}}

        response = await async_client.post("/api/songs/9999/playlists", json={"playlist_ids": []}, headers=auth_headers)
        assert response.status_code == 404
