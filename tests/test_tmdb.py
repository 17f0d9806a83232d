from datetime import date

import pytest

from app.core.errors import CollaboratorError
from app.services import tmdb
from app.services.tmdb import media_kind_for_tmdb_type, metadata_from_tmdb_payload, tmdb_type_for_kind


def test_media_kind_mapping():
    assert tmdb_type_for_kind("movie") == "movie"
    assert tmdb_type_for_kind("series") == "tv"
    assert tmdb_type_for_kind("tv") is None
    assert media_kind_for_tmdb_type("tv") == "series"
    assert media_kind_for_tmdb_type("person") is None
    assert media_kind_for_tmdb_type(None) is None


def test_movie_payload_to_metadata():
    meta = metadata_from_tmdb_payload(
        media_kind="movie",
        data={
            "title": "Dune",
            "original_title": "Dune",
            "release_date": "2021-09-15",
            "poster_path": "/dune.jpg",
            "overview": "  Spice.  ",
        },
    )
    assert meta.name == "Dune"
    assert meta.release_date == date(2021, 9, 15)
    assert meta.poster_path == "/dune.jpg"
    assert meta.overview == "Spice."


def test_series_payload_to_metadata_tolerates_gaps():
    meta = metadata_from_tmdb_payload(
        media_kind="series",
        data={"name": "Shōgun", "original_name": "SHOGUN", "first_air_date": "", "poster_path": "", "overview": None},
    )
    assert meta.name == "Shōgun"
    assert meta.original_name == "SHOGUN"
    assert meta.release_date is None
    assert meta.poster_path is None
    assert meta.overview == ""


@pytest.mark.anyio
async def test_search_multi_maps_tv_and_drops_people(monkeypatch):
    async def fake_get_json(path, *, params=None):
        assert path == "/search/multi"
        assert params == {"query": "dune"}
        return {
            "results": [
                {"id": 438631, "media_type": "movie", "title": "Dune", "release_date": "2021-09-15", "poster_path": "/d.jpg"},
                {"id": 90228, "media_type": "tv", "name": "Dune: Prophecy", "first_air_date": "2024-11-17"},
                {"id": 1, "media_type": "person", "name": "Frank Herbert"},
                {"id": 0, "media_type": "movie", "title": "Broken"},
            ]
        }

    monkeypatch.setattr(tmdb, "_get_json", fake_get_json)

    rows = await tmdb.tmdb_search_multi("  dune ")
    assert [(r["tmdb_id"], r["media_kind"], r["year"]) for r in rows] == [
        (438631, "movie", 2021),
        (90228, "series", 2024),
    ]
    assert rows[1]["poster_path"] is None


@pytest.mark.anyio
async def test_search_multi_is_cached(monkeypatch):
    calls = []

    async def fake_get_json(path, *, params=None):
        calls.append(params["query"])
        return {"results": []}

    monkeypatch.setattr(tmdb, "_get_json", fake_get_json)

    await tmdb.tmdb_search_multi("alien")
    await tmdb.tmdb_search_multi("Alien")
    assert calls == ["alien"]


@pytest.mark.anyio
async def test_search_multi_failure_returns_empty(monkeypatch):
    async def failing_get_json(path, *, params=None):
        raise CollaboratorError("boom")

    monkeypatch.setattr(tmdb, "_get_json", failing_get_json)
    assert await tmdb.tmdb_search_multi("dune") == []


@pytest.mark.anyio
async def test_fetch_details(monkeypatch):
    seen = []

    async def fake_get_json(path, *, params=None):
        seen.append(path)
        if path == "/tv/1399":
            return {"name": "Game of Thrones", "first_air_date": "2011-04-17"}
        return None

    monkeypatch.setattr(tmdb, "_get_json", fake_get_json)

    meta = await tmdb.fetch_tmdb_title_details(tmdb_id=1399, media_kind="series")
    assert meta.name == "Game of Thrones"
    assert meta.release_date == date(2011, 4, 17)

    assert await tmdb.fetch_tmdb_title_details(tmdb_id=5, media_kind="movie") is None
    assert await tmdb.fetch_tmdb_title_details(tmdb_id=5, media_kind="tv") is None
    assert seen == ["/tv/1399", "/movie/5"]


@pytest.mark.anyio
async def test_fetch_details_failure_returns_none(monkeypatch):
    async def failing_get_json(path, *, params=None):
        raise CollaboratorError("timeout")

    monkeypatch.setattr(tmdb, "_get_json", failing_get_json)
    assert await tmdb.fetch_tmdb_title_details(tmdb_id=438631, media_kind="movie") is None
