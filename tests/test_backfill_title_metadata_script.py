from datetime import date

import pytest

from app.models.title import Title
from app.services.titles import TitleMetadata, get_title, resolve_or_create_title
from scripts.backfill_title_metadata import _derive_patch, _is_blank, run_backfill


def test_is_blank():
    assert _is_blank(None) is True
    assert _is_blank("") is True
    assert _is_blank("   ") is True
    assert _is_blank("text") is False
    assert _is_blank(date(2020, 1, 1)) is False


def test_derive_patch_fills_only_missing_fields():
    title = Title(name="Dune", original_name="", overview="Keep me", poster_path=None, release_date=None)
    meta = TitleMetadata(
        name="Dune",
        original_name="  Dune  ",
        release_date=date(2021, 9, 15),
        poster_path="/dune.jpg",
        overview="Replace me",
    )
    patch = _derive_patch(title, meta, ("overview", "original_name", "poster_path", "release_date"))
    assert patch == {"original_name": "Dune", "poster_path": "/dune.jpg", "release_date": date(2021, 9, 15)}


def test_derive_patch_respects_field_subset():
    title = Title(name="Dune", original_name="", overview="", poster_path=None, release_date=None)
    meta = TitleMetadata(name="Dune", overview="Spice.", poster_path="/dune.jpg")
    assert _derive_patch(title, meta, ("overview",)) == {"overview": "Spice."}


@pytest.mark.anyio
async def test_run_backfill_dry_run_then_apply(db_session):
    sparse = await resolve_or_create_title(db_session, tmdb_id=438631, media_kind="movie", metadata=TitleMetadata(name="Dune"))
    missing = await resolve_or_create_title(db_session, tmdb_id=999, media_kind="movie", metadata=TitleMetadata(name="Gone"))
    await resolve_or_create_title(
        db_session,
        tmdb_id=603,
        media_kind="movie",
        metadata=TitleMetadata(
            name="The Matrix",
            original_name="The Matrix",
            release_date=date(1999, 3, 30),
            poster_path="/m.jpg",
            overview="Red pill.",
        ),
    )
    await db_session.commit()

    async def fetcher(*, tmdb_id, media_kind):
        if tmdb_id == 438631:
            return TitleMetadata(name="Dune", overview="Spice.", poster_path="/dune.jpg")
        return None

    dry = await run_backfill(db_session, apply=False, batch_size=1, details_fetcher=fetcher)
    assert (dry.scanned, dry.would_update, dry.updated, dry.not_found) == (2, 1, 0, 1)
    assert (await get_title(db_session, sparse)).overview == ""

    applied = await run_backfill(db_session, apply=True, batch_size=1, details_fetcher=fetcher)
    assert (applied.scanned, applied.updated) == (2, 1)

    title = await get_title(db_session, sparse)
    assert title.overview == "Spice."
    assert title.poster_path == "/dune.jpg"
    assert (await get_title(db_session, missing)).poster_path is None


@pytest.mark.anyio
async def test_run_backfill_counts_fetch_errors(db_session):
    await resolve_or_create_title(db_session, tmdb_id=1, media_kind="movie", metadata=TitleMetadata(name="X"))
    await db_session.commit()

    async def broken(*, tmdb_id, media_kind):
        raise RuntimeError("catalog down")

    stats = await run_backfill(db_session, apply=True, details_fetcher=broken)
    assert (stats.scanned, stats.fetch_errors, stats.updated) == (1, 1, 0)


@pytest.mark.anyio
async def test_run_backfill_validates_arguments(db_session):
    with pytest.raises(ValueError):
        await run_backfill(db_session, apply=False, batch_size=0)
    with pytest.raises(ValueError):
        await run_backfill(db_session, apply=False, fields=("runtime",))
