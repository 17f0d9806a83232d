import pytest
from sqlalchemy import func, select

from app.core.errors import ValidationError
from app.models.user_title import UserTitle
from app.services.titles import TitleMetadata, resolve_or_create_title
from app.services.user_titles import (
    get_state,
    list_by_state,
    list_by_states,
    recent_activity,
    remove_state,
    set_state,
    user_stats,
)

pytestmark = pytest.mark.anyio


async def _title(db, tmdb_id: int, name: str = "T"):
    return await resolve_or_create_title(db, tmdb_id=tmdb_id, media_kind="movie", metadata=TitleMetadata(name=name))


async def test_set_state_overwrites_every_field(db_session, make_user):
    user = await make_user()
    title_id = await _title(db_session, 1)

    await set_state(db_session, user.id, title_id, "watching", 3, "halfway")
    await set_state(db_session, user.id, title_id, "watched", None, "")
    await db_session.commit()

    viewing = await get_state(db_session, user.id, title_id)
    assert viewing.state == "watched"
    assert viewing.rating is None
    assert viewing.comment == ""

    count = (await db_session.execute(select(func.count(UserTitle.id)))).scalar_one()
    assert count == 1


async def test_state_is_per_user(db_session, make_user):
    alice = await make_user()
    bob = await make_user()
    title_id = await _title(db_session, 1)

    await set_state(db_session, alice.id, title_id, "watched", 5)
    await set_state(db_session, bob.id, title_id, "stopped", 1)

    assert (await get_state(db_session, alice.id, title_id)).state == "watched"
    assert (await get_state(db_session, bob.id, title_id)).state == "stopped"


async def test_set_state_rejects_unknown_state(db_session, make_user):
    user = await make_user()
    title_id = await _title(db_session, 1)
    with pytest.raises(ValidationError):
        await set_state(db_session, user.id, title_id, "finished")


async def test_get_state_missing(db_session, make_user):
    user = await make_user()
    title_id = await _title(db_session, 1)
    assert await get_state(db_session, user.id, title_id) is None


async def test_remove_state(db_session, make_user):
    user = await make_user()
    title_id = await _title(db_session, 1)
    await set_state(db_session, user.id, title_id, "want")

    assert await remove_state(db_session, user.id, title_id) is True
    assert await remove_state(db_session, user.id, title_id) is False
    assert await get_state(db_session, user.id, title_id) is None


async def test_list_by_state_most_recent_first(db_session, make_user):
    user = await make_user()
    a = await _title(db_session, 1, "A")
    b = await _title(db_session, 2, "B")
    c = await _title(db_session, 3, "C")
    await set_state(db_session, user.id, a, "watched")
    await set_state(db_session, user.id, b, "want")
    await set_state(db_session, user.id, c, "watched")
    await db_session.commit()

    watched = await list_by_state(db_session, user.id, "watched")
    assert [title.id for _, title in watched] == [c, a]

    # Touching a moves it to the front.
    await set_state(db_session, user.id, a, "watched", 4)
    await db_session.commit()
    watched = await list_by_state(db_session, user.id, "watched")
    assert [title.id for _, title in watched] == [a, c]
    assert watched[0][0].rating == 4


async def test_list_by_states_paginates(db_session, make_user):
    user = await make_user()
    ids = []
    for n in range(1, 6):
        title_id = await _title(db_session, n, f"T{n}")
        await set_state(db_session, user.id, title_id, "watching" if n % 2 else "stopped")
        ids.append(title_id)
    await db_session.commit()

    newest_first = list(reversed(ids))
    page1 = await list_by_states(db_session, user.id, ["watching", "stopped"], limit=2)
    page2 = await list_by_states(db_session, user.id, ["watching", "stopped"], limit=2, offset=2)
    assert [t.id for _, t in page1] == newest_first[:2]
    assert [t.id for _, t in page2] == newest_first[2:4]

    assert len(await recent_activity(db_session, user.id)) == 5
    assert await list_by_states(db_session, user.id, []) == []


async def test_user_stats(db_session, make_user):
    user = await make_user()
    for n, (state, rating) in enumerate([("watched", 5), ("watched", 4), ("stopped", 2), ("want", None)], start=1):
        await set_state(db_session, user.id, await _title(db_session, n), state, rating)
    await db_session.commit()

    stats = await user_stats(db_session, user.id)
    assert stats["watched"] == {"count": 2, "avg_rating": 4.5}
    assert stats["stopped"] == {"count": 1, "avg_rating": 2.0}
    assert stats["want"] == {"count": 1, "avg_rating": None}
    assert stats["watching"] == {"count": 0, "avg_rating": None}
