import pytest

from app.services.list_items import add_to_list, remove_from_list
from app.services.lists import add_owner, create_list
from app.services.title_status import get_title_status_for_user
from app.services.titles import TitleMetadata, resolve_or_create_title
from app.services.user_titles import set_state

pytestmark = pytest.mark.anyio


async def test_status_repeats_one_state_across_lists(db_session, make_user):
    user = await make_user()
    favourites = await create_list(db_session, name="Favourites", owner_id=user.id)
    backlog = await create_list(db_session, name="Backlog", owner_id=user.id)
    await create_list(db_session, name="Empty", owner_id=user.id)
    title_id = await resolve_or_create_title(
        db_session, tmdb_id=438631, media_kind="movie", metadata=TitleMetadata(name="Dune")
    )
    await add_to_list(db_session, favourites, title_id)
    await add_to_list(db_session, backlog, title_id)
    await set_state(db_session, user.id, title_id, "watched", 5, "spice")
    await db_session.commit()

    status = await get_title_status_for_user(db_session, user.id, title_id)
    assert [s.list_name for s in status] == ["Backlog", "Favourites"]
    assert {(s.state, s.rating, s.comment) for s in status} == {("watched", 5, "spice")}

    await set_state(db_session, user.id, title_id, "stopped", 2, "")
    await db_session.commit()
    status = await get_title_status_for_user(db_session, user.id, title_id)
    assert {(s.state, s.rating, s.comment) for s in status} == {("stopped", 2, "")}


async def test_status_defaults_to_want_without_state(db_session, make_user):
    user = await make_user()
    list_id = await create_list(db_session, name="L", owner_id=user.id)
    title_id = await resolve_or_create_title(db_session, tmdb_id=1, media_kind="movie", metadata=TitleMetadata(name="X"))
    await add_to_list(db_session, list_id, title_id)

    (row,) = await get_title_status_for_user(db_session, user.id, title_id)
    assert (row.list_id, row.state, row.rating, row.comment) == (list_id, "want", None, "")


async def test_status_only_covers_lists_the_user_owns(db_session, make_user):
    alice = await make_user()
    bob = await make_user()
    alices = await create_list(db_session, name="Alice's", owner_id=alice.id, visibility="public")
    shared = await create_list(db_session, name="Shared", owner_id=alice.id)
    await add_owner(db_session, shared, bob.id)
    title_id = await resolve_or_create_title(db_session, tmdb_id=1, media_kind="movie", metadata=TitleMetadata(name="X"))
    await add_to_list(db_session, alices, title_id)
    await add_to_list(db_session, shared, title_id)

    assert [s.list_id for s in await get_title_status_for_user(db_session, bob.id, title_id)] == [shared]
    assert len(await get_title_status_for_user(db_session, alice.id, title_id)) == 2


async def test_status_empty_when_not_listed(db_session, make_user):
    user = await make_user()
    list_id = await create_list(db_session, name="L", owner_id=user.id)
    title_id = await resolve_or_create_title(db_session, tmdb_id=1, media_kind="movie", metadata=TitleMetadata(name="X"))
    await set_state(db_session, user.id, title_id, "watched")
    await add_to_list(db_session, list_id, title_id)
    await remove_from_list(db_session, list_id, title_id)

    assert await get_title_status_for_user(db_session, user.id, title_id) == []
