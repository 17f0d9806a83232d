from __future__ import annotations

import uuid
from dataclasses import dataclass

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import insert_for
from app.models.list_item import ListItem
from app.models.title import Title
from app.models.user_title import UserTitle, VIEWING_STATES
from app.services.user_titles import validate_state


@dataclass
class ListItemRow:
    item: ListItem
    title: Title
    viewing: UserTitle | None = None


async def add_to_list(db: AsyncSession, list_id: uuid.UUID, title_id: uuid.UUID) -> bool:
    insert = insert_for(db)
    stmt = (
        insert(ListItem)
        .values(id=uuid.uuid4(), list_id=list_id, title_id=title_id)
        .on_conflict_do_nothing(index_elements=["list_id", "title_id"])
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


async def remove_from_list(db: AsyncSession, list_id: uuid.UUID, title_id: uuid.UUID) -> bool:
    result = await db.execute(
        sa.delete(ListItem)
        .where(ListItem.list_id == list_id, ListItem.title_id == title_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


async def is_in_list(db: AsyncSession, list_id: uuid.UUID, title_id: uuid.UUID) -> bool:
    q = select(ListItem.id).where(ListItem.list_id == list_id, ListItem.title_id == title_id)
    return (await db.execute(q)).first() is not None


async def list_items(
    db: AsyncSession,
    list_id: uuid.UUID,
    *,
    state: str | None = None,
    user_id: uuid.UUID | None = None,
) -> list[ListItemRow]:
    # A state filter also keeps titles the user has no state for; it needs a user.
    if state is not None:
        validate_state(state)

    order = (ListItem.created_at.desc(), ListItem.id.desc())

    if user_id is None:
        q = (
            select(ListItem, Title)
            .join(Title, Title.id == ListItem.title_id)
            .where(ListItem.list_id == list_id)
            .order_by(*order)
        )
        return [ListItemRow(item=item, title=title) for item, title in (await db.execute(q)).all()]

    q = (
        select(ListItem, Title, UserTitle)
        .join(Title, Title.id == ListItem.title_id)
        .outerjoin(
            UserTitle,
            sa.and_(UserTitle.title_id == Title.id, UserTitle.user_id == user_id),
        )
        .where(ListItem.list_id == list_id)
        .order_by(*order)
        .execution_options(populate_existing=True)
    )
    if state is not None:
        q = q.where(sa.or_(UserTitle.state == state, UserTitle.id.is_(None)))

    rows = (await db.execute(q)).all()
    return [ListItemRow(item=item, title=title, viewing=viewing) for item, title, viewing in rows]


async def list_item_count(db: AsyncSession, list_id: uuid.UUID) -> int:
    q = select(sa.func.count(ListItem.id)).where(ListItem.list_id == list_id)
    return int((await db.execute(q)).scalar_one())


async def list_state_counts(db: AsyncSession, list_id: uuid.UUID, user_id: uuid.UUID) -> dict[str, int]:
    state_col = sa.func.coalesce(UserTitle.state, "want").label("viewing_state")
    q = (
        select(state_col, sa.func.count(ListItem.id))
        .select_from(ListItem)
        .outerjoin(
            UserTitle,
            sa.and_(UserTitle.title_id == ListItem.title_id, UserTitle.user_id == user_id),
        )
        .where(ListItem.list_id == list_id)
        .group_by(state_col)
    )
    counts = {s: 0 for s in VIEWING_STATES}
    for state, count in (await db.execute(q)).all():
        counts[state] += int(count)
    return counts
