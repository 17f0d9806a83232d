from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.list_item import ListItem
from app.models.list_owner import ListOwner
from app.models.title_list import TitleList
from app.services.user_titles import get_state

# Shown for a title the user has listed but never given a state.
DEFAULT_STATE = "want"


@dataclass
class TitleListStatus:
    list_id: uuid.UUID
    list_name: str
    state: str
    rating: int | None
    comment: str


async def get_title_status_for_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    title_id: uuid.UUID,
) -> list[TitleListStatus]:
    q = (
        select(TitleList.id, TitleList.name)
        .join(ListItem, ListItem.list_id == TitleList.id)
        .join(ListOwner, ListOwner.list_id == TitleList.id)
        .where(ListItem.title_id == title_id, ListOwner.user_id == user_id)
        .order_by(TitleList.name.asc(), TitleList.id.asc())
    )
    lists = (await db.execute(q)).all()
    if not lists:
        return []

    viewing = await get_state(db, user_id, title_id)
    state = viewing.state if viewing else DEFAULT_STATE
    rating = viewing.rating if viewing else None
    comment = viewing.comment if viewing else ""

    return [
        TitleListStatus(list_id=list_id, list_name=name, state=state, rating=rating, comment=comment)
        for list_id, name in lists
    ]
