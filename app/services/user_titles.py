from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ValidationError
from app.db.session import insert_for
from app.models.title import Title
from app.models.user_title import UserTitle, VIEWING_STATES

_PAGE_MAX = 100


def validate_state(state: str) -> str:
    if state not in VIEWING_STATES:
        raise ValidationError(f"Invalid state: {state!r} (expected one of {', '.join(VIEWING_STATES)})")
    return state


def _page(limit: int, offset: int) -> tuple[int, int]:
    return max(1, min(limit, _PAGE_MAX)), max(0, offset)


async def set_state(
    db: AsyncSession,
    user_id: uuid.UUID,
    title_id: uuid.UUID,
    state: str,
    rating: int | None = None,
    comment: str = "",
) -> None:
    # Full overwrite: rating=None clears an earlier rating.
    validate_state(state)
    now = datetime.now(timezone.utc)

    insert = insert_for(db)
    stmt = insert(UserTitle).values(
        id=uuid.uuid4(),
        user_id=user_id,
        title_id=title_id,
        state=state,
        rating=rating,
        comment=comment or "",
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "title_id"],
        set_={
            "state": stmt.excluded.state,
            "rating": stmt.excluded.rating,
            "comment": stmt.excluded.comment,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    await db.execute(stmt)


async def get_state(db: AsyncSession, user_id: uuid.UUID, title_id: uuid.UUID) -> UserTitle | None:
    q = (
        select(UserTitle)
        .where(UserTitle.user_id == user_id, UserTitle.title_id == title_id)
        .execution_options(populate_existing=True)
    )
    return (await db.execute(q)).scalar_one_or_none()


async def remove_state(db: AsyncSession, user_id: uuid.UUID, title_id: uuid.UUID) -> bool:
    result = await db.execute(
        sa.delete(UserTitle)
        .where(UserTitle.user_id == user_id, UserTitle.title_id == title_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


async def list_by_states(
    db: AsyncSession,
    user_id: uuid.UUID,
    states: Iterable[str],
    *,
    limit: int = 50,
    offset: int = 0,
) -> list[tuple[UserTitle, Title]]:
    wanted = [validate_state(s) for s in dict.fromkeys(states)]
    if not wanted:
        return []

    limit, offset = _page(limit, offset)
    q = (
        select(UserTitle, Title)
        .join(Title, Title.id == UserTitle.title_id)
        .where(UserTitle.user_id == user_id, UserTitle.state.in_(wanted))
        .order_by(UserTitle.updated_at.desc(), UserTitle.id.desc())
        .limit(limit)
        .offset(offset)
        .execution_options(populate_existing=True)
    )
    return [(ut, title) for ut, title in (await db.execute(q)).all()]


async def list_by_state(
    db: AsyncSession,
    user_id: uuid.UUID,
    state: str,
    *,
    limit: int = 50,
    offset: int = 0,
) -> list[tuple[UserTitle, Title]]:
    return await list_by_states(db, user_id, [state], limit=limit, offset=offset)


async def recent_activity(db: AsyncSession, user_id: uuid.UUID, limit: int = 20) -> list[tuple[UserTitle, Title]]:
    return await list_by_states(db, user_id, VIEWING_STATES, limit=limit)


async def user_stats(db: AsyncSession, user_id: uuid.UUID) -> dict[str, dict[str, float | int | None]]:
    q = (
        select(UserTitle.state, sa.func.count(UserTitle.id), sa.func.avg(UserTitle.rating))
        .where(UserTitle.user_id == user_id)
        .group_by(UserTitle.state)
    )
    stats: dict[str, dict[str, float | int | None]] = {
        s: {"count": 0, "avg_rating": None} for s in VIEWING_STATES
    }
    for state, count, avg_rating in (await db.execute(q)).all():
        stats[state] = {
            "count": int(count),
            "avg_rating": round(float(avg_rating), 1) if avg_rating is not None else None,
        }
    return stats
