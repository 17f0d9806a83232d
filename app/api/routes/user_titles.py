from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.api.presenters.titles import title_out, viewing_out
from app.core.errors import ValidationError
from app.db.session import atomic
from app.models.user import User
from app.schemas.user_titles import ClearStateResponse, StateStats, UserStatsResponse, UserTitleOut, UserTitlesResponse
from app.services.user_titles import list_by_states, recent_activity, remove_state, user_stats

router = APIRouter(prefix="/user", tags=["user-titles"])


def _parse_states(raw: str) -> list[str]:
    states = [s.strip() for s in raw.split(",") if s.strip()]
    if not states:
        raise ValidationError("At least one state is required")
    return states


@router.get("/titles", response_model=UserTitlesResponse)
async def user_titles_route(
    states: str = Query(default="watched,watching,stopped"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = await list_by_states(db, user.id, _parse_states(states), limit=limit, offset=offset)
    return UserTitlesResponse(
        items=[UserTitleOut(title=title_out(title), viewing=viewing_out(ut)) for ut, title in rows]
    )


@router.get("/stats", response_model=UserStatsResponse)
async def user_stats_route(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    stats = await user_stats(db, user.id)
    return UserStatsResponse(stats={state: StateStats(**values) for state, values in stats.items()})


@router.get("/activity", response_model=UserTitlesResponse)
async def user_activity_route(
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = await recent_activity(db, user.id, limit=limit)
    return UserTitlesResponse(
        items=[UserTitleOut(title=title_out(title), viewing=viewing_out(ut)) for ut, title in rows]
    )


@router.delete("/titles/{title_id}", response_model=ClearStateResponse)
async def clear_user_title_route(
    title_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    async with atomic(db):
        removed = await remove_state(db, user.id, title_id)
    return ClearStateResponse(removed=removed)
