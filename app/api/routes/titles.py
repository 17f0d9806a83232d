from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.api.presenters.titles import status_out, title_out, viewing_out
from app.models.user import User
from app.schemas.titles import (
    AddToListRequest,
    AddToListResponse,
    OkResponse,
    PopularTitleOut,
    PopularTitlesResponse,
    RemoveFromListResponse,
    TitleDetailResponse,
    TitleSearchResponse,
    TitleStatusResponse,
    UpdateStateRequest,
)
from app.services.library import add_catalog_title_to_list, remove_title_from_list, update_title_state
from app.services.title_status import get_title_status_for_user
from app.services.titles import get_title, popular_titles, search_local_titles
from app.services.user_titles import get_state

router = APIRouter(prefix="/titles", tags=["titles"])


@router.get("/search", response_model=TitleSearchResponse)
async def search_titles_route(
    q: str = Query(default="", max_length=200),
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    titles = await search_local_titles(db, q, limit=limit)
    return TitleSearchResponse(results=[title_out(t) for t in titles])


@router.get("/popular", response_model=PopularTitlesResponse)
async def popular_titles_route(
    limit: int = Query(default=20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = await popular_titles(db, limit=limit)
    return PopularTitlesResponse(
        titles=[PopularTitleOut(title=title_out(title), usage_count=count) for title, count in rows]
    )


@router.post("/{tmdb_id}/{media_kind}/add-to-list", response_model=AddToListResponse)
async def add_to_list_route(
    payload: AddToListRequest,
    tmdb_id: int = Path(gt=0),
    media_kind: str = Path(pattern="^(movie|series)$"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = await add_catalog_title_to_list(
        db,
        user_id=user.id,
        list_id=payload.list_id,
        tmdb_id=tmdb_id,
        media_kind=media_kind,
        state=payload.state,
        rating=payload.rating,
        comment=payload.comment,
    )
    return AddToListResponse(
        title_id=result.title_id,
        list_id=result.list_id,
        already_in_list=not result.added,
    )


@router.post("/{title_id}/state", response_model=OkResponse)
async def update_state_route(
    title_id: UUID,
    payload: UpdateStateRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await update_title_state(
        db,
        user_id=user.id,
        list_id=payload.list_id,
        title_id=title_id,
        state=payload.state,
        rating=payload.rating,
        comment=payload.comment,
    )
    return OkResponse()


@router.get("/{title_id}", response_model=TitleDetailResponse)
async def title_detail_route(
    title_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    title = await get_title(db, title_id)
    viewing = await get_state(db, user.id, title_id)
    status = await get_title_status_for_user(db, user.id, title_id)
    return TitleDetailResponse(
        title=title_out(title),
        viewing=viewing_out(viewing),
        status=[status_out(s) for s in status],
    )


@router.get("/{title_id}/status", response_model=TitleStatusResponse)
async def title_status_route(
    title_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await get_title(db, title_id)
    status = await get_title_status_for_user(db, user.id, title_id)
    return TitleStatusResponse(status=[status_out(s) for s in status])


@router.delete("/{title_id}/lists/{list_id}", response_model=RemoveFromListResponse)
async def remove_from_list_route(
    title_id: UUID,
    list_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    removed = await remove_title_from_list(db, user_id=user.id, list_id=list_id, title_id=title_id)
    return RemoveFromListResponse(removed=removed)
