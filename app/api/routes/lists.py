from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, get_optional_user
from app.api.presenters.titles import list_item_out
from app.core.errors import NotFoundError
from app.db.session import atomic
from app.models.user import User
from app.schemas.lists import (
    AddOwnerRequest,
    CreateListRequest,
    CreateListResponse,
    ListDetailResponse,
    ListItemsResponse,
    ListOut,
    ListOwnerOut,
    ListsResponse,
    OwnerChangeResponse,
    UpdateListRequest,
)
from app.schemas.titles import OkResponse
from app.services.library import get_accessible_list_items, require_owned_list, require_readable_list
from app.services.list_items import list_state_counts
from app.services.lists import (
    add_owner,
    create_list,
    delete_list,
    get_default_list,
    get_list_detail,
    is_owner,
    list_user_lists,
    remove_owner,
    set_default_list,
    update_list,
    update_visibility,
)

router = APIRouter(prefix="/lists", tags=["lists"])


def _owner_out(user: User) -> ListOwnerOut:
    return ListOwnerOut(id=user.id, username=user.username, display_name=user.display_name)


@router.get("", response_model=ListsResponse)
async def list_lists_route(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = await list_user_lists(db, user.id)
    return ListsResponse(lists=[ListOut(**vars(r)) for r in rows])


@router.post("", response_model=CreateListResponse, status_code=201)
async def create_list_route(
    payload: CreateListRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    async with atomic(db):
        list_id = await create_list(
            db,
            name=payload.name,
            owner_id=user.id,
            description=payload.description,
            visibility=payload.visibility,
            is_default=payload.is_default,
        )
    return CreateListResponse(list_id=list_id)


async def _detail_response(db: AsyncSession, list_id: UUID, user: User | None) -> ListDetailResponse:
    detail = await get_list_detail(db, list_id)
    lst = detail.title_list
    return ListDetailResponse(
        id=lst.id,
        name=lst.name,
        description=lst.description,
        visibility=lst.visibility,
        created_by=_owner_out(detail.created_by) if detail.created_by else None,
        owners=[_owner_out(o) for o in detail.owners],
        item_count=detail.item_count,
        is_owner=bool(user) and await is_owner(db, list_id, user.id),
        created_at=lst.created_at,
        updated_at=lst.updated_at,
    )


@router.get("/default", response_model=ListDetailResponse)
async def default_list_route(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    default = await get_default_list(db, user.id)
    if default is None:
        raise NotFoundError("No default list")
    return await _detail_response(db, default.id, user)


@router.get("/{list_id}", response_model=ListDetailResponse)
async def list_detail_route(
    list_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
):
    await require_readable_list(db, list_id, user.id if user else None)
    return await _detail_response(db, list_id, user)


@router.patch("/{list_id}", response_model=OkResponse)
async def update_list_route(
    list_id: UUID,
    payload: UpdateListRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    data = payload.model_dump(exclude_unset=True)
    async with atomic(db):
        await require_owned_list(db, list_id, user.id)
        if "name" in data or "description" in data:
            await update_list(db, list_id, name=data.get("name"), description=data.get("description"))
        if data.get("visibility") is not None:
            await update_visibility(db, list_id, data["visibility"])
    return OkResponse()


@router.delete("/{list_id}", response_model=OkResponse)
async def delete_list_route(
    list_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    async with atomic(db):
        await require_owned_list(db, list_id, user.id)
        await delete_list(db, list_id)
    return OkResponse()


@router.post("/{list_id}/default", response_model=OkResponse)
async def set_default_list_route(
    list_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    async with atomic(db):
        await require_owned_list(db, list_id, user.id)
        await set_default_list(db, user.id, list_id)
    return OkResponse()


@router.post("/{list_id}/owners", response_model=OwnerChangeResponse)
async def add_owner_route(
    list_id: UUID,
    payload: AddOwnerRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    async with atomic(db):
        await require_owned_list(db, list_id, user.id)
        new_owner_id = (
            await db.execute(select(User.id).where(User.username == payload.username))
        ).scalar_one_or_none()
        if new_owner_id is None:
            raise NotFoundError("User not found")
        changed = await add_owner(db, list_id, new_owner_id)
    return OwnerChangeResponse(changed=changed)


@router.delete("/{list_id}/owners/{user_id}", response_model=OwnerChangeResponse)
async def remove_owner_route(
    list_id: UUID,
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    async with atomic(db):
        await require_owned_list(db, list_id, user.id)
        changed = await remove_owner(db, list_id, user_id)
    return OwnerChangeResponse(changed=changed)


@router.get("/{list_id}/items", response_model=ListItemsResponse)
async def list_items_route(
    list_id: UUID,
    state: str | None = Query(default=None, pattern="^(want|watching|watched|stopped)$"),
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_optional_user),
):
    user_id = user.id if user else None
    _, rows = await get_accessible_list_items(db, user_id=user_id, list_id=list_id, state=state)
    counts = await list_state_counts(db, list_id, user_id) if user_id else None
    return ListItemsResponse(
        list_id=list_id,
        items=[list_item_out(r) for r in rows],
        state_counts=counts,
    )
