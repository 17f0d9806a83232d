from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthorizationError, NotFoundError
from app.db.session import atomic
from app.models.title_list import TitleList
from app.services import tmdb
from app.services.list_items import ListItemRow, add_to_list, list_items, remove_from_list
from app.services.lists import can_access, get_list, is_owner
from app.services.titles import get_title, resolve_or_create_title, validate_media_kind
from app.services.user_titles import set_state, validate_state

logger = logging.getLogger(__name__)


@dataclass
class AddToListResult:
    title_id: uuid.UUID
    list_id: uuid.UUID
    added: bool


async def require_owned_list(db: AsyncSession, list_id: uuid.UUID, user_id: uuid.UUID) -> TitleList:
    title_list = await get_list(db, list_id)
    if not await is_owner(db, list_id, user_id):
        raise AuthorizationError("Access denied")
    return title_list


async def require_readable_list(db: AsyncSession, list_id: uuid.UUID, user_id: uuid.UUID | None) -> TitleList:
    title_list = await get_list(db, list_id)
    if not await can_access(db, list_id, user_id):
        raise AuthorizationError("Access denied")
    return title_list


async def add_catalog_title_to_list(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    list_id: uuid.UUID,
    tmdb_id: int,
    media_kind: str,
    state: str = "want",
    rating: int | None = None,
    comment: str = "",
) -> AddToListResult:
    validate_media_kind(media_kind)
    validate_state(state)

    await require_owned_list(db, list_id, user_id)

    # Catalog lookup happens before any write is issued.
    metadata = await tmdb.fetch_tmdb_title_details(tmdb_id=tmdb_id, media_kind=media_kind)
    if metadata is None:
        logger.info("Catalog miss tmdb_id=%s media_kind=%s", tmdb_id, media_kind)
        raise NotFoundError("Title not found")

    async with atomic(db):
        title_id = await resolve_or_create_title(db, tmdb_id=tmdb_id, media_kind=media_kind, metadata=metadata)
        added = await add_to_list(db, list_id, title_id)
        await set_state(db, user_id, title_id, state, rating, comment)

    return AddToListResult(title_id=title_id, list_id=list_id, added=added)


async def update_title_state(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    list_id: uuid.UUID,
    title_id: uuid.UUID,
    state: str,
    rating: int | None = None,
    comment: str = "",
) -> None:
    validate_state(state)

    async with atomic(db):
        await require_owned_list(db, list_id, user_id)
        await get_title(db, title_id)
        await set_state(db, user_id, title_id, state, rating, comment)


async def remove_title_from_list(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    list_id: uuid.UUID,
    title_id: uuid.UUID,
) -> bool:
    async with atomic(db):
        await require_owned_list(db, list_id, user_id)
        removed = await remove_from_list(db, list_id, title_id)
    return removed


async def get_accessible_list_items(
    db: AsyncSession,
    *,
    user_id: uuid.UUID | None,
    list_id: uuid.UUID,
    state: str | None = None,
) -> tuple[TitleList, list[ListItemRow]]:
    title_list = await require_readable_list(db, list_id, user_id)
    rows = await list_items(db, list_id, state=state, user_id=user_id)
    return title_list, rows
