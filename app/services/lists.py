from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.db.session import insert_for
from app.models.list_item import ListItem
from app.models.list_owner import ListOwner
from app.models.title_list import TitleList
from app.models.user import User
from app.services.list_items import list_item_count

VISIBILITIES = ("private", "public")
_NAME_MAX_LEN = 120


@dataclass
class ListSummary:
    id: uuid.UUID
    name: str
    description: str
    visibility: str
    created_by_user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    item_count: int
    is_default: bool


@dataclass
class ListDetail:
    title_list: TitleList
    created_by: User | None
    owners: list[User]
    item_count: int


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _clean_name(name: str | None) -> str:
    cleaned = " ".join((name or "").split())
    if not cleaned:
        raise ValidationError("List name is required")
    if len(cleaned) > _NAME_MAX_LEN:
        raise ValidationError(f"List name must be {_NAME_MAX_LEN} characters or fewer")
    return cleaned


def _validate_visibility(visibility: str) -> str:
    if visibility not in VISIBILITIES:
        raise ValidationError(f"Invalid visibility: {visibility!r}")
    return visibility


def _item_count_subquery():
    return (
        select(sa.func.count(ListItem.id))
        .where(ListItem.list_id == TitleList.id)
        .correlate(TitleList)
        .scalar_subquery()
    )


async def create_list(
    db: AsyncSession,
    *,
    name: str,
    owner_id: uuid.UUID,
    description: str = "",
    visibility: str = "private",
    is_default: bool = False,
) -> uuid.UUID:
    title_list = TitleList(
        name=_clean_name(name),
        description=(description or "").strip(),
        visibility=_validate_visibility(visibility),
        created_by_user_id=owner_id,
    )
    db.add(title_list)
    await db.flush()  # get list id

    db.add(ListOwner(list_id=title_list.id, user_id=owner_id))
    await db.flush()

    if is_default:
        await set_default_list(db, owner_id, title_list.id)

    return title_list.id


async def is_owner(db: AsyncSession, list_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    q = select(ListOwner.id).where(ListOwner.list_id == list_id, ListOwner.user_id == user_id)
    return (await db.execute(q)).first() is not None


async def can_access(db: AsyncSession, list_id: uuid.UUID, user_id: uuid.UUID | None) -> bool:
    """Read access: public lists for everyone, private lists for their owners only."""
    owned = sa.exists().where(ListOwner.list_id == TitleList.id, ListOwner.user_id == user_id)
    condition = TitleList.visibility == "public"
    if user_id is not None:
        condition = sa.or_(condition, owned)

    q = select(TitleList.id).where(TitleList.id == list_id, condition)
    return (await db.execute(q)).first() is not None


async def get_list(db: AsyncSession, list_id: uuid.UUID) -> TitleList:
    title_list = (await db.execute(select(TitleList).where(TitleList.id == list_id))).scalar_one_or_none()
    if title_list is None:
        raise NotFoundError("List not found")
    return title_list


async def _default_list_id(db: AsyncSession, user_id: uuid.UUID) -> uuid.UUID | None:
    q = select(User.default_list_id).where(User.id == user_id)
    return (await db.execute(q)).scalar_one_or_none()


async def list_user_lists(db: AsyncSession, user_id: uuid.UUID) -> list[ListSummary]:
    default_id = await _default_list_id(db, user_id)
    item_count = _item_count_subquery().label("item_count")

    q = (
        select(TitleList, item_count)
        .join(ListOwner, ListOwner.list_id == TitleList.id)
        .where(ListOwner.user_id == user_id)
    )
    if default_id is not None:
        q = q.order_by(sa.case((TitleList.id == default_id, 0), else_=1))
    q = q.order_by(TitleList.created_at.desc(), TitleList.id.desc())

    rows = (await db.execute(q)).all()
    return [
        ListSummary(
            id=lst.id,
            name=lst.name,
            description=lst.description,
            visibility=lst.visibility,
            created_by_user_id=lst.created_by_user_id,
            created_at=lst.created_at,
            updated_at=lst.updated_at,
            item_count=int(count or 0),
            is_default=lst.id == default_id,
        )
        for lst, count in rows
    ]


async def get_list_owners(db: AsyncSession, list_id: uuid.UUID) -> list[User]:
    q = (
        select(User)
        .join(ListOwner, ListOwner.user_id == User.id)
        .where(ListOwner.list_id == list_id)
        .order_by(User.display_name.asc(), User.username.asc())
    )
    return list((await db.execute(q)).scalars())


async def get_list_detail(db: AsyncSession, list_id: uuid.UUID) -> ListDetail:
    title_list = await get_list(db, list_id)
    created_by = (
        await db.execute(select(User).where(User.id == title_list.created_by_user_id))
    ).scalar_one_or_none()
    item_count = await list_item_count(db, list_id)
    return ListDetail(
        title_list=title_list,
        created_by=created_by,
        owners=await get_list_owners(db, list_id),
        item_count=item_count,
    )


async def update_list(
    db: AsyncSession,
    list_id: uuid.UUID,
    *,
    name: str | None = None,
    description: str | None = None,
) -> TitleList:
    title_list = await get_list(db, list_id)
    if name is not None:
        title_list.name = _clean_name(name)
    if description is not None:
        title_list.description = description.strip()
    title_list.updated_at = _now_utc()
    await db.flush()
    return title_list


async def update_visibility(db: AsyncSession, list_id: uuid.UUID, visibility: str) -> TitleList:
    title_list = await get_list(db, list_id)
    title_list.visibility = _validate_visibility(visibility)
    title_list.updated_at = _now_utc()
    await db.flush()
    return title_list


async def delete_list(db: AsyncSession, list_id: uuid.UUID) -> None:
    """Delete a list with its memberships and ownerships. Titles and viewing states stay."""
    await get_list(db, list_id)
    await db.execute(
        sa.update(User).where(User.default_list_id == list_id).values(default_list_id=None)
    )
    await db.execute(sa.delete(ListItem).where(ListItem.list_id == list_id))
    await db.execute(sa.delete(ListOwner).where(ListOwner.list_id == list_id))
    await db.execute(sa.delete(TitleList).where(TitleList.id == list_id))


async def add_owner(db: AsyncSession, list_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    await get_list(db, list_id)
    insert = insert_for(db)
    stmt = (
        insert(ListOwner)
        .values(id=uuid.uuid4(), list_id=list_id, user_id=user_id)
        .on_conflict_do_nothing(index_elements=["list_id", "user_id"])
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


async def remove_owner(db: AsyncSession, list_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    if not await is_owner(db, list_id, user_id):
        return False

    owner_count = (
        await db.execute(select(sa.func.count(ListOwner.id)).where(ListOwner.list_id == list_id))
    ).scalar_one()
    if owner_count <= 1:
        raise ValidationError("A list must keep at least one owner")

    await db.execute(
        sa.delete(ListOwner).where(ListOwner.list_id == list_id, ListOwner.user_id == user_id)
    )
    await db.execute(
        sa.update(User)
        .where(User.id == user_id, User.default_list_id == list_id)
        .values(default_list_id=None)
    )
    return True


async def get_default_list(db: AsyncSession, user_id: uuid.UUID) -> TitleList | None:
    q = select(TitleList).join(User, User.default_list_id == TitleList.id).where(User.id == user_id)
    return (await db.execute(q)).scalar_one_or_none()


async def set_default_list(db: AsyncSession, user_id: uuid.UUID, list_id: uuid.UUID) -> None:
    """Point the user's default at ``list_id``. The list must be one the user owns."""
    if not await is_owner(db, list_id, user_id):
        raise ValidationError("Default list must be a list you own")
    await db.execute(sa.update(User).where(User.id == user_id).values(default_list_id=list_id))
