from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.db.session import insert_for
from app.models.list_item import ListItem
from app.models.title import Title
from app.models.user_title import UserTitle

MEDIA_KINDS = ("movie", "series")
TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p"

_DESCRIPTIVE_FIELDS = ("name", "original_name", "release_date", "poster_path", "overview")


@dataclass(frozen=True)
class TitleMetadata:
    name: str
    original_name: str = ""
    release_date: date | None = None
    poster_path: str | None = None
    overview: str = field(default="", repr=False)


def validate_media_kind(media_kind: str) -> str:
    if media_kind not in MEDIA_KINDS:
        raise ValidationError(f"Invalid media kind: {media_kind!r}")
    return media_kind


async def resolve_or_create_title(
    db: AsyncSession,
    *,
    tmdb_id: int,
    media_kind: str,
    metadata: TitleMetadata,
) -> uuid.UUID:
    """Map a catalog item to its local title id, inserting it on first sight.

    The insert and the lookup go through ``ON CONFLICT DO NOTHING`` so two
    concurrent callers converge on the same row. An existing row is returned
    as-is; its metadata is not refreshed.
    """
    if not isinstance(tmdb_id, int) or tmdb_id <= 0:
        raise ValidationError("TMDB id must be a positive integer")
    validate_media_kind(media_kind)
    name = (metadata.name or "").strip()
    if not name:
        raise ValidationError("Title name is required")

    insert = insert_for(db)
    stmt = (
        insert(Title)
        .values(
            id=uuid.uuid4(),
            tmdb_id=tmdb_id,
            media_kind=media_kind,
            name=name,
            original_name=(metadata.original_name or "").strip(),
            release_date=metadata.release_date,
            poster_path=metadata.poster_path,
            overview=metadata.overview or "",
        )
        .on_conflict_do_nothing(index_elements=["tmdb_id", "media_kind"])
    )
    await db.execute(stmt)

    q = select(Title.id).where(Title.tmdb_id == tmdb_id, Title.media_kind == media_kind)
    return (await db.execute(q)).scalar_one()


async def find_title(db: AsyncSession, *, tmdb_id: int, media_kind: str) -> Title | None:
    q = select(Title).where(Title.tmdb_id == tmdb_id, Title.media_kind == media_kind)
    return (await db.execute(q)).scalar_one_or_none()


async def get_title(db: AsyncSession, title_id: uuid.UUID) -> Title:
    title = (await db.execute(select(Title).where(Title.id == title_id))).scalar_one_or_none()
    if title is None:
        raise NotFoundError("Title not found")
    return title


async def update_title(db: AsyncSession, title_id: uuid.UUID, **fields) -> Title:
    """Administrative update of the descriptive fields. The (tmdb_id, media_kind) pair never changes."""
    unknown = set(fields) - set(_DESCRIPTIVE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update title fields: {', '.join(sorted(unknown))}")

    title = await get_title(db, title_id)
    if not fields:
        return title

    if "name" in fields:
        name = (fields["name"] or "").strip()
        if not name:
            raise ValidationError("Title name is required")
        fields["name"] = name

    for key, value in fields.items():
        setattr(title, key, value)
    title.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return title


async def delete_title(db: AsyncSession, title_id: uuid.UUID) -> None:
    title = await get_title(db, title_id)
    in_lists = (
        await db.execute(select(sa.func.count(ListItem.id)).where(ListItem.title_id == title_id))
    ).scalar_one()
    if in_lists:
        raise ValidationError("Title is still in one or more lists")
    await db.execute(sa.delete(UserTitle).where(UserTitle.title_id == title_id))
    await db.execute(sa.delete(Title).where(Title.id == title.id))


async def search_local_titles(db: AsyncSession, q: str, limit: int = 20) -> list[Title]:
    term = (q or "").strip()
    if not term:
        return []

    pattern = f"%{term}%"
    prefix_rank = sa.case((Title.name.ilike(f"{term}%"), 1), else_=2)
    stmt = (
        select(Title)
        .where(sa.or_(Title.name.ilike(pattern), Title.original_name.ilike(pattern)))
        .order_by(prefix_rank, sa.func.lower(Title.name).asc())
        .limit(max(1, min(limit, 100)))
    )
    return list((await db.execute(stmt)).scalars())


async def popular_titles(db: AsyncSession, limit: int = 20) -> list[tuple[Title, int]]:
    usage = sa.func.count(ListItem.id).label("usage_count")
    stmt = (
        select(Title, usage)
        .outerjoin(ListItem, ListItem.title_id == Title.id)
        .group_by(Title.id)
        .order_by(usage.desc(), Title.created_at.desc())
        .limit(max(1, min(limit, 100)))
    )
    return [(row[0], int(row[1])) for row in (await db.execute(stmt)).all()]


def poster_url(poster_path: str | None, size: str = "w500") -> str | None:
    if not poster_path:
        return None
    return f"{TMDB_IMAGE_BASE_URL}/{size}{poster_path}"
