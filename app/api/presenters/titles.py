from __future__ import annotations

from typing import Any

from app.models.title import Title
from app.models.user_title import UserTitle
from app.schemas.lists import ListItemOut
from app.schemas.titles import TitleListStatusOut, TitleOut, ViewingStateOut
from app.schemas.tmdb import CatalogSearchItem
from app.services.list_items import ListItemRow
from app.services.title_status import TitleListStatus
from app.services.titles import poster_url


def title_out(title: Title) -> TitleOut:
    return TitleOut(
        id=title.id,
        tmdb_id=title.tmdb_id,
        media_kind=title.media_kind,
        name=title.name,
        original_name=title.original_name or "",
        release_date=title.release_date,
        poster_path=title.poster_path,
        poster_url=poster_url(title.poster_path),
        overview=title.overview or "",
    )


def viewing_out(viewing: UserTitle | None) -> ViewingStateOut | None:
    if viewing is None:
        return None
    return ViewingStateOut(
        state=viewing.state,
        rating=viewing.rating,
        comment=viewing.comment or "",
        updated_at=viewing.updated_at,
    )


def list_item_out(row: ListItemRow) -> ListItemOut:
    return ListItemOut(
        added_at=row.item.created_at,
        title=title_out(row.title),
        viewing=viewing_out(row.viewing),
    )


def status_out(status: TitleListStatus) -> TitleListStatusOut:
    return TitleListStatusOut(
        list_id=status.list_id,
        list_name=status.list_name,
        state=status.state,
        rating=status.rating,
        comment=status.comment,
    )


def catalog_item_out(row: dict[str, Any]) -> CatalogSearchItem:
    return CatalogSearchItem(
        tmdb_id=row["tmdb_id"],
        media_kind=row["media_kind"],
        title=row["title"],
        release_date=row.get("release_date"),
        year=row.get("year"),
        poster_path=row.get("poster_path"),
        poster_url=poster_url(row.get("poster_path")),
    )
