from __future__ import annotations

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

ViewingStateName = Literal["want", "watching", "watched", "stopped"]


class TitleOut(BaseModel):
    id: UUID
    tmdb_id: int
    media_kind: str
    name: str
    original_name: str = ""
    release_date: date | None = None
    poster_path: str | None = None
    poster_url: str | None = None
    overview: str = ""


class ViewingStateOut(BaseModel):
    state: str
    rating: int | None = None
    comment: str = ""
    updated_at: datetime | None = None


class AddToListRequest(BaseModel):
    list_id: UUID
    state: ViewingStateName = "want"
    # 1-5 is the rating scale shown to users.
    rating: int | None = Field(default=None, ge=1, le=5)
    comment: str = Field(default="", max_length=5000)


class AddToListResponse(BaseModel):
    success: bool = True
    title_id: UUID
    list_id: UUID
    already_in_list: bool


class UpdateStateRequest(BaseModel):
    list_id: UUID
    state: ViewingStateName = "want"
    rating: int | None = Field(default=None, ge=1, le=5)
    comment: str = Field(default="", max_length=5000)


class TitleListStatusOut(BaseModel):
    list_id: UUID
    list_name: str
    state: str
    rating: int | None = None
    comment: str = ""


class TitleStatusResponse(BaseModel):
    status: list[TitleListStatusOut]


class TitleDetailResponse(BaseModel):
    title: TitleOut
    viewing: ViewingStateOut | None = None
    status: list[TitleListStatusOut]


class OkResponse(BaseModel):
    success: bool = True


class RemoveFromListResponse(BaseModel):
    success: bool = True
    removed: bool


class TitleSearchResponse(BaseModel):
    results: list[TitleOut]


class PopularTitleOut(BaseModel):
    title: TitleOut
    usage_count: int


class PopularTitlesResponse(BaseModel):
    titles: list[PopularTitleOut]
