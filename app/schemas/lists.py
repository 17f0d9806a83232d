from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.schemas.titles import TitleOut, ViewingStateOut


class CreateListRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: str = Field(default="", max_length=2000)
    visibility: Literal["private", "public"] = "private"
    is_default: bool = False


class UpdateListRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = Field(default=None, max_length=2000)
    visibility: Literal["private", "public"] | None = None

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class ListOut(BaseModel):
    id: UUID
    name: str
    description: str
    visibility: str
    created_by_user_id: UUID
    created_at: datetime
    updated_at: datetime
    item_count: int
    is_default: bool


class ListsResponse(BaseModel):
    lists: list[ListOut]


class CreateListResponse(BaseModel):
    success: bool = True
    list_id: UUID


class ListOwnerOut(BaseModel):
    id: UUID
    username: str
    display_name: str


class ListDetailResponse(BaseModel):
    id: UUID
    name: str
    description: str
    visibility: str
    created_by: ListOwnerOut | None
    owners: list[ListOwnerOut]
    item_count: int
    is_owner: bool
    created_at: datetime
    updated_at: datetime


class AddOwnerRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)


class OwnerChangeResponse(BaseModel):
    success: bool = True
    changed: bool


class ListItemOut(BaseModel):
    added_at: datetime
    title: TitleOut
    viewing: ViewingStateOut | None = None


class ListItemsResponse(BaseModel):
    list_id: UUID
    items: list[ListItemOut]
    state_counts: dict[str, int] | None = None
