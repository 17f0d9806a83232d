from __future__ import annotations

from pydantic import BaseModel

from app.schemas.titles import TitleOut, ViewingStateOut


class UserTitleOut(BaseModel):
    title: TitleOut
    viewing: ViewingStateOut


class UserTitlesResponse(BaseModel):
    items: list[UserTitleOut]


class StateStats(BaseModel):
    count: int
    avg_rating: float | None = None


class UserStatsResponse(BaseModel):
    stats: dict[str, StateStats]


class ClearStateResponse(BaseModel):
    success: bool = True
    removed: bool
