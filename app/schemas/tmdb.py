from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field


class CatalogSearchItem(BaseModel):
    tmdb_id: int
    media_kind: str = Field(pattern="^(movie|series)$")
    title: str
    release_date: date | None = None
    year: int | None = None
    poster_path: str | None = None
    poster_url: str | None = None


class CatalogSearchResponse(BaseModel):
    results: list[CatalogSearchItem]
