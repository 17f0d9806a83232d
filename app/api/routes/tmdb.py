from __future__ import annotations

from fastapi import APIRouter, Query

from app.api.presenters.titles import catalog_item_out
from app.schemas.tmdb import CatalogSearchResponse
from app.services.tmdb import tmdb_search_multi

router = APIRouter(prefix="/tmdb", tags=["tmdb"])


@router.get("/search", response_model=CatalogSearchResponse)
async def tmdb_search_route(q: str = Query(default="", max_length=200)):
    # Visitors may search too; an empty query is not an error.
    if not q.strip():
        return CatalogSearchResponse(results=[])
    rows = await tmdb_search_multi(q)
    return CatalogSearchResponse(results=[catalog_item_out(r) for r in rows])
