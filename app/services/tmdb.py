from __future__ import annotations

import logging
import time
from datetime import date
from typing import Any

import httpx

from app.core.config import settings
from app.core.errors import CollaboratorError
from app.services.titles import TitleMetadata

logger = logging.getLogger(__name__)

TMDB_BASE_URL = "https://api.themoviedb.org/3"

# Search results and detail payloads share this in-memory cache.
_CACHE: dict[str, tuple[float, Any]] = {}
_TTL_SECONDS = 600

# TMDB calls series "tv"; the rest of the app says "series".
_TMDB_TYPE_BY_KIND = {"movie": "movie", "series": "tv"}
_KIND_BY_TMDB_TYPE = {v: k for k, v in _TMDB_TYPE_BY_KIND.items()}


def _cache_get(key: str):
    hit = _CACHE.get(key)
    if not hit:
        return None
    expires_at, value = hit
    if time.time() > expires_at:
        _CACHE.pop(key, None)
        return None
    return value


def _cache_set(key: str, value):
    _CACHE[key] = (time.time() + _TTL_SECONDS, value)


def clear_cache() -> None:
    _CACHE.clear()


def tmdb_type_for_kind(media_kind: str) -> str | None:
    return _TMDB_TYPE_BY_KIND.get(media_kind)


def media_kind_for_tmdb_type(media_type: str | None) -> str | None:
    return _KIND_BY_TMDB_TYPE.get(media_type or "")


def _parse_date(value: Any) -> date | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


async def _get_json(path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any] | None:
    """GET a TMDB resource. Returns None on 404; raises CollaboratorError on any other failure."""
    headers = {
        "Authorization": f"Bearer {settings.tmdb_token}",
        "Accept": "application/json",
    }
    query = {"language": settings.tmdb_language, **(params or {})}

    try:
        async with httpx.AsyncClient(base_url=TMDB_BASE_URL, timeout=settings.tmdb_timeout_seconds) as client:
            r = await client.get(path, params=query, headers=headers)
            if r.status_code == 404:
                return None
            r.raise_for_status()
            data = r.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise CollaboratorError(f"TMDB request failed for {path}: {exc.__class__.__name__}") from exc

    if not isinstance(data, dict):
        raise CollaboratorError(f"TMDB returned a non-object payload for {path}")
    return data


def _search_row(item: dict[str, Any]) -> dict[str, Any] | None:
    media_kind = media_kind_for_tmdb_type(item.get("media_type"))
    if media_kind is None:
        return None

    tmdb_id = item.get("id")
    if media_kind == "movie":
        title = item.get("title") or item.get("original_title") or ""
        raw_date = item.get("release_date") or ""
    else:
        title = item.get("name") or item.get("original_name") or ""
        raw_date = item.get("first_air_date") or ""

    if not title or not isinstance(tmdb_id, int) or tmdb_id <= 0:
        return None

    release_date = _parse_date(raw_date)
    return {
        "tmdb_id": tmdb_id,
        "media_kind": media_kind,
        "title": title,
        "release_date": release_date,
        "year": release_date.year if release_date else None,
        "poster_path": item.get("poster_path"),
    }


async def tmdb_search_multi(q: str) -> list[dict[str, Any]]:
    q = q.strip()
    if not q:
        return []

    key = f"multi:{settings.tmdb_language}:{q.lower()}"
    cached = _cache_get(key)
    if cached is not None:
        return cached

    try:
        data = await _get_json("/search/multi", params={"query": q})
    except CollaboratorError:
        logger.warning("TMDB search failed for query=%r", q, exc_info=True)
        return []

    out: list[dict[str, Any]] = []
    for item in (data or {}).get("results", []):
        if not isinstance(item, dict):
            continue
        row = _search_row(item)
        if row is not None:
            out.append(row)

    _cache_set(key, out)
    return out


def metadata_from_tmdb_payload(*, media_kind: str, data: dict[str, Any]) -> TitleMetadata:
    if media_kind == "movie":
        name = data.get("title") or data.get("original_title") or ""
        original_name = data.get("original_title") or ""
        raw_date = data.get("release_date")
    else:
        name = data.get("name") or data.get("original_name") or ""
        original_name = data.get("original_name") or ""
        raw_date = data.get("first_air_date")

    poster_path = data.get("poster_path")
    overview = data.get("overview")
    return TitleMetadata(
        name=name.strip() if isinstance(name, str) else "",
        original_name=original_name.strip() if isinstance(original_name, str) else "",
        release_date=_parse_date(raw_date),
        poster_path=poster_path if isinstance(poster_path, str) and poster_path.strip() else None,
        overview=overview.strip() if isinstance(overview, str) else "",
    )


async def fetch_tmdb_title_details(*, tmdb_id: int, media_kind: str) -> TitleMetadata | None:
    """Full metadata for a catalog item, or None when it is unknown or TMDB is unreachable."""
    tmdb_type = tmdb_type_for_kind(media_kind)
    if tmdb_type is None or tmdb_id <= 0:
        return None

    key = f"details:{settings.tmdb_language}:{tmdb_type}:{tmdb_id}"
    cached = _cache_get(key)
    if isinstance(cached, TitleMetadata):
        return cached

    try:
        data = await _get_json(f"/{tmdb_type}/{tmdb_id}")
    except CollaboratorError:
        logger.warning("TMDB details lookup failed tmdb_id=%s media_kind=%s", tmdb_id, media_kind, exc_info=True)
        return None

    if data is None:
        return None

    metadata = metadata_from_tmdb_payload(media_kind=media_kind, data=data)
    if not metadata.name:
        return None

    _cache_set(key, metadata)
    return metadata
