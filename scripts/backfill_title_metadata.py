#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.db.session import AsyncSessionLocal
from app.models.title import Title
from app.services.titles import TitleMetadata, update_title
from app.services.tmdb import fetch_tmdb_title_details

logger = logging.getLogger("backfill_title_metadata")

FILL_FIELDS = ("overview", "original_name", "poster_path", "release_date")

DetailsFetcher = Callable[..., Awaitable[TitleMetadata | None]]


@dataclass
class BackfillStats:
    scanned: int = 0
    would_update: int = 0
    updated: int = 0
    unchanged: int = 0
    not_found: int = 0
    fetch_errors: int = 0


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _derive_patch(title: Title, metadata: TitleMetadata, fields: tuple[str, ...]) -> dict[str, Any]:
    """Values from the catalog for fields that are blank locally. Filled fields are never overwritten."""
    patch: dict[str, Any] = {}
    for name in fields:
        if not _is_blank(getattr(title, name)):
            continue
        value = getattr(metadata, name)
        if isinstance(value, str):
            value = value.strip()
        if _is_blank(value):
            continue
        patch[name] = value
    return patch


def _missing_filter_clause(fields: tuple[str, ...]):
    if not fields:
        raise ValueError("At least one field to fill is required")
    clauses = []
    for name in fields:
        column = getattr(Title, name)
        if name == "release_date":
            clauses.append(column.is_(None))
        else:
            clauses.append(sa.or_(column.is_(None), sa.func.length(sa.func.trim(column)) == 0))
    return sa.or_(*clauses)


async def _load_batch(
    db: AsyncSession,
    *,
    after_id: UUID | None,
    batch_size: int,
    filter_clause,
) -> list[Title]:
    q = select(Title).where(filter_clause).order_by(Title.id.asc()).limit(batch_size)
    if after_id is not None:
        q = q.where(Title.id > after_id)
    return list((await db.execute(q)).scalars())


async def run_backfill(
    db: AsyncSession,
    *,
    apply: bool,
    batch_size: int = 100,
    max_items: int | None = None,
    sleep_ms: int = 0,
    fields: tuple[str, ...] = FILL_FIELDS,
    verbose: bool = False,
    details_fetcher: DetailsFetcher = fetch_tmdb_title_details,
) -> BackfillStats:
    if batch_size <= 0:
        raise ValueError("--batch-size must be greater than 0")
    if max_items is not None and max_items <= 0:
        raise ValueError("--max-items must be greater than 0 when provided")
    unknown = set(fields) - set(FILL_FIELDS)
    if unknown:
        raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")

    stats = BackfillStats()
    filter_clause = _missing_filter_clause(fields)
    after_id: UUID | None = None
    sleep_seconds = max(0, sleep_ms) / 1000

    done = False
    while not done:
        batch = await _load_batch(db, after_id=after_id, batch_size=batch_size, filter_clause=filter_clause)
        if not batch:
            break

        for title in batch:
            if max_items is not None and stats.scanned >= max_items:
                done = True
                break

            stats.scanned += 1
            try:
                metadata = await details_fetcher(tmdb_id=title.tmdb_id, media_kind=title.media_kind)
            except Exception:
                stats.fetch_errors += 1
                logger.exception("tmdb fetch failed title_id=%s tmdb_id=%s", title.id, title.tmdb_id)
                continue

            if metadata is None:
                stats.not_found += 1
                if verbose:
                    logger.info("not in catalog title_id=%s tmdb_id=%s", title.id, title.tmdb_id)
                continue

            patch = _derive_patch(title, metadata, fields)
            if not patch:
                stats.unchanged += 1
            else:
                stats.would_update += 1
                if verbose:
                    logger.info("candidate update title_id=%s fields=%s", title.id, sorted(patch))
                if apply:
                    await update_title(db, title.id, **patch)
                    stats.updated += 1

            if sleep_seconds > 0:
                await asyncio.sleep(sleep_seconds)

        after_id = batch[-1].id
        if apply:
            try:
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        else:
            await db.rollback()

    return stats


def _parse_fields(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return FILL_FIELDS
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fill blank title overview, original name, poster and release date from TMDB."
    )
    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--apply",
        action="store_true",
        help="Persist changes. Without this flag, the script runs in dry-run mode.",
    )
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Explicitly run in dry-run mode (default behavior).",
    )
    parser.add_argument("--batch-size", type=int, default=100, help="Number of titles processed per batch.")
    parser.add_argument("--max-items", type=int, default=None, help="Optional cap for number of rows scanned.")
    parser.add_argument("--sleep-ms", type=int, default=100, help="Sleep between TMDB requests in milliseconds.")
    parser.add_argument(
        "--fields",
        default=None,
        help=f"Comma-separated subset of {','.join(FILL_FIELDS)} (default: all).",
    )
    parser.add_argument("--verbose", action="store_true", help="Log row-level actions.")
    return parser.parse_args()


def _print_summary(*, apply: bool, stats: BackfillStats) -> None:
    mode = "apply" if apply else "dry-run"
    print("Title metadata backfill complete")
    print(f"mode: {mode}")
    print(f"scanned: {stats.scanned}")
    print(f"would_update: {stats.would_update}")
    print(f"updated: {stats.updated}")
    print(f"unchanged: {stats.unchanged}")
    print(f"not_found: {stats.not_found}")
    print(f"fetch_errors: {stats.fetch_errors}")


async def _main_async(args: argparse.Namespace) -> BackfillStats:
    async with AsyncSessionLocal() as db:
        return await run_backfill(
            db,
            apply=args.apply,
            batch_size=args.batch_size,
            max_items=args.max_items,
            sleep_ms=args.sleep_ms,
            fields=_parse_fields(args.fields),
            verbose=args.verbose,
        )


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    stats = asyncio.run(_main_async(args))
    _print_summary(apply=args.apply, stats=stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
