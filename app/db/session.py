import app.db.base  # noqa: F401

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.config import settings
from app.core.errors import ServiceError, StorageError
from app.db.base_class import Base


logger = logging.getLogger(__name__)

engine_kwargs: dict[str, object] = {
    "echo": settings.env == "local",
    "pool_pre_ping": True,
}
if settings.env == "test":
    engine_kwargs["poolclass"] = NullPool

engine = create_async_engine(
    settings.database_url,
    **engine_kwargs,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def get_db_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def insert_for(db: AsyncSession):
    """Return the dialect ``insert`` construct that supports ON CONFLICT."""
    name = db.get_bind().dialect.name
    try:
        return _DIALECT_INSERTS[name]
    except KeyError:
        raise StorageError(f"Upserts are not supported on dialect {name!r}") from None


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """One unit of work: commit on success, roll everything back on failure."""
    try:
        yield db
        await db.commit()
    except ServiceError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Transaction rolled back")
        raise StorageError(str(exc)) from exc
