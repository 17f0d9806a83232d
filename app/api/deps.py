from __future__ import annotations

from collections.abc import AsyncGenerator
import uuid

from fastapi import Cookie, Depends
from jose import jwt, JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import UnauthenticatedError
from app.db.session import get_db_session
from app.models.user import User

COOKIE_NAME = "access_token"


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_db_session():
        yield session


def _user_id_from_token(access_token: str) -> uuid.UUID:
    try:
        payload = jwt.decode(access_token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise UnauthenticatedError("Invalid token")

    sub = payload.get("sub")
    if not sub:
        raise UnauthenticatedError("Invalid token")
    try:
        return uuid.UUID(sub)
    except ValueError:
        raise UnauthenticatedError("Invalid token")


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    access_token: str | None = Cookie(default=None, alias=COOKIE_NAME),
) -> User:
    if not access_token:
        raise UnauthenticatedError("Not authenticated")

    user_id = _user_id_from_token(access_token)
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        # This is the “stale cookie / DB reset” case
        raise UnauthenticatedError("User not found")

    return user


async def get_optional_user(
    db: AsyncSession = Depends(get_db),
    access_token: str | None = Cookie(default=None, alias=COOKIE_NAME),
) -> User | None:
    """The signed-in user, or None for anonymous visitors and unusable cookies."""
    if not access_token:
        return None
    try:
        return await get_current_user(db=db, access_token=access_token)
    except UnauthenticatedError:
        return None
