from __future__ import annotations

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base

VIEWING_STATES = ("want", "watching", "watched", "stopped")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserTitle(Base):
    """A user's single opinion about a title, shared by every list it sits in."""

    __tablename__ = "user_titles"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("titles.id", ondelete="CASCADE"), nullable=False, index=True
    )

    state: Mapped[str] = mapped_column(sa.String(10), nullable=False, server_default="want")
    rating: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    comment: Mapped[str] = mapped_column(sa.Text, nullable=False, server_default="", default="")

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, server_default=sa.func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, server_default=sa.func.now(), nullable=False
    )

    title = relationship("Title")

    __table_args__ = (
        sa.CheckConstraint("state IN ('want','watching','watched','stopped')", name="ck_user_titles_state"),
        sa.UniqueConstraint("user_id", "title_id", name="uq_user_titles_user_title"),
        sa.Index("ix_user_titles_user_state_updated", "user_id", "state", "updated_at"),
    )
