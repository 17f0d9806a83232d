from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Title(Base):
    __tablename__ = "titles"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    tmdb_id: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    media_kind: Mapped[str] = mapped_column(sa.String(10), nullable=False)  # movie|series

    name: Mapped[str] = mapped_column(sa.String(300), nullable=False)
    original_name: Mapped[str] = mapped_column(sa.String(300), nullable=False, server_default="", default="")

    release_date: Mapped[date | None] = mapped_column(sa.Date, nullable=True)
    poster_path: Mapped[str | None] = mapped_column(sa.String(500), nullable=True)
    overview: Mapped[str] = mapped_column(sa.Text, nullable=False, server_default="", default="")

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, server_default=sa.func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, server_default=sa.func.now(), nullable=False
    )

    list_items = relationship("ListItem", back_populates="title")

    __table_args__ = (
        sa.CheckConstraint("media_kind IN ('movie','series')", name="ck_titles_media_kind"),
        sa.CheckConstraint("tmdb_id > 0", name="ck_titles_tmdb_id_positive"),
        sa.UniqueConstraint("tmdb_id", "media_kind", name="uq_titles_tmdb_id_media_kind"),
    )
