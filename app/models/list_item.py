from __future__ import annotations

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ListItem(Base):
    """Membership of a title in a list. Carries no per-user state."""

    __tablename__ = "list_items"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    list_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("titles.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, server_default=sa.func.now(), nullable=False
    )

    title_list = relationship("TitleList", back_populates="items")
    title = relationship("Title", back_populates="list_items")

    __table_args__ = (
        sa.UniqueConstraint("list_id", "title_id", name="uq_list_items_list_title"),
        sa.Index("ix_list_items_list_created", "list_id", "created_at"),
    )
