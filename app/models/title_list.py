from __future__ import annotations

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TitleList(Base):
    __tablename__ = "lists"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    description: Mapped[str] = mapped_column(sa.Text, nullable=False, server_default="", default="")

    # "private" | "public"
    visibility: Mapped[str] = mapped_column(sa.String(10), nullable=False, server_default="private", default="private")

    created_by_user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, server_default=sa.func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, server_default=sa.func.now(), nullable=False
    )

    created_by = relationship("User", foreign_keys=[created_by_user_id])
    owners = relationship("ListOwner", back_populates="title_list", cascade="all, delete-orphan", passive_deletes=True)
    items = relationship("ListItem", back_populates="title_list", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        sa.CheckConstraint("visibility IN ('private','public')", name="ck_lists_visibility"),
    )
