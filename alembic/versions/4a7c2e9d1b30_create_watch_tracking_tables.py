"""create watch tracking tables

Revision ID: 4a7c2e9d1b30
Revises:
Create Date: 2026-10-19 09:12:44.204118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "4a7c2e9d1b30"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("display_name", sa.String(length=120), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("default_list_id", postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "lists",
        _uuid_pk(),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), server_default="", nullable=False),
        sa.Column("visibility", sa.String(length=10), server_default="private", nullable=False),
        sa.Column("created_by_user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("visibility IN ('private','public')", name="ck_lists_visibility"),
    )
    op.create_index("ix_lists_created_by_user_id", "lists", ["created_by_user_id"])

    # users <-> lists is a cycle; the default pointer is added once both tables exist.
    with op.batch_alter_table("users") as batch_op:
        batch_op.create_foreign_key(
            "fk_users_default_list_id",
            "lists",
            ["default_list_id"],
            ["id"],
            ondelete="SET NULL",
        )

    op.create_table(
        "titles",
        _uuid_pk(),
        sa.Column("tmdb_id", sa.Integer(), nullable=False),
        sa.Column("media_kind", sa.String(length=10), nullable=False),
        sa.Column("name", sa.String(length=300), nullable=False),
        sa.Column("original_name", sa.String(length=300), server_default="", nullable=False),
        sa.Column("release_date", sa.Date(), nullable=True),
        sa.Column("poster_path", sa.String(length=500), nullable=True),
        sa.Column("overview", sa.Text(), server_default="", nullable=False),
        *_timestamps(),
        sa.CheckConstraint("media_kind IN ('movie','series')", name="ck_titles_media_kind"),
        sa.CheckConstraint("tmdb_id > 0", name="ck_titles_tmdb_id_positive"),
        sa.UniqueConstraint("tmdb_id", "media_kind", name="uq_titles_tmdb_id_media_kind"),
    )

    op.create_table(
        "list_owners",
        _uuid_pk(),
        sa.Column("list_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("lists.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("list_id", "user_id", name="uq_list_owners_pair"),
    )
    op.create_index("ix_list_owners_list_id", "list_owners", ["list_id"])
    op.create_index("ix_list_owners_user_id", "list_owners", ["user_id"])

    op.create_table(
        "list_items",
        _uuid_pk(),
        sa.Column("list_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("lists.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("titles.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("list_id", "title_id", name="uq_list_items_list_title"),
    )
    op.create_index("ix_list_items_list_id", "list_items", ["list_id"])
    op.create_index("ix_list_items_title_id", "list_items", ["title_id"])
    op.create_index("ix_list_items_list_created", "list_items", ["list_id", "created_at"])

    op.create_table(
        "user_titles",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("titles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("state", sa.String(length=10), server_default="want", nullable=False),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("comment", sa.Text(), server_default="", nullable=False),
        *_timestamps(),
        sa.CheckConstraint("state IN ('want','watching','watched','stopped')", name="ck_user_titles_state"),
        sa.UniqueConstraint("user_id", "title_id", name="uq_user_titles_user_title"),
    )
    op.create_index("ix_user_titles_user_id", "user_titles", ["user_id"])
    op.create_index("ix_user_titles_title_id", "user_titles", ["title_id"])
    op.create_index("ix_user_titles_user_state_updated", "user_titles", ["user_id", "state", "updated_at"])


def downgrade() -> None:
    op.drop_index("ix_user_titles_user_state_updated", table_name="user_titles")
    op.drop_index("ix_user_titles_title_id", table_name="user_titles")
    op.drop_index("ix_user_titles_user_id", table_name="user_titles")
    op.drop_table("user_titles")

    op.drop_index("ix_list_items_list_created", table_name="list_items")
    op.drop_index("ix_list_items_title_id", table_name="list_items")
    op.drop_index("ix_list_items_list_id", table_name="list_items")
    op.drop_table("list_items")

    op.drop_index("ix_list_owners_user_id", table_name="list_owners")
    op.drop_index("ix_list_owners_list_id", table_name="list_owners")
    op.drop_table("list_owners")

    op.drop_table("titles")

    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_constraint("fk_users_default_list_id", type_="foreignkey")
    op.drop_index("ix_lists_created_by_user_id", table_name="lists")
    op.drop_table("lists")

    op.drop_index("ix_users_username", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
