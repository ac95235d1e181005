"""Initial schema: users, albums, photos

Revision ID: 0001
Revises: None
Create Date: 2026-10-01 00:00:00
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None


def _table_exists(name: str) -> bool:
    """Check whether a table already exists in the database."""
    conn = op.get_bind()
    result = conn.execute(
        sa.text("SELECT 1 FROM sqlite_master WHERE type='table' AND name=:n"),
        {"n": name},
    )
    return result.fetchone() is not None


def upgrade() -> None:
    # Guarded so a DB created by SQLModel.metadata.create_all() can be
    # upgraded after being stamped.

    if not _table_exists("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("username", sa.String(), nullable=False),
            sa.Column("root_path", sa.String(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
        )
        op.create_index("ix_users_username", "users", ["username"], unique=True)

    if not _table_exists("albums"):
        op.create_table(
            "albums",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("path", sa.String(), nullable=False),
            sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column(
                "parent_id",
                sa.Integer(),
                sa.ForeignKey("albums.id", ondelete="SET NULL"),
                nullable=True,
            ),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.UniqueConstraint("owner_id", "path", name="uq_albums_owner_path"),
        )
        op.create_index("ix_albums_path", "albums", ["path"])
        op.create_index("ix_albums_owner_id", "albums", ["owner_id"])

    if not _table_exists("photos"):
        op.create_table(
            "photos",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("path", sa.String(), nullable=False),
            sa.Column("content_type", sa.String(), nullable=False),
            sa.Column("thumbnail_generated", sa.Boolean(), nullable=False, server_default="0"),
            sa.Column(
                "album_id",
                sa.Integer(),
                sa.ForeignKey("albums.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.UniqueConstraint("album_id", "path", name="uq_photos_album_path"),
        )
        op.create_index("ix_photos_path", "photos", ["path"])
        op.create_index("ix_photos_album_id", "photos", ["album_id"])


def downgrade() -> None:
    # Reverse FK order: photos -> albums -> users.
    op.drop_table("photos")
    op.drop_table("albums")
    op.drop_table("users")
