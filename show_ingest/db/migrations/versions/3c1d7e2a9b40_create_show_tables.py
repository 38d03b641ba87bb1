"""Create profile, OAuth token, show and track tables

Revision ID: 3c1d7e2a9b40
Revises:
Create Date: 2026-10-17

"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "3c1d7e2a9b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ===========================================
    # 1. profiles
    # ===========================================
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("external_user_id", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column(
            "role",
            sa.Enum("admin", "listener", name="profile_role"),
            nullable=False,
            server_default="listener",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_profiles_external_user_id", "profiles", ["external_user_id"], unique=True
    )

    # ===========================================
    # 2. mixcloud_oauth_tokens
    # ===========================================
    op.create_table(
        "mixcloud_oauth_tokens",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(length=36),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("access_token", sa.Text, nullable=False),
        sa.Column("refresh_token", sa.Text, nullable=True),
        sa.Column("token_type", sa.String(length=32), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("scope", sa.String(length=256), nullable=True),
        sa.Column("mixcloud_user_id", sa.String(length=128), nullable=True),
        sa.Column("mixcloud_username", sa.String(length=128), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_mixcloud_oauth_tokens_user_id",
        "mixcloud_oauth_tokens",
        ["user_id"],
        unique=True,
    )

    # ===========================================
    # 3. shows
    # ===========================================
    op.create_table(
        "shows",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("slug", sa.String(length=512), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("mixcloud_url", sa.String(length=1024), nullable=False),
        sa.Column("mixcloud_embed", sa.Text, nullable=False, server_default=""),
        sa.Column("mixcloud_picture", sa.String(length=1024), nullable=False, server_default=""),
        sa.Column(
            "published_date",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("storyblok_id", sa.String(length=64), nullable=True),
        sa.Column(
            "status",
            sa.Enum("draft", "published", name="show_status"),
            nullable=False,
            server_default="draft",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_shows_slug", "shows", ["slug"])
    op.create_index("ix_shows_status", "shows", ["status"])
    op.create_index("ix_shows_storyblok_id", "shows", ["storyblok_id"])
    op.create_index("ix_shows_published_date", "shows", ["published_date"])

    # ===========================================
    # 4. mixcloud_tracks
    # ===========================================
    op.create_table(
        "mixcloud_tracks",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "show_id",
            sa.String(length=36),
            sa.ForeignKey("shows.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("hour", sa.Integer, nullable=True),
        sa.Column("artist", sa.String(length=512), nullable=False),
        sa.Column("track", sa.String(length=512), nullable=False, server_default=""),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "show_id", "position", name="uq_mixcloud_tracks_show_position"
        ),
    )
    op.create_index("ix_mixcloud_tracks_show_id", "mixcloud_tracks", ["show_id"])


def downgrade() -> None:
    bind = op.get_bind()
    dialect = bind.dialect.name

    op.drop_table("mixcloud_tracks")
    op.drop_table("shows")
    op.drop_table("mixcloud_oauth_tokens")
    op.drop_table("profiles")

    # Drop enums (PostgreSQL only)
    if dialect == "postgresql":
        op.execute("DROP TYPE IF EXISTS show_status")
        op.execute("DROP TYPE IF EXISTS profile_role")
