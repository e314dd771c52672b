"""Create users, API keys, content and block tables.

Revision ID: 001_create_content_tables
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001_create_content_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SLUGGABLE_TABLES = ("pages", "blog_posts", "case_studies", "services")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _sluggable_columns() -> list[sa.Column]:
    return [
        sa.Column("slug", sa.String(200), nullable=False),
        sa.Column("locale", sa.String(5), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("seo", JSONB, nullable=True),
        sa.Column(
            "updated_by_id",
            sa.String(100),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
    ]


def upgrade() -> None:
    # ==========================================================================
    # Users and API keys
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.String(100), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="AUTHOR"),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "api_keys",
        sa.Column("id", sa.String(100), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(100),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("key_prefix", sa.String(16), nullable=False),
        sa.Column("key_hash", sa.String(64), nullable=False),
        sa.Column("permission_level", sa.String(10), nullable=False, server_default="read"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("key_hash", name="uq_api_keys_key_hash"),
    )
    op.create_index("ix_api_keys_user_id", "api_keys", ["user_id"])

    # ==========================================================================
    # Sluggable content tables
    # ==========================================================================
    op.create_table(
        "pages",
        sa.Column("id", sa.String(100), primary_key=True),
        sa.Column("title", sa.Text, nullable=False),
        *_sluggable_columns(),
        sa.UniqueConstraint("slug", "locale", name="uq_pages_slug_locale"),
    )

    op.create_table(
        "blog_posts",
        sa.Column("id", sa.String(100), primary_key=True),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("excerpt", sa.Text, nullable=True),
        sa.Column("cover_id", sa.String(200), nullable=True),
        sa.Column(
            "author_id",
            sa.String(100),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_sluggable_columns(),
        sa.UniqueConstraint("slug", "locale", name="uq_blog_posts_slug_locale"),
    )
    op.create_index("ix_blog_posts_author_id", "blog_posts", ["author_id"])

    op.create_table(
        "case_studies",
        sa.Column("id", sa.String(100), primary_key=True),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("client", sa.Text, nullable=True),
        sa.Column("sector", sa.Text, nullable=True),
        sa.Column("category", sa.Text, nullable=True),
        sa.Column("summary", sa.Text, nullable=True),
        sa.Column("featured_image", sa.Text, nullable=True),
        sa.Column("tags", JSONB, nullable=False, server_default="[]"),
        sa.Column("metrics", JSONB, nullable=False, server_default="{}"),
        *_sluggable_columns(),
        sa.UniqueConstraint("slug", "locale", name="uq_case_studies_slug_locale"),
    )

    op.create_table(
        "services",
        sa.Column("id", sa.String(100), primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("summary", sa.Text, nullable=True),
        sa.Column("icon", sa.Text, nullable=True),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "page_id",
            sa.String(100),
            sa.ForeignKey("pages.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_sluggable_columns(),
        sa.UniqueConstraint("slug", "locale", name="uq_services_slug_locale"),
    )

    for table in SLUGGABLE_TABLES:
        op.create_index(f"ix_{table}_locale", table, ["locale"])
        op.create_index(f"ix_{table}_status", table, ["status"])
        op.create_index(f"ix_{table}_updated_at", table, ["updated_at"])

    # ==========================================================================
    # Blocks: exactly one parent, cascading with it
    # ==========================================================================
    op.create_table(
        "blocks",
        sa.Column("id", sa.String(100), primary_key=True),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("data", JSONB, nullable=False, server_default="{}"),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("page_id", sa.String(100), sa.ForeignKey("pages.id", ondelete="CASCADE"), nullable=True),
        sa.Column("post_id", sa.String(100), sa.ForeignKey("blog_posts.id", ondelete="CASCADE"), nullable=True),
        sa.Column("case_id", sa.String(100), sa.ForeignKey("case_studies.id", ondelete="CASCADE"), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "(CASE WHEN page_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN post_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN case_id IS NULL THEN 0 ELSE 1 END) = 1",
            name="ck_blocks_exactly_one_parent",
        ),
        sa.CheckConstraint('"order" >= 0', name="ck_blocks_order_non_negative"),
    )
    op.create_index("uq_blocks_page_order", "blocks", ["page_id", "order"], unique=True)
    op.create_index("uq_blocks_post_order", "blocks", ["post_id", "order"], unique=True)
    op.create_index("uq_blocks_case_order", "blocks", ["case_id", "order"], unique=True)


def downgrade() -> None:
    op.drop_table("blocks")
    for table in reversed(SLUGGABLE_TABLES):
        op.drop_table(table)
    op.drop_table("api_keys")
    op.drop_table("users")
