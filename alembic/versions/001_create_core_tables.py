"""Create users, listings and reviews tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Initial schema: accounts, listings owned by accounts, and reviews
       attached to listings.
How:   UUID primary keys generated by the application, TIMESTAMP WITH TIME
       ZONE creation stamps, CHECK constraints mirroring the form validators.

Rollback: downgrade() drops all three tables (all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("username", sa.String(64), nullable=False, comment="Login name, unique"),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column(
            "password_hash",
            sa.String(255),
            nullable=False,
            comment="bcrypt hash; the password itself is never stored",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "listings",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "image_filename",
            sa.String(255),
            nullable=True,
            comment="Storage key relative to STORAGE_ROOT",
        ),
        sa.Column("image_url", sa.String(512), nullable=True),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("location", sa.String(200), nullable=False),
        sa.Column("country", sa.String(120), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.CheckConstraint("price >= 0", name="ck_listings_price_non_negative"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_listings_owner_id", "listings", ["owner_id"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("author_id", sa.Uuid(), nullable=True),
        sa.Column("listing_id", sa.Uuid(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    # Detail page loads reviews by listing
    op.create_index("idx_reviews_listing_id", "reviews", ["listing_id"])


def downgrade() -> None:
    """Drop all tables, children first. Destructive."""
    op.drop_index("idx_reviews_listing_id", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("idx_listings_owner_id", table_name="listings")
    op.drop_table("listings")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
