"""Create bins, wines and reviews tables

Revision ID: 001
Revises: None
Create Date: 2024-03-02 00:00:00.000000+00:00

What:  Initial schema of the cellar tracker.

           bins ──< wines ──< reviews

       wines.bin_id is ON DELETE RESTRICT: a bin cannot disappear from
       under its wines. reviews.wine_id is ON DELETE CASCADE: deleting a
       wine removes its tasting history.

Rollback: downgrade() drops all three tables (all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "bins",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column(
            "capacity",
            sa.Integer(),
            nullable=False,
            comment="Number of bottles the bin can hold",
        ),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.CheckConstraint("capacity > 0", name="ck_bins_capacity_positive"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_bins_created_at", "bins", ["created_at"])

    op.create_table(
        "wines",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("bin_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("vintage", sa.Integer(), nullable=False),
        sa.Column("region", sa.String(255), nullable=False),
        sa.Column("variety", sa.String(255), nullable=False),
        sa.Column("producer", sa.String(255), nullable=False),
        sa.Column("drink_from", sa.Integer(), nullable=True),
        sa.Column("drink_to", sa.Integer(), nullable=True),
        sa.Column("image_url", sa.String(512), nullable=True),
        sa.Column("thumbnail_url", sa.String(512), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "drink_from IS NULL OR drink_to IS NULL OR drink_from <= drink_to",
            name="ck_wines_drinking_window",
        ),
        sa.ForeignKeyConstraint(["bin_id"], ["bins.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_wines_bin_id", "wines", ["bin_id"])
    op.create_index("idx_wines_created_at", "wines", ["created_at"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("wine_id", sa.Integer(), nullable=False),
        sa.Column("rating", sa.Float(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "review_date",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["wine_id"], ["wines.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reviews_wine_id", "reviews", ["wine_id"])


def downgrade() -> None:
    op.drop_index("ix_reviews_wine_id", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("idx_wines_created_at", table_name="wines")
    op.drop_index("ix_wines_bin_id", table_name="wines")
    op.drop_table("wines")
    op.drop_index("idx_bins_created_at", table_name="bins")
    op.drop_table("bins")
