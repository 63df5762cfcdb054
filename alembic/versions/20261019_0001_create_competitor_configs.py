"""create competitor_configs table

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:30:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "competitor_configs",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("base_url", sa.String(length=500), nullable=False),
        sa.Column("search_url", sa.String(length=1000), nullable=False),
        sa.Column("container_selector", sa.String(length=500), nullable=False),
        sa.Column("name_selector", sa.String(length=500), nullable=False),
        sa.Column("price_selector", sa.String(length=500), nullable=False),
        sa.Column("image_selector", sa.String(length=500), nullable=False),
        sa.Column("url_selector", sa.String(length=500), nullable=False),
        sa.Column("max_results", sa.Integer(), nullable=False),
        sa.Column("timeout_ms", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_competitor_configs_name"),
    )
    op.create_index("ix_competitor_configs_is_active", "competitor_configs", ["is_active"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_competitor_configs_is_active", table_name="competitor_configs")
    op.drop_table("competitor_configs")
