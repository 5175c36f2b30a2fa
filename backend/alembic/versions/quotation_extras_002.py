"""Allow quotation-level extra services without a route entry

Revision ID: quotation_extras_002
Revises: contracting_001
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision = "quotation_extras_002"
down_revision = "contracting_001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.alter_column("quotation_extra_services", "quotation_route_id", nullable=True)
    op.add_column("quotation_extra_services", sa.Column("created_by", UUID(as_uuid=True)))
    op.add_column(
        "quotation_extra_services",
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.add_column("quotation_extra_services", sa.Column("updated_by", UUID(as_uuid=True)))
    op.add_column(
        "quotation_extra_services",
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "idx_quotation_extras_quotation_level",
        "quotation_extra_services",
        ["company_id", "quotation_id"],
        postgresql_where=sa.text("quotation_route_id IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("idx_quotation_extras_quotation_level", table_name="quotation_extra_services")
    op.execute("DELETE FROM quotation_extra_services WHERE quotation_route_id IS NULL")
    for column in ("updated_at", "updated_by", "created_at", "created_by"):
        op.drop_column("quotation_extra_services", column)
    op.alter_column("quotation_extra_services", "quotation_route_id", nullable=False)
