"""create asset import tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "category_nodes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("level", sa.SmallInteger(), nullable=False, comment="1, 2 or 3"),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("code", sa.String(length=4), nullable=True),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("level BETWEEN 1 AND 3", name="ck_category_nodes_level"),
        sa.ForeignKeyConstraint(["parent_id"], ["category_nodes.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_category_nodes_level_name", "category_nodes", ["level", "name"], unique=False)
    op.create_index("ix_category_nodes_parent_id", "category_nodes", ["parent_id"], unique=False)

    op.create_table(
        "asset_records",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("asset_uuid", sa.String(length=36), nullable=False),
        sa.Column("asset_no", sa.String(length=64), nullable=False),
        sa.Column("asset_name", sa.String(length=255), nullable=False),
        sa.Column("serial_no", sa.String(length=128), nullable=True),
        sa.Column("model_no", sa.String(length=128), nullable=True),
        sa.Column("brand", sa.String(length=128), nullable=True),
        sa.Column("department", sa.String(length=128), nullable=True),
        sa.Column("owner", sa.String(length=100), nullable=True),
        sa.Column("current_status", sa.String(length=20), nullable=False),
        sa.Column("category_l1_id", sa.Integer(), nullable=False),
        sa.Column("category_l2_id", sa.Integer(), nullable=True),
        sa.Column("category_l3_id", sa.Integer(), nullable=True),
        sa.Column("data_fingerprint", sa.String(length=64), nullable=False),
        sa.Column("import_batch", sa.String(length=40), nullable=True),
        sa.Column("row_hash", sa.String(length=64), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["category_l1_id"], ["category_nodes.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["category_l2_id"], ["category_nodes.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["category_l3_id"], ["category_nodes.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("asset_uuid"),
        sa.UniqueConstraint("asset_no"),
        sa.UniqueConstraint("data_fingerprint"),
    )
    op.create_index("ix_asset_records_import_batch", "asset_records", ["import_batch"], unique=False)
    op.create_index("ix_asset_records_current_status", "asset_records", ["current_status"], unique=False)
    op.create_index("ix_asset_records_category_l1_id", "asset_records", ["category_l1_id"], unique=False)

    op.create_table(
        "location_timeline",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("asset_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("location_path", sa.String(length=500), nullable=False),
        sa.Column("data_center", sa.String(length=255), nullable=True),
        sa.Column("room_name", sa.String(length=255), nullable=True),
        sa.Column("cabinet_no", sa.String(length=50), nullable=True),
        sa.Column("u_position", sa.String(length=10), nullable=True),
        sa.Column("environment", sa.String(length=100), nullable=True),
        sa.Column("keeper", sa.String(length=100), nullable=True),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=False),
        sa.Column("valid_to", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_current", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["asset_id"], ["asset_records.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_location_timeline_asset_id", "location_timeline", ["asset_id"], unique=False)
    op.create_index(
        "uq_location_timeline_current_per_asset",
        "location_timeline",
        ["asset_id"],
        unique=True,
        postgresql_where=sa.text("is_current"),
    )

    op.create_table(
        "warranty_records",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("asset_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("contract_no", sa.String(length=50), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("provider", sa.String(length=100), nullable=True),
        sa.Column("provider_level", sa.SmallInteger(), nullable=False),
        sa.Column("warranty_status", sa.String(length=20), nullable=True),
        sa.Column("asset_life_years", sa.Integer(), nullable=False),
        sa.Column("acceptance_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["asset_id"], ["asset_records.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("contract_no"),
    )
    op.create_index("ix_warranty_records_asset_id", "warranty_records", ["asset_id"], unique=False)
    op.create_index("ix_warranty_records_end_date", "warranty_records", ["end_date"], unique=False)

    op.create_table(
        "change_traces",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("asset_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("change_type", sa.String(length=20), nullable=False),
        sa.Column("delta_snapshot", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("operated_by", sa.String(length=50), nullable=True),
        sa.Column("operated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["asset_id"], ["asset_records.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_change_traces_asset_id", "change_traces", ["asset_id"], unique=False)
    op.create_index("ix_change_traces_change_type", "change_traces", ["change_type"], unique=False)
    op.create_index(
        "ix_change_traces_asset_operated_at",
        "change_traces",
        ["asset_id", "operated_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_change_traces_asset_operated_at", table_name="change_traces")
    op.drop_index("ix_change_traces_change_type", table_name="change_traces")
    op.drop_index("ix_change_traces_asset_id", table_name="change_traces")
    op.drop_table("change_traces")

    op.drop_index("ix_warranty_records_end_date", table_name="warranty_records")
    op.drop_index("ix_warranty_records_asset_id", table_name="warranty_records")
    op.drop_table("warranty_records")

    op.drop_index("uq_location_timeline_current_per_asset", table_name="location_timeline")
    op.drop_index("ix_location_timeline_asset_id", table_name="location_timeline")
    op.drop_table("location_timeline")

    op.drop_index("ix_asset_records_category_l1_id", table_name="asset_records")
    op.drop_index("ix_asset_records_current_status", table_name="asset_records")
    op.drop_index("ix_asset_records_import_batch", table_name="asset_records")
    op.drop_table("asset_records")

    op.drop_index("ix_category_nodes_parent_id", table_name="category_nodes")
    op.drop_index("ix_category_nodes_level_name", table_name="category_nodes")
    op.drop_table("category_nodes")
