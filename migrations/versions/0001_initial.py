"""initial marbete tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "scan_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("control_batch_id", sa.String(length=100), nullable=False),
        sa.Column("product_code", sa.String(length=100), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("area", sa.String(length=100), nullable=True),
        sa.Column("location", sa.String(length=100), nullable=True),
        sa.Column("actor_id", sa.String(length=64), nullable=True),
        sa.Column("actor_name", sa.String(length=255), nullable=False, server_default="Unknown"),
        sa.Column("scanned_at", sa.DateTime(), nullable=False),
        sa.Column("scan_started_at", sa.DateTime(), nullable=True),
        sa.Column("scan_ended_at", sa.DateTime(), nullable=True),
        sa.Column("is_recount", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("state", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("synced_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_scan_records_tenant_id", "scan_records", ["tenant_id"])
    op.create_index("ix_scan_records_actor_id", "scan_records", ["actor_id"])
    op.create_index("ix_scan_records_tenant_batch", "scan_records", ["tenant_id", "control_batch_id"])

    op.create_table(
        "master_catalog_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("product_code", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("area", sa.String(length=100), nullable=True),
        sa.Column("location", sa.String(length=100), nullable=True),
        sa.Column("control_batch_id", sa.String(length=100), nullable=True),
        sa.Column("barcode", sa.String(length=100), nullable=True),
        sa.Column("unit_cost", sa.Float(), nullable=False, server_default="0"),
        sa.Column("unit_of_measure", sa.String(length=20), nullable=False, server_default="UN"),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("loaded_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_master_catalog_items_tenant_id", "master_catalog_items", ["tenant_id"])
    op.create_index("ix_master_catalog_tenant_code", "master_catalog_items", ["tenant_id", "product_code"])

    op.create_table(
        "verification_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("control_batch_id", sa.String(length=100), nullable=False),
        sa.Column("product_code", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("system_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("counted_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("verified_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("variance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("area", sa.String(length=100), nullable=True),
        sa.Column("location", sa.String(length=100), nullable=True),
        sa.Column("in_master_catalog", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("forced", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("product_counted", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("verifier_id", sa.String(length=64), nullable=True),
        sa.Column("verifier_name", sa.String(length=255), nullable=False, server_default="Unknown"),
        sa.Column("verification_duration_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("committed_at", sa.DateTime(), nullable=False),
        sa.Column("state", sa.String(length=20), nullable=False, server_default="verified"),
    )
    op.create_index("ix_verification_records_tenant_id", "verification_records", ["tenant_id"])
    op.create_index("ix_verification_records_verifier_id", "verification_records", ["verifier_id"])
    op.create_index(
        "ix_verification_tenant_batch_state",
        "verification_records",
        ["tenant_id", "control_batch_id", "state"],
    )

    op.create_table(
        "session_stats",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("actor_id", sa.String(length=64), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("session_date", sa.Date(), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=True),
        sa.Column("pieces", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("distinct_skus", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("differences", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("active_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("velocity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("precision", sa.Float(), nullable=False, server_default="100"),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("actor_id", "role", "session_date", name="uq_session_stats_actor_role_day"),
    )

    op.create_table(
        "lifetime_stats",
        sa.Column("actor_id", sa.String(length=64), primary_key=True),
        sa.Column("pieces_counted", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("pieces_verified", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_pieces", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("distinct_skus", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("distinct_tenants_worked", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_verifications", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("precision", sa.Float(), nullable=False, server_default="100"),
        sa.Column("lifetime_hours", sa.Float(), nullable=False, server_default="0"),
        sa.Column("hours_estimated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("average_velocity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("lifetime_stats")
    op.drop_table("session_stats")
    op.drop_index("ix_verification_tenant_batch_state", table_name="verification_records")
    op.drop_index("ix_verification_records_verifier_id", table_name="verification_records")
    op.drop_index("ix_verification_records_tenant_id", table_name="verification_records")
    op.drop_table("verification_records")
    op.drop_index("ix_master_catalog_tenant_code", table_name="master_catalog_items")
    op.drop_index("ix_master_catalog_items_tenant_id", table_name="master_catalog_items")
    op.drop_table("master_catalog_items")
    op.drop_index("ix_scan_records_tenant_batch", table_name="scan_records")
    op.drop_index("ix_scan_records_actor_id", table_name="scan_records")
    op.drop_index("ix_scan_records_tenant_id", table_name="scan_records")
    op.drop_table("scan_records")
