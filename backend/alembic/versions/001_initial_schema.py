"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-17

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    # users and bases reference each other; the cross FKs are added after both exist.
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False),
        sa.Column("base_id", sa.Uuid(), nullable=True),
        sa.Column("primary_base_id", sa.Uuid(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "role IN ('admin', 'base_commander', 'logistics_officer')",
            name="chk_user_role",
        ),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_base_id", "users", ["base_id"])

    op.create_table(
        "bases",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("commander_id", sa.Uuid(), nullable=True),
        sa.Column("created_by_id", sa.Uuid(), nullable=True),
        sa.Column("updated_by_id", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("type IN ('air', 'naval', 'army', 'joint')", name="chk_base_type"),
        sa.CheckConstraint("status IN ('active', 'inactive', 'maintenance')", name="chk_base_status"),
        sa.CheckConstraint("capacity >= 0", name="chk_base_capacity_non_negative"),
    )
    op.create_index("ix_bases_name", "bases", ["name"], unique=True)
    op.create_index("ix_bases_status", "bases", ["status"])

    op.create_foreign_key("fk_users_base_id", "users", "bases", ["base_id"], ["id"], ondelete="SET NULL")
    op.create_foreign_key(
        "fk_users_primary_base_id", "users", "bases", ["primary_base_id"], ["id"], ondelete="SET NULL"
    )
    op.create_foreign_key(
        "fk_bases_commander_id", "bases", "users", ["commander_id"], ["id"], ondelete="SET NULL"
    )
    op.create_foreign_key(
        "fk_bases_created_by_id", "bases", "users", ["created_by_id"], ["id"], ondelete="SET NULL"
    )
    op.create_foreign_key(
        "fk_bases_updated_by_id", "bases", "users", ["updated_by_id"], ["id"], ondelete="SET NULL"
    )

    op.create_table(
        "user_assigned_bases",
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("base_id", sa.Uuid(), sa.ForeignKey("bases.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "assets",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("serial_number", sa.String(length=100), nullable=False),
        sa.Column("base_id", sa.Uuid(), sa.ForeignKey("bases.id"), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("opening_balance", sa.Integer(), nullable=False),
        sa.Column("closing_balance", sa.Integer(), nullable=False),
        sa.Column("net_movement", sa.Integer(), nullable=False),
        sa.Column("purchase_date", sa.DateTime(), nullable=False),
        sa.Column("supplier", sa.String(length=255), nullable=True),
        sa.Column("cost", sa.Float(), nullable=True),
        sa.Column("purchase_order_number", sa.String(length=100), nullable=True),
        sa.Column("last_maintenance_date", sa.DateTime(), nullable=True),
        sa.Column("created_by_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("updated_by_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "type IN ('weapon', 'vehicle', 'ammunition', 'equipment')",
            name="chk_asset_type",
        ),
        sa.CheckConstraint(
            "status IN ('available', 'assigned', 'maintenance', 'expended')",
            name="chk_asset_status",
        ),
        sa.CheckConstraint("quantity >= 0", name="chk_asset_quantity_non_negative"),
        sa.CheckConstraint("opening_balance >= 0", name="chk_asset_opening_balance_non_negative"),
    )
    op.create_index("ix_assets_serial_number", "assets", ["serial_number"], unique=True)
    op.create_index("ix_assets_base_id", "assets", ["base_id"])
    op.create_index("ix_assets_type", "assets", ["type"])
    op.create_index("ix_assets_status", "assets", ["status"])
    op.create_index("ix_assets_created_at", "assets", ["created_at"])
    op.create_index("idx_assets_base_type", "assets", ["base_id", "type"])

    op.create_table(
        "asset_movements",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("asset_id", sa.Uuid(), sa.ForeignKey("assets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("reference_type", sa.String(length=20), nullable=True),
        sa.Column("reference_id", sa.Uuid(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.CheckConstraint(
            "kind IN ('transfer', 'assignment', 'return', 'adjustment')",
            name="chk_movement_kind",
        ),
        sa.CheckConstraint(
            "reference_type IS NULL OR reference_type IN ('transfer', 'assignment')",
            name="chk_movement_reference_type",
        ),
    )
    op.create_index("ix_asset_movements_asset_id", "asset_movements", ["asset_id"])
    op.create_index("ix_asset_movements_date", "asset_movements", ["date"])

    op.create_table(
        "transfers",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("asset_id", sa.Uuid(), sa.ForeignKey("assets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("from_base_id", sa.Uuid(), sa.ForeignKey("bases.id"), nullable=False),
        sa.Column("to_base_id", sa.Uuid(), sa.ForeignKey("bases.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("transfer_date", sa.DateTime(), nullable=False),
        sa.Column("transfer_number", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("initiated_by_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("approved_by_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("in_transit_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("quantity > 0", name="chk_transfer_quantity_positive"),
        sa.CheckConstraint(
            "status IN ('pending', 'in_transit', 'completed', 'cancelled')",
            name="chk_transfer_status",
        ),
        sa.CheckConstraint("from_base_id != to_base_id", name="chk_transfer_distinct_bases"),
    )
    op.create_index("ix_transfers_transfer_number", "transfers", ["transfer_number"], unique=True)
    op.create_index("ix_transfers_asset_id", "transfers", ["asset_id"])
    op.create_index("ix_transfers_from_base_id", "transfers", ["from_base_id"])
    op.create_index("ix_transfers_to_base_id", "transfers", ["to_base_id"])
    op.create_index("ix_transfers_status", "transfers", ["status"])
    op.create_index("ix_transfers_created_at", "transfers", ["created_at"])

    op.create_table(
        "assignments",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("asset_id", sa.Uuid(), sa.ForeignKey("assets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("assigned_to_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("assigned_by_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("base_id", sa.Uuid(), sa.ForeignKey("bases.id"), nullable=False),
        sa.Column("assignment_date", sa.DateTime(), nullable=False),
        sa.Column("return_date", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("assignment_number", sa.String(length=50), nullable=False),
        sa.Column("purpose", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("quantity > 0", name="chk_assignment_quantity_positive"),
        sa.CheckConstraint(
            "status IN ('active', 'returned', 'expended', 'lost', 'damaged')",
            name="chk_assignment_status",
        ),
    )
    op.create_index("ix_assignments_assignment_number", "assignments", ["assignment_number"], unique=True)
    op.create_index("ix_assignments_asset_id", "assignments", ["asset_id"])
    op.create_index("ix_assignments_assigned_to_id", "assignments", ["assigned_to_id"])
    op.create_index("ix_assignments_base_id", "assignments", ["base_id"])
    op.create_index("ix_assignments_assignment_date", "assignments", ["assignment_date"])
    op.create_index("ix_assignments_status", "assignments", ["status"])
    op.create_index("ix_assignments_created_at", "assignments", ["created_at"])

    op.create_table(
        "purchases",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("asset_id", sa.Uuid(), sa.ForeignKey("assets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("base_id", sa.Uuid(), sa.ForeignKey("bases.id"), nullable=False),
        sa.Column("purchase_date", sa.DateTime(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Float(), nullable=False),
        sa.Column("total_amount", sa.Float(), nullable=False),
        sa.Column("supplier", sa.String(length=255), nullable=False),
        sa.Column("purchase_order_number", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("quantity > 0", name="chk_purchase_quantity_positive"),
        sa.CheckConstraint("unit_price >= 0", name="chk_purchase_unit_price_non_negative"),
        sa.CheckConstraint(
            "status IN ('pending', 'completed', 'cancelled')",
            name="chk_purchase_status",
        ),
    )
    op.create_index(
        "ix_purchases_purchase_order_number", "purchases", ["purchase_order_number"], unique=True
    )
    op.create_index("ix_purchases_asset_id", "purchases", ["asset_id"])
    op.create_index("ix_purchases_base_id", "purchases", ["base_id"])
    op.create_index("ix_purchases_purchase_date", "purchases", ["purchase_date"])
    op.create_index("ix_purchases_status", "purchases", ["status"])


def downgrade() -> None:
    op.drop_table("purchases")
    op.drop_table("assignments")
    op.drop_table("transfers")
    op.drop_table("asset_movements")
    op.drop_table("assets")
    op.drop_table("user_assigned_bases")
    op.drop_constraint("fk_bases_updated_by_id", "bases", type_="foreignkey")
    op.drop_constraint("fk_bases_created_by_id", "bases", type_="foreignkey")
    op.drop_constraint("fk_bases_commander_id", "bases", type_="foreignkey")
    op.drop_constraint("fk_users_primary_base_id", "users", type_="foreignkey")
    op.drop_constraint("fk_users_base_id", "users", type_="foreignkey")
    op.drop_table("bases")
    op.drop_table("users")
