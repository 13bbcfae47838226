"""Initial schema: suppliers, purchase orders, bundles, lists, quotations, payments

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def _state(length=24):
    # Enum columns are stored as their wire value (VARCHAR), see models.base.enum_type
    return sa.String(length=length)


def upgrade():
    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("contact", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "purchase_orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("supplier_id", sa.Integer(), sa.ForeignKey("suppliers.id"), nullable=False),
        sa.Column("ordered_at", sa.DateTime(), nullable=False),
        sa.Column("estimated_delivery_at", sa.DateTime(), nullable=True),
        sa.Column("state", _state(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("debt_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.CheckConstraint("debt_amount >= 0", name="ck_purchase_orders_debt_non_negative"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_purchase_orders_supplier_id", "purchase_orders", ["supplier_id"])
    op.create_index("ix_purchase_orders_supplier_state", "purchase_orders", ["supplier_id", "state"])

    op.create_table(
        "inventory_bundles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("purchase_order_id", sa.Integer(), sa.ForeignKey("purchase_orders.id"), nullable=True),
        sa.Column("garment_type", _state(), nullable=False),
        sa.Column("season", _state(), nullable=False),
        sa.Column("category", _state(), nullable=False),
        sa.Column("sizes", sa.JSON(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("base_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("state", _state(), nullable=False),
        sa.Column("scan_code", sa.String(length=32), nullable=True, unique=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.CheckConstraint("base_price > 0", name="ck_inventory_bundles_base_price_positive"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_inventory_bundles_purchase_order_id", "inventory_bundles", ["purchase_order_id"])
    op.create_index("ix_inventory_bundles_state", "inventory_bundles", ["state"])
    op.create_index("ix_inventory_bundles_state_type", "inventory_bundles", ["state", "garment_type"])

    op.create_table(
        "catalog_lists",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("list_type", _state(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("share_token", sa.String(length=64), nullable=True, unique=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "catalog_list_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("list_id", sa.Integer(), sa.ForeignKey("catalog_lists.id"), nullable=False),
        sa.Column("bundle_id", sa.Integer(), sa.ForeignKey("inventory_bundles.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("added_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("list_id", "bundle_id", name="uq_catalog_list_items_list_bundle"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_catalog_list_items_list_id", "catalog_list_items", ["list_id"])
    op.create_index("ix_catalog_list_items_bundle_id", "catalog_list_items", ["bundle_id"])

    op.create_table(
        "quotations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tracking_code", sa.String(length=32), nullable=False, unique=True),
        sa.Column("source_list_id", sa.Integer(), sa.ForeignKey("catalog_lists.id"), nullable=True),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_phone", sa.String(length=64), nullable=True),
        sa.Column("customer_email", sa.String(length=255), nullable=True),
        sa.Column("state", _state(), nullable=False),
        sa.Column("global_discount", sa.Numeric(5, 2), nullable=False),
        sa.Column("original_total", sa.Numeric(12, 2), nullable=False),
        sa.Column("final_total", sa.Numeric(12, 2), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("paid_at", sa.DateTime(), nullable=True),
        sa.Column("dispatched_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("version_id", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "global_discount >= 0 AND global_discount <= 100",
            name="ck_quotations_global_discount_range",
        ),
        sa.CheckConstraint("final_total >= 0", name="ck_quotations_final_total_non_negative"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_quotations_source_list_id", "quotations", ["source_list_id"])
    op.create_index("ix_quotations_state", "quotations", ["state"])
    op.create_index("ix_quotations_state_expires", "quotations", ["state", "expires_at"])

    op.create_table(
        "quotation_lines",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("quotation_id", sa.Integer(), sa.ForeignKey("quotations.id"), nullable=False),
        sa.Column("bundle_id", sa.Integer(), sa.ForeignKey("inventory_bundles.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("line_discount", sa.Numeric(5, 2), nullable=False),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.UniqueConstraint("quotation_id", "bundle_id", name="uq_quotation_lines_quotation_bundle"),
        sa.CheckConstraint(
            "line_discount >= 0 AND line_discount <= 100",
            name="ck_quotation_lines_discount_range",
        ),
        sa.CheckConstraint("subtotal >= 0", name="ck_quotation_lines_subtotal_non_negative"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_quotation_lines_quotation_id", "quotation_lines", ["quotation_id"])
    op.create_index("ix_quotation_lines_bundle_id", "quotation_lines", ["bundle_id"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("quotation_id", sa.Integer(), sa.ForeignKey("quotations.id"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("method", _state(), nullable=False),
        sa.Column("voucher_ref", sa.String(length=512), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_payments_quotation_id", "payments", ["quotation_id"])
    op.create_index("ix_payments_method", "payments", ["method"])
    op.create_index("ix_payments_created_at", "payments", ["created_at"])
    op.create_index("ix_payments_quotation_created", "payments", ["quotation_id", "created_at"])


def downgrade():
    op.drop_table("payments")
    op.drop_table("quotation_lines")
    op.drop_table("quotations")
    op.drop_table("catalog_list_items")
    op.drop_table("catalog_lists")
    op.drop_table("inventory_bundles")
    op.drop_table("purchase_orders")
    op.drop_table("suppliers")
