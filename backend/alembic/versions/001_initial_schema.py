"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("ADMIN", "MANUFACTURER", "RETAILER", name="userrole")
commission_type = sa.Enum("PERCENTAGE", "FLAT_PER_UNIT", name="commissiontype")
owner_kind = sa.Enum("MANUFACTURER", "RETAILER", name="ownerkind")
transaction_type = sa.Enum(
    "PRODUCTION", "DISPATCH_BLOCK", "DISPATCH_UNBLOCK", "DISPATCH_EXECUTE",
    "GRN_RECEIVE", "PACKET_OPEN", "SALE", "RETURN_RESTOCK",
    name="transactiontype",
)
srn_status = sa.Enum("DRAFT", "SUBMITTED", "APPROVED", "PARTIAL", "REJECTED", name="srnstatus")
dispatch_status = sa.Enum("PENDING", "IN_TRANSIT", "DELIVERED", name="dispatchstatus")
grn_status = sa.Enum("PENDING", "CONFIRMED", name="grnstatus")
commission_status = sa.Enum("PENDING", "PAID", name="commissionstatus")
return_reason = sa.Enum(
    "DAMAGED_GOODS", "MISSING_UNITS", "QUALITY_ISSUE", "WRONG_PRODUCT", "OTHER",
    name="returnreason",
)
return_status = sa.Enum(
    "RAISED", "UNDER_REVIEW", "APPROVED_RESTOCK", "APPROVED_REPLACE", "REJECTED", "RESOLVED",
    name="returnstatus",
)


def _user_fk(name: str, nullable: bool = False, index: bool = True) -> sa.Column:
    ondelete = "SET NULL" if nullable else "RESTRICT"
    return sa.Column(
        name, sa.Integer(), sa.ForeignKey("users.id", ondelete=ondelete),
        nullable=nullable, index=index and not nullable,
    )


def _material_fk(index: bool = False) -> sa.Column:
    return sa.Column(
        "material_id", sa.Integer(), sa.ForeignKey("materials.id", ondelete="RESTRICT"),
        nullable=False, index=index,
    )


def upgrade() -> None:
    # Users (identity lives upstream; this is the role directory)
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role", user_role, nullable=False, index=True),
        sa.Column("business_name", sa.String(255), nullable=True),
        sa.Column("gstin", sa.String(15), nullable=True),
        sa.Column("is_active", sa.Boolean(), default=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Material catalogue
    op.create_table(
        "materials",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sq_code", sa.String(20), unique=True, nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("hsn_code", sa.String(20), nullable=False),
        sa.Column("gst_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("units_per_packet", sa.Integer(), nullable=False),
        sa.Column("mrp_per_packet", sa.Numeric(12, 2), nullable=False),
        sa.Column("commission_type", commission_type, nullable=False),
        sa.Column("commission_value", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("has_production", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true(), index=True),
        _user_fk("created_by", nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("units_per_packet > 0", name="ck_material_units_per_packet"),
        sa.CheckConstraint("mrp_per_packet > 0", name="ck_material_mrp"),
        sa.CheckConstraint("gst_rate >= 0 AND gst_rate <= 100", name="ck_material_gst_rate"),
        sa.CheckConstraint("commission_value >= 0", name="ck_material_commission"),
    )

    op.create_table(
        "retailer_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        _user_fk("retailer_id"),
        _user_fk("manufacturer_id"),
        _user_fk("assigned_by", nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("assigned_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("deactivated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("retailer_id", "manufacturer_id", name="uq_assignment_pair"),
    )

    op.create_table(
        "sequence_counters",
        sa.Column("key", sa.String(40), primary_key=True),
        sa.Column("current_value", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "production_batches",
        sa.Column("id", sa.Integer(), primary_key=True),
        _material_fk(index=True),
        _user_fk("manufacturer_id"),
        sa.Column("batch_number", sa.String(100), nullable=False),
        sa.Column("manufacture_date", sa.Date(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=False),
        sa.Column("packets_produced", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("loose_units_produced", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("hsn_code", sa.String(20), nullable=False),
        sa.Column("gst_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("manufacturer_id", "batch_number", name="uq_batch_manufacturer_number"),
        sa.CheckConstraint("packets_produced >= 0", name="ck_batch_packets"),
        sa.CheckConstraint("loose_units_produced >= 0", name="ck_batch_units"),
        sa.CheckConstraint("expiry_date > manufacture_date", name="ck_batch_dates"),
    )

    # Inventory ledger
    op.create_table(
        "manufacturer_inventory",
        sa.Column("id", sa.Integer(), primary_key=True),
        _material_fk(index=True),
        _user_fk("manufacturer_id"),
        sa.Column("full_packets", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("loose_units", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("blocked_packets", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("blocked_loose_units", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("material_id", "manufacturer_id", name="uq_mfr_inventory_material_owner"),
        sa.CheckConstraint("full_packets >= 0", name="ck_mfr_inventory_packets"),
        sa.CheckConstraint("loose_units >= 0", name="ck_mfr_inventory_units"),
        sa.CheckConstraint(
            "blocked_packets >= 0 AND blocked_packets <= full_packets",
            name="ck_mfr_inventory_blocked_packets",
        ),
        sa.CheckConstraint(
            "blocked_loose_units >= 0 AND blocked_loose_units <= loose_units",
            name="ck_mfr_inventory_blocked_units",
        ),
    )

    op.create_table(
        "retailer_inventory",
        sa.Column("id", sa.Integer(), primary_key=True),
        _material_fk(index=True),
        _user_fk("retailer_id"),
        sa.Column("full_packets", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("loose_units", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("material_id", "retailer_id", name="uq_retailer_inventory_material_owner"),
        sa.CheckConstraint("full_packets >= 0", name="ck_retailer_inventory_packets"),
        sa.CheckConstraint("loose_units >= 0", name="ck_retailer_inventory_units"),
    )

    op.create_table(
        "inventory_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("ts", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True),
        sa.Column("transaction_type", transaction_type, nullable=False, index=True),
        sa.Column("owner_kind", owner_kind, nullable=False),
        _user_fk("owner_id"),
        _material_fk(index=True),
        sa.Column("packets_change", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("units_change", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("blocked_packets_change", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("blocked_units_change", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("packets_after", sa.Integer(), nullable=False),
        sa.Column("units_after", sa.Integer(), nullable=False),
        sa.Column("blocked_packets_after", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("blocked_units_after", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reference_type", sa.String(50), nullable=True),
        sa.Column("reference_id", sa.Integer(), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
        _user_fk("created_by", nullable=True),
    )

    # SRN -> Dispatch -> GRN -> Invoice
    op.create_table(
        "srns",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("srn_number", sa.String(30), unique=True, nullable=False, index=True),
        _user_fk("retailer_id"),
        _user_fk("manufacturer_id"),
        sa.Column("status", srn_status, nullable=False, index=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("rejection_note", sa.Text(), nullable=True),
        _user_fk("processed_by", nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "srn_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("srn_id", sa.Integer(), sa.ForeignKey("srns.id", ondelete="CASCADE"), nullable=False, index=True),
        _material_fk(),
        sa.Column("requested_packets", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("requested_loose_units", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("approved_packets", sa.Integer(), nullable=True),
        sa.Column("approved_loose_units", sa.Integer(), nullable=True),
        sa.UniqueConstraint("srn_id", "material_id", name="uq_srn_item_material"),
        sa.CheckConstraint("requested_packets >= 0", name="ck_srn_item_req_packets"),
        sa.CheckConstraint("requested_loose_units >= 0", name="ck_srn_item_req_units"),
    )

    op.create_table(
        "dispatch_orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("dispatch_number", sa.String(30), unique=True, nullable=False, index=True),
        sa.Column("srn_id", sa.Integer(), sa.ForeignKey("srns.id", ondelete="RESTRICT"), unique=True, nullable=False),
        _user_fk("manufacturer_id"),
        _user_fk("retailer_id"),
        _user_fk("created_by", nullable=True),
        sa.Column("status", dispatch_status, nullable=False, index=True),
        sa.Column("total_packets", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_loose_units", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("delivery_notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("executed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "dispatch_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "dispatch_id", sa.Integer(), sa.ForeignKey("dispatch_orders.id", ondelete="CASCADE"),
            nullable=False, index=True,
        ),
        _material_fk(),
        sa.Column("packets", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("loose_units", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("units_per_packet", sa.Integer(), nullable=False),
        sa.Column("packet_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("line_total", sa.Numeric(14, 2), nullable=False),
        sa.Column("hsn_code", sa.String(20), nullable=False),
        sa.Column("gst_rate", sa.Numeric(5, 2), nullable=False),
        sa.CheckConstraint("packets >= 0", name="ck_dispatch_item_packets"),
        sa.CheckConstraint("loose_units >= 0", name="ck_dispatch_item_units"),
    )

    op.create_table(
        "grns",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("grn_number", sa.String(30), unique=True, nullable=False, index=True),
        sa.Column(
            "dispatch_id", sa.Integer(), sa.ForeignKey("dispatch_orders.id", ondelete="RESTRICT"),
            unique=True, nullable=False,
        ),
        _user_fk("retailer_id"),
        _user_fk("manufacturer_id"),
        sa.Column("status", grn_status, nullable=False, index=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "grn_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("grn_id", sa.Integer(), sa.ForeignKey("grns.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column(
            "dispatch_item_id", sa.Integer(), sa.ForeignKey("dispatch_items.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        _material_fk(),
        sa.Column("expected_packets", sa.Integer(), nullable=False),
        sa.Column("expected_loose_units", sa.Integer(), nullable=False),
        sa.Column("received_packets", sa.Integer(), nullable=True),
        sa.Column("received_loose_units", sa.Integer(), nullable=True),
        sa.Column("damaged_packets", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("damaged_loose_units", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint("received_packets IS NULL OR received_packets >= 0", name="ck_grn_item_packets"),
        sa.CheckConstraint("received_loose_units IS NULL OR received_loose_units >= 0", name="ck_grn_item_units"),
    )

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("invoice_number", sa.String(30), unique=True, nullable=False, index=True),
        sa.Column("grn_id", sa.Integer(), sa.ForeignKey("grns.id", ondelete="RESTRICT"), unique=True, nullable=False),
        sa.Column(
            "dispatch_id", sa.Integer(), sa.ForeignKey("dispatch_orders.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        _user_fk("retailer_id"),
        _user_fk("manufacturer_id"),
        _user_fk("created_by", nullable=True),
        sa.Column("is_interstate", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False),
        sa.Column("cgst_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("sgst_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("igst_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("total_tax", sa.Numeric(14, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "invoice_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "invoice_id", sa.Integer(), sa.ForeignKey("invoices.id", ondelete="RESTRICT"),
            nullable=False, index=True,
        ),
        _material_fk(),
        sa.Column("material_name", sa.String(255), nullable=False),
        sa.Column("hsn_code", sa.String(20), nullable=False),
        sa.Column("gst_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("packets", sa.Integer(), nullable=False),
        sa.Column("loose_units", sa.Integer(), nullable=False),
        sa.Column("packet_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("taxable_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("cgst_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("sgst_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("igst_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("line_total", sa.Numeric(14, 2), nullable=False),
    )

    # Sales and commissions
    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sale_number", sa.String(30), unique=True, nullable=False, index=True),
        _user_fk("retailer_id"),
        _material_fk(index=True),
        sa.Column("units_sold", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("packets_opened", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True),
        sa.CheckConstraint("units_sold > 0", name="ck_sale_units"),
    )

    op.create_table(
        "commissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sale_id", sa.Integer(), sa.ForeignKey("sales.id", ondelete="RESTRICT"), unique=True, nullable=False),
        _user_fk("retailer_id"),
        _material_fk(),
        sa.Column("commission_type", commission_type, nullable=False),
        sa.Column("commission_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("units_sold", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("status", commission_status, nullable=False, index=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        _user_fk("paid_by", nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Returns
    op.create_table(
        "return_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("return_number", sa.String(30), unique=True, nullable=False, index=True),
        _user_fk("retailer_id"),
        _user_fk("manufacturer_id"),
        sa.Column("grn_id", sa.Integer(), sa.ForeignKey("grns.id", ondelete="SET NULL"), nullable=True),
        sa.Column("reason", return_reason, nullable=False),
        sa.Column("reason_details", sa.Text(), nullable=True),
        sa.Column("status", return_status, nullable=False, index=True),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        _user_fk("resolved_by", nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "return_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "return_id", sa.Integer(), sa.ForeignKey("return_requests.id", ondelete="CASCADE"),
            nullable=False, index=True,
        ),
        _material_fk(),
        sa.Column("packets", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("loose_units", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint("packets >= 0", name="ck_return_item_packets"),
        sa.CheckConstraint("loose_units >= 0", name="ck_return_item_units"),
    )


def downgrade() -> None:
    for table in (
        "return_items",
        "return_requests",
        "commissions",
        "sales",
        "invoice_items",
        "invoices",
        "grn_items",
        "grns",
        "dispatch_items",
        "dispatch_orders",
        "srn_items",
        "srns",
        "inventory_transactions",
        "retailer_inventory",
        "manufacturer_inventory",
        "production_batches",
        "sequence_counters",
        "retailer_assignments",
        "materials",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in (
        return_status, return_reason, commission_status, grn_status, dispatch_status,
        srn_status, transaction_type, owner_kind, commission_type, user_role,
    ):
        enum.drop(bind, checkfirst=True)
