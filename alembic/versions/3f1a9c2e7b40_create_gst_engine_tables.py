"""create invoices and GSTR-1 / GSTR-3B tables

Revision ID: 3f1a9c2e7b40
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "3f1a9c2e7b40"
down_revision = None
branch_labels = None
depends_on = None


def _amount_columns() -> list[sa.Column]:
    return [
        sa.Column("taxable_value", sa.Numeric(), nullable=False),
        sa.Column("igst", sa.Numeric(), nullable=False),
        sa.Column("cgst", sa.Numeric(), nullable=False),
        sa.Column("sgst", sa.Numeric(), nullable=False),
    ]


def upgrade() -> None:
    # --- invoices ---
    op.create_table(
        "invoices",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("invoice_number", sa.String(length=32), nullable=False),
        sa.Column("invoice_type", sa.String(length=16), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("buyer_name", sa.String(length=255), nullable=False),
        sa.Column("buyer_gstin", sa.String(length=15), nullable=True),
        sa.Column("buyer_state_code", sa.String(length=2), nullable=False),
        sa.Column("seller_state_code", sa.String(length=2), nullable=False),
        sa.Column("is_inter_state", sa.Boolean(), nullable=False),
        sa.Column("taxable_total", sa.Numeric(), nullable=False),
        sa.Column("igst_total", sa.Numeric(), nullable=False),
        sa.Column("cgst_total", sa.Numeric(), nullable=False),
        sa.Column("sgst_total", sa.Numeric(), nullable=False),
        sa.Column("exact_total", sa.Numeric(), nullable=False),
        sa.Column("round_off", sa.Numeric(), nullable=False),
        sa.Column("grand_total", sa.Numeric(14, 0), nullable=False),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_reverse_charge", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("export_type", sa.String(length=20), nullable=True),
        sa.Column("shipping_bill_no", sa.String(length=50), nullable=True),
        sa.Column("shipping_bill_date", sa.Date(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "invoice_type", "year", "sequence", name="uq_invoices_sequence"),
        sa.UniqueConstraint("tenant_id", "invoice_number", name="uq_invoices_number"),
    )
    op.create_index(op.f("ix_invoices_tenant_id"), "invoices", ["tenant_id"], unique=False)
    op.create_index(op.f("ix_invoices_invoice_date"), "invoices", ["invoice_date"], unique=False)

    op.create_table(
        "invoice_lines",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("invoice_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.String(length=64), nullable=True),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("hsn_sac", sa.String(length=8), nullable=True),
        sa.Column("unit", sa.String(length=20), nullable=True),
        sa.Column("quantity", sa.Numeric(), nullable=False),
        sa.Column("unit_rate", sa.Numeric(), nullable=False),
        sa.Column("conversion_factor", sa.Numeric(), nullable=True),
        sa.Column("gst_rate", sa.Numeric(5, 2), nullable=False),
        *_amount_columns(),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_invoice_lines_invoice_id"), "invoice_lines", ["invoice_id"], unique=False)

    # --- GSTR-1 ---
    op.create_table(
        "gstr1_returns",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("return_period", sa.String(length=6), nullable=False),
        sa.Column("financial_year", sa.String(length=9), nullable=False),
        sa.Column("status", sa.String(length=10), nullable=False, server_default="draft"),
        sa.Column("total_invoice_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_taxable_value", sa.Numeric(), nullable=False),
        sa.Column("total_igst", sa.Numeric(), nullable=False),
        sa.Column("total_cgst", sa.Numeric(), nullable=False),
        sa.Column("total_sgst", sa.Numeric(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "return_period", name="uq_gstr1_returns_period"),
    )
    op.create_index(op.f("ix_gstr1_returns_tenant_id"), "gstr1_returns", ["tenant_id"], unique=False)

    op.create_table(
        "gstr1_section_rows",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("gstr1_return_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("section", sa.String(length=8), nullable=False),
        sa.Column("place_of_supply", sa.String(length=2), nullable=True),
        sa.Column("rate", sa.Numeric(5, 2), nullable=True),
        *_amount_columns(),
        sa.Column("invoice_id", sa.String(length=64), nullable=True),
        sa.Column("invoice_number", sa.String(length=32), nullable=True),
        sa.Column("invoice_date", sa.Date(), nullable=True),
        sa.Column("counterparty_gstin", sa.String(length=15), nullable=True),
        sa.Column("reverse_charge", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("export_type", sa.String(length=20), nullable=True),
        sa.Column("shipping_bill_no", sa.String(length=50), nullable=True),
        sa.Column("shipping_bill_date", sa.Date(), nullable=True),
        sa.Column("description", sa.String(length=100), nullable=True),
        sa.ForeignKeyConstraint(["gstr1_return_id"], ["gstr1_returns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_gstr1_section_rows_gstr1_return_id"),
        "gstr1_section_rows",
        ["gstr1_return_id"],
        unique=False,
    )

    # --- GSTR-3B ---
    op.create_table(
        "gstr3b_returns",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("return_period", sa.String(length=6), nullable=False),
        sa.Column("financial_year", sa.String(length=9), nullable=False),
        sa.Column("status", sa.String(length=10), nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "return_period", name="uq_gstr3b_returns_period"),
    )
    op.create_index(op.f("ix_gstr3b_returns_tenant_id"), "gstr3b_returns", ["tenant_id"], unique=False)

    op.create_table(
        "gstr3b_section_rows",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("gstr3b_return_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("table_code", sa.String(length=8), nullable=False),
        sa.Column("key", sa.String(length=16), nullable=True),
        sa.Column("place_of_supply", sa.String(length=2), nullable=True),
        *_amount_columns(),
        sa.ForeignKeyConstraint(["gstr3b_return_id"], ["gstr3b_returns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_gstr3b_section_rows_gstr3b_return_id"),
        "gstr3b_section_rows",
        ["gstr3b_return_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_gstr3b_section_rows_gstr3b_return_id"), table_name="gstr3b_section_rows")
    op.drop_table("gstr3b_section_rows")
    op.drop_index(op.f("ix_gstr3b_returns_tenant_id"), table_name="gstr3b_returns")
    op.drop_table("gstr3b_returns")
    op.drop_index(op.f("ix_gstr1_section_rows_gstr1_return_id"), table_name="gstr1_section_rows")
    op.drop_table("gstr1_section_rows")
    op.drop_index(op.f("ix_gstr1_returns_tenant_id"), table_name="gstr1_returns")
    op.drop_table("gstr1_returns")
    op.drop_index(op.f("ix_invoice_lines_invoice_id"), table_name="invoice_lines")
    op.drop_table("invoice_lines")
    op.drop_index(op.f("ix_invoices_invoice_date"), table_name="invoices")
    op.drop_index(op.f("ix_invoices_tenant_id"), table_name="invoices")
    op.drop_table("invoices")
