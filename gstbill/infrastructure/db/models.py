import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from gstbill.infrastructure.db.base import Base


class InvoiceRecord(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("tenant_id", "invoice_type", "year", "sequence", name="uq_invoices_sequence"),
        UniqueConstraint("tenant_id", "invoice_number", name="uq_invoices_number"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(64), nullable=False, index=True)
    invoice_number = Column(String(32), nullable=False)
    invoice_type = Column(String(16), nullable=False)
    year = Column(Integer, nullable=False)
    sequence = Column(Integer, nullable=False)
    invoice_date = Column(Date, nullable=False, index=True)

    buyer_name = Column(String(255), nullable=False)
    buyer_gstin = Column(String(15), nullable=True)
    buyer_state_code = Column(String(2), nullable=False)
    seller_state_code = Column(String(2), nullable=False)

    # Frozen at finalization
    is_inter_state = Column(Boolean, nullable=False)
    taxable_total = Column(Numeric, nullable=False)
    igst_total = Column(Numeric, nullable=False)
    cgst_total = Column(Numeric, nullable=False)
    sgst_total = Column(Numeric, nullable=False)
    exact_total = Column(Numeric, nullable=False)
    round_off = Column(Numeric, nullable=False)
    grand_total = Column(Numeric(14, 0), nullable=False)

    is_paid = Column(Boolean, nullable=False, default=False)
    is_reverse_charge = Column(Boolean, nullable=False, default=False)
    export_type = Column(String(20), nullable=True)
    shipping_bill_no = Column(String(50), nullable=True)
    shipping_bill_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"))

    lines = relationship(
        "InvoiceLineRecord",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLineRecord.position",
    )


class InvoiceLineRecord(Base):
    __tablename__ = "invoice_lines"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    invoice_id = Column(UUID(as_uuid=True), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    product_id = Column(String(64), nullable=True)
    description = Column(String(500), nullable=False)
    hsn_sac = Column(String(8), nullable=True)
    unit = Column(String(20), nullable=True)
    quantity = Column(Numeric, nullable=False)
    unit_rate = Column(Numeric, nullable=False)
    conversion_factor = Column(Numeric, nullable=True)
    gst_rate = Column(Numeric(5, 2), nullable=False)
    taxable_value = Column(Numeric, nullable=False)
    igst = Column(Numeric, nullable=False)
    cgst = Column(Numeric, nullable=False)
    sgst = Column(Numeric, nullable=False)

    invoice = relationship("InvoiceRecord", back_populates="lines")


class Gstr1Return(Base):
    __tablename__ = "gstr1_returns"
    __table_args__ = (
        UniqueConstraint("tenant_id", "return_period", name="uq_gstr1_returns_period"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(64), nullable=False, index=True)
    return_period = Column(String(6), nullable=False)
    financial_year = Column(String(9), nullable=False)
    status = Column(String(10), nullable=False, default="draft")
    total_invoice_count = Column(Integer, nullable=False, default=0)
    total_taxable_value = Column(Numeric, nullable=False)
    total_igst = Column(Numeric, nullable=False)
    total_cgst = Column(Numeric, nullable=False)
    total_sgst = Column(Numeric, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    rows = relationship(
        "Gstr1SectionRow",
        back_populates="gstr1_return",
        cascade="all, delete-orphan",
        order_by="Gstr1SectionRow.position",
    )


class Gstr1SectionRow(Base):
    __tablename__ = "gstr1_section_rows"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    gstr1_return_id = Column(
        UUID(as_uuid=True), ForeignKey("gstr1_returns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False)
    section = Column(String(8), nullable=False)
    place_of_supply = Column(String(2), nullable=True)
    rate = Column(Numeric(5, 2), nullable=True)
    taxable_value = Column(Numeric, nullable=False)
    igst = Column(Numeric, nullable=False)
    cgst = Column(Numeric, nullable=False)
    sgst = Column(Numeric, nullable=False)
    invoice_id = Column(String(64), nullable=True)
    invoice_number = Column(String(32), nullable=True)
    invoice_date = Column(Date, nullable=True)
    counterparty_gstin = Column(String(15), nullable=True)
    reverse_charge = Column(Boolean, nullable=False, default=False)
    export_type = Column(String(20), nullable=True)
    shipping_bill_no = Column(String(50), nullable=True)
    shipping_bill_date = Column(Date, nullable=True)
    description = Column(String(100), nullable=True)

    gstr1_return = relationship("Gstr1Return", back_populates="rows")


class Gstr3bReturn(Base):
    __tablename__ = "gstr3b_returns"
    __table_args__ = (
        UniqueConstraint("tenant_id", "return_period", name="uq_gstr3b_returns_period"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(String(64), nullable=False, index=True)
    return_period = Column(String(6), nullable=False)
    financial_year = Column(String(9), nullable=False)
    status = Column(String(10), nullable=False, default="draft")
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    rows = relationship(
        "Gstr3bSectionRow",
        back_populates="gstr3b_return",
        cascade="all, delete-orphan",
        order_by="Gstr3bSectionRow.position",
    )


class Gstr3bSectionRow(Base):
    __tablename__ = "gstr3b_section_rows"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    gstr3b_return_id = Column(
        UUID(as_uuid=True), ForeignKey("gstr3b_returns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False)
    table_code = Column(String(8), nullable=False)  # "3.1a", "3.2", "3.1c"
    key = Column(String(16), nullable=True)
    place_of_supply = Column(String(2), nullable=True)
    taxable_value = Column(Numeric, nullable=False)
    igst = Column(Numeric, nullable=False)
    cgst = Column(Numeric, nullable=False)
    sgst = Column(Numeric, nullable=False)

    gstr3b_return = relationship("Gstr3bReturn", back_populates="rows")
