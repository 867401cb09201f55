from app.database.database import Base
from sqlalchemy import Column, Integer, BigInteger, String, ForeignKey, UniqueConstraint, Numeric, Enum, Date, Text, Index
from sqlalchemy.orm import relationship
from datetime import date
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from app.common.mixins import TenantMixin, TimestampMixin
import enum


class InvoiceStatus(enum.Enum):
    DRAFT = "draft"        # Being prepared, not yet issued
    SENT = "sent"          # Issued, waiting for payment
    PAID = "paid"          # Nothing left to pay
    OVERDUE = "overdue"    # Balance left after the due date
    VOID = "void"          # Cancelled, no further payments


class PaymentMethod(enum.Enum):
    CASH = "Cash"
    BANK_TRANSFER = "Bank Transfer"
    CREDIT_CARD = "Credit Card"
    CHEQUE = "Cheque"
    OTHER = "Other"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Invoice(Base, TenantMixin, TimestampMixin):
    __tablename__ = "invoices"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id"), nullable=False, index=True)

    number = Column(String(50), nullable=False)  # prefix + zero padded sequence
    status = Column(
        Enum(InvoiceStatus, name="invoice_status", values_callable=_enum_values),
        nullable=False,
        default=InvoiceStatus.DRAFT,
    )

    issue_date = Column(Date, nullable=False, default=date.today)
    due_date = Column(Date, nullable=True)

    currency = Column(String(3), nullable=False, default="PKR")
    notes = Column(Text, nullable=True)
    terms = Column(Text, nullable=True)

    # Stored totals, all in the smallest currency unit and rewritten on every save
    subtotal = Column(BigInteger, nullable=False, default=0)
    tax_total = Column(BigInteger, nullable=False, default=0)
    discount_total = Column(BigInteger, nullable=False, default=0)
    total = Column(BigInteger, nullable=False, default=0)
    amount_paid = Column(BigInteger, nullable=False, default=0)
    amount_due = Column(BigInteger, nullable=False, default=0)  # may go negative on overpayment

    version = Column(Integer, nullable=False)

    client = relationship("Client", back_populates="invoices")
    line_items = relationship(
        "InvoiceLineItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLineItem.position",
    )
    payments = relationship(
        "Payment",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="Payment.payment_date",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("tenant_id", "number", name="uq_invoice_tenant_number"),
        Index("ix_invoices_tenant_status", "tenant_id", "status"),
    )

    @property
    def balance_due(self) -> int:
        return max(self.amount_due or 0, 0)

    @property
    def overpaid_amount(self) -> int:
        return max(-(self.amount_due or 0), 0)

    @property
    def client_name(self):
        return self.client.name if self.client is not None else None


class InvoiceLineItem(Base, TimestampMixin):
    __tablename__ = "invoice_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    invoice_id = Column(UUID(as_uuid=True), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    position = Column(Integer, nullable=False, default=0)  # display order only

    # Copied from the product at save time so later catalogue edits do not change the invoice
    title = Column(String(200), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_price = Column(BigInteger, nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)
    discount = Column(BigInteger, nullable=False, default=0)

    line_subtotal = Column(BigInteger, nullable=False)
    line_tax = Column(BigInteger, nullable=False)
    line_total = Column(BigInteger, nullable=False)

    invoice = relationship("Invoice", back_populates="line_items")


class Payment(Base, TenantMixin, TimestampMixin):
    """A recorded payment. Rows are only ever inserted."""
    __tablename__ = "payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    invoice_id = Column(UUID(as_uuid=True), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(BigInteger, nullable=False)
    method = Column(
        Enum(PaymentMethod, name="payment_method", values_callable=_enum_values),
        nullable=False,
        default=PaymentMethod.CASH,
    )
    reference = Column(String(100), nullable=True)  # cheque or transfer number
    payment_date = Column(Date, nullable=False, default=date.today)
    notes = Column(Text, nullable=True)

    invoice = relationship("Invoice", back_populates="payments")
