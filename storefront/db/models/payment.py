"""Refund and invoice models."""

import enum
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin, generate_repr

if TYPE_CHECKING:
    from .order import Order


class RefundStatus(str, enum.Enum):
    """Status of a refund at the payment provider."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class InvoiceStatus(str, enum.Enum):
    """Invoice delivery status."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"


class Refund(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Refund issued against an order's payment.

    Attributes:
        order_id: Refunded order
        amount_cents: Refunded amount
        reason: Customer or staff supplied reason
        status: Provider status
        stripe_refund_id: Stripe Refund id
        processed_at: When the provider reported a final status
    """

    __tablename__ = "refunds"

    order_id: Mapped[UUID] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[RefundStatus] = mapped_column(
        Enum(
            RefundStatus,
            name="refund_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        default=RefundStatus.PENDING,
        nullable=False,
    )
    stripe_refund_id: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    order: Mapped["Order"] = relationship("Order", back_populates="refunds")

    def __repr__(self) -> str:
        return generate_repr(self, "id", "order_id", "amount_cents", "status")


class Invoice(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Invoice issued for a paid order.

    Attributes:
        order_id: Invoiced order (one invoice per order)
        invoice_number: INV-YYYYMMDD-XXXXXXXX
        status: draft, sent or paid
        issued_at: Issue timestamp
        sent_to: Last recipient address
        sent_at: Last delivery timestamp
    """

    __tablename__ = "invoices"

    order_id: Mapped[UUID] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    invoice_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(
        Enum(
            InvoiceStatus,
            name="invoice_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        default=InvoiceStatus.DRAFT,
        nullable=False,
    )
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    sent_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    order: Mapped["Order"] = relationship("Order", back_populates="invoice")

    def __repr__(self) -> str:
        return generate_repr(self, "id", "invoice_number", "status")
