"""Invoices for paid orders: numbering, PDF rendering and email delivery."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import Depends
from resend.exceptions import ResendError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.models import Invoice, InvoiceStatus, Order, PaymentStatus
from storefront.db.session import get_db
from storefront.domain.error_codes import ErrorCode
from storefront.domain.errors import ConflictError, NotFoundError, ProviderError
from storefront.logging_config import get_logger
from storefront.reporters import InvoicePDFReporter
from storefront.reporters.base_reporter import format_cents
from storefront.services.email import EmailService

logger = get_logger(__name__)

INVOICEABLE_PAYMENT_STATUSES = frozenset({PaymentStatus.COMPLETED, PaymentStatus.REFUNDED})


def build_invoice_number(order_id: UUID, issued_at: datetime) -> str:
    """INV-YYYYMMDD-<first 8 characters of the order id, upper case>."""
    return f"INV-{issued_at:%Y%m%d}-{str(order_id)[:8].upper()}"


class InvoiceService:
    """Create, render and send invoices."""

    def __init__(
        self,
        session: AsyncSession,
        reporter: Optional[InvoicePDFReporter] = None,
        email_service: Optional[EmailService] = None,
    ):
        self.session = session
        self.reporter = reporter or InvoicePDFReporter()
        self.email_service = email_service or EmailService()

    async def _get_paid_order(self, order_id: UUID) -> Order:
        result = await self.session.execute(select(Order).where(Order.id == order_id))
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order", order_id)
        if order.payment_status not in INVOICEABLE_PAYMENT_STATUSES:
            raise ConflictError(
                "Invoices are only available for paid orders",
                details={"payment_status": order.payment_status.value},
                error_code=ErrorCode.ORDER_NOT_PAID,
            )
        return order

    async def get_or_create_invoice(self, order_id: UUID) -> tuple[Invoice, Order]:
        """Return the order's invoice, issuing it on first access.

        Raises:
            NotFoundError: No such order
            ConflictError: Order not paid
        """
        order = await self._get_paid_order(order_id)

        result = await self.session.execute(select(Invoice).where(Invoice.order_id == order.id))
        invoice = result.scalar_one_or_none()
        if invoice is None:
            issued_at = datetime.now(timezone.utc)
            invoice = Invoice(
                order_id=order.id,
                invoice_number=build_invoice_number(order.id, issued_at),
                status=InvoiceStatus.DRAFT,
                issued_at=issued_at,
            )
            self.session.add(invoice)
            await self.session.flush()
            logger.info(
                "Invoice issued",
                extra={"order_id": str(order.id), "invoice_number": invoice.invoice_number},
            )
        return invoice, order

    async def render_pdf(self, order_id: UUID) -> tuple[Invoice, bytes]:
        invoice, order = await self.get_or_create_invoice(order_id)
        pdf = await asyncio.to_thread(self.reporter.render, invoice, order)
        return invoice, pdf

    async def send(self, order_id: UUID, recipient_email: Optional[str] = None) -> Invoice:
        """Email the invoice PDF and mark the invoice sent.

        Raises:
            ProviderError: Email is not configured or Resend rejected the send
        """
        if not self.email_service.is_configured:
            raise ProviderError(
                "Email delivery is not configured",
                provider="resend",
                error_code=ErrorCode.SYS_NOT_CONFIGURED,
            )

        invoice, order = await self.get_or_create_invoice(order_id)
        recipient = recipient_email or order.email
        pdf = await asyncio.to_thread(self.reporter.render, invoice, order)

        try:
            await self.email_service.send_invoice(
                recipient,
                invoice_number=invoice.invoice_number,
                order_number=order.order_number,
                total=format_cents(order.total_cents, order.currency),
                pdf_bytes=pdf,
            )
        except ResendError as e:
            logger.error(f"Invoice email failed for {invoice.invoice_number}: {e}")
            raise ProviderError("Failed to send the invoice email", provider="resend") from e

        invoice.status = InvoiceStatus.SENT
        invoice.sent_to = recipient
        invoice.sent_at = datetime.now(timezone.utc)
        await self.session.flush()
        return invoice


def get_invoice_service(db: AsyncSession = Depends(get_db)) -> InvoiceService:
    return InvoiceService(db)
