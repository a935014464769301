"""Checkout routes: Stripe Checkout sessions, refunds and invoices.

Payments run through Stripe Checkout. ``init`` creates a pending order and
the hosted session; the storefront's success page calls ``confirm`` with the
session id to mark the order paid.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.auth import AuthenticatedUser, get_optional_user
from storefront.api.models import (
    CheckoutConfirmRequest,
    CheckoutConfirmResponse,
    CheckoutInitRequest,
    CheckoutSessionResponse,
    InvoiceSendRequest,
    RefundRequest,
    RefundResponse,
    success_response,
)
from storefront.db.session import get_db
from storefront.logging_config import get_logger
from storefront.services.checkout import CartLine, CheckoutService, get_checkout_service
from storefront.services.invoices import InvoiceService, get_invoice_service
from storefront.services.refunds import RefundService, get_refund_service

logger = get_logger(__name__)

router = APIRouter(prefix="/checkout", tags=["checkout"])


# ============================================================================
# Stripe Checkout
# ============================================================================


@router.post("/stripe/init", status_code=status.HTTP_201_CREATED)
async def init_checkout(
    request: CheckoutInitRequest,
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    service: CheckoutService = Depends(get_checkout_service),
    db: AsyncSession = Depends(get_db),
):
    """Create a pending order and a Stripe Checkout session for the cart.

    Returns the hosted checkout URL to redirect the customer to.
    """
    lines = [CartLine(product_id=item.product_id, quantity=item.quantity) for item in request.cart_items]
    order, checkout_session = await service.create_session(
        lines,
        email=request.email,
        shipping_address=request.shipping_address,
        user_id=UUID(user.user_id) if user else None,
    )
    await db.commit()

    return success_response(
        CheckoutSessionResponse(
            session_id=checkout_session.id,
            checkout_url=checkout_session.url,
            order_id=order.id,
            total_cents=order.total_cents,
        ),
        message="Checkout session created",
    )


@router.post("/stripe/confirm")
async def confirm_checkout(
    request: CheckoutConfirmRequest,
    service: CheckoutService = Depends(get_checkout_service),
    db: AsyncSession = Depends(get_db),
):
    """Confirm a completed Checkout session. Safe to call more than once."""
    order, already_confirmed = await service.confirm(request.session_id)
    await db.commit()

    return success_response(
        CheckoutConfirmResponse(
            order_id=order.id,
            order_number=order.order_number,
            status=order.status,
            payment_status=order.payment_status,
            already_confirmed=already_confirmed,
        ),
        message="Order already confirmed" if already_confirmed else "Payment confirmed",
    )


# ============================================================================
# Refunds
# ============================================================================


@router.post("/refunds", status_code=status.HTTP_201_CREATED)
async def request_refund(
    request: RefundRequest,
    service: RefundService = Depends(get_refund_service),
    db: AsyncSession = Depends(get_db),
):
    """Refund all or part of a paid order.

    Returns 200 with the existing refund when the order was already
    refunded, and 201 when a new refund was issued.
    """
    refund, created = await service.request_refund(
        request.order_id,
        reason=request.reason,
        amount_cents=request.amount_cents,
    )
    await db.commit()

    body = success_response(
        RefundResponse.model_validate(refund),
        message="Refund issued" if created else "Order already refunded",
    )
    if not created:
        return JSONResponse(status_code=status.HTTP_200_OK, content=body)
    return body


@router.get("/refunds/{refund_id}")
async def get_refund_status(
    refund_id: UUID,
    service: RefundService = Depends(get_refund_service),
    db: AsyncSession = Depends(get_db),
):
    """Current refund status, refreshed from Stripe while pending."""
    refund = await service.check_refund_status(refund_id)
    await db.commit()
    return success_response(RefundResponse.model_validate(refund))


# ============================================================================
# Invoices
# ============================================================================


@router.get("/invoices/{order_id}/pdf")
async def download_invoice_pdf(
    order_id: UUID,
    service: InvoiceService = Depends(get_invoice_service),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Invoice PDF for a paid order."""
    invoice, pdf = await service.render_pdf(order_id)
    await db.commit()

    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="invoice-{invoice.invoice_number}.pdf"'
        },
    )


@router.post("/invoices/{order_id}/send")
async def send_invoice(
    order_id: UUID,
    request: Optional[InvoiceSendRequest] = None,
    service: InvoiceService = Depends(get_invoice_service),
    db: AsyncSession = Depends(get_db),
):
    """Email the invoice PDF to the order's email or ``recipient_email``."""
    recipient = request.recipient_email if request else None
    invoice = await service.send(order_id, recipient_email=recipient)
    await db.commit()

    return success_response(
        {
            "invoice_number": invoice.invoice_number,
            "status": invoice.status.value,
            "sent_to": invoice.sent_to,
            "sent_at": invoice.sent_at.isoformat() if invoice.sent_at else None,
        },
        message=f"Invoice sent to {invoice.sent_to}",
    )
