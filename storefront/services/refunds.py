"""Refunds against paid orders."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import stripe
from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.models import Order, OrderStatus, PaymentStatus, Refund, RefundStatus
from storefront.db.session import get_db
from storefront.domain.error_codes import ErrorCode
from storefront.domain.errors import ConflictError, NotFoundError, ValidationFailed
from storefront.domain.lifecycle import ensure_transition
from storefront.logging_config import get_logger
from storefront.services.orders import apply_status
from storefront.services.stripe_service import handle_stripe_error

logger = get_logger(__name__)

STRIPE_REFUND_STATUSES = {
    "pending": RefundStatus.PENDING,
    "requires_action": RefundStatus.PENDING,
    "succeeded": RefundStatus.SUCCEEDED,
    "failed": RefundStatus.FAILED,
    "canceled": RefundStatus.FAILED,
}


class RefundService:
    """Issue refunds through Stripe and track their status."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _refunded_cents(self, order_id: UUID) -> int:
        result = await self.session.execute(
            select(func.coalesce(func.sum(Refund.amount_cents), 0)).where(
                Refund.order_id == order_id,
                Refund.status != RefundStatus.FAILED,
            )
        )
        return int(result.scalar_one())

    async def _latest_refund(self, order_id: UUID) -> Optional[Refund]:
        result = await self.session.execute(
            select(Refund)
            .where(Refund.order_id == order_id, Refund.status != RefundStatus.FAILED)
            .order_by(Refund.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def request_refund(
        self,
        order_id: UUID,
        reason: Optional[str] = None,
        amount_cents: Optional[int] = None,
    ) -> tuple[Refund, bool]:
        """Refund all or part of an order.

        An order that is already fully refunded returns its existing refund
        without calling Stripe. A paid order that was cancelled can be
        refunded; its status stays cancelled and its payment becomes refunded.

        Returns:
            Tuple of (refund, created)

        Raises:
            NotFoundError: No such order
            ConflictError: Order not paid
            ValidationFailed: Amount exceeds what is left to refund
        """
        result = await self.session.execute(select(Order).where(Order.id == order_id))
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order", order_id)

        if order.status == OrderStatus.REFUNDED or order.payment_status == PaymentStatus.REFUNDED:
            existing = await self._latest_refund(order.id)
            if existing is not None:
                logger.info("Order already refunded", extra={"order_id": str(order.id)})
                return existing, False

        if order.payment_status != PaymentStatus.COMPLETED or not order.stripe_payment_intent_id:
            raise ConflictError(
                "Only paid orders can be refunded",
                details={"payment_status": order.payment_status.value},
                error_code=ErrorCode.ORDER_NOT_PAID,
            )

        refundable = order.total_cents - await self._refunded_cents(order.id)
        if refundable <= 0:
            raise ConflictError("Nothing left to refund on this order")

        amount = amount_cents if amount_cents is not None else refundable
        if amount > refundable:
            raise ValidationFailed(
                f"Refund amount exceeds the refundable total of {refundable}",
                details={"refundable_cents": refundable, "requested_cents": amount},
                error_code=ErrorCode.VAL_OUT_OF_RANGE,
            )

        full_refund = amount == refundable
        # A cancelled order stays cancelled; only its payment is marked refunded
        refund_cancelled = order.status == OrderStatus.CANCELLED
        if full_refund and not refund_cancelled:
            ensure_transition(order.status, OrderStatus.REFUNDED)

        try:
            stripe_refund = await asyncio.to_thread(
                stripe.Refund.create,
                payment_intent=order.stripe_payment_intent_id,
                amount=amount,
                metadata={"order_id": str(order.id), "reason": reason or ""},
            )
        except stripe.error.StripeError as e:
            raise handle_stripe_error(e, "refund creation") from e

        status = STRIPE_REFUND_STATUSES.get(stripe_refund.status, RefundStatus.PENDING)
        refund = Refund(
            order_id=order.id,
            amount_cents=amount,
            reason=reason,
            status=status,
            stripe_refund_id=stripe_refund.id,
            processed_at=datetime.now(timezone.utc) if status != RefundStatus.PENDING else None,
        )
        self.session.add(refund)

        if status != RefundStatus.FAILED and full_refund:
            if refund_cancelled:
                order.payment_status = PaymentStatus.REFUNDED
            else:
                apply_status(order, OrderStatus.REFUNDED)

        await self.session.flush()
        logger.info(
            "Refund issued",
            extra={
                "order_id": str(order.id),
                "refund_id": str(refund.id),
                "amount_cents": amount,
                "status": status.value,
            },
        )
        return refund, True

    async def check_refund_status(self, refund_id: UUID) -> Refund:
        """Return a refund, refreshing pending ones from Stripe.

        Raises:
            NotFoundError: No such refund
        """
        refund = await self.session.get(Refund, refund_id)
        if refund is None:
            raise NotFoundError("Refund", refund_id)

        if refund.status != RefundStatus.PENDING or not refund.stripe_refund_id:
            return refund

        try:
            stripe_refund = await asyncio.to_thread(stripe.Refund.retrieve, refund.stripe_refund_id)
        except stripe.error.StripeError as e:
            raise handle_stripe_error(e, "refund status lookup") from e

        status = STRIPE_REFUND_STATUSES.get(stripe_refund.status, RefundStatus.PENDING)
        if status != refund.status:
            refund.status = status
            refund.processed_at = datetime.now(timezone.utc)
            await self.session.flush()
        return refund


def get_refund_service(db: AsyncSession = Depends(get_db)) -> RefundService:
    return RefundService(db)
