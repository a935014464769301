"""Admin order management: listing, status changes and customer emails."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional, Sequence
from uuid import UUID

from fastapi import Depends
from resend.exceptions import ResendError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.models import Order, OrderStatus, PaymentStatus
from storefront.db.session import get_db
from storefront.domain.error_codes import ErrorCode
from storefront.domain.errors import NotFoundError, ProviderError
from storefront.domain.lifecycle import ensure_transition, parse_order_status
from storefront.logging_config import get_logger
from storefront.services.email import EmailService

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100


def apply_status(order: Order, new_status: OrderStatus) -> bool:
    """Move an order to new_status following the lifecycle table.

    Returns:
        False if the order was already in new_status (nothing changed)

    Raises:
        InvalidTransition: If the move is not allowed
    """
    if order.status == new_status:
        return False

    ensure_transition(order.status, new_status)

    previous = order.status
    order.status = new_status
    if new_status == OrderStatus.DELIVERED:
        order.delivered_at = datetime.now(timezone.utc)
    elif new_status == OrderStatus.REFUNDED:
        order.payment_status = PaymentStatus.REFUNDED

    logger.info(
        "Order status changed",
        extra={
            "order_id": str(order.id),
            "from_status": previous.value,
            "to_status": new_status.value,
        },
    )
    return True


class OrderService:
    """Query and update orders for the admin dashboard."""

    def __init__(self, session: AsyncSession, email_service: Optional[EmailService] = None):
        self.session = session
        self.email_service = email_service or EmailService()

    async def get_order(self, order_id: UUID) -> Order:
        result = await self.session.execute(select(Order).where(Order.id == order_id))
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    async def list_orders(
        self,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[Sequence[Order], int, int]:
        """List orders newest first.

        Returns:
            Tuple of (orders, total matching, number of pages)
        """
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        page = max(1, page)

        query = select(Order)
        count_query = select(func.count()).select_from(Order)
        if status:
            order_status = parse_order_status(status)
            query = query.where(Order.status == order_status)
            count_query = count_query.where(Order.status == order_status)

        total = (await self.session.execute(count_query)).scalar_one()
        result = await self.session.execute(
            query.order_by(Order.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        orders = result.scalars().all()
        pages = math.ceil(total / limit) if total else 0
        return orders, total, pages

    async def update_status(
        self,
        order_id: UUID,
        status: str,
        tracking_number: Optional[str] = None,
    ) -> Order:
        """Change an order's status.

        The status string is validated before the order is loaded, so an
        unknown value is rejected without touching the database.

        Raises:
            ValidationFailed: Unknown status string
            NotFoundError: No such order
            InvalidTransition: Move not allowed from the current status
        """
        new_status = parse_order_status(status)
        order = await self.get_order(order_id)

        changed = apply_status(order, new_status)
        if tracking_number and new_status == OrderStatus.SHIPPED:
            order.tracking_number = tracking_number
            changed = True

        if changed:
            await self.session.flush()
        return order

    async def email_customer(self, order_id: UUID, to: str, subject: str, message: str) -> Order:
        """Email a staff message about an order.

        Raises:
            NotFoundError: No such order
            ProviderError: Email is not configured or Resend rejected the send
        """
        order = await self.get_order(order_id)
        if not self.email_service.is_configured:
            raise ProviderError(
                "Email delivery is not configured",
                provider="resend",
                error_code=ErrorCode.SYS_NOT_CONFIGURED,
            )

        try:
            await self.email_service.send_order_message(to, subject, message, order.order_number)
        except ResendError as e:
            logger.error(f"Order email failed for {order.order_number}: {e}")
            raise ProviderError("Failed to send the order email", provider="resend") from e
        return order


def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    """FastAPI dependency that creates an order service."""
    return OrderService(db)
