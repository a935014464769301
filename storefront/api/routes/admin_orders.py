"""Admin order management routes.

Lists orders and moves them through the status lifecycle
(pending -> processing -> shipped -> delivered, with cancel and refund
branches). Status strings are validated against the lifecycle before the
order is loaded. Staff can also email the customer about an order.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.auth import AuthenticatedUser, require_admin
from storefront.api.models import (
    OrderEmailRequest,
    OrderListResponse,
    OrderResponse,
    OrderStatusPathUpdateRequest,
    OrderStatusUpdateRequest,
    success_response,
)
from storefront.db.session import get_db
from storefront.logging_config import get_logger
from storefront.services.orders import MAX_PAGE_SIZE, OrderService, get_order_service

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/orders", tags=["admin"])


@router.get("")
async def list_orders(
    status: Optional[str] = Query(default=None, description="Filter by order status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
    admin: AuthenticatedUser = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    """List orders newest first."""
    orders, total, pages = await service.list_orders(status=status, page=page, limit=limit)
    return success_response(
        OrderListResponse(
            orders=[OrderResponse.model_validate(order) for order in orders],
            total=total,
            page=page,
            limit=limit,
            pages=pages,
        )
    )


async def _update_status(
    order_id: UUID,
    status: str,
    tracking_number: Optional[str],
    admin: AuthenticatedUser,
    service: OrderService,
    db: AsyncSession,
):
    order = await service.update_status(order_id, status, tracking_number)
    await db.commit()

    logger.info(
        f"Order {order.order_number} is now {order.status.value}",
        extra={"order_id": str(order.id), "admin_id": admin.user_id},
    )
    return success_response(
        OrderResponse.model_validate(order),
        message=f"Order status updated to {order.status.value}",
    )


@router.patch("")
async def update_order_status(
    request: OrderStatusUpdateRequest,
    admin: AuthenticatedUser = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
    db: AsyncSession = Depends(get_db),
):
    """Update an order's status (order id in the body).

    Unknown statuses return 400; moves outside the lifecycle return 409.
    """
    return await _update_status(
        request.order_id, request.status, request.tracking_number, admin, service, db
    )


@router.patch("/{order_id}/status")
async def update_order_status_by_path(
    order_id: UUID,
    request: OrderStatusPathUpdateRequest,
    admin: AuthenticatedUser = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
    db: AsyncSession = Depends(get_db),
):
    """Update an order's status (order id in the path)."""
    return await _update_status(
        order_id, request.status, request.tracking_number, admin, service, db
    )


@router.post("/{order_id}/send-email")
async def send_order_email(
    order_id: UUID,
    request: OrderEmailRequest,
    admin: AuthenticatedUser = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    """Email the customer about an order. Nothing is stored."""
    order = await service.email_customer(order_id, request.to, request.subject, request.message)

    logger.info(
        f"Emailed customer about order {order.order_number}",
        extra={"order_id": str(order.id), "admin_id": admin.user_id},
    )
    return success_response(
        {"order_id": str(order.id), "recipient_email": request.to},
        message="Email sent to customer",
    )
