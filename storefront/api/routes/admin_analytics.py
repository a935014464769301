"""Admin reporting routes: dashboard metrics, order exports and invoices."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.auth import AuthenticatedUser, require_admin
from storefront.api.models import (
    AnalyticsResponse,
    InvoiceResponse,
    OrderResponse,
    success_response,
)
from storefront.db.session import get_db
from storefront.logging_config import get_logger
from storefront.services.analytics import AnalyticsService, get_analytics_service
from storefront.services.exports import ExportService, get_export_service
from storefront.services.invoices import InvoiceService, get_invoice_service

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/analytics")
async def get_analytics(
    days: int = Query(default=30, ge=1, le=365, description="Days of daily revenue"),
    admin: AuthenticatedUser = Depends(require_admin),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Revenue, order and catalog metrics."""
    metrics = await service.get_metrics(days=days)
    return success_response(AnalyticsResponse(**metrics))


@router.get("/exports/orders")
async def export_orders(
    format: str = Query(default="csv", description="csv or excel"),
    admin: AuthenticatedUser = Depends(require_admin),
    service: ExportService = Depends(get_export_service),
) -> Response:
    """Download every order as CSV or Excel."""
    export = await service.export_orders(format)
    logger.info(f"Order export generated: {export.filename}", extra={"admin_id": admin.user_id})
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.get("/invoices/{order_id}")
async def get_invoice(
    order_id: UUID,
    admin: AuthenticatedUser = Depends(require_admin),
    service: InvoiceService = Depends(get_invoice_service),
    db: AsyncSession = Depends(get_db),
):
    """Invoice details for a paid order, issuing the invoice if needed."""
    invoice, order = await service.get_or_create_invoice(order_id)
    await db.commit()

    return success_response(
        InvoiceResponse(
            invoice_number=invoice.invoice_number,
            status=invoice.status,
            issued_at=invoice.issued_at,
            sent_to=invoice.sent_to,
            sent_at=invoice.sent_at,
            order=OrderResponse.model_validate(order),
        )
    )
