"""Order exports for the admin dashboard."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.models import Order
from storefront.db.session import get_db
from storefront.domain.errors import ValidationFailed
from storefront.logging_config import LogContext, get_logger
from storefront.reporters import BaseOrderReporter, OrdersCSVReporter, OrdersExcelReporter

logger = get_logger(__name__)

REPORTERS: Dict[str, type[BaseOrderReporter]] = {
    "csv": OrdersCSVReporter,
    "excel": OrdersExcelReporter,
}


@dataclass
class ExportFile:
    content: bytes
    media_type: str
    filename: str


class ExportService:
    """Render all orders as a downloadable file."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def export_orders(self, export_format: str = "csv") -> ExportFile:
        """Export every order, newest first.

        Raises:
            ValidationFailed: Unsupported format
        """
        reporter_cls = REPORTERS.get(export_format.lower())
        if reporter_cls is None:
            raise ValidationFailed(
                f"Unsupported export format: {export_format!r}",
                details={"allowed": sorted(REPORTERS)},
            )
        reporter = reporter_cls()

        with LogContext(operation="export_orders", format=export_format):
            result = await self.session.execute(select(Order).order_by(Order.created_at.desc()))
            orders = result.scalars().all()
            content = await asyncio.to_thread(reporter.generate, orders)

        stamp = datetime.now(timezone.utc).strftime("%Y%m%d")
        return ExportFile(
            content=content,
            media_type=reporter.media_type,
            filename=reporter.filename(stamp),
        )


def get_export_service(db: AsyncSession = Depends(get_db)) -> ExportService:
    return ExportService(db)
