"""Admin dashboard metrics."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List

from fastapi import Depends
from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.models import Order, OrderItem, PaymentStatus, Product, Refund, RefundStatus
from storefront.db.session import get_db
from storefront.logging_config import get_logger

logger = get_logger(__name__)

# Orders whose payment was captured at some point
PAID_STATUSES = (PaymentStatus.COMPLETED, PaymentStatus.REFUNDED)
TOP_PRODUCTS_LIMIT = 5


class AnalyticsService:
    """Aggregate order, customer and product metrics."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_metrics(self, days: int = 30) -> Dict[str, Any]:
        """Compute dashboard metrics.

        Revenue counts captured payments net of succeeded refunds. Daily
        revenue covers the last ``days`` days including today.
        """
        paid = Order.payment_status.in_(PAID_STATUSES)

        gross_result = await self.session.execute(
            select(func.coalesce(func.sum(Order.total_cents), 0), func.count(Order.id)).where(paid)
        )
        gross_cents, paid_orders = gross_result.one()

        refunded_result = await self.session.execute(
            select(func.coalesce(func.sum(Refund.amount_cents), 0)).where(
                Refund.status == RefundStatus.SUCCEEDED
            )
        )
        refunded_cents = refunded_result.scalar_one()

        total_orders = (
            await self.session.execute(select(func.count(Order.id)))
        ).scalar_one()

        status_rows = await self.session.execute(
            select(Order.status, func.count(Order.id)).group_by(Order.status)
        )
        orders_by_status = {status.value: count for status, count in status_rows.all()}

        revenue_by_day = await self._revenue_by_day(days)
        top_products = await self._top_products()

        total_customers = (
            await self.session.execute(select(func.count(distinct(Order.email))))
        ).scalar_one()
        total_products = (
            await self.session.execute(
                select(func.count(Product.id)).where(Product.is_active.is_(True))
            )
        ).scalar_one()

        gross_cents = int(gross_cents)
        return {
            "total_revenue_cents": gross_cents - int(refunded_cents),
            "total_orders": total_orders,
            "average_order_value_cents": gross_cents // paid_orders if paid_orders else 0,
            "orders_by_status": orders_by_status,
            "revenue_by_day": revenue_by_day,
            "top_products": top_products,
            "total_customers": total_customers,
            "total_products": total_products,
            "period_days": days,
        }

    async def _revenue_by_day(self, days: int) -> List[Dict[str, Any]]:
        today = datetime.now(timezone.utc).date()
        start = today - timedelta(days=days - 1)
        since = datetime.combine(start, datetime.min.time(), tzinfo=timezone.utc)

        day = func.date(Order.created_at)
        result = await self.session.execute(
            select(day, func.coalesce(func.sum(Order.total_cents), 0), func.count(Order.id))
            .where(Order.payment_status.in_(PAID_STATUSES), Order.created_at >= since)
            .group_by(day)
        )
        by_day: Dict[date, tuple[int, int]] = {}
        for row_day, revenue, count in result.all():
            if isinstance(row_day, str):
                row_day = date.fromisoformat(row_day)
            by_day[row_day] = (int(revenue), count)

        series = []
        for offset in range(days):
            current = start + timedelta(days=offset)
            revenue, count = by_day.get(current, (0, 0))
            series.append({"date": current, "revenue_cents": revenue, "orders": count})
        return series

    async def _top_products(self) -> List[Dict[str, Any]]:
        revenue = func.sum(OrderItem.unit_price_cents * OrderItem.quantity)
        result = await self.session.execute(
            select(
                OrderItem.product_id,
                OrderItem.name,
                func.sum(OrderItem.quantity),
                revenue,
            )
            .join(Order, Order.id == OrderItem.order_id)
            .where(Order.payment_status.in_(PAID_STATUSES))
            .group_by(OrderItem.product_id, OrderItem.name)
            .order_by(revenue.desc())
            .limit(TOP_PRODUCTS_LIMIT)
        )
        return [
            {
                "product_id": product_id,
                "name": name,
                "quantity": int(quantity),
                "revenue_cents": int(revenue_cents),
            }
            for product_id, name, quantity, revenue_cents in result.all()
        ]


def get_analytics_service(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)
