"""Base reporter for order exports.

Export formats share one column layout so CSV and Excel downloads line up.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Sequence

from storefront.db.models import Order

EXPORT_COLUMNS: List[str] = [
    "Order Number",
    "Created At",
    "Email",
    "Status",
    "Payment Status",
    "Items",
    "Total",
]


def format_cents(cents: int, currency: str = "usd") -> str:
    """Render an amount in the smallest unit as a decimal string."""
    symbol = "$" if currency.lower() == "usd" else f"{currency.upper()} "
    return f"{symbol}{cents / 100:,.2f}"


class BaseOrderReporter(ABC):
    """Abstract base class for order export generators.

    Subclasses turn a sequence of orders into the bytes of one download.
    """

    media_type: str = "application/octet-stream"
    extension: str = "bin"

    @abstractmethod
    def generate(self, orders: Sequence[Order]) -> bytes:
        """Render orders into a downloadable document."""

    def filename(self, stamp: str) -> str:
        return f"orders-{stamp}.{self.extension}"

    def _row(self, order: Order) -> List[Any]:
        items = "; ".join(f"{item.name} x{item.quantity}" for item in order.items)
        created = order.created_at.isoformat() if order.created_at else ""
        return [
            order.order_number,
            created,
            order.email,
            order.status.value,
            order.payment_status.value,
            items,
            order.total_cents / 100,
        ]
