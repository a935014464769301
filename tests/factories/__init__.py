"""Factory Boy factories for Storefront database models.

Usage:
    from tests.factories import OrderFactory, ProductFactory

    # Build without a database
    order = OrderFactory.build(paid=True)
"""

from .base import ModelFactory, short_id
from .catalog import ProductFactory, ReviewFactory
from .engagement import (
    LoyaltyAccountFactory,
    NewsletterSubscriptionFactory,
    PointsTransactionFactory,
    RewardFactory,
    SmsSubscriptionFactory,
)
from .order import (
    InvoiceFactory,
    OrderFactory,
    OrderItemFactory,
    RefundFactory,
)
from .user import UserFactory

__all__ = [
    "ModelFactory",
    "short_id",
    "UserFactory",
    "ProductFactory",
    "ReviewFactory",
    "OrderFactory",
    "OrderItemFactory",
    "RefundFactory",
    "InvoiceFactory",
    "NewsletterSubscriptionFactory",
    "RewardFactory",
    "LoyaltyAccountFactory",
    "PointsTransactionFactory",
    "SmsSubscriptionFactory",
]
