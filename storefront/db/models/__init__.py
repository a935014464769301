"""SQLAlchemy ORM models for the Storefront API."""

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from .loyalty import (
    TIER_BENEFITS,
    TIER_THRESHOLDS,
    DiscountType,
    LoyaltyAccount,
    LoyaltyTier,
    PointsTransaction,
    PointsTransactionType,
    Reward,
    RewardRedemption,
)
from .newsletter import (
    DEFAULT_NEWSLETTER_PREFERENCES,
    NEWSLETTER_FREQUENCIES,
    NewsletterSubscription,
)
from .notification import SmsMessage, SmsSubscription
from .order import Order, OrderItem, OrderStatus, PaymentStatus
from .payment import Invoice, InvoiceStatus, Refund, RefundStatus
from .product import Product
from .review import Review, ReviewStatus
from .user import User, UserRole

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    # Users and catalog
    "User",
    "UserRole",
    "Product",
    # Orders
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "Refund",
    "RefundStatus",
    "Invoice",
    "InvoiceStatus",
    # Reviews
    "Review",
    "ReviewStatus",
    # Newsletter
    "NewsletterSubscription",
    "NEWSLETTER_FREQUENCIES",
    "DEFAULT_NEWSLETTER_PREFERENCES",
    # Loyalty
    "Reward",
    "RewardRedemption",
    "LoyaltyAccount",
    "LoyaltyTier",
    "DiscountType",
    "TIER_THRESHOLDS",
    "TIER_BENEFITS",
    "PointsTransaction",
    "PointsTransactionType",
    # SMS
    "SmsSubscription",
    "SmsMessage",
]
