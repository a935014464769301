"""Pydantic models for Storefront API requests and responses.

Every JSON response is wrapped in the envelope
``{"success": true, "data": ..., "message": ...}``; errors use
``{"success": false, "error": ..., "error_code": ..., "details": ...}``.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from storefront.db.models import (
    DiscountType,
    InvoiceStatus,
    LoyaltyTier,
    OrderStatus,
    PaymentStatus,
    PointsTransactionType,
    RefundStatus,
    ReviewStatus,
)


def success_response(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Wrap a payload in the success envelope."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    elif isinstance(data, list):
        data = [
            item.model_dump(mode="json") if isinstance(item, BaseModel) else item
            for item in data
        ]
    return {"success": True, "data": data, "message": message}


# =============================================================================
# Orders
# =============================================================================


class OrderItemResponse(BaseModel):
    """Order line item."""

    id: UUID
    product_id: Optional[UUID] = None
    name: str
    sku: Optional[str] = None
    unit_price_cents: int
    quantity: int
    line_total_cents: int

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    """Order with its line items."""

    id: UUID
    order_number: str
    email: str
    status: OrderStatus
    payment_status: PaymentStatus
    subtotal_cents: int
    tax_cents: int
    shipping_cents: int
    total_cents: int
    currency: str
    tracking_number: Optional[str] = None
    shipping_address: Optional[Dict[str, Any]] = None
    delivered_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    items: List[OrderItemResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class OrderListResponse(BaseModel):
    """Paginated order list."""

    orders: List[OrderResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    pages: int = Field(..., ge=0)


class OrderStatusUpdateRequest(BaseModel):
    """Status change for an order identified in the body."""

    order_id: UUID = Field(..., description="Order to update")
    status: str = Field(..., min_length=1, description="Target status")
    tracking_number: Optional[str] = Field(default=None, max_length=64)

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "order_id": "7d9f1c3e-2a4b-4c5d-8e6f-0a1b2c3d4e5f",
                "status": "shipped",
                "tracking_number": "1Z999AA10123456784",
            }
        },
    )


class OrderStatusPathUpdateRequest(BaseModel):
    """Status change for an order identified in the path."""

    status: str = Field(..., min_length=1, description="Target status")
    tracking_number: Optional[str] = Field(default=None, max_length=64)

    model_config = ConfigDict(str_strip_whitespace=True)


class OrderEmailRequest(BaseModel):
    """Message from staff to the customer about an order."""

    to: EmailStr
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=10000)

    model_config = ConfigDict(str_strip_whitespace=True)


# =============================================================================
# Reviews
# =============================================================================


class ReviewResponse(BaseModel):
    """Review as seen by moderators."""

    id: UUID
    product_id: UUID
    user_id: UUID
    rating: int
    comment: str
    status: ReviewStatus
    helpful: int = 0
    product_name: Optional[str] = None
    user_name: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewListResponse(BaseModel):
    reviews: List[ReviewResponse]
    total: int = Field(..., ge=0)
    status: str


class ReviewModerationRequest(BaseModel):
    """Moderation decision."""

    status: str = Field(..., min_length=1, description="approved or rejected")

    model_config = ConfigDict(str_strip_whitespace=True)


# =============================================================================
# Checkout
# =============================================================================


class CartItem(BaseModel):
    product_id: UUID
    quantity: int = Field(..., ge=1, le=99)


class CheckoutInitRequest(BaseModel):
    """Cart submitted for payment."""

    cart_items: List[CartItem] = Field(..., min_length=1)
    email: EmailStr
    shipping_address: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "cart_items": [
                    {"product_id": "7d9f1c3e-2a4b-4c5d-8e6f-0a1b2c3d4e5f", "quantity": 2}
                ],
                "email": "customer@example.com",
                "shipping_address": {
                    "line1": "1 Market St",
                    "city": "San Francisco",
                    "postal_code": "94105",
                    "country": "US",
                },
            }
        }
    )


class CheckoutSessionResponse(BaseModel):
    session_id: str
    checkout_url: Optional[str] = None
    order_id: UUID
    total_cents: int


class CheckoutConfirmRequest(BaseModel):
    session_id: str = Field(..., min_length=1)

    model_config = ConfigDict(str_strip_whitespace=True)


class CheckoutConfirmResponse(BaseModel):
    order_id: UUID
    order_number: str
    status: OrderStatus
    payment_status: PaymentStatus
    already_confirmed: bool = False


# =============================================================================
# Refunds and invoices
# =============================================================================


class RefundRequest(BaseModel):
    """Refund request for a paid order."""

    order_id: UUID = Field(..., description="Order to refund")
    reason: Optional[str] = Field(default=None, max_length=500)
    amount_cents: Optional[int] = Field(
        default=None,
        gt=0,
        description="Partial amount; defaults to the remaining refundable total",
    )


class RefundResponse(BaseModel):
    id: UUID
    order_id: UUID
    amount_cents: int
    reason: Optional[str] = None
    status: RefundStatus
    stripe_refund_id: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class InvoiceResponse(BaseModel):
    """Invoice metadata with the invoiced order."""

    invoice_number: str
    status: InvoiceStatus
    issued_at: datetime
    sent_to: Optional[str] = None
    sent_at: Optional[datetime] = None
    order: OrderResponse


class InvoiceSendRequest(BaseModel):
    recipient_email: Optional[EmailStr] = Field(
        default=None,
        description="Defaults to the order's email",
    )


# =============================================================================
# Analytics
# =============================================================================


class DailyRevenue(BaseModel):
    date: date
    revenue_cents: int
    orders: int


class TopProduct(BaseModel):
    product_id: Optional[UUID] = None
    name: str
    quantity: int
    revenue_cents: int


class AnalyticsResponse(BaseModel):
    """Business metrics for the admin dashboard."""

    total_revenue_cents: int
    total_orders: int
    average_order_value_cents: int
    orders_by_status: Dict[str, int]
    revenue_by_day: List[DailyRevenue]
    top_products: List[TopProduct]
    total_customers: int
    total_products: int
    period_days: int


# =============================================================================
# Loyalty
# =============================================================================


class RewardResponse(BaseModel):
    id: UUID
    name: str
    description: str
    points_cost: int
    discount_type: DiscountType
    discount_value: int
    expires_at: Optional[datetime] = None
    affordable: bool = False


class RewardListResponse(BaseModel):
    rewards: List[RewardResponse]
    points_balance: int


class RedeemRewardRequest(BaseModel):
    user_id: UUID


class RedemptionResponse(BaseModel):
    redemption_id: UUID
    reward_id: UUID
    code: str
    points_spent: int
    points_balance: int


class LoyaltyAccountResponse(BaseModel):
    user_id: UUID
    points_balance: int
    points_earned: int
    points_redeemed: int
    tier: LoyaltyTier
    points_to_next_tier: Optional[int] = None


class BonusPointsRequest(BaseModel):
    user_id: UUID
    points: int = Field(..., gt=0)
    reason: str = Field(..., min_length=1, max_length=255)
    order_id: Optional[UUID] = None


class PointsTransactionResponse(BaseModel):
    id: UUID
    points: int
    type: PointsTransactionType
    reason: str
    order_id: Optional[UUID] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TierBenefitsResponse(BaseModel):
    tier: LoyaltyTier
    min_points: int
    benefits: List[str]


# =============================================================================
# Newsletter
# =============================================================================

Frequency = Literal["weekly", "biweekly", "monthly"]


class NewsletterPreferences(BaseModel):
    """Full preference set as stored."""

    newsletter: bool = True
    promotions: bool = True
    new_products: bool = True
    weekly_digest: bool = False
    frequency: Frequency = "weekly"


class NewsletterPreferencesPatch(BaseModel):
    """Partial preference update; unset keys keep their current value."""

    newsletter: Optional[bool] = None
    promotions: Optional[bool] = None
    new_products: Optional[bool] = None
    weekly_digest: Optional[bool] = None
    frequency: Optional[Frequency] = None


class NewsletterSubscribeRequest(BaseModel):
    email: EmailStr
    preferences: Optional[NewsletterPreferencesPatch] = None


class NewsletterUnsubscribeRequest(BaseModel):
    email: Optional[EmailStr] = None
    token: Optional[str] = Field(default=None, min_length=1)


class NewsletterPreferencesUpdateRequest(BaseModel):
    email: EmailStr
    preferences: NewsletterPreferencesPatch


class NewsletterSubscriptionResponse(BaseModel):
    email: str
    is_active: bool
    preferences: NewsletterPreferences
    subscribed_at: Optional[datetime] = None


class NewsletterStatsResponse(BaseModel):
    active_subscribers: int
    total_subscribers: int


# =============================================================================
# SMS
# =============================================================================


class SmsSendRequest(BaseModel):
    """Outbound SMS. Blank strings count as missing."""

    user_id: UUID
    phone_number: str = Field(..., min_length=1, max_length=32)
    message: str = Field(..., min_length=1, max_length=1600)

    model_config = ConfigDict(str_strip_whitespace=True)


class SmsSubscribeRequest(BaseModel):
    user_id: UUID
    phone_number: str = Field(..., min_length=1, max_length=32)

    model_config = ConfigDict(str_strip_whitespace=True)


class SmsMessageResponse(BaseModel):
    id: UUID
    phone_number: str
    status: str
    provider_message_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SmsSubscriptionResponse(BaseModel):
    id: UUID
    user_id: UUID
    phone_number: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Search
# =============================================================================

SearchSort = Literal["relevance", "price-low", "price-high", "rating", "newest"]


class ProductSearchResult(BaseModel):
    id: UUID
    name: str
    slug: str
    description: str
    category: str
    price_cents: int
    stock: int
    rating: float
    review_count: int
    image_public_id: Optional[str] = None
    relevance: int = 0


class SearchResponse(BaseModel):
    results: List[ProductSearchResult]
    total: int
    page: int
    limit: int
    pages: int = 0
    facets: Dict[str, Dict[str, int]]


# =============================================================================
# Cloudinary
# =============================================================================


class CloudinaryManageRequest(BaseModel):
    """Media management action."""

    action: str = Field(..., min_length=1, description="tag or organize")
    public_ids: Optional[List[str]] = None
    tags: Optional[List[str]] = None

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "action": "tag",
                "public_ids": ["products/ceramic-vase-01"],
                "tags": ["featured", "spring"],
            }
        },
    )
