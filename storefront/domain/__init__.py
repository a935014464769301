"""Business rules shared by services: typed errors and status lifecycles."""

from storefront.domain.errors import (
    AlreadyExistsError,
    AlreadyRedeemed,
    ConflictError,
    InsufficientPoints,
    InvalidTransition,
    NotFoundError,
    NotSubscribedError,
    OutOfStockError,
    PaymentRequiredError,
    ProviderError,
    StorefrontError,
    ValidationFailed,
)
from storefront.domain.lifecycle import (
    ORDER_TRANSITIONS,
    REVIEW_TRANSITIONS,
    can_transition,
    can_transition_review,
    ensure_review_transition,
    ensure_transition,
    parse_order_status,
    parse_review_status,
)

__all__ = [
    "StorefrontError",
    "ValidationFailed",
    "NotFoundError",
    "ConflictError",
    "AlreadyExistsError",
    "InvalidTransition",
    "OutOfStockError",
    "InsufficientPoints",
    "AlreadyRedeemed",
    "NotSubscribedError",
    "PaymentRequiredError",
    "ProviderError",
    "ORDER_TRANSITIONS",
    "REVIEW_TRANSITIONS",
    "can_transition",
    "can_transition_review",
    "ensure_transition",
    "ensure_review_transition",
    "parse_order_status",
    "parse_review_status",
]
