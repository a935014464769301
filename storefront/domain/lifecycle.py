"""Order and review status lifecycles.

Both are explicit transition tables. A same-state update is always allowed
and is a no-op for the caller; anything not listed raises InvalidTransition.
"""

from typing import Mapping

from storefront.db.models import OrderStatus, ReviewStatus
from storefront.domain.errors import InvalidTransition, ValidationFailed

ORDER_TRANSITIONS: Mapping[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset(
        {OrderStatus.SHIPPED, OrderStatus.CANCELLED, OrderStatus.REFUNDED}
    ),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.REFUNDED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}

# Nothing returns to pending once moderated
REVIEW_TRANSITIONS: Mapping[ReviewStatus, frozenset[ReviewStatus]] = {
    ReviewStatus.PENDING: frozenset({ReviewStatus.APPROVED, ReviewStatus.REJECTED}),
    ReviewStatus.APPROVED: frozenset({ReviewStatus.REJECTED}),
    ReviewStatus.REJECTED: frozenset({ReviewStatus.APPROVED}),
}


def parse_order_status(value: str) -> OrderStatus:
    """Parse a status string, rejecting values outside OrderStatus.

    Raises:
        ValidationFailed: If the value is not a known order status
    """
    try:
        return OrderStatus(value.strip().lower())
    except (ValueError, AttributeError):
        raise ValidationFailed(
            f"Unsupported order status: {value!r}",
            details={"allowed": [s.value for s in OrderStatus]},
        )


def parse_review_status(value: str) -> ReviewStatus:
    try:
        return ReviewStatus(value.strip().lower())
    except (ValueError, AttributeError):
        raise ValidationFailed(
            f"Unsupported review status: {value!r}",
            details={"allowed": [s.value for s in ReviewStatus]},
        )


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    """Return True if an order may move from current to requested."""
    if current == requested:
        return True
    return requested in ORDER_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: OrderStatus, requested: OrderStatus) -> None:
    """Raise InvalidTransition unless current -> requested is allowed."""
    if not can_transition(current, requested):
        raise InvalidTransition(current.value, requested.value, entity="order")


def can_transition_review(current: ReviewStatus, requested: ReviewStatus) -> bool:
    if current == requested:
        return True
    return requested in REVIEW_TRANSITIONS.get(current, frozenset())


def ensure_review_transition(current: ReviewStatus, requested: ReviewStatus) -> None:
    if not can_transition_review(current, requested):
        raise InvalidTransition(current.value, requested.value, entity="review")
