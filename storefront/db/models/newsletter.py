"""Newsletter subscription model."""

import secrets
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin, generate_repr

NEWSLETTER_FREQUENCIES = ("weekly", "biweekly", "monthly")

DEFAULT_NEWSLETTER_PREFERENCES: dict[str, Any] = {
    "newsletter": True,
    "promotions": True,
    "new_products": True,
    "weekly_digest": False,
    "frequency": "weekly",
}


def generate_unsubscribe_token() -> str:
    return secrets.token_urlsafe(32)


class NewsletterSubscription(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Email newsletter subscriber.

    A row is never duplicated per email: unsubscribing flips is_active and
    resubscribing flips it back.

    Attributes:
        email: Subscriber email (stored lowercase)
        is_active: Whether mail should be sent
        unsubscribe_token: Opaque token for one-click unsubscribe links
        preferences: Content and frequency preferences
        unsubscribed_at: When the subscriber last opted out
    """

    __tablename__ = "newsletter_subscriptions"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    unsubscribe_token: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        default=generate_unsubscribe_token,
    )
    preferences: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=lambda: dict(DEFAULT_NEWSLETTER_PREFERENCES),
    )
    unsubscribed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return generate_repr(self, "id", "email", "is_active")
