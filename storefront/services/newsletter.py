"""Newsletter subscriptions and preferences.

Subscriber state lives only in the database. Each email has at most one
row: unsubscribing deactivates it and subscribing again reactivates it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.models import (
    DEFAULT_NEWSLETTER_PREFERENCES,
    NEWSLETTER_FREQUENCIES,
    NewsletterSubscription,
)
from storefront.db.session import get_db
from storefront.domain.error_codes import ErrorCode
from storefront.domain.errors import AlreadyExistsError, NotFoundError, ValidationFailed
from storefront.logging_config import get_logger
from storefront.services.email import EmailService

logger = get_logger(__name__)


def merge_preferences(
    current: Optional[Dict[str, Any]],
    updates: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    """Overlay non-None updates on current preferences (or the defaults).

    Raises:
        ValidationFailed: If frequency is not weekly, biweekly or monthly
    """
    merged = dict(DEFAULT_NEWSLETTER_PREFERENCES)
    merged.update({k: v for k, v in (current or {}).items() if k in merged})
    for key, value in (updates or {}).items():
        if key in merged and value is not None:
            merged[key] = value

    if merged["frequency"] not in NEWSLETTER_FREQUENCIES:
        raise ValidationFailed(
            f"Unsupported frequency: {merged['frequency']!r}",
            details={"allowed": list(NEWSLETTER_FREQUENCIES)},
        )
    return merged


@dataclass
class SubscribeResult:
    subscription: NewsletterSubscription
    created: bool
    reactivated: bool


class NewsletterService:
    """Subscribe, unsubscribe and manage preferences."""

    def __init__(self, session: AsyncSession, email_service: Optional[EmailService] = None):
        self.session = session
        self.email_service = email_service or EmailService()

    async def _find_by_email(self, email: str) -> Optional[NewsletterSubscription]:
        result = await self.session.execute(
            select(NewsletterSubscription).where(NewsletterSubscription.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def _find_by_token(self, token: str) -> Optional[NewsletterSubscription]:
        result = await self.session.execute(
            select(NewsletterSubscription).where(NewsletterSubscription.unsubscribe_token == token)
        )
        return result.scalar_one_or_none()

    async def subscribe(
        self,
        email: str,
        preferences: Optional[Dict[str, Any]] = None,
    ) -> SubscribeResult:
        """Subscribe an email address.

        Raises:
            AlreadyExistsError: The address is already actively subscribed, or a
                concurrent request subscribed it first
        """
        subscription = await self._find_by_email(email)

        if subscription is not None and subscription.is_active:
            raise AlreadyExistsError("Already subscribed")

        if subscription is not None:
            subscription.is_active = True
            subscription.unsubscribed_at = None
            subscription.preferences = merge_preferences(subscription.preferences, preferences)
            result = SubscribeResult(subscription, created=False, reactivated=True)
        else:
            subscription = NewsletterSubscription(
                email=email.lower(),
                is_active=True,
                preferences=merge_preferences(None, preferences),
            )
            self.session.add(subscription)
            result = SubscribeResult(subscription, created=True, reactivated=False)

        try:
            await self.session.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent subscribe for the same address
            raise AlreadyExistsError("Already subscribed") from e
        logger.info(
            "Newsletter subscription",
            extra={"is_new": result.created, "reactivated": result.reactivated},
        )

        await self._send_welcome(subscription)
        return result

    async def _send_welcome(self, subscription: NewsletterSubscription) -> None:
        """Best-effort welcome email; failures never undo the subscription."""
        if not self.email_service.is_configured:
            logger.debug("Email not configured, skipping newsletter welcome")
            return
        try:
            await self.email_service.send_newsletter_welcome(
                subscription.email, subscription.unsubscribe_token
            )
        except Exception as e:
            logger.warning(f"Failed to send newsletter welcome email: {e}")

    async def unsubscribe(
        self,
        email: Optional[str] = None,
        token: Optional[str] = None,
    ) -> NewsletterSubscription:
        """Deactivate a subscription by email or unsubscribe token.

        Unsubscribing an inactive subscription is a no-op.

        Raises:
            ValidationFailed: Neither email nor token given
            NotFoundError: No matching subscriber
        """
        if not email and not token:
            raise ValidationFailed(
                "Email or token is required",
                error_code=ErrorCode.VAL_REQUIRED_FIELD,
            )

        subscription = await self._find_by_token(token) if token else await self._find_by_email(email)
        if subscription is None:
            raise NotFoundError("Subscriber")

        if subscription.is_active:
            subscription.is_active = False
            subscription.unsubscribed_at = datetime.now(timezone.utc)
            await self.session.flush()
            logger.info("Newsletter unsubscribe", extra={"subscription_id": str(subscription.id)})
        return subscription

    async def get_preferences(self, email: str) -> Dict[str, Any]:
        """Stored preferences, or the defaults for unknown addresses."""
        subscription = await self._find_by_email(email)
        stored = subscription.preferences if subscription is not None else None
        return merge_preferences(stored, None)

    async def update_preferences(self, email: str, updates: Dict[str, Any]) -> NewsletterSubscription:
        """Merge updates into a subscriber's preferences.

        Raises:
            NotFoundError: No subscriber with this email
            ValidationFailed: Invalid frequency
        """
        subscription = await self._find_by_email(email)
        if subscription is None:
            raise NotFoundError("Subscriber")

        subscription.preferences = merge_preferences(subscription.preferences, updates)
        await self.session.flush()
        return subscription

    async def stats(self) -> Dict[str, int]:
        result = await self.session.execute(
            select(
                func.count(NewsletterSubscription.id),
                func.count(NewsletterSubscription.id).filter(
                    NewsletterSubscription.is_active.is_(True)
                ),
            )
        )
        total, active = result.one()
        return {"active_subscribers": active, "total_subscribers": total}


def get_newsletter_service(db: AsyncSession = Depends(get_db)) -> NewsletterService:
    return NewsletterService(db)
