"""Newsletter routes: subscribe, unsubscribe and preferences.

``POST /newsletter`` is the footer signup form (201 on a new subscriber);
``POST /newsletter/subscribe`` is the preference-center signup.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.auth import AuthenticatedUser, require_admin
from storefront.api.models import (
    NewsletterPreferences,
    NewsletterPreferencesUpdateRequest,
    NewsletterStatsResponse,
    NewsletterSubscribeRequest,
    NewsletterSubscriptionResponse,
    NewsletterUnsubscribeRequest,
    success_response,
)
from storefront.db.models import NewsletterSubscription
from storefront.db.session import get_db
from storefront.domain.error_codes import ErrorCode
from storefront.domain.errors import ValidationFailed
from storefront.services.newsletter import NewsletterService, get_newsletter_service

router = APIRouter(prefix="/newsletter", tags=["newsletter"])


def _to_response(subscription: NewsletterSubscription) -> NewsletterSubscriptionResponse:
    return NewsletterSubscriptionResponse(
        email=subscription.email,
        is_active=subscription.is_active,
        preferences=NewsletterPreferences(**subscription.preferences),
        subscribed_at=subscription.created_at,
    )


async def _subscribe(
    request: NewsletterSubscribeRequest,
    service: NewsletterService,
    db: AsyncSession,
):
    patch = request.preferences.model_dump(exclude_none=True) if request.preferences else None
    result = await service.subscribe(request.email, patch)
    await db.commit()

    message = "Welcome back! Your subscription is active again" if result.reactivated else "Subscribed"
    body = success_response(_to_response(result.subscription), message=message)
    if not result.created:
        return JSONResponse(status_code=status.HTTP_200_OK, content=body)
    return body


@router.post("", status_code=status.HTTP_201_CREATED)
async def subscribe(
    request: NewsletterSubscribeRequest,
    service: NewsletterService = Depends(get_newsletter_service),
    db: AsyncSession = Depends(get_db),
):
    """Subscribe an email address.

    201 for a new subscriber, 200 when an inactive one is reactivated and
    409 when the address is already subscribed.
    """
    return await _subscribe(request, service, db)


@router.post("/subscribe")
async def subscribe_with_preferences(
    request: NewsletterSubscribeRequest,
    service: NewsletterService = Depends(get_newsletter_service),
    db: AsyncSession = Depends(get_db),
):
    """Subscribe with preferences from the preference center."""
    return await _subscribe(request, service, db)


@router.post("/unsubscribe")
async def unsubscribe(
    request: NewsletterUnsubscribeRequest,
    service: NewsletterService = Depends(get_newsletter_service),
    db: AsyncSession = Depends(get_db),
):
    """Unsubscribe by email or by the token from an email footer."""
    subscription = await service.unsubscribe(email=request.email, token=request.token)
    await db.commit()
    return success_response(
        {"email": subscription.email, "is_active": subscription.is_active},
        message="Unsubscribed",
    )


@router.get("/preferences")
async def get_preferences(
    email: Optional[str] = Query(default=None),
    service: NewsletterService = Depends(get_newsletter_service),
):
    """Stored preferences for an email, or the defaults."""
    email = (email or "").strip()
    if not email:
        raise ValidationFailed("Email is required", error_code=ErrorCode.VAL_REQUIRED_FIELD)

    preferences = await service.get_preferences(email)
    return success_response({"email": email.lower(), "preferences": preferences})


@router.put("/preferences")
async def update_preferences(
    request: NewsletterPreferencesUpdateRequest,
    service: NewsletterService = Depends(get_newsletter_service),
    db: AsyncSession = Depends(get_db),
):
    """Update a subscriber's preferences. Only provided keys change."""
    subscription = await service.update_preferences(
        request.email, request.preferences.model_dump(exclude_none=True)
    )
    await db.commit()
    return success_response(_to_response(subscription), message="Preferences updated")


@router.get("/stats")
async def get_stats(
    admin: AuthenticatedUser = Depends(require_admin),
    service: NewsletterService = Depends(get_newsletter_service),
):
    stats = await service.stats()
    return success_response(NewsletterStatsResponse(**stats))
