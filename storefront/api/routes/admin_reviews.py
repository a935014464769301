"""Admin review moderation routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.auth import AuthenticatedUser, require_admin
from storefront.api.models import (
    ReviewListResponse,
    ReviewModerationRequest,
    ReviewResponse,
    success_response,
)
from storefront.db.models import Review
from storefront.db.session import get_db
from storefront.logging_config import get_logger
from storefront.services.reviews import ReviewService, get_review_service

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/reviews", tags=["admin"])


def _to_response(review: Review) -> ReviewResponse:
    response = ReviewResponse.model_validate(review)
    response.product_name = review.product.name if review.product else None
    response.user_name = review.user.name if review.user else None
    return response


@router.get("")
async def list_reviews(
    status: str = Query(default="pending", description="pending, approved, rejected or all"),
    admin: AuthenticatedUser = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
):
    """List reviews awaiting moderation (or in another status)."""
    reviews = await service.list_reviews(status)
    return success_response(
        ReviewListResponse(
            reviews=[_to_response(review) for review in reviews],
            total=len(reviews),
            status=status.strip().lower(),
        )
    )


@router.put("/{review_id}")
async def moderate_review(
    review_id: UUID,
    request: ReviewModerationRequest,
    admin: AuthenticatedUser = Depends(require_admin),
    service: ReviewService = Depends(get_review_service),
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject a review.

    The commit happens before the response is built, so a database failure
    returns 500 rather than a success envelope.
    """
    review = await service.moderate(review_id, request.status)
    await db.commit()

    logger.info(
        f"Review {review.id} moderated to {review.status.value}",
        extra={"review_id": str(review.id), "admin_id": admin.user_id},
    )
    return success_response(
        _to_response(review),
        message=f"Review {review.status.value}",
    )
