"""Review moderation."""

from __future__ import annotations

from typing import Optional, Sequence
from uuid import UUID

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.models import Product, Review, ReviewStatus
from storefront.db.session import get_db
from storefront.domain.errors import NotFoundError
from storefront.domain.lifecycle import ensure_review_transition, parse_review_status
from storefront.logging_config import get_logger

logger = get_logger(__name__)

REVIEW_PAGE_SIZE = 50


class ReviewService:
    """List and moderate customer reviews."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_reviews(self, status: Optional[str] = "pending") -> Sequence[Review]:
        """Newest reviews in a status, or in any status for ``all``."""
        query = select(Review)
        status = (status or "pending").strip().lower()
        if status != "all":
            query = query.where(Review.status == parse_review_status(status))

        result = await self.session.execute(
            query.order_by(Review.created_at.desc()).limit(REVIEW_PAGE_SIZE)
        )
        return result.unique().scalars().all()

    async def moderate(self, review_id: UUID, status: str) -> Review:
        """Approve or reject a review.

        Database errors propagate so a failed write is never reported as
        success.

        Raises:
            ValidationFailed: Unknown status string
            NotFoundError: No such review
            InvalidTransition: Move not allowed (e.g. back to pending)
        """
        new_status = parse_review_status(status)

        result = await self.session.execute(select(Review).where(Review.id == review_id))
        review = result.unique().scalar_one_or_none()
        if review is None:
            raise NotFoundError("Review", review_id)

        if review.status == new_status:
            return review

        ensure_review_transition(review.status, new_status)
        review.status = new_status
        await self.session.flush()
        await self._refresh_product_rating(review.product_id)

        logger.info(
            "Review moderated",
            extra={"review_id": str(review_id), "status": new_status.value},
        )
        return review

    async def _refresh_product_rating(self, product_id: UUID) -> None:
        """Recompute the product's rating from its approved reviews."""
        result = await self.session.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(
                Review.product_id == product_id,
                Review.status == ReviewStatus.APPROVED,
            )
        )
        average, count = result.one()

        product = await self.session.get(Product, product_id)
        if product is None:
            return
        product.rating = round(float(average), 2) if average is not None else 0.0
        product.review_count = count or 0
        await self.session.flush()


def get_review_service(db: AsyncSession = Depends(get_db)) -> ReviewService:
    return ReviewService(db)
