"""Product review model."""

import enum
from uuid import UUID

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin, generate_repr
from .product import Product
from .user import User


class ReviewStatus(str, enum.Enum):
    """Moderation status of a review."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Review(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Customer review awaiting or past moderation.

    Attributes:
        product_id: Reviewed product
        user_id: Author
        rating: 1 to 5
        comment: Review text
        status: Moderation status
        helpful: Number of "helpful" votes
    """

    __tablename__ = "reviews"

    product_id: Mapped[UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[ReviewStatus] = mapped_column(
        Enum(
            ReviewStatus,
            name="review_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        default=ReviewStatus.PENDING,
        nullable=False,
    )
    helpful: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    product: Mapped[Product] = relationship(Product, lazy="joined")
    user: Mapped[User] = relationship(User, lazy="joined")

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="rating_range"),
        Index("ix_reviews_status", "status"),
        Index("ix_reviews_product_id", "product_id"),
    )

    def __repr__(self) -> str:
        return generate_repr(self, "id", "product_id", "status")
