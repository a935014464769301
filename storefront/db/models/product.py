"""Product catalog model."""

from typing import Any

from sqlalchemy import JSON, Boolean, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin, generate_repr


class Product(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Sellable catalog item.

    Attributes:
        name: Product name shown in the catalog
        slug: Unique URL slug
        description: Long description (searchable)
        category: Category name used for search facets
        price_cents: Unit price in the smallest currency unit
        stock: Units available
        image_public_id: Cloudinary public id of the primary image
        is_active: Whether the product is listed
        rating: Average approved review rating
        review_count: Number of approved reviews
        tags: Free-form tags
    """

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="general")
    sku: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image_public_id: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tags: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        Index("ix_products_category", "category"),
        Index("ix_products_is_active", "is_active"),
    )

    def __repr__(self) -> str:
        return generate_repr(self, "id", "slug", "price_cents")

    @property
    def in_stock(self) -> bool:
        return self.stock > 0
