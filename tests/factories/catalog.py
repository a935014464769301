"""Factories for Product and Review."""

from uuid import uuid4

import factory

from storefront.db.models import Product, Review, ReviewStatus

from .base import ModelFactory, short_id


class ProductFactory(ModelFactory):
    """Factory for creating Product instances.

    Example:
        product = ProductFactory.build(price_cents=4500, stock=3)
    """

    class Meta:
        model = Product

    name = factory.Sequence(lambda n: f"Hand-thrown Mug {n}")
    slug = factory.LazyFunction(lambda: f"product-{short_id()}")
    description = "Stoneware mug glazed by hand."
    category = "ceramics"
    sku = factory.LazyFunction(lambda: f"SKU-{short_id()}")
    price_cents = 2500
    stock = 10
    image_public_id = None
    is_active = True
    rating = 0.0
    review_count = 0
    tags = factory.LazyFunction(list)


class ReviewFactory(ModelFactory):
    """Factory for creating Review instances.

    Example:
        review = ReviewFactory.build(status=ReviewStatus.APPROVED)
    """

    class Meta:
        model = Review

    product_id = factory.LazyFunction(uuid4)
    user_id = factory.LazyFunction(uuid4)
    rating = 5
    comment = "Lovely glaze, sturdy handle."
    status = ReviewStatus.PENDING
    helpful = 0
