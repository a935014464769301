"""Product search and autocomplete over the active catalog."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from fastapi import Depends
from sqlalchemy import Select, case, func, literal, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.models import Product
from storefront.db.session import get_db
from storefront.domain.errors import ValidationFailed
from storefront.logging_config import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100
MIN_AUTOCOMPLETE_LENGTH = 2
DEFAULT_AUTOCOMPLETE_LIMIT = 8

SORT_OPTIONS = ("relevance", "price-low", "price-high", "rating", "newest")


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def relevance_expression(q: Optional[str]):
    """SQL score: name prefix 3, name contains 2, description or category contains 1."""
    if not q:
        return literal(0)
    term = _escape_like(q)
    return case(
        (Product.name.ilike(f"{term}%", escape="\\"), 3),
        (Product.name.ilike(f"%{term}%", escape="\\"), 2),
        (
            or_(
                Product.description.ilike(f"%{term}%", escape="\\"),
                Product.category.ilike(f"%{term}%", escape="\\"),
            ),
            1,
        ),
        else_=0,
    )


class SearchService:
    """Catalog queries for the search page and the search box."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _filtered(
        self,
        stmt: Select,
        q: Optional[str],
        category: Optional[str],
        min_price: Optional[int],
        max_price: Optional[int],
        in_stock: Optional[bool],
    ) -> Select:
        stmt = stmt.where(Product.is_active.is_(True))
        if q:
            term = f"%{_escape_like(q)}%"
            stmt = stmt.where(
                or_(
                    Product.name.ilike(term, escape="\\"),
                    Product.description.ilike(term, escape="\\"),
                    Product.category.ilike(term, escape="\\"),
                )
            )
        if category:
            stmt = stmt.where(func.lower(Product.category) == category.lower())
        if min_price is not None:
            stmt = stmt.where(Product.price_cents >= min_price)
        if max_price is not None:
            stmt = stmt.where(Product.price_cents <= max_price)
        if in_stock:
            stmt = stmt.where(Product.stock > 0)
        return stmt

    async def search(
        self,
        q: Optional[str] = None,
        *,
        category: Optional[str] = None,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
        in_stock: Optional[bool] = None,
        sort: str = "relevance",
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        """Filtered, ranked and paginated product search.

        Category facets are counted over every other filter, so the facet
        list still offers sibling categories when one is selected.

        Raises:
            ValidationFailed: Unknown sort or min_price above max_price
        """
        if sort not in SORT_OPTIONS:
            raise ValidationFailed(
                f"Unsupported sort: {sort!r}",
                details={"allowed": list(SORT_OPTIONS)},
            )
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationFailed("min_price cannot exceed max_price")

        q = (q or "").strip() or None
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        page = max(1, page)

        relevance = relevance_expression(q).label("relevance")
        stmt = self._filtered(
            select(Product, relevance), q, category, min_price, max_price, in_stock
        )

        order_by = {
            "relevance": (relevance.desc(), Product.rating.desc(), Product.name.asc()),
            "price-low": (Product.price_cents.asc(), Product.name.asc()),
            "price-high": (Product.price_cents.desc(), Product.name.asc()),
            "rating": (Product.rating.desc(), Product.review_count.desc()),
            "newest": (Product.created_at.desc(),),
        }[sort]

        count_stmt = self._filtered(
            select(func.count(Product.id)), q, category, min_price, max_price, in_stock
        )
        total = (await self.session.execute(count_stmt)).scalar_one()

        result = await self.session.execute(
            stmt.order_by(*order_by).offset((page - 1) * limit).limit(limit)
        )
        results = []
        for product, score in result.all():
            results.append({
                "id": product.id,
                "name": product.name,
                "slug": product.slug,
                "description": product.description,
                "category": product.category,
                "price_cents": product.price_cents,
                "stock": product.stock,
                "rating": product.rating,
                "review_count": product.review_count,
                "image_public_id": product.image_public_id,
                "relevance": int(score or 0),
            })

        facet_stmt = self._filtered(
            select(Product.category, func.count(Product.id)),
            q, None, min_price, max_price, in_stock,
        ).group_by(Product.category)
        facet_rows = (await self.session.execute(facet_stmt)).all()

        logger.debug(f"Search q={q!r} sort={sort} returned {total} products")
        return {
            "results": results,
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit) if total else 0,
            "facets": {"categories": {name: count for name, count in facet_rows}},
        }

    async def autocomplete(self, q: Optional[str], limit: int = DEFAULT_AUTOCOMPLETE_LIMIT) -> List[str]:
        """Distinct product names matching the query, prefix matches first."""
        term = (q or "").strip()
        if len(term) < MIN_AUTOCOMPLETE_LENGTH:
            return []

        limit = max(1, min(limit, MAX_PAGE_SIZE))
        escaped = _escape_like(term)
        rank = case((Product.name.ilike(f"{escaped}%", escape="\\"), 0), else_=1)

        result = await self.session.execute(
            select(Product.name, func.min(rank).label("rank"))
            .where(
                Product.is_active.is_(True),
                Product.name.ilike(f"%{escaped}%", escape="\\"),
            )
            .group_by(Product.name)
            .order_by("rank", Product.name.asc())
            .limit(limit)
        )
        return [name for name, _ in result.all()]


def get_search_service(db: AsyncSession = Depends(get_db)) -> SearchService:
    return SearchService(db)
