"""Product search routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from storefront.api.models import SearchResponse, SearchSort, success_response
from storefront.services.search import (
    DEFAULT_AUTOCOMPLETE_LIMIT,
    MAX_PAGE_SIZE,
    SearchService,
    get_search_service,
)

router = APIRouter(prefix="/search", tags=["search"])


@router.get("")
async def search_products(
    q: Optional[str] = Query(default=None, max_length=200),
    category: Optional[str] = Query(default=None),
    min_price: Optional[int] = Query(default=None, ge=0, description="Cents"),
    max_price: Optional[int] = Query(default=None, ge=0, description="Cents"),
    in_stock: Optional[bool] = Query(default=None),
    sort: SearchSort = Query(default="relevance"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
    service: SearchService = Depends(get_search_service),
):
    """Search active products with filters, sorting and category facets."""
    results = await service.search(
        q,
        category=category,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        sort=sort,
        page=page,
        limit=limit,
    )
    return success_response(SearchResponse(**results))


@router.get("/autocomplete")
async def autocomplete(
    q: Optional[str] = Query(default=None, max_length=200),
    limit: int = Query(default=DEFAULT_AUTOCOMPLETE_LIMIT, ge=1, le=20),
    service: SearchService = Depends(get_search_service),
):
    """Product name suggestions for the search box."""
    suggestions = await service.autocomplete(q, limit=limit)
    return success_response(suggestions)
