"""Cloudinary image tagging and automatic organization.

Uses the Cloudinary SDK. Its calls block, so they run in a worker thread:

    service = CloudinaryService()
    await service.tag(["products/vase-01"], ["featured"])
    summary = await service.organize()
"""

from __future__ import annotations

import asyncio
import os
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader

from storefront.domain.error_codes import ErrorCode
from storefront.domain.errors import ProviderError, ValidationFailed
from storefront.logging_config import LogContext, get_logger

logger = get_logger(__name__)

MAX_RESULTS_PER_PAGE = 500
TAG_BATCH_SIZE = 100

ACTIONS = ("tag", "organize")


@dataclass(frozen=True)
class ImageCategory:
    pattern: re.Pattern
    tags: tuple[str, ...]


# Checked in order; the first matching pattern wins
DEFAULT_ORGANIZATION: Dict[str, ImageCategory] = {
    "products": ImageCategory(
        re.compile(r"product|item|(?<!-)image|(?<!-)photo", re.IGNORECASE),
        ("product", "ecommerce"),
    ),
    "heroes": ImageCategory(
        re.compile(r"hero|banner|header|cover|promo", re.IGNORECASE),
        ("hero", "promotional"),
    ),
    "testimonials": ImageCategory(
        re.compile(r"testimonial|review|customer|quote", re.IGNORECASE),
        ("testimonial", "customer"),
    ),
    "artisans": ImageCategory(
        re.compile(r"artisan|maker|creator|craftsperson|profile|portrait", re.IGNORECASE),
        ("artisan", "people"),
    ),
    "collections": ImageCategory(
        re.compile(r"collection|category|curated|set|seasonal", re.IGNORECASE),
        ("collection", "category"),
    ),
}


def classify(public_id: str, organization: Dict[str, ImageCategory] = DEFAULT_ORGANIZATION) -> Optional[str]:
    """Return the first category whose pattern matches the public id."""
    for category, config in organization.items():
        if config.pattern.search(public_id):
            return category
    return None


def _require_strings(name: str, values: Optional[Sequence[Any]]) -> List[str]:
    cleaned = [v.strip() for v in values or [] if isinstance(v, str) and v.strip()]
    if not cleaned or len(cleaned) != len(values or []):
        raise ValidationFailed(
            f"{name} must be a non-empty list of strings",
            details={"field": name},
            error_code=ErrorCode.VAL_REQUIRED_FIELD,
        )
    return cleaned


class CloudinaryService:
    """Tag and organize the image library."""

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
    ):
        self.cloud_name = cloud_name or os.environ.get("CLOUDINARY_CLOUD_NAME")
        self.api_key = api_key or os.environ.get("CLOUDINARY_API_KEY")
        self.api_secret = api_secret or os.environ.get("CLOUDINARY_API_SECRET")

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    async def _call(self, operation: Callable[..., Any], *args: Any, **options: Any) -> Dict[str, Any]:
        """Run an SDK call with this service's credentials.

        Credentials go with each call instead of the SDK's global config.

        Raises:
            ProviderError: Not configured, or the SDK call failed
        """
        if not self.is_configured:
            raise ProviderError(
                "Cloudinary credentials are not configured",
                provider="cloudinary",
                error_code=ErrorCode.SYS_NOT_CONFIGURED,
            )

        options.update(cloud_name=self.cloud_name, api_key=self.api_key, api_secret=self.api_secret)
        try:
            return await asyncio.to_thread(operation, *args, **options)
        except cloudinary.exceptions.RateLimited as e:
            logger.warning(f"Cloudinary rate limit hit: {e}")
            raise ProviderError(
                "Cloudinary rate limit reached, try again shortly",
                provider="cloudinary",
                error_code=ErrorCode.LIMIT_RATE_EXCEEDED,
            ) from e
        except cloudinary.exceptions.Error as e:
            logger.error(f"Cloudinary request failed: {type(e).__name__}: {e}")
            raise ProviderError("Cloudinary request failed", provider="cloudinary") from e

    async def tag(self, public_ids: Optional[Sequence[str]], tags: Optional[Sequence[str]]) -> Dict[str, Any]:
        """Add tags to images, at most TAG_BATCH_SIZE ids per call.

        Raises:
            ValidationFailed: public_ids or tags missing, empty or not strings
            ProviderError: Cloudinary failure
        """
        ids = _require_strings("public_ids", public_ids)
        tag_list = _require_strings("tags", tags)

        tagged = set()
        for start in range(0, len(ids), TAG_BATCH_SIZE):
            batch = ids[start:start + TAG_BATCH_SIZE]
            # add_tag takes a single tag
            for tag in tag_list:
                result = await self._call(cloudinary.uploader.add_tag, tag, batch)
                tagged.update(result.get("public_ids") or batch)

        logger.info(f"Tagged {len(tagged)} images with {', '.join(tag_list)}")
        return {"tagged": len(tagged), "tags": tag_list}

    async def list_resources(self) -> List[Dict[str, Any]]:
        """Every uploaded image, following next_cursor."""
        resources: List[Dict[str, Any]] = []
        cursor: Optional[str] = None
        while True:
            options: Dict[str, Any] = {
                "type": "upload",
                "resource_type": "image",
                "max_results": MAX_RESULTS_PER_PAGE,
            }
            if cursor:
                options["next_cursor"] = cursor
            page = await self._call(cloudinary.api.resources, **options)
            resources.extend(page.get("resources") or [])
            cursor = page.get("next_cursor")
            if not cursor:
                return resources

    async def organize(self, organization: Dict[str, ImageCategory] = DEFAULT_ORGANIZATION) -> Dict[str, Any]:
        """Classify every image by public id and tag each category.

        Returns:
            {"categorized": {category: count}, "unorganized": count}
        """
        with LogContext(operation="cloudinary_organize"):
            resources = await self.list_resources()

            groups: Dict[str, List[str]] = {}
            unorganized = 0
            for resource in resources:
                public_id = resource.get("public_id", "")
                category = classify(public_id, organization)
                if category is None:
                    unorganized += 1
                else:
                    groups.setdefault(category, []).append(public_id)

            for category, public_ids in groups.items():
                await self.tag(public_ids, list(organization[category].tags))

            logger.info(
                f"Organized {len(resources) - unorganized} of {len(resources)} images"
            )
        return {
            "categorized": {category: len(ids) for category, ids in groups.items()},
            "unorganized": unorganized,
        }

    async def manage(
        self,
        action: str,
        public_ids: Optional[Sequence[str]] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        """Dispatch a management action.

        Raises:
            ValidationFailed: Unknown action
        """
        if action == "tag":
            return await self.tag(public_ids, tags)
        if action == "organize":
            return await self.organize()
        raise ValidationFailed(
            f"Unknown action: {action!r}",
            details={"allowed": list(ACTIONS)},
        )


def get_cloudinary_service() -> CloudinaryService:
    return CloudinaryService()
