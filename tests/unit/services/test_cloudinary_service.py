"""Unit tests for image classification and CloudinaryService."""

from unittest.mock import patch

import cloudinary.exceptions
import pytest

from storefront.domain.error_codes import ErrorCode
from storefront.domain.errors import ProviderError, ValidationFailed
from storefront.services.cloudinary import CloudinaryService, _require_strings, classify


@pytest.mark.parametrize(
    "public_id,expected",
    [
        ("products/vase-01", "products"),
        ("hero-banner", "heroes"),
        ("testimonials/jane", "testimonials"),
        ("artisans/maria-portrait", "artisans"),
        ("seasonal/autumn-collection", "collections"),
        ("misc/logo", None),
    ],
)
def test_classify(public_id, expected):
    assert classify(public_id) == expected


class TestRequireStrings:
    def test_strips_values(self):
        assert _require_strings("tags", [" sale ", "new"]) == ["sale", "new"]

    @pytest.mark.parametrize("values", [None, [], ["ok", ""], ["ok", 3]])
    def test_rejects_missing_or_mixed_values(self, values):
        with pytest.raises(ValidationFailed) as exc_info:
            _require_strings("tags", values)

        assert exc_info.value.details == {"field": "tags"}


@pytest.fixture
def service():
    return CloudinaryService("demo", "key", "secret")


def _echo_tagged(tag, public_ids, **options):
    return {"public_ids": list(public_ids)}


class TestTag:
    @pytest.mark.asyncio
    async def test_large_requests_are_batched(self, service):
        ids = [f"products/item-{i}" for i in range(250)]

        with patch("cloudinary.uploader.add_tag", side_effect=_echo_tagged) as mock_add_tag:
            result = await service.tag(ids, ["featured"])

        assert result == {"tagged": 250, "tags": ["featured"]}
        batch_sizes = [len(call.args[1]) for call in mock_add_tag.call_args_list]
        assert batch_sizes == [100, 100, 50]

    @pytest.mark.asyncio
    async def test_each_tag_is_added_with_credentials(self, service):
        with patch("cloudinary.uploader.add_tag", side_effect=_echo_tagged) as mock_add_tag:
            result = await service.tag(["products/vase-01"], ["featured", "sale"])

        assert result == {"tagged": 1, "tags": ["featured", "sale"]}
        assert [call.args[0] for call in mock_add_tag.call_args_list] == ["featured", "sale"]
        assert mock_add_tag.call_args.kwargs == {"cloud_name": "demo", "api_key": "key", "api_secret": "secret"}

    @pytest.mark.asyncio
    async def test_sdk_error_is_provider_error(self, service):
        with patch("cloudinary.uploader.add_tag", side_effect=cloudinary.exceptions.Error("bad signature")):
            with pytest.raises(ProviderError) as exc_info:
                await service.tag(["products/vase-01"], ["featured"])

        assert exc_info.value.provider == "cloudinary"
        assert exc_info.value.error_code == ErrorCode.API_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_rate_limit_is_reported(self, service):
        with patch("cloudinary.uploader.add_tag", side_effect=cloudinary.exceptions.RateLimited("slow down")):
            with pytest.raises(ProviderError) as exc_info:
                await service.tag(["products/vase-01"], ["featured"])

        assert exc_info.value.error_code == ErrorCode.LIMIT_RATE_EXCEEDED

    @pytest.mark.asyncio
    async def test_unconfigured_service_raises(self, monkeypatch):
        for name in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET"):
            monkeypatch.delenv(name, raising=False)

        with patch("cloudinary.uploader.add_tag") as mock_add_tag:
            with pytest.raises(ProviderError) as exc_info:
                await CloudinaryService().tag(["a"], ["b"])

        assert exc_info.value.provider == "cloudinary"
        mock_add_tag.assert_not_called()


class TestOrganize:
    @pytest.mark.asyncio
    async def test_groups_and_tags_by_category(self, service):
        pages = [
            {
                "resources": [{"public_id": "products/vase-01"}, {"public_id": "hero-banner"}],
                "next_cursor": "page2",
            },
            {"resources": [{"public_id": "products/bowl-02"}, {"public_id": "misc/logo"}]},
        ]

        with patch("cloudinary.api.resources", side_effect=pages) as mock_resources, \
                patch("cloudinary.uploader.add_tag", side_effect=_echo_tagged) as mock_add_tag:
            summary = await service.organize()

        assert summary == {"categorized": {"products": 2, "heroes": 1}, "unorganized": 1}
        assert mock_resources.call_args_list[1].kwargs["next_cursor"] == "page2"
        tag_calls = [(call.args[0], call.args[1]) for call in mock_add_tag.call_args_list]
        assert ("product", ["products/vase-01", "products/bowl-02"]) in tag_calls
        assert ("ecommerce", ["products/vase-01", "products/bowl-02"]) in tag_calls
        assert ("hero", ["hero-banner"]) in tag_calls

    @pytest.mark.asyncio
    async def test_unknown_action(self, service):
        with pytest.raises(ValidationFailed) as exc_info:
            await service.manage("delete")

        assert exc_info.value.details == {"allowed": ["tag", "organize"]}
