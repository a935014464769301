"""Cloudinary media management route."""

from fastapi import APIRouter, Depends

from storefront.api.auth import AuthenticatedUser, require_admin
from storefront.api.models import CloudinaryManageRequest, success_response
from storefront.logging_config import get_logger
from storefront.services.cloudinary import CloudinaryService, get_cloudinary_service

logger = get_logger(__name__)

router = APIRouter(prefix="/cloudinary", tags=["media"])


@router.post("/manage")
async def manage_images(
    request: CloudinaryManageRequest,
    admin: AuthenticatedUser = Depends(require_admin),
    service: CloudinaryService = Depends(get_cloudinary_service),
):
    """Run a media action.

    - ``tag``: add ``tags`` to every image in ``public_ids``
    - ``organize``: classify the whole library by public id and tag it
    """
    action = request.action.lower()
    logger.info(f"Cloudinary action '{action}' requested", extra={"admin_id": admin.user_id})
    result = await service.manage(action, public_ids=request.public_ids, tags=request.tags)
    return success_response({"action": action, "result": result})
