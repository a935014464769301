"""SMS notification routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.models import (
    SmsMessageResponse,
    SmsSendRequest,
    SmsSubscribeRequest,
    SmsSubscriptionResponse,
    success_response,
)
from storefront.db.session import get_db
from storefront.services.sms import SmsService, get_sms_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post("/sms", status_code=status.HTTP_201_CREATED)
async def send_sms(
    request: SmsSendRequest,
    service: SmsService = Depends(get_sms_service),
    db: AsyncSession = Depends(get_db),
):
    """Send an SMS to a user who has opted in.

    Missing or blank fields are rejected with 400 before the provider is
    contacted.
    """
    sms = await service.send(request.user_id, request.phone_number, request.message)
    await db.commit()
    return success_response(SmsMessageResponse.model_validate(sms), message="SMS sent")


@router.post("/sms/subscribe", status_code=status.HTTP_201_CREATED)
async def subscribe_sms(
    request: SmsSubscribeRequest,
    service: SmsService = Depends(get_sms_service),
    db: AsyncSession = Depends(get_db),
):
    """Opt a phone number in to SMS notifications."""
    subscription = await service.subscribe(request.user_id, request.phone_number)
    await db.commit()
    return success_response(
        SmsSubscriptionResponse.model_validate(subscription),
        message="Subscribed to SMS notifications",
    )
