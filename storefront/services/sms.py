"""SMS notifications through the Twilio REST API."""

from __future__ import annotations

import os
import re
from typing import Optional
from uuid import UUID

import httpx
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.models import SmsMessage, SmsSubscription, User
from storefront.db.session import get_db
from storefront.domain.error_codes import ErrorCode
from storefront.domain.errors import (
    AlreadyExistsError,
    NotFoundError,
    NotSubscribedError,
    ProviderError,
    ValidationFailed,
)
from storefront.http_client import get_async_client, request_with_retry
from storefront.logging_config import get_logger

logger = get_logger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"
MAX_MESSAGE_LENGTH = 1600

_E164_PATTERN = re.compile(r"^\+\d{8,15}$")
_PHONE_SEPARATORS = re.compile(r"[\s\-().]")


def normalize_phone_number(phone_number: str) -> str:
    """Normalise a phone number to E.164.

    Raises:
        ValidationFailed: Not ``+`` followed by 8-15 digits
    """
    normalized = _PHONE_SEPARATORS.sub("", phone_number or "")
    if normalized.startswith("00"):
        normalized = "+" + normalized[2:]
    if not _E164_PATTERN.match(normalized):
        raise ValidationFailed(
            "Phone number must be in E.164 format, e.g. +14155550123",
            details={"field": "phone_number"},
        )
    return normalized


class TwilioClient:
    """Minimal Twilio Messages API client."""

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
    ):
        self.account_sid = account_sid or os.environ.get("TWILIO_ACCOUNT_SID")
        self.auth_token = auth_token or os.environ.get("TWILIO_AUTH_TOKEN")
        self.from_number = from_number or os.environ.get("TWILIO_FROM_NUMBER")

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    async def send_message(self, to: str, body: str) -> dict:
        """Send one message. Returns Twilio's message resource."""
        if not self.is_configured:
            raise ProviderError(
                "SMS delivery is not configured",
                provider="twilio",
                error_code=ErrorCode.SYS_NOT_CONFIGURED,
            )

        url = f"{TWILIO_API_BASE}/Accounts/{self.account_sid}/Messages.json"
        client = await get_async_client()
        try:
            response = await request_with_retry(
                client,
                "POST",
                url,
                auth=(self.account_sid, self.auth_token),
                data={"To": to, "From": self.from_number, "Body": body},
            )
        except httpx.HTTPStatusError as e:
            logger.error(f"Twilio returned {e.response.status_code}: {e.response.text[:200]}")
            raise ProviderError("SMS provider rejected the message", provider="twilio") from e
        except httpx.RequestError as e:
            logger.error(f"Twilio request failed: {e}")
            raise ProviderError("SMS provider is unreachable", provider="twilio") from e
        return response.json()


class SmsService:
    """SMS opt-ins and outbound messages."""

    def __init__(self, session: AsyncSession, client: Optional[TwilioClient] = None):
        self.session = session
        self.client = client or TwilioClient()

    async def _find_subscription(self, phone_number: str) -> Optional[SmsSubscription]:
        result = await self.session.execute(
            select(SmsSubscription).where(SmsSubscription.phone_number == phone_number)
        )
        return result.scalar_one_or_none()

    async def send(self, user_id: UUID, phone_number: str, message: str) -> SmsMessage:
        """Send a message to a subscribed number and record it.

        Raises:
            ValidationFailed: Bad phone number or message too long
            NotSubscribedError: No active opt-in for this user and number
            ProviderError: Twilio failure
        """
        to = normalize_phone_number(phone_number)
        if len(message) > MAX_MESSAGE_LENGTH:
            raise ValidationFailed(
                f"Message exceeds {MAX_MESSAGE_LENGTH} characters",
                error_code=ErrorCode.VAL_OUT_OF_RANGE,
            )

        subscription = await self._find_subscription(to)
        if subscription is None or not subscription.is_active or subscription.user_id != user_id:
            raise NotSubscribedError("Recipient has not opted in to SMS notifications")

        resource = await self.client.send_message(to, message)

        sms = SmsMessage(
            user_id=user_id,
            phone_number=to,
            body=message,
            provider_message_id=resource.get("sid"),
            status=resource.get("status") or "queued",
        )
        self.session.add(sms)
        await self.session.flush()

        logger.info("SMS sent", extra={"user_id": str(user_id), "sms_id": str(sms.id)})
        return sms

    async def subscribe(self, user_id: UUID, phone_number: str) -> SmsSubscription:
        """Opt a number in. Re-subscribing an existing number reactivates it.

        Raises:
            ValidationFailed: Bad phone number
            NotFoundError: Unknown user
            AlreadyExistsError: A concurrent request opted the number in first
        """
        number = normalize_phone_number(phone_number)
        if await self.session.get(User, user_id) is None:
            raise NotFoundError("User", user_id)

        subscription = await self._find_subscription(number)
        if subscription is None:
            subscription = SmsSubscription(user_id=user_id, phone_number=number, is_active=True)
            self.session.add(subscription)
        else:
            subscription.user_id = user_id
            subscription.is_active = True

        try:
            await self.session.flush()
        except IntegrityError as e:
            raise AlreadyExistsError("Phone number is already subscribed") from e
        logger.info("SMS opt-in", extra={"user_id": str(user_id)})
        return subscription


def get_sms_service(db: AsyncSession = Depends(get_db)) -> SmsService:
    return SmsService(db)
