"""SMS subscription and message log models."""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin, generate_repr


class SmsSubscription(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """SMS opt-in for a phone number.

    Attributes:
        user_id: Subscribing user
        phone_number: E.164 number
        is_active: Whether messages may be sent
    """

    __tablename__ = "sms_subscriptions"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    phone_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return generate_repr(self, "id", "phone_number", "is_active")


class SmsMessage(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Outbound SMS as handed to the provider."""

    __tablename__ = "sms_messages"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    provider_message_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="queued")

    def __repr__(self) -> str:
        return generate_repr(self, "id", "phone_number", "status")
