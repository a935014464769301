"""Loyalty program models: rewards catalog, point accounts, redemptions and the
points ledger."""

import enum
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin, generate_repr


class DiscountType(str, enum.Enum):
    """How a reward discounts an order."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE_SHIPPING = "free_shipping"


class LoyaltyTier(str, enum.Enum):
    """Tier derived from lifetime points earned."""

    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"


# Lifetime points needed to reach each tier, highest first
TIER_THRESHOLDS: list[tuple[LoyaltyTier, int]] = [
    (LoyaltyTier.PLATINUM, 5000),
    (LoyaltyTier.GOLD, 2000),
    (LoyaltyTier.SILVER, 500),
    (LoyaltyTier.BRONZE, 0),
]

TIER_BENEFITS: dict[LoyaltyTier, tuple[str, ...]] = {
    LoyaltyTier.BRONZE: ("5% back in points", "10% birthday bonus"),
    LoyaltyTier.SILVER: ("10% back in points", "20% birthday bonus", "Free shipping"),
    LoyaltyTier.GOLD: ("15% back in points", "30% birthday bonus", "Free shipping", "VIP support"),
    LoyaltyTier.PLATINUM: (
        "20% back in points",
        "50% birthday bonus",
        "Free shipping",
        "VIP support",
        "Early access",
    ),
}


class PointsTransactionType(str, enum.Enum):
    """Why a points balance changed."""

    EARNED = "earned"
    REDEEMED = "redeemed"
    BONUS = "bonus"


class Reward(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Reward that can be bought with loyalty points."""

    __tablename__ = "rewards"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    points_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    discount_type: Mapped[DiscountType] = mapped_column(
        Enum(
            DiscountType,
            name="discount_type",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    discount_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return generate_repr(self, "id", "name", "points_cost")

    def is_available(self, now: datetime) -> bool:
        return self.is_active and (self.expires_at is None or self.expires_at > now)


class LoyaltyAccount(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Per-user points ledger summary.

    Attributes:
        user_id: Account owner (one account per user)
        points_balance: Spendable points
        points_earned: Lifetime points earned (drives tier)
        points_redeemed: Lifetime points spent
    """

    __tablename__ = "loyalty_accounts"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    points_balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_redeemed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return generate_repr(self, "id", "user_id", "points_balance")

    @property
    def tier(self) -> LoyaltyTier:
        earned = self.points_earned or 0
        for tier, threshold in TIER_THRESHOLDS:
            if earned >= threshold:
                return tier
        return LoyaltyTier.BRONZE

    @property
    def points_to_next_tier(self) -> Optional[int]:
        """Points still needed for the next tier, None at the top tier."""
        earned = self.points_earned or 0
        next_threshold = None
        for _, threshold in TIER_THRESHOLDS:
            if threshold > earned:
                next_threshold = threshold
        if next_threshold is None:
            return None
        return next_threshold - earned


class RewardRedemption(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A reward redeemed by a user, with the discount code issued."""

    __tablename__ = "reward_redemptions"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    reward_id: Mapped[UUID] = mapped_column(
        ForeignKey("rewards.id", ondelete="CASCADE"),
        nullable=False,
    )
    points_spent: Mapped[int] = mapped_column(Integer, nullable=False)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    reward: Mapped[Reward] = relationship(Reward, lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "reward_id", name="uq_reward_redemptions_user_reward"),
    )

    def __repr__(self) -> str:
        return generate_repr(self, "id", "user_id", "reward_id")


class PointsTransaction(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """One change to a member's points balance.

    ``points`` is signed: positive for earned and bonus points, negative for
    redemptions.
    """

    __tablename__ = "points_transactions"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[PointsTransactionType] = mapped_column(
        Enum(
            PointsTransactionType,
            name="points_transaction_type",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    reason: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    order_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("orders.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_points_transactions_user_id_created_at", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return generate_repr(self, "id", "user_id", "points", "type")
