"""Loyalty points, rewards and the points ledger.

Every balance change also writes a PointsTransaction row.
"""

from __future__ import annotations

import os
import secrets
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.db.models import (
    LoyaltyAccount,
    PointsTransaction,
    PointsTransactionType,
    Reward,
    RewardRedemption,
    User,
)
from storefront.db.session import get_db
from storefront.domain.error_codes import ErrorCode
from storefront.domain.errors import AlreadyRedeemed, InsufficientPoints, NotFoundError, ValidationFailed
from storefront.logging_config import get_logger

logger = get_logger(__name__)

# Points earned per whole currency unit paid
POINTS_PER_UNIT = int(os.getenv("LOYALTY_POINTS_PER_UNIT", "1"))

MAX_HISTORY_LIMIT = 200


def generate_redemption_code() -> str:
    return f"RWD-{secrets.token_hex(4).upper()}"


class LoyaltyService:
    """Point balances, reward catalog and redemptions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_or_create_account(self, user_id: UUID) -> LoyaltyAccount:
        """Get the user's account, opening an empty one on first access.

        Raises:
            NotFoundError: If the user does not exist
        """
        result = await self.session.execute(
            select(LoyaltyAccount).where(LoyaltyAccount.user_id == user_id)
        )
        account = result.scalar_one_or_none()
        if account is not None:
            return account

        if await self.session.get(User, user_id) is None:
            raise NotFoundError("User", user_id)

        account = LoyaltyAccount(
            user_id=user_id,
            points_balance=0,
            points_earned=0,
            points_redeemed=0,
        )
        self.session.add(account)
        await self.session.flush()
        return account

    async def list_rewards(self, user_id: UUID) -> tuple[Sequence[Reward], int]:
        """Active, unexpired rewards and the user's spendable balance."""
        account = await self.get_or_create_account(user_id)
        now = datetime.now(timezone.utc)

        result = await self.session.execute(
            select(Reward)
            .where(Reward.is_active.is_(True))
            .order_by(Reward.points_cost.asc())
        )
        rewards = [reward for reward in result.scalars().all() if reward.is_available(now)]
        return rewards, account.points_balance

    async def redeem(self, reward_id: UUID, user_id: UUID) -> tuple[RewardRedemption, LoyaltyAccount]:
        """Spend points on a reward and issue its code.

        Raises:
            NotFoundError: Reward missing, inactive or expired, or unknown user
            AlreadyRedeemed: The user already redeemed this reward
            InsufficientPoints: Balance below the reward's cost
        """
        reward = await self.session.get(Reward, reward_id)
        if reward is None or not reward.is_available(datetime.now(timezone.utc)):
            raise NotFoundError("Reward", reward_id)

        account = await self.get_or_create_account(user_id)

        existing = await self.session.execute(
            select(RewardRedemption.id).where(
                RewardRedemption.user_id == user_id,
                RewardRedemption.reward_id == reward_id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise AlreadyRedeemed("You have already redeemed this reward")

        if account.points_balance < reward.points_cost:
            raise InsufficientPoints(reward.points_cost, account.points_balance)

        account.points_balance -= reward.points_cost
        account.points_redeemed += reward.points_cost
        redemption = RewardRedemption(
            user_id=user_id,
            reward_id=reward_id,
            points_spent=reward.points_cost,
            code=generate_redemption_code(),
        )
        self.session.add(redemption)
        self.session.add(PointsTransaction(
            user_id=user_id,
            points=-reward.points_cost,
            type=PointsTransactionType.REDEEMED,
            reason=f"Redeemed {reward.name}",
        ))

        try:
            await self.session.flush()
        except IntegrityError as e:
            # Concurrent redemption of the same reward
            raise AlreadyRedeemed("You have already redeemed this reward") from e

        logger.info(
            "Reward redeemed",
            extra={
                "user_id": str(user_id),
                "reward_id": str(reward_id),
                "points_spent": reward.points_cost,
            },
        )
        return redemption, account

    async def _credit(
        self,
        user_id: UUID,
        points: int,
        kind: PointsTransactionType,
        reason: str,
        order_id: Optional[UUID] = None,
    ) -> LoyaltyAccount:
        account = await self.get_or_create_account(user_id)
        account.points_balance += points
        account.points_earned += points
        self.session.add(PointsTransaction(
            user_id=user_id,
            points=points,
            type=kind,
            reason=reason,
            order_id=order_id,
        ))
        await self.session.flush()
        return account

    async def award_points(
        self,
        user_id: UUID,
        amount_cents: int,
        order_id: Optional[UUID] = None,
    ) -> int:
        """Credit points for a payment. Returns the points awarded."""
        points = (amount_cents // 100) * POINTS_PER_UNIT
        if points <= 0:
            return 0

        await self._credit(user_id, points, PointsTransactionType.EARNED, "Order payment", order_id)
        logger.info("Loyalty points awarded", extra={"user_id": str(user_id), "points": points})
        return points

    async def add_bonus_points(
        self,
        user_id: UUID,
        points: int,
        reason: str,
        order_id: Optional[UUID] = None,
    ) -> LoyaltyAccount:
        """Grant points outside the purchase flow (goodwill, promotions).

        Raises:
            ValidationFailed: points is not positive
            NotFoundError: Unknown user
        """
        if points <= 0:
            raise ValidationFailed(
                "Bonus points must be positive",
                details={"points": points},
                error_code=ErrorCode.VAL_OUT_OF_RANGE,
            )

        account = await self._credit(user_id, points, PointsTransactionType.BONUS, reason, order_id)
        logger.info(
            "Loyalty bonus points added",
            extra={"user_id": str(user_id), "points": points, "reason": reason},
        )
        return account

    async def get_history(self, user_id: UUID, limit: int = 50) -> List[PointsTransaction]:
        """Newest-first points transactions for a member.

        Raises:
            ValidationFailed: limit outside 1..MAX_HISTORY_LIMIT
        """
        if not 1 <= limit <= MAX_HISTORY_LIMIT:
            raise ValidationFailed(
                f"limit must be between 1 and {MAX_HISTORY_LIMIT}",
                details={"limit": limit},
                error_code=ErrorCode.VAL_OUT_OF_RANGE,
            )

        result = await self.session.execute(
            select(PointsTransaction)
            .where(PointsTransaction.user_id == user_id)
            .order_by(PointsTransaction.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


def get_loyalty_service(db: AsyncSession = Depends(get_db)) -> LoyaltyService:
    return LoyaltyService(db)
