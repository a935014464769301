"""Loyalty program routes: reward catalog, redemption, account summary, points
history and tier benefits."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.auth import AuthenticatedUser, require_admin
from storefront.api.models import (
    BonusPointsRequest,
    LoyaltyAccountResponse,
    PointsTransactionResponse,
    RedeemRewardRequest,
    RedemptionResponse,
    RewardListResponse,
    RewardResponse,
    TierBenefitsResponse,
    success_response,
)
from storefront.db.models import TIER_BENEFITS, TIER_THRESHOLDS, LoyaltyAccount
from storefront.db.session import get_db
from storefront.services.loyalty import MAX_HISTORY_LIMIT, LoyaltyService, get_loyalty_service

router = APIRouter(prefix="/loyalty", tags=["loyalty"])


@router.get("/rewards")
async def list_rewards(
    user_id: UUID = Query(..., description="Member whose balance is checked"),
    service: LoyaltyService = Depends(get_loyalty_service),
    db: AsyncSession = Depends(get_db),
):
    """Active rewards, each flagged with whether the member can afford it."""
    rewards, balance = await service.list_rewards(user_id)
    await db.commit()

    return success_response(
        RewardListResponse(
            rewards=[
                RewardResponse(
                    id=reward.id,
                    name=reward.name,
                    description=reward.description,
                    points_cost=reward.points_cost,
                    discount_type=reward.discount_type,
                    discount_value=reward.discount_value,
                    expires_at=reward.expires_at,
                    affordable=reward.points_cost <= balance,
                )
                for reward in rewards
            ],
            points_balance=balance,
        )
    )


@router.post("/rewards/{reward_id}/redeem")
async def redeem_reward(
    reward_id: UUID,
    request: RedeemRewardRequest,
    service: LoyaltyService = Depends(get_loyalty_service),
    db: AsyncSession = Depends(get_db),
):
    """Spend points on a reward and return its redemption code."""
    redemption, account = await service.redeem(reward_id, request.user_id)
    await db.commit()

    return success_response(
        RedemptionResponse(
            redemption_id=redemption.id,
            reward_id=reward_id,
            code=redemption.code,
            points_spent=redemption.points_spent,
            points_balance=account.points_balance,
        ),
        message="Reward redeemed",
    )


@router.get("/account")
async def get_account(
    user_id: UUID = Query(...),
    service: LoyaltyService = Depends(get_loyalty_service),
    db: AsyncSession = Depends(get_db),
):
    account = await service.get_or_create_account(user_id)
    await db.commit()

    return success_response(_account_response(account))


@router.post("/account/points", status_code=201)
async def add_bonus_points(
    request: BonusPointsRequest,
    admin: AuthenticatedUser = Depends(require_admin),
    service: LoyaltyService = Depends(get_loyalty_service),
    db: AsyncSession = Depends(get_db),
):
    """Grant bonus points to a member (admin only)."""
    account = await service.add_bonus_points(
        request.user_id, request.points, request.reason, order_id=request.order_id
    )
    await db.commit()

    return success_response(_account_response(account), message=f"Added {request.points} points")


@router.get("/account/history")
async def points_history(
    user_id: UUID = Query(...),
    limit: int = Query(50, ge=1, le=MAX_HISTORY_LIMIT),
    service: LoyaltyService = Depends(get_loyalty_service),
):
    """Newest-first points transactions."""
    transactions = await service.get_history(user_id, limit)
    return success_response([PointsTransactionResponse.model_validate(t) for t in transactions])


@router.get("/tiers")
async def tier_benefits():
    """Tiers from entry level up, with the lifetime points each needs."""
    return success_response([
        TierBenefitsResponse(tier=tier, min_points=threshold, benefits=list(TIER_BENEFITS[tier]))
        for tier, threshold in reversed(TIER_THRESHOLDS)
    ])


def _account_response(account: LoyaltyAccount) -> LoyaltyAccountResponse:
    return LoyaltyAccountResponse(
        user_id=account.user_id,
        points_balance=account.points_balance,
        points_earned=account.points_earned,
        points_redeemed=account.points_redeemed,
        tier=account.tier,
        points_to_next_tier=account.points_to_next_tier,
    )
