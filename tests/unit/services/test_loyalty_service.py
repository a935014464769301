"""Unit tests for LoyaltyService and loyalty tiers."""

from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from storefront.db.models import (
    LoyaltyAccount,
    LoyaltyTier,
    PointsTransaction,
    PointsTransactionType,
)
from storefront.domain.errors import AlreadyRedeemed, NotFoundError, ValidationFailed
from storefront.services.loyalty import LoyaltyService, generate_redemption_code
from tests.factories import (
    LoyaltyAccountFactory,
    PointsTransactionFactory,
    RewardFactory,
    UserFactory,
)
from tests.helpers import make_result


def _ledger_entries(mock_db):
    return [
        call.args[0]
        for call in mock_db.add.call_args_list
        if isinstance(call.args[0], PointsTransaction)
    ]


class TestTiers:
    @pytest.mark.parametrize(
        "earned,tier,to_next",
        [
            (0, LoyaltyTier.BRONZE, 500),
            (499, LoyaltyTier.BRONZE, 1),
            (500, LoyaltyTier.SILVER, 1500),
            (2000, LoyaltyTier.GOLD, 3000),
            (5000, LoyaltyTier.PLATINUM, None),
            (12000, LoyaltyTier.PLATINUM, None),
        ],
    )
    def test_tier_from_lifetime_points(self, earned, tier, to_next):
        account = LoyaltyAccountFactory.build(points_earned=earned)

        assert account.tier == tier
        assert account.points_to_next_tier == to_next

    def test_redemption_code_format(self):
        code = generate_redemption_code()

        assert code.startswith("RWD-")
        assert len(code) == 12


class TestAccounts:
    @pytest.mark.asyncio
    async def test_account_is_opened_on_first_access(self, mock_db):
        user = UserFactory.build()
        mock_db.execute.return_value = make_result(scalar=None)
        mock_db.get.return_value = user

        account = await LoyaltyService(mock_db).get_or_create_account(user.id)

        assert isinstance(account, LoyaltyAccount)
        assert account.user_id == user.id
        assert account.points_balance == 0
        mock_db.add.assert_called_once_with(account)

    @pytest.mark.asyncio
    async def test_unknown_user(self, mock_db):
        mock_db.execute.return_value = make_result(scalar=None)

        with pytest.raises(NotFoundError):
            await LoyaltyService(mock_db).get_or_create_account(uuid4())

        mock_db.add.assert_not_called()


class TestAwardPoints:
    @pytest.mark.asyncio
    async def test_one_point_per_whole_unit(self, mock_db):
        account = LoyaltyAccountFactory.build(points_balance=10, points_earned=10)
        mock_db.execute.return_value = make_result(scalar=account)

        points = await LoyaltyService(mock_db).award_points(account.user_id, 5999)

        assert points == 59
        assert account.points_balance == 69
        assert account.points_earned == 69

    @pytest.mark.asyncio
    async def test_multiplier_from_environment(self, mock_db):
        account = LoyaltyAccountFactory.build()
        mock_db.execute.return_value = make_result(scalar=account)

        with patch("storefront.services.loyalty.POINTS_PER_UNIT", 2):
            points = await LoyaltyService(mock_db).award_points(account.user_id, 1000)

        assert points == 20

    @pytest.mark.asyncio
    async def test_amounts_under_one_unit_award_nothing(self, mock_db):
        points = await LoyaltyService(mock_db).award_points(uuid4(), 99)

        assert points == 0
        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_award_is_written_to_the_ledger(self, mock_db):
        account = LoyaltyAccountFactory.build()
        order_id = uuid4()
        mock_db.execute.return_value = make_result(scalar=account)

        await LoyaltyService(mock_db).award_points(account.user_id, 2500, order_id=order_id)

        entry = _ledger_entries(mock_db)[0]
        assert entry.points == 25
        assert entry.type == PointsTransactionType.EARNED
        assert entry.order_id == order_id


class TestRedeem:
    @pytest.mark.asyncio
    async def test_redemption_is_a_negative_ledger_entry(self, mock_db):
        account = LoyaltyAccountFactory.build(points_balance=800, points_earned=800)
        reward = RewardFactory.build(name="Free tote", points_cost=500)
        mock_db.get.return_value = reward
        mock_db.execute.side_effect = [make_result(scalar=account), make_result(scalar=None)]

        redemption, _ = await LoyaltyService(mock_db).redeem(reward.id, account.user_id)

        assert redemption.points_spent == 500
        assert account.points_balance == 300
        entry = _ledger_entries(mock_db)[0]
        assert entry.points == -500
        assert entry.type == PointsTransactionType.REDEEMED
        assert entry.reason == "Redeemed Free tote"

    @pytest.mark.asyncio
    async def test_concurrent_redemption_is_already_redeemed(self, mock_db):
        account = LoyaltyAccountFactory.build(points_balance=1000)
        reward = RewardFactory.build(points_cost=500)
        mock_db.get.return_value = reward
        mock_db.execute.side_effect = [make_result(scalar=account), make_result(scalar=None)]
        mock_db.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        with pytest.raises(AlreadyRedeemed):
            await LoyaltyService(mock_db).redeem(reward.id, account.user_id)

    @pytest.mark.asyncio
    async def test_inactive_reward_is_not_found(self, mock_db):
        mock_db.get.return_value = RewardFactory.build(is_active=False)

        with pytest.raises(NotFoundError):
            await LoyaltyService(mock_db).redeem(uuid4(), uuid4())


class TestBonusPoints:
    @pytest.mark.asyncio
    async def test_bonus_credits_balance_and_lifetime_points(self, mock_db):
        account = LoyaltyAccountFactory.build(points_balance=100, points_earned=400)
        mock_db.execute.return_value = make_result(scalar=account)

        result = await LoyaltyService(mock_db).add_bonus_points(
            account.user_id, 150, "Delayed shipment"
        )

        assert result is account
        assert account.points_balance == 250
        assert account.points_earned == 550
        assert account.tier == LoyaltyTier.SILVER
        entry = _ledger_entries(mock_db)[0]
        assert entry.type == PointsTransactionType.BONUS
        assert entry.reason == "Delayed shipment"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("points", [0, -10])
    async def test_non_positive_bonus_is_rejected(self, mock_db, points):
        with pytest.raises(ValidationFailed):
            await LoyaltyService(mock_db).add_bonus_points(uuid4(), points, "Oops")

        mock_db.execute.assert_not_awaited()
        mock_db.add.assert_not_called()


class TestHistory:
    @pytest.mark.asyncio
    async def test_returns_ledger_rows(self, mock_db):
        rows = PointsTransactionFactory.build_batch(3)
        mock_db.execute.return_value = make_result(scalars=rows)

        history = await LoyaltyService(mock_db).get_history(uuid4(), limit=3)

        assert history == rows

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, 201])
    async def test_limit_out_of_range(self, mock_db, limit):
        with pytest.raises(ValidationFailed):
            await LoyaltyService(mock_db).get_history(uuid4(), limit=limit)

        mock_db.execute.assert_not_awaited()
