"""Unit tests for loyalty routes."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from storefront.db.models import PointsTransactionType
from tests.factories import LoyaltyAccountFactory, PointsTransactionFactory, RewardFactory
from tests.helpers import assign_ids_on_flush, make_result


class TestRewards:
    def test_rewards_flag_affordability(self, client, mock_db):
        account = LoyaltyAccountFactory.build(points_balance=600, points_earned=600)
        cheap = RewardFactory.build(points_cost=500)
        dear = RewardFactory.build(points_cost=1000)
        expired = RewardFactory.build(
            points_cost=100, expires_at=datetime.now(timezone.utc) - timedelta(days=1)
        )
        mock_db.execute.side_effect = [
            make_result(scalar=account),
            make_result(scalars=[expired, cheap, dear]),
        ]

        response = client.get(f"/api/loyalty/rewards?user_id={account.user_id}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["points_balance"] == 600
        assert [(r["points_cost"], r["affordable"]) for r in data["rewards"]] == [
            (500, True),
            (1000, False),
        ]

    def test_user_id_is_required(self, client):
        response = client.get("/api/loyalty/rewards")

        assert response.status_code == 400
        assert response.json()["error_code"] == "ERR_VAL_001"


class TestRedeem:
    def test_redeem_spends_points(self, client, mock_db):
        account = LoyaltyAccountFactory.build(points_balance=800, points_earned=800)
        reward = RewardFactory.build(points_cost=500)
        mock_db.get.return_value = reward
        mock_db.execute.side_effect = [
            make_result(scalar=account),
            make_result(scalar=None),
        ]
        assign_ids_on_flush(mock_db)

        response = client.post(
            f"/api/loyalty/rewards/{reward.id}/redeem",
            json={"user_id": str(account.user_id)},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["points_spent"] == 500
        assert data["points_balance"] == 300
        assert data["code"].startswith("RWD-")
        mock_db.commit.assert_awaited_once()

    def test_insufficient_points_returns_409(self, client, mock_db):
        account = LoyaltyAccountFactory.build(points_balance=100)
        reward = RewardFactory.build(points_cost=500)
        mock_db.get.return_value = reward
        mock_db.execute.side_effect = [
            make_result(scalar=account),
            make_result(scalar=None),
        ]

        response = client.post(
            f"/api/loyalty/rewards/{reward.id}/redeem",
            json={"user_id": str(account.user_id)},
        )

        assert response.status_code == 409
        body = response.json()
        assert body["error_code"] == "ERR_LOYALTY_001"
        assert body["details"] == {"required": 500, "available": 100}
        assert account.points_balance == 100

    def test_second_redemption_returns_409(self, client, mock_db):
        account = LoyaltyAccountFactory.build(points_balance=5000)
        reward = RewardFactory.build(points_cost=500)
        mock_db.get.return_value = reward
        mock_db.execute.side_effect = [
            make_result(scalar=account),
            make_result(scalar=uuid4()),
        ]

        response = client.post(
            f"/api/loyalty/rewards/{reward.id}/redeem",
            json={"user_id": str(account.user_id)},
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "ERR_LOYALTY_002"

    def test_unknown_reward_returns_404(self, client, mock_db):
        response = client.post(
            f"/api/loyalty/rewards/{uuid4()}/redeem", json={"user_id": str(uuid4())}
        )

        assert response.status_code == 404


class TestAccount:
    def test_account_summary_with_tier(self, client, mock_db):
        account = LoyaltyAccountFactory.build(points_balance=700, points_earned=2100)
        mock_db.execute.return_value = make_result(scalar=account)

        response = client.get(f"/api/loyalty/account?user_id={account.user_id}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["tier"] == "gold"
        assert data["points_to_next_tier"] == 2900

    def test_unknown_user_returns_404(self, client, mock_db):
        mock_db.execute.return_value = make_result(scalar=None)

        response = client.get(f"/api/loyalty/account?user_id={uuid4()}")

        assert response.status_code == 404


class TestHistory:
    def test_history_lists_ledger_entries(self, client, mock_db):
        user_id = uuid4()
        rows = [
            PointsTransactionFactory.build(user_id=user_id, points=-500, type=PointsTransactionType.REDEEMED),
            PointsTransactionFactory.build(user_id=user_id, points=59),
        ]
        mock_db.execute.return_value = make_result(scalars=rows)

        response = client.get(f"/api/loyalty/account/history?user_id={user_id}&limit=2")

        assert response.status_code == 200
        data = response.json()["data"]
        assert [(t["points"], t["type"]) for t in data] == [(-500, "redeemed"), (59, "earned")]

    def test_limit_above_maximum_is_rejected(self, client, mock_db):
        response = client.get(f"/api/loyalty/account/history?user_id={uuid4()}&limit=500")

        assert response.status_code == 400
        mock_db.execute.assert_not_awaited()


class TestTiers:
    def test_tiers_from_entry_level_up(self, client):
        response = client.get("/api/loyalty/tiers")

        assert response.status_code == 200
        tiers = response.json()["data"]
        assert [(t["tier"], t["min_points"]) for t in tiers] == [
            ("bronze", 0),
            ("silver", 500),
            ("gold", 2000),
            ("platinum", 5000),
        ]
        assert "Free shipping" in tiers[1]["benefits"]
        assert "Free shipping" not in tiers[0]["benefits"]


class TestBonusPoints:
    def test_admin_adds_points(self, client, mock_db, admin_headers):
        account = LoyaltyAccountFactory.build(points_balance=100, points_earned=100)
        mock_db.execute.return_value = make_result(scalar=account)

        response = client.post(
            "/api/loyalty/account/points",
            json={"user_id": str(account.user_id), "points": 400, "reason": "Launch promo"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["points_balance"] == 500
        assert data["tier"] == "silver"
        mock_db.commit.assert_awaited_once()

    def test_customer_cannot_add_points(self, client, mock_db, customer_headers):
        response = client.post(
            "/api/loyalty/account/points",
            json={"user_id": str(uuid4()), "points": 400, "reason": "Self service"},
            headers=customer_headers,
        )

        assert response.status_code == 403
        mock_db.execute.assert_not_awaited()

    def test_zero_points_is_rejected(self, client, mock_db, admin_headers):
        response = client.post(
            "/api/loyalty/account/points",
            json={"user_id": str(uuid4()), "points": 0, "reason": "Nothing"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        mock_db.commit.assert_not_awaited()
