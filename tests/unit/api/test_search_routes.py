"""Unit tests for product search routes."""

from tests.factories import ProductFactory
from tests.helpers import make_result


class TestSearch:
    def test_results_with_facets(self, client, mock_db):
        mug = ProductFactory.build(name="Blue Mug", category="ceramics", price_cents=2500)
        vase = ProductFactory.build(name="Mug Vase", category="ceramics", price_cents=4000)
        mock_db.execute.side_effect = [
            make_result(scalar=2),
            make_result(rows=[(mug, 2), (vase, 3)]),
            make_result(rows=[("ceramics", 2), ("textiles", 1)]),
        ]

        response = client.get("/api/search?q=mug&limit=10")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 2
        assert data["pages"] == 1
        assert [r["name"] for r in data["results"]] == ["Blue Mug", "Mug Vase"]
        assert data["results"][1]["relevance"] == 3
        assert data["facets"] == {"categories": {"ceramics": 2, "textiles": 1}}

    def test_empty_catalog(self, client, mock_db):
        mock_db.execute.side_effect = [
            make_result(scalar=0),
            make_result(rows=[]),
            make_result(rows=[]),
        ]

        response = client.get("/api/search")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["results"] == []
        assert data["pages"] == 0

    def test_unknown_sort_returns_400(self, client, mock_db):
        response = client.get("/api/search?sort=cheapest")

        assert response.status_code == 400
        mock_db.execute.assert_not_awaited()

    def test_min_price_above_max_price_returns_400(self, client, mock_db):
        response = client.get("/api/search?min_price=5000&max_price=1000")

        assert response.status_code == 400
        assert response.json()["error"] == "min_price cannot exceed max_price"
        mock_db.execute.assert_not_awaited()


class TestAutocomplete:
    def test_single_character_returns_empty_list_without_query(self, client, mock_db):
        response = client.get("/api/search/autocomplete?q=a")

        assert response.status_code == 200
        assert response.json()["data"] == []
        mock_db.execute.assert_not_awaited()

    def test_suggestions(self, client, mock_db):
        mock_db.execute.return_value = make_result(rows=[("Mug", 0), ("Blue Mug", 1)])

        response = client.get("/api/search/autocomplete?q=mu")

        assert response.status_code == 200
        assert response.json()["data"] == ["Mug", "Blue Mug"]

    def test_limit_is_bounded(self, client):
        response = client.get("/api/search/autocomplete?q=mug&limit=50")

        assert response.status_code == 400
