"""Unit tests for checkout, refund and invoice routes."""

from unittest.mock import MagicMock, patch
from uuid import uuid4

import stripe

from storefront.db.models import OrderStatus, PaymentStatus, RefundStatus
from tests.factories import InvoiceFactory, OrderFactory, ProductFactory, RefundFactory
from tests.helpers import assign_ids_on_flush, make_result


def _checkout_session(**values):
    values.setdefault("id", "cs_test_123")
    values.setdefault("object", "checkout.session")
    return stripe.checkout.Session.construct_from(values, "sk_test")


class TestInitCheckout:
    def test_creates_order_and_session(self, client, mock_db):
        product = ProductFactory.build(price_cents=2500, stock=5)
        mock_db.execute.return_value = make_result(scalars=[product])
        assign_ids_on_flush(mock_db)

        with patch("stripe.checkout.Session.create") as mock_create:
            mock_create.return_value = MagicMock(
                id="cs_test_123", url="https://checkout.stripe.com/c/pay/cs_test_123"
            )
            response = client.post(
                "/api/checkout/stripe/init",
                json={
                    "cart_items": [{"product_id": str(product.id), "quantity": 2}],
                    "email": "Buyer@Example.com",
                },
            )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["session_id"] == "cs_test_123"
        assert data["checkout_url"].startswith("https://checkout.stripe.com/")
        # 5000 subtotal + 8% tax + flat shipping under the free threshold
        assert data["total_cents"] == 5000 + 400 + 599

        params = mock_create.call_args.kwargs
        assert params["mode"] == "payment"
        assert params["customer_email"] == "buyer@example.com"
        assert [item["price_data"]["product_data"]["name"] for item in params["line_items"]] == [
            product.name,
            "Sales tax",
            "Shipping",
        ]
        order = mock_db.add.call_args.args[0]
        assert order.stripe_session_id == "cs_test_123"
        mock_db.commit.assert_awaited_once()

    def test_out_of_stock_returns_409(self, client, mock_db):
        product = ProductFactory.build(stock=1)
        mock_db.execute.return_value = make_result(scalars=[product])

        with patch("stripe.checkout.Session.create") as mock_create:
            response = client.post(
                "/api/checkout/stripe/init",
                json={
                    "cart_items": [{"product_id": str(product.id), "quantity": 3}],
                    "email": "buyer@example.com",
                },
            )

        assert response.status_code == 409
        assert response.json()["error_code"] == "ERR_ORDER_003"
        mock_create.assert_not_called()

    def test_empty_cart_returns_400(self, client):
        response = client.post(
            "/api/checkout/stripe/init",
            json={"cart_items": [], "email": "buyer@example.com"},
        )

        assert response.status_code == 400

    def test_card_declined_returns_402(self, client, mock_db):
        product = ProductFactory.build()
        mock_db.execute.return_value = make_result(scalars=[product])
        assign_ids_on_flush(mock_db)

        error = stripe.error.CardError("Your card was declined.", "card", "card_declined")
        with patch("stripe.checkout.Session.create", side_effect=error):
            response = client.post(
                "/api/checkout/stripe/init",
                json={
                    "cart_items": [{"product_id": str(product.id), "quantity": 1}],
                    "email": "buyer@example.com",
                },
            )

        assert response.status_code == 402
        assert response.json()["error_code"] == "ERR_PAY_001"
        mock_db.commit.assert_not_awaited()


class TestConfirmCheckout:
    def test_paid_session_marks_order_paid(self, client, mock_db):
        order = OrderFactory.build(stripe_session_id="cs_test_123")
        mock_db.execute.return_value = make_result(scalar=order)

        with patch(
            "stripe.checkout.Session.retrieve",
            return_value=_checkout_session(payment_status="paid", payment_intent="pi_123"),
        ):
            response = client.post("/api/checkout/stripe/confirm", json={"session_id": "cs_test_123"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["payment_status"] == "completed"
        assert data["status"] == "processing"
        assert data["already_confirmed"] is False
        assert order.stripe_payment_intent_id == "pi_123"

    def test_repeat_confirmation_changes_nothing(self, client, mock_db):
        order = OrderFactory.build(paid=True, stripe_session_id="cs_test_123")
        mock_db.execute.return_value = make_result(scalar=order)

        with patch(
            "stripe.checkout.Session.retrieve",
            return_value=_checkout_session(payment_status="paid"),
        ):
            response = client.post("/api/checkout/stripe/confirm", json={"session_id": "cs_test_123"})

        assert response.status_code == 200
        assert response.json()["data"]["already_confirmed"] is True
        mock_db.flush.assert_not_awaited()

    def test_unpaid_session_returns_402(self, client, mock_db):
        order = OrderFactory.build(stripe_session_id="cs_test_123")
        mock_db.execute.return_value = make_result(scalar=order)

        with patch(
            "stripe.checkout.Session.retrieve",
            return_value=_checkout_session(payment_status="unpaid"),
        ):
            response = client.post("/api/checkout/stripe/confirm", json={"session_id": "cs_test_123"})

        assert response.status_code == 402
        assert order.payment_status == PaymentStatus.PENDING


class TestRefunds:
    def test_missing_order_id_returns_400(self, client, mock_db):
        response = client.post("/api/checkout/refunds", json={"reason": "Damaged"})

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "ERR_VAL_001"
        assert body["details"][0]["field"] == "order_id"
        mock_db.execute.assert_not_awaited()

    def test_full_refund_returns_201(self, client, mock_db):
        order = OrderFactory.build(paid=True)
        mock_db.execute.side_effect = [make_result(scalar=order), make_result(scalar=0)]
        assign_ids_on_flush(mock_db)

        with patch("stripe.Refund.create") as mock_refund:
            mock_refund.return_value = MagicMock(id="re_123", status="succeeded")
            response = client.post(
                "/api/checkout/refunds",
                json={"order_id": str(order.id), "reason": "Arrived damaged"},
            )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["amount_cents"] == order.total_cents
        assert data["status"] == "succeeded"
        assert data["stripe_refund_id"] == "re_123"
        assert order.status == OrderStatus.REFUNDED
        assert order.payment_status == PaymentStatus.REFUNDED
        assert mock_refund.call_args.kwargs["payment_intent"] == order.stripe_payment_intent_id

    def test_already_refunded_returns_200_without_stripe(self, client, mock_db):
        order = OrderFactory.build(refunded=True)
        refund = RefundFactory.build(order_id=order.id, amount_cents=order.total_cents)
        mock_db.execute.side_effect = [make_result(scalar=order), make_result(scalar=refund)]

        with patch("stripe.Refund.create") as mock_refund:
            response = client.post("/api/checkout/refunds", json={"order_id": str(order.id)})

        assert response.status_code == 200
        assert response.json()["data"]["id"] == str(refund.id)
        assert response.json()["message"] == "Order already refunded"
        mock_refund.assert_not_called()

    def test_unpaid_order_returns_409(self, client, mock_db):
        order = OrderFactory.build()
        mock_db.execute.return_value = make_result(scalar=order)

        with patch("stripe.Refund.create") as mock_refund:
            response = client.post("/api/checkout/refunds", json={"order_id": str(order.id)})

        assert response.status_code == 409
        assert response.json()["error_code"] == "ERR_ORDER_001"
        mock_refund.assert_not_called()

    def test_refund_status_pending_is_refreshed(self, client, mock_db):
        refund = RefundFactory.build(
            order_id=uuid4(), status=RefundStatus.PENDING, processed_at=None
        )
        mock_db.get.return_value = refund

        with patch("stripe.Refund.retrieve", return_value=MagicMock(status="succeeded")):
            response = client.get(f"/api/checkout/refunds/{refund.id}")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "succeeded"
        assert refund.processed_at is not None

    def test_unknown_refund_returns_404(self, client, mock_db):
        response = client.get(f"/api/checkout/refunds/{uuid4()}")

        assert response.status_code == 404


class TestInvoices:
    def test_pdf_download(self, client, mock_db):
        order = OrderFactory.build(paid=True)
        invoice = InvoiceFactory.build(order_id=order.id, invoice_number="INV-20261019-ABCD1234")
        mock_db.execute.side_effect = [make_result(scalar=order), make_result(scalar=invoice)]

        with patch(
            "storefront.reporters.pdf_reporter.InvoicePDFReporter.render",
            return_value=b"%PDF-1.7 test",
        ):
            response = client.get(f"/api/checkout/invoices/{order.id}/pdf")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert (
            response.headers["content-disposition"]
            == 'attachment; filename="invoice-INV-20261019-ABCD1234.pdf"'
        )
        assert response.content == b"%PDF-1.7 test"

    def test_send_without_email_provider_returns_503(self, client, mock_db, monkeypatch):
        monkeypatch.delenv("RESEND_API_KEY", raising=False)

        response = client.post(f"/api/checkout/invoices/{uuid4()}/send")

        assert response.status_code == 503
        assert response.json()["error_code"] == "ERR_SYS_002"
        mock_db.execute.assert_not_awaited()
