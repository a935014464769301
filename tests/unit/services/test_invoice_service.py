"""Unit tests for InvoiceService."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest
from resend.exceptions import ResendError

from storefront.db.models import Invoice, InvoiceStatus
from storefront.domain.errors import ProviderError
from storefront.services.invoices import InvoiceService, build_invoice_number
from tests.factories import InvoiceFactory, OrderFactory
from tests.helpers import make_result


@pytest.fixture
def reporter():
    reporter = MagicMock()
    reporter.render.return_value = b"%PDF"
    return reporter


@pytest.fixture
def email_service():
    service = MagicMock()
    service.is_configured = True
    service.send_invoice = AsyncMock(return_value="email_1")
    return service


def test_invoice_number_uses_date_and_order_prefix():
    order_id = UUID("7d9f1c3e-2a4b-4c5d-8e6f-0a1b2c3d4e5f")

    number = build_invoice_number(order_id, datetime(2026, 10, 19, tzinfo=timezone.utc))

    assert number == "INV-20261019-7D9F1C3E"


class TestGetOrCreateInvoice:
    @pytest.mark.asyncio
    async def test_first_access_issues_invoice(self, mock_db, reporter, email_service):
        order = OrderFactory.build(paid=True)
        mock_db.execute.side_effect = [make_result(scalar=order), make_result(scalar=None)]

        invoice, _ = await InvoiceService(mock_db, reporter, email_service).get_or_create_invoice(order.id)

        assert isinstance(invoice, Invoice)
        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.invoice_number.endswith(str(order.id)[:8].upper())
        mock_db.add.assert_called_once_with(invoice)

    @pytest.mark.asyncio
    async def test_refunded_orders_keep_their_invoice(self, mock_db, reporter, email_service):
        order = OrderFactory.build(refunded=True)
        invoice = InvoiceFactory.build(order_id=order.id)
        mock_db.execute.side_effect = [make_result(scalar=order), make_result(scalar=invoice)]

        result, _ = await InvoiceService(mock_db, reporter, email_service).get_or_create_invoice(order.id)

        assert result is invoice


class TestSend:
    @pytest.mark.asyncio
    async def test_send_marks_invoice_sent(self, mock_db, reporter, email_service):
        order = OrderFactory.build(paid=True, email="buyer@example.com")
        invoice = InvoiceFactory.build(order_id=order.id)
        mock_db.execute.side_effect = [make_result(scalar=order), make_result(scalar=invoice)]

        result = await InvoiceService(mock_db, reporter, email_service).send(order.id)

        assert result.status == InvoiceStatus.SENT
        assert result.sent_to == "buyer@example.com"
        assert result.sent_at is not None
        kwargs = email_service.send_invoice.call_args.kwargs
        assert kwargs["pdf_bytes"] == b"%PDF"
        assert kwargs["total"] == "$59.99"

    @pytest.mark.asyncio
    async def test_send_to_other_recipient(self, mock_db, reporter, email_service):
        order = OrderFactory.build(paid=True)
        invoice = InvoiceFactory.build(order_id=order.id)
        mock_db.execute.side_effect = [make_result(scalar=order), make_result(scalar=invoice)]

        result = await InvoiceService(mock_db, reporter, email_service).send(
            order.id, recipient_email="accounts@example.com"
        )

        assert result.sent_to == "accounts@example.com"
        assert email_service.send_invoice.call_args.args[0] == "accounts@example.com"

    @pytest.mark.asyncio
    async def test_resend_failure_leaves_invoice_unsent(self, mock_db, reporter, email_service):
        order = OrderFactory.build(paid=True)
        invoice = InvoiceFactory.build(order_id=order.id)
        mock_db.execute.side_effect = [make_result(scalar=order), make_result(scalar=invoice)]
        email_service.send_invoice.side_effect = ResendError(
            code=500, error_type="application_error", message="down", suggested_action="retry"
        )

        with pytest.raises(ProviderError):
            await InvoiceService(mock_db, reporter, email_service).send(order.id)

        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.sent_at is None
