"""Tests for order exports and invoice rendering."""

import csv
import io
from datetime import datetime, timezone

import pytest
from openpyxl import load_workbook

from storefront.db.models import OrderStatus
from storefront.reporters import InvoicePDFReporter, OrdersCSVReporter, OrdersExcelReporter
from storefront.reporters.base_reporter import EXPORT_COLUMNS, format_cents
from tests.factories import InvoiceFactory, OrderFactory, OrderItemFactory


@pytest.fixture
def orders():
    created = datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc)
    return [
        OrderFactory.build(paid=True, order_number="ORD-1", created_at=created, total_cents=5999),
        OrderFactory.build(
            order_number="ORD-2",
            created_at=created,
            total_cents=123456,
            items=[OrderItemFactory.build(name="Bowl", quantity=1), OrderItemFactory.build(name="Plate", quantity=4)],
        ),
    ]


@pytest.mark.parametrize(
    "cents,currency,expected",
    [
        (5999, "usd", "$59.99"),
        (123456, "USD", "$1,234.56"),
        (100, "eur", "EUR 1.00"),
        (0, "usd", "$0.00"),
    ],
)
def test_format_cents(cents, currency, expected):
    assert format_cents(cents, currency) == expected


class TestCSVReporter:
    def test_rows_follow_header(self, orders):
        content = OrdersCSVReporter().generate(orders).decode("utf-8")

        rows = list(csv.reader(io.StringIO(content)))
        assert rows[0] == EXPORT_COLUMNS
        assert len(rows) == 3
        assert rows[1][0] == "ORD-1"
        assert rows[1][3] == "processing"
        assert rows[1][6] == "59.99"
        assert rows[2][5] == "Bowl x1; Plate x4"
        assert rows[2][6] == "1234.56"

    def test_empty_export_has_header_only(self):
        content = OrdersCSVReporter().generate([]).decode("utf-8")

        assert list(csv.reader(io.StringIO(content))) == [EXPORT_COLUMNS]

    def test_filename(self):
        assert OrdersCSVReporter().filename("20261019") == "orders-20261019.csv"


class TestExcelReporter:
    def test_workbook_sheets(self, orders):
        workbook = load_workbook(io.BytesIO(OrdersExcelReporter().generate(orders)))

        assert workbook.sheetnames == ["Orders", "Summary"]
        sheet = workbook["Orders"]
        assert [cell.value for cell in sheet[1]] == EXPORT_COLUMNS
        assert sheet["A2"].value == "ORD-1"
        assert sheet["G3"].value == pytest.approx(1234.56)

    def test_summary_counts_statuses(self, orders):
        orders.append(OrderFactory.build(status=OrderStatus.PENDING))

        summary = load_workbook(io.BytesIO(OrdersExcelReporter().generate(orders)))["Summary"]

        counts = {
            summary.cell(row=row, column=1).value: summary.cell(row=row, column=2).value
            for row in range(5, summary.max_row + 1)
        }
        assert counts == {"pending": 2, "processing": 1, "Total": 3}


class TestInvoicePDFReporter:
    def test_html_contains_totals(self):
        order = OrderFactory.build(paid=True, shipping_cents=0, total_cents=5400)
        invoice = InvoiceFactory.build(order_id=order.id, issued_at=datetime(2026, 10, 19, tzinfo=timezone.utc))

        html = InvoicePDFReporter().build_html(invoice, order)

        assert invoice.invoice_number in html
        assert "October 19, 2026" in html
        assert "$54.00" in html
        assert "Free" in html

    def test_html_escapes_customer_values(self):
        order = OrderFactory.build(
            paid=True,
            items=[OrderItemFactory.build(name="<script>alert(1)</script>")],
            shipping_address={"name": "Ann & Bob", "city": "Portland"},
        )
        invoice = InvoiceFactory.build(order_id=order.id)

        html = InvoicePDFReporter().build_html(invoice, order)

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "Ann &amp; Bob" in html
