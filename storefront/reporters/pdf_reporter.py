"""Invoice PDF generator.

Renders the invoice as HTML and converts it with weasyprint.

Note: weasyprint requires system dependencies (cairo, pango).
On Ubuntu/Debian: apt-get install libcairo2 libpango-1.0-0 libpangocairo-1.0-0
On macOS: brew install cairo pango
"""

import os
from html import escape
from typing import Any, Dict, Optional

from storefront.db.models import Invoice, Order
from storefront.logging_config import get_logger
from storefront.reporters.base_reporter import format_cents

logger = get_logger(__name__)

COMPANY_NAME = os.getenv("STOREFRONT_COMPANY_NAME", "Storefront")
COMPANY_ADDRESS = os.getenv("STOREFRONT_COMPANY_ADDRESS", "")
COMPANY_EMAIL = os.getenv("STOREFRONT_COMPANY_EMAIL", "support@example.com")


class InvoicePDFReporter:
    """Generate invoice PDFs for paid orders."""

    def __init__(self, page_size: str = "Letter"):
        self.page_size = page_size

    def render(self, invoice: Invoice, order: Order) -> bytes:
        """Render the invoice to PDF bytes.

        Raises:
            ImportError: If weasyprint is not installed
        """
        try:
            from weasyprint import CSS, HTML
        except ImportError:
            raise ImportError(
                "Invoice PDFs require weasyprint. "
                "Install with: pip install weasyprint\n"
                "Note: weasyprint requires system dependencies (cairo, pango). "
                "See https://weasyprint.org/docs/install/"
            )

        html = HTML(string=self.build_html(invoice, order))
        pdf = html.write_pdf(stylesheets=[CSS(string=self._get_css())])
        logger.info(f"Invoice PDF rendered: {invoice.invoice_number}")
        return pdf

    def build_html(self, invoice: Invoice, order: Order) -> str:
        """Build the invoice HTML. User-supplied values are escaped."""
        currency = order.currency
        rows = []
        for item in order.items:
            rows.append(f"""
                <tr>
                    <td>{escape(item.name)}</td>
                    <td>{escape(item.sku or '')}</td>
                    <td class="num">{item.quantity}</td>
                    <td class="num">{format_cents(item.unit_price_cents, currency)}</td>
                    <td class="num">{format_cents(item.line_total_cents, currency)}</td>
                </tr>
            """)

        issued = invoice.issued_at.strftime("%B %d, %Y") if invoice.issued_at else ""
        shipping = "Free" if order.shipping_cents == 0 else format_cents(order.shipping_cents, currency)

        return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>Invoice {escape(invoice.invoice_number)}</title>
</head>
<body>
    <div class="header">
        <div>
            <h1>{escape(COMPANY_NAME)}</h1>
            <p>{escape(COMPANY_ADDRESS)}</p>
            <p>{escape(COMPANY_EMAIL)}</p>
        </div>
        <div class="meta">
            <h2>INVOICE</h2>
            <p><strong>{escape(invoice.invoice_number)}</strong></p>
            <p>Issued: {issued}</p>
            <p>Order: {escape(order.order_number)}</p>
        </div>
    </div>

    <div class="bill-to">
        <h3>Bill To</h3>
        <p>{escape(order.email)}</p>
        {self._address_html(order.shipping_address)}
    </div>

    <table class="items">
        <thead>
            <tr>
                <th>Item</th>
                <th>SKU</th>
                <th class="num">Qty</th>
                <th class="num">Unit Price</th>
                <th class="num">Total</th>
            </tr>
        </thead>
        <tbody>
            {"".join(rows)}
        </tbody>
    </table>

    <table class="totals">
        <tr><td>Subtotal</td><td class="num">{format_cents(order.subtotal_cents, currency)}</td></tr>
        <tr><td>Tax</td><td class="num">{format_cents(order.tax_cents, currency)}</td></tr>
        <tr><td>Shipping</td><td class="num">{shipping}</td></tr>
        <tr class="grand"><td>Total</td><td class="num">{format_cents(order.total_cents, currency)}</td></tr>
    </table>

    <p class="footer">Thank you for your order.</p>
</body>
</html>
"""

    def _address_html(self, address: Optional[Dict[str, Any]]) -> str:
        if not address:
            return ""
        keys = ("name", "line1", "line2", "city", "state", "postal_code", "country")
        lines = [escape(str(address[k])) for k in keys if address.get(k)]
        return "".join(f"<p>{line}</p>" for line in lines)

    def _get_css(self) -> str:
        return f"""
@page {{ size: {self.page_size}; margin: 2cm; }}
body {{ font-family: Helvetica, Arial, sans-serif; font-size: 11pt; color: #222; }}
.header {{ display: flex; justify-content: space-between; border-bottom: 2px solid #4472C4; padding-bottom: 12px; }}
.header h1 {{ margin: 0; color: #4472C4; }}
.meta {{ text-align: right; }}
.meta h2 {{ margin: 0; letter-spacing: 2px; }}
.bill-to {{ margin: 24px 0; }}
.bill-to p {{ margin: 2px 0; }}
table {{ width: 100%; border-collapse: collapse; }}
.items th {{ background: #4472C4; color: white; padding: 6px; text-align: left; }}
.items td {{ border-bottom: 1px solid #ddd; padding: 6px; }}
.num {{ text-align: right; }}
.totals {{ width: 40%; margin-left: 60%; margin-top: 16px; }}
.totals td {{ padding: 4px 6px; }}
.grand td {{ font-weight: bold; border-top: 2px solid #222; }}
.footer {{ margin-top: 40px; color: #808080; font-style: italic; }}
"""
