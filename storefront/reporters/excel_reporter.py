"""Excel export of orders.

Generates a two-sheet workbook: the order list and a per-status summary.
"""

import io
from collections import Counter
from datetime import datetime, timezone
from typing import Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from storefront.db.models import Order
from storefront.logging_config import get_logger
from storefront.reporters.base_reporter import EXPORT_COLUMNS, BaseOrderReporter

logger = get_logger(__name__)

HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF")
COLUMN_WIDTHS = [18, 26, 32, 14, 16, 50, 12]


class OrdersExcelReporter(BaseOrderReporter):
    """Generate an .xlsx workbook from orders."""

    media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    extension = "xlsx"

    def generate(self, orders: Sequence[Order]) -> bytes:
        wb = Workbook()
        self._create_orders_sheet(wb, orders)
        self._create_summary_sheet(wb, orders)

        buffer = io.BytesIO()
        wb.save(buffer)
        logger.info(f"Excel export generated for {len(orders)} orders")
        return buffer.getvalue()

    def _create_orders_sheet(self, wb: Workbook, orders: Sequence[Order]) -> None:
        ws = wb.active
        ws.title = "Orders"

        ws.append(EXPORT_COLUMNS)
        for cell in ws[1]:
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
            cell.alignment = Alignment(horizontal="center")

        for order in orders:
            ws.append(self._row(order))

        total_column = len(EXPORT_COLUMNS)
        for row in ws.iter_rows(min_row=2, min_col=total_column, max_col=total_column):
            for cell in row:
                cell.number_format = "#,##0.00"

        for idx, width in enumerate(COLUMN_WIDTHS, start=1):
            ws.column_dimensions[get_column_letter(idx)].width = width
        ws.freeze_panes = "A2"

    def _create_summary_sheet(self, wb: Workbook, orders: Sequence[Order]) -> None:
        ws = wb.create_sheet("Summary")

        ws["A1"] = "Order Export"
        ws["A1"].font = Font(bold=True, size=16)
        ws["A2"] = f"Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')} UTC"
        ws["A2"].font = Font(italic=True, color="808080")

        ws["A4"] = "Status"
        ws["B4"] = "Orders"
        for cell in (ws["A4"], ws["B4"]):
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL

        counts = Counter(order.status.value for order in orders)
        row = 5
        for status_value, count in sorted(counts.items()):
            ws.cell(row=row, column=1, value=status_value)
            ws.cell(row=row, column=2, value=count)
            row += 1

        ws.cell(row=row, column=1, value="Total").font = Font(bold=True)
        ws.cell(row=row, column=2, value=len(orders)).font = Font(bold=True)
        ws.column_dimensions["A"].width = 20
        ws.column_dimensions["B"].width = 12
