"""CSV export of orders."""

import csv
import io
from typing import Sequence

from storefront.db.models import Order
from storefront.logging_config import get_logger
from storefront.reporters.base_reporter import EXPORT_COLUMNS, BaseOrderReporter

logger = get_logger(__name__)


class OrdersCSVReporter(BaseOrderReporter):
    """Write orders as UTF-8 CSV with a header row."""

    media_type = "text/csv"
    extension = "csv"

    def generate(self, orders: Sequence[Order]) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(EXPORT_COLUMNS)
        for order in orders:
            row = self._row(order)
            row[-1] = f"{row[-1]:.2f}"
            writer.writerow(row)

        logger.info(f"CSV export generated for {len(orders)} orders")
        return buffer.getvalue().encode("utf-8")
