"""Document generators: invoice PDFs and order exports."""

from .base_reporter import BaseOrderReporter
from .csv_reporter import OrdersCSVReporter
from .excel_reporter import OrdersExcelReporter
from .pdf_reporter import InvoicePDFReporter

__all__ = [
    "BaseOrderReporter",
    "OrdersCSVReporter",
    "OrdersExcelReporter",
    "InvoicePDFReporter",
]
