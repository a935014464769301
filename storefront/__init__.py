"""Storefront API: checkout, orders, refunds, invoices, loyalty, newsletter and media management."""

__version__ = "1.0.0"
