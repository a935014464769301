"""Tests for logging context and formatters."""

import json
import logging
import sys

import pytest

from storefront.logging_config import (
    ContextFilter,
    HumanFormatter,
    JSONFormatter,
    LogContext,
    clear_context,
    get_context,
    set_context,
)


@pytest.fixture(autouse=True)
def reset_context():
    clear_context()
    yield
    clear_context()


def _record(message="Order %s updated", args=("ORD-1",), exc_info=None):
    record = logging.LogRecord("storefront.orders", logging.INFO, __file__, 10, message, args, exc_info)
    ContextFilter().filter(record)
    return record


class TestContext:
    def test_set_context_merges(self):
        set_context(correlation_id="abc")
        set_context(user_id="u1")

        assert get_context() == {"correlation_id": "abc", "user_id": "u1"}

    def test_log_context_restores_previous_fields(self):
        set_context(correlation_id="abc")

        with LogContext(operation="export_orders"):
            assert get_context() == {"correlation_id": "abc", "operation": "export_orders"}

        assert get_context() == {"correlation_id": "abc"}


class TestJSONFormatter:
    def test_includes_context_and_extra(self):
        set_context(correlation_id="abc")
        record = _record()
        record.order_id = "o-1"

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "Order ORD-1 updated"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "storefront.orders"
        assert payload["correlation_id"] == "abc"
        assert payload["order_id"] == "o-1"
        assert "args" not in payload

    def test_exception_is_formatted(self):
        try:
            raise ValueError("bad total")
        except ValueError:
            record = _record("Export failed", (), sys.exc_info())

        payload = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad total" in payload["exception"]


class TestHumanFormatter:
    def test_appends_context_fields(self):
        set_context(correlation_id="abc")

        line = HumanFormatter().format(_record())

        assert "storefront.orders: Order ORD-1 updated" in line
        assert line.endswith("[correlation_id=abc]")

    def test_no_brackets_without_context(self):
        line = HumanFormatter().format(_record())

        assert "[" not in line
