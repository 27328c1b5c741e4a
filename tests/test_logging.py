"""
Tests for storefront log formatting.
"""

import json
import logging
import sys

import pytest

from storefront import __version__
from storefront.logging_config import JSONFormatter, TextFormatter, configure_logging


def make_record(message="Order placed", **context):
    record = logging.makeLogRecord({
        "name": "storefront.ordering.controller",
        "levelno": logging.INFO,
        "levelname": "INFO",
        "msg": message,
    })
    for key, value in context.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_carries_service_and_context(self):
        line = JSONFormatter().format(make_record(order_id="ORD-1", plan_id="rdp-basic", user_id=None))
        entry = json.loads(line)

        assert entry["service"] == "storefront"
        assert entry["version"] == __version__
        assert entry["message"] == "Order placed"
        assert entry["order_id"] == "ORD-1"
        assert entry["plan_id"] == "rdp-basic"
        assert "user_id" not in entry
        assert entry["timestamp"].endswith("Z")

    def test_exception_included(self):
        try:
            raise RuntimeError("store down")
        except RuntimeError:
            record = make_record(exc_info=sys.exc_info())
        entry = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: store down" in entry["exception"]


class TestTextFormatter:

    def test_context_appended(self):
        line = TextFormatter().format(make_record(media_id="m1", storage_type="local"))
        assert line.endswith("Order placed [media_id=m1 storage_type=local]")

    def test_plain_without_context(self):
        assert TextFormatter().format(make_record()).endswith("Order placed")


class TestConfigureLogging:

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_text_format(self):
        configure_logging("debug", "text")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[-1].formatter, TextFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_unknown_format_rejected(self):
        with pytest.raises(ValueError, match="Unknown log format"):
            configure_logging("INFO", "xml")
