"""Unit tests for the JSON log formatter"""

import json
import logging
import sys
from uuid import uuid4

from observability.logging_config import JSONFormatter, RequestIDFilter
from observability.request_id import request_id_var, set_request_id


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="mail_items.service",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="SCAN fulfilled",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formats_core_fields():
    payload = json.loads(JSONFormatter().format(make_record()))
    assert payload["level"] == "INFO"
    assert payload["logger"] == "mail_items.service"
    assert payload["message"] == "SCAN fulfilled"
    assert payload["timestamp"].endswith("Z")


def test_context_fields_are_copied_as_strings():
    item_id = uuid4()
    payload = json.loads(JSONFormatter().format(make_record(mail_item_id=item_id, user_id=None)))
    assert payload["mail_item_id"] == str(item_id)
    assert payload["user_id"] is None
    assert "subscription_id" not in payload


def test_request_id_filter_uses_context():
    token = request_id_var.set(None)
    try:
        record = make_record()
        RequestIDFilter().filter(record)
        assert record.request_id == "no-request-id"

        set_request_id("req-123")
        RequestIDFilter().filter(record)
        assert json.loads(JSONFormatter().format(record))["request_id"] == "req-123"
    finally:
        request_id_var.reset(token)


def test_exception_info_included():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = make_record()
        record.exc_info = sys.exc_info()
    payload = json.loads(JSONFormatter().format(record))
    assert payload["error"] == "boom"
    assert "RuntimeError" in payload["traceback"]
