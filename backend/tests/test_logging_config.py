import json
import logging
import sys

from waitlist.core.logging_config import JsonFormatter, RequestIdFilter, request_id_ctx_var


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("waitlist.test", logging.INFO, __file__, 1, "subscribe_created", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_request_id_filter_uses_context() -> None:
    token = request_id_ctx_var.set("req-abc")
    try:
        record = _record()
        RequestIdFilter().filter(record)
        assert record.request_id == "req-abc"
    finally:
        request_id_ctx_var.reset(token)

    record = _record()
    RequestIdFilter().filter(record)
    assert record.request_id == "-"


def test_json_formatter_includes_http_fields_and_extras() -> None:
    record = _record(request_id="req-1", path="/api/subscribe", status_code=201, email="a****@example.com")
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "subscribe_created"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-1"
    assert payload["path"] == "/api/subscribe"
    assert payload["status_code"] == 201
    assert payload["email"] == "a****@example.com"
    assert "lineno" not in payload


def test_json_formatter_serializes_exceptions() -> None:
    try:
        raise RuntimeError("store down")
    except RuntimeError:
        record = logging.LogRecord("waitlist.test", logging.ERROR, __file__, 1, "Subscription error", None, sys.exc_info())
    payload = json.loads(JsonFormatter().format(record))
    assert "RuntimeError: store down" in payload["exception"]
