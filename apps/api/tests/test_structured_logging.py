"""
Tests for the JSON log format and request id propagation.
"""

import json
import logging

from core.logging import (
    JSONFormatter,
    RequestContextFilter,
    bind_request_id,
    current_request_id,
    reset_request_id,
)


def _record(msg="regenerated", **extra):
    record = logging.LogRecord("services.plan_regeneration", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    RequestContextFilter().filter(record)
    return record


class TestJSONFormatter:

    def test_extra_fields_are_merged(self):
        payload = json.loads(JSONFormatter().format(_record(extra_fields={"plan_id": "p-1", "action": "increase"})))
        assert payload["message"] == "regenerated"
        assert payload["level"] == "INFO"
        assert payload["plan_id"] == "p-1"
        assert payload["action"] == "increase"
        assert "request_id" not in payload

    def test_bound_request_id_is_included(self):
        token = bind_request_id("req-42")
        try:
            assert current_request_id() == "req-42"
            payload = json.loads(JSONFormatter().format(_record()))
        finally:
            reset_request_id(token)
        assert payload["request_id"] == "req-42"
        assert current_request_id() is None

    def test_filter_marks_records_outside_requests(self):
        assert _record().request_id == "-"
