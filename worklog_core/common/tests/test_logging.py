import json
import logging
import uuid
from decimal import Decimal

from worklog_core.common.logging_config import JsonFormatter, RequestContext, RequestContextFilter


def _record(msg="hello", **extra):
    record = logging.LogRecord("worklog_core.test", logging.INFO, __file__, 1, msg, (), None)
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def test_json_formatter_includes_extras():
    batch_id = uuid.uuid4()
    line = JsonFormatter().format(_record(batch_id=batch_id, total_amount=Decimal("12.50")))
    payload = json.loads(line)

    assert payload["level"] == "INFO"
    assert payload["logger"] == "worklog_core.test"
    assert payload["message"] == "hello"
    assert payload["batch_id"] == str(batch_id)
    assert payload["total_amount"] == "12.50"


def test_context_filter_stamps_request_fields():
    RequestContext.clear()
    RequestContext.set(request_id="rid-1", organization_id="org-1")
    try:
        record = _record()
        RequestContextFilter().filter(record)
    finally:
        RequestContext.clear()

    assert record.request_id == "rid-1"
    assert record.organization_id == "org-1"
    assert record.user_id == "-"
