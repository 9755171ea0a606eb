import json
import logging
from types import SimpleNamespace

from starlette.requests import Request
from starlette.responses import Response

from app.rfidpos.core.logging import log_event
from app.rfidpos.middleware.observability import build_request_log_payload


def test_build_request_log_payload():
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/rfidpos/scan",
        "headers": [],
        "route": SimpleNamespace(path="/rfidpos/scan"),
    }
    request = Request(scope)
    request.state.trace_id = "trace-1"
    request.state.error_code = "TAG_NOT_FOUND"
    response = Response(status_code=404)

    payload = build_request_log_payload(request=request, response=response, latency_ms=12.3456)

    assert payload["trace_id"] == "trace-1"
    assert payload["route"] == "/rfidpos/scan"
    assert payload["method"] == "POST"
    assert payload["status_code"] == 404
    assert payload["latency_ms"] == 12.35
    assert payload["error_code"] == "TAG_NOT_FOUND"


def test_build_request_log_payload_without_response():
    request = Request({"type": "http", "method": "GET", "path": "/health", "headers": []})

    payload = build_request_log_payload(request=request, response=None, latency_ms=1.0)

    assert payload["route"] == "/health"
    assert payload["status_code"] == 500
    assert payload["trace_id"] == ""


def test_log_event_emits_json_line(caplog):
    logger = logging.getLogger("rfidpos.test")

    with caplog.at_level(logging.INFO, logger="rfidpos.test"):
        log_event(logger, "scan", tag_id="RFID001", price=None)

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["event"] == "scan"
    assert payload["tag_id"] == "RFID001"
    assert payload["ts"]
