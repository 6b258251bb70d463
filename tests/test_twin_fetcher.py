"""
Unit tests for the snapshot fetcher
"""
import http.server
import json
import threading
from datetime import datetime

import pytest
import requests

from acquisition.twin_fetcher import TwinDataFetcher
from twins.errors import FetchError, FetchErrorKind
from twins.twin_registry import TwinRegistry

ENDPOINT = "http://telemetry.test/"
RECEIVED_AT = datetime(2024, 5, 1, 8, 30, 0)

PAYLOAD = {
    "Sent data": {
        "Type": "M",
        "Air Temp": 300.0,
        "Process Temp": 310.5,
        "Rotational Speed": 1420.0,
        "Torque": 47.3,
        "Tool Wear": 12.0
    },
    "API Response": {"Health Status": "No Failure"}
}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, body_is_json=True):
        self.status_code = status_code
        self.payload = payload
        self.body_is_json = body_is_json

    def json(self):
        if not self.body_is_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []
        self.closed = False

    def get(self, url, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response

    def close(self):
        self.closed = True


@pytest.fixture
def twin():
    return TwinRegistry().register("Lathe-1")


def make_fetcher(session):
    return TwinDataFetcher(ENDPOINT, timeout=2.0, session=session, clock=lambda: RECEIVED_AT)


class TestTwinDataFetcher:
    """Test TwinDataFetcher.fetch() against a stub session"""

    def test_success(self, twin):
        """Test a 200 reply becomes a timestamped snapshot"""
        session = FakeSession(FakeResponse(payload=PAYLOAD))
        snapshot = make_fetcher(session).fetch(twin)
        assert snapshot.machine_type == "M"
        assert snapshot.process_temp == 310.5
        assert snapshot.timestamp == RECEIVED_AT

    def test_request_shape(self, twin):
        """Test the GET url, accept header and timeout"""
        session = FakeSession(FakeResponse(payload=PAYLOAD))
        make_fetcher(session).fetch(twin)
        assert session.calls == [{
            "url": ENDPOINT,
            "headers": {"accept": "application/json"},
            "timeout": 2.0
        }]

    def test_same_endpoint_for_every_twin(self):
        """Test every twin is fetched from the same endpoint"""
        registry = TwinRegistry()
        session = FakeSession(FakeResponse(payload=PAYLOAD))
        fetcher = make_fetcher(session)
        fetcher.fetch(registry.register("Lathe-1"))
        fetcher.fetch(registry.register("Lathe-2"))
        assert [call["url"] for call in session.calls] == [ENDPOINT, ENDPOINT]

    @pytest.mark.parametrize("status", [404, 500, 503])
    def test_error_status_is_transport(self, twin, status):
        """Test non-2xx statuses are transport errors"""
        session = FakeSession(FakeResponse(status_code=status, payload=PAYLOAD))
        with pytest.raises(FetchError) as exc_info:
            make_fetcher(session).fetch(twin)
        assert exc_info.value.kind == FetchErrorKind.TRANSPORT
        assert exc_info.value.detail == str(status)

    @pytest.mark.parametrize("error", [requests.ConnectionError("refused"), requests.Timeout("slow")])
    def test_network_error_is_transport(self, twin, error):
        """Test network errors are transport errors"""
        with pytest.raises(FetchError) as exc_info:
            make_fetcher(FakeSession(error=error)).fetch(twin)
        assert exc_info.value.kind == FetchErrorKind.TRANSPORT

    def test_invalid_json_is_decode(self, twin):
        """Test a non-JSON body is a decode error"""
        session = FakeSession(FakeResponse(body_is_json=False))
        with pytest.raises(FetchError) as exc_info:
            make_fetcher(session).fetch(twin)
        assert exc_info.value.kind == FetchErrorKind.DECODE

    def test_malformed_body_is_decode(self, twin):
        """Test a body missing fields is a decode error"""
        session = FakeSession(FakeResponse(payload={"API Response": {"Health Status": "No Failure"}}))
        with pytest.raises(FetchError) as exc_info:
            make_fetcher(session).fetch(twin)
        assert exc_info.value.kind == FetchErrorKind.DECODE

    def test_close(self):
        """Test close() closes an injected session"""
        session = FakeSession()
        make_fetcher(session).close()
        assert session.closed

    def test_default_uses_module_level_get(self, twin, monkeypatch):
        """Test a fetcher without a session issues a fresh requests.get per call"""
        calls = []

        def fake_get(url, headers=None, timeout=None):
            calls.append(url)
            return FakeResponse(payload=PAYLOAD)

        monkeypatch.setattr("acquisition.twin_fetcher.requests.get", fake_get)
        fetcher = TwinDataFetcher(ENDPOINT, clock=lambda: RECEIVED_AT)
        fetcher.fetch(twin)
        fetcher.fetch(twin)
        assert calls == [ENDPOINT, ENDPOINT]
        assert fetcher.session is None
        fetcher.close()


class TelemetryHandler(http.server.BaseHTTPRequestHandler):
    status = 200
    body = json.dumps(PAYLOAD).encode("utf-8")
    seen_accept = []

    def log_message(self, format, *args):
        pass

    def do_GET(self):
        TelemetryHandler.seen_accept.append(self.headers.get("accept"))
        self.send_response(self.status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(self.body)))
        self.end_headers()
        self.wfile.write(self.body)


@pytest.fixture
def telemetry_server():
    server = http.server.HTTPServer(("127.0.0.1", 0), TelemetryHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
    TelemetryHandler.status = 200
    TelemetryHandler.seen_accept = []


class TestTwinDataFetcherOverHttp:
    """Test TwinDataFetcher against a local HTTP server"""

    def test_fetch_from_server(self, twin, telemetry_server):
        """Test a real HTTP round trip"""
        url = f"http://127.0.0.1:{telemetry_server.server_address[1]}/"
        fetcher = TwinDataFetcher(url, timeout=2.0)
        try:
            snapshot = fetcher.fetch(twin)
        finally:
            fetcher.close()
        assert snapshot.rotational_speed == 1420.0
        assert snapshot.health_status == "No Failure"
        assert TelemetryHandler.seen_accept == ["application/json"]

    def test_server_error(self, twin, telemetry_server):
        """Test a 500 from a real server"""
        TelemetryHandler.status = 500
        url = f"http://127.0.0.1:{telemetry_server.server_address[1]}/"
        fetcher = TwinDataFetcher(url, timeout=2.0)
        try:
            with pytest.raises(FetchError) as exc_info:
                fetcher.fetch(twin)
        finally:
            fetcher.close()
        assert exc_info.value.kind == FetchErrorKind.TRANSPORT
        assert exc_info.value.detail == "500"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
