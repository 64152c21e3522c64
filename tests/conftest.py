"""Shared fixtures: a recording HTTP server, REST clients and span capture."""

import gzip
import threading
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from cci.rest import RestClient

FAKE_TOKEN = "fake-token"

_SPAN_EXPORTER = InMemorySpanExporter()
_TRACER_PROVIDER = TracerProvider()
_TRACER_PROVIDER.add_span_processor(SimpleSpanProcessor(_SPAN_EXPORTER))
trace.set_tracer_provider(_TRACER_PROVIDER)


@dataclass
class RecordedRequest:
    method: str
    path: str
    headers: dict[str, str]
    body: str


@dataclass
class RecordingServer:
    """Answers every request with a canned response and records what it received."""

    status_code: int = 200
    body: str = ""
    gzip_body: bool = False
    requests: list[RecordedRequest] = field(default_factory=list)
    url: str = ""

    def respond(self, status_code: int, body: str = "", gzip_body: bool = False):
        self.status_code = status_code
        self.body = body
        self.gzip_body = gzip_body

    @property
    def last(self) -> RecordedRequest:
        assert self.requests, "Server did not receive any request"
        return self.requests[-1]


def _make_handler(server_state: RecordingServer):
    class Handler(BaseHTTPRequestHandler):
        def _handle(self):
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length).decode("utf-8") if length else ""
            server_state.requests.append(
                RecordedRequest(
                    method=self.command,
                    path=self.path,
                    headers=dict(self.headers.items()),
                    body=body,
                )
            )

            payload = server_state.body.encode("utf-8")
            self.send_response(server_state.status_code)
            self.send_header("Content-Type", "application/json")
            if server_state.gzip_body:
                payload = gzip.compress(payload)
                self.send_header("Content-Encoding", "gzip")
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        do_GET = _handle
        do_POST = _handle
        do_PUT = _handle
        do_DELETE = _handle

        def log_message(self, format, *args):
            pass

    return Handler


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep tests away from the user's settings file, tokens and proxies."""
    monkeypatch.setenv("CIRCLECI_CLI_SETTINGS", str(tmp_path / "missing-cli.yml"))
    for name in (
        "CIRCLECI_CLI_HOST",
        "CIRCLECI_CLI_TOKEN",
        "CIRCLECI_CLI_REST_ENDPOINT",
        "CIRCLECI_CLI_APP_HOST",
        "CCI_REQUEST_TIMEOUT",
        "HTTP_PROXY",
        "HTTPS_PROXY",
        "ALL_PROXY",
        "http_proxy",
        "https_proxy",
        "all_proxy",
        "REQUESTS_CA_BUNDLE",
        "CURL_CA_BUNDLE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")
    monkeypatch.setenv("COLUMNS", "250")


@pytest.fixture
def api_server():
    state = RecordingServer()
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _make_handler(state))
    state.url = f"http://127.0.0.1:{httpd.server_address[1]}"
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield state
    finally:
        httpd.shutdown()
        httpd.server_close()
        thread.join(timeout=5)


@pytest.fixture
def rest_client(api_server):
    with RestClient(api_server.url, "api/v2", FAKE_TOKEN, timeout=5) as client:
        yield client


@pytest.fixture
def spans():
    """Capture finished OpenTelemetry spans for the duration of a test."""
    _SPAN_EXPORTER.clear()
    yield _SPAN_EXPORTER
    _SPAN_EXPORTER.clear()
