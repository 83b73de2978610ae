"""Shared test fixtures."""

from __future__ import annotations

import io
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from kicomav_sdk.config import get_settings


@pytest.fixture()
def sample_bytes() -> bytes:
    return b"Hello, KicomAV!"


@pytest.fixture()
def eicar_bytes() -> bytes:
    """EICAR anti-malware test string (safe; every AV recognises it)."""
    return b"X5O!P%@AP[4\\PZX54(P^)7CC)7}$EICAR-STANDARD-ANTIVIRUS-TEST-FILE!$H+H*"


class _FailingStream(io.RawIOBase):
    """Returns one chunk, then fails like a storage read error."""

    def __init__(self) -> None:
        self._first = b"x" * 100

    def readable(self):
        return True

    def read(self, size=-1):
        if self._first:
            chunk, self._first = self._first, b""
            return chunk
        raise OSError("storage read failed")


@pytest.fixture()
def failing_stream() -> io.RawIOBase:
    return _FailingStream()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    for name in ("KICOMAV_BASE_URL", "KICOMAV_CONNECT_TIMEOUT_MS", "KICOMAV_READ_TIMEOUT_MS", "KICOMAV_FAIL_OPEN"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class _DaemonHandler(BaseHTTPRequestHandler):
    """Minimal KicomAV daemon: ``/ping`` answers ``pong``, ``/scan/file`` answers ``stream: OK``."""

    protocol_version = "HTTP/1.1"

    def do_GET(self):
        self._reply(200 if self.path == "/ping" else 404, b"pong")

    def do_POST(self):
        try:
            body = self._read_chunked()
        except (OSError, ValueError):
            # Client aborted the upload mid-body.
            self.close_connection = True
            return
        self.server.uploads.append(body)
        self._reply(200, b"stream: OK")

    def _read_chunked(self) -> bytes:
        data = b""
        while True:
            size_line = self.rfile.readline()
            if not size_line:
                raise ValueError("connection closed mid-body")
            size = int(size_line.split(b";")[0].strip(), 16)
            if size == 0:
                self.rfile.readline()
                return data
            data += self.rfile.read(size)
            self.rfile.readline()

    def _reply(self, status: int, body: bytes) -> None:
        self.send_response(status)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture()
def daemon(monkeypatch: pytest.MonkeyPatch):
    """A local HTTP server standing in for the KicomAV daemon; yields its server object."""
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)
    server = ThreadingHTTPServer(("127.0.0.1", 0), _DaemonHandler)
    server.daemon_threads = True
    server.uploads = []
    server.base_url = f"http://127.0.0.1:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
    thread.join()
