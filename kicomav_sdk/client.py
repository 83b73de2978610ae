"""Synchronous REST client for the KicomAV (k2d) daemon.

Endpoints:

* ``GET  /ping``       health check, answers ``pong`` or ``ok``
* ``POST /scan/file``  multipart/form-data upload with a single ``file`` part
"""

from __future__ import annotations

import itertools
import logging
import time
from typing import BinaryIO, Iterator

import requests

from kicomav_sdk.exceptions import (
    KicomAVBadRequestError,
    KicomAVConnectionError,
    KicomAVFileTooLargeError,
    KicomAVParseError,
    KicomAVServiceUnavailableError,
    KicomAVTimeoutError,
    KicomAVTransportError,
)
from kicomav_sdk.models import ClientConfig, HealthCheckResult, ScanVerdict
from kicomav_sdk.parser import parse_scan_response

logger = logging.getLogger(__name__)

PING_PATH = "/ping"
SCAN_PATH = "/scan/file"
CHUNK_SIZE = 16 * 1024
DEFAULT_FILENAME = "upload.bin"

_STATUS_ERRORS: dict[int, type[KicomAVTransportError]] = {
    400: KicomAVBadRequestError,
    413: KicomAVFileTooLargeError,
    502: KicomAVServiceUnavailableError,
    503: KicomAVServiceUnavailableError,
    504: KicomAVTimeoutError,
}

_boundary_counter = itertools.count()


class KicomAVClient:
    """Synchronous client for the KicomAV REST API.

    A single instance may be shared between threads: it holds no mutable
    state besides the session's connection pool.

    Args:
        base_url: Root URL of the KicomAV daemon.
        connect_timeout: Connect timeout in seconds.
        read_timeout: Read timeout in seconds.
        session: Optional pre-configured :class:`requests.Session` for
            connection pooling or custom authentication headers.

    Example::

        client = KicomAVClient("http://localhost:8080")
        with open("/tmp/sample.pdf", "rb") as fh:
            verdict = client.submit(fh, "sample.pdf")
        print(verdict)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        connect_timeout: float = 5.0,
        read_timeout: float = 60.0,
        session: requests.Session | None = None,
    ) -> None:
        self._config = ClientConfig(base_url, connect_timeout, read_timeout)
        self._owns_session = session is None
        self._session = session or requests.Session()

    @classmethod
    def from_config(cls, config: ClientConfig, session: requests.Session | None = None) -> KicomAVClient:
        return cls(config.base_url, config.connect_timeout, config.read_timeout, session=session)

    @property
    def config(self) -> ClientConfig:
        return self._config

    def health_check(self) -> HealthCheckResult:
        """Ping the daemon.

        Returns:
            A healthy :class:`HealthCheckResult` carrying the ping body.

        Raises:
            KicomAVConnectionError: If the daemon is unreachable.
            KicomAVTimeoutError: If the ping times out.
            KicomAVTransportError: On a non-2xx status or a body without
                ``pong`` / ``ok``.
        """
        status, body = self._request("GET", PING_PATH)
        return _check_ping(self._url(PING_PATH), status, body)

    def submit(self, stream: BinaryIO, filename: str | None = None) -> ScanVerdict:
        """Upload *stream* to ``/scan/file`` and interpret the answer.

        The daemon is pinged first so that a known-down daemon fails within
        the ping timeout instead of after a full upload. The stream is read
        to completion in :data:`CHUNK_SIZE` pieces and sent with chunked
        transfer encoding.

        Args:
            stream: Readable binary stream; consumed once.
            filename: Filename hint; ``upload.bin`` when absent or blank.

        Returns:
            The :class:`ScanVerdict` parsed from the response.

        Raises:
            KicomAVTransportError: If the daemon is unreachable, answers a
                non-2xx status or returns a body that cannot be parsed.
        """
        if stream is None:
            raise ValueError("stream must not be None")

        self.health_check()

        payload = MultipartFile(stream, filename)
        try:
            status, body = self._request(
                "POST",
                SCAN_PATH,
                data=payload,
                headers={"Content-Type": payload.content_type},
            )
        except KicomAVTransportError:
            # urllib3 reports errors raised by the body iterator as connection
            # failures; surface the stream's own error instead.
            if payload.read_error is not None:
                raise payload.read_error
            raise

        logger.debug("Sent %d bytes to KicomAV %s filename=%s", payload.bytes_sent, SCAN_PATH, payload.filename)
        logger.debug("KicomAV %s answered HTTP=%d body=%s", SCAN_PATH, status, body)
        return _interpret_scan(self._url(SCAN_PATH), status, body)

    def close(self) -> None:
        """Close the underlying session if owned by this instance."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> KicomAVClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self._config.base_url}{path}"

    def _request(self, method: str, path: str, **kwargs: object) -> tuple[int, str]:
        url = self._url(path)
        try:
            with self._session.request(method, url, timeout=self._config.timeout, **kwargs) as resp:
                return resp.status_code, _decode(resp.content)
        except requests.Timeout as exc:
            raise KicomAVTimeoutError(f"Timed out calling KicomAV {path}. url={url}: {exc}", url=url) from exc
        except requests.ConnectionError as exc:
            raise KicomAVConnectionError(f"Error connecting to KicomAV {path}. url={url}: {exc}", url=url) from exc
        except requests.RequestException as exc:
            raise KicomAVTransportError(f"Error calling KicomAV {path}. url={url}: {exc}", url=url) from exc


class MultipartFile:
    """Lazily generated ``multipart/form-data`` body with a single ``file`` part.

    Iterating yields the part header, the stream content in *chunk_size*
    pieces and the closing boundary. ``bytes_sent`` counts content bytes
    read so far; ``read_error`` keeps an exception raised by the stream.
    """

    def __init__(self, stream: BinaryIO, filename: str | None = None, chunk_size: int = CHUNK_SIZE) -> None:
        self.boundary = new_boundary()
        self.filename = safe_filename(filename)
        self.content_type = f"multipart/form-data; boundary={self.boundary}"
        self.bytes_sent = 0
        self.read_error: BaseException | None = None
        self._stream = stream
        self._chunk_size = chunk_size

    def head(self) -> bytes:
        return (
            f"--{self.boundary}\r\n"
            f'Content-Disposition: form-data; name="file"; filename="{escape_header_value(self.filename)}"\r\n'
            "Content-Type: application/octet-stream\r\n"
            "\r\n"
        ).encode("utf-8")

    def tail(self) -> bytes:
        return f"\r\n--{self.boundary}--\r\n".encode("ascii")

    def read_chunk(self) -> bytes:
        try:
            chunk = self._stream.read(self._chunk_size)
        except Exception as exc:
            self.read_error = exc
            raise
        if not chunk:
            return b""
        self.bytes_sent += len(chunk)
        return chunk

    def __iter__(self) -> Iterator[bytes]:
        yield self.head()
        while True:
            chunk = self.read_chunk()
            if not chunk:
                break
            yield chunk
        yield self.tail()


# ------------------------------------------------------------------
# Module-level helpers (shared with async variant)
# ------------------------------------------------------------------


def new_boundary() -> str:
    """Return a multipart boundary that is unique within this process."""
    return f"----KicomAVBoundary{time.time_ns():x}.{next(_boundary_counter):x}"


def safe_filename(filename: str | None) -> str:
    if filename is None or not filename.strip():
        return DEFAULT_FILENAME
    return filename


def escape_header_value(value: str) -> str:
    return value.replace("\r", "").replace("\n", "").replace('"', '\\"')


def _decode(content: bytes | None) -> str:
    return content.decode("utf-8", errors="replace") if content else ""


def _raise_for_status(path: str, url: str, status: int, body: str) -> None:
    if 200 <= status < 300:
        return
    error_cls = _STATUS_ERRORS.get(status, KicomAVTransportError)
    raise error_cls(
        f"KicomAV {path} failed. url={url} HTTP={status} body={body}",
        url=url,
        status_code=status,
        body=body,
    )


def _check_ping(url: str, status: int, body: str) -> HealthCheckResult:
    _raise_for_status(PING_PATH, url, status, body)
    message = body.strip()
    norm = message.lower()
    if "pong" not in norm and "ok" not in norm:
        raise KicomAVTransportError(
            f"KicomAV {PING_PATH} failed. url={url} HTTP={status} body={body}",
            url=url,
            status_code=status,
            body=body,
        )
    logger.debug("KicomAV ping ok: %s", message or "(empty)")
    return HealthCheckResult(healthy=True, message=message)


def _interpret_scan(url: str, status: int, body: str) -> ScanVerdict:
    _raise_for_status(SCAN_PATH, url, status, body)
    try:
        return parse_scan_response(body)
    except KicomAVParseError as exc:
        raise KicomAVTransportError(
            f"KicomAV {SCAN_PATH} returned an unusable response. url={url}: {exc}",
            url=url,
            status_code=status,
            body=body,
        ) from exc
