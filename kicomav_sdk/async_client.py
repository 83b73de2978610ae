"""Asynchronous REST client for the KicomAV daemon (requires ``httpx``)."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import BinaryIO

import httpx

from kicomav_sdk.client import (
    PING_PATH,
    SCAN_PATH,
    MultipartFile,
    _check_ping,
    _decode,
    _interpret_scan,
)
from kicomav_sdk.exceptions import (
    KicomAVConnectionError,
    KicomAVTimeoutError,
    KicomAVTransportError,
)
from kicomav_sdk.models import ClientConfig, HealthCheckResult, ScanVerdict

logger = logging.getLogger(__name__)


class AsyncKicomAVClient:
    """Asynchronous client for the KicomAV REST API.

    Requires the ``httpx`` package (install with ``pip install kicomav-sdk[async]``).

    Args:
        base_url: Root URL of the KicomAV daemon.
        connect_timeout: Connect timeout in seconds.
        read_timeout: Read timeout in seconds.
        client: Optional pre-configured :class:`httpx.AsyncClient`.

    Example::

        async with AsyncKicomAVClient("http://localhost:8080") as client:
            verdict = await client.submit(open("/tmp/sample.pdf", "rb"), "sample.pdf")
            print(verdict)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        connect_timeout: float = 5.0,
        read_timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = ClientConfig(base_url, connect_timeout, read_timeout)
        self._timeout = httpx.Timeout(read_timeout, connect=connect_timeout)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._timeout)

    @classmethod
    def from_config(cls, config: ClientConfig, client: httpx.AsyncClient | None = None) -> AsyncKicomAVClient:
        return cls(config.base_url, config.connect_timeout, config.read_timeout, client=client)

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def health_check(self) -> HealthCheckResult:
        """Ping the daemon.

        Returns:
            A healthy :class:`HealthCheckResult` carrying the ping body.
        """
        status, body = await self._request("GET", PING_PATH)
        return _check_ping(self._url(PING_PATH), status, body)

    async def submit(self, stream: BinaryIO, filename: str | None = None) -> ScanVerdict:
        """Upload *stream* to ``/scan/file`` and interpret the answer.

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

        await self.health_check()

        payload = MultipartFile(stream, filename)
        try:
            status, body = await self._request(
                "POST",
                SCAN_PATH,
                content=_aiter_multipart(payload),
                headers={"Content-Type": payload.content_type},
            )
        except KicomAVTransportError:
            if payload.read_error is not None:
                raise payload.read_error
            raise

        logger.debug("Sent %d bytes to KicomAV %s filename=%s", payload.bytes_sent, SCAN_PATH, payload.filename)
        logger.debug("KicomAV %s answered HTTP=%d body=%s", SCAN_PATH, status, body)
        return _interpret_scan(self._url(SCAN_PATH), status, body)

    async def close(self) -> None:
        """Close the underlying HTTP client if owned by this instance."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncKicomAVClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self._config.base_url}{path}"

    async def _request(self, method: str, path: str, **kwargs: object) -> tuple[int, str]:
        url = self._url(path)
        try:
            resp = await self._client.request(method, url, timeout=self._timeout, **kwargs)
        except httpx.TimeoutException as exc:
            raise KicomAVTimeoutError(f"Timed out calling KicomAV {path}. url={url}: {exc}", url=url) from exc
        except httpx.ConnectError as exc:
            raise KicomAVConnectionError(f"Error connecting to KicomAV {path}. url={url}: {exc}", url=url) from exc
        except httpx.HTTPError as exc:
            raise KicomAVTransportError(f"Error calling KicomAV {path}. url={url}: {exc}", url=url) from exc
        return resp.status_code, _decode(resp.content)


async def _aiter_multipart(payload: MultipartFile) -> AsyncIterator[bytes]:
    """Yield the multipart body.

    The stream is read on the event loop, so it should be memory-backed or quick to read.
    """
    yield payload.head()
    while True:
        chunk = payload.read_chunk()
        if not chunk:
            break
        yield chunk
    yield payload.tail()
