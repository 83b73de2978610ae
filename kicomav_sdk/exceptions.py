"""Exception hierarchy for the KicomAV SDK."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kicomav_sdk.models import Decision


class KicomAVError(Exception):
    """Base exception for all KicomAV SDK errors."""


class KicomAVParseError(KicomAVError):
    """Raised when a successful scan response cannot be interpreted.

    Attributes:
        body: The raw response body, kept for diagnostics.
        daemon_error: The ``"error"`` field reported by the daemon when it
            answered ``status=error``, otherwise ``None``.
    """

    def __init__(self, message: str, body: str | None = None, daemon_error: str | None = None) -> None:
        super().__init__(message)
        self.body = body
        self.daemon_error = daemon_error


class KicomAVTransportError(KicomAVError):
    """Raised when the daemon could not give a usable answer.

    Covers an unreachable daemon, a timeout, a non-2xx status and an
    uninterpretable 2xx body.

    Attributes:
        url: The URL that was requested.
        status_code: HTTP status, when a response was received.
        body: Response body, when one was received.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.body = body


class KicomAVConnectionError(KicomAVTransportError):
    """Raised when the SDK cannot reach the KicomAV daemon."""


class KicomAVTimeoutError(KicomAVTransportError):
    """Raised when a request exceeds the connect or read timeout.

    Also used for HTTP 504 responses.
    """


class KicomAVServiceUnavailableError(KicomAVTransportError):
    """Raised for HTTP 502 and 503 responses."""


class KicomAVFileTooLargeError(KicomAVTransportError):
    """Raised when the uploaded file exceeds the daemon's size limit (HTTP 413)."""


class KicomAVBadRequestError(KicomAVTransportError):
    """Raised for malformed requests (HTTP 400)."""


class KicomAVScanningError(KicomAVError):
    """Wraps a failure outside the scan protocol, e.g. an unreadable content stream.

    The original exception is available as ``__cause__``.
    """


class KicomAVBlockedError(KicomAVError):
    """Raised by :meth:`Decision.raise_for_block` when content must be rejected."""

    def __init__(self, decision: Decision) -> None:
        super().__init__(decision.reason)
        self.decision = decision
