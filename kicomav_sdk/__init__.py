"""KicomAV SDK: REST client and fail-open/fail-closed scanning gate for the KicomAV daemon."""

import logging

from kicomav_sdk.audit import log_decision
from kicomav_sdk.client import KicomAVClient
from kicomav_sdk.config import GateSettings, get_settings
from kicomav_sdk.exceptions import (
    KicomAVBadRequestError,
    KicomAVBlockedError,
    KicomAVConnectionError,
    KicomAVError,
    KicomAVFileTooLargeError,
    KicomAVParseError,
    KicomAVScanningError,
    KicomAVServiceUnavailableError,
    KicomAVTimeoutError,
    KicomAVTransportError,
)
from kicomav_sdk.gate import AsyncScanGate, ScanGate
from kicomav_sdk.models import (
    Action,
    ClientConfig,
    Decision,
    HealthCheckResult,
    ScanOutcome,
    ScanVerdict,
)
from kicomav_sdk.parser import parse_scan_response

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "KicomAVClient",
    "AsyncKicomAVClient",
    "ScanGate",
    "AsyncScanGate",
    "GateSettings",
    "get_settings",
    "parse_scan_response",
    "log_decision",
    "ScanVerdict",
    "ClientConfig",
    "HealthCheckResult",
    "ScanOutcome",
    "Action",
    "Decision",
    "KicomAVError",
    "KicomAVParseError",
    "KicomAVTransportError",
    "KicomAVConnectionError",
    "KicomAVTimeoutError",
    "KicomAVServiceUnavailableError",
    "KicomAVFileTooLargeError",
    "KicomAVBadRequestError",
    "KicomAVScanningError",
    "KicomAVBlockedError",
]


def __getattr__(name: str) -> object:
    """Lazy-import the async client so ``httpx`` is optional at import time."""
    if name == "AsyncKicomAVClient":
        from kicomav_sdk.async_client import AsyncKicomAVClient

        return AsyncKicomAVClient
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
