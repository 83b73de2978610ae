"""Tests for kicomav_sdk.exceptions."""

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


def test_hierarchy():
    for cls in (
        KicomAVConnectionError,
        KicomAVTimeoutError,
        KicomAVServiceUnavailableError,
        KicomAVFileTooLargeError,
        KicomAVBadRequestError,
    ):
        assert issubclass(cls, KicomAVTransportError)
    for cls in (KicomAVParseError, KicomAVTransportError, KicomAVScanningError, KicomAVBlockedError):
        assert issubclass(cls, KicomAVError)


def test_parse_error_is_not_a_transport_error():
    assert not issubclass(KicomAVParseError, KicomAVTransportError)


def test_base_is_exception():
    assert issubclass(KicomAVError, Exception)


def test_transport_error_details():
    exc = KicomAVTransportError("boom", url="http://x/ping", status_code=500, body="down")
    assert str(exc) == "boom"
    assert exc.url == "http://x/ping"
    assert exc.status_code == 500
    assert exc.body == "down"


def test_parse_error_details():
    exc = KicomAVParseError("bad", body="???", daemon_error="engine crashed")
    assert exc.body == "???"
    assert exc.daemon_error == "engine crashed"
