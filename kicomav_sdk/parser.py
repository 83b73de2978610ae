"""Interpretation of KicomAV ``/scan/file`` response bodies.

Deployments answer in several shapes, all of which are accepted:

* clamd-like text: ``stream: OK`` / ``stream: Eicar-Test-Signature FOUND``
* plain text: ``OK``, ``CLEAN``, ``no virus``
* JSON: ``{"infected": false}`` / ``{"infected": true, "signature": "..."}``
* k2d JSON: ``{"status": "infected|clean|ok|error", "malware": "..."}``
* JSON: ``{"result": "clean|ok|infected", "signature": "..."}``

Matchers run in a fixed order and the first one that returns a verdict wins.
Explicit infection markers are checked before the generic clean keywords and
an unrecognised body is an error, never a silent clean.
"""

from __future__ import annotations

import re
from typing import Callable, Optional, Union

from kicomav_sdk.exceptions import KicomAVParseError
from kicomav_sdk.models import ScanVerdict

_Matcher = Callable[[str, str], Optional[ScanVerdict]]

_LEADING_LABEL = re.compile(r"^.*?:\s*")
_TRAILING_FOUND = re.compile(r"(?:^|\s+)FOUND\s*$", re.IGNORECASE)
_INFECTED_TRUE = re.compile(r'"infected"\s*:\s*(?:true|1)')
_INFECTED_FALSE = re.compile(r'"infected"\s*:\s*(?:false|0)')


def _json_string(body: str, key: str) -> str | None:
    """Return the string value of *key* in a JSON-ish *body*, or ``None``.

    Deliberately regex based: daemons have been seen emitting JSON fragments
    embedded in text, which a strict decoder would reject.
    """
    match = re.search(rf'"{re.escape(key)}"\s*:\s*"([^"]+)"', body, re.IGNORECASE)
    return match.group(1) if match else None


def _first_json_string(body: str, *keys: str) -> str | None:
    for key in keys:
        value = _json_string(body, key)
        if value is not None:
            return value
    return None


def _match_found(body: str, lower: str) -> ScanVerdict | None:
    if "found" not in lower:
        return None
    signature = _LEADING_LABEL.sub("", body, count=1)
    signature = _TRAILING_FOUND.sub("", signature).strip()
    return ScanVerdict.infected_with(signature or None)


def _match_clean_keywords(body: str, lower: str) -> ScanVerdict | None:
    if " ok" in lower or lower == "ok" or "clean" in lower or "no virus" in lower:
        return ScanVerdict.clean()
    return None


def _match_status_field(body: str, lower: str) -> ScanVerdict | None:
    if '"status"' not in lower:
        return None
    status = _json_string(body, "status")
    if status is None:
        return None

    status = status.strip().lower()
    if "infect" in status:
        return ScanVerdict.infected_with(_first_json_string(body, "malware", "signature", "sig"))
    if status in ("clean", "ok"):
        return ScanVerdict.clean()
    if status == "error":
        error = _json_string(body, "error")
        raise KicomAVParseError(
            f"KicomAV returned status=error: {error} body={body}",
            body=body,
            daemon_error=error,
        )
    return None


def _match_infected_field(body: str, lower: str) -> ScanVerdict | None:
    if '"infected"' not in lower:
        return None
    if _INFECTED_TRUE.search(lower):
        return ScanVerdict.infected_with(_first_json_string(body, "signature", "sig"))
    if _INFECTED_FALSE.search(lower):
        return ScanVerdict.clean()
    return None


def _match_result_field(body: str, lower: str) -> ScanVerdict | None:
    if '"result"' not in lower:
        return None
    result = _json_string(body, "result")
    if result is None:
        return None

    result = result.strip().lower()
    if "clean" in result or result == "ok":
        return ScanVerdict.clean()
    if "infect" in result:
        return ScanVerdict.infected_with(_json_string(body, "signature"))
    return None


# Order matters: first match wins.
MATCHERS: tuple[_Matcher, ...] = (
    _match_found,
    _match_clean_keywords,
    _match_status_field,
    _match_infected_field,
    _match_result_field,
)


def parse_scan_response(body: Union[bytes, str, None]) -> ScanVerdict:
    """Turn a raw ``/scan/file`` response body into a :class:`ScanVerdict`.

    Args:
        body: Response body as returned by the daemon; ``None`` and empty or
            whitespace-only bodies (e.g. HTTP 204) count as clean.

    Returns:
        The verdict of the first matcher that recognises the body.

    Raises:
        KicomAVParseError: If the daemon reported ``status=error`` or no
            matcher recognises the body.
    """
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if body is None or not body.strip():
        return ScanVerdict.clean()

    text = body.strip()
    lower = text.lower()
    for matcher in MATCHERS:
        verdict = matcher(text, lower)
        if verdict is not None:
            return verdict

    raise KicomAVParseError(f"Unexpected KicomAV /scan/file response: {text}", body=text)
