"""Allow/block policy applied to each content update.

The gate makes one scan attempt per call and turns its outcome into a
:class:`~kicomav_sdk.models.Decision`:

* clean verdict: allow;
* infected verdict: block, whatever the posture;
* transport failure (daemon down, timeout, bad status, unparsable body) or
  unexpected failure (e.g. the content stream could not be read): allow
  under fail-open, block under fail-closed.

The gate does not log. Callers audit the returned decision, for instance with
:func:`kicomav_sdk.audit.log_decision`, and reject the write with
:meth:`Decision.raise_for_block`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, BinaryIO

from kicomav_sdk.client import KicomAVClient, safe_filename
from kicomav_sdk.config import GateSettings, get_settings
from kicomav_sdk.exceptions import KicomAVParseError, KicomAVScanningError, KicomAVTransportError
from kicomav_sdk.models import Action, Decision, ScanOutcome, ScanVerdict

if TYPE_CHECKING:
    import requests

    from kicomav_sdk.async_client import AsyncKicomAVClient


class ScanGate:
    """Synchronous scanning gate.

    Args:
        client: Client used to reach the daemon; shared by all calls.
        fail_open: Posture applied when no verdict can be obtained.
            ``False`` (the default) blocks the content.

    Example::

        gate = ScanGate.from_settings()
        decision = gate.evaluate(reader.stream(), "invoice.pdf", node_ref=node_id)
        log_decision(decision)
        decision.raise_for_block()
    """

    def __init__(self, client: KicomAVClient, fail_open: bool = False) -> None:
        self._client = client
        self._fail_open = fail_open

    @classmethod
    def from_settings(
        cls,
        settings: GateSettings | None = None,
        session: requests.Session | None = None,
    ) -> ScanGate:
        settings = settings or get_settings()
        client = KicomAVClient.from_config(settings.client_config(), session=session)
        return cls(client, fail_open=settings.fail_open)

    @property
    def fail_open(self) -> bool:
        return self._fail_open

    def evaluate(
        self,
        stream: BinaryIO,
        filename: str | None = None,
        *,
        fail_open: bool | None = None,
        node_ref: str | None = None,
    ) -> Decision:
        """Scan *stream* once and decide whether the content may proceed.

        Args:
            stream: Content to scan; consumed once.
            filename: Display filename sent to the daemon.
            fail_open: Overrides the gate's posture for this call.
            node_ref: Identifier of the scanned entity, copied to the decision.

        Returns:
            The :class:`Decision`. Never raises for scan failures.
        """
        posture = self._fail_open if fail_open is None else fail_open
        name = safe_filename(filename)
        try:
            verdict = self._client.submit(stream, filename)
        except (KicomAVTransportError, KicomAVParseError) as exc:
            return _transport_failure(exc, posture, name, node_ref)
        except Exception as exc:
            return _unexpected_failure(exc, posture, name, node_ref)
        return _from_verdict(verdict, name, node_ref)


class AsyncScanGate:
    """Asynchronous scanning gate; same policy as :class:`ScanGate`."""

    def __init__(self, client: AsyncKicomAVClient, fail_open: bool = False) -> None:
        self._client = client
        self._fail_open = fail_open

    @classmethod
    def from_settings(cls, settings: GateSettings | None = None) -> AsyncScanGate:
        from kicomav_sdk.async_client import AsyncKicomAVClient

        settings = settings or get_settings()
        return cls(AsyncKicomAVClient.from_config(settings.client_config()), fail_open=settings.fail_open)

    @property
    def fail_open(self) -> bool:
        return self._fail_open

    async def evaluate(
        self,
        stream: BinaryIO,
        filename: str | None = None,
        *,
        fail_open: bool | None = None,
        node_ref: str | None = None,
    ) -> Decision:
        posture = self._fail_open if fail_open is None else fail_open
        name = safe_filename(filename)
        try:
            verdict = await self._client.submit(stream, filename)
        except (KicomAVTransportError, KicomAVParseError) as exc:
            return _transport_failure(exc, posture, name, node_ref)
        except Exception as exc:
            return _unexpected_failure(exc, posture, name, node_ref)
        return _from_verdict(verdict, name, node_ref)


def _from_verdict(verdict: ScanVerdict, filename: str, node_ref: str | None) -> Decision:
    if verdict.infected:
        return Decision(
            action=Action.BLOCK,
            outcome=ScanOutcome.INFECTED,
            reason=f"infected: {verdict.signature}",
            filename=filename,
            signature=verdict.signature,
            node_ref=node_ref,
        )
    return Decision(
        action=Action.ALLOW,
        outcome=ScanOutcome.CLEAN,
        reason="clean",
        filename=filename,
        node_ref=node_ref,
    )


def _transport_failure(exc: Exception, fail_open: bool, filename: str, node_ref: str | None) -> Decision:
    if fail_open:
        action, reason = Action.ALLOW, f"allowed despite scan failure: {exc}"
    else:
        action, reason = Action.BLOCK, str(exc)
    return Decision(
        action=action,
        outcome=ScanOutcome.TRANSPORT_FAILURE,
        reason=reason,
        filename=filename,
        cause=exc,
        node_ref=node_ref,
    )


def _wrap(exc: Exception) -> KicomAVScanningError:
    try:
        raise KicomAVScanningError(f"Error scanning with KicomAV: {exc}") from exc
    except KicomAVScanningError as error:
        return error


def _unexpected_failure(exc: Exception, fail_open: bool, filename: str, node_ref: str | None) -> Decision:
    error = _wrap(exc)
    if fail_open:
        action, reason = Action.ALLOW, f"allowed despite scanning error: {error}"
    else:
        action, reason = Action.BLOCK, str(error)
    return Decision(
        action=action,
        outcome=ScanOutcome.UNEXPECTED_FAILURE,
        reason=reason,
        filename=filename,
        cause=error,
        node_ref=node_ref,
    )
