"""Data models for KicomAV scan results and gate decisions."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from kicomav_sdk.exceptions import KicomAVBlockedError

INFECTED_PLACEHOLDER = "INFECTED"


@dataclass(frozen=True, slots=True)
class ScanVerdict:
    """Conclusion of the daemon about a submitted stream.

    Attributes:
        infected: ``True`` when the daemon reported a detection.
        signature: Threat identifier; always set for infected verdicts
            (``"INFECTED"`` when the daemon gave none) and always ``None``
            for clean ones.
    """

    infected: bool
    signature: str | None = None

    def __post_init__(self) -> None:
        if self.infected:
            if self.signature is None or not self.signature.strip():
                object.__setattr__(self, "signature", INFECTED_PLACEHOLDER)
        elif self.signature is not None:
            raise ValueError("a clean verdict cannot carry a signature")

    @classmethod
    def clean(cls) -> ScanVerdict:
        return cls(infected=False)

    @classmethod
    def infected_with(cls, signature: str | None = None) -> ScanVerdict:
        return cls(infected=True, signature=signature)

    def __str__(self) -> str:
        return f"INFECTED: {self.signature}" if self.infected else "CLEAN"


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Connection settings shared by every scan issued through a client.

    Attributes:
        base_url: Root URL of the daemon; trailing slashes are stripped.
        connect_timeout: Connect timeout in seconds.
        read_timeout: Read timeout in seconds.
    """

    base_url: str
    connect_timeout: float = 5.0
    read_timeout: float = 60.0

    def __post_init__(self) -> None:
        base_url = (self.base_url or "").strip().rstrip("/")
        if not base_url:
            raise ValueError("base_url must not be empty")
        if self.connect_timeout <= 0 or self.read_timeout <= 0:
            raise ValueError("timeouts must be positive")
        object.__setattr__(self, "base_url", base_url)

    @property
    def timeout(self) -> tuple[float, float]:
        """``(connect, read)`` tuple in the form ``requests`` expects."""
        return (self.connect_timeout, self.read_timeout)


@dataclass(frozen=True, slots=True)
class HealthCheckResult:
    """Health status of the KicomAV daemon.

    Attributes:
        healthy: ``True`` when the daemon answered the ping.
        message: Trimmed ping response body.
    """

    healthy: bool
    message: str


class ScanOutcome(str, enum.Enum):
    CLEAN = "clean"
    INFECTED = "infected"
    TRANSPORT_FAILURE = "transport_failure"
    UNEXPECTED_FAILURE = "unexpected_failure"


class Action(str, enum.Enum):
    ALLOW = "allow"
    BLOCK = "block"


@dataclass(frozen=True, slots=True)
class Decision:
    """Final answer of the gate for one content update.

    Attributes:
        action: :attr:`Action.ALLOW` or :attr:`Action.BLOCK`.
        outcome: What happened during the scan attempt.
        reason: Human-readable explanation, suitable for a rejection message.
        filename: Filename that was sent to the daemon.
        signature: Threat identifier for infected content.
        cause: The transport or scanning error behind a failed scan.
        node_ref: Caller-supplied identifier of the scanned entity.
    """

    action: Action
    outcome: ScanOutcome
    reason: str
    filename: str | None = None
    signature: str | None = None
    cause: BaseException | None = None
    node_ref: str | None = None

    @property
    def allowed(self) -> bool:
        return self.action is Action.ALLOW

    @property
    def blocked(self) -> bool:
        return self.action is Action.BLOCK

    @property
    def scanned(self) -> bool:
        """``True`` only when the daemon produced a verdict.

        Distinguishes "confirmed clean" from "allowed despite scan failure".
        """
        return self.outcome in (ScanOutcome.CLEAN, ScanOutcome.INFECTED)

    def raise_for_block(self) -> None:
        """Raise :class:`KicomAVBlockedError` if this decision blocks the content."""
        if self.blocked:
            raise KicomAVBlockedError(self)
