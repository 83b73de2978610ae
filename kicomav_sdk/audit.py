"""Audit records for gate decisions."""

from __future__ import annotations

import logging

from kicomav_sdk.models import Decision, ScanOutcome

audit_logger = logging.getLogger(__name__)


def log_decision(decision: Decision, logger: logging.Logger | None = None) -> None:
    """Write one audit record for *decision*.

    Clean content is logged at INFO, infections and fail-open allows at
    WARNING, fail-closed blocks at ERROR. The ``kicomav_scanned`` extra field
    separates "scanned clean" from "allowed without a valid scan".
    """
    log = logger or audit_logger
    extra = {
        "kicomav_outcome": decision.outcome.value,
        "kicomav_action": decision.action.value,
        "kicomav_node": decision.node_ref,
        "kicomav_filename": decision.filename,
        "kicomav_scanned": decision.scanned,
    }

    if decision.outcome is ScanOutcome.CLEAN:
        log.info("KicomAV clean: node=%s name=%s", decision.node_ref, decision.filename, extra=extra)
        return
    if decision.outcome is ScanOutcome.INFECTED:
        log.warning(
            "KicomAV infection detected: signature=%r node=%s name=%s",
            decision.signature,
            decision.node_ref,
            decision.filename,
            extra=extra,
        )
        return

    exc_info = decision.cause if decision.outcome is ScanOutcome.UNEXPECTED_FAILURE else None
    if decision.allowed:
        log.warning(
            "KicomAV scan failed, fail-open allowing upload: node=%s name=%s cause=%s",
            decision.node_ref,
            decision.filename,
            decision.cause,
            extra=extra,
            exc_info=exc_info,
        )
    else:
        log.error(
            "KicomAV scan failed, blocking upload: node=%s name=%s cause=%s",
            decision.node_ref,
            decision.filename,
            decision.cause,
            extra=extra,
            exc_info=exc_info,
        )
