from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .models import (
    Classification,
    EvaluationResult,
    ServerRecord,
    SlaveStatus,
    ToleranceConfig,
)
from .states import State


# ----------------------------
# Per-slave classification
# ----------------------------

def classify(master_serial: int, slave: ServerRecord, tolerance: int = 0) -> Classification:
    """
    Decide whether one slave is in sync with the master.

    Serials are compared with plain subtraction. RFC 1982 wraparound is NOT
    handled: a slave that wrapped past 2**32 - 1 shows up as far behind.

    Args:
        master_serial: serial reported by (or given for) the master.
        slave: the slave and its serial; serial None means the lookup failed.
        tolerance: allowed lag; 0 requires exact equality.

    Returns:
        Classification with status and delta (master - slave).
    """
    if slave.serial is None:
        return Classification(slave, SlaveStatus.TOO_FAR_BEHIND, None)

    delta = master_serial - slave.serial

    if delta == 0:
        return Classification(slave, SlaveStatus.IN_SYNC, 0)

    # Strict mode: any mismatch fails, whichever direction.
    if tolerance == 0:
        status = SlaveStatus.AHEAD if delta < 0 else SlaveStatus.BEHIND
        return Classification(slave, status, delta)

    if delta < 0:
        return Classification(slave, SlaveStatus.AHEAD, delta)
    if delta <= tolerance:
        return Classification(slave, SlaveStatus.IN_SYNC, delta)
    return Classification(slave, SlaveStatus.TOO_FAR_BEHIND, delta)


def aggregate(
    master_serial: int,
    slaves: Sequence[ServerRecord],
    tolerance: int = 0,
) -> Tuple[int, List[ServerRecord], List[Classification]]:
    """Classify every slave once, in input order; failed slaves keep that order."""
    classifications = [classify(master_serial, s, tolerance) for s in slaves]
    failed = [c.server for c in classifications if c.failed]
    return len(failed), failed, classifications


# ----------------------------
# Threshold mapping
# ----------------------------

def resolve_state(fail_count: int, warn: Optional[int] = None, crit: Optional[int] = None) -> State:
    # Order matters: with only one threshold configured, counts that do not
    # exceed it are OK.
    if crit is not None and fail_count > crit:
        return State.CRITICAL
    if warn is not None and fail_count > warn:
        return State.WARNING
    if warn is None and crit is None and fail_count > 0:
        return State.CRITICAL
    return State.OK


def evaluate(
    master_serial: int,
    slaves: Sequence[ServerRecord],
    thresholds: Optional[ToleranceConfig] = None,
) -> EvaluationResult:
    """Run classification and threshold mapping for one zone."""
    cfg = thresholds or ToleranceConfig()
    fail_count, failed, classifications = aggregate(master_serial, slaves, cfg.tolerance)
    return EvaluationResult(
        master_serial=master_serial,
        state=resolve_state(fail_count, cfg.warn, cfg.crit),
        fail_count=fail_count,
        failed_servers=failed,
        classifications=classifications,
    )
