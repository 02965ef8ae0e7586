from __future__ import annotations

import json
from typing import Any, Dict, Optional

from .models import Classification, EvaluationResult
from .states import State


def format_result(result: EvaluationResult) -> str:
    """
    Build the final status line.

    Example:
        DNS CRITICAL, master serial: 100, fails: 1, failed Servers: ns2.example.com
    """
    line = f"DNS {result.state.word}, master serial: {result.master_serial}, fails: {result.fail_count}"
    if result.fail_count > 0:
        line += f", failed Servers: {' '.join(result.failed_addresses)}"
    return line


def format_error(exc: BaseException) -> str:
    return f"DNS {State.UNKNOWN.word}, {exc}"


def format_slave(c: Classification) -> str:
    """One verbose line per slave."""
    s = c.server
    serial = str(s.serial) if s.resolved else f"unresolved ({s.error or 'no answer'})"
    delta = "" if c.delta is None else f", delta {c.delta}"
    return f"{s.address}: serial {serial}, {c.status.value}{delta}"


def format_json(
    result: EvaluationResult,
    domain: str,
    master: Optional[str] = None,
) -> str:
    out: Dict[str, Any] = {"domain": domain, "master": master, **result.to_dict()}
    return json.dumps(out, indent=2)
