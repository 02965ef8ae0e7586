"""
DNS zone replication (SOA serial) consistency probe.

Compares the serial held by a zone's master with the serial each slave reports
and maps the result to a monitoring state (OK / WARNING / CRITICAL / UNKNOWN).

Public entrypoints: SyncProbe, evaluate, format_result
"""

from .evaluator import aggregate, classify, evaluate, resolve_state
from .formatter import format_error, format_result
from .probe import SyncProbe
from .states import State

__version__ = "0.1.0"

__all__ = [
    "State",
    "SyncProbe",
    "aggregate",
    "classify",
    "evaluate",
    "format_error",
    "format_result",
    "resolve_state",
]
