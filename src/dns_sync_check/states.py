from __future__ import annotations

from enum import IntEnum


class State(IntEnum):
    """Monitoring-plugin states. The values are the process exit codes."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3

    @property
    def word(self) -> str:
        """Label used in the summary line (WARNING prints as WARN)."""
        return _WORDS[self]


_WORDS = {
    State.OK: "OK",
    State.WARNING: "WARN",
    State.CRITICAL: "CRITICAL",
    State.UNKNOWN: "UNKNOWN",
}
