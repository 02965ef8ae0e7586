# Error hierarchy for the probe.
#
# ConfigurationError and ResolutionError are fatal (UNKNOWN state).
# LookupFailure is per-slave and is folded into the evaluation as an
# unresolved serial.


class DNSSyncError(Exception):
    """Base error for the DNS sync probe."""


class ConfigurationError(DNSSyncError, ValueError):
    """Raised for bad or contradictory command-line settings."""


class ResolutionError(DNSSyncError):
    """Raised when the master, its serial, or the slave list cannot be determined."""


class LookupFailure(DNSSyncError):
    """Raised when a single server's SOA serial could not be obtained."""

    def __init__(self, server: str, reason: str) -> None:
        super().__init__(f"{server}: {reason}")
        self.server = server
        self.reason = reason
