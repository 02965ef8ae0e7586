from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConfigurationError
from .states import State

SERIAL_MAX = 2**32 - 1


class SlaveStatus(Enum):
    IN_SYNC = "in_sync"
    BEHIND = "behind"
    TOO_FAR_BEHIND = "too_far_behind"
    AHEAD = "ahead"

    @property
    def failed(self) -> bool:
        return self is not SlaveStatus.IN_SYNC


@dataclass(frozen=True)
class ServerRecord:
    """
    One name server and the serial it reported.

    serial is None when the lookup failed (timeout, refused, no SOA, ...);
    error keeps the reason for verbose/JSON output.
    """
    address: str
    serial: Optional[int] = None
    error: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.serial is not None

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "serial": self.serial, "error": self.error}


@dataclass(frozen=True)
class ToleranceConfig:
    warn: Optional[int] = None
    crit: Optional[int] = None
    tolerance: int = 0

    def validate(self) -> "ToleranceConfig":
        """
        Check thresholds before any evaluation happens.

        Raises:
            ConfigurationError: negative values, or warn > crit.
        """
        if self.warn is not None and self.warn < 0:
            raise ConfigurationError(f"Warning threshold must be >= 0 (got {self.warn})")
        if self.crit is not None and self.crit < 0:
            raise ConfigurationError(f"Critical threshold must be >= 0 (got {self.crit})")
        if self.warn is not None and self.crit is not None and self.warn > self.crit:
            raise ConfigurationError(
                f"Warning threshold ({self.warn}) must not exceed critical threshold ({self.crit})"
            )
        if self.tolerance < 0:
            raise ConfigurationError(f"Serial tolerance must be >= 0 (got {self.tolerance})")
        return self


@dataclass(frozen=True)
class Classification:
    server: ServerRecord
    status: SlaveStatus
    delta: Optional[int] = None  # master - slave; None when unresolved

    @property
    def failed(self) -> bool:
        return self.status.failed

    def to_dict(self) -> Dict[str, Any]:
        return {**self.server.to_dict(), "status": self.status.value, "delta": self.delta}


@dataclass
class EvaluationResult:
    master_serial: int
    state: State
    fail_count: int = 0
    failed_servers: List[ServerRecord] = field(default_factory=list)
    classifications: List[Classification] = field(default_factory=list)

    @property
    def failed_addresses(self) -> Tuple[str, ...]:
        return tuple(s.address for s in self.failed_servers)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.name,
            "exit_code": int(self.state),
            "master_serial": self.master_serial,
            "fail_count": self.fail_count,
            "failed_servers": list(self.failed_addresses),
            "slaves": [c.to_dict() for c in self.classifications],
        }


@dataclass(frozen=True)
class CheckConfig:
    """Everything one invocation needs; built and validated by the CLI."""
    domain: str
    master: Optional[str] = None
    slaves: Tuple[str, ...] = ()
    serial: Optional[int] = None
    thresholds: ToleranceConfig = field(default_factory=ToleranceConfig)
    verbosity: int = 0
    timeout: float = 3.0
    retries: int = 0
    workers: int = 1
    port: int = 53
    as_json: bool = False
