from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from .errors import LookupFailure, ResolutionError
from .evaluator import evaluate
from .formatter import format_slave
from .models import CheckConfig, EvaluationResult, ServerRecord
from .resolver import SOAResolver

log = logging.getLogger(__name__)


class SerialSource(Protocol):
    """What the probe needs from a resolver (SOAResolver, or a fake in tests)."""

    def find_master(self, domain: str) -> str: ...

    def query_serial(self, domain: str, server: str) -> int: ...

    def find_slaves(self, domain: str, master: str) -> List[str]: ...


@dataclass
class ProbeOutcome:
    domain: str
    master: str
    result: EvaluationResult


class SyncProbe:
    """
    One replication check for one zone.

    Flow:
      1) master: from config, else SOA MNAME
      2) master serial: from config, else SOA against the master
      3) slaves: from config, else NS against the master
      4) one serial per slave (failures become unresolved records)
      5) evaluate
    """

    def __init__(self, source: SerialSource, workers: int = 1) -> None:
        self.source = source
        self.workers = max(int(workers), 1)

    def run(self, config: CheckConfig) -> ProbeOutcome:
        domain = config.domain

        master = config.master or self.source.find_master(domain)
        log.info("Master for %s: %s", domain, master)

        master_serial = config.serial
        if master_serial is None:
            try:
                master_serial = self.source.query_serial(domain, master)
            except LookupFailure as e:
                raise ResolutionError(f"Could not get master serial: {e}")
        log.info("Master serial: %d", master_serial)

        slaves = list(config.slaves) or self.source.find_slaves(domain, master)
        if not slaves:
            raise ResolutionError(f"No slave servers found for {domain}")
        log.info("Slaves: %s", " ".join(slaves))

        records = self.collect(domain, slaves)
        result = evaluate(master_serial, records, config.thresholds)

        for c in result.classifications:
            log.info("%s", format_slave(c))

        return ProbeOutcome(domain=domain, master=master, result=result)

    def collect(self, domain: str, slaves: Sequence[str]) -> List[ServerRecord]:
        """Query every slave; the returned list matches the order of `slaves`."""
        if self.workers == 1 or len(slaves) == 1:
            return [self._lookup(domain, s) for s in slaves]

        with concurrent.futures.ThreadPoolExecutor(max_workers=min(self.workers, len(slaves))) as ex:
            return list(ex.map(lambda s: self._lookup(domain, s), slaves))

    def _lookup(self, domain: str, server: str) -> ServerRecord:
        try:
            return ServerRecord(address=server, serial=self.source.query_serial(domain, server))
        except LookupFailure as e:
            log.info("Lookup failed for %s: %s", server, e.reason)
            return ServerRecord(address=server, serial=None, error=e.reason)


def run_check(config: CheckConfig, source: Optional[SerialSource] = None) -> ProbeOutcome:
    """Build the default dnspython resolver (unless given one) and run the probe."""
    if source is None:
        source = SOAResolver(timeout=config.timeout, retries=config.retries, port=config.port)
    return SyncProbe(source, workers=config.workers).run(config)
