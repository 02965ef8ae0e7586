from __future__ import annotations

from typing import Dict, List, Optional, Union

import pytest

from dns_sync_check.errors import LookupFailure, ResolutionError
from dns_sync_check.models import CheckConfig, ToleranceConfig
from dns_sync_check.probe import SyncProbe, run_check
from dns_sync_check.states import State


class FakeSource:
    """
    Resolver stand-in.

    serials maps server -> serial, or an exception message string for a failed lookup.
    """

    def __init__(
        self,
        master: str = "ns1.example.com",
        serials: Optional[Dict[str, Union[int, str]]] = None,
        slaves: Optional[List[str]] = None,
    ):
        self.master = master
        self.serials = serials or {}
        self.slaves = slaves or []
        self.calls: List[tuple] = []

    def find_master(self, domain: str) -> str:
        self.calls.append(("find_master", domain))
        if not self.master:
            raise ResolutionError(f"No SOA record found for {domain}")
        return self.master

    def query_serial(self, domain: str, server: str) -> int:
        self.calls.append(("query_serial", server))
        v = self.serials.get(server, "timeout")
        if isinstance(v, str):
            raise LookupFailure(server, v)
        return v

    def find_slaves(self, domain: str, master: str) -> List[str]:
        self.calls.append(("find_slaves", master))
        return list(self.slaves)


def test_discovers_master_serial_and_slaves():
    src = FakeSource(
        serials={"ns1.example.com": 100, "ns2.example.com": 100, "ns3.example.com": 95},
        slaves=["ns2.example.com", "ns3.example.com"],
    )
    out = SyncProbe(src).run(CheckConfig(domain="example.com"))

    assert out.master == "ns1.example.com"
    assert out.result.master_serial == 100
    assert out.result.state is State.CRITICAL
    assert out.result.failed_addresses == ("ns3.example.com",)
    assert ("find_master", "example.com") in src.calls
    assert ("find_slaves", "ns1.example.com") in src.calls


def test_explicit_values_skip_discovery():
    src = FakeSource(master="", serials={"10.0.0.2": 7, "10.0.0.3": 7})
    cfg = CheckConfig(domain="example.com", master="10.0.0.1", serial=7, slaves=("10.0.0.2", "10.0.0.3"))
    out = SyncProbe(src).run(cfg)

    assert out.result.state is State.OK
    assert [c[0] for c in src.calls] == ["query_serial", "query_serial"]


def test_slave_lookup_failure_is_not_fatal():
    src = FakeSource(serials={"ns2.example.com": 100, "ns3.example.com": "rcode REFUSED"})
    cfg = CheckConfig(
        domain="example.com",
        serial=100,
        slaves=("ns2.example.com", "ns3.example.com"),
        thresholds=ToleranceConfig(tolerance=50),
    )
    r = SyncProbe(src).run(cfg).result

    assert r.fail_count == 1
    assert r.failed_servers[0].address == "ns3.example.com"
    assert r.failed_servers[0].error == "rcode REFUSED"


def test_master_serial_failure_is_resolution_error():
    src = FakeSource(serials={"ns1.example.com": "timeout"}, slaves=["ns2.example.com"])
    with pytest.raises(ResolutionError):
        SyncProbe(src).run(CheckConfig(domain="example.com"))


def test_no_slaves_is_resolution_error():
    src = FakeSource(serials={"ns1.example.com": 1}, slaves=[])
    with pytest.raises(ResolutionError):
        SyncProbe(src).run(CheckConfig(domain="example.com"))


def test_parallel_collection_keeps_order():
    names = [f"ns{i}.example.com" for i in range(2, 12)]
    serials = {n: (100 if i % 2 else 90) for i, n in enumerate(names)}
    src = FakeSource(serials=serials)
    cfg = CheckConfig(domain="example.com", serial=100, slaves=tuple(names))

    seq = SyncProbe(src, workers=1).run(cfg).result
    par = SyncProbe(src, workers=4).run(cfg).result

    assert par.failed_addresses == seq.failed_addresses == tuple(names[0::2])
    assert par == seq


def test_run_check_accepts_injected_source():
    src = FakeSource(serials={"ns2.example.com": 5})
    out = run_check(CheckConfig(domain="example.com", serial=5, slaves=("ns2.example.com",)), src)
    assert out.result.state is State.OK
