from __future__ import annotations

import logging
from typing import List

import dns.exception
import dns.flags
import dns.message
import dns.query
import dns.rcode
import dns.rdatatype
import dns.resolver

from .errors import LookupFailure, ResolutionError
from .targets import is_ip, normalize_target

log = logging.getLogger(__name__)


class SOAResolver:
    """
    dnspython-backed lookups for the sync probe.

    Discovery (master name, server addresses) goes through the system's
    recursive resolver. Serial and NS queries are sent directly to the named
    server with RD=0 so the answer comes from that server's own copy of the zone.

    Design goals:
      - no retries unless asked for (retries=0)
      - a failed direct query is a LookupFailure, never a bogus serial
    """

    def __init__(self, timeout: float = 3.0, retries: int = 0, port: int = 53) -> None:
        self.timeout = float(timeout)
        self.retries = int(retries)
        self.port = int(port)

        try:
            self._resolver = dns.resolver.Resolver(configure=True)
        except dns.exception.DNSException as e:
            raise ResolutionError(f"Cannot set up the system resolver: {type(e).__name__}: {e}")
        self._resolver.timeout = self.timeout
        self._resolver.lifetime = self.timeout

    # ----------------------------
    # Public API
    # ----------------------------

    def find_master(self, domain: str) -> str:
        """Master name server of the zone (SOA MNAME), via recursive lookup."""
        fqdn = _fqdn(domain)
        log.debug("SOA lookup for %s via recursive resolver", fqdn)
        try:
            ans = self._resolver.resolve(fqdn, "SOA")
        except dns.resolver.NXDOMAIN:
            raise ResolutionError(f"Domain {domain} does not exist (NXDOMAIN)")
        except dns.resolver.NoAnswer:
            raise ResolutionError(f"No SOA record found for {domain}")
        except dns.exception.Timeout:
            raise ResolutionError(f"Timeout looking up SOA for {domain}")
        except dns.exception.DNSException as e:
            raise ResolutionError(f"SOA lookup for {domain} failed: {type(e).__name__}: {e}")

        master = normalize_target(str(ans.rrset[0].mname))
        if not master:
            raise ResolutionError(f"SOA record for {domain} has an empty MNAME")
        return master

    def query_serial(self, domain: str, server: str) -> int:
        """
        SOA serial of the zone as held by one server.

        Raises:
            LookupFailure: unreachable server, timeout, error rcode,
                non-authoritative answer, or no SOA in the answer.
        """
        fqdn = _fqdn(domain)
        ip = self._address_of(server)
        resp = self._query(server, ip, fqdn, dns.rdatatype.SOA)

        for rrset in resp.answer:
            if rrset.rdtype == dns.rdatatype.SOA:
                serial = int(rrset[0].serial)
                log.debug("%s (%s) serial %d", server, ip, serial)
                return serial
        raise LookupFailure(server, "SOA record not found in answer")

    def find_slaves(self, domain: str, master: str) -> List[str]:
        """
        NS set of the zone as published by the master, minus the master itself.

        Returned sorted and de-duplicated so repeated runs list servers in the
        same order.
        """
        fqdn = _fqdn(domain)
        try:
            ip = self._address_of(master)
            resp = self._query(master, ip, fqdn, dns.rdatatype.NS)
        except LookupFailure as e:
            raise ResolutionError(f"NS lookup against master failed: {e}")

        names = set()
        for rrset in resp.answer:
            if rrset.rdtype == dns.rdatatype.NS:
                names.update(normalize_target(str(r.target)) for r in rrset)

        me = normalize_target(master)
        return sorted(n for n in names if n and n != me)

    # ----------------------------
    # Helpers
    # ----------------------------

    def _address_of(self, server: str) -> str:
        """Resolve a server name to its first A (then AAAA) address; IPs pass through."""
        if is_ip(server):
            return server

        fqdn = _fqdn(server)
        for rtype in ("A", "AAAA"):
            try:
                ans = self._resolver.resolve(fqdn, rtype, raise_on_no_answer=False)
            except (dns.resolver.NXDOMAIN, dns.resolver.NoNameservers):
                break
            except dns.exception.Timeout:
                raise LookupFailure(server, f"timeout resolving {rtype} address")
            except dns.exception.DNSException as e:
                raise LookupFailure(server, f"{type(e).__name__} resolving {rtype} address: {e}")
            if ans.rrset:
                return str(ans.rrset[0].address)
        raise LookupFailure(server, "no A/AAAA address")

    def _make_query(self, qname: str, rdatatype: dns.rdatatype.RdataType) -> dns.message.Message:
        m = dns.message.make_query(qname, rdatatype)
        # Ask the server itself, not whatever it might recurse to.
        m.flags &= ~dns.flags.RD
        return m

    def _query(
        self,
        server: str,
        ip: str,
        qname: str,
        rdatatype: dns.rdatatype.RdataType,
    ) -> dns.message.Message:
        qtype = dns.rdatatype.to_text(rdatatype)
        q = self._make_query(qname, rdatatype)

        resp = None
        attempts = 1 + max(self.retries, 0)
        for attempt in range(1, attempts + 1):
            log.debug("%s %s @%s (%s) attempt %d/%d", qname, qtype, server, ip, attempt, attempts)
            try:
                resp = dns.query.udp(q, ip, timeout=self.timeout, port=self.port)
                break
            except dns.exception.Timeout:
                log.info("%s query to %s timed out (attempt %d/%d)", qtype, server, attempt, attempts)
            except (OSError, dns.exception.DNSException) as e:
                raise LookupFailure(server, f"{type(e).__name__}: {e}")

        if resp is None:
            raise LookupFailure(server, "timeout")

        if resp.flags & dns.flags.TC:
            log.debug("%s answer from %s truncated, retrying over TCP", qtype, server)
            try:
                resp = dns.query.tcp(q, ip, timeout=self.timeout, port=self.port)
            except dns.exception.Timeout:
                raise LookupFailure(server, "TCP timeout")
            except (OSError, dns.exception.DNSException) as e:
                raise LookupFailure(server, f"TCP {type(e).__name__}: {e}")

        if resp.rcode() != dns.rcode.NOERROR:
            raise LookupFailure(server, f"rcode {dns.rcode.to_text(resp.rcode())}")
        if not resp.flags & dns.flags.AA:
            raise LookupFailure(server, "answer not authoritative")
        return resp


def _fqdn(name: str) -> str:
    return normalize_target(name) + "."
