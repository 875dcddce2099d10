"""pytest fixtures for testing."""

from unittest.mock import patch

import dns.exception
import dns.flags
import dns.message
import dns.rcode
import dns.rdatatype
import dns.rrset
import pytest

from domaincheck.models.check_policy import CheckPolicy
from domaincheck.services.query_engine import ResolverSettings
from domaincheck.services.reconciler import DomainConsistencyChecker


RECURSIVE = "192.0.2.53"
TLD_SERVER = "192.0.2.1"
DOMAIN = "example.com"
SERIAL = 2024010100
NAMESERVERS = {
    "ns1.example.com": "198.51.100.1",
    "ns2.example.com": "198.51.100.2",
    "ns3.example.com": "198.51.100.3",
}

# No waiting between retransmissions, no retransmissions at all
FAST_SETTINGS = ResolverSettings(timeout=1.0, retries=0, retrans=0.0)


def _key(name: str) -> str:
    return name.rstrip(".").lower() or "."


class FakeDNS:
    """In-memory DNS network answering ``dns.query.udp`` calls.

    Responses are real dnspython messages built from the registered records.
    Questions nobody registered time out, like an unreachable server.
    """

    def __init__(self):
        self._entries = {}
        self.calls = []

    def answer(
        self,
        server,
        qname,
        qtype,
        answer=(),
        authority=(),
        additional=(),
        rcode=dns.rcode.NOERROR,
        aa=False,
    ):
        """Register a response; records are (owner, type, rdata text) tuples."""
        self._entries[(server, _key(qname), qtype)] = {
            "answer": list(answer),
            "authority": list(authority),
            "additional": list(additional),
            "rcode": rcode,
            "aa": aa,
        }

    def fail(self, server, qname, qtype, exception):
        self._entries[(server, _key(qname), qtype)] = exception

    def udp(self, message, where, timeout=None, port=53, **kwargs):
        question = message.question[0]
        qname = _key(question.name.to_text())
        qtype = dns.rdatatype.to_text(question.rdtype)
        self.calls.append((where, qname, qtype))

        entry = self._entries.get((where, qname, qtype))
        if entry is None:
            raise dns.exception.Timeout()
        if isinstance(entry, Exception):
            raise entry

        response = dns.message.make_response(message)
        response.set_rcode(entry["rcode"])
        if entry["aa"]:
            response.flags |= dns.flags.AA
        for section in ("answer", "authority", "additional"):
            for owner, rtype, value in entry[section]:
                getattr(response, section).append(
                    dns.rrset.from_text(owner, 300, "IN", rtype, value)
                )
        return response

    def queried(self, qname=None, qtype=None, server=None):
        """Calls matching every given filter."""
        return [
            (where, name, rtype)
            for where, name, rtype in self.calls
            if (qname is None or name == _key(qname))
            and (qtype is None or rtype == qtype)
            and (server is None or where == server)
        ]


def soa_text(serial=SERIAL, mname="ns1.example.com."):
    return f"{mname} hostmaster.example.com. {serial} 7200 3600 1209600 3600"


class ExampleZone:
    """Builds example.com with a com. delegation on a FakeDNS network."""

    recursive = RECURSIVE
    tld_server = TLD_SERVER
    domain = DOMAIN
    serial = SERIAL
    nameservers = NAMESERVERS

    def __init__(self, fake):
        self.fake = fake

    def build(
        self,
        recursive_serial=SERIAL,
        soa_master="ns1.example.com.",
        recursive_aa=False,
        delegation=None,
        glue=None,
        nslists=None,
        serials=None,
        skip_servers=(),
        unresolvable=(),
    ):
        """Register a domain whose servers all agree unless told otherwise.

        Args:
            recursive_serial: Serial seen through the recursive resolver.
            soa_master: mname of the recursive SOA.
            recursive_aa: Set AA on the recursive SOA answer.
            delegation: NS hostnames published by the TLD (default: all three).
            glue: Hostnames the TLD sends glue for (default: all delegated).
            nslists: Per-nameserver NS list override.
            serials: Per-nameserver serial override.
            skip_servers: Nameservers that never answer (time out).
            unresolvable: Nameservers without glue whose A/AAAA lookups are empty.
        """
        fake = self.fake
        delegation = list(NAMESERVERS) if delegation is None else delegation
        glue = delegation if glue is None else glue
        nslists = nslists or {}
        serials = serials or {}

        fake.answer(
            RECURSIVE,
            DOMAIN,
            "SOA",
            answer=[(DOMAIN + ".", "SOA", soa_text(recursive_serial, soa_master))],
            aa=recursive_aa,
        )
        fake.answer(RECURSIVE, "com", "NS", answer=[("com.", "NS", "a.gtld-servers.net.")])
        fake.answer(RECURSIVE, "a.gtld-servers.net", "AAAA")
        fake.answer(
            RECURSIVE,
            "a.gtld-servers.net",
            "A",
            answer=[("a.gtld-servers.net.", "A", TLD_SERVER)],
        )
        fake.answer(
            TLD_SERVER,
            DOMAIN,
            "NS",
            authority=[(DOMAIN + ".", "NS", ns + ".") for ns in delegation],
            additional=[(ns + ".", "A", NAMESERVERS[ns]) for ns in glue],
        )

        for ns, address in NAMESERVERS.items():
            if ns not in glue:
                fake.answer(RECURSIVE, ns, "AAAA")
                addresses = [] if ns in unresolvable else [(ns + ".", "A", address)]
                fake.answer(RECURSIVE, ns, "A", answer=addresses)
            if ns in skip_servers:
                continue
            fake.answer(
                address,
                DOMAIN,
                "SOA",
                answer=[(DOMAIN + ".", "SOA", soa_text(serials.get(ns, SERIAL)))],
                aa=True,
            )
            fake.answer(
                address,
                DOMAIN,
                "NS",
                answer=[
                    (DOMAIN + ".", "NS", n + ".")
                    for n in nslists.get(ns, list(NAMESERVERS))
                ],
                aa=True,
            )
        return self


@pytest.fixture
def fake_dns():
    """FakeDNS network patched in place of dns.query.udp."""
    fake = FakeDNS()
    with patch("domaincheck.services.query_engine.dns.query.udp", side_effect=fake.udp):
        yield fake


@pytest.fixture
def zone(fake_dns):
    """Builder for the example.com scenario on the fake network."""
    return ExampleZone(fake_dns)


@pytest.fixture
def make_checker():
    """Factory for checkers pointed at the fake recursive server."""

    def factory(domain=DOMAIN, master=None, nameservers=(RECURSIVE,), **policy):
        return DomainConsistencyChecker(
            domain,
            nameservers=list(nameservers),
            master=master,
            policy=CheckPolicy.build(**policy),
            settings=FAST_SETTINGS,
        )

    return factory
