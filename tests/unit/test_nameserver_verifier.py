"""Unit tests for direct verification of one nameserver."""

import dns.rcode
import pytest

from domaincheck.models.check_policy import CheckPolicy
from domaincheck.models.dns_record import RecordType
from domaincheck.models.finding import Severity
from domaincheck.services.check_context import CheckContext
from domaincheck.services.nameserver_verifier import (
    lookup_nameserver_addresses,
    verify_nameserver,
)
from domaincheck.services.query_engine import ResolverSettings


RECURSIVE = "192.0.2.53"
DOMAIN = "example.com"
FAST_SETTINGS = ResolverSettings(timeout=1.0, retries=0, retrans=0.0)
NS = "ns1.example.com"
ADDRESS = "198.51.100.1"


def make_context(**policy):
    return CheckContext(
        policy=CheckPolicy.build(**policy),
        settings=FAST_SETTINGS,
        recursive_servers=[RECURSIVE],
    )


def serve_domain(fake_dns, serial=2024010100, nslist=("ns1.example.com", "ns2.example.com")):
    soa = f"ns1.example.com. hostmaster.example.com. {serial} 7200 3600 1209600 3600"
    fake_dns.answer(ADDRESS, DOMAIN, "SOA", answer=[(DOMAIN + ".", "SOA", soa)], aa=True)
    fake_dns.answer(
        ADDRESS, DOMAIN, "NS", answer=[(DOMAIN + ".", "NS", ns + ".") for ns in nslist], aa=True
    )


class TestLookupAddresses:
    def test_prefers_tld_glue(self, fake_dns):
        context = make_context()
        context.tld_cache.add(RecordType.A, NS, ADDRESS)
        context.tld_cache.add(RecordType.AAAA, NS, "2001:db8::1")

        addresses, source = lookup_nameserver_addresses(NS, context)

        assert addresses == ["2001:db8::1", ADDRESS]
        assert source == "tld"
        assert fake_dns.calls == []

    def test_falls_back_to_recursive(self, fake_dns):
        fake_dns.answer(RECURSIVE, NS, "AAAA")
        fake_dns.answer(RECURSIVE, NS, "A", answer=[(NS + ".", "A", ADDRESS)])
        context = make_context()

        addresses, source = lookup_nameserver_addresses(NS, context)

        assert addresses == [ADDRESS]
        assert source == "recursive"
        assert context.recursive_cache.lookup(RecordType.A, NS) == [ADDRESS]


class TestVerifyNameserver:
    def test_complete_fact(self, fake_dns):
        serve_domain(fake_dns)
        context = make_context()
        context.tld_cache.add(RecordType.A, NS, ADDRESS)

        fact = verify_nameserver(NS, DOMAIN, context)

        assert fact.is_complete()
        assert fact.soa.serial == 2024010100
        assert fact.nslist == ["ns1.example.com", "ns2.example.com"]
        assert fact.address_source == "tld"
        assert context.result.nameservers[NS] is fact
        assert len(context.result.findings) == 0

    def test_direct_answers_do_not_pollute_shared_caches(self, fake_dns):
        serve_domain(fake_dns)
        context = make_context()
        context.tld_cache.add(RecordType.A, NS, ADDRESS)

        verify_nameserver(NS, DOMAIN, context)

        assert context.tld_cache.lookup(RecordType.NS, DOMAIN) == []
        assert context.recursive_cache.lookup(RecordType.NS, DOMAIN) == []

    def test_no_address_is_critical(self, fake_dns):
        fake_dns.answer(RECURSIVE, NS, "AAAA")
        fake_dns.answer(RECURSIVE, NS, "A")
        context = make_context()

        fact = verify_nameserver(NS, DOMAIN, context)

        assert fact.soa is None and fact.nslist is None
        [finding] = context.result.findings
        assert finding.severity == Severity.CRITICAL
        assert finding.message == f"{NS}: No A/AAAA record for {DOMAIN} authoritative NS"
        assert finding.suppressed is False

    def test_timeout_is_unreachable(self, fake_dns):
        context = make_context()
        context.tld_cache.add(RecordType.A, NS, ADDRESS)

        fact = verify_nameserver(NS, DOMAIN, context)

        assert fact.soa is None
        [finding] = context.result.findings
        assert finding.message == f"{NS}: nameserver not reachable (query timed out)"
        assert finding.suppressed is False

    @pytest.mark.parametrize(
        "policy",
        [{"no_warn_hosts_unreachable": [NS]}, {"ignore_hosts": [NS]}],
    )
    def test_timeout_suppressed_by_policy(self, fake_dns, policy):
        context = make_context(**policy)
        context.tld_cache.add(RecordType.A, NS, ADDRESS)

        verify_nameserver(NS, DOMAIN, context)

        [finding] = context.result.findings
        assert finding.suppressed is True

    def test_refused_is_a_failure_not_unreachability(self, fake_dns):
        fake_dns.answer(ADDRESS, DOMAIN, "SOA", rcode=dns.rcode.REFUSED)
        context = make_context(no_warn_hosts_unreachable=[NS])
        context.tld_cache.add(RecordType.A, NS, ADDRESS)

        verify_nameserver(NS, DOMAIN, context)

        [finding] = context.result.findings
        assert finding.message == f"{NS}: query for SOA failed: REFUSED"
        assert finding.suppressed is False

    def test_empty_ns_answer(self, fake_dns):
        serve_domain(fake_dns, nslist=())
        context = make_context()
        context.tld_cache.add(RecordType.A, NS, ADDRESS)

        fact = verify_nameserver(NS, DOMAIN, context)

        assert fact.soa is not None
        assert fact.nslist is None
        [finding] = context.result.findings
        assert finding.message == (
            f"{NS}: query for NS list failed: no matching records in response"
        )
