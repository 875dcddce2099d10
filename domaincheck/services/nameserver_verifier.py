"""Direct verification of a single authoritative nameserver."""

import logging

from domaincheck.models.dns_record import QueryResult, RecordType
from domaincheck.models.run_result import NameserverFact
from domaincheck.services.check_context import CheckContext
from domaincheck.services.hostname_resolver import resolve_hostnames
from domaincheck.services.query_cache import QueryCache
from domaincheck.services.query_engine import extract_soa, query


logger = logging.getLogger(__name__)


def lookup_nameserver_addresses(ns: str, context: CheckContext) -> tuple[list[str], str]:
    """Find addresses for ns, preferring glue learned from the TLD.

    Returns:
        tuple[list[str], str]: (addresses, source) with source "tld" or
        "recursive".
    """
    addresses = context.tld_cache.lookup(RecordType.AAAA, ns)
    addresses += context.tld_cache.lookup(RecordType.A, ns)
    if addresses:
        logger.info(f"{ns}: resolved to: {' '.join(addresses)} (from TLD nameserver)")
        return addresses, "tld"

    logger.debug(f"TLD server didn't send A/AAAA for {ns}. Querying recursive servers.")
    addresses = resolve_hostnames(
        [ns], context.recursive_servers, context.recursive_cache, context.settings
    )
    logger.info(
        f"{ns}: resolved to: {' '.join(addresses)} (from recursive nameserver)"
    )
    return addresses, "recursive"


def _record_query_failure(
    ns: str, what: str, result: QueryResult, context: CheckContext
) -> None:
    policy = context.policy
    findings = context.result.findings
    if result.is_timeout():
        findings.append_critical(
            f"{ns}: nameserver not reachable (query timed out)",
            suppressed=policy.unreachable_tolerated(ns),
            host=ns,
        )
    else:
        findings.append_critical(
            f"{ns}: query for {what} failed: {result.describe()}",
            suppressed=policy.is_ignored(ns),
            host=ns,
        )


def verify_nameserver(ns: str, domain: str, context: CheckContext) -> NameserverFact:
    """Fetch SOA and NS list for domain directly from nameserver ns.

    Failures never raise; they are appended to the run's findings and show
    up as a missing ``soa`` and/or ``nslist`` on the returned fact.

    Args:
        ns: Authoritative nameserver hostname.
        domain: Domain under test.
        context: Current run context.

    Returns:
        NameserverFact: What ns served, recorded in the run result too.
    """
    fact = NameserverFact(hostname=ns)
    context.result.nameservers[ns] = fact

    fact.addresses, fact.address_source = lookup_nameserver_addresses(ns, context)
    if not fact.addresses:
        context.result.findings.append_critical(
            f"{ns}: No A/AAAA record for {domain} authoritative NS",
            suppressed=context.policy.is_ignored(ns),
            host=ns,
        )
        return fact

    # Direct answers must not mix with what other servers told us.
    soa_result = query(
        domain, RecordType.SOA, fact.addresses, QueryCache(ns), context.settings
    )
    fact.soa = extract_soa(soa_result.response, domain)
    if fact.soa is None:
        _record_query_failure(ns, "SOA", soa_result, context)
        return fact
    logger.info(f"{ns}: SOA serial {fact.soa.serial}")

    ns_result = query(
        domain, RecordType.NS, fact.addresses, QueryCache(ns), context.settings
    )
    if not ns_result.values:
        _record_query_failure(ns, "NS list", ns_result, context)
        return fact

    fact.nslist = ns_result.values
    logger.info(f"{ns}: NS list: {', '.join(fact.nslist)}")
    return fact
