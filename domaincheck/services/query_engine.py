"""Query engine: one DNS question against an explicit list of servers."""

import logging
import time
from dataclasses import dataclass
from typing import Sequence, Tuple

import dns.exception
import dns.flags
import dns.message
import dns.query
import dns.rcode
import dns.rdatatype
import dns.resolver

from domaincheck.models.dns_record import (
    QueryOutcome,
    QueryResult,
    RecordType,
    SOARecord,
)
from domaincheck.services.logger import log_query
from domaincheck.services.query_cache import QueryCache
from domaincheck.utils.name_utils import absolute_name, normalize_name
from domaincheck.utils.retry import retransmit


logger = logging.getLogger(__name__)

# Answers with these rcodes make us try the next candidate server.
NEXT_SERVER_RCODES = (dns.rcode.SERVFAIL, dns.rcode.REFUSED, dns.rcode.NOTIMP)


@dataclass(frozen=True)
class ResolverSettings:
    """Network parameters for every query of a run.

    Attributes:
        timeout: Seconds to wait for each server per attempt.
        retries: Retransmissions when every server timed out.
        retrans: Seconds between retransmissions.
        port: Destination port.
    """

    timeout: float = 10.0
    retries: int = 1
    retrans: float = 1.0
    port: int = 53


def classify_rcode(rcode: int) -> QueryOutcome:
    """Map a response code to a QueryOutcome."""
    if rcode == dns.rcode.NOERROR:
        return QueryOutcome.OK
    if rcode == dns.rcode.NXDOMAIN:
        return QueryOutcome.NAME_ERROR
    if rcode == dns.rcode.SERVFAIL:
        return QueryOutcome.SERVER_FAILURE
    if rcode == dns.rcode.FORMERR:
        return QueryOutcome.MALFORMED
    return QueryOutcome.OTHER


def classify_exception(exception: Exception) -> QueryOutcome:
    """Map a send failure to a QueryOutcome.

    Args:
        exception: Exception raised while sending or parsing.

    Returns:
        QueryOutcome: TIMEOUT, MALFORMED or OTHER.
    """
    if isinstance(exception, dns.exception.Timeout):
        return QueryOutcome.TIMEOUT
    elif isinstance(exception, dns.exception.FormError):
        # Includes BadResponse, ShortHeader and TrailingJunk
        return QueryOutcome.MALFORMED
    else:
        return QueryOutcome.OTHER


def describe_exception(exception: Exception) -> str:
    if isinstance(exception, dns.exception.Timeout):
        return "query timed out"
    return f"{type(exception).__name__}: {exception}"


def _send_round(
    message: dns.message.Message,
    servers: Sequence[str],
    settings: ResolverSettings,
) -> Tuple[dns.message.Message, str]:
    """Send message to each server in turn until one answers usefully.

    Raises:
        dns.exception.Timeout: If every server timed out (last error).
        dns.exception.DNSException | OSError: Last non-timeout send failure.
    """
    fallback: Tuple[dns.message.Message, str] | None = None
    last_error: Exception | None = None

    for server in servers:
        try:
            response = dns.query.udp(
                message, server, timeout=settings.timeout, port=settings.port
            )
            if response.flags & dns.flags.TC:
                logger.debug(f"{server}: truncated UDP response, retrying over TCP")
                response = dns.query.tcp(
                    message, server, timeout=settings.timeout, port=settings.port
                )
        except (dns.exception.DNSException, OSError, ValueError) as e:
            logger.debug(f"{server}: {describe_exception(e)}")
            last_error = e
            continue

        if response.rcode() in NEXT_SERVER_RCODES:
            logger.debug(
                f"{server}: answered {dns.rcode.to_text(response.rcode())}, "
                "trying next server"
            )
            if fallback is None:
                fallback = (response, server)
            continue

        return response, server

    if fallback is not None:
        return fallback
    raise last_error if last_error is not None else dns.exception.Timeout()


def query(
    name: str,
    record_type: RecordType,
    servers: Sequence[str],
    cache: QueryCache,
    settings: ResolverSettings | None = None,
) -> QueryResult:
    """Ask one question, answering from the cache when possible.

    The cache is consulted first; a hit returns without network I/O and with
    ``response=None``. Otherwise the query is sent to ``servers`` in order,
    every A/AAAA/NS record of the response is absorbed into ``cache`` and the
    freshly cached values are returned alongside the raw response.

    Args:
        name: Domain name to query.
        record_type: Record type to ask for.
        servers: Candidate server addresses, tried in order.
        cache: Cache to read from and feed.
        settings: Network parameters (defaults to ResolverSettings()).

    Returns:
        QueryResult: Values, raw response and outcome tag. DNS-level failures
        are reported through ``outcome``/``error``, never raised.
    """
    settings = settings or ResolverSettings()
    name = normalize_name(name)

    cached = cache.lookup(record_type, name)
    if cached:
        logger.debug(
            f"{record_type.value} {name} answered from {cache.name} cache: "
            f"{', '.join(cached)}"
        )
        return QueryResult(values=cached)

    if not servers:
        return QueryResult(outcome=QueryOutcome.OTHER, error="no nameservers to query")

    message = dns.message.make_query(absolute_name(name), record_type.value)
    send = retransmit(
        max_retries=settings.retries,
        delays=[settings.retrans] * settings.retries,
    )(_send_round)

    started = time.perf_counter()
    try:
        response, server = send(message, list(servers), settings)
    except (dns.exception.DNSException, OSError, ValueError) as e:
        outcome = classify_exception(e)
        log_query(
            qname=name,
            qtype=record_type.value,
            servers=list(servers),
            answered_by=None,
            outcome=outcome.value,
            values=[],
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        return QueryResult(outcome=outcome, error=describe_exception(e))

    cache.absorb(response)
    outcome = classify_rcode(response.rcode())
    values = cache.lookup(record_type, name)

    log_query(
        qname=name,
        qtype=record_type.value,
        servers=list(servers),
        answered_by=server,
        outcome=outcome.value,
        values=values,
        duration_ms=int((time.perf_counter() - started) * 1000),
    )

    return QueryResult(
        values=values,
        response=response,
        outcome=outcome,
        error="" if outcome == QueryOutcome.OK else dns.rcode.to_text(response.rcode()),
        server=server,
    )


def extract_soa(response: dns.message.Message | None, name: str) -> SOARecord | None:
    """Find the SOA owned by ``name`` in the answer or authority section.

    SOA records of other owners (such as the parent's SOA in an NXDOMAIN
    response) are ignored.
    """
    if response is None:
        return None

    target = normalize_name(name)
    for rrset in list(response.answer) + list(response.authority):
        if rrset.rdtype != dns.rdatatype.SOA:
            continue
        if normalize_name(rrset.name.to_text()) != target:
            continue
        for rdata in rrset:
            return SOARecord(
                owner=target,
                mname=normalize_name(rdata.mname.to_text()),
                rname=normalize_name(rdata.rname.to_text()),
                serial=int(rdata.serial),
                refresh=int(rdata.refresh),
                retry=int(rdata.retry),
                expire=int(rdata.expire),
                minimum=int(rdata.minimum),
            )
    return None


def is_authoritative(response: dns.message.Message | None) -> bool:
    """Check the AA flag of a response."""
    return response is not None and bool(response.flags & dns.flags.AA)


def default_nameservers() -> list[str]:
    """Return the system's recursive resolvers.

    Raises:
        dns.resolver.NoResolverConfiguration: If none are configured.
    """
    resolver = dns.resolver.Resolver(configure=True)
    return [str(ns) for ns in resolver.nameservers]
