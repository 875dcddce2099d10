"""Resolve nameserver hostnames to addresses through the query engine."""

import logging
from typing import Iterable, Sequence

from domaincheck.models.dns_record import RecordType
from domaincheck.services.query_cache import QueryCache
from domaincheck.services.query_engine import ResolverSettings, query


logger = logging.getLogger(__name__)


def resolve_hostnames(
    hostnames: Iterable[str],
    servers: Sequence[str],
    cache: QueryCache,
    settings: ResolverSettings | None = None,
) -> list[str]:
    """Resolve hostnames to IPv6 then IPv4 addresses.

    Cached answers short-circuit the network. Addresses of all hostnames are
    concatenated in one flat list, AAAA results before A results for each
    hostname.

    Args:
        hostnames: Hostnames to resolve.
        servers: Recursive servers to ask.
        cache: Cache shared with other recursive lookups.
        settings: Network parameters.

    Returns:
        list[str]: Addresses, empty if nothing resolved.
    """
    addresses: list[str] = []

    for hostname in hostnames:
        for record_type in (RecordType.AAAA, RecordType.A):
            result = query(hostname, record_type, servers, cache, settings)
            addresses.extend(result.values)

    return addresses
