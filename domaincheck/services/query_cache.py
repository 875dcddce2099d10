"""Per-run cache of records learned from DNS responses.

Two instances exist per run: one fed by recursive-server answers and one fed
by the parent zone's nameservers (the latter holds the glue addresses of the
delegated nameservers). Nothing is persisted and TTLs are not honored.
"""

import logging
from typing import Dict, Set

import dns.message
import dns.rdatatype

from domaincheck.models.dns_record import RecordType
from domaincheck.utils.name_utils import normalize_name


logger = logging.getLogger(__name__)

# Record types absorbed from responses; SOA is always fetched fresh.
CACHED_TYPES = (RecordType.A, RecordType.AAAA, RecordType.NS)


class QueryCache:
    """Set-valued store keyed by record type and owner name.

    Attributes:
        name: Label used in log messages ("recursive" or "tld").
        _entries: Dict mapping record type to owner name to payload set.

    Invariants:
        - Adding the same (type, name, value) twice is a no-op.
        - Owner names and NS payloads are stored normalized.

    Example:
        >>> cache = QueryCache("recursive")
        >>> cache.add(RecordType.A, "ns1.example.com.", "192.0.2.1")
        >>> cache.lookup(RecordType.A, "ns1.example.com")
        ['192.0.2.1']
    """

    def __init__(self, name: str = "cache"):
        self.name = name
        self._entries: Dict[RecordType, Dict[str, Set[str]]] = {}

    def add(self, record_type: RecordType, owner: str, value: str) -> None:
        """Record one payload value for (record_type, owner)."""
        if record_type == RecordType.NS:
            value = normalize_name(value)
        names = self._entries.setdefault(record_type, {})
        names.setdefault(normalize_name(owner), set()).add(value)

    def lookup(self, record_type: RecordType, owner: str) -> list[str]:
        """Return the known payloads for (record_type, owner).

        Returns:
            list[str]: Sorted payload values, empty if nothing is known.
        """
        values = self._entries.get(record_type, {}).get(normalize_name(owner), set())
        return sorted(values)

    def absorb(self, response: dns.message.Message | None) -> int:
        """Cache every A/AAAA/NS record found anywhere in a response.

        Answer, authority and additional sections are all scanned, so
        delegation referrals leave their glue addresses behind.

        Args:
            response: Response message, None is accepted and ignored.

        Returns:
            int: Number of records inspected.
        """
        if response is None:
            return 0

        seen = 0
        for section in (response.answer, response.authority, response.additional):
            for rrset in section:
                record_type = _cached_type(rrset.rdtype)
                if record_type is None:
                    continue
                for rdata in rrset:
                    if record_type == RecordType.NS:
                        value = rdata.target.to_text()
                    else:
                        value = rdata.address
                    self.add(record_type, rrset.name.to_text(), value)
                    seen += 1

        logger.debug(f"{self.name} cache absorbed {seen} records")
        return seen

    def __len__(self) -> int:
        return sum(
            len(values)
            for names in self._entries.values()
            for values in names.values()
        )


def _cached_type(rdtype: int) -> RecordType | None:
    for record_type in CACHED_TYPES:
        if rdtype == dns.rdatatype.from_text(record_type.value):
            return record_type
    return None
