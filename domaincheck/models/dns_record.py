"""DNS record and query result models."""

from dataclasses import dataclass, field
from enum import Enum

import dns.message


class RecordType(Enum):
    """Record types the check ever asks for."""

    A = "A"
    AAAA = "AAAA"
    NS = "NS"
    SOA = "SOA"


class QueryOutcome(Enum):
    """Classification of a single query, independent of library messages."""

    OK = "OK"  # NOERROR response (may still carry no records)
    TIMEOUT = "TIMEOUT"  # No server answered in time
    NAME_ERROR = "NAME_ERROR"  # NXDOMAIN
    SERVER_FAILURE = "SERVER_FAILURE"  # SERVFAIL
    MALFORMED = "MALFORMED"  # FORMERR or unparsable response
    OTHER = "OTHER"  # REFUSED, NOTIMP, socket errors, no servers


@dataclass(frozen=True)
class SOARecord:
    """Start-of-Authority record of a zone.

    Attributes:
        owner: Zone apex the record belongs to.
        mname: Primary (master) nameserver hostname.
        rname: Responsible mailbox, in DNS name form.
        serial: Zone serial number (unsigned 32-bit).
        refresh: Secondary refresh interval in seconds.
        retry: Secondary retry interval in seconds.
        expire: Secondary expiry in seconds.
        minimum: Negative caching TTL in seconds.
    """

    owner: str
    mname: str
    rname: str
    serial: int
    refresh: int = 0
    retry: int = 0
    expire: int = 0
    minimum: int = 0

    def to_json(self) -> dict:
        """Serialize to JSON-compatible dict.

        Returns:
            dict: JSON-serializable representation.
        """
        return {
            "owner": self.owner,
            "mname": self.mname,
            "rname": self.rname,
            "serial": self.serial,
            "refresh": self.refresh,
            "retry": self.retry,
            "expire": self.expire,
            "minimum": self.minimum,
        }


@dataclass
class QueryResult:
    """Result of one question sent through the query engine.

    Attributes:
        values: Cached payloads for the question (addresses or NS hostnames).
        response: Raw response message, None on cache hits and send failures.
        outcome: Classification of the exchange.
        error: Human-readable error description ("" on success).
        server: Address of the server that produced ``response``.
    """

    values: list[str] = field(default_factory=list)
    response: dns.message.Message | None = None
    outcome: QueryOutcome = QueryOutcome.OK
    error: str = ""
    server: str | None = None

    @property
    def from_cache(self) -> bool:
        """True when the values were served without any network I/O."""
        return self.response is None and bool(self.values)

    def is_timeout(self) -> bool:
        return self.outcome == QueryOutcome.TIMEOUT

    def is_name_error(self) -> bool:
        return self.outcome == QueryOutcome.NAME_ERROR

    def describe(self) -> str:
        """Describe why the query produced nothing usable."""
        if self.error:
            return self.error
        if self.outcome == QueryOutcome.OK:
            return "no matching records in response"
        return self.outcome.value
