"""Facts gathered about a domain during one check run."""

from dataclasses import dataclass, field

from domaincheck.models.dns_record import SOARecord
from domaincheck.models.finding import FindingLog


@dataclass
class NameserverFact:
    """What one authoritative nameserver told us.

    Attributes:
        hostname: Nameserver hostname as listed in the delegation.
        addresses: Addresses the nameserver was queried at.
        address_source: "tld" for glue, "recursive" for a fresh lookup.
        soa: SOA served for the domain, None if it could not be fetched.
        nslist: NS list served for the domain, None if it could not be fetched.
    """

    hostname: str
    addresses: list[str] = field(default_factory=list)
    address_source: str | None = None
    soa: SOARecord | None = None
    nslist: list[str] | None = None

    def is_complete(self) -> bool:
        return self.soa is not None and self.nslist is not None

    def to_json(self) -> dict:
        return {
            "hostname": self.hostname,
            "addresses": self.addresses,
            "address_source": self.address_source,
            "soa": self.soa.to_json() if self.soa else None,
            "nslist": sorted(self.nslist) if self.nslist is not None else None,
        }


@dataclass
class RunResult:
    """Everything a single invocation learned, built up stage by stage.

    Attributes:
        domain: Normalized domain under test.
        recursive_servers: Recursive resolvers used for discovery.
        recursive_soa: Baseline SOA obtained through the recursive servers.
        recursive_authoritative: True if the baseline answer had AA set.
        recursive_answered_by: Server that returned the baseline SOA.
        tld_nslist: Authoritative NS list published by the parent zone.
        master: Effective master nameserver.
        master_soa: SOA used as reference for slave serial comparisons.
        master_nslist: NS list used as reference for slave comparisons.
        nameservers: Facts per verified nameserver, in verification order.
        findings: Ordered findings of the run.

    Invariants:
        - Exactly one RunResult exists per invocation.
        - Fields are only ever filled in, never reset, as stages progress.
    """

    domain: str | None = None
    recursive_servers: list[str] = field(default_factory=list)
    recursive_soa: SOARecord | None = None
    recursive_authoritative: bool = False
    recursive_answered_by: str | None = None
    tld_nslist: list[str] = field(default_factory=list)
    master: str | None = None
    master_soa: SOARecord | None = None
    master_nslist: list[str] | None = None
    nameservers: dict[str, NameserverFact] = field(default_factory=dict)
    findings: FindingLog = field(default_factory=FindingLog)

    def slaves(self) -> list[str]:
        """TLD-delegated nameservers other than the master, sorted."""
        return sorted(ns for ns in self.tld_nslist if ns != self.master)

    def to_json(self) -> dict:
        """Serialize to JSON-compatible dict.

        Returns:
            dict: JSON-serializable representation matching report-schema.json.
        """
        return {
            "domain": self.domain,
            "recursive": {
                "servers": self.recursive_servers,
                "answered_by": self.recursive_answered_by,
                "authoritative": self.recursive_authoritative,
                "soa": self.recursive_soa.to_json() if self.recursive_soa else None,
            },
            "tld_nslist": sorted(self.tld_nslist),
            "master": {
                "hostname": self.master,
                "soa": self.master_soa.to_json() if self.master_soa else None,
                "nslist": (
                    sorted(self.master_nslist)
                    if self.master_nslist is not None
                    else None
                ),
            },
            "nameservers": [
                fact.to_json()
                for _, fact in sorted(self.nameservers.items())
            ],
            "findings": [f.to_json() for f in self.findings],
        }
