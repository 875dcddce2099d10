"""Suppression policy applied to findings."""

from dataclasses import dataclass, field

from domaincheck.utils.name_utils import normalize_name


@dataclass(frozen=True)
class CheckPolicy:
    """Which findings are downgraded to informational output.

    Attributes:
        ignore_hosts: Hosts whose findings are all suppressed.
        no_warn_hosts_unreachable: Hosts whose unreachability is tolerated.
        no_warn_hosts_outofsync: Slaves allowed to differ from the master.
        no_warn_soa_master_mismatch: Tolerate --master differing from SOA mname.
        no_warn_tld_nslist_mismatch: Tolerate TLD NS list differing from master's.
        no_warn_tld_missing_master: Tolerate master absent from TLD NS list.
        no_warn_soa_outofsync: Tolerate recursive and master serials differing.
        no_warn_aa: Skip the authoritative-recursive-server advisory.
        suppress_ignored_warnings: Hide suppressed findings from OK output.
    """

    ignore_hosts: frozenset[str] = field(default_factory=frozenset)
    no_warn_hosts_unreachable: frozenset[str] = field(default_factory=frozenset)
    no_warn_hosts_outofsync: frozenset[str] = field(default_factory=frozenset)
    no_warn_soa_master_mismatch: bool = False
    no_warn_tld_nslist_mismatch: bool = False
    no_warn_tld_missing_master: bool = False
    no_warn_soa_outofsync: bool = False
    no_warn_aa: bool = False
    suppress_ignored_warnings: bool = False

    @classmethod
    def build(
        cls,
        ignore_hosts=(),
        no_warn_hosts_unreachable=(),
        no_warn_hosts_outofsync=(),
        **flags: bool,
    ) -> "CheckPolicy":
        """Create a policy from plain host lists, normalizing every name."""
        return cls(
            ignore_hosts=frozenset(normalize_name(h) for h in ignore_hosts),
            no_warn_hosts_unreachable=frozenset(
                normalize_name(h) for h in no_warn_hosts_unreachable
            ),
            no_warn_hosts_outofsync=frozenset(
                normalize_name(h) for h in no_warn_hosts_outofsync
            ),
            **flags,
        )

    def is_ignored(self, host: str) -> bool:
        return normalize_name(host) in self.ignore_hosts

    def unreachable_tolerated(self, host: str) -> bool:
        """Check if unreachability findings for host are suppressed."""
        return self.is_ignored(host) or (
            normalize_name(host) in self.no_warn_hosts_unreachable
        )

    def outofsync_tolerated(self, host: str) -> bool:
        """Check if master/slave mismatch findings for host are suppressed."""
        return self.is_ignored(host) or (
            normalize_name(host) in self.no_warn_hosts_outofsync
        )
