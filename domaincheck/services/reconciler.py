"""Consistency reconciler: the staged domain check.

Stages run in order and each may append findings. Only a missing domain, a
missing baseline SOA and a missing TLD delegation stop the run; every other
problem is recorded and the remaining stages continue on fallback data.
"""

import logging
import time
from typing import Sequence

import dns.exception

from domaincheck.models.check_policy import CheckPolicy
from domaincheck.models.dns_record import RecordType
from domaincheck.models.finding import Severity
from domaincheck.models.run_result import RunResult
from domaincheck.models.verdict import FatalOutcome, Status, Verdict
from domaincheck.services.check_context import CheckContext
from domaincheck.services.hostname_resolver import resolve_hostnames
from domaincheck.services.logger import log_check_summary
from domaincheck.services.nameserver_verifier import verify_nameserver
from domaincheck.services.query_engine import (
    ResolverSettings,
    default_nameservers,
    extract_soa,
    is_authoritative,
    query,
)
from domaincheck.services.verdict_aggregator import aggregate, fatal_verdict
from domaincheck.utils.list_diff import format_list, lists_equal
from domaincheck.utils.name_utils import normalize_name, parent_zone


logger = logging.getLogger(__name__)


class DomainConsistencyChecker:
    """Checks that a domain's delegation and authoritative servers agree.

    Example:
        >>> checker = DomainConsistencyChecker("example.com", nameservers=["8.8.8.8"])
        >>> verdict = checker.run()
        >>> verdict.status_line()
        'OK: example.com: serial=2024010100, master=ns1.example.com, slaves=[ns2.example.com]'
    """

    def __init__(
        self,
        domain: str | None,
        nameservers: Sequence[str] = (),
        master: str | None = None,
        policy: CheckPolicy | None = None,
        settings: ResolverSettings | None = None,
    ):
        self.domain = domain
        self.nameservers = list(nameservers)
        self.declared_master = master
        self.context = CheckContext(
            policy=policy or CheckPolicy(),
            settings=settings or ResolverSettings(),
        )

    @classmethod
    def from_config(cls, config) -> "DomainConsistencyChecker":
        """Create a checker from a validated Config."""
        return cls(
            domain=config.domain,
            nameservers=config.nameservers,
            master=config.master,
            policy=config.policy(),
            settings=config.resolver_settings(),
        )

    @property
    def result(self) -> RunResult:
        return self.context.result

    def run(self) -> Verdict:
        """Execute every stage and return the verdict.

        Returns:
            Verdict: Final status; fatal preconditions yield CRITICAL or UNKNOWN
            with a single explanatory message.
        """
        started = time.perf_counter()

        try:
            self._bootstrap()
            self._fetch_baseline_soa()
            self._determine_master()
            self._fetch_tld_delegation()
            self._check_master_membership()
            self._verify_master()
            self._apply_fallback_defaults()
            self._verify_slaves()
            verdict = aggregate(self.result, self.context.policy)
        except FatalOutcome as fatal:
            logger.warning(f"Check aborted: {fatal.message}")
            verdict = fatal_verdict(self.result, fatal)

        findings = self.result.findings
        log_check_summary(
            domain=self.result.domain,
            status=verdict.status.name,
            criticals=len(findings.active(Severity.CRITICAL)),
            warnings=len(findings.active(Severity.WARNING)),
            suppressed=len(findings.suppressed()),
            nameservers_checked=len(self.result.nameservers),
            duration_sec=time.perf_counter() - started,
        )
        return verdict

    # ----------------------------
    # Stages
    # ----------------------------

    def _bootstrap(self) -> None:
        if not self.domain:
            raise FatalOutcome(Status.UNKNOWN, "Parameter --domain is mandatory")

        domain = normalize_name(self.domain)
        if domain == ".":
            raise FatalOutcome(Status.UNKNOWN, f"Invalid domain: {self.domain!r}")
        self.result.domain = domain

        servers = self.nameservers
        if not servers:
            try:
                servers = default_nameservers()
            except dns.exception.DNSException as e:
                raise FatalOutcome(
                    Status.UNKNOWN, f"No recursive nameserver configured ({e})"
                ) from e
        if not servers:
            raise FatalOutcome(Status.UNKNOWN, "No recursive nameserver configured")

        self.context.recursive_servers = list(servers)
        self.result.recursive_servers = list(servers)
        logger.info(f"Using recursive nameserver(s): {' '.join(servers)}")

    def _fetch_baseline_soa(self) -> None:
        context = self.context
        domain = self.result.domain

        answer = query(
            domain,
            RecordType.SOA,
            context.recursive_servers,
            context.recursive_cache,
            context.settings,
        )
        soa = extract_soa(answer.response, domain)

        if soa is None:
            if answer.is_name_error():
                raise FatalOutcome(
                    Status.CRITICAL,
                    "Domain not known to recursive nameservers (Unregistered? Expired?)",
                )
            raise FatalOutcome(
                Status.CRITICAL,
                f"Can't fetch SOA from: {', '.join(context.recursive_servers)} "
                f"({answer.describe()})",
            )

        authoritative = is_authoritative(answer.response)
        self.result.recursive_soa = soa
        self.result.recursive_authoritative = authoritative
        self.result.recursive_answered_by = answer.server
        logger.info(
            f"SOA serial {soa.serial} from {answer.server} "
            f"({'' if authoritative else 'non-'}authoritative)"
        )

        if authoritative and not context.policy.no_warn_aa:
            self.result.findings.append_info(
                f"{answer.server} answered authoritatively; for the most reliable "
                "results use a non-authoritative recursive nameserver "
                "(suppress with --no-warn-aa)",
                host=answer.server,
            )

    def _determine_master(self) -> None:
        soa_master = self.result.recursive_soa.mname

        if self.declared_master:
            master = normalize_name(self.declared_master)
            if master != soa_master:
                self.result.findings.append_warning(
                    f"master: {master} does not match SOA master {soa_master}",
                    suppressed=(
                        self.context.policy.no_warn_soa_master_mismatch
                        or self.context.policy.is_ignored(master)
                    ),
                    host=master,
                )
            else:
                logger.info(f"master: {master} matches SOA")
        else:
            master = soa_master
            logger.info(f"master: {master} (from SOA)")

        self.result.master = master

    def _fetch_tld_delegation(self) -> None:
        context = self.context
        domain = self.result.domain
        tld = parent_zone(domain)

        tld_servers = query(
            tld,
            RecordType.NS,
            context.recursive_servers,
            context.recursive_cache,
            context.settings,
        )
        logger.debug(f"{tld} nameservers hostnames: {', '.join(tld_servers.values)}")
        addresses = resolve_hostnames(
            tld_servers.values,
            context.recursive_servers,
            context.recursive_cache,
            context.settings,
        )

        logger.debug(f"Querying {tld} to get NS list for {domain}")
        delegation = query(
            domain, RecordType.NS, addresses, context.tld_cache, context.settings
        )
        if not delegation.values:
            raise FatalOutcome(
                Status.CRITICAL,
                "Can't fetch list of authoritative nameservers from TLD: "
                f"{delegation.describe()}",
            )

        self.result.tld_nslist = delegation.values
        logger.info(
            f"Authoritative NS list for {domain} from {delegation.server}: "
            f"{' '.join(delegation.values)}"
        )

    def _check_master_membership(self) -> None:
        result = self.result
        policy = self.context.policy

        if result.master in result.tld_nslist:
            return

        result.findings.append_warning(
            f"Authoritative TLD NS list doesn't contain master: {result.master}",
            suppressed=(
                policy.no_warn_tld_missing_master or policy.is_ignored(result.master)
            ),
            host=result.master,
        )
        result.master = result.tld_nslist[0]
        logger.info(f"Using {result.master} as a master instead")

    def _verify_master(self) -> None:
        result = self.result
        policy = self.context.policy
        master = result.master

        if master not in result.tld_nslist:
            return

        fact = verify_nameserver(master, result.domain, self.context)
        soa, nslist = fact.soa, fact.nslist
        if nslist is None:
            result.findings.append_critical(
                f"Master nameserver {master} is unreachable. Using data from TLD.",
                suppressed=policy.unreachable_tolerated(master),
                host=master,
            )
            nslist = result.tld_nslist
            soa = result.recursive_soa

        result.master_soa = soa
        result.master_nslist = nslist

        if not lists_equal(nslist, result.tld_nslist):
            result.findings.append_warning(
                "TLD NS list doesn't match master NS list "
                f"(tld={format_list(result.tld_nslist)} != master={format_list(nslist)})",
                suppressed=(
                    policy.no_warn_tld_nslist_mismatch or policy.is_ignored(master)
                ),
                host=master,
            )
        if soa.serial != result.recursive_soa.serial:
            result.findings.append_warning(
                "Recursive SOA serial doesn't match master SOA "
                f"({result.recursive_soa.serial} != {soa.serial})",
                suppressed=policy.no_warn_soa_outofsync or policy.is_ignored(master),
                host=master,
            )

    def _apply_fallback_defaults(self) -> None:
        result = self.result
        if result.master_nslist is None:
            result.master_nslist = [result.master, *result.tld_nslist]
        if result.master_soa is None:
            result.master_soa = result.recursive_soa

    def _verify_slaves(self) -> None:
        result = self.result
        policy = self.context.policy
        master = result.master

        for ns in result.tld_nslist:
            if ns == master:
                continue

            fact = verify_nameserver(ns, result.domain, self.context)

            if fact.nslist is not None and not lists_equal(
                result.master_nslist, fact.nslist
            ):
                result.findings.append_warning(
                    f"{master} (master) NS list doesn't match {ns} (slave) NS list "
                    f"(master={format_list(result.master_nslist)} != "
                    f"slave={format_list(fact.nslist)})",
                    suppressed=policy.outofsync_tolerated(ns),
                    host=ns,
                )
            if fact.soa is not None and fact.soa.serial != result.master_soa.serial:
                result.findings.append_warning(
                    f"{master} (master) SOA serial doesn't match {ns} SOA "
                    f"({result.master_soa.serial} != {fact.soa.serial})",
                    suppressed=policy.outofsync_tolerated(ns),
                    host=ns,
                )
