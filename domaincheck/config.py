"""Configuration module for the DNS domain check.

Builds a validated Config from command-line flags, environment variable
defaults and an optional YAML policy file.
"""

import argparse
import os
from dataclasses import dataclass, field
from typing import List

import yaml

from domaincheck.models.check_policy import CheckPolicy
from domaincheck.services.query_engine import ResolverSettings
from domaincheck.services.report_writer import REPORT_FORMATS
from domaincheck.utils.name_utils import is_valid_ip


__version__ = "1.1.0"

# Policy file keys holding host lists
POLICY_HOST_LISTS = (
    "ignore_hosts",
    "no_warn_hosts_unreachable",
    "no_warn_hosts_outofsync",
)

# Policy file keys holding booleans
POLICY_FLAGS = (
    "no_warn_soa_master_mismatch",
    "no_warn_tld_nslist_mismatch",
    "no_warn_tld_missing_master",
    "no_warn_soa_outofsync",
    "no_warn_aa",
    "suppress_ignored_warnings",
)


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting with status 2.

    Exit status 2 means CRITICAL to the monitoring system; a usage error
    must be reported as UNKNOWN instead.
    """

    def error(self, message):
        raise ValueError(message)


class _VerboseAction(argparse.Action):
    """Accept ``-v``, ``-vv``, ``--verbose`` and ``--verbose=<n>``."""

    def __call__(self, parser, namespace, values, option_string=None):
        current = getattr(namespace, self.dest) or 0
        if values is None:
            setattr(namespace, self.dest, current + 1)
        elif set(values) == {"v"}:
            # "-vv" arrives as "-v" with value "v"
            setattr(namespace, self.dest, current + 1 + len(values))
        else:
            try:
                setattr(namespace, self.dest, int(values))
            except ValueError:
                raise ValueError(f"--verbose expects a number, got {values!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="check_dns_domain",
        description=(
            "Check DNS domain configuration consistency and reachability. "
            "Return codes are compatible with Nagios."
        ),
    )
    parser.add_argument("-d", "--domain", help="Fully qualified domain name to check.")
    parser.add_argument(
        "--ns",
        "--nameserver",
        dest="nameservers",
        action="append",
        default=[],
        metavar="IP",
        help="Recursive nameserver address; should not be authoritative for "
        "the domain. Can be used multiple times.",
    )
    parser.add_argument(
        "--master",
        help="Expected master nameserver. Defaults to the SOA master; a "
        "warning is emitted if it doesn't match.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        nargs="?",
        action=_VerboseAction,
        default=0,
        help="Be more verbose (1 info, 2 debug).",
    )

    suppress = parser.add_argument_group("Suppress some warnings")
    suppress.add_argument(
        "--ignore-host",
        dest="ignore_hosts",
        action="append",
        default=[],
        metavar="HOST",
        help="Ignore all errors associated with nameserver HOST.",
    )
    suppress.add_argument(
        "--no-warn-host-unreachable",
        dest="no_warn_hosts_unreachable",
        action="append",
        default=[],
        metavar="HOST",
        help="Do not treat HOST's unreachability as a problem.",
    )
    suppress.add_argument(
        "--no-warn-host-outofsync",
        dest="no_warn_hosts_outofsync",
        action="append",
        default=[],
        metavar="HOST",
        help="Do not warn if slave HOST's NS list or serial differ from master.",
    )
    suppress.add_argument(
        "--no-warn-soa-master-mismatch",
        action="store_true",
        help="Do not warn if SOA master doesn't match --master.",
    )
    suppress.add_argument(
        "--no-warn-tld-nslist-mismatch",
        action="store_true",
        help="Do not warn if the TLD NS list doesn't match the master's.",
    )
    suppress.add_argument(
        "--no-warn-tld-missing-master",
        action="store_true",
        help="Do not warn if the TLD NS list doesn't include the master.",
    )
    suppress.add_argument(
        "--no-warn-soa-outofsync",
        action="store_true",
        help="Do not warn if recursive and master SOA serials differ.",
    )
    suppress.add_argument(
        "--no-warn-aa",
        action="store_true",
        help="Do not warn if the recursive nameserver is authoritative.",
    )
    suppress.add_argument(
        "--suppress-ignored-warnings",
        action="store_true",
        help="Omit suppressed findings from OK output.",
    )

    other = parser.add_argument_group("Other options")
    other.add_argument(
        "--timeout",
        default=os.getenv("CHECK_DNS_TIMEOUT", "10"),
        help="Per-server query timeout in seconds (default: 10).",
    )
    other.add_argument(
        "--retries",
        default=os.getenv("CHECK_DNS_RETRIES", "1"),
        help="Retransmissions when all servers time out (default: 1).",
    )
    other.add_argument("--port", default="53", help="DNS port (default: 53).")
    other.add_argument(
        "--policy-file",
        default=os.getenv("CHECK_DNS_POLICY_FILE"),
        help="YAML file with suppression policy.",
    )
    other.add_argument("--report-file", help="Write a full report to this file.")
    other.add_argument(
        "--report-format",
        default="json",
        help="Report format: json or yaml (default: json).",
    )
    other.add_argument(
        "--version", action="version", version=f"%(prog)s version {__version__}"
    )
    return parser


@dataclass
class Config:
    """Check configuration loaded from flags and environment variables."""

    # Target
    domain: str | None
    master: str | None
    nameservers: List[str]

    # DNS Configuration
    dns_timeout: float
    dns_retries: int
    dns_port: int

    # Suppression policy
    ignore_hosts: List[str] = field(default_factory=list)
    no_warn_hosts_unreachable: List[str] = field(default_factory=list)
    no_warn_hosts_outofsync: List[str] = field(default_factory=list)
    no_warn_soa_master_mismatch: bool = False
    no_warn_tld_nslist_mismatch: bool = False
    no_warn_tld_missing_master: bool = False
    no_warn_soa_outofsync: bool = False
    no_warn_aa: bool = False
    suppress_ignored_warnings: bool = False

    # Operational Configuration
    verbose: int = 0
    report_file: str | None = None
    report_format: str = "json"

    @classmethod
    def from_args(cls, argv: List[str] | None = None) -> "Config":
        """Load configuration from command-line arguments.

        The domain is not validated here; a missing domain is reported by the
        check itself as UNKNOWN.

        Raises:
            ValueError: If arguments or the policy file are invalid.

        Returns:
            Config: Validated configuration instance.
        """
        args = build_parser().parse_args(argv)

        # Recursive nameservers: flags win over CHECK_DNS_NAMESERVERS
        nameservers = list(args.nameservers)
        if not nameservers:
            nameservers = [
                ns.strip()
                for ns in os.getenv("CHECK_DNS_NAMESERVERS", "").split(",")
                if ns.strip()
            ]
        for ns in nameservers:
            if not is_valid_ip(ns):
                raise ValueError(f"Invalid nameserver address: {ns}")

        dns_timeout = cls._parse_number(args.timeout, "timeout", float)
        if not 1 <= dns_timeout <= 60:
            raise ValueError("timeout must be between 1 and 60 seconds")

        dns_retries = cls._parse_number(args.retries, "retries", int)
        if not 0 <= dns_retries <= 5:
            raise ValueError("retries must be between 0 and 5")

        dns_port = cls._parse_number(args.port, "port", int)
        if not 1 <= dns_port <= 65535:
            raise ValueError("port must be between 1 and 65535")

        report_format = args.report_format.lower()
        if report_format not in REPORT_FORMATS:
            raise ValueError(
                f"report format must be one of: {', '.join(REPORT_FORMATS)}"
            )

        config = cls(
            domain=args.domain,
            master=args.master,
            nameservers=nameservers,
            dns_timeout=dns_timeout,
            dns_retries=dns_retries,
            dns_port=dns_port,
            ignore_hosts=list(args.ignore_hosts),
            no_warn_hosts_unreachable=list(args.no_warn_hosts_unreachable),
            no_warn_hosts_outofsync=list(args.no_warn_hosts_outofsync),
            no_warn_soa_master_mismatch=args.no_warn_soa_master_mismatch,
            no_warn_tld_nslist_mismatch=args.no_warn_tld_nslist_mismatch,
            no_warn_tld_missing_master=args.no_warn_tld_missing_master,
            no_warn_soa_outofsync=args.no_warn_soa_outofsync,
            no_warn_aa=args.no_warn_aa,
            suppress_ignored_warnings=args.suppress_ignored_warnings,
            verbose=args.verbose or 0,
            report_file=args.report_file,
            report_format=report_format,
        )

        if args.policy_file:
            config.merge_policy(cls.load_policy_file(args.policy_file))

        return config

    @staticmethod
    def _parse_number(value, name: str, kind):
        """Convert a flag value to a number or raise ValueError.

        Args:
            value: Raw flag or environment value.
            name: Option name for the error message.
            kind: int or float.

        Returns:
            Parsed number.

        Raises:
            ValueError: If value is not a valid number.
        """
        try:
            return kind(value)
        except (TypeError, ValueError):
            raise ValueError(f"{name} must be a number, got {value!r}")

    @staticmethod
    def load_policy_file(path: str) -> dict:
        """Read and validate a YAML suppression policy.

        Example file::

            ignore_hosts:
              - ns3.example.net
            no_warn_hosts_unreachable: []
            no_warn_aa: true

        Raises:
            ValueError: If the file is unreadable or has unexpected content.

        Returns:
            dict: Policy values keyed like the Config fields.
        """
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ValueError(f"Cannot read policy file {path}: {e}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in policy file {path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Policy file {path} must contain a mapping")

        unknown = set(data) - set(POLICY_HOST_LISTS) - set(POLICY_FLAGS)
        if unknown:
            raise ValueError(
                f"Unknown keys in policy file {path}: {', '.join(sorted(unknown))}"
            )

        for key in POLICY_HOST_LISTS:
            hosts = data.get(key, [])
            if not isinstance(hosts, list) or not all(isinstance(h, str) for h in hosts):
                raise ValueError(f"{key} must be a list of hostnames")
        for key in POLICY_FLAGS:
            if key in data and not isinstance(data[key], bool):
                raise ValueError(f"{key} must be true or false")

        return data

    def merge_policy(self, policy: dict) -> None:
        """Merge policy file values: host lists are unioned, flags OR-ed."""
        for key in POLICY_HOST_LISTS:
            merged = getattr(self, key)
            for host in policy.get(key, []):
                if host not in merged:
                    merged.append(host)
        for key in POLICY_FLAGS:
            if policy.get(key):
                setattr(self, key, True)

    def policy(self) -> CheckPolicy:
        """Build the suppression policy handed to the check."""
        return CheckPolicy.build(
            ignore_hosts=self.ignore_hosts,
            no_warn_hosts_unreachable=self.no_warn_hosts_unreachable,
            no_warn_hosts_outofsync=self.no_warn_hosts_outofsync,
            no_warn_soa_master_mismatch=self.no_warn_soa_master_mismatch,
            no_warn_tld_nslist_mismatch=self.no_warn_tld_nslist_mismatch,
            no_warn_tld_missing_master=self.no_warn_tld_missing_master,
            no_warn_soa_outofsync=self.no_warn_soa_outofsync,
            no_warn_aa=self.no_warn_aa,
            suppress_ignored_warnings=self.suppress_ignored_warnings,
        )

    def resolver_settings(self) -> ResolverSettings:
        return ResolverSettings(
            timeout=self.dns_timeout,
            retries=self.dns_retries,
            port=self.dns_port,
        )
