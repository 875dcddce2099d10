"""Per-run state threaded through every stage of the check."""

from dataclasses import dataclass, field

from domaincheck.models.check_policy import CheckPolicy
from domaincheck.models.run_result import RunResult
from domaincheck.services.query_cache import QueryCache
from domaincheck.services.query_engine import ResolverSettings


@dataclass
class CheckContext:
    """Caches, settings and the growing result of one invocation.

    Attributes:
        policy: Suppression policy for findings.
        settings: Network parameters for all queries.
        recursive_servers: Recursive resolvers used for discovery.
        recursive_cache: Records learned from recursive answers.
        tld_cache: Records learned from the parent zone's nameservers.
        result: Facts and findings accumulated so far.
    """

    policy: CheckPolicy = field(default_factory=CheckPolicy)
    settings: ResolverSettings = field(default_factory=ResolverSettings)
    recursive_servers: list[str] = field(default_factory=list)
    recursive_cache: QueryCache = field(
        default_factory=lambda: QueryCache("recursive")
    )
    tld_cache: QueryCache = field(default_factory=lambda: QueryCache("tld"))
    result: RunResult = field(default_factory=RunResult)
