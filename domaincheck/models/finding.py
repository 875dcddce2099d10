"""Finding models accumulated during a check run."""

from dataclasses import dataclass, field
from enum import Enum

from domaincheck.services.logger import log_finding


class Severity(Enum):
    """Severity of a single finding."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Finding:
    """One detected problem or advisory.

    Attributes:
        severity: How bad the problem is when not suppressed.
        message: Text shown in the status line.
        suppressed: True if policy downgraded it to informational output.
        host: Nameserver the finding refers to, if any.
    """

    severity: Severity
    message: str
    suppressed: bool = False
    host: str | None = None

    def counts_towards_verdict(self) -> bool:
        """Check if this finding may raise the final status.

        Returns:
            bool: True for unsuppressed warnings and criticals.
        """
        return not self.suppressed and self.severity != Severity.INFO

    def informational_text(self) -> str:
        """Text used when the finding is listed as informational output."""
        return f"{self.severity.name}: {self.message}"

    def to_json(self) -> dict:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "suppressed": self.suppressed,
            "host": self.host,
        }


@dataclass
class FindingLog:
    """Append-only, ordered collection of findings for one run.

    Invariants:
        - Findings are never removed; suppression only changes classification.
        - Order of insertion is preserved within each severity.
    """

    findings: list[Finding] = field(default_factory=list)

    def append(self, finding: Finding) -> Finding:
        self.findings.append(finding)
        log_finding(
            severity=finding.severity.value,
            message=finding.message,
            suppressed=finding.suppressed,
            host=finding.host,
        )
        return finding

    def append_warning(
        self, message: str, suppressed: bool = False, host: str | None = None
    ) -> Finding:
        return self.append(Finding(Severity.WARNING, message, suppressed, host))

    def append_critical(
        self, message: str, suppressed: bool = False, host: str | None = None
    ) -> Finding:
        return self.append(Finding(Severity.CRITICAL, message, suppressed, host))

    def append_info(self, message: str, host: str | None = None) -> Finding:
        return self.append(Finding(Severity.INFO, message, False, host))

    def active(self, severity: Severity) -> list[Finding]:
        """Unsuppressed findings of the given severity, in insertion order."""
        return [
            f for f in self.findings if f.severity == severity and not f.suppressed
        ]

    def suppressed(self) -> list[Finding]:
        """Findings downgraded to informational output by policy."""
        return [f for f in self.findings if f.suppressed]

    def advisories(self) -> list[Finding]:
        """Informational advisories that never affect the verdict."""
        return [
            f for f in self.findings if f.severity == Severity.INFO and not f.suppressed
        ]

    def __len__(self) -> int:
        return len(self.findings)

    def __iter__(self):
        return iter(self.findings)
