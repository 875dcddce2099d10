"""Final check status models."""

from dataclasses import dataclass, field
from enum import IntEnum


class Status(IntEnum):
    """Nagios plugin status; the value is the process exit code."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3


class FatalOutcome(Exception):
    """Raised when a precondition fails and the run cannot continue.

    Attributes:
        status: Status to report (CRITICAL or UNKNOWN).
        message: Single explanatory message for the status line.
    """

    def __init__(self, status: Status, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


@dataclass
class Verdict:
    """Outcome of a check run as presented to the monitoring system.

    Attributes:
        status: Final status.
        domain: Domain the status refers to (None if never known).
        summary: Text after the "<STATUS>: <domain>: " prefix.
        details: Extra lines printed after the status line.
    """

    status: Status
    domain: str | None
    summary: str
    details: list[str] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return int(self.status)

    def status_line(self) -> str:
        """First output line, the only one most supervisors parse."""
        prefix = f"{self.status.name}: "
        if self.domain:
            prefix += f"{self.domain}: "
        return prefix + self.summary

    def render(self) -> str:
        return "\n".join([self.status_line(), *self.details])

    def to_json(self) -> dict:
        return {
            "status": self.status.name,
            "exit_code": self.exit_code,
            "status_line": self.status_line(),
            "details": self.details,
        }
