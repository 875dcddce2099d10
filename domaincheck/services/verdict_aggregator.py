"""Turn accumulated findings into the final plugin verdict."""

from domaincheck.models.check_policy import CheckPolicy
from domaincheck.models.finding import Severity
from domaincheck.models.run_result import RunResult
from domaincheck.models.verdict import FatalOutcome, Status, Verdict


# Separator between messages on the status line
MESSAGE_DELIMITER = " | "


def determine_status(result: RunResult) -> Status:
    """Pick the worst unsuppressed severity.

    Returns:
        Status: CRITICAL if any critical finding counts, else WARNING if any
        warning counts, else OK.
    """
    findings = result.findings
    if findings.active(Severity.CRITICAL):
        return Status.CRITICAL
    if findings.active(Severity.WARNING):
        return Status.WARNING
    return Status.OK


def _advisory_lines(result: RunResult) -> list[str]:
    return [f.informational_text() for f in result.findings.advisories()]


def ok_summary(result: RunResult, policy: CheckPolicy) -> str:
    """Summary for a healthy domain, e.g. ``serial=1, master=a, slaves=[b,c]``.

    Suppressed findings follow as informational messages unless the policy
    hides them.
    """
    serial = result.recursive_soa.serial if result.recursive_soa else ""
    summary = (
        f"serial={serial}, master={result.master}, "
        f"slaves=[{','.join(result.slaves())}]"
    )
    if not policy.suppress_ignored_warnings:
        for finding in result.findings.suppressed():
            summary += MESSAGE_DELIMITER + finding.informational_text()
    return summary


def aggregate(result: RunResult, policy: CheckPolicy) -> Verdict:
    """Build the verdict of a run that reached its end.

    Args:
        result: Completed run result.
        policy: Policy the run was executed with.

    Returns:
        Verdict: Status plus status line text and advisory lines.
    """
    status = determine_status(result)

    if status == Status.OK:
        summary = ok_summary(result, policy)
    else:
        counted = result.findings.active(Severity.CRITICAL) + result.findings.active(
            Severity.WARNING
        )
        summary = MESSAGE_DELIMITER.join(f.message for f in counted)

    return Verdict(
        status=status,
        domain=result.domain,
        summary=summary,
        details=_advisory_lines(result),
    )


def fatal_verdict(result: RunResult, fatal: FatalOutcome) -> Verdict:
    """Build the verdict of a run cut short by a failed precondition."""
    return Verdict(
        status=fatal.status,
        domain=result.domain,
        summary=fatal.message,
        details=_advisory_lines(result),
    )
