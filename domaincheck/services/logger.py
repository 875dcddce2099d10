"""Structured JSON logging for check runs.

Log lines go to stderr; stdout carries only the plugin status output.
"""

import logging
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger


# Run ID for correlation across log entries of one invocation
CHECK_RUN_ID = str(uuid.uuid4())

# --verbose value to root logger level
VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter that adds check_run_id and standardized fields."""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to log record.

        Args:
            log_record: The log record to modify.
            record: The original logging.LogRecord.
            message_dict: Additional fields from the logging call.
        """
        super().add_fields(log_record, record, message_dict)

        # Add timestamp in ISO 8601 format
        log_record["timestamp"] = (
            datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        )

        # Add run ID for correlation
        log_record["check_run_id"] = CHECK_RUN_ID

        log_record["level"] = record.levelname
        log_record["logger"] = record.name


def level_for_verbosity(verbosity: int) -> int:
    """Map a --verbose count to a logging level.

    Args:
        verbosity: 0 (warnings only), 1 (info), 2 or more (debug).

    Returns:
        int: logging level constant.
    """
    if verbosity <= 0:
        return VERBOSITY_LEVELS[0]
    return VERBOSITY_LEVELS[min(verbosity, 2)]


def setup_logging(verbosity: int = 0, stream=None) -> logging.Logger:
    """Configure structured JSON logging for the check.

    Args:
        verbosity: Value of --verbose.
        stream: Output stream, defaults to sys.stderr.

    Returns:
        logging.Logger: Configured root logger.
    """
    logger = logging.getLogger()
    logger.setLevel(level_for_verbosity(verbosity))

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    json_handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    formatter = CustomJsonFormatter(
        "%(message)s",  # Message field
        timestamp=True,
    )
    json_handler.setFormatter(formatter)
    logger.addHandler(json_handler)

    return logger


def log_query(
    qname: str,
    qtype: str,
    servers: list[str],
    answered_by: str | None,
    outcome: str,
    values: list[str],
    duration_ms: int,
) -> None:
    """Log one network DNS exchange at debug level.

    Args:
        qname: Queried name.
        qtype: Queried record type.
        servers: Candidate servers the query was sent to.
        answered_by: Server whose response was used (None on failure).
        outcome: QueryOutcome value.
        values: Cached values for the question after the exchange.
        duration_ms: Wall-clock time of the exchange in milliseconds.
    """
    logger = logging.getLogger(__name__)
    logger.debug(
        "DNS query completed",
        extra={
            "qname": qname,
            "qtype": qtype,
            "servers": servers,
            "answered_by": answered_by,
            "outcome": outcome,
            "values": values,
            "duration_ms": duration_ms,
        },
    )


def log_check_summary(
    domain: str | None,
    status: str,
    criticals: int,
    warnings: int,
    suppressed: int,
    nameservers_checked: int,
    duration_sec: float,
) -> None:
    """Log the end-of-run summary.

    Args:
        domain: Domain that was checked.
        status: Final status name.
        criticals: Number of unsuppressed critical findings.
        warnings: Number of unsuppressed warning findings.
        suppressed: Number of findings downgraded by policy.
        nameservers_checked: Number of authoritative servers verified.
        duration_sec: Total check execution time in seconds.
    """
    logger = logging.getLogger(__name__)
    logger.info(
        "Check completed",
        extra={
            "domain": domain,
            "status": status,
            "criticals": criticals,
            "warnings": warnings,
            "suppressed": suppressed,
            "nameservers_checked": nameservers_checked,
            "duration_sec": duration_sec,
        },
    )


def log_finding(
    severity: str,
    message: str,
    suppressed: bool,
    host: str | None,
) -> None:
    """Log a finding as soon as it is recorded.

    Args:
        severity: Severity value ("info", "warning", "critical").
        message: Finding text.
        suppressed: True if policy downgraded the finding.
        host: Nameserver the finding refers to.
    """
    logger = logging.getLogger(__name__)
    logger.info(
        f"{severity.upper()}: {message}",
        extra={
            "severity": severity,
            "suppressed": suppressed,
            "host": host,
        },
    )
