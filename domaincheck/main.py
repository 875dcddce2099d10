"""Main entry point for the DNS domain check."""

import logging
import sys

from domaincheck.config import Config
from domaincheck.models.verdict import Status, Verdict
from domaincheck.services.logger import setup_logging
from domaincheck.services.reconciler import DomainConsistencyChecker
from domaincheck.services.report_writer import ReportWriter


logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main execution function.

    Prints the plugin status line (plus advisory lines) on stdout.

    Returns:
        int: Exit code (0 OK, 1 WARNING, 2 CRITICAL, 3 UNKNOWN).
    """
    try:
        config = Config.from_args(argv)
    except ValueError as e:
        setup_logging()
        print(f"UNKNOWN: {e}")
        return Status.UNKNOWN.value

    setup_logging(config.verbose)
    logger.info("Starting DNS domain check", extra={"domain": config.domain})

    checker = DomainConsistencyChecker.from_config(config)
    try:
        verdict = checker.run()
    except Exception as e:
        # Anything escaping the staged check is a bug, not a DNS finding
        logger.error(f"Unexpected error: {e}", exc_info=True)
        verdict = Verdict(
            status=Status.UNKNOWN,
            domain=checker.result.domain,
            summary=f"Unexpected error: {type(e).__name__}: {e}",
        )

    print(verdict.render())

    if config.report_file:
        try:
            ReportWriter.write_report(
                config.report_file, config.report_format, checker.result, verdict
            )
        except OSError as e:
            logger.error(f"Cannot write report to {config.report_file}: {e}")

    return verdict.exit_code


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    sys.exit(main())
