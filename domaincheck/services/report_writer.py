"""Report writer for machine-readable JSON and YAML run reports.

The status line is what the monitoring supervisor consumes; these reports
carry every fact and finding of the run for later inspection.
"""

import json
from datetime import datetime, timezone
from pathlib import Path

import yaml

from domaincheck.models.run_result import RunResult
from domaincheck.models.verdict import Verdict
from domaincheck.services.logger import CHECK_RUN_ID


REPORT_FORMATS = ("json", "yaml")


class ReportWriter:
    """Generates formatted reports from a run result.

    Provides static methods for building the report document and rendering
    it as JSON or YAML.
    """

    @staticmethod
    def build_report(result: RunResult, verdict: Verdict) -> dict:
        """Assemble the report document.

        Returns:
            dict: JSON-serializable report matching contracts/report-schema.json.
        """
        return {
            "check_run_id": CHECK_RUN_ID,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "verdict": verdict.to_json(),
            "result": result.to_json(),
        }

    @staticmethod
    def generate_json_report(result: RunResult, verdict: Verdict) -> str:
        """Generate JSON-formatted report.

        Returns:
            str: Pretty-printed JSON string with sorted keys for determinism.

        Example:
            >>> report = ReportWriter.generate_json_report(result, verdict)
            >>> print(report)
            {
              "check_run_id": "...",
              "generated_at": "...",
              "result": {...},
              "verdict": {...}
            }
        """
        return json.dumps(
            ReportWriter.build_report(result, verdict), indent=2, sort_keys=True
        )

    @staticmethod
    def generate_yaml_report(result: RunResult, verdict: Verdict) -> str:
        """Generate YAML-formatted report with the same structure as JSON."""
        return yaml.safe_dump(
            ReportWriter.build_report(result, verdict),
            default_flow_style=False,
            sort_keys=True,
        )

    @staticmethod
    def write_report(
        path: str, report_format: str, result: RunResult, verdict: Verdict
    ) -> None:
        """Write the report to path.

        Raises:
            ValueError: If report_format is not supported.
            OSError: If the file cannot be written.
        """
        if report_format == "json":
            content = ReportWriter.generate_json_report(result, verdict)
        elif report_format == "yaml":
            content = ReportWriter.generate_yaml_report(result, verdict)
        else:
            raise ValueError(f"Unsupported report format: {report_format}")

        Path(path).write_text(content + ("\n" if not content.endswith("\n") else ""))
