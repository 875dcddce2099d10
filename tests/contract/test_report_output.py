"""Contract tests for machine-readable run reports.

Validates that JSON and YAML reports conform to report-schema.json.
"""

import json
from pathlib import Path

import pytest
import yaml
from jsonschema import ValidationError, validate

from domaincheck.models.verdict import Status, Verdict
from domaincheck.services.report_writer import ReportWriter


def load_schema():
    """Load the JSON schema for report validation."""
    schema_path = Path(__file__).parent.parent.parent / "contracts" / "report-schema.json"
    with open(schema_path) as f:
        return json.load(f)


class TestJSONReportContract:
    """Test JSON reports conform to report-schema.json."""

    def test_healthy_run(self, zone, make_checker):
        zone.build(recursive_aa=True)
        checker = make_checker()
        verdict = checker.run()

        report = json.loads(ReportWriter.generate_json_report(checker.result, verdict))

        validate(instance=report, schema=load_schema())
        assert report["verdict"]["status"] == "OK"
        assert report["verdict"]["exit_code"] == 0
        assert report["result"]["tld_nslist"] == [
            "ns1.example.com",
            "ns2.example.com",
            "ns3.example.com",
        ]
        assert [ns["hostname"] for ns in report["result"]["nameservers"]] == [
            "ns1.example.com",
            "ns2.example.com",
            "ns3.example.com",
        ]
        assert report["result"]["recursive"]["authoritative"] is True
        assert report["result"]["findings"][0]["severity"] == "info"

    def test_run_with_failures(self, zone, make_checker):
        zone.build(
            skip_servers=("ns3.example.com",),
            glue=["ns1.example.com", "ns2.example.com"],
        )
        checker = make_checker()
        verdict = checker.run()

        report = json.loads(ReportWriter.generate_json_report(checker.result, verdict))

        validate(instance=report, schema=load_schema())
        ns3 = report["result"]["nameservers"][2]
        assert ns3["address_source"] == "recursive"
        assert ns3["soa"] is None
        assert ns3["nslist"] is None
        assert report["verdict"]["status"] == "CRITICAL"

    def test_fatal_run_without_domain(self, make_checker):
        checker = make_checker(domain=None)
        verdict = checker.run()

        report = json.loads(ReportWriter.generate_json_report(checker.result, verdict))

        validate(instance=report, schema=load_schema())
        assert report["result"]["domain"] is None
        assert report["result"]["master"]["soa"] is None
        assert report["verdict"]["status_line"] == "UNKNOWN: Parameter --domain is mandatory"

    def test_schema_rejects_unknown_status(self, make_checker):
        checker = make_checker(domain=None)
        report = ReportWriter.build_report(checker.result, checker.run())
        report["verdict"]["status"] = "MAYBE"

        with pytest.raises(ValidationError):
            validate(instance=report, schema=load_schema())


class TestYAMLReportContract:
    def test_yaml_report_has_json_structure(self, zone, make_checker):
        zone.build()
        checker = make_checker()
        verdict = checker.run()

        report = yaml.safe_load(ReportWriter.generate_yaml_report(checker.result, verdict))

        validate(instance=report, schema=load_schema())
        assert report["result"]["master"]["hostname"] == "ns1.example.com"
        assert report["result"]["master"]["soa"]["serial"] == 2024010100


class TestWriteReport:
    @pytest.mark.parametrize("report_format,loader", [("json", json.loads), ("yaml", yaml.safe_load)])
    def test_write_report(self, tmp_path, zone, make_checker, report_format, loader):
        zone.build()
        checker = make_checker()
        verdict = checker.run()
        path = tmp_path / f"report.{report_format}"

        ReportWriter.write_report(str(path), report_format, checker.result, verdict)

        report = loader(path.read_text())
        validate(instance=report, schema=load_schema())
        assert report["verdict"]["status_line"] == verdict.status_line()

    def test_unsupported_format(self, tmp_path):
        verdict = Verdict(status=Status.UNKNOWN, domain=None, summary="x")

        with pytest.raises(ValueError, match="Unsupported report format: xml"):
            ReportWriter.write_report(str(tmp_path / "r"), "xml", None, verdict)

    def test_main_writes_report(self, tmp_path, zone, monkeypatch, capsys):
        import logging

        from domaincheck.main import main

        monkeypatch.delenv("CHECK_DNS_NAMESERVERS", raising=False)
        zone.build()
        path = tmp_path / "report.json"

        try:
            exit_code = main(
                [
                    "-d",
                    "example.com",
                    "--ns",
                    zone.recursive,
                    "--retries",
                    "0",
                    "--report-file",
                    str(path),
                ]
            )
        finally:
            root = logging.getLogger()
            for handler in root.handlers[:]:
                root.removeHandler(handler)

        assert exit_code == 0
        report = json.loads(path.read_text())
        validate(instance=report, schema=load_schema())
        assert report["verdict"]["status_line"] == capsys.readouterr().out.strip()
