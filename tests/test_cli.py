"""
Test suite for CLI interface

Tests CLI commands, argument parsing, and integration with core functionality.
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from autopsy.cli import cli, config, ingest, status, triage


class TestCLICommands:
    """Test CLI command functionality"""

    def setup_method(self):
        """Setup test fixtures"""
        self.runner = CliRunner()

    def test_cli_group_help(self):
        """Test CLI group help command"""
        result = self.runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "alert triage, incident orchestration" in result.output
        assert "triage" in result.output
        assert "ingest" in result.output
        assert "status" in result.output
        assert "config" in result.output

    def test_cli_version(self):
        """Test CLI version display"""
        result = self.runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestTriageCommand:
    """Test triage CLI command"""

    def setup_method(self):
        self.runner = CliRunner()

    def test_triage_help(self):
        result = self.runner.invoke(triage, ["--help"])

        assert result.exit_code == 0
        assert "--alert-file" in result.output

    def test_triage_missing_alert_file(self):
        result = self.runner.invoke(triage, [])
        assert result.exit_code != 0

    def test_triage_report(self, alert_file):
        result = self.runner.invoke(cli, ["triage", "--alert-file", str(alert_file)])

        assert result.exit_code == 0
        assert "Triage Report" in result.output
        assert "Decision: start_incident" in result.output
        assert "Likely Root Cause: Downstream dependency timeout" in result.output
        assert "Confidence: high" in result.output
        assert "Suggested Actions:" in result.output
        assert "decision: Decision: start_incident" in result.output

    def test_triage_auto_fix_plan(self, tmp_path, warning_retry_alert_data):
        path = tmp_path / "retry.json"
        path.write_text(json.dumps(warning_retry_alert_data))

        result = self.runner.invoke(cli, ["triage", "--alert-file", str(path)])

        assert result.exit_code == 0
        assert "Decision: auto_fix" in result.output
        assert "Auto-fix Plan:" in result.output
        assert "1. Scale workers for affected queue by +20%" in result.output

    def test_triage_issue_title(self, tmp_path, info_alert_data):
        path = tmp_path / "info.json"
        path.write_text(json.dumps(info_alert_data))

        result = self.runner.invoke(cli, ["triage", "--alert-file", str(path)])

        assert result.exit_code == 0
        assert "Issue Title: Follow-up: Disk usage notice (info)" in result.output

    def test_triage_invalid_alert(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"title": "x", "severity": "fatal"}))

        result = self.runner.invoke(cli, ["triage", "--alert-file", str(path)])

        assert result.exit_code == 1
        assert "Triage failed" in result.output


class TestIngestCommand:
    """Test ingest CLI command"""

    def setup_method(self):
        self.runner = CliRunner()

    def test_ingest_help(self):
        result = self.runner.invoke(ingest, ["--help"])

        assert result.exit_code == 0
        assert "--store-path" in result.output

    def test_ingest_opens_incident(self, alert_file, tmp_path):
        store_path = tmp_path / "store.json"
        result = self.runner.invoke(
            cli, ["ingest", "--alert-file", str(alert_file), "--store-path", str(store_path)]
        )

        assert result.exit_code == 0
        assert "Alert alt-000001 (critical) from grafana" in result.output
        assert "Status: incident_open" in result.output
        assert "Incident inc-000001 opened" in result.output
        assert "Service: payments" in result.output
        assert "Status page: /status/alt-000001" in result.output
        assert store_path.exists()

    def test_ingest_without_incident(self, tmp_path, warning_retry_alert_data):
        path = tmp_path / "retry.json"
        path.write_text(json.dumps(warning_retry_alert_data))

        result = self.runner.invoke(
            cli, ["ingest", "--alert-file", str(path), "--store-path", str(tmp_path / "s.json")]
        )

        assert result.exit_code == 0
        assert "Status: triaged" in result.output
        assert "No incident opened" in result.output

    def test_ingest_accumulates_in_store(self, alert_file, tmp_path):
        store_path = str(tmp_path / "store.json")
        args = ["ingest", "--alert-file", str(alert_file), "--store-path", store_path]

        self.runner.invoke(cli, args)
        result = self.runner.invoke(cli, args)

        assert result.exit_code == 0
        assert "Alert alt-000002" in result.output
        assert "Incident inc-000002 opened" in result.output

    def test_ingest_store_failure(self, alert_file, tmp_path):
        store_path = tmp_path / "store.json"
        store_path.write_text("not json")

        result = self.runner.invoke(
            cli, ["ingest", "--alert-file", str(alert_file), "--store-path", str(store_path)]
        )

        assert result.exit_code == 1
        assert "Alert ingestion failed" in result.output


class TestStatusCommand:
    """Test status CLI command"""

    def setup_method(self):
        self.runner = CliRunner()

    def test_status_help(self):
        result = self.runner.invoke(status, ["--help"])

        assert result.exit_code == 0
        assert "--period-hours" in result.output

    def test_status_empty_store(self, tmp_path):
        result = self.runner.invoke(
            cli, ["status", "--store-path", str(tmp_path / "store.json")]
        )

        assert result.exit_code == 0
        assert "Overall Status: operational" in result.output
        assert "No services registered" in result.output

    def test_status_after_ingest(self, alert_file, tmp_path):
        store_path = str(tmp_path / "store.json")
        self.runner.invoke(
            cli, ["ingest", "--alert-file", str(alert_file), "--store-path", store_path]
        )

        result = self.runner.invoke(cli, ["status", "--store-path", store_path])

        assert result.exit_code == 0
        assert "Overall Status: major_outage" in result.output
        assert "payments:" in result.output
        assert "Open Incidents (1)" in result.output
        assert "inc-000001 [critical] payments" in result.output

    def test_status_json(self, alert_file, tmp_path):
        store_path = str(tmp_path / "store.json")
        self.runner.invoke(
            cli, ["ingest", "--alert-file", str(alert_file), "--store-path", store_path]
        )

        result = self.runner.invoke(
            cli,
            ["status", "--store-path", store_path, "--period-hours", "48", "--format", "json"],
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["overallStatus"] == "major_outage"
        assert data["services"][0]["service"] == "payments"
        assert len(data["incidents"][0]["responsePlaybook"]) == 4

    def test_status_store_failure(self):
        with patch("autopsy.cli.get_status_page", side_effect=RuntimeError("boom")):
            result = self.runner.invoke(cli, ["status"])

        assert result.exit_code == 1
        assert "Status page failed" in result.output


class TestConfigCommand:
    """Test config CLI command"""

    def setup_method(self):
        self.runner = CliRunner()

    def test_config_without_show(self):
        result = self.runner.invoke(config, [])

        assert result.exit_code == 0
        assert "Use --show to display current configuration" in result.output

    @pytest.mark.parametrize("fmt", ["yaml", "json"])
    def test_config_show(self, fmt):
        result = self.runner.invoke(config, ["--show", "--format", fmt])

        assert result.exit_code == 0
        assert "Current autopsy Configuration" in result.output
        assert "heuristic" in result.output
        assert "default_period_hours" in result.output

    def test_config_file_option(self, tmp_path):
        path = tmp_path / "autopsy.yml"
        path.write_text("triage:\n  agent: heuristic\nstatus_page:\n  default_period_hours: 6\n")

        result = self.runner.invoke(
            cli, ["--config", str(path), "config", "--show", "--format", "json"]
        )

        assert result.exit_code == 0
        assert '"default_period_hours": 6' in result.output
