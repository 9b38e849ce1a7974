"""Tests for the ``dns`` command group over the BIND backend."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from hostctl.cli import cli
from tests.conftest import RecordingDatabaseManager, ScriptedSandbox

CliHost = tuple[ScriptedSandbox, RecordingDatabaseManager]


@pytest.fixture
def site_id(cli_runner: CliRunner, cli_host: CliHost) -> int:
    result = cli_runner.invoke(
        cli, ["-q", "user", "create", "alice", "alice@example.com", "--password", "s3cret-pw"]
    )
    assert result.exit_code == 0, result.output
    result = cli_runner.invoke(cli, ["-q", "site", "create", "1", "example.com"])
    assert result.exit_code == 0, result.output
    return 1


def _zone(host_root: Path) -> str:
    return (host_root / "bind" / "zones" / "db.example.com").read_text(encoding="utf-8")


class TestDnsZoneCommands:
    def test_create_with_ip_seeds_records(
        self, cli_runner: CliRunner, host_root: Path, site_id: int
    ) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "dns", "create", str(site_id), "Example.com", "--ip", "203.0.113.10"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["data"]["name"] == "example.com"
        zone = _zone(host_root)
        assert "203.0.113.10" in zone
        assert "www" in zone
        conf = (host_root / "bind" / "named.conf.local").read_text(encoding="utf-8")
        assert 'zone "example.com"' in conf

        records = cli_runner.invoke(cli, ["--json", "dns", "record", "list", "1"])
        types = [item["type"] for item in json.loads(records.stdout)["data"]["items"]]
        assert types == ["A", "CNAME"]

    def test_invalid_ip(self, cli_runner: CliRunner, host_root: Path, site_id: int) -> None:
        result = cli_runner.invoke(
            cli, ["dns", "create", str(site_id), "example.com", "--ip", "2001:db8::1"]
        )
        assert result.exit_code == 1
        assert not (host_root / "bind" / "zones" / "db.example.com").exists()

    def test_zone_check_failure_rolls_back(
        self, cli_runner: CliRunner, cli_host: CliHost, site_id: int
    ) -> None:
        sandbox, _ = cli_host
        sandbox.fail_on("named-checkzone", output="zone example.com/IN: has no NS records")
        result = cli_runner.invoke(cli, ["dns", "create", str(site_id), "example.com"])
        assert result.exit_code == 1
        assert "Failed to create DNS zone" in result.output
        listing = cli_runner.invoke(cli, ["--json", "dns", "list"])
        assert json.loads(listing.stdout)["data"]["count"] == 0

    def test_delete(self, cli_runner: CliRunner, host_root: Path, site_id: int) -> None:
        cli_runner.invoke(cli, ["dns", "create", str(site_id), "example.com"])
        result = cli_runner.invoke(cli, ["dns", "delete", "1"])
        assert result.exit_code == 0, result.output
        assert not (host_root / "bind" / "zones" / "db.example.com").exists()
        conf = (host_root / "bind" / "named.conf.local").read_text(encoding="utf-8")
        assert "example.com" not in conf


class TestDnsRecordCommands:
    @pytest.fixture(autouse=True)
    def _zone_exists(self, cli_runner: CliRunner, site_id: int) -> None:
        result = cli_runner.invoke(cli, ["dns", "create", str(site_id), "example.com"])
        assert result.exit_code == 0, result.output

    def test_add_mx(self, cli_runner: CliRunner, host_root: Path) -> None:
        result = cli_runner.invoke(
            cli,
            [
                "--json",
                "dns",
                "record",
                "add",
                "1",
                "@",
                "mx",
                "mail.example.com",
                "--priority",
                "10",
            ],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["data"]
        assert data["type"] == "MX"
        assert data["priority"] == 10
        assert "mail.example.com." in _zone(host_root)

    def test_add_duplicate(self, cli_runner: CliRunner) -> None:
        args = ["dns", "record", "add", "1", "mail", "A", "203.0.113.25"]
        assert cli_runner.invoke(cli, args).exit_code == 0
        result = cli_runner.invoke(cli, args)
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_priority_on_a_record(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["dns", "record", "add", "1", "mail", "A", "203.0.113.25", "--priority", "5"]
        )
        assert result.exit_code == 1
        assert "only valid for MX" in result.output

    def test_update_and_delete(self, cli_runner: CliRunner, host_root: Path) -> None:
        cli_runner.invoke(cli, ["dns", "record", "add", "1", "mail", "A", "203.0.113.25"])
        result = cli_runner.invoke(
            cli, ["--json", "dns", "record", "update", "1", "203.0.113.26", "--ttl", "600"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["data"]["ttl"] == 600
        zone = _zone(host_root)
        assert "203.0.113.26" in zone
        assert "203.0.113.25" not in zone

        result = cli_runner.invoke(cli, ["dns", "record", "delete", "1"])
        assert result.exit_code == 0, result.output
        assert "203.0.113.26" not in _zone(host_root)

    def test_list_table(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["dns", "record", "add", "1", "mail", "A", "203.0.113.25"])
        result = cli_runner.invoke(cli, ["dns", "record", "list", "1"])
        assert result.exit_code == 0
        assert "203.0.113.25" in result.stdout
        assert result.stdout.rstrip().endswith("1 records")
