"""Tests for ``trustprobe assess``.

Verifies:
    - A healthy snapshot exits 0 in text and JSON modes.
    - A denylisted package exits 1 with a Failed dangerous_apps result.
    - Unknown categories, bad snapshots and bad settings exit 2.
    - Category selection and sequential mode.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from trustprobe.categories import CATEGORY_NAMES
from trustprobe.cli.main import cli
from trustprobe.core.signatures import CATALOG_VERSION

PINNED = ["--reference-date", "2025-06-01"]


class TestAssessHealthy:
    """Assessing a trustworthy device."""

    def test_json_output(self, runner: CliRunner, healthy_snapshot_file: Path) -> None:
        result = runner.invoke(
            cli,
            ["assess", "--snapshot", str(healthy_snapshot_file), "--format", "json", *PINNED],
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["catalog_version"] == CATALOG_VERSION
        assert [r["category"] for r in data["results"]] == list(CATEGORY_NAMES)
        assert all(r["classification"] == "passed" for r in data["results"])
        assert all(r["score_percent"] == 100 for r in data["results"])

    def test_text_output(self, runner: CliRunner, healthy_snapshot_file: Path) -> None:
        result = runner.invoke(cli, ["assess", "--snapshot", str(healthy_snapshot_file), *PINNED])
        assert result.exit_code == 0
        assert "trustprobe Assessment" in result.output
        assert "Recommendation" in result.output
        assert "running..." in result.output

    def test_selected_categories(self, runner: CliRunner, healthy_snapshot_file: Path) -> None:
        result = runner.invoke(
            cli,
            [
                "assess", "selinux", "tee",
                "--snapshot", str(healthy_snapshot_file),
                "--format", "json",
                *PINNED,
            ],
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [r["category"] for r in data["results"]] == ["selinux", "tee"]

    def test_sequential(self, runner: CliRunner, healthy_snapshot_file: Path) -> None:
        result = runner.invoke(
            cli,
            [
                "assess", "integrity",
                "--snapshot", str(healthy_snapshot_file),
                "--sequential", "--timeout", "10",
                "--format", "json",
                *PINNED,
            ],
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["results"][0]["classification"] == "passed"


class TestAssessFindings:
    """Assessing a compromised device."""

    def test_denylisted_package_exits_1(
        self, runner: CliRunner, rooted_snapshot_file: Path
    ) -> None:
        result = runner.invoke(
            cli,
            ["assess", "--snapshot", str(rooted_snapshot_file), "--format", "json", *PINNED],
        )
        assert result.exit_code == 1
        data = json.loads(result.output)
        by_name = {r["category"]: r for r in data["results"]}
        apps = by_name["dangerous_apps"]
        assert apps["classification"] == "failed"
        assert [o["name"] for o in apps["failed"]] == ["signature_scan"]
        assert apps["failed"][0]["details"] == {"com.topjohnwu.magisk": "root manager"}
        assert by_name["bootloader"]["classification"] == "passed"

    def test_text_shows_failed_classification(
        self, runner: CliRunner, rooted_snapshot_file: Path
    ) -> None:
        result = runner.invoke(
            cli, ["assess", "dangerous_apps", "--snapshot", str(rooted_snapshot_file), *PINNED]
        )
        assert result.exit_code == 1
        assert "FAILED" in result.output


class TestAssessErrors:
    """Usage and configuration errors exit 2."""

    def test_unknown_category(self, runner: CliRunner, healthy_snapshot_file: Path) -> None:
        result = runner.invoke(
            cli, ["assess", "bluetooth", "--snapshot", str(healthy_snapshot_file)]
        )
        assert result.exit_code == 2
        assert "Error" in result.output
        assert "bluetooth" in result.output

    def test_invalid_snapshot(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("properties: [unclosed\n")
        result = runner.invoke(cli, ["assess", "--snapshot", str(path)])
        assert result.exit_code == 2
        assert "Invalid YAML" in result.output

    def test_unknown_snapshot_section(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "odd.yaml"
        path.write_text("sensors: {}\n")
        result = runner.invoke(cli, ["assess", "--snapshot", str(path)])
        assert result.exit_code == 2
        assert "sensors" in result.output

    @pytest.mark.parametrize(
        "body",
        [
            "files:\n  /system/build.prop: readable\n",
            "files:\n  - /system/build.prop\n",
            "packages: com.termux\n",
        ],
    )
    def test_malformed_snapshot_section(self, runner: CliRunner, tmp_path: Path, body: str) -> None:
        path = tmp_path / "malformed.yaml"
        path.write_text(body)
        result = runner.invoke(cli, ["assess", "--snapshot", str(path)])
        assert result.exit_code == 2
        assert "Error" in result.output
        assert "must be a" in result.output

    def test_bad_settings_file(
        self, runner: CliRunner, tmp_path: Path, healthy_snapshot_file: Path
    ) -> None:
        config = tmp_path / "trustprobe.yaml"
        config.write_text("category_timeout: -1\n")
        result = runner.invoke(
            cli,
            ["assess", "--snapshot", str(healthy_snapshot_file), "--config", str(config)],
        )
        assert result.exit_code == 2
        assert "Error" in result.output

    def test_missing_snapshot_file(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["assess", "--snapshot", str(tmp_path / "absent.yaml")])
        assert result.exit_code == 2
