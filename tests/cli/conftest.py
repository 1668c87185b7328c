"""Shared fixtures for CLI tests.

Provides a Click runner and helpers that write host snapshots to YAML
files for ``trustprobe assess --snapshot``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml
from click.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()


def write_snapshot(directory: Path, snapshot: dict[str, Any], name: str = "device.yaml") -> Path:
    path = directory / name
    path.write_text(yaml.safe_dump(snapshot), encoding="utf-8")
    return path


@pytest.fixture
def healthy_snapshot_file(tmp_path: Path, healthy_snapshot: dict[str, Any]) -> Path:
    """The healthy device snapshot written as YAML."""
    return write_snapshot(tmp_path, healthy_snapshot)


@pytest.fixture
def rooted_snapshot_file(tmp_path: Path, healthy_snapshot: dict[str, Any]) -> Path:
    """A healthy device that also has a root manager installed."""
    healthy_snapshot["entities"]["/sdcard/Android/data"].append("com.topjohnwu.magisk")
    return write_snapshot(tmp_path, healthy_snapshot, "rooted.yaml")
