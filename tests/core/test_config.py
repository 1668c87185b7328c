"""Tests for settings resolution.

Verifies:
    - Defaults, then YAML file, then environment, then explicit overrides.
    - Type coercion of file and environment values.
    - Invalid files, keys and values raise ConfigurationError.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import pytest
from pydantic import ValidationError

from trustprobe.config import Settings, load_settings
from trustprobe.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ambient TRUSTPROBE_* variables out of these tests."""
    for name in (
        "CATEGORY_TIMEOUT",
        "COMMAND_TIMEOUT_MS",
        "PACING_DELAY",
        "CONCURRENT_PROBES",
        "REFERENCE_DATE",
        "LOG_LEVEL",
        "CONFIG_FILE",
    ):
        monkeypatch.delenv(f"TRUSTPROBE_{name}", raising=False)


class TestDefaults:
    """Built-in defaults and validation."""

    def test_defaults(self) -> None:
        s = load_settings()
        assert s == Settings()
        assert s.category_timeout == 5.0
        assert s.concurrent_probes is True
        assert s.logging_level == logging.WARNING
        assert s.config_file is None

    def test_today_prefers_reference_date(self) -> None:
        assert Settings(reference_date=date(2025, 6, 1)).today() == date(2025, 6, 1)
        assert Settings().today() == date.today()

    def test_immutable(self) -> None:
        with pytest.raises(ValidationError):
            Settings().category_timeout = 1.0  # type: ignore[misc]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"category_timeout": 0},
            {"command_timeout_ms": -5},
            {"pacing_delay": -0.1},
            {"log_level": "LOUD"},
            {"category_timeoutt": 3},
        ],
    )
    def test_invalid_values(self, kwargs: dict) -> None:
        with pytest.raises(ValidationError):
            Settings(**kwargs)
        with pytest.raises(ConfigurationError, match="Invalid settings"):
            load_settings(**kwargs)


class TestLayering:
    """Precedence of settings sources."""

    def test_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "trustprobe.yaml"
        path.write_text(
            "category_timeout: 3\n"
            "concurrent_probes: false\n"
            "reference_date: 2025-06-01\n"
            "log_level: info\n"
        )
        s = load_settings(path)
        assert s.category_timeout == 3.0
        assert s.concurrent_probes is False
        assert s.reference_date == date(2025, 6, 1)
        assert s.log_level == "INFO"
        assert s.config_file == path

    def test_environment_overrides_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "trustprobe.yaml"
        path.write_text("category_timeout: 3\ncommand_timeout_ms: 900\n")
        monkeypatch.setenv("TRUSTPROBE_CATEGORY_TIMEOUT", "7.5")
        monkeypatch.setenv("TRUSTPROBE_CONCURRENT_PROBES", "no")
        s = load_settings(path)
        assert s.category_timeout == 7.5
        assert s.concurrent_probes is False
        assert s.command_timeout_ms == 900

    def test_overrides_win_and_none_is_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TRUSTPROBE_COMMAND_TIMEOUT_MS", "900")
        s = load_settings(command_timeout_ms=1500, category_timeout=None)
        assert s.command_timeout_ms == 1500
        assert s.category_timeout == 5.0

    def test_environment_date(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TRUSTPROBE_REFERENCE_DATE", "2025-06-01")
        assert load_settings().today() == date(2025, 6, 1)


class TestErrors:
    """Malformed configuration."""

    def test_unknown_key(self, tmp_path: Path) -> None:
        path = tmp_path / "trustprobe.yaml"
        path.write_text("category_timeoutt: 3\n")
        with pytest.raises(ConfigurationError, match="category_timeoutt"):
            load_settings(path)

    def test_bad_boolean(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TRUSTPROBE_CONCURRENT_PROBES", "maybe")
        with pytest.raises(ConfigurationError, match="concurrent_probes"):
            load_settings()

    def test_bad_number(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TRUSTPROBE_CATEGORY_TIMEOUT", "soon")
        with pytest.raises(ConfigurationError, match="category_timeout"):
            load_settings()

    def test_bad_date(self) -> None:
        with pytest.raises(ConfigurationError, match="reference_date"):
            load_settings(reference_date="June")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "trustprobe.yaml"
        path.write_text("category_timeout: [3\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_settings(path)

    def test_non_mapping_file(self, tmp_path: Path) -> None:
        path = tmp_path / "trustprobe.yaml"
        path.write_text("- 3\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_settings(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_settings(tmp_path / "absent.yaml")
