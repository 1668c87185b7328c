"""Tests for the system integrity category.

Verifies:
    - A clean system is Passed.
    - Mount-table rules: read-write system, overlays, the last mount wins.
    - Security and debug property rules relative to the reference date.
    - Writable system directories fail.
"""

from __future__ import annotations

import asyncio
from typing import Any

from trustprobe.categories.integrity import (
    DebugPropertiesProbe,
    MountsProbe,
    SystemFilesProbe,
    SystemPropertiesProbe,
)
from trustprobe.config import Settings
from trustprobe.core.evidence import SnapshotHost
from trustprobe.core.orchestrator import Orchestrator
from trustprobe.core.probes import Probe, ProbeContext, ProbeOutcome
from trustprobe.core.scoring import AssessmentResult, Classification


def assess(snapshot: dict[str, Any], settings: Settings) -> AssessmentResult:
    return asyncio.run(Orchestrator(SnapshotHost(snapshot), settings=settings).run("integrity"))


def run_probe(probe: Probe, snapshot: dict[str, Any], settings: Settings) -> ProbeOutcome:
    ctx = ProbeContext(host=SnapshotHost(snapshot), settings=settings, category="integrity")
    return asyncio.run(probe.run(ctx))


def with_mounts(snapshot: dict[str, Any], text: str) -> dict[str, Any]:
    snapshot["files"]["/proc/mounts"] = {"text": text}
    return snapshot


class TestIntegrityCategory:
    """Category-level classification."""

    def test_clean_system_passes(self, healthy_snapshot: dict, settings: Settings) -> None:
        result = assess(healthy_snapshot, settings)
        assert result.classification is Classification.PASSED
        assert len(result.passed_outcomes) == 6

    def test_read_write_system_is_warning(self, healthy_snapshot: dict, settings: Settings) -> None:
        with_mounts(healthy_snapshot, "/dev/block/dm-0 / ext4 rw,seclabel 0 0\n")
        result = assess(healthy_snapshot, settings)
        assert [o.name for o in result.failed_outcomes] == ["mounts"]
        assert result.score_percent == 83
        assert result.classification is Classification.WARNING

    def test_writable_directories_and_old_patch_fail(
        self, healthy_snapshot: dict, settings: Settings
    ) -> None:
        healthy_snapshot["files"]["/system"]["writable"] = True
        healthy_snapshot["properties"]["ro.build.version.security_patch"] = "2024-01-01"
        result = assess(healthy_snapshot, settings)
        failed = [o.name for o in result.failed_outcomes]
        assert failed == ["system_properties", "debug_properties", "directory_permissions"]
        assert result.classification is Classification.FAILED


class TestMounts:
    """Mount-table parsing."""

    def test_read_only_root(self, healthy_snapshot: dict, settings: Settings) -> None:
        outcome = run_probe(MountsProbe(), healthy_snapshot, settings)
        assert outcome.passed
        assert outcome.evidence == "/ mounted read-only"

    def test_dedicated_system_mount_preferred(self, healthy_snapshot: dict, settings: Settings) -> None:
        with_mounts(
            healthy_snapshot,
            "rootfs / rootfs rw 0 0\n/dev/block/dm-0 /system ext4 ro,seclabel 0 0\n",
        )
        outcome = run_probe(MountsProbe(), healthy_snapshot, settings)
        assert outcome.passed
        assert dict(outcome.details)["system_mount"] == "/system"

    def test_overlay_on_system_path(self, healthy_snapshot: dict, settings: Settings) -> None:
        with_mounts(
            healthy_snapshot,
            "/dev/block/dm-0 / ext4 ro 0 0\noverlay /system/bin overlay ro 0 0\n",
        )
        outcome = run_probe(MountsProbe(), healthy_snapshot, settings)
        assert not outcome.passed
        assert "overlay overlay on /system/bin" in outcome.evidence

    def test_loop_device_on_vendor(self, healthy_snapshot: dict, settings: Settings) -> None:
        with_mounts(
            healthy_snapshot,
            "/dev/block/dm-0 / ext4 ro 0 0\n/dev/block/loop7 /vendor/lib ext4 ro 0 0\n",
        )
        assert not run_probe(MountsProbe(), healthy_snapshot, settings).passed

    def test_later_remount_wins(self, healthy_snapshot: dict, settings: Settings) -> None:
        with_mounts(
            healthy_snapshot,
            "/dev/block/dm-0 / ext4 ro 0 0\n/dev/block/dm-0 / ext4 rw 0 0\n",
        )
        outcome = run_probe(MountsProbe(), healthy_snapshot, settings)
        assert not outcome.passed
        assert outcome.evidence == "/ is mounted read-write"

    def test_no_system_mount(self, healthy_snapshot: dict, settings: Settings) -> None:
        with_mounts(healthy_snapshot, "/dev/block/dm-5 /data f2fs rw 0 0\n")
        outcome = run_probe(MountsProbe(), healthy_snapshot, settings)
        assert outcome.evidence == "No system mount found"

    def test_unreadable_mount_table_fails_closed(
        self, healthy_snapshot: dict, settings: Settings
    ) -> None:
        healthy_snapshot["denied"] = ["file:/proc/mounts"]
        outcome = run_probe(MountsProbe(), healthy_snapshot, settings)
        assert not outcome.passed
        assert outcome.error == "permission denied"


class TestProperties:
    """Security and debug property rules."""

    def test_ro_secure_zero(self, healthy_snapshot: dict, settings: Settings) -> None:
        healthy_snapshot["properties"]["ro.secure"] = "0"
        outcome = run_probe(SystemPropertiesProbe(), healthy_snapshot, settings)
        assert not outcome.passed
        assert "ro.secure=0" in outcome.evidence

    def test_orange_boot_state(self, healthy_snapshot: dict, settings: Settings) -> None:
        healthy_snapshot["properties"]["ro.boot.verifiedbootstate"] = "orange"
        assert not run_probe(SystemPropertiesProbe(), healthy_snapshot, settings).passed

    def test_unknown_ro_secure_fails_closed(self, settings: Settings) -> None:
        outcome = run_probe(SystemPropertiesProbe(), {}, settings)
        assert not outcome.passed
        assert outcome.error == "property not set"

    def test_debuggable_build(self, healthy_snapshot: dict, settings: Settings) -> None:
        healthy_snapshot["properties"]["ro.debuggable"] = "1"
        healthy_snapshot["properties"]["ro.build.type"] = "userdebug"
        outcome = run_probe(DebugPropertiesProbe(), healthy_snapshot, settings)
        assert not outcome.passed
        assert outcome.evidence == "Debug markers: ro.debuggable=1, ro.build.type=userdebug"

    def test_patch_between_six_and_twelve_months(
        self, healthy_snapshot: dict, settings: Settings
    ) -> None:
        """A 200-day-old patch is a debug marker but not a security property failure."""
        healthy_snapshot["properties"]["ro.build.version.security_patch"] = "2024-11-13"
        assert run_probe(SystemPropertiesProbe(), healthy_snapshot, settings).passed
        assert not run_probe(DebugPropertiesProbe(), healthy_snapshot, settings).passed


class TestFiles:
    """File accessibility thresholds."""

    def test_too_few_readable_files(self, healthy_snapshot: dict, settings: Settings) -> None:
        for path in ("/proc/version", "/proc/cpuinfo", "/proc/meminfo"):
            healthy_snapshot["files"][path]["readable"] = False
        outcome = run_probe(SystemFilesProbe(), healthy_snapshot, settings)
        assert not outcome.passed
        assert outcome.evidence == "2/5 core system files readable"
