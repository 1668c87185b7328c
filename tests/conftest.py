"""Shared fixtures for trustprobe tests.

The central fixture is ``healthy_snapshot``: a captured description of a
locked, patched, unrooted device on which every built-in category
classifies as Passed. Tests copy it and perturb one fact at a time.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from trustprobe.config import Settings
from trustprobe.core.evidence import SnapshotHost

REFERENCE_DATE = date(2025, 6, 1)

PROC_MOUNTS = (
    "/dev/block/dm-0 / ext4 ro,seclabel,relatime 0 0\n"
    "/dev/block/dm-1 /vendor ext4 ro,seclabel,relatime 0 0\n"
    "/dev/block/dm-5 /data f2fs rw,nosuid,nodev 0 0\n"
    "/dev/block/loop3 /apex/com.android.runtime@1 ext4 ro,nodev 0 0\n"
)


def _healthy() -> dict[str, Any]:
    return {
        "properties": {
            "ro.build.version.sdk": "34",
            "ro.build.version.release": "14",
            "ro.build.version.security_patch": "2025-05-05",
            "ro.build.tags": "release-keys",
            "ro.build.type": "user",
            "ro.build.fingerprint": (
                "google/husky/husky:14/AP1A.240505.004/11583682:user/release-keys"
            ),
            "ro.build.display.id": "AP1A.240505.004",
            "ro.product.manufacturer": "Google",
            "ro.product.brand": "google",
            "ro.product.model": "Pixel 8 Pro",
            "ro.product.device": "husky",
            "ro.product.board": "husky",
            "ro.product.name": "husky",
            "ro.hardware": "husky",
            "ro.bootloader": "ripcurrent-14.3",
            "ro.boot.flash.locked": "1",
            "ro.boot.vbmeta.device_state": "locked",
            "ro.boot.verifiedbootstate": "green",
            "ro.boot.veritymode": "enforcing",
            "ro.boot.selinux": "enforcing",
            "ro.secure": "1",
            "ro.debuggable": "0",
            "service.adb.root": "0",
        },
        "files": {
            "/system": {"is_dir": True},
            "/system/bin": {"is_dir": True},
            "/system/etc": {"is_dir": True},
            "/vendor": {"is_dir": True},
            "/system/bin/keystore2": {},
            "/system/build.prop": {"size_bytes": 4096},
            "/system/etc/hosts": {},
            "/proc/version": {},
            "/proc/cpuinfo": {},
            "/proc/meminfo": {},
            "/proc/self/status": {"text": "Name:\ttrustprobe\nTracerPid:\t0\n"},
            "/proc/mounts": {"text": PROC_MOUNTS},
            "/proc/self/attr/current": {"text": "u:r:untrusted_app:s0:c512,c768"},
            "/sys/fs/selinux/enforce": {"text": "1"},
            "/sys/fs/selinux/policyvers": {"text": "33"},
            "/system/etc/selinux/plat_sepolicy.cil": {},
            "/system/framework/framework.jar": {},
            "/system/framework/services.jar": {},
            "/system/lib/libc.so": {},
            "/system/lib64/libc.so": {},
            "/system/lib/libm.so": {},
            "/system/lib/libdl.so": {},
            "/system/lib/liblog.so": {},
            "/system/bin/app_process64": {},
            "/system/bin/sh": {},
            "/system/bin/toolbox": {},
            "/system/etc/security/cacerts": {"is_dir": True},
        },
        "commands": {
            "settings get global adb_enabled": "0",
            "settings get global development_settings_enabled": "0",
            "getenforce": "Enforcing",
            "pm list features": (
                "feature:android.hardware.wifi\n"
                "feature:android.hardware.fingerprint\n"
                "feature:android.hardware.strongbox_keystore\n"
            ),
        },
        "packages": ["com.android.chrome"],
        "entities": {
            "/sdcard/Android/data": ["com.android.chrome", "com.google.android.gm"],
            "/data/misc/user/0/cacerts-added": [],
        },
        "network": {
            "connection_type": "wifi",
            "wifi_security": "WPA3",
            "vpn_active": False,
            "proxy_configured": False,
            "dns_servers": ["1.1.1.1", "8.8.8.8"],
            "tls_protocols": ["TLSv1.2", "TLSv1.3"],
            "interfaces": ["lo", "wlan0", "rmnet_data0"],
        },
        "keystore": {
            "secure_hardware": True,
            "strongbox": True,
            "attestation_chain_length": 3,
            "biometric": True,
            "self_test_ms": 1.5,
        },
    }


@pytest.fixture
def healthy_snapshot() -> dict[str, Any]:
    """A fresh, mutable snapshot of a fully trustworthy device."""
    return _healthy()


@pytest.fixture
def healthy_host(healthy_snapshot: dict[str, Any]) -> SnapshotHost:
    return SnapshotHost(healthy_snapshot)


@pytest.fixture
def settings() -> Settings:
    """Settings pinned to a fixed reference date for patch-age rules."""
    return Settings(reference_date=REFERENCE_DATE)
