"""Tests for LocalHost against the real filesystem.

Only queries with deterministic answers on any machine are exercised:
file facts and content under ``tmp_path``, directory enumeration, a
command that cannot exist, and the unreachable hardware key store.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from trustprobe.core.evidence import FileFacts, KeySpec, LocalHost
from trustprobe.exceptions import KeystoreError


@pytest.fixture
def host() -> LocalHost:
    return LocalHost(command_timeout_ms=2000)


class TestLocalFiles:
    """Filesystem-backed queries."""

    def test_existing_file(self, host: LocalHost, tmp_path: Path) -> None:
        path = tmp_path / "build.prop"
        path.write_text("ro.secure=1\n")
        r = asyncio.run(host.file_facts(str(path)))
        assert r.known
        assert r.value.exists and r.value.readable
        assert not r.value.is_dir
        assert r.value.size_bytes == len("ro.secure=1\n")

    def test_directory(self, host: LocalHost, tmp_path: Path) -> None:
        r = asyncio.run(host.file_facts(str(tmp_path)))
        assert r.value.exists and r.value.is_dir

    def test_missing_path_is_known_missing(self, host: LocalHost, tmp_path: Path) -> None:
        r = asyncio.run(host.file_facts(str(tmp_path / "nope")))
        assert r.known
        assert r.value == FileFacts.missing()

    def test_file_text(self, host: LocalHost, tmp_path: Path) -> None:
        path = tmp_path / "status"
        path.write_text("TracerPid:\t0\n")
        assert asyncio.run(host.file_text(str(path))).value == "TracerPid:\t0\n"

    def test_file_text_missing(self, host: LocalHost, tmp_path: Path) -> None:
        r = asyncio.run(host.file_text(str(tmp_path / "nope")))
        assert not r.known
        assert r.reason == "path not found"

    def test_enumerate_entities(self, host: LocalHost, tmp_path: Path) -> None:
        (tmp_path / "com.example.one").mkdir()
        (tmp_path / "com.example.two").mkdir()
        r = asyncio.run(host.enumerate_entities(str(tmp_path)))
        assert r.value == frozenset({"com.example.one", "com.example.two"})

    def test_enumerate_missing(self, host: LocalHost, tmp_path: Path) -> None:
        r = asyncio.run(host.enumerate_entities(str(tmp_path / "nope")))
        assert r.reason == "path not found"


class TestLocalProcesses:
    """Subprocess-backed queries."""

    def test_missing_command_is_unknown(self, host: LocalHost) -> None:
        r = asyncio.run(host.command(["trustprobe-no-such-binary-xyz"], 1000))
        assert not r.known
        assert r.reason == "command not found"


class TestLocalKeystore:
    """The local host never offers a hardware key store."""

    def test_create_raises(self, host: LocalHost) -> None:
        with pytest.raises(KeystoreError, match="No hardware-backed key store"):
            asyncio.run(host.create_hardware_key("alias", KeySpec()))

    def test_delete_is_noop(self, host: LocalHost) -> None:
        assert asyncio.run(host.delete_hardware_key("alias")) is None
