"""Evidence source reading the machine the process runs on.

``LocalHost`` answers every query from the local filesystem, the process
environment and short-lived subprocesses (``getprop``, ``pm``). On a
non-Android machine most build properties are simply unknown, which the
probes resolve through their documented fallback chains.

No hardware-backed key store is reachable from a Python process, so key
creation always raises ``KeystoreError``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import ssl
from collections.abc import Sequence
from pathlib import Path

from trustprobe.core.evidence.models import (
    PERMISSION_DENIED,
    EvidenceResult,
    FileFacts,
    HardwareKeyFacts,
    KeySpec,
    NetworkFacts,
    known,
    unknown,
)
from trustprobe.core.evidence.sources import HostEvidence
from trustprobe.exceptions import KeystoreError

logger = logging.getLogger(__name__)

_RESOLV_CONF = Path("/etc/resolv.conf")
_NET_CLASS = Path("/sys/class/net")
_PROXY_VARIABLES = ("http_proxy", "https_proxy", "all_proxy")
_VPN_PREFIXES = ("tun", "tap", "wg", "ppp", "ipsec", "utun")
_PROPERTY_TIMEOUT_MS = 1000


class LocalHost(HostEvidence):
    """Evidence source backed by the local operating system.

    Args:
        command_timeout_ms: Default timeout for helper subprocesses
            (``getprop``, ``pm``) issued on behalf of other queries.
    """

    def __init__(self, command_timeout_ms: int = _PROPERTY_TIMEOUT_MS) -> None:
        self._command_timeout_ms = command_timeout_ms

    # -- Files --

    async def file_facts(self, path: str) -> EvidenceResult[FileFacts]:
        return await asyncio.to_thread(_stat_path, Path(path))

    async def file_text(self, path: str, limit: int = 65536) -> EvidenceResult[str]:
        return await asyncio.to_thread(_read_text, Path(path), limit)

    # -- Properties and processes --

    async def property(self, key: str) -> EvidenceResult[str]:
        result = await self.command(["getprop", key], self._command_timeout_ms)
        if not result.known:
            return unknown(result.reason, source="getprop")
        return known(result.value.strip(), source="getprop")  # type: ignore[union-attr]

    async def command(self, argv: Sequence[str], timeout_ms: int) -> EvidenceResult[str]:
        status, output, reason = await _run(argv, timeout_ms)
        if status is None:
            return unknown(reason, source=argv[0])
        if status != 0:
            return unknown(f"exit status {status}", source=argv[0])
        if not output.strip():
            return unknown("no output", source=argv[0])
        return known(output, source=argv[0])

    async def package_installed(self, identifier: str) -> EvidenceResult[bool]:
        status, output, reason = await _run(["pm", "path", identifier], self._command_timeout_ms)
        if status is None:
            return unknown(reason, source="pm")
        # ``pm path`` exits non-zero with no output for packages it does not know.
        return known(status == 0 and output.startswith("package:"), source="pm")

    # -- Hardware keystore --

    async def create_hardware_key(self, alias: str, spec: KeySpec) -> HardwareKeyFacts:
        raise KeystoreError(
            f"No hardware-backed key store is reachable from this host "
            f"(requested {spec.algorithm.value} key '{alias}')"
        )

    async def delete_hardware_key(self, alias: str) -> None:
        return None

    # -- Network --

    async def network(self) -> EvidenceResult[NetworkFacts]:
        return await asyncio.to_thread(_network_facts)

    # -- Enumeration --

    async def enumerate_entities(self, base_path: str) -> EvidenceResult[frozenset[str]]:
        return await asyncio.to_thread(_list_dir, Path(base_path))


# ---------------------------------------------------------------------------
# Blocking helpers (run in a worker thread)
# ---------------------------------------------------------------------------


def _stat_path(path: Path) -> EvidenceResult[FileFacts]:
    try:
        st = path.stat()
    except FileNotFoundError:
        return known(FileFacts.missing(), source="stat")
    except PermissionError:
        return unknown(PERMISSION_DENIED, source="stat")
    except OSError as exc:
        return unknown(f"stat failed: {exc.strerror or exc}", source="stat")
    is_dir = path.is_dir()
    return known(
        FileFacts(
            exists=True,
            readable=os.access(path, os.R_OK),
            writable=os.access(path, os.W_OK),
            is_dir=is_dir,
            size_bytes=0 if is_dir else st.st_size,
        ),
        source="stat",
    )


def _read_text(path: Path, limit: int) -> EvidenceResult[str]:
    try:
        with path.open(encoding="utf-8", errors="replace") as fh:
            return known(fh.read(limit), source="read")
    except FileNotFoundError:
        return unknown("path not found", source="read")
    except PermissionError:
        return unknown(PERMISSION_DENIED, source="read")
    except OSError as exc:
        return unknown(f"read failed: {exc.strerror or exc}", source="read")


def _list_dir(path: Path) -> EvidenceResult[frozenset[str]]:
    try:
        return known(frozenset(entry.name for entry in path.iterdir()), source="listdir")
    except FileNotFoundError:
        return unknown("path not found", source="listdir")
    except PermissionError:
        return unknown(PERMISSION_DENIED, source="listdir")
    except OSError as exc:
        return unknown(f"listing failed: {exc.strerror or exc}", source="listdir")


def _network_facts() -> EvidenceResult[NetworkFacts]:
    interfaces: tuple[str, ...] = ()
    if _NET_CLASS.is_dir():
        try:
            interfaces = tuple(sorted(entry.name for entry in _NET_CLASS.iterdir()))
        except OSError:
            logger.debug("Cannot list %s", _NET_CLASS, exc_info=True)

    vpn_active = any(name.startswith(_VPN_PREFIXES) for name in interfaces)
    wireless = [name for name in interfaces if (_NET_CLASS / name / "wireless").exists()]
    wired = [name for name in interfaces if name != "lo" and name not in wireless]
    if vpn_active:
        connection_type = "vpn"
    elif wireless:
        connection_type = "wifi"
    elif wired:
        connection_type = "ethernet"
    else:
        connection_type = "none"

    proxy = any(
        os.environ.get(var) or os.environ.get(var.upper()) for var in _PROXY_VARIABLES
    )

    return known(
        NetworkFacts(
            connection_type=connection_type,
            vpn_active=vpn_active,
            proxy_configured=bool(proxy),
            dns_servers=_resolv_nameservers(),
            tls_protocols=_tls_protocols(),
            wifi_security=None,
            interfaces=interfaces,
        ),
        source="local",
    )


def _resolv_nameservers() -> tuple[str, ...]:
    try:
        lines = _RESOLV_CONF.read_text(encoding="utf-8").splitlines()
    except OSError:
        return ()
    servers = []
    for line in lines:
        parts = line.split()
        if len(parts) >= 2 and parts[0] == "nameserver":
            servers.append(parts[1])
    return tuple(servers)


def _tls_protocols() -> tuple[str, ...]:
    protocols = []
    if getattr(ssl, "HAS_TLSv1_2", False):
        protocols.append("TLSv1.2")
    if getattr(ssl, "HAS_TLSv1_3", False):
        protocols.append("TLSv1.3")
    return tuple(protocols)


async def _run(argv: Sequence[str], timeout_ms: int) -> tuple[int | None, str, str]:
    """Run ``argv`` and return ``(exit status, stdout, reason)``.

    ``exit status`` is None when the process could not be started or was
    killed on timeout; ``reason`` then explains why.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except FileNotFoundError:
        return None, "", "command not found"
    except PermissionError:
        return None, "", PERMISSION_DENIED
    except OSError as exc:
        return None, "", f"cannot start {argv[0]}: {exc.strerror or exc}"

    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout_ms / 1000)
    except asyncio.TimeoutError:
        await _terminate(proc)
        return None, "", f"timed out after {timeout_ms} ms"
    except asyncio.CancelledError:
        await _terminate(proc)
        raise
    return proc.returncode, stdout.decode("utf-8", errors="replace"), ""


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    try:
        proc.kill()
    except ProcessLookupError:
        return
    await proc.wait()
