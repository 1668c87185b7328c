"""Evidence source replaying a captured host description.

A snapshot is a plain mapping (usually loaded from YAML) describing what a
host would answer to each evidence query. It makes assessments fully
reproducible: the same snapshot always yields the same outcomes.

Snapshot layout::

    properties:
      ro.build.tags: release-keys
    files:
      /system/build.prop: {readable: true, writable: false, size_bytes: 4096}
      /proc/mounts: {text: "/dev/block/dm-0 /system ext4 ro 0 0"}
    commands:
      "getenforce": "Enforcing"
    packages: [com.example.app]
    entities:
      /sdcard/Android/data: [com.example.app]
    network:
      connection_type: wifi
      dns_servers: [1.1.1.1]
      tls_protocols: [TLSv1.2, TLSv1.3]
    keystore:
      secure_hardware: true
      strongbox: false
      attestation_chain_length: 3
      biometric: true
      self_test_ms: 1.5
    denied:
      - property:ro.boot.flash.locked
      - entities:/sdcard/Android/data

Entries listed under ``denied`` answer ``Unknown("permission denied")``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

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
from trustprobe.exceptions import KeystoreError, SnapshotError

logger = logging.getLogger(__name__)

_SECTIONS = frozenset(
    {"properties", "files", "commands", "packages", "entities", "network", "keystore", "denied"}
)


def _section_mapping(data: Mapping[str, Any], section: str) -> Mapping[Any, Any]:
    value = data.get(section)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise SnapshotError(
            f"Snapshot section '{section}' must be a mapping, got {type(value).__name__}"
        )
    return value


def _section_list(data: Mapping[str, Any], section: str) -> list[Any]:
    value = data.get(section)
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise SnapshotError(
            f"Snapshot section '{section}' must be a list, got {type(value).__name__}"
        )
    return list(value)


def _entry_mapping(section: str, key: Any, value: Any) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise SnapshotError(
            f"Snapshot entry {section}[{key!r}] must be a mapping, got {type(value).__name__}"
        )
    return value


def _entry_list(section: str, key: Any, value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise SnapshotError(
            f"Snapshot entry {section}[{key!r}] must be a list, got {type(value).__name__}"
        )
    return list(value)


class SnapshotHost(HostEvidence):
    """Evidence source answering from an in-memory host snapshot.

    The simulated key store tracks live aliases so tests can verify that
    stateful probes clean up after themselves on every exit path.

    Args:
        snapshot: Mapping in the layout described in the module docstring.

    Raises:
        SnapshotError: If the snapshot is not a mapping, has unknown sections,
            or a section or entry has the wrong shape.
    """

    def __init__(self, snapshot: Mapping[str, Any] | None = None) -> None:
        if snapshot is not None and not isinstance(snapshot, Mapping):
            raise SnapshotError("Snapshot must be a mapping of sections")
        data = dict(snapshot or {})
        unexpected = set(data) - _SECTIONS
        if unexpected:
            raise SnapshotError(
                f"Unknown snapshot sections: {', '.join(sorted(unexpected))}"
            )
        self._properties = {str(k): str(v) for k, v in _section_mapping(data, "properties").items()}
        self._files = {
            str(k): dict(_entry_mapping("files", k, v))
            for k, v in _section_mapping(data, "files").items()
        }
        self._commands = {str(k): str(v) for k, v in _section_mapping(data, "commands").items()}
        self._packages = frozenset(str(p) for p in _section_list(data, "packages"))
        self._entities = {
            str(k): frozenset(str(e) for e in _entry_list("entities", k, v))
            for k, v in _section_mapping(data, "entities").items()
        }
        network = data.get("network")
        self._network = None if network is None else _section_mapping(data, "network")
        self._keystore = dict(_section_mapping(data, "keystore"))
        self._denied = frozenset(str(d) for d in _section_list(data, "denied"))
        self._aliases: set[str] = set()
        self._created: list[str] = []

    @classmethod
    def from_file(cls, path: Path | str) -> SnapshotHost:
        """Load a snapshot from a YAML file.

        Raises:
            SnapshotError: If the file cannot be read or parsed.
        """
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise SnapshotError(f"Cannot read snapshot {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise SnapshotError(f"Invalid YAML in snapshot {path}: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise SnapshotError(f"Snapshot {path} must contain a mapping at the top level")
        logger.debug("Loaded snapshot %s", path)
        return cls(data)

    # -- Introspection for tests --

    @property
    def aliases(self) -> frozenset[str]:
        """Key aliases currently present in the simulated key store."""
        return frozenset(self._aliases)

    @property
    def created_aliases(self) -> tuple[str, ...]:
        """Every alias ever created, in creation order."""
        return tuple(self._created)

    def _is_denied(self, kind: str, key: str = "") -> bool:
        return (f"{kind}:{key}" if key else kind) in self._denied

    # -- HostEvidence --

    async def file_facts(self, path: str) -> EvidenceResult[FileFacts]:
        if self._is_denied("file", path):
            return unknown(PERMISSION_DENIED, source="snapshot")
        entry = self._files.get(path)
        if entry is None:
            return known(FileFacts.missing(), source="snapshot")
        text = entry.get("text")
        return known(
            FileFacts(
                exists=bool(entry.get("exists", True)),
                readable=bool(entry.get("readable", True)),
                writable=bool(entry.get("writable", False)),
                is_dir=bool(entry.get("is_dir", False)),
                size_bytes=int(entry.get("size_bytes", len(text) if text else 0)),
            ),
            source="snapshot",
        )

    async def file_text(self, path: str, limit: int = 65536) -> EvidenceResult[str]:
        if self._is_denied("file", path):
            return unknown(PERMISSION_DENIED, source="snapshot")
        entry = self._files.get(path)
        if entry is None or not entry.get("exists", True):
            return unknown("path not found", source="snapshot")
        if not entry.get("readable", True):
            return unknown(PERMISSION_DENIED, source="snapshot")
        text = entry.get("text")
        if text is None:
            return unknown("content not captured", source="snapshot")
        return known(str(text)[:limit], source="snapshot")

    async def property(self, key: str) -> EvidenceResult[str]:
        if self._is_denied("property", key):
            return unknown(PERMISSION_DENIED, source="snapshot")
        if key not in self._properties:
            return unknown("property not set", source="snapshot")
        return known(self._properties[key], source="snapshot")

    async def command(self, argv: Sequence[str], timeout_ms: int) -> EvidenceResult[str]:
        line = " ".join(argv)
        if self._is_denied("command", line):
            return unknown(PERMISSION_DENIED, source="snapshot")
        output = self._commands.get(line)
        if output is None:
            return unknown("command not found", source="snapshot")
        if not output.strip():
            return unknown("no output", source="snapshot")
        return known(output, source="snapshot")

    async def package_installed(self, identifier: str) -> EvidenceResult[bool]:
        if self._is_denied("package", identifier) or self._is_denied("packages"):
            return unknown(PERMISSION_DENIED, source="snapshot")
        return known(identifier in self._packages, source="snapshot")

    async def create_hardware_key(self, alias: str, spec: KeySpec) -> HardwareKeyFacts:
        ks = self._keystore
        if self._is_denied("keystore"):
            raise KeystoreError(f"Key store access denied for '{alias}'")
        if not ks.get("available", bool(ks)):
            raise KeystoreError("Hardware-backed key store unavailable")
        if spec.strongbox and not ks.get("strongbox", False):
            raise KeystoreError("StrongBox unavailable: no dedicated secure element")
        if spec.user_authentication and not ks.get("biometric", False):
            raise KeystoreError("User authentication unavailable: no enrolled strong biometric")

        self._aliases.add(alias)
        self._created.append(alias)
        delay = float(ks.get("create_delay", 0.0))
        if delay > 0:
            await asyncio.sleep(delay)
        if ks.get("fail_with"):
            raise KeystoreError(str(ks["fail_with"]))

        chain = int(ks.get("attestation_chain_length", 0)) if spec.attestation_challenge else 0
        return HardwareKeyFacts(
            created=True,
            inside_secure_hardware=bool(ks.get("secure_hardware", False)),
            strongbox_backed=spec.strongbox,
            attestation_chain_length=chain,
            self_test_passed=bool(ks.get("self_test", True)),
            self_test_ms=float(ks.get("self_test_ms", 0.0)),
        )

    async def delete_hardware_key(self, alias: str) -> None:
        self._aliases.discard(alias)

    async def network(self) -> EvidenceResult[NetworkFacts]:
        if self._is_denied("network"):
            return unknown(PERMISSION_DENIED, source="snapshot")
        if self._network is None:
            return unknown("network state not captured", source="snapshot")
        raw = dict(self._network)
        return known(
            NetworkFacts(
                connection_type=str(raw.get("connection_type", "none")),
                vpn_active=bool(raw.get("vpn_active", False)),
                proxy_configured=bool(raw.get("proxy_configured", False)),
                dns_servers=tuple(str(s) for s in raw.get("dns_servers") or ()),
                tls_protocols=tuple(str(p) for p in raw.get("tls_protocols") or ()),
                wifi_security=raw.get("wifi_security"),
                interfaces=tuple(str(i) for i in raw.get("interfaces") or ()),
            ),
            source="snapshot",
        )

    async def enumerate_entities(self, base_path: str) -> EvidenceResult[frozenset[str]]:
        if self._is_denied("entities", base_path):
            return unknown(PERMISSION_DENIED, source="snapshot")
        if base_path not in self._entities:
            return unknown("path not found", source="snapshot")
        return known(self._entities[base_path], source="snapshot")
