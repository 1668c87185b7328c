"""Abstract interface over raw host evidence.

``HostEvidence`` is the narrow boundary between the assessment engine and
the platform. Every query returns an ``EvidenceResult`` and never raises,
with one exception: hardware key creation raises ``KeystoreError`` because
its caller must run cleanup on every exit path.

Concrete implementations:
    LocalHost    -- reads the machine the process runs on.
    SnapshotHost -- replays a captured host description (YAML or mapping).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from trustprobe.core.evidence.models import (
    EvidenceResult,
    FileFacts,
    HardwareKeyFacts,
    KeySpec,
    NetworkFacts,
    known,
    unknown,
)


class HostEvidence(ABC):
    """Evidence queries a probe may issue against a host.

    All methods are coroutines so that implementations backed by file I/O,
    subprocesses or remote agents suspend rather than block the event loop.
    """

    @abstractmethod
    async def file_facts(self, path: str) -> EvidenceResult[FileFacts]:
        """Existence and access bits for ``path``.

        A missing path is a *known* answer (``exists=False``); a path whose
        metadata cannot be read is unknown.
        """

    @abstractmethod
    async def file_text(self, path: str, limit: int = 65536) -> EvidenceResult[str]:
        """Up to ``limit`` characters of a text file's content."""

    @abstractmethod
    async def property(self, key: str) -> EvidenceResult[str]:
        """An OS or build property value (e.g. ``ro.build.tags``).

        Unset properties are unknown rather than empty strings.
        """

    @abstractmethod
    async def command(self, argv: Sequence[str], timeout_ms: int) -> EvidenceResult[str]:
        """Standard output of a subprocess.

        Unknown on timeout, permission denial, missing binary, non-zero
        exit status, or empty output.
        """

    @abstractmethod
    async def package_installed(self, identifier: str) -> EvidenceResult[bool]:
        """Whether an application with ``identifier`` is installed."""

    @abstractmethod
    async def create_hardware_key(self, alias: str, spec: KeySpec) -> HardwareKeyFacts:
        """Create a hardware-backed key under ``alias``.

        The caller owns the alias and must call :meth:`delete_hardware_key`
        in a ``finally`` block.

        Raises:
            KeystoreError: If the key store rejects or cannot perform the request.
        """

    @abstractmethod
    async def delete_hardware_key(self, alias: str) -> None:
        """Delete ``alias`` from the key store. Missing aliases are ignored."""

    @abstractmethod
    async def network(self) -> EvidenceResult[NetworkFacts]:
        """Current connectivity, proxy, resolver and TLS state."""

    @abstractmethod
    async def enumerate_entities(self, base_path: str) -> EvidenceResult[frozenset[str]]:
        """Names of the entries directly under ``base_path``."""

    async def int_property(self, key: str) -> EvidenceResult[int]:
        """A property parsed as an integer; unknown when unset or malformed."""
        result = await self.property(key)
        if not result.known:
            return unknown(result.reason, source=key)
        try:
            return known(int(str(result.value).strip()), source=key)
        except ValueError:
            return unknown(f"property {key} is not an integer: {result.value!r}", source=key)
