"""Evidence data models: tri-state results and the raw host facts.

Defines the values that cross the evidence-source boundary:

- ``EvidenceResult`` -- tri-state ``Known(value)`` / ``Unknown(reason)``.
- ``FileFacts`` -- existence and access bits for one path.
- ``KeySpec`` / ``HardwareKeyFacts`` -- request and answer for a
  hardware-backed key creation.
- ``NetworkFacts`` -- connectivity, resolver, proxy and TLS state.

Evidence sources never coerce an ``Unknown`` into a default value; that
decision belongs to the probe consuming the result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


# ---------------------------------------------------------------------------
# EvidenceResult: tri-state answer for one fact
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EvidenceResult(Generic[T]):
    """The answer an evidence source gives for one fact about the host.

    A result is either *known* (``value`` holds the fact) or *unknown*
    (``reason`` says why the fact could not be acquired). Use the
    :func:`known` and :func:`unknown` constructors rather than building
    instances directly.

    Attributes:
        known: True when ``value`` carries an acquired fact.
        value: The acquired fact. ``None`` when unknown.
        reason: Why the fact is unavailable. Empty when known.
        source: Name of the strategy that produced this result.
        trail: Names of every strategy attempted, in order.
    """

    known: bool
    value: T | None = None
    reason: str = ""
    source: str = ""
    trail: tuple[str, ...] = ()

    def value_or(self, default: T) -> T:
        """Return the known value, or ``default`` when unknown."""
        if self.known:
            return self.value  # type: ignore[return-value]
        return default

    def __str__(self) -> str:
        if self.known:
            return f"Known({self.value!r})"
        return f"Unknown({self.reason!r})"


def known(value: T, source: str = "") -> EvidenceResult[T]:
    """Build a known result carrying ``value``."""
    return EvidenceResult(known=True, value=value, source=source)


def unknown(reason: str, source: str = "") -> EvidenceResult[T]:
    """Build an unknown result explaining why the fact is unavailable."""
    return EvidenceResult(known=False, reason=reason, source=source)


PERMISSION_DENIED = "permission denied"


# ---------------------------------------------------------------------------
# Raw host facts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FileFacts:
    """Existence and access bits for one filesystem path.

    Attributes:
        exists: Whether the path exists.
        readable: Whether the current process can read it.
        writable: Whether the current process can write it.
        is_dir: Whether the path is a directory.
        size_bytes: File size in bytes (0 for directories and missing paths).
    """

    exists: bool
    readable: bool = False
    writable: bool = False
    is_dir: bool = False
    size_bytes: int = 0

    @classmethod
    def missing(cls) -> FileFacts:
        return cls(exists=False)


class KeyAlgorithm(Enum):
    """Key algorithms the hardware keystore probes request."""

    AES = "AES"
    EC = "EC"


@dataclass(frozen=True)
class KeySpec:
    """Parameters for a hardware-backed key creation request.

    Attributes:
        algorithm: Symmetric (AES) or asymmetric (EC) key.
        key_size: Key size in bits.
        strongbox: Request a dedicated secure element instead of the TEE.
        attestation_challenge: When set, request an attestation chain.
        user_authentication: Bind the key to an enrolled strong biometric.
    """

    algorithm: KeyAlgorithm = KeyAlgorithm.AES
    key_size: int = 256
    strongbox: bool = False
    attestation_challenge: bytes | None = None
    user_authentication: bool = False


@dataclass(frozen=True)
class HardwareKeyFacts:
    """What the keystore reported about a freshly created key.

    Attributes:
        created: The key exists in the store.
        inside_secure_hardware: Key material lives in the TEE or a secure element.
        strongbox_backed: Key material lives in a dedicated secure element.
        attestation_chain_length: Certificates returned for the key (0 if none).
        self_test_passed: An encrypt/decrypt or sign/verify round trip succeeded.
        self_test_ms: Wall-clock time of that round trip, in milliseconds.
    """

    created: bool
    inside_secure_hardware: bool = False
    strongbox_backed: bool = False
    attestation_chain_length: int = 0
    self_test_passed: bool = False
    self_test_ms: float = 0.0


@dataclass(frozen=True)
class NetworkFacts:
    """Connectivity and transport-security state of the host.

    Attributes:
        connection_type: ``"wifi"``, ``"cellular"``, ``"ethernet"``, ``"vpn"``
            or ``"none"``.
        vpn_active: A VPN transport carries the active connection.
        proxy_configured: A system or environment proxy is configured.
        dns_servers: Resolver addresses in configured order.
        tls_protocols: TLS protocol versions the host stack supports.
        wifi_security: Security type of the connected WiFi network
            (e.g. ``"WPA2"``, ``"OPEN"``), or None when not on WiFi or unknown.
        interfaces: Names of the network interfaces present.
    """

    connection_type: str = "none"
    vpn_active: bool = False
    proxy_configured: bool = False
    dns_servers: tuple[str, ...] = ()
    tls_protocols: tuple[str, ...] = ()
    wifi_security: str | None = None
    interfaces: tuple[str, ...] = field(default_factory=tuple)

    @property
    def connected(self) -> bool:
        return self.connection_type != "none"
