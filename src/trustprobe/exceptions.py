"""trustprobe exception hierarchy.

All public exceptions inherit from TrustProbeError, giving callers a single
base class to catch when they want to handle any trustprobe-specific failure
without swallowing unrelated errors.
"""


class TrustProbeError(Exception):
    """Base exception for all trustprobe errors."""


class ConfigurationError(TrustProbeError):
    """Raised when a probe set, scoring policy, or settings file is invalid.

    Covers empty probe sets, duplicate probe names, non-positive weights,
    inverted thresholds, and malformed configuration values. Always raised
    eagerly at construction time, never deferred to scoring time.
    """


class UnknownCategoryError(TrustProbeError):
    """Raised when an assessment is requested for an unregistered category."""

    def __init__(self, category: str, known: list[str] | None = None) -> None:
        self.category = category
        self.known = sorted(known or [])
        hint = f" (known: {', '.join(self.known)})" if self.known else ""
        super().__init__(f"Unknown assessment category '{category}'{hint}")


class EvidenceError(TrustProbeError):
    """Raised when raw evidence cannot be acquired.

    Evidence sources normally report unavailability as an ``Unknown``
    result. This exception is reserved for the stateful operations
    (hardware key creation) whose contract is to raise on failure.
    """


class KeystoreError(EvidenceError):
    """Raised when a hardware-backed key cannot be created or used.

    Covers provider exceptions, missing keystore support, and
    attestation failures reported by the key store.
    """


class SnapshotError(TrustProbeError):
    """Raised when a host snapshot file cannot be loaded.

    Covers unreadable files, YAML syntax errors, and snapshots whose
    top-level structure is not a mapping.
    """


class ScoringError(TrustProbeError):
    """Raised when outcomes do not match the probe set being scored.

    Covers missing outcomes, duplicate outcomes, and outcomes for
    probes that are not part of the set.
    """
