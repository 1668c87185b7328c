"""Evidence acquisition: tri-state results, fallback chains, host sources.

Submodules:
    models   -- EvidenceResult, FileFacts, KeySpec, HardwareKeyFacts, NetworkFacts
    chain    -- EvidenceChain (ordered named acquisition strategies)
    sources  -- HostEvidence abstract interface
    local    -- LocalHost (reads the running machine)
    snapshot -- SnapshotHost (replays a captured host description)
"""

from trustprobe.core.evidence.models import (
    PERMISSION_DENIED,
    EvidenceResult,
    FileFacts,
    HardwareKeyFacts,
    KeyAlgorithm,
    KeySpec,
    NetworkFacts,
    known,
    unknown,
)
from trustprobe.core.evidence.chain import EvidenceChain
from trustprobe.core.evidence.sources import HostEvidence
from trustprobe.core.evidence.local import LocalHost
from trustprobe.core.evidence.snapshot import SnapshotHost

__all__ = [
    "EvidenceChain",
    "EvidenceResult",
    "FileFacts",
    "HardwareKeyFacts",
    "HostEvidence",
    "KeyAlgorithm",
    "KeySpec",
    "LocalHost",
    "NetworkFacts",
    "PERMISSION_DENIED",
    "SnapshotHost",
    "known",
    "unknown",
]
