"""Probe contract and probe sets.

Submodules:
    models -- Tier, FailurePolicy, Verdict, ProbeOutcome, ScoringPolicy
    base   -- Probe, ProbeContext, ProbeSet
"""

from trustprobe.core.probes.models import (
    FailurePolicy,
    ProbeOutcome,
    ScoringPolicy,
    Tier,
    Verdict,
)
from trustprobe.core.probes.base import Probe, ProbeContext, ProbeSet

__all__ = [
    "FailurePolicy",
    "Probe",
    "ProbeContext",
    "ProbeOutcome",
    "ProbeSet",
    "ScoringPolicy",
    "Tier",
    "Verdict",
]
