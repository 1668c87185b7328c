"""Deterministic scoring of probe outcomes.

Submodules:
    models -- Classification, AssessmentResult
    engine -- Scorer (validation, weighted score, classification, advice)
"""

from trustprobe.core.scoring.models import AssessmentResult, Classification
from trustprobe.core.scoring.engine import Scorer, exact, round_half_up

__all__ = [
    "AssessmentResult",
    "Classification",
    "Scorer",
    "exact",
    "round_half_up",
]
