"""Scoring data models: classifications and assessment results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from trustprobe.core.probes.models import ProbeOutcome


class Classification(Enum):
    """Tri-state verdict for one assessment category."""

    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"


@dataclass(frozen=True)
class AssessmentResult:
    """Scored result of one category run.

    ``passed_outcomes`` and ``failed_outcomes`` partition the outcomes of
    the run exactly, each in probe-set order.

    Attributes:
        category: Category identifier.
        classification: PASSED, WARNING or FAILED.
        score_percent: ``round_half_up(100 * achieved / total)`` in [0, 100].
        passed_outcomes: Outcomes whose property holds.
        failed_outcomes: Outcomes whose property does not hold.
        warnings: Human-readable notes (faults, timeouts, supplementary failures).
        recommendation: Deterministic advice derived from the failures.
    """

    category: str
    classification: Classification
    score_percent: int
    passed_outcomes: tuple[ProbeOutcome, ...]
    failed_outcomes: tuple[ProbeOutcome, ...]
    warnings: tuple[str, ...] = ()
    recommendation: str = ""

    @property
    def outcomes(self) -> tuple[ProbeOutcome, ...]:
        return self.passed_outcomes + self.failed_outcomes

    @property
    def passed(self) -> bool:
        return self.classification is Classification.PASSED

    def to_dict(self) -> dict:
        """Return a JSON-serialisable dictionary."""

        def _outcome(o: ProbeOutcome) -> dict:
            return {
                "name": o.name,
                "title": o.label,
                "passed": o.passed,
                "evidence": o.evidence,
                "weight": o.weight,
                "tier": o.tier.value,
                "veto": o.veto,
                "error": o.error,
                "details": dict(o.details),
            }

        return {
            "category": self.category,
            "classification": self.classification.value,
            "score_percent": self.score_percent,
            "passed": [_outcome(o) for o in self.passed_outcomes],
            "failed": [_outcome(o) for o in self.failed_outcomes],
            "warnings": list(self.warnings),
            "recommendation": self.recommendation,
        }
