"""Probe data models: tiers, failure policies, outcomes and scoring policy.

Defines the values a probe produces and the per-category policy the scorer
applies to them:

- ``Tier`` -- critical vs supplementary probes.
- ``FailurePolicy`` -- how a probe resolves when its evidence is unavailable.
- ``Verdict`` -- what a probe's domain logic concludes.
- ``ProbeOutcome`` -- the immutable, scored record of one probe run.
- ``ScoringPolicy`` -- category thresholds and recommendation templates.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# ---------------------------------------------------------------------------
# Tier and failure policy
# ---------------------------------------------------------------------------


class Tier(Enum):
    """Importance tier of a probe.

    A failing CRITICAL probe forbids a Passed classification regardless of
    the weighted score. SUPPLEMENTARY probes only move the score.
    """

    CRITICAL = "critical"
    SUPPLEMENTARY = "supplementary"


class FailurePolicy(Enum):
    """How a probe resolves when its evidence is unavailable or it faults.

    - **FAIL_OPEN**: treat the check as satisfied. Used for availability
      checks where an unreadable signal is not itself a risk indicator.
    - **FAIL_CLOSED**: treat the check as violated. Used for
      presence-of-risk checks where silence must not read as safety.
    """

    FAIL_OPEN = "fail-open"
    FAIL_CLOSED = "fail-closed"

    @property
    def passes(self) -> bool:
        return self is FailurePolicy.FAIL_OPEN


# ---------------------------------------------------------------------------
# Verdict and ProbeOutcome
# ---------------------------------------------------------------------------


Details = tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class Verdict:
    """Conclusion of a probe's domain logic, before tier and weight apply.

    Attributes:
        passed: Whether the security property holds.
        evidence: One-line human-readable justification.
        details: Structured sub-findings as ``(key, value)`` pairs.
        error: Annotation when the verdict came from a failure policy.
    """

    passed: bool
    evidence: str
    details: Details = ()
    error: str | None = None


@dataclass(frozen=True)
class ProbeOutcome:
    """Immutable record of one probe run, consumed by the scorer.

    Attributes:
        name: Unique probe name within its probe set.
        passed: Whether the probe's security property holds.
        evidence: One-line human-readable justification.
        weight: Relative weight in the category score. Always > 0.
        tier: CRITICAL or SUPPLEMENTARY.
        error: Set when the outcome came from a fault, a timeout or a
            failure policy rather than from acquired evidence.
        details: Structured sub-findings as ``(key, value)`` pairs.
        veto: A failure of this outcome forces a Failed classification.
        title: Display title of the probe.
        remediation: Advice shown when the outcome fails.
    """

    name: str
    passed: bool
    evidence: str
    weight: float
    tier: Tier
    error: str | None = None
    details: Details = ()
    veto: bool = False
    title: str = ""
    remediation: str = ""

    def __post_init__(self) -> None:
        if not self.weight > 0:
            raise ValueError(
                f"Outcome '{self.name}' weight must be positive, got {self.weight}"
            )

    @property
    def critical(self) -> bool:
        return self.tier is Tier.CRITICAL

    @property
    def label(self) -> str:
        return self.title or self.name


# ---------------------------------------------------------------------------
# ScoringPolicy: per-category thresholds and templates
# ---------------------------------------------------------------------------

DEFAULT_PASS_THRESHOLD: float = 90.0
DEFAULT_FAIL_THRESHOLD: float = 50.0


@dataclass(frozen=True)
class ScoringPolicy:
    """Category-specific thresholds and recommendation templates.

    Thresholds are percentages compared against the exact (unrounded)
    achieved/total weight ratio.

    Attributes:
        pass_threshold: Minimum percentage for Passed (with all critical passed).
        fail_threshold: Percentages strictly below this are Failed.
        passed_summary: Recommendation lead line for Passed.
        warning_summary: Recommendation lead line for Warning.
        failed_summary: Recommendation lead line for Failed.
    """

    pass_threshold: float = DEFAULT_PASS_THRESHOLD
    fail_threshold: float = DEFAULT_FAIL_THRESHOLD
    passed_summary: str = "All checks passed. Keep the system updated to stay secure."
    warning_summary: str = "Some checks did not pass. Review the findings below."
    failed_summary: str = "The host failed essential checks and should not be trusted."
