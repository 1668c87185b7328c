"""Deterministic reduction of probe outcomes to an assessment result.

Score model:
    score_percent = round_half_up(100 * sum(w_i for passed i) / sum(w_i))

Classification (thresholds from the probe set's ``ScoringPolicy``):
    Failed   if a veto outcome failed, or the set has critical probes and
             none of them passed, or the exact ratio is below fail_threshold.
    Passed   if every critical outcome passed and the exact ratio is at
             least pass_threshold.
    Warning  otherwise.

Weights are converted to exact rationals from their decimal representation,
so ``0.3 + 0.4 + 0.2`` is exactly 90% and threshold comparisons are immune to
binary floating-point drift. Comparisons use the unrounded ratio: 89.5%
displays as 90 but is not Passed at a 90% threshold.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from fractions import Fraction

from trustprobe.core.probes.base import ProbeSet
from trustprobe.core.probes.models import ProbeOutcome
from trustprobe.core.scoring.models import AssessmentResult, Classification
from trustprobe.exceptions import ConfigurationError, ScoringError

logger = logging.getLogger(__name__)


def exact(value: float) -> Fraction:
    """Exact rational for a decimal literal (``0.1`` -> ``1/10``)."""
    return Fraction(repr(float(value)))


def round_half_up(value: Fraction) -> int:
    return math.floor(value + Fraction(1, 2))


class Scorer:
    """Scores outcomes for one probe set.

    The probe set is validated eagerly so configuration faults surface at
    construction rather than at scoring time.

    Args:
        probe_set: The probe set whose outcomes this scorer reduces.

    Raises:
        ConfigurationError: If the set is empty, has duplicate probe names,
            a non-positive weight, a zero total weight, or thresholds
            outside ``0 <= fail <= pass <= 100``.
    """

    def __init__(self, probe_set: ProbeSet) -> None:
        self._validate(probe_set)
        self._set = probe_set
        self._order = {name: i for i, name in enumerate(probe_set.probe_names)}

    @staticmethod
    def _validate(probe_set: ProbeSet) -> None:
        name = probe_set.name
        if not probe_set.probes:
            raise ConfigurationError(f"Probe set '{name}' is empty")
        names = probe_set.probe_names
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(
                f"Probe set '{name}' has duplicate probe names: {', '.join(duplicates)}"
            )
        for probe in probe_set.probes:
            if not probe.name:
                raise ConfigurationError(f"Probe set '{name}' contains an unnamed probe")
            if not isinstance(probe.weight, (int, float)) or not probe.weight > 0:
                raise ConfigurationError(
                    f"Probe '{probe.name}' in set '{name}' has non-positive weight {probe.weight}"
                )
        if sum(exact(p.weight) for p in probe_set.probes) <= 0:
            raise ConfigurationError(f"Probe set '{name}' has zero total weight")
        policy = probe_set.policy
        if not 0 <= policy.fail_threshold <= policy.pass_threshold <= 100:
            raise ConfigurationError(
                f"Probe set '{name}' thresholds must satisfy 0 <= fail <= pass <= 100, "
                f"got fail={policy.fail_threshold} pass={policy.pass_threshold}"
            )

    @property
    def probe_set(self) -> ProbeSet:
        return self._set

    # -- Scoring --

    def score(self, outcomes: Sequence[ProbeOutcome]) -> AssessmentResult:
        """Reduce one complete run to an ``AssessmentResult``.

        Args:
            outcomes: Exactly one outcome per probe in the set, any order.

        Returns:
            The scored result with outcomes in probe-set order.

        Raises:
            ScoringError: If outcomes are missing, duplicated, or foreign.
        """
        names = [o.name for o in outcomes]
        foreign = sorted(set(names) - set(self._order))
        missing = [n for n in self._order if n not in names]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if foreign or missing or duplicates:
            raise ScoringError(
                f"Outcomes do not match probe set '{self._set.name}' "
                f"(missing={missing}, unexpected={foreign}, duplicated={duplicates})"
            )
        return self._reduce(outcomes)

    def score_partial(self, outcomes: Sequence[ProbeOutcome]) -> AssessmentResult:
        """Score the outcomes completed so far, for progress reporting."""
        unknown_names = sorted({o.name for o in outcomes} - set(self._order))
        if unknown_names:
            raise ScoringError(
                f"Outcomes not in probe set '{self._set.name}': {unknown_names}"
            )
        if not outcomes:
            return AssessmentResult(
                category=self._set.name,
                classification=Classification.WARNING,
                score_percent=0,
                passed_outcomes=(),
                failed_outcomes=(),
                recommendation="Assessment in progress.",
            )
        return self._reduce(outcomes)

    def _reduce(self, outcomes: Sequence[ProbeOutcome]) -> AssessmentResult:
        ordered = sorted(outcomes, key=lambda o: self._order[o.name])
        total = sum(exact(o.weight) for o in ordered)
        achieved = sum((exact(o.weight) for o in ordered if o.passed), Fraction(0))
        percent = 100 * achieved / total

        classification = self.classify(ordered, percent)
        logger.debug(
            "%s: %d/%d outcomes, %.2f%% -> %s",
            self._set.name, len(ordered), len(self._order), float(percent), classification.name,
        )
        passed = tuple(o for o in ordered if o.passed)
        failed = tuple(o for o in ordered if not o.passed)

        return AssessmentResult(
            category=self._set.name,
            classification=classification,
            score_percent=round_half_up(percent),
            passed_outcomes=passed,
            failed_outcomes=failed,
            warnings=self._warnings(ordered),
            recommendation=self._recommendation(classification, failed),
        )

    def classify(self, outcomes: Sequence[ProbeOutcome], percent: Fraction) -> Classification:
        """Apply the category thresholds to outcomes and their exact percentage."""
        policy = self._set.policy
        critical = [o for o in outcomes if o.critical]
        vetoed = any(o.veto and not o.passed for o in outcomes)
        no_critical_passed = bool(critical) and not any(o.passed for o in critical)

        if vetoed or no_critical_passed or percent < exact(policy.fail_threshold):
            return Classification.FAILED
        if all(o.passed for o in critical) and percent >= exact(policy.pass_threshold):
            return Classification.PASSED
        return Classification.WARNING

    # -- Explanations --

    @staticmethod
    def _warnings(outcomes: Sequence[ProbeOutcome]) -> tuple[str, ...]:
        notes: list[str] = []
        for o in outcomes:
            if o.veto and not o.passed:
                notes.append(f"{o.label}: zero-tolerance finding ({o.evidence})")
            elif not o.passed and not o.critical:
                notes.append(f"{o.label}: {o.evidence}")
            if o.error:
                notes.append(f"{o.label}: {o.error}")
        return tuple(notes)

    def _recommendation(
        self, classification: Classification, failed: Sequence[ProbeOutcome]
    ) -> str:
        policy = self._set.policy
        lead = {
            Classification.PASSED: policy.passed_summary,
            Classification.WARNING: policy.warning_summary,
            Classification.FAILED: policy.failed_summary,
        }[classification]
        advice: list[str] = []
        for o in failed:
            text = o.remediation or f"Investigate: {o.label}."
            if text not in advice:
                advice.append(text)
        return "\n".join([lead, *(f"- {a}" for a in advice)])
