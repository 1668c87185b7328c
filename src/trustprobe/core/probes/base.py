"""Probe contract, execution context, and probe sets.

A ``Probe`` encapsulates one security fact plus its pass/fail rule. Concrete
probes implement :meth:`Probe.evaluate`; callers always go through
:meth:`Probe.run`, which never raises (except on cancellation) and maps
internal faults to the probe's declared failure policy.

A ``ProbeSet`` is the ordered, named collection of probes for one
assessment category together with its scoring policy.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date

from trustprobe.config import Settings
from trustprobe.core.evidence.sources import HostEvidence
from trustprobe.core.probes.models import (
    Details,
    FailurePolicy,
    ProbeOutcome,
    ScoringPolicy,
    Tier,
    Verdict,
)

logger = logging.getLogger(__name__)

ALIAS_NAMESPACE = "trustprobe"


@dataclass(frozen=True)
class ProbeContext:
    """Everything a probe may consult while evaluating.

    Attributes:
        host: Evidence source for the host under assessment.
        settings: Resolved runtime settings.
        category: Name of the category being assessed.
    """

    host: HostEvidence
    settings: Settings = field(default_factory=Settings)
    category: str = ""

    @property
    def today(self) -> date:
        return self.settings.today()

    @property
    def command_timeout_ms(self) -> int:
        return self.settings.command_timeout_ms

    def unique_alias(self, probe_name: str) -> str:
        """A fresh, namespaced identifier for a stateful resource.

        Format: ``trustprobe.<category>.<probe>.<random hex>``.
        """
        return f"{ALIAS_NAMESPACE}.{self.category or 'adhoc'}.{probe_name}.{uuid.uuid4().hex[:16]}"


class Probe(ABC):
    """Base class for all probes.

    Class attributes declare the probe's scoring contract. Instances may
    override ``weight`` and ``tier`` through the constructor so the same
    probe can be reused with different weights in another category.

    Attributes:
        name: Unique probe name within its set.
        title: Human-readable display title.
        weight: Relative weight in the category score (must be > 0).
        tier: CRITICAL or SUPPLEMENTARY.
        failure_policy: Resolution when evidence is unavailable or the probe faults.
        shared_resource: Name of a mutable resource this probe touches.
            Probes naming the same resource never run concurrently.
        veto: A failure of this probe forces a Failed classification.
        remediation: Advice shown when the probe fails.
    """

    name: str = ""
    title: str = ""
    weight: float = 1.0
    tier: Tier = Tier.SUPPLEMENTARY
    failure_policy: FailurePolicy = FailurePolicy.FAIL_CLOSED
    shared_resource: str | None = None
    veto: bool = False
    remediation: str = ""

    def __init__(self, *, weight: float | None = None, tier: Tier | None = None) -> None:
        if weight is not None:
            self.weight = weight
        if tier is not None:
            self.tier = tier

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, weight={self.weight}, tier={self.tier.value})"

    @abstractmethod
    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        """Acquire evidence and apply the probe's pass/fail rule.

        Implementations may raise; :meth:`run` converts any exception into
        a failure-policy outcome. Stateful implementations must release
        what they create in a ``finally`` block.
        """

    # -- Policy helpers for subclasses --

    def unavailable(self, what: str, reason: str, details: Details = ()) -> Verdict:
        """Resolve missing evidence through the declared failure policy."""
        policy = self.failure_policy
        assumed = "satisfied" if policy.passes else "violated"
        return Verdict(
            passed=policy.passes,
            evidence=f"{what} unavailable ({reason}); assumed {assumed} ({policy.value})",
            details=details,
            error=reason,
        )

    # -- Execution --

    async def run(self, ctx: ProbeContext) -> ProbeOutcome:
        """Evaluate the probe and return its outcome. Never raises except on cancellation."""
        try:
            verdict = await self.evaluate(ctx)
        except Exception as exc:
            logger.warning("Probe %s raised during evaluation", self.name, exc_info=True)
            return self.faulted(exc)
        return self._outcome(verdict.passed, verdict.evidence, verdict.error, verdict.details)

    def faulted(self, exc: BaseException) -> ProbeOutcome:
        """Outcome for a probe whose evaluation raised ``exc``."""
        policy = self.failure_policy
        error = f"{type(exc).__name__}: {exc}"
        return self._outcome(
            policy.passes,
            f"probe fault; assumed {'satisfied' if policy.passes else 'violated'} ({policy.value})",
            error,
        )

    def timed_out(self, budget: float) -> ProbeOutcome:
        """Outcome for a probe cancelled by the category time budget.

        A timeout never counts as passed, whatever the failure policy.
        """
        return self._outcome(
            False,
            "evidence unavailable: probe exceeded the category time budget",
            f"timed out after {budget:g}s",
        )

    def _outcome(
        self,
        passed: bool,
        evidence: str,
        error: str | None = None,
        details: Details = (),
    ) -> ProbeOutcome:
        return ProbeOutcome(
            name=self.name,
            passed=passed,
            evidence=evidence,
            weight=self.weight,
            tier=self.tier,
            error=error,
            details=details,
            veto=self.veto,
            title=self.title,
            remediation=self.remediation,
        )


@dataclass(frozen=True)
class ProbeSet:
    """Ordered, named collection of probes for one category.

    Validation (non-empty, unique names, positive weights) is performed
    by the ``Scorer`` at construction time.

    Attributes:
        name: Category identifier (e.g. ``"bootloader"``).
        title: Display title (e.g. ``"Bootloader"``).
        probes: Probes in declared order.
        policy: Thresholds and recommendation templates for this category.
        progressive: Run probes one at a time, in order, emitting a
            progress state after each.
    """

    name: str
    title: str
    probes: tuple[Probe, ...]
    policy: ScoringPolicy = field(default_factory=ScoringPolicy)
    progressive: bool = False

    def __iter__(self):
        return iter(self.probes)

    def __len__(self) -> int:
        return len(self.probes)

    @property
    def probe_names(self) -> list[str]:
        return [p.name for p in self.probes]
