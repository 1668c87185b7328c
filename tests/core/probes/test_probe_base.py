"""Tests for the probe contract.

Verifies:
    - Probe.run maps a Verdict to a ProbeOutcome carrying the probe's contract.
    - Faults resolve through the declared failure policy and are annotated.
    - Unavailable evidence is resolved and annotated the same way.
    - Timeouts never count as passed.
    - ProbeOutcome rejects non-positive weights.
    - ProbeContext aliases are namespaced and unique.
"""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from trustprobe.config import Settings
from trustprobe.core.evidence import SnapshotHost
from trustprobe.core.probes import (
    FailurePolicy,
    Probe,
    ProbeContext,
    ProbeOutcome,
    ProbeSet,
    Tier,
    Verdict,
)


class FixedProbe(Probe):
    name = "fixed"
    title = "Fixed verdict"
    remediation = "Fix it."

    def __init__(self, verdict: Verdict, **kwargs) -> None:
        super().__init__(**kwargs)
        self._verdict = verdict

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        return self._verdict


class BrokenProbe(Probe):
    name = "broken"

    async def evaluate(self, ctx: ProbeContext) -> Verdict:
        raise RuntimeError("binder transaction failed")


class OpenBrokenProbe(BrokenProbe):
    failure_policy = FailurePolicy.FAIL_OPEN


@pytest.fixture
def ctx() -> ProbeContext:
    return ProbeContext(host=SnapshotHost(), category="unit")


# ===========================================================================
# Outcome construction
# ===========================================================================


class TestRun:
    """Probe.run for evaluations that return normally."""

    def test_verdict_becomes_outcome(self, ctx: ProbeContext) -> None:
        probe = FixedProbe(Verdict(True, "all good", (("k", "v"),)), weight=0.3, tier=Tier.CRITICAL)
        outcome = asyncio.run(probe.run(ctx))
        assert outcome == ProbeOutcome(
            name="fixed",
            passed=True,
            evidence="all good",
            weight=0.3,
            tier=Tier.CRITICAL,
            details=(("k", "v"),),
            title="Fixed verdict",
            remediation="Fix it.",
        )

    def test_constructor_overrides_are_per_instance(self) -> None:
        """Overriding weight or tier on one instance leaves the class untouched."""
        heavy = FixedProbe(Verdict(True, ""), weight=5, tier=Tier.CRITICAL)
        plain = FixedProbe(Verdict(True, ""))
        assert heavy.weight == 5 and heavy.tier is Tier.CRITICAL
        assert plain.weight == 1.0 and plain.tier is Tier.SUPPLEMENTARY

    def test_label_prefers_title(self, ctx: ProbeContext) -> None:
        outcome = asyncio.run(FixedProbe(Verdict(True, "")).run(ctx))
        assert outcome.label == "Fixed verdict"


class TestFailurePolicy:
    """Faults and unavailable evidence."""

    def test_fault_fail_closed(self, ctx: ProbeContext) -> None:
        outcome = asyncio.run(BrokenProbe().run(ctx))
        assert outcome.passed is False
        assert outcome.error == "RuntimeError: binder transaction failed"
        assert "fail-closed" in outcome.evidence

    def test_fault_fail_open(self, ctx: ProbeContext) -> None:
        outcome = asyncio.run(OpenBrokenProbe().run(ctx))
        assert outcome.passed is True
        assert outcome.error == "RuntimeError: binder transaction failed"
        assert "fail-open" in outcome.evidence

    def test_unavailable_fail_closed(self) -> None:
        verdict = BrokenProbe().unavailable("Mount table", "permission denied")
        assert verdict.passed is False
        assert verdict.error == "permission denied"
        assert verdict.evidence == (
            "Mount table unavailable (permission denied); assumed violated (fail-closed)"
        )

    def test_unavailable_fail_open(self) -> None:
        verdict = OpenBrokenProbe().unavailable("Policy version", "path not found")
        assert verdict.passed is True
        assert "assumed satisfied (fail-open)" in verdict.evidence

    @pytest.mark.parametrize("probe_cls", [BrokenProbe, OpenBrokenProbe])
    def test_timeout_never_passes(self, probe_cls: type[Probe]) -> None:
        outcome = probe_cls().timed_out(2.5)
        assert outcome.passed is False
        assert outcome.error == "timed out after 2.5s"

    def test_policy_passes_property(self) -> None:
        assert FailurePolicy.FAIL_OPEN.passes is True
        assert FailurePolicy.FAIL_CLOSED.passes is False


class TestOutcomeValidation:
    """ProbeOutcome invariants."""

    @pytest.mark.parametrize("weight", [0, -0.1])
    def test_non_positive_weight_rejected(self, weight: float) -> None:
        with pytest.raises(ValueError, match="must be positive"):
            ProbeOutcome(name="x", passed=True, evidence="", weight=weight, tier=Tier.CRITICAL)

    def test_critical_property(self) -> None:
        o = ProbeOutcome(name="x", passed=True, evidence="", weight=1, tier=Tier.CRITICAL)
        assert o.critical


# ===========================================================================
# Context and sets
# ===========================================================================


class TestContext:
    """ProbeContext helpers."""

    def test_unique_alias_format(self, ctx: ProbeContext) -> None:
        alias = ctx.unique_alias("hardware_keystore")
        prefix, category, probe, token = alias.split(".")
        assert (prefix, category, probe) == ("trustprobe", "unit", "hardware_keystore")
        assert len(token) == 16

    def test_aliases_are_unique(self, ctx: ProbeContext) -> None:
        aliases = {ctx.unique_alias("p") for _ in range(100)}
        assert len(aliases) == 100

    def test_today_uses_reference_date(self) -> None:
        ctx = ProbeContext(host=SnapshotHost(), settings=Settings(reference_date=date(2024, 1, 2)))
        assert ctx.today == date(2024, 1, 2)


class TestProbeSet:
    """ProbeSet container behaviour."""

    def test_iteration_and_names(self) -> None:
        a = FixedProbe(Verdict(True, ""))
        b = BrokenProbe()
        ps = ProbeSet(name="unit", title="Unit", probes=(a, b))
        assert list(ps) == [a, b]
        assert len(ps) == 2
        assert ps.probe_names == ["fixed", "broken"]
        assert ps.progressive is False
