"""Assessment orchestration with progressive streaming.

The ``Orchestrator`` is the single entry point callers use. For each
category it resolves the probe set, runs the probes under a wall-clock
budget, scores the outcomes, and streams ``AssessmentState`` values:

    RUNNING                    (once, when the run starts)
    RUNNING(partial)           (after each probe, progressive sets only)
    TERMINAL(result)           (exactly once, always last)

Scheduling rules:
    - Probes of a non-progressive set run concurrently, except that probes
      naming the same ``shared_resource`` are serialised by a per-run lock.
    - Progressive sets run strictly in declared order.
    - Scoring starts only after every probe has completed or timed out.
    - Cancelling the consumer cancels in-flight probes and waits for their
      cleanup before the cancellation propagates.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable, Mapping
from dataclasses import replace
from typing import TYPE_CHECKING

from trustprobe.config import Settings
from trustprobe.core.evidence.sources import HostEvidence
from trustprobe.core.orchestrator.models import AssessmentState, Phase
from trustprobe.core.probes.base import Probe, ProbeContext, ProbeSet
from trustprobe.core.probes.models import ProbeOutcome
from trustprobe.core.scoring.engine import Scorer
from trustprobe.core.scoring.models import AssessmentResult, Classification
from trustprobe.exceptions import TrustProbeError, UnknownCategoryError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class Orchestrator:
    """Runs probe sets against a host and streams their state.

    Args:
        host: Evidence source for the host under assessment.
        probe_sets: Probe sets keyed by category. Defaults to the built-in
            categories.
        settings: Runtime settings. Defaults to ``Settings()``.

    Raises:
        ConfigurationError: If any probe set is invalid (raised by ``Scorer``).
    """

    def __init__(
        self,
        host: HostEvidence,
        probe_sets: Mapping[str, ProbeSet] | Iterable[ProbeSet] | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._host = host
        self._settings = settings or Settings()
        if probe_sets is None:
            from trustprobe.categories import default_probe_sets

            probe_sets = default_probe_sets()
        if not isinstance(probe_sets, Mapping):
            probe_sets = {ps.name: ps for ps in probe_sets}
        self._scorers = {name: Scorer(ps) for name, ps in probe_sets.items()}

    @property
    def categories(self) -> list[str]:
        """Registered category names in registration order."""
        return list(self._scorers)

    @property
    def settings(self) -> Settings:
        return self._settings

    def probe_set(self, category: str) -> ProbeSet:
        return self._scorer(category).probe_set

    def _scorer(self, category: str) -> Scorer:
        try:
            return self._scorers[category]
        except KeyError:
            raise UnknownCategoryError(category, list(self._scorers)) from None

    # -- Public API --

    def assess(self, category: str) -> AsyncIterator[AssessmentState]:
        """Start a lazy, cancellable assessment stream for ``category``.

        The category is validated immediately; probes do not start until
        the stream is first iterated.

        Raises:
            UnknownCategoryError: If ``category`` is not registered.
        """
        return self._stream(category, self._scorer(category))

    async def run(self, category: str) -> AssessmentResult:
        """Run one category to completion and return its terminal result."""
        result: AssessmentResult | None = None
        async for state in self.assess(category):
            if state.terminal:
                result = state.partial
        if result is None:
            raise TrustProbeError(f"Assessment of {category} ended without a result")
        return result

    async def run_many(
        self, categories: Sequence[str] | None = None
    ) -> dict[str, AssessmentResult]:
        """Run several categories concurrently.

        Args:
            categories: Category names (default: every registered category).

        Returns:
            Results keyed by category, in request order.

        Raises:
            UnknownCategoryError: Before anything runs, if any name is unknown.
        """
        names = list(categories) if categories is not None else self.categories
        for name in names:
            self._scorer(name)
        results = await asyncio.gather(*(self.run(name) for name in names))
        return dict(zip(names, results))

    # -- Streaming --

    async def _stream(self, category: str, scorer: Scorer) -> AsyncIterator[AssessmentState]:
        probe_set = scorer.probe_set
        ctx = ProbeContext(host=self._host, settings=self._settings, category=category)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._settings.category_timeout
        logger.info("Assessing %s (%d probes)", category, len(probe_set))

        yield AssessmentState(Phase.RUNNING, category)
        await self._pace()

        try:
            if probe_set.progressive:
                outcomes: list[ProbeOutcome] = []
                for probe in probe_set.probes:
                    outcomes.append(await self._bounded(probe, ctx, deadline, None))
                    yield AssessmentState(Phase.RUNNING, category, scorer.score_partial(outcomes))
                    await self._pace()
            else:
                outcomes = await self._run_all(probe_set, ctx, deadline)
            result = scorer.score(outcomes)
        except Exception as exc:
            logger.error("Assessment of %s aborted", category, exc_info=True)
            result = self._collapse(scorer, exc)

        logger.info(
            "Assessed %s: %s (%d%%)", category, result.classification.value, result.score_percent
        )
        yield AssessmentState(Phase.TERMINAL, category, result)

    async def _run_all(
        self, probe_set: ProbeSet, ctx: ProbeContext, deadline: float
    ) -> list[ProbeOutcome]:
        locks = {
            p.shared_resource: asyncio.Lock() for p in probe_set.probes if p.shared_resource
        }
        if not self._settings.concurrent_probes:
            return [await self._bounded(p, ctx, deadline, locks) for p in probe_set.probes]

        tasks = [
            asyncio.create_task(self._bounded(p, ctx, deadline, locks), name=f"probe:{p.name}")
            for p in probe_set.probes
        ]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _bounded(
        self,
        probe: Probe,
        ctx: ProbeContext,
        deadline: float,
        locks: dict[str, asyncio.Lock] | None,
    ) -> ProbeOutcome:
        """Run ``probe`` within what remains of the category budget."""
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            logger.warning("Probe %s skipped: category budget exhausted", probe.name)
            return probe.timed_out(0)
        try:
            return await asyncio.wait_for(self._guarded(probe, ctx, locks), timeout=remaining)
        except asyncio.TimeoutError:
            logger.warning("Probe %s timed out after %.3fs", probe.name, remaining)
            return probe.timed_out(round(remaining, 2))

    @staticmethod
    async def _guarded(
        probe: Probe, ctx: ProbeContext, locks: dict[str, asyncio.Lock] | None
    ) -> ProbeOutcome:
        lock = (locks or {}).get(probe.shared_resource or "")
        if lock is None:
            return await probe.run(ctx)
        async with lock:
            return await probe.run(ctx)

    async def _pace(self) -> None:
        if self._settings.pacing_delay > 0:
            await asyncio.sleep(self._settings.pacing_delay)

    @staticmethod
    def _collapse(scorer: Scorer, exc: Exception) -> AssessmentResult:
        """Failed result for a run that could not be completed."""
        probe_set = scorer.probe_set
        reason = f"{type(exc).__name__}: {exc}"
        outcomes = tuple(
            replace(probe.faulted(exc), passed=False, evidence="assessment aborted before a verdict")
            for probe in probe_set.probes
        )
        return AssessmentResult(
            category=probe_set.name,
            classification=Classification.FAILED,
            score_percent=0,
            passed_outcomes=(),
            failed_outcomes=outcomes,
            warnings=(f"assessment aborted: {reason}",),
            recommendation=(
                f"{probe_set.title} assessment could not be completed ({reason}). "
                "Treat the host as untrusted until the assessment runs cleanly."
            ),
        )
