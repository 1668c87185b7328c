"""Ordered fallback chains for acquiring one fact.

An ``EvidenceChain`` replaces nested try/except cascades with an explicit,
inspectable list of named acquisition strategies. Strategies are attempted
in declared order (highest privilege first, inference from public metadata
last) and the first *known* answer wins. A strategy that raises is recorded
as an unknown attempt; the chain itself never raises.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import replace
from typing import Any

from trustprobe.core.evidence.models import EvidenceResult, unknown
from trustprobe.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

Strategy = Callable[[], Awaitable[EvidenceResult[Any]]]


class EvidenceChain:
    """A named fact and the strategies that may acquire it.

    Args:
        fact: Human-readable name of the fact (used in unknown reasons).
        strategies: ``(name, strategy)`` pairs, highest priority first.
            Each strategy is a zero-argument coroutine function returning
            an ``EvidenceResult``.

    Raises:
        ConfigurationError: If no strategies are given or names repeat.
    """

    def __init__(self, fact: str, strategies: Sequence[tuple[str, Strategy]]) -> None:
        if not strategies:
            raise ConfigurationError(f"Evidence chain '{fact}' has no strategies")
        names = [name for name, _ in strategies]
        if len(set(names)) != len(names):
            raise ConfigurationError(
                f"Evidence chain '{fact}' has duplicate strategy names: {names}"
            )
        self._fact = fact
        self._strategies = tuple(strategies)

    @property
    def fact(self) -> str:
        return self._fact

    @property
    def strategy_names(self) -> tuple[str, ...]:
        """Strategy names in the order they are attempted."""
        return tuple(name for name, _ in self._strategies)

    async def resolve(self) -> EvidenceResult[Any]:
        """Attempt each strategy in order until one yields a known answer.

        Returns:
            The first known result, tagged with the winning strategy name
            and the trail of attempted strategies. When every strategy is
            exhausted, an unknown result whose reason lists each attempt.
        """
        trail: list[str] = []
        reasons: list[str] = []
        for name, strategy in self._strategies:
            trail.append(name)
            try:
                result = await strategy()
            except Exception as exc:
                logger.debug(
                    "Strategy %s for %s raised: %s", name, self._fact, exc, exc_info=True
                )
                reasons.append(f"{name}: {type(exc).__name__}: {exc}")
                continue
            if result.known:
                return replace(result, source=name, trail=tuple(trail))
            logger.debug("Strategy %s for %s unknown: %s", name, self._fact, result.reason)
            reasons.append(f"{name}: {result.reason}")

        return replace(
            unknown(f"{self._fact} unavailable ({'; '.join(reasons)})"),
            source=self._fact,
            trail=tuple(trail),
        )
