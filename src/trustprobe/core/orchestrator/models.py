"""Orchestrator state models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from trustprobe.core.scoring.models import AssessmentResult


class Phase(Enum):
    """Lifecycle phase of one category run: IDLE -> RUNNING -> TERMINAL."""

    IDLE = "idle"
    RUNNING = "running"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class AssessmentState:
    """One emission of an assessment stream.

    Each state supersedes the previous one; no history is retained.

    Attributes:
        phase: Current lifecycle phase.
        category: Category being assessed.
        partial: Cumulative result so far (RUNNING) or the final result
            (TERMINAL). None before any probe has completed.
    """

    phase: Phase
    category: str
    partial: AssessmentResult | None = None

    @property
    def terminal(self) -> bool:
        return self.phase is Phase.TERMINAL
