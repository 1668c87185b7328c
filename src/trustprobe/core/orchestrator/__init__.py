"""Assessment orchestration and progressive state streaming.

Submodules:
    models -- Phase, AssessmentState
    engine -- Orchestrator (assess, run, run_many)
"""

from trustprobe.core.orchestrator.models import AssessmentState, Phase
from trustprobe.core.orchestrator.engine import Orchestrator

__all__ = [
    "AssessmentState",
    "Orchestrator",
    "Phase",
]
