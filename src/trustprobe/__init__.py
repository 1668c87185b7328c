"""trustprobe: Heuristic host trust assessment with explainable scoring."""

from __future__ import annotations

__version__ = "0.1.0"
__author__ = "trustprobe contributors"
__license__ = "MIT"
