"""Built-in assessment categories.

Each module defines the probes of one category and a ``probe_set()``
factory returning its ``ProbeSet`` with category-specific thresholds.
"""

from __future__ import annotations

from trustprobe.categories import (
    bootloader,
    dangerous_apps,
    integrity,
    network,
    selinux,
    tee,
)
from trustprobe.core.probes import ProbeSet

_MODULES = (bootloader, tee, selinux, integrity, network, dangerous_apps)

CATEGORY_NAMES: tuple[str, ...] = tuple(m.CATEGORY for m in _MODULES)


def default_probe_sets() -> dict[str, ProbeSet]:
    """Fresh probe sets for every built-in category, keyed by name."""
    return {m.CATEGORY: m.probe_set() for m in _MODULES}


__all__ = ["CATEGORY_NAMES", "default_probe_sets"]
