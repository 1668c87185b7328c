"""Helpers shared by the category probe sets.

Covers SDK-level resolution, security-patch date arithmetic, and the
conversion of sub-findings into ``ProbeOutcome.details`` pairs.
"""

from __future__ import annotations

import calendar
from collections.abc import Mapping
from datetime import date
from typing import Any

from trustprobe.core.evidence import EvidenceChain, EvidenceResult, HostEvidence, known, unknown
from trustprobe.core.probes.models import Details

# Android release (major version) -> API level, for inference when
# ro.build.version.sdk is unavailable.
SDK_BY_RELEASE: dict[int, int] = {
    5: 21, 6: 23, 7: 24, 8: 26, 9: 28, 10: 29, 11: 30, 12: 31, 13: 33, 14: 34, 15: 35,
}

SDK_LOLLIPOP = 21
SDK_MARSHMALLOW = 23
SDK_NOUGAT = 24
SDK_OREO = 26
SDK_R = 30


def sdk_chain(host: HostEvidence) -> EvidenceChain:
    """API level: the SDK property first, then inference from the release string."""

    async def from_release() -> EvidenceResult[int]:
        release = await host.property("ro.build.version.release")
        if not release.known:
            return unknown(release.reason)
        head = str(release.value).strip().split(".")[0]
        if not head.isdigit():
            return unknown(f"unparseable release {release.value!r}")
        major = int(head)
        if major in SDK_BY_RELEASE:
            return known(SDK_BY_RELEASE[major])
        if major > max(SDK_BY_RELEASE):
            return known(max(SDK_BY_RELEASE.values()))
        return unknown(f"release {release.value!r} predates supported versions")

    return EvidenceChain(
        "SDK level",
        [
            ("ro.build.version.sdk", lambda: host.int_property("ro.build.version.sdk")),
            ("ro.build.version.release", from_release),
        ],
    )


async def sdk_level(host: HostEvidence) -> EvidenceResult[int]:
    return await sdk_chain(host).resolve()


async def prop(host: HostEvidence, key: str) -> str:
    """Property value, or the empty string when unknown."""
    return (await host.property(key)).value_or("")


def parse_patch_date(text: str) -> date | None:
    """Parse ``YYYY-MM-DD`` (or ``YYYY-MM``) security patch strings."""
    parts = text.strip().split("-")
    try:
        year, month = int(parts[0]), int(parts[1])
        day = int(parts[2]) if len(parts) > 2 else 1
        return date(year, month, day)
    except (IndexError, ValueError):
        return None


def months_before(ref: date, months: int) -> date:
    """The date ``months`` calendar months before ``ref`` (day clamped)."""
    index = ref.year * 12 + (ref.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(ref.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def as_details(items: Mapping[str, Any]) -> Details:
    """Render sub-findings as ordered ``(key, value)`` string pairs."""
    return tuple((key, _render(value)) for key, value in items.items())


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (set, frozenset)):
        return ", ".join(sorted(str(v) for v in value)) or "-"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value) or "-"
    return str(value)
