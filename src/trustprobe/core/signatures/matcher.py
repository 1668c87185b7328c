"""Set-intersection matching of host entities against a denylist.

Matching is binary: a single denylisted entity present on the host is a
zero-tolerance finding. There is no partial credit and no weighting inside
the matcher; the owning probe is critical and carries a veto so a match
cannot be averaged away by unrelated passing probes.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from trustprobe.core.signatures.catalog import SignatureEntry


@dataclass(frozen=True)
class MatchResult:
    """Outcome of one matching pass.

    Attributes:
        any_match: At least one denylisted entity is present.
        matched: Matching entries in denylist order.
    """

    any_match: bool
    matched: tuple[SignatureEntry, ...] = ()

    @property
    def identifiers(self) -> list[str]:
        return [e.identifier for e in self.matched]


class SignatureMatcher:
    """Matches enumerated host entities against a static denylist.

    Args:
        entries: The denylist. Order is preserved in match results.
    """

    def __init__(self, entries: Sequence[SignatureEntry]) -> None:
        self._entries = tuple(entries)

    @property
    def entries(self) -> tuple[SignatureEntry, ...]:
        return self._entries

    def match(self, present: Iterable[str]) -> MatchResult:
        """Return the denylisted entries found in ``present``."""
        return match(self._entries, present)


def match(entries: Sequence[SignatureEntry], present: Iterable[str]) -> MatchResult:
    """Pure set intersection of ``entries`` with ``present``.

    Args:
        entries: Denylist entries.
        present: Entity identifiers found on the host.

    Returns:
        ``MatchResult`` with matches in ``entries`` order.
    """
    found = frozenset(present)
    matched = tuple(e for e in entries if e.identifier in found)
    return MatchResult(any_match=bool(matched), matched=matched)
