"""Known-dangerous tooling signatures and matching.

Submodules:
    catalog -- SignatureEntry, DENYLIST, ROOT_MANAGER_PACKAGES, CATALOG_VERSION
    matcher -- SignatureMatcher, MatchResult, match
"""

from trustprobe.core.signatures.catalog import (
    CATALOG_VERSION,
    DENYLIST,
    ROOT_MANAGER_PACKAGES,
    SignatureEntry,
    categorize,
    entries_in,
)
from trustprobe.core.signatures.matcher import MatchResult, SignatureMatcher, match

__all__ = [
    "CATALOG_VERSION",
    "DENYLIST",
    "MatchResult",
    "ROOT_MANAGER_PACKAGES",
    "SignatureEntry",
    "SignatureMatcher",
    "categorize",
    "entries_in",
    "match",
]
