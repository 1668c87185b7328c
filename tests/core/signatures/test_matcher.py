"""Tests for the signature catalog and matcher.

Verifies:
    - Matching is a pure set intersection reported in denylist order.
    - Non-matching and empty inputs report no match.
    - Catalog entries are unique and carry category labels.
    - Category labelling rules.
"""

from __future__ import annotations

import pytest

from trustprobe.core.signatures import (
    CATALOG_VERSION,
    DENYLIST,
    ROOT_MANAGER_PACKAGES,
    SignatureEntry,
    SignatureMatcher,
    categorize,
    entries_in,
    match,
)

BAD = SignatureEntry("com.example.bad", "test")
WORSE = SignatureEntry("com.example.worse", "test")


class TestMatch:
    """Set-intersection semantics."""

    def test_single_match(self) -> None:
        result = match([BAD], {"com.example.bad", "com.example.ok"})
        assert result.any_match is True
        assert result.matched == (BAD,)
        assert result.identifiers == ["com.example.bad"]

    def test_no_match(self) -> None:
        result = match([BAD], {"com.example.ok"})
        assert result.any_match is False
        assert result.matched == ()

    def test_empty_host(self) -> None:
        assert match([BAD, WORSE], []).any_match is False

    def test_matches_in_denylist_order(self) -> None:
        """Order follows the denylist, not the enumeration."""
        result = match([BAD, WORSE], ["com.example.worse", "com.example.bad"])
        assert result.identifiers == ["com.example.bad", "com.example.worse"]

    def test_exact_identifiers_only(self) -> None:
        """Prefixes and substrings of denylisted identifiers do not match."""
        assert not match([BAD], {"com.example.bad.helper", "com.example"}).any_match

    def test_matcher_wraps_entries(self) -> None:
        matcher = SignatureMatcher([BAD])
        assert matcher.entries == (BAD,)
        assert matcher.match({"com.example.bad"}).any_match


class TestCatalog:
    """The embedded denylist."""

    def test_version(self) -> None:
        assert CATALOG_VERSION

    def test_identifiers_unique(self) -> None:
        identifiers = [e.identifier for e in DENYLIST]
        assert len(identifiers) == len(set(identifiers))

    def test_well_known_tools_present(self) -> None:
        identifiers = {e.identifier for e in DENYLIST}
        assert {"com.topjohnwu.magisk", "org.lsposed.manager", "com.termux"} <= identifiers

    def test_entries_in_category(self) -> None:
        roots = entries_in("root manager")
        assert roots
        assert all(e.category == "root manager" for e in roots)
        assert entries_in("no such label") == ()

    def test_root_manager_packages(self) -> None:
        assert "com.topjohnwu.magisk" in ROOT_MANAGER_PACKAGES
        assert len(set(ROOT_MANAGER_PACKAGES)) == len(ROOT_MANAGER_PACKAGES)


class TestCategorize:
    """Identifier labelling rules."""

    @pytest.mark.parametrize(
        ("identifier", "label"),
        [
            ("com.topjohnwu.magisk", "root manager"),
            ("com.sukisu.ultra", "root manager"),
            ("com.yellowes.su", "root manager"),
            ("org.lsposed.manager", "hook framework"),
            ("eu.faircode.xlua", "hook framework"),
            ("com.bug.hookvip", "cracking tool"),
            ("com.termux", "system tool"),
            ("moe.shizuku.privileged.api", "system tool"),
            ("com.lerist.fakelocation", "privacy bypass"),
            ("com.suqi8.oshin", "modification tool"),
            ("com.omarea.vtools", "modification tool"),
        ],
    )
    def test_labels(self, identifier: str, label: str) -> None:
        assert categorize(identifier) == label
