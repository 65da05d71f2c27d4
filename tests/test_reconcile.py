"""
Tests for reconciliation and exclusion filtering (host_update/reconcile.py).
"""

import logging

from host_update.models import Manager, UpgradeCandidate
from host_update.reconcile import (
    is_excluded,
    normalize_id,
    reconcile,
    reconcile_with_report,
)


def _candidate(package_id, manager=Manager.PRIMARY, name=None):
    return UpgradeCandidate(name=name or package_id, id=package_id, manager=manager)


class TestNormalizeId:
    """Tests for identifier normalization."""

    def test_plain_id_unchanged(self):
        assert normalize_id("Vendor.App") == "Vendor.App"

    def test_bracket_annotation(self):
        """Test a trailing source annotation is removed."""
        assert normalize_id("Vendor.App [winget]") == "Vendor.App"

    def test_bracket_without_space(self):
        assert normalize_id("Vendor.App[msstore]") == "Vendor.App"

    def test_trailing_words(self):
        assert normalize_id("  Vendor.App extra words ") == "Vendor.App"

    def test_empty(self):
        assert normalize_id("") == ""


class TestIsExcluded:
    """Tests for exclusion matching."""

    def test_annotated_id_matches_normalized_entry(self):
        """Test 'Vendor.App [winget]' excluded by 'vendor.app'."""
        assert is_excluded(_candidate("Vendor.App [winget]"), frozenset({"vendor.app"}))

    def test_raw_id_matches(self):
        """Test an exclusion spelled with the annotation also matches."""
        assert is_excluded(_candidate("Vendor.App [winget]"), frozenset({"vendor.app [winget]"}))

    def test_case_insensitive(self):
        """Test matching ignores case."""
        assert is_excluded(_candidate("GIT.GIT"), frozenset({"git.git"}))

    def test_prefix_does_not_match(self):
        """Test exclusion needs the whole identifier."""
        assert not is_excluded(_candidate("Vendor.AppPro"), frozenset({"vendor.app"}))

    def test_empty_exclusions(self):
        assert not is_excluded(_candidate("Git.Git"), frozenset())


class TestReconcile:
    """Tests for merging per-manager lists."""

    def test_order_preserved(self):
        """Test primary candidates precede secondary, each in discovery order."""
        discovered = {
            "winget": [_candidate("B.B"), _candidate("A.A")],
            "choco": [_candidate("zlib", Manager.SECONDARY), _candidate("curl", Manager.SECONDARY)],
        }

        assert [c.id for c in reconcile(discovered, frozenset())] == ["B.B", "A.A", "zlib", "curl"]

    def test_accepts_list_of_lists(self):
        """Test plain sequences of lists are accepted."""
        lists = [[_candidate("A.A")], [_candidate("git", Manager.SECONDARY)]]
        assert [c.id for c in reconcile(lists, frozenset())] == ["A.A", "git"]

    def test_cross_manager_duplicates_kept(self):
        """Test a package reported by both managers yields two candidates."""
        discovered = {
            "winget": [_candidate("Git.Git")],
            "choco": [_candidate("Git.Git", Manager.SECONDARY)],
        }

        accepted = reconcile(discovered, frozenset())

        assert len(accepted) == 2
        assert [c.manager for c in accepted] == [Manager.PRIMARY, Manager.SECONDARY]

    def test_exclusion_applies_to_both_managers(self):
        """Test one exclusion entry covers every manager."""
        discovered = {
            "winget": [_candidate("Git.Git"), _candidate("Zoom.Zoom")],
            "choco": [_candidate("git.git", Manager.SECONDARY)],
        }

        assert [c.id for c in reconcile(discovered, frozenset({"git.git"}))] == ["Zoom.Zoom"]

    def test_exclusions_lowercased(self):
        """Test mixed-case exclusion entries still match."""
        accepted = reconcile({"winget": [_candidate("Git.Git")]}, {"Git.Git"})
        assert accepted == []

    def test_all_excluded(self):
        """Test every candidate excluded yields an empty plan."""
        discovered = {"winget": [_candidate("A.A"), _candidate("B.B")]}

        report = reconcile_with_report(discovered, frozenset({"a.a", "b.b"}))

        assert report.accepted == ()
        assert [c.id for c in report.excluded] == ["A.A", "B.B"]

    def test_excluded_candidates_logged(self, logger, caplog):
        """Test each exclusion is logged."""
        discovered = {"winget": [_candidate("Vendor.App [winget]", name="Vendor App")]}

        with caplog.at_level(logging.INFO, logger=logger.name):
            reconcile_with_report(discovered, frozenset({"vendor.app"}), logger)

        assert "Excluded: Vendor App (Vendor.App [winget])" in caplog.text

    def test_report_to_dict(self):
        report = reconcile_with_report(
            {"winget": [_candidate("A.A"), _candidate("B.B")]},
            frozenset({"b.b"}),
        )

        data = report.to_dict()

        assert [c["id"] for c in data["accepted"]] == ["A.A"]
        assert [c["id"] for c in data["excluded"]] == ["B.B"]
        assert data["accepted"][0]["manager"] == "primary"

    def test_empty_input(self):
        assert reconcile({}, frozenset({"a.a"})) == []
