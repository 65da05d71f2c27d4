"""
Tests for per-manager upgrade discovery (host_update/discovery.py).
"""

import logging

from host_update.discovery import (
    discover_all,
    discover_upgrades,
    structured_output_unsupported,
)
from host_update.errors import CommandError
from host_update.models import Manager
from host_update.package_managers import CHOCOLATEY, WINGET
from host_update.runner import CommandResult


class TestStructuredOutputUnsupported:
    """Tests for the unsupported-option heuristic."""

    def test_unknown_option_text(self, fixture_text):
        """Test winget's argument-not-recognized message."""
        assert structured_output_unsupported(fixture_text("winget_unsupported_option.txt"))

    def test_other_phrasings(self):
        """Test alternative rejection phrasings."""
        assert structured_output_unsupported("Error: unrecognized option '--output'")
        assert structured_output_unsupported("UNKNOWN OPTION: --output")

    def test_json_payload_not_rejected(self):
        """Test JSON output mentioning the phrase is still accepted."""
        text = '[{"Id": "X", "Name": "unknown option handler"}]'
        assert not structured_output_unsupported(text)

    def test_plain_output(self):
        """Test ordinary output is not a rejection."""
        assert not structured_output_unsupported("No applicable upgrade found.")
        assert not structured_output_unsupported("")


class TestDiscoverUpgrades:
    """Tests for querying a single package manager."""

    def test_structured_query_used(self, make_runner, fixture_text, logger):
        """Test JSON report is used when available."""
        runner = make_runner(
            available=["winget"],
            responses={WINGET.structured_query: CommandResult(0, fixture_text("winget_upgrade.json"))},
        )

        candidates = discover_upgrades(WINGET, runner, logger)

        assert [c.id for c in candidates] == ["Git.Git", "Microsoft.VisualStudioCode"]
        assert all(c.manager is Manager.PRIMARY for c in candidates)
        assert runner.calls == [WINGET.structured_query]

    def test_fallback_on_unsupported_option(self, make_runner, fixture_text, logger):
        """Test text report is used when the JSON flag is rejected."""
        runner = make_runner(
            available=["winget"],
            responses={
                WINGET.structured_query: CommandResult(1, fixture_text("winget_unsupported_option.txt")),
                WINGET.tabular_query: CommandResult(0, fixture_text("winget_upgrade_table.txt")),
            },
        )

        candidates = discover_upgrades(WINGET, runner, logger)

        assert len(candidates) == 5
        assert runner.calls == [WINGET.structured_query, WINGET.tabular_query]

    def test_fallback_on_unusable_json(self, make_runner, fixture_text, logger):
        """Test text report is used when the JSON payload has no records."""
        runner = make_runner(
            available=["winget"],
            responses={
                WINGET.structured_query: CommandResult(0, "[]"),
                WINGET.tabular_query: CommandResult(0, fixture_text("winget_upgrade_table.txt")),
            },
        )

        candidates = discover_upgrades(WINGET, runner, logger)

        assert [c.id for c in candidates][:2] == ["Microsoft.VisualStudioCode", "Git.Git"]

    def test_fallback_on_structured_spawn_failure(self, make_runner, fixture_text, logger):
        """Test text report is used when the structured query cannot start."""
        runner = make_runner(
            available=["winget"],
            responses={
                WINGET.structured_query: CommandError("Command timed out after 300s"),
                WINGET.tabular_query: CommandResult(0, fixture_text("winget_upgrade_table.txt")),
            },
        )

        assert len(discover_upgrades(WINGET, runner, logger)) == 5

    def test_unavailable_manager(self, make_runner, logger, caplog):
        """Test missing tool is skipped without running anything."""
        runner = make_runner(available=[])

        with caplog.at_level(logging.INFO, logger=logger.name):
            candidates = discover_upgrades(WINGET, runner, logger)

        assert candidates == []
        assert runner.calls == []
        assert "not found, skipping" in caplog.text

    def test_unparseable_text_report(self, make_runner, logger, caplog):
        """Test both reports unusable yields empty list and a warning."""
        runner = make_runner(
            available=["winget"],
            responses={
                WINGET.structured_query: CommandResult(1, "garbage"),
                WINGET.tabular_query: CommandResult(1, "Failed when searching source: winget"),
            },
        )

        with caplog.at_level(logging.WARNING, logger=logger.name):
            candidates = discover_upgrades(WINGET, runner, logger)

        assert candidates == []
        assert "could not parse upgrade report" in caplog.text
        assert "Failed when searching source" in caplog.text

    def test_no_upgrades_message_not_a_warning(self, make_runner, logger, caplog):
        """Test 'no applicable upgrade' report is an empty result, not a failure."""
        runner = make_runner(
            available=["winget"],
            responses={
                WINGET.structured_query: CommandResult(0, "No applicable upgrade found."),
                WINGET.tabular_query: CommandResult(0, "No applicable upgrade found."),
            },
        )

        with caplog.at_level(logging.DEBUG, logger=logger.name):
            candidates = discover_upgrades(WINGET, runner, logger)

        assert candidates == []
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    def test_text_query_failure(self, make_runner, logger):
        """Test text query that cannot start yields empty list."""
        runner = make_runner(
            available=["winget"],
            responses={WINGET.structured_query: CommandResult(0, "")},
        )

        assert discover_upgrades(WINGET, runner, logger) == []

    def test_skipped_rows_logged(self, make_runner, logger, caplog):
        """Test unparseable table rows are reported as warnings."""
        table = "Name Id Version Available\n-------------------------\nOrphan\nGit Git.Git 1.0 2.0\n"
        runner = make_runner(
            available=["winget"],
            responses={
                WINGET.structured_query: CommandResult(0, ""),
                WINGET.tabular_query: CommandResult(0, table),
            },
        )

        with caplog.at_level(logging.WARNING, logger=logger.name):
            candidates = discover_upgrades(WINGET, runner, logger)

        assert [c.id for c in candidates] == ["Git.Git"]
        assert "skipped unparseable row: 'Orphan'" in caplog.text

    def test_chocolatey_delimited_report(self, make_runner, fixture_text, logger):
        """Test Chocolatey goes straight to its pipe-delimited report."""
        runner = make_runner(
            available=["choco"],
            responses={CHOCOLATEY.tabular_query: CommandResult(0, fixture_text("choco_outdated.txt"))},
        )

        candidates = discover_upgrades(CHOCOLATEY, runner, logger)

        assert [c.id for c in candidates] == ["git", "7zip"]
        assert all(c.manager is Manager.SECONDARY for c in candidates)
        assert runner.calls == [CHOCOLATEY.tabular_query]


class TestDiscoverAll:
    """Tests for querying every configured manager."""

    def test_sources_are_independent(self, make_runner, fixture_text, logger):
        """Test a failing primary does not affect the secondary."""
        runner = make_runner(
            available=["winget", "choco"],
            responses={
                WINGET.structured_query: CommandError("Could not start winget: access denied"),
                WINGET.tabular_query: CommandError("Could not start winget: access denied"),
                CHOCOLATEY.tabular_query: CommandResult(0, fixture_text("choco_outdated.txt")),
            },
        )

        discovered = discover_all([WINGET, CHOCOLATEY], runner, logger)

        assert list(discovered) == ["winget", "choco"]
        assert discovered["winget"] == []
        assert [c.id for c in discovered["choco"]] == ["git", "7zip"]

    def test_secondary_unavailable(self, make_runner, fixture_text, logger):
        """Test missing secondary leaves primary results intact."""
        runner = make_runner(
            available=["winget"],
            responses={WINGET.structured_query: CommandResult(0, fixture_text("winget_upgrade.json"))},
        )

        discovered = discover_all([WINGET, CHOCOLATEY], runner, logger)

        assert len(discovered["winget"]) == 2
        assert discovered["choco"] == []

    def test_unexpected_exception_contained(self, make_runner, fixture_text, logger, caplog):
        """Test an unexpected error in one manager is logged and contained."""
        runner = make_runner(
            available=["winget", "choco"],
            responses={
                WINGET.structured_query: RuntimeError("boom"),
                CHOCOLATEY.tabular_query: CommandResult(0, fixture_text("choco_outdated.txt")),
            },
        )

        with caplog.at_level(logging.ERROR, logger=logger.name):
            discovered = discover_all([WINGET, CHOCOLATEY], runner, logger)

        assert discovered["winget"] == []
        assert len(discovered["choco"]) == 2
        assert "discovery aborted: boom" in caplog.text
