"""
Tests for value objects (host_update/models.py).
"""

from dataclasses import FrozenInstanceError

import pytest

from host_update.models import (
    Manager,
    UpgradeCandidate,
    UpgradeResult,
    UpgradeStatus,
    is_major_upgrade,
)


class TestIsMajorUpgrade:
    """Tests for major version detection."""

    def test_major_bump(self):
        """Test a major version jump."""
        assert is_major_upgrade("18.19.0", "20.11.1")

    def test_minor_bump(self):
        """Test a minor version jump."""
        assert not is_major_upgrade("2.43.0", "2.44.0")

    def test_non_pep440_versions(self):
        """Test the numeric-prefix fallback for Windows-style versions."""
        assert is_major_upgrade("1.0.0.0-beta_x64", "2.0.0.0-beta_x64")
        assert not is_major_upgrade("< 1.2", "1.3")

    def test_unknown_versions(self):
        """Test missing or unparseable versions are not major."""
        assert not is_major_upgrade(None, "2.0")
        assert not is_major_upgrade("1.0", None)
        assert not is_major_upgrade("Unknown", "2.0")


class TestUpgradeCandidate:
    """Tests for UpgradeCandidate."""

    def test_immutable(self):
        candidate = UpgradeCandidate(name="Git", id="Git.Git")
        with pytest.raises(FrozenInstanceError):
            candidate.id = "Other"

    def test_with_manager(self):
        """Test retagging returns a copy."""
        candidate = UpgradeCandidate(name="Git", id="Git.Git")

        tagged = candidate.with_manager(Manager.SECONDARY)

        assert tagged.manager is Manager.SECONDARY
        assert candidate.manager is Manager.PRIMARY
        assert tagged.id == candidate.id

    def test_version_jump_description(self):
        assert UpgradeCandidate("Git", "Git.Git", "2.43.0", "2.44.0").version_jump_description() == "2.43.0 → 2.44.0"
        assert UpgradeCandidate("Node", "Node", "18.0", "20.0").version_jump_description() == "18.0 → 20.0 (MAJOR)"
        assert UpgradeCandidate("X", "X").version_jump_description() == "? → ?"

    def test_to_dict(self):
        candidate = UpgradeCandidate("Git", "Git.Git", "2.43.0", "2.44.0", "winget", Manager.SECONDARY)

        assert candidate.to_dict() == {
            "name": "Git",
            "id": "Git.Git",
            "current_version": "2.43.0",
            "available_version": "2.44.0",
            "source": "winget",
            "manager": "secondary",
        }


class TestUpgradeResult:
    """Tests for UpgradeResult."""

    def test_to_dict_omits_output(self):
        result = UpgradeResult(
            name="Git",
            id="Git.Git",
            manager=Manager.PRIMARY,
            status=UpgradeStatus.FAILED,
            exit_code=1603,
            output="long installer log",
        )

        data = result.to_dict()

        assert data["status"] == "failed"
        assert data["exit_code"] == 1603
        assert "output" not in data
        assert not result.succeeded
