"""
Shared test fixtures.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Sequence

import pytest

from host_update.errors import CommandError
from host_update.runner import CommandResult, CommandRunner


FIXTURES_DIR = Path(__file__).parent / "fixtures"


class FakeRunner(CommandRunner):
    """
    CommandRunner replaying canned results.

    Attributes:
        available: Tools that resolve on PATH
        responses: Command tuple → CommandResult, or an exception to raise
        calls: Commands run, in order
    """

    def __init__(self, available: Sequence[str] = (), responses: dict | None = None):
        self.available = set(available)
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, ...]] = []

    def is_available(self, tool: str) -> bool:
        return tool in self.available

    def run(self, command: Sequence[str], timeout: int | None = None) -> CommandResult:
        command = tuple(command)
        self.calls.append(command)
        response = self.responses.get(command)
        if response is None:
            raise CommandError(f"Could not start {command[0]}: not stubbed", command)
        if isinstance(response, Exception):
            raise response
        return response


def read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def logger():
    """Isolated logger per test, propagating so caplog sees records."""
    log = logging.getLogger(f"host_update.test.{uuid.uuid4().hex}")
    log.setLevel(logging.DEBUG)
    log.propagate = True
    return log


@pytest.fixture
def make_runner():
    """Factory for FakeRunner instances."""
    return FakeRunner


@pytest.fixture
def fixture_text():
    """Reader for files under tests/fixtures."""
    return read_fixture
