"""
Command execution facility used by discovery and upgrade execution.
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from typing import Sequence

from .errors import CommandError


@dataclass(frozen=True)
class CommandResult:
    """
    Outcome of a finished command.

    Attributes:
        exit_code: Process exit code
        output: stdout followed by stderr
    """
    exit_code: int
    output: str


class CommandRunner:
    """
    Runs external commands synchronously and resolves tools on PATH.

    Subclass or replace in tests to feed canned output into the pipeline.
    """

    def is_available(self, tool: str) -> bool:
        """Check if a tool resolves on PATH."""
        return shutil.which(tool) is not None

    def run(self, command: Sequence[str], timeout: int | None = None) -> CommandResult:
        """
        Run a command and wait for it to finish.

        Args:
            command: argv to execute
            timeout: Timeout in seconds (None waits indefinitely)

        Returns:
            CommandResult with exit code and combined output

        Raises:
            CommandError: If the command cannot be started or times out
        """
        argv = list(command)

        # Resolve .exe/.cmd shims on Windows; CreateProcess does not search PATHEXT
        executable = shutil.which(argv[0]) if argv else None
        if executable:
            argv[0] = executable

        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandError(
                f"Command timed out after {timeout}s: {' '.join(command)}",
                tuple(command),
            ) from e
        except OSError as e:
            raise CommandError(
                f"Could not start {command[0] if command else '<empty>'}: {e}",
                tuple(command),
            ) from e

        output = result.stdout or ""
        if result.stderr:
            output = f"{output}\n{result.stderr}" if output else result.stderr

        return CommandResult(exit_code=result.returncode, output=output)
