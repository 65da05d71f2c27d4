"""
Output rendering and formatting.
"""

import os
import sys
from typing import Optional, Sequence, TextIO

from .models import UpgradeCandidate, UpgradeResult, UpgradeStatus


# Environment options
USE_EMOJI = os.environ.get("HOST_UPDATE_EMOJI", "1") == "1"
USE_COLOR = os.environ.get("HOST_UPDATE_COLOR", "1") == "1"

# ANSI color codes
GREEN = "\033[32m"
YELLOW = "\033[33m"
RED = "\033[31m"
RESET = "\033[0m"

STATUS_COLORS = {
    UpgradeStatus.SUCCESS: GREEN,
    UpgradeStatus.FAILED: RED,
    UpgradeStatus.ERROR: YELLOW,
}


def status_icon(status: UpgradeStatus) -> str:
    """Get status icon for an upgrade result.

    Args:
        status: Classified upgrade outcome

    Returns:
        Status icon string
    """
    if not USE_EMOJI:
        return {
            UpgradeStatus.SUCCESS: "✓",
            UpgradeStatus.FAILED: "x",
            UpgradeStatus.ERROR: "!",
        }[status]

    return {
        UpgradeStatus.SUCCESS: "✅",
        UpgradeStatus.FAILED: "❌",
        UpgradeStatus.ERROR: "💥",
    }[status]


def colorize(text: str, color: str, stream: Optional[TextIO] = None) -> str:
    """Apply color to text.

    Args:
        text: Text to colorize
        color: ANSI color code
        stream: Stream the text is written to (no color unless it is a TTY)

    Returns:
        Colored text or plain text if colors disabled
    """
    stream = stream or sys.stdout
    if not USE_COLOR or not text or not stream.isatty():
        return text
    return f"{color}{text}{RESET}"


def format_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    """Format rows as a left-aligned table with a dash separator.

    Args:
        headers: Column headers
        rows: Row cells (converted with str())

    Returns:
        Table text, one line per row
    """
    cells = [[str(c) for c in row] for row in rows]
    widths = [len(h) for h in headers]
    for row in cells:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def line(values: Sequence[str]) -> str:
        return "  ".join(v.ljust(widths[i]) for i, v in enumerate(values)).rstrip()

    out = [line(headers), "-" * (sum(widths) + 2 * (len(widths) - 1))]
    out.extend(line(row) for row in cells)
    return "\n".join(out)


def render_candidates(
    candidates: Sequence[UpgradeCandidate],
    stream: Optional[TextIO] = None,
) -> None:
    """Print the upgrade plan.

    Args:
        candidates: Accepted candidates
        stream: Output stream
    """
    rows = [
        (
            c.name,
            c.id,
            c.current_version or "",
            c.available_version or "",
            c.manager.value,
        )
        for c in candidates
    ]
    print(format_table(("Name", "Id", "Version", "Available", "Manager"), rows), file=stream)


def render_results(results: Sequence[UpgradeResult], stream: Optional[TextIO] = None) -> None:
    """Print one line per upgrade result.

    Args:
        results: Upgrade results in execution order
        stream: Output stream
    """
    for result in results:
        icon = status_icon(result.status)
        status = colorize(result.status.value.upper(), STATUS_COLORS[result.status], stream)
        print(f"{icon} {status}  {result.name} ({result.id}) exit={result.exit_code}", file=stream)
