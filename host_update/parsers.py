"""
Parsing of package-manager upgrade reports.

Three strategies turn raw query output into UpgradeCandidate records:

- parse_structured: JSON payload, possibly wrapped in banner/warning text
- parse_tabular: column-aligned text table with a dash separator line
- parse_delimited: pipe-separated rows (e.g. ``choco outdated --limit-output``)

Records come back tagged with Manager.PRIMARY; the discovery layer retags
them with the manager that actually produced them.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping, Sequence

from .errors import ParseError, ParseFailure
from .models import UpgradeCandidate


# Prioritized field-resolution rules: first key present with a non-empty
# value wins. Covers winget's {Id, Name}, {PackageId, PackageName} and
# {PackageIdentifier, ...} JSON shapes.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("Id", "PackageId", "PackageIdentifier"),
    "name": ("Name", "PackageName"),
    "current_version": ("Version", "InstalledVersion"),
    "available_version": ("AvailableVersion", "Available"),
    "source": ("Source",),
}

# Keys under which a top-level JSON object may wrap its package list
WRAPPER_KEYS = ("InstalledPackages", "Packages", "Upgrades")

SEPARATOR_PATTERN = re.compile(r"^-{3,}$")

TRAILING_SUMMARY_PATTERNS = (
    re.compile(r"^\d+\s+upgrade(?:s|\(s\))?\s+available\.?$", re.IGNORECASE),
    re.compile(r"^\d+\s+package(?:s|\(s\))?\s+ha(?:s|ve)\s+version numbers", re.IGNORECASE),
    re.compile(r"^\d+\s+package(?:s|\(s\))?\s+ha(?:s|ve)\s+pins?\b", re.IGNORECASE),
    re.compile(r"^the following packages have an upgrade available", re.IGNORECASE),
)

# Source-column values winget/choco print as the last table column
KNOWN_SOURCE_TOKENS = {"winget", "msstore", "chocolatey"}

BRACKETED_NAME_PATTERN = re.compile(r"^(.*?)\s*\[[^\]]*\]$")

# winget prints range versions as "< 1.2"; the comparator belongs to the version
RANGE_VERSION_PATTERN = re.compile(r"(?<!\S)([<>])\s+(?=\d)")


def _resolve(item: Mapping[str, Any], field: str) -> str | None:
    """Resolve a logical field from a JSON item via FIELD_ALIASES."""
    for key in FIELD_ALIASES[field]:
        value = item.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def _iter_items(payload: Any) -> list[Any]:
    """Flatten the decoded JSON payload into a list of package items."""
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []

    # winget export shape: {"Sources": [{"Packages": [...]}, ...]}
    sources = payload.get("Sources")
    if isinstance(sources, list):
        items: list[Any] = []
        for source in sources:
            if isinstance(source, dict) and isinstance(source.get("Packages"), list):
                items.extend(source["Packages"])
        return items

    for key in WRAPPER_KEYS:
        if isinstance(payload.get(key), list):
            return payload[key]

    return [payload]


def candidate_from_mapping(item: Mapping[str, Any]) -> UpgradeCandidate | None:
    """
    Build a candidate from a generic key-value view of one record.

    Args:
        item: Decoded JSON object for a single package

    Returns:
        UpgradeCandidate, or None when id or name cannot be resolved
    """
    package_id = _resolve(item, "id")
    name = _resolve(item, "name")
    if not package_id or not name:
        return None

    return UpgradeCandidate(
        name=name,
        id=package_id,
        current_version=_resolve(item, "current_version"),
        available_version=_resolve(item, "available_version"),
        source=_resolve(item, "source") or "",
    )


def parse_structured(raw_text: str) -> list[UpgradeCandidate]:
    """
    Parse a JSON upgrade report that may be surrounded by non-JSON noise.

    The top-level shape is decided by whichever of ``[`` or ``{`` appears
    first; the payload extends to the last matching closing character.

    Args:
        raw_text: Raw query output

    Returns:
        Candidates in payload order

    Raises:
        ParseError: NO_MATCHING_BRACKET when the payload is never closed,
            NO_USABLE_RECORDS on decode failure or when nothing usable remains
    """
    text = raw_text or ""
    array_start = text.find("[")
    object_start = text.find("{")

    if array_start == -1 and object_start == -1:
        raise ParseError(ParseFailure.NO_USABLE_RECORDS, "no JSON opening character")

    if object_start == -1 or (array_start != -1 and array_start < object_start):
        start, closing = array_start, "]"
    else:
        start, closing = object_start, "}"

    end = text.rfind(closing)
    if end < start:
        raise ParseError(ParseFailure.NO_MATCHING_BRACKET, f"expected '{closing}'")

    try:
        payload = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise ParseError(ParseFailure.NO_USABLE_RECORDS, str(e)) from e

    candidates = []
    for item in _iter_items(payload):
        if not isinstance(item, dict):
            continue
        candidate = candidate_from_mapping(item)
        if candidate is not None:
            candidates.append(candidate)

    if not candidates:
        raise ParseError(ParseFailure.NO_USABLE_RECORDS, "no record with id and name")

    return candidates


def _clean_line(line: str) -> str:
    # winget redraws a progress spinner with bare carriage returns
    return line.rsplit("\r", 1)[-1].strip()


def _as_lines(raw: str | Sequence[str]) -> list[str]:
    if isinstance(raw, str):
        return raw.splitlines()
    return list(raw)


def is_separator(line: str) -> bool:
    """Check whether a line is a table separator (three or more dashes)."""
    return bool(SEPARATOR_PATTERN.match(_clean_line(line)))


def is_trailing_summary(line: str) -> bool:
    """Check whether a line is a summary footer rather than a data row."""
    return any(p.match(line) for p in TRAILING_SUMMARY_PATTERNS)


def parse_table_row(line: str) -> UpgradeCandidate | None:
    """
    Parse one data row of a column-aligned upgrade table.

    Columns are anchored from the right, since names may contain spaces but
    version columns rarely do.

    Args:
        line: A single data row

    Returns:
        UpgradeCandidate, or None when the row has fewer than three tokens
    """
    tokens = RANGE_VERSION_PATTERN.sub(r"\1", line).split()
    if tokens and tokens[-1].lower() in KNOWN_SOURCE_TOKENS:
        tokens = tokens[:-1]

    if len(tokens) >= 4:
        name = " ".join(tokens[:-3])
        match = BRACKETED_NAME_PATTERN.match(name)
        if match and match.group(1):
            name = match.group(1)
        return UpgradeCandidate(
            name=name,
            id=tokens[-3],
            current_version=tokens[-2],
            available_version=tokens[-1],
        )

    if len(tokens) == 3:
        return UpgradeCandidate(
            name=tokens[0],
            id=tokens[1],
            current_version=tokens[2],
        )

    return None


def parse_tabular(
    raw_lines: str | Sequence[str],
    skipped: list[str] | None = None,
) -> list[UpgradeCandidate]:
    """
    Parse a column-aligned upgrade table.

    Everything up to the first dash separator is header. A later separator
    (winget prints a second table for packages requiring explicit targeting)
    turns the line just before it back into a header.

    Args:
        raw_lines: Report text or its lines
        skipped: Optional list that receives unparseable data rows

    Returns:
        Candidates in table order (empty when the table has no rows)

    Raises:
        ParseError: NO_SEPARATOR when no separator line exists
    """
    lines = [_clean_line(line) for line in _as_lines(raw_lines)]

    separator_index = next(
        (i for i, line in enumerate(lines) if is_separator(line)),
        None,
    )
    if separator_index is None:
        raise ParseError(ParseFailure.NO_SEPARATOR)

    data_lines: list[str] = []
    for line in lines[separator_index + 1:]:
        if not line:
            continue
        if is_separator(line):
            if data_lines:
                data_lines.pop()
            continue
        if is_trailing_summary(line):
            continue
        data_lines.append(line)

    candidates = []
    for line in data_lines:
        candidate = parse_table_row(line)
        if candidate is None:
            if skipped is not None:
                skipped.append(line)
            continue
        candidates.append(candidate)

    return candidates


def parse_delimited(raw_lines: str | Sequence[str]) -> list[UpgradeCandidate]:
    """
    Parse pipe-separated ``name|current|available|pinned`` rows.

    The package name doubles as its identifier. Pinned packages are skipped,
    as are lines that do not carry at least three fields.

    Args:
        raw_lines: Report text or its lines

    Returns:
        Candidates in report order
    """
    candidates = []
    for line in _as_lines(raw_lines):
        parts = [part.strip() for part in _clean_line(line).split("|")]
        if len(parts) < 3 or not parts[0]:
            continue
        if len(parts) > 3 and parts[3].lower() == "true":
            continue
        candidates.append(UpgradeCandidate(
            name=parts[0],
            id=parts[0],
            current_version=parts[1] or None,
            available_version=parts[2] or None,
            source="chocolatey",
        ))
    return candidates
