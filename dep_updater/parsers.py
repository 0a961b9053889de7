"""
parsers.py - Extract package updates from free-text tool output.

Handles:
- git diff of package.json files (preferred source for npm updates)
- bun update log lines (fallback when no diff is available)
- dix profile diffs (derivation-level changes for devenv)

Parsers never raise on malformed input; lines that don't match are skipped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from dep_updater.models import PackageUpdate
from dep_updater.versions import (
    NEW_MARKER,
    REMOVED_MARKER,
    classify_update_type,
    is_version_downgrade,
    strip_range_prefix,
)

# -    "react": "^19.1.0",
PACKAGE_JSON_LINE = re.compile(r'^\s*([+-])\s*"(@?[^"]+)":\s*"([~^]?[\d.]+(?:-[\w.]+)?)"')

# ↑ @biomejs/biome 2.3.3 → 2.3.5
BUN_UPDATE_LINE = re.compile(
    r"^[↑↓+]\s+(@?[\w./-]+)\s+([\d.]+(?:-[\w.]+)?)\s+→\s+([\d.]+(?:-[\w.]+)?)"
)

DIX_CHANGED = re.compile(r"\[D\.\]\s+(\S+)\s+(.+?)\s*(?:→|->)\s*(.+)$", re.MULTILINE)
DIX_ADDED = re.compile(r"\[A\.\]\s+(\S+)\s+(\S+)")
DIX_REMOVED = re.compile(r"\[R\.\]\s+(\S+)\s+(\S+)")
DIX_MULTIPLIER = re.compile(r"\s*×\d+$")


# ═══════════════════════════════════════════════════════════════════════════════
# npm (Bun)
# ═══════════════════════════════════════════════════════════════════════════════


def parse_package_json_diff(diff: str) -> list[PackageUpdate]:
    """Parse package updates from a unified diff of package.json files.

    Removed and added dependency lines are paired by package name:

        -    "react": "^19.1.0"
        +    "react": "^19.2.0"

    A package that was only removed or only added is not an update. When a
    diff spans several manifests the last occurrence of a name wins.

    Args:
        diff: Output of git diff

    Returns:
        Updates in the order their removal lines appeared
    """
    removals: dict[str, str] = {}
    additions: dict[str, str] = {}

    for line in diff.splitlines():
        match = PACKAGE_JSON_LINE.match(line)
        if not match:
            continue

        sign, name, version = match.groups()
        if sign == "-":
            removals[name] = strip_range_prefix(version)
        else:
            additions[name] = strip_range_prefix(version)

    updates: list[PackageUpdate] = []
    for name, from_version in removals.items():
        to_version = additions.get(name)
        if to_version and to_version != from_version:
            updates.append(
                PackageUpdate(
                    name=name,
                    from_version=from_version,
                    to_version=to_version,
                    update_type=classify_update_type(from_version, to_version),
                    ecosystem="npm",
                )
            )

    return updates


def parse_bun_update_output(output: str) -> list[PackageUpdate]:
    """Parse package updates from bun update's human-readable log.

    Bun prints versions without range prefixes, so they are used as-is.
    """
    updates: list[PackageUpdate] = []

    for line in output.splitlines():
        match = BUN_UPDATE_LINE.match(line.strip())
        if not match:
            continue

        name, from_version, to_version = match.groups()
        if from_version == to_version:
            continue

        updates.append(
            PackageUpdate(
                name=name,
                from_version=from_version,
                to_version=to_version,
                update_type=classify_update_type(from_version, to_version),
                ecosystem="npm",
            )
        )

    return updates


# ═══════════════════════════════════════════════════════════════════════════════
# Nix (dix)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class DixParseResult:
    """Package changes between two devenv profiles."""

    updates: list[PackageUpdate] = field(default_factory=list)
    downgrades: list[PackageUpdate] = field(default_factory=list)


def _first_version(versions: str) -> str:
    """Take the first entry of "3.13.9, 3.13.9-env ×2"."""
    cleaned = DIX_MULTIPLIER.sub("", versions.strip()).strip()
    return cleaned.split(",")[0].strip()


def parse_dix_output(output: str) -> DixParseResult:
    """Parse dix output into updates and downgrades.

    dix output format:

        CHANGED
        [D.] python3  3.13.8 -> 3.13.9
        ADDED
        [A.] nodejs  22.0.0
        REMOVED
        [R.] libffi  40

    Downgrades and removals are informational and kept apart from updates.
    """
    result = DixParseResult()

    for match in DIX_CHANGED.finditer(output):
        name = match.group(1)
        from_version = _first_version(match.group(2))
        to_version = _first_version(match.group(3))
        if not from_version or not to_version or from_version == to_version:
            # Rebuild without a version change
            continue

        pkg = PackageUpdate(
            name=name,
            from_version=from_version,
            to_version=to_version,
            update_type="unknown",
            ecosystem="nix",
        )
        if is_version_downgrade(from_version, to_version):
            result.downgrades.append(pkg)
        else:
            result.updates.append(pkg)

    for match in DIX_ADDED.finditer(output):
        result.updates.append(
            PackageUpdate(
                name=match.group(1),
                from_version=NEW_MARKER,
                to_version=match.group(2),
                update_type="unknown",
                ecosystem="nix",
            )
        )

    for match in DIX_REMOVED.finditer(output):
        result.downgrades.append(
            PackageUpdate(
                name=match.group(1),
                from_version=match.group(2),
                to_version=REMOVED_MARKER,
                update_type="unknown",
                ecosystem="nix",
            )
        )

    return result
