"""
versions.py - Version string comparison and update classification.

Only literal comparison is done here; no range solving.
"""

from __future__ import annotations

import re

from dep_updater.models import UpdateType

_RANGE_PREFIX = re.compile(r"^[\^~]")
_LEADING_NUMBER = re.compile(r"^(\d+)(.*)$")
_LEADING_INT = re.compile(r"^\s*(\d+)")

# Placeholders used by the dix parser for added/removed packages
NEW_MARKER = "(new)"
REMOVED_MARKER = "(removed)"


def _to_int(part: str) -> int | None:
    part = part.strip()
    if not part.isdecimal():
        return None
    return int(part)


def _leading_int(part: str) -> int | None:
    match = _LEADING_INT.match(part)
    return int(match.group(1)) if match else None


def strip_range_prefix(version: str) -> str:
    """Drop a single leading ^ or ~ from a version specifier."""
    return _RANGE_PREFIX.sub("", version.strip(), count=1)


def compare_versions(a: str, b: str) -> int:
    """Compare dotted versions numerically.

    Missing and unparsable components count as 0, so "1.9" < "1.10.0"
    and "52.0.0-beta" orders like "52.0.0".

    Returns:
        -1 if a < b, 0 if equal, 1 if a > b
    """
    parts_a = a.split(".")
    parts_b = b.split(".")

    for i in range(max(len(parts_a), len(parts_b))):
        num_a = (_to_int(parts_a[i]) if i < len(parts_a) else None) or 0
        num_b = (_to_int(parts_b[i]) if i < len(parts_b) else None) or 0

        if num_a < num_b:
            return -1
        if num_a > num_b:
            return 1

    return 0


def classify_update_type(from_version: str, to_version: str) -> UpdateType:
    """Classify a version change as major, minor or patch.

    Both versions need at least three integer components. Anything else,
    including a change that only touches a prerelease tag, is "unknown".
    """
    from_parts = from_version.split(".")
    to_parts = to_version.split(".")

    if len(from_parts) < 3 or len(to_parts) < 3:
        return "unknown"

    from_nums = [_leading_int(p) for p in from_parts[:3]]
    to_nums = [_leading_int(p) for p in to_parts[:3]]
    if any(n is None for n in from_nums) or any(n is None for n in to_nums):
        return "unknown"

    for label, old, new in zip(("major", "minor", "patch"), from_nums, to_nums):
        if old != new:
            return label  # type: ignore[return-value]

    return "unknown"


def is_version_downgrade(old_version: str, new_version: str) -> bool:
    """Return True if new_version sorts before old_version.

    Handles Nix-style versions such as "3.13.9", "5.3p3" or "40".
    """
    if old_version == new_version:
        return False
    if old_version == NEW_MARKER or new_version == REMOVED_MARKER:
        return False

    old_parts = re.split(r"[.-]", old_version)
    new_parts = re.split(r"[.-]", new_version)

    for i in range(max(len(old_parts), len(new_parts))):
        old_part = old_parts[i] if i < len(old_parts) and old_parts[i] else "0"
        new_part = new_parts[i] if i < len(new_parts) and new_parts[i] else "0"

        if old_part.isdecimal() and new_part.isdecimal():
            if int(new_part) != int(old_part):
                return int(new_part) < int(old_part)
            continue

        old_match = _LEADING_NUMBER.match(old_part)
        new_match = _LEADING_NUMBER.match(new_part)
        if old_match and new_match:
            old_num, old_suffix = int(old_match.group(1)), old_match.group(2)
            new_num, new_suffix = int(new_match.group(1)), new_match.group(2)
            if new_num != old_num:
                return new_num < old_num
            if new_suffix != old_suffix:
                return new_suffix < old_suffix
        elif new_part != old_part:
            return new_part < old_part

    return False
