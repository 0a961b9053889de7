"""
snapshots.py - Lock-file snapshots and snapshot diffing.

Nix tools rewrite their lock/sources files in place without printing a
usable diff, so updates are found by reading the file before and after the
tool runs and comparing the two mappings.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from dep_updater.models import Ecosystem, PackageUpdate

logger = logging.getLogger(__name__)

Snapshot = dict[str, str]


# ═══════════════════════════════════════════════════════════════════════════════
# Snapshot Loading
# ═══════════════════════════════════════════════════════════════════════════════


def load_json_snapshot(
    path: Path,
    extract: Callable[[Any], Snapshot],
    log: logging.Logger | None = None,
) -> Snapshot:
    """Read a JSON document and turn it into a name -> version mapping.

    A missing file is the normal state before an ecosystem is adopted and
    yields an empty mapping. Any other failure is logged and also yields an
    empty mapping.

    Args:
        path: JSON file to read
        extract: Converts the parsed document into a snapshot
        log: Logger for read/parse warnings

    Returns:
        Snapshot mapping, empty on failure
    """
    log = log or logger
    try:
        with open(path) as f:
            data = json.load(f)
        return extract(data)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError, TypeError, AttributeError) as e:
        log.warning("Failed to parse %s: %s", path, e)
        return {}


def _devenv_lock_revisions(data: Any) -> Snapshot:
    nodes = data.get("nodes") or {}
    revisions: Snapshot = {}
    for name, node in nodes.items():
        locked = node.get("locked") if isinstance(node, dict) else None
        rev = locked.get("rev") if isinstance(locked, dict) else None
        if rev:
            revisions[name] = short_rev(rev)
    return revisions


def _nvfetcher_versions(data: Any) -> Snapshot:
    versions: Snapshot = {}
    for name, source in data.items():
        version = source.get("version") if isinstance(source, dict) else None
        if version:
            versions[name] = str(version)
    return versions


def parse_devenv_lock(path: Path, log: logging.Logger | None = None) -> Snapshot:
    """Map each devenv.lock node to its short locked revision."""
    return load_json_snapshot(path, _devenv_lock_revisions, log)


def parse_nvfetcher_sources(path: Path, log: logging.Logger | None = None) -> Snapshot:
    """Map each nvfetcher source in generated.json to its version."""
    return load_json_snapshot(path, _nvfetcher_versions, log)


# ═══════════════════════════════════════════════════════════════════════════════
# Diffing
# ═══════════════════════════════════════════════════════════════════════════════


def diff_snapshots(
    before: Snapshot,
    after: Snapshot,
    ecosystem: Ecosystem,
    prefix: str = "",
) -> list[PackageUpdate]:
    """Compare two snapshots and report changed entries.

    Entries that only exist on one side are membership changes, not
    updates, and are ignored. Revisions can't be ordered, so every update
    is classified as "unknown".

    Args:
        before: Snapshot taken before the update tool ran
        after: Snapshot taken after
        ecosystem: Ecosystem tag for the emitted updates
        prefix: Prepended to each name (e.g. "nixpkgs-")

    Returns:
        Updates in the iteration order of `after`
    """
    updates: list[PackageUpdate] = []

    for name, after_version in after.items():
        before_version = before.get(name)
        if before_version and before_version != after_version:
            updates.append(
                PackageUpdate(
                    name=f"{prefix}{name}",
                    from_version=before_version,
                    to_version=after_version,
                    update_type="unknown",
                    ecosystem=ecosystem,
                )
            )

    return updates


def short_rev(rev: str) -> str:
    """Shorten a git revision to 7 characters."""
    return rev[:7] if rev else ""
