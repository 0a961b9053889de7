"""
workspace.py - Monorepo workspace discovery.

Reads the root package.json "workspaces" globs to find workspace packages,
their npm scopes, and which of them depend on Expo.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dep_updater.shared import read_json_file

logger = logging.getLogger(__name__)

_SCOPE_PATTERN = re.compile(r"^(@[^/]+)/")


@dataclass
class ExpoProject:
    """A workspace package that depends on expo."""

    name: str
    package_json_path: str  # relative to the repo root, "./apps/mobile/package.json"


def _workspace_patterns(package_json: Any) -> list[str]:
    workspaces = package_json.get("workspaces") if isinstance(package_json, dict) else None
    if isinstance(workspaces, list):
        return [p for p in workspaces if isinstance(p, str)]
    if isinstance(workspaces, dict) and isinstance(workspaces.get("packages"), list):
        return [p for p in workspaces["packages"] if isinstance(p, str)]
    return []


def find_workspace_manifests(repo_root: Path, patterns: list[str]) -> list[Path]:
    """Expand workspace globs to package.json paths, skipping node_modules."""
    found: list[Path] = []
    for pattern in patterns:
        for path in sorted(repo_root.glob(f"{pattern.rstrip('/')}/package.json")):
            if "node_modules" in path.relative_to(repo_root).parts:
                continue
            if path not in found:
                found.append(path)
    return found


def _has_expo_dependency(package_json: dict[str, Any]) -> bool:
    for group in ("dependencies", "devDependencies"):
        deps = package_json.get(group)
        if isinstance(deps, dict) and deps.get("expo"):
            return True
    return False


def get_workspace_package_names(repo_root: Path) -> list[str]:
    """Names of all workspace packages declared by the root package.json."""
    try:
        root_manifest = read_json_file(repo_root / "package.json")
    except (OSError, ValueError) as e:
        logger.warning("Failed to detect workspace packages in %s: %s", repo_root, e)
        return []

    names: list[str] = []
    for manifest in find_workspace_manifests(repo_root, _workspace_patterns(root_manifest)):
        try:
            data = read_json_file(manifest)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read workspace package at %s: %s", manifest, e)
            continue
        if isinstance(data, dict) and isinstance(data.get("name"), str):
            names.append(data["name"])
    return names


def extract_scopes(package_names: list[str]) -> list[str]:
    """Unique sorted scopes: ["@co/cms", "@co/api", "@ex/app"] -> ["@co", "@ex"]."""
    scopes = set()
    for name in package_names:
        match = _SCOPE_PATTERN.match(name)
        if match:
            scopes.add(match.group(1))
    return sorted(scopes)


def detect_workspace_scopes(repo_root: Path) -> list[str]:
    """Auto-detect npm scopes used by workspace packages."""
    return extract_scopes(get_workspace_package_names(repo_root))


def detect_expo_projects(repo_root: Path) -> list[ExpoProject]:
    """Find every package in the repo that depends on expo.

    Without workspaces, only the root package.json is considered.
    """
    try:
        root_manifest = read_json_file(repo_root / "package.json")
    except (OSError, ValueError) as e:
        logger.warning("Failed to detect Expo projects in %s: %s", repo_root, e)
        return []
    if not isinstance(root_manifest, dict):
        return []

    patterns = _workspace_patterns(root_manifest)
    if not patterns:
        if _has_expo_dependency(root_manifest):
            return [ExpoProject(name=root_manifest.get("name") or "root", package_json_path="./package.json")]
        return []

    projects: list[ExpoProject] = []
    for manifest in find_workspace_manifests(repo_root, patterns):
        try:
            data = read_json_file(manifest)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read package at %s: %s", manifest, e)
            continue
        if not isinstance(data, dict) or not _has_expo_dependency(data):
            continue

        relative = manifest.relative_to(repo_root)
        projects.append(
            ExpoProject(
                name=data.get("name") or str(relative.parent),
                package_json_path=f"./{relative.as_posix()}",
            )
        )
    return projects
