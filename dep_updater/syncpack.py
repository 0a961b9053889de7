"""
syncpack.py - Syncpack config generation from Expo SDK versions.

Pins the critical Expo packages in .syncpackrc.json so every workspace
stays on the versions bundled with the SDK. Rules written by this module
are replaced on each run; rules added by hand are kept unless the caller
asks for a full regeneration.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

from dep_updater.errors import ConfigError
from dep_updater.expo.versions_fetcher import filter_critical_versions
from dep_updater.models import ExpoPackageVersions
from dep_updater.shared import read_json_file, write_json_file
from dep_updater.workspace import detect_workspace_scopes

logger = logging.getLogger(__name__)

SyncpackConfig = dict[str, Any]
VersionGroup = dict[str, Any]

DEPENDENCY_TYPES = ["prod", "dev", "peer"]

# Label fragments that mark a version group as generated here
MANAGED_LABEL_MARKERS = ("Expo SDK", "workspace protocol")
# Always owned by the SDK, even inside hand-written groups
SDK_OWNED_PACKAGES = frozenset({"react", "react-native", "expo"})


# ═══════════════════════════════════════════════════════════════════════════════
# Reading
# ═══════════════════════════════════════════════════════════════════════════════


def read_syncpack_config(config_path: Path) -> SyncpackConfig:
    """Read an existing syncpack config.

    Returns:
        Parsed config, or {} if the file does not exist

    Raises:
        ConfigError: The file exists but can't be read or isn't a JSON object.
            Rewriting it would lose the hand-written rules it holds.
    """
    try:
        data = read_json_file(config_path)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        raise ConfigError(f"Failed to read syncpack config from {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid syncpack config at {config_path}: expected object, "
            f"got {type(data).__name__}"
        )
    return data


# ═══════════════════════════════════════════════════════════════════════════════
# Rule Generation
# ═══════════════════════════════════════════════════════════════════════════════


def generate_expo_version_groups(expo_versions: ExpoPackageVersions) -> list[VersionGroup]:
    """One pinning version group per critical package."""
    return [
        {
            "label": f"Pin {name} to Expo SDK {expo_versions.sdk_version}",
            "dependencies": [name],
            "dependencyTypes": list(DEPENDENCY_TYPES),
            "packages": ["**"],
            "pinVersion": version,
        }
        for name, version in filter_critical_versions(expo_versions).items()
    ]


def generate_workspace_rules(workspace_scopes: list[str]) -> list[VersionGroup]:
    """Pin internal scoped packages to the workspace protocol."""
    if not workspace_scopes:
        return []

    return [
        {
            "label": f"Use workspace protocol for {', '.join(workspace_scopes)} packages",
            "dependencies": [f"{scope}/*" for scope in workspace_scopes],
            "dependencyTypes": list(DEPENDENCY_TYPES),
            "packages": ["**"],
            "pinVersion": "workspace:*",
        }
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# Merging
# ═══════════════════════════════════════════════════════════════════════════════


def _pinned_dependencies(groups: list[VersionGroup]) -> set[str]:
    pinned: set[str] = set()
    for group in groups:
        deps = group.get("dependencies")
        if isinstance(deps, list):
            pinned.update(d for d in deps if isinstance(d, str))
    return pinned


def is_managed_group(group: Any, owned: set[str] | frozenset[str] = SDK_OWNED_PACKAGES) -> bool:
    """Whether a version group belongs to the generated set.

    Args:
        group: Existing version group
        owned: Dependency names whose rules are replaced by the new groups
    """
    if not isinstance(group, dict):
        return False

    label = group.get("label")
    if isinstance(label, str) and any(marker in label for marker in MANAGED_LABEL_MARKERS):
        return True

    deps = group.get("dependencies")
    if isinstance(deps, list):
        return any(dep in owned for dep in deps)
    return False


def merge_syncpack_config(
    existing: SyncpackConfig,
    new_groups: list[VersionGroup],
    preserve_custom: bool,
) -> SyncpackConfig:
    """Merge generated version groups into an existing config.

    Generated groups come first. With preserve_custom, every existing group
    that isn't managed follows them unchanged; without it the generated
    groups replace all version groups. Other top-level settings are kept.

    A group is managed when its label carries a generated marker or any of
    its dependencies is SDK-owned or pinned by new_groups. Groups are kept or
    dropped whole: a hand-written group listing a pinned package alongside
    unrelated ones is dropped, unrelated entries included. Move those
    entries into their own group to keep them.
    """
    merged = copy.deepcopy(existing)

    if not preserve_custom:
        merged["versionGroups"] = list(new_groups)
        return merged

    owned = SDK_OWNED_PACKAGES | _pinned_dependencies(new_groups)
    existing_groups = existing.get("versionGroups")
    if not isinstance(existing_groups, list):
        existing_groups = []

    custom = [copy.deepcopy(g) for g in existing_groups if not is_managed_group(g, owned)]
    merged["versionGroups"] = [*new_groups, *custom]
    return merged


# ═══════════════════════════════════════════════════════════════════════════════
# Reconciliation
# ═══════════════════════════════════════════════════════════════════════════════


def generate_syncpack_config(
    expo_versions: ExpoPackageVersions,
    config_path: Path,
    preserve_custom_rules: bool = True,
    workspace_scopes: list[str] | None = None,
) -> SyncpackConfig:
    """Build the merged config without writing it."""
    existing = read_syncpack_config(config_path)
    groups = generate_expo_version_groups(expo_versions)
    groups.extend(generate_workspace_rules(workspace_scopes or []))
    return merge_syncpack_config(existing, groups, preserve_custom_rules)


def write_syncpack_config(config: SyncpackConfig, config_path: Path) -> None:
    write_json_file(config_path, config)


def reconcile(
    expo_versions: ExpoPackageVersions,
    config_path: Path,
    preserve_custom_rules: bool = True,
    workspace_scopes: list[str] | None = None,
) -> SyncpackConfig:
    """Regenerate the syncpack config at config_path in place.

    A missing config is treated as empty and created. A config that exists
    but can't be parsed raises ConfigError and is left untouched.

    Returns:
        The config that was written
    """
    config = generate_syncpack_config(
        expo_versions,
        config_path,
        preserve_custom_rules=preserve_custom_rules,
        workspace_scopes=workspace_scopes,
    )
    write_syncpack_config(config, config_path)
    return config


def update_syncpack_with_expo(
    expo_versions: ExpoPackageVersions,
    config_path: Path,
    repo_root: Path,
    preserve_custom_rules: bool = True,
    logger: logging.Logger | None = None,
) -> SyncpackConfig:
    """Reconcile the syncpack config, adding workspace rules for detected scopes."""
    log = logger or logging.getLogger(__name__)

    scopes = detect_workspace_scopes(repo_root)
    if scopes:
        log.info("✓ Detected workspace scopes: %s", ", ".join(scopes))

    config = reconcile(
        expo_versions,
        config_path,
        preserve_custom_rules=preserve_custom_rules,
        workspace_scopes=scopes,
    )
    log.info("✓ Updated syncpack config for Expo SDK %s", expo_versions.sdk_version)
    return config
