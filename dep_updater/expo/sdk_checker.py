"""
sdk_checker.py - Current and latest Expo SDK detection.
"""

from __future__ import annotations

import logging
from pathlib import Path

from dep_updater.errors import ExpoFetchError
from dep_updater.http import fetch_json
from dep_updater.models import ExpoSDKVersion
from dep_updater.shared import read_json_file
from dep_updater.versions import compare_versions, strip_range_prefix

logger = logging.getLogger(__name__)

NPM_LATEST_URL = "https://registry.npmjs.org/expo/latest"
CHANGELOG_URL = "https://expo.dev/changelog/{major}"


def get_current_expo_sdk(package_json_path: Path) -> str | None:
    """Get the Expo SDK version pinned in a package.json.

    Looks in dependencies, then devDependencies.

    Returns:
        Bare version (e.g. "52.0.0"), or None if expo isn't a dependency or
        the manifest can't be read
    """
    try:
        package_json = read_json_file(package_json_path)
    except (OSError, ValueError) as e:
        logger.error("Failed to read package.json at %s: %s", package_json_path, e)
        return None

    if not isinstance(package_json, dict):
        logger.error("Invalid package.json format at %s", package_json_path)
        return None

    for group in ("dependencies", "devDependencies"):
        deps = package_json.get(group)
        if isinstance(deps, dict) and isinstance(deps.get("expo"), str) and deps["expo"]:
            return strip_range_prefix(deps["expo"])

    return None


def get_latest_expo_sdk() -> ExpoSDKVersion:
    """Fetch the latest Expo SDK version from the npm registry.

    Raises:
        ExpoFetchError: Registry unreachable or response malformed
    """
    try:
        data = fetch_json(NPM_LATEST_URL)
        version = strip_range_prefix(str(data["version"]))
    except Exception as e:
        raise ExpoFetchError(f"Failed to fetch latest Expo SDK: {e}") from e

    return ExpoSDKVersion(
        version=version,
        is_latest=True,
        changelog_url=CHANGELOG_URL.format(major=version.split(".")[0]),
    )


def check_for_expo_update(
    package_json_path: Path,
) -> tuple[bool, str | None, ExpoSDKVersion]:
    """Check whether a newer Expo SDK than the pinned one is published.

    Returns:
        Tuple of (has_update, current, latest). has_update is False when no
        Expo dependency is found.
    """
    current = get_current_expo_sdk(package_json_path)
    latest = get_latest_expo_sdk()

    if not current:
        return False, None, latest

    return compare_versions(current, latest.version) < 0, current, latest
