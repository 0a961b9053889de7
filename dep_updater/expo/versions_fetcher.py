"""
versions_fetcher.py - Expo recommended package versions for an SDK.

The expo repository tags each SDK as sdk-<major>. bundledNativeModules.json
lists the native module versions bundled with it, and the expo package's
peerDependencies give the matching React and React Native versions.
"""

from __future__ import annotations

import logging

from dep_updater.errors import ExpoFetchError
from dep_updater.http import fetch_json
from dep_updater.models import ExpoPackageVersions
from dep_updater.versions import strip_range_prefix

logger = logging.getLogger(__name__)

RAW_BASE_URL = "https://raw.githubusercontent.com/expo/expo/sdk-{major}/packages/expo"
BUNDLED_MODULES_URL = RAW_BASE_URL + "/bundledNativeModules.json"
PACKAGE_JSON_URL = RAW_BASE_URL + "/package.json"

# Used when the SDK's package.json doesn't declare peer versions
DEFAULT_REACT_VERSION = "19.0.0"
DEFAULT_REACT_NATIVE_VERSION = "0.76.0"

# Packages where a mismatch with the SDK breaks builds
CRITICAL_PACKAGES = [
    "react",
    "react-native",
    "expo",
    "@types/react",
    "@types/react-native",
    "expo-modules-core",
    "expo-updates",
    "expo-splash-screen",
    "expo-status-bar",
]


def fetch_expo_versions(sdk_version: str) -> ExpoPackageVersions:
    """Fetch Expo's recommended versions for an SDK.

    A partial answer is worse than none, so any network failure aborts the
    whole fetch. Only the peer-dependency document may be missing.

    Args:
        sdk_version: Target SDK version (e.g. "52.0.0")

    Returns:
        ExpoPackageVersions with react, react-native, expo and every
        bundled module

    Raises:
        ExpoFetchError: Either document could not be fetched
    """
    major = sdk_version.split(".")[0]

    try:
        bundled = fetch_json(BUNDLED_MODULES_URL.format(major=major))
        package_json = fetch_json(PACKAGE_JSON_URL.format(major=major), allow_missing=True)
    except Exception as e:
        raise ExpoFetchError(f"Failed to fetch Expo versions for SDK {sdk_version}: {e}") from e

    if not isinstance(bundled, dict):
        raise ExpoFetchError(
            f"Failed to fetch Expo versions for SDK {sdk_version}: "
            "bundledNativeModules.json is not an object"
        )

    react = DEFAULT_REACT_VERSION
    react_native = DEFAULT_REACT_NATIVE_VERSION
    peers = package_json.get("peerDependencies") if isinstance(package_json, dict) else None
    if isinstance(peers, dict):
        react = str(peers.get("react") or react)
        react_native = str(peers.get("react-native") or react_native)
    else:
        logger.debug("No peer versions for SDK %s, using default React versions", major)

    packages = {
        "react": strip_range_prefix(react),
        "react-native": strip_range_prefix(react_native),
        "expo": f"~{sdk_version}",
    }
    packages.update({str(k): str(v) for k, v in bundled.items()})

    return ExpoPackageVersions(sdk_version=sdk_version, packages=packages)


def get_critical_packages() -> list[str]:
    """Packages that should be pinned to the SDK's versions."""
    return list(CRITICAL_PACKAGES)


def filter_critical_versions(expo_versions: ExpoPackageVersions) -> dict[str, str]:
    """Keep only critical packages, in allow-list order."""
    return {
        name: expo_versions.packages[name]
        for name in CRITICAL_PACKAGES
        if expo_versions.packages.get(name)
    }
