"""
expo - Expo SDK version detection and recommended package versions.
"""

from .sdk_checker import check_for_expo_update, get_current_expo_sdk, get_latest_expo_sdk
from .versions_fetcher import fetch_expo_versions, filter_critical_versions, get_critical_packages

__all__ = [
    "check_for_expo_update",
    "fetch_expo_versions",
    "filter_critical_versions",
    "get_critical_packages",
    "get_current_expo_sdk",
    "get_latest_expo_sdk",
]
