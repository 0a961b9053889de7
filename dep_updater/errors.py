"""
errors.py - Exception types raised by dep-updater.

Expected failure modes (missing files, absent tools, unparsable output) are
reported through return values. These exceptions cover the cases where
continuing would mean acting on incomplete data.
"""

from __future__ import annotations


class DepUpdaterError(Exception):
    """Base class for dep-updater errors."""


class ConfigError(DepUpdaterError):
    """Configuration file is present but unusable."""


class ExpoFetchError(DepUpdaterError):
    """Expo SDK metadata could not be fetched from upstream."""
