"""
dep_updater - Dependency update detection across package ecosystems.

Runs the ecosystem's own update tool, works out what changed, and reports
it as PackageUpdate entries inside an UpdateResult:

- updaters.bun: npm packages through Bun
- updaters.devenv: devenv flake inputs
- updaters.nixpkgs: nvfetcher-managed overlay sources
- expo + syncpack: Expo SDK versions pinned in .syncpackrc.json
"""

import logging

from .errors import ConfigError, DepUpdaterError, ExpoFetchError
from .models import ExpoPackageVersions, ExpoSDKVersion, PackageUpdate, UpdateResult
from .syncpack import reconcile, update_syncpack_with_expo
from .updaters import update_bun_dependencies, update_devenv, update_nixpkgs_overlay

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "DepUpdaterError",
    "ExpoFetchError",
    "ExpoPackageVersions",
    "ExpoSDKVersion",
    "PackageUpdate",
    "UpdateResult",
    "reconcile",
    "update_bun_dependencies",
    "update_devenv",
    "update_nixpkgs_overlay",
    "update_syncpack_with_expo",
]
