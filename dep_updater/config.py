"""
config.py - Repository and config file detection for dep-updater.

Settings live in dep-updater.json (or .dep-updater.json), found by walking
up from the working directory. Every section is optional; missing keys
keep their defaults. Keys may be written in snake_case or camelCase.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from dep_updater.errors import ConfigError
from dep_updater.shared import read_json_file, run_command

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = ("dep-updater.json", ".dep-updater.json")
CONFIG_ENV_VAR = "DEP_UPDATER_CONFIG"
REPO_ROOT_ENV_VAR = "DEP_UPDATER_REPO_ROOT"

# Upward search stops after this many directories
MAX_SEARCH_DEPTH = 10

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


# ═══════════════════════════════════════════════════════════════════════════════
# Config Sections
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class ExpoConfig:
    enabled: bool = False
    package_json_path: str = "./package.json"


@dataclass
class SyncpackConfig:
    config_path: str = "./.syncpackrc.json"
    preserve_custom_rules: bool = True
    fix_script_name: str = "syncpack:fix"


@dataclass
class NixConfig:
    enabled: bool = False
    devenv_path: str = "./tooling/direnv"
    nixpkgs_overlay_path: str = "./tooling/direnv/nixpkgs-overlay"
    use_derivation_diff: bool = True


@dataclass
class DepUpdaterConfig:
    """Resolved configuration.

    source is the file the settings came from, or None for defaults.
    """

    expo: ExpoConfig = field(default_factory=ExpoConfig)
    syncpack: SyncpackConfig = field(default_factory=SyncpackConfig)
    nix: NixConfig = field(default_factory=NixConfig)
    source: Path | None = None


_SECTIONS: dict[str, type] = {
    "expo": ExpoConfig,
    "syncpack": SyncpackConfig,
    "nix": NixConfig,
}


# ═══════════════════════════════════════════════════════════════════════════════
# Loading
# ═══════════════════════════════════════════════════════════════════════════════


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _build_section(section_cls: type, name: str, raw: Any) -> Any:
    """Overlay user values onto a section's defaults.

    Unknown keys are ignored. A value whose type doesn't match the default
    is rejected.
    """
    section = section_cls()
    if raw is None:
        return section
    if not isinstance(raw, dict):
        raise ConfigError(f"Config section '{name}' must be an object")

    known = {f.name for f in fields(section_cls)}
    for key, value in raw.items():
        attr = _snake_case(str(key))
        if attr not in known:
            logger.debug("Ignoring unknown config key %s.%s", name, key)
            continue
        default = getattr(section, attr)
        if not isinstance(value, type(default)):
            raise ConfigError(
                f"Config key '{name}.{key}' must be {type(default).__name__}, "
                f"got {type(value).__name__}"
            )
        setattr(section, attr, value)
    return section


def merge_config(user_config: dict[str, Any], source: Path | None = None) -> DepUpdaterConfig:
    """Merge a parsed config document over the defaults."""
    sections = {
        name: _build_section(section_cls, name, user_config.get(name))
        for name, section_cls in _SECTIONS.items()
    }
    return DepUpdaterConfig(**sections, source=source)


def find_config_file(start: Path | None = None) -> Path | None:
    """Find a config file by searching up the directory tree.

    DEP_UPDATER_CONFIG, when set, wins over the search.

    Args:
        start: Directory to start from (default: cwd)

    Returns:
        Path to the config file, or None if not found
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()

    current = (start or Path.cwd()).resolve()
    for _ in range(MAX_SEARCH_DEPTH):
        for name in CONFIG_FILE_NAMES:
            candidate = current / name
            if candidate.is_file():
                return candidate
        if current.parent == current:
            break
        current = current.parent
    return None


def load_config(start: Path | None = None) -> DepUpdaterConfig:
    """Load configuration, falling back to defaults.

    Raises:
        ConfigError: The file isn't a JSON object or has ill-typed values
    """
    config_path = find_config_file(start)
    if config_path is None:
        return DepUpdaterConfig()

    try:
        user_config = read_json_file(config_path)
    except ValueError as e:
        logger.warning("Failed to parse config file at %s: %s", config_path, e)
        return DepUpdaterConfig()
    except OSError as e:
        logger.warning("Failed to load config file at %s: %s", config_path, e)
        return DepUpdaterConfig()

    if not isinstance(user_config, dict):
        raise ConfigError(
            f"Invalid config file at {config_path}: expected object, "
            f"got {type(user_config).__name__}"
        )

    logger.debug("Loaded config from %s", config_path)
    return merge_config(user_config, source=config_path)


# ═══════════════════════════════════════════════════════════════════════════════
# Repository Paths
# ═══════════════════════════════════════════════════════════════════════════════


def find_repo_root() -> Path:
    """Find the repository root."""
    # Check environment variable first
    env_root = os.environ.get(REPO_ROOT_ENV_VAR)
    if env_root:
        return Path(env_root).expanduser().resolve()

    success, output = run_command(["git", "rev-parse", "--show-toplevel"], timeout=30)
    if success and output:
        return Path(output.strip())

    return Path.cwd()


def resolve_in_repo(repo_root: Path, user_path: str | Path) -> Path:
    """Resolve a configured path relative to the repo root.

    Raises:
        ConfigError: The path points outside the repository
    """
    base = repo_root.resolve()
    target = (base / user_path).resolve()
    if target != base and base not in target.parents:
        raise ConfigError(f"Path '{user_path}' is outside the repository root {base}")
    return target
