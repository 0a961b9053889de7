"""
commands.py - CLI command implementations for dep-updater.

Each function handles a specific subcommand (update, check-expo, etc.) and
returns the process exit code.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from dep_updater.config import DepUpdaterConfig, resolve_in_repo
from dep_updater.errors import ConfigError, ExpoFetchError
from dep_updater.expo import (
    check_for_expo_update,
    fetch_expo_versions,
    filter_critical_versions,
    get_current_expo_sdk,
)
from dep_updater.models import UpdateResult
from dep_updater.printer import Printer
from dep_updater.syncpack import update_syncpack_with_expo
from dep_updater.updaters import update_bun_dependencies, update_devenv, update_nixpkgs_overlay
from dep_updater.workspace import detect_expo_projects

logger = logging.getLogger(__name__)

ECOSYSTEM_LABELS = {
    "npm": "npm packages",
    "nix": "devenv inputs",
    "nixpkgs": "nixpkgs overlay",
    "expo": "Expo SDK",
}


def _emit_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def _render_result(printer: Printer, result: UpdateResult) -> None:
    """Render one ecosystem result: header, table, downgrades, warnings."""
    label = ECOSYSTEM_LABELS.get(result.ecosystem, result.ecosystem)

    if not result.success:
        printer.section(label, tag="failed")
        printer.error(result.error or "unknown error")
    elif result.updates:
        printer.section(label, count=len(result.updates))
        printer.updates_table(result.updates)
    else:
        printer.section(label)
        printer.info("No updates")

    if result.downgrades:
        printer.warn(f"{len(result.downgrades)} downgraded or removed")
        printer.updates_table(result.downgrades)

    for warning in result.warnings:
        printer.warn(warning)


# ═══════════════════════════════════════════════════════════════════════════════
# update
# ═══════════════════════════════════════════════════════════════════════════════


def cmd_update(args: Any, printer: Printer, repo_root: Path, config: DepUpdaterConfig) -> int:
    """Run every enabled ecosystem updater and report what changed.

    Returns 1 if any updater failed.
    """
    if args.dry_run:
        printer.dry_run_banner()

    try:
        devenv_path = resolve_in_repo(repo_root, config.nix.devenv_path)
        overlay_path = resolve_in_repo(repo_root, config.nix.nixpkgs_overlay_path)
    except ConfigError as e:
        printer.error(str(e))
        return 1

    results: list[UpdateResult] = []

    printer.action("Updating npm packages")
    results.append(
        update_bun_dependencies(
            repo_root,
            dry_run=args.dry_run,
            syncpack_fix_command=config.syncpack.fix_script_name,
            logger=logger,
        )
    )

    if config.nix.enabled:
        printer.action("Updating devenv inputs")
        results.append(
            update_devenv(
                devenv_path,
                dry_run=args.dry_run,
                use_derivation_diff=config.nix.use_derivation_diff,
                logger=logger,
            )
        )

        printer.action("Updating nixpkgs overlay")
        results.append(update_nixpkgs_overlay(overlay_path, dry_run=args.dry_run, logger=logger))
    else:
        logger.debug("Nix updates are disabled in config")

    all_ok = all(r.success for r in results)

    if args.json:
        _emit_json({"success": all_ok, "results": [r.to_dict() for r in results]})
        return 0 if all_ok else 1

    for result in results:
        _render_result(printer, result)

    total = sum(len(r.updates) for r in results if r.success)
    printer.blank()
    if not all_ok:
        printer.error("Some updaters failed")
    elif total:
        printer.success(f"Updated {total} package{'s' if total != 1 else ''}")
    else:
        printer.success("Everything is up to date")

    return 0 if all_ok else 1


# ═══════════════════════════════════════════════════════════════════════════════
# Expo
# ═══════════════════════════════════════════════════════════════════════════════


def _expo_package_json(printer: Printer, repo_root: Path, config: DepUpdaterConfig) -> Path | None:
    """Resolve the configured Expo package.json, reporting a missing SDK."""
    try:
        package_json = resolve_in_repo(repo_root, config.expo.package_json_path)
    except ConfigError as e:
        printer.error(str(e))
        return None

    if get_current_expo_sdk(package_json):
        return package_json

    printer.error(f"No Expo SDK found in {config.expo.package_json_path}")
    projects = detect_expo_projects(repo_root)
    if projects:
        printer.info("Expo projects in this repository:")
        for project in projects:
            printer.detail(f"{project.name} ({project.package_json_path})")
        printer.info("Set expo.package_json_path in dep-updater.json to one of these.")
    return None


def cmd_check_expo(args: Any, printer: Printer, repo_root: Path, config: DepUpdaterConfig) -> int:
    """Report the current and latest Expo SDK."""
    if not config.expo.enabled:
        printer.info("Expo SDK updates are disabled in config")
        return 0

    package_json = _expo_package_json(printer, repo_root, config)
    if package_json is None:
        return 1

    try:
        has_update, current, latest = check_for_expo_update(package_json)
    except ExpoFetchError as e:
        printer.error(str(e))
        return 1

    if args.json:
        _emit_json({
            "current": current,
            "latest": latest.version,
            "hasUpdate": has_update,
            "changelogUrl": latest.changelog_url,
        })
        return 0

    printer.kv_line("Current", current or "none")
    printer.kv_line("Latest", latest.version)
    printer.blank()
    if has_update:
        printer.success(f"New Expo SDK available: {current} → {latest.version}")
        if latest.changelog_url:
            printer.detail(f"Changelog: {latest.changelog_url}")
    else:
        printer.success("Already on latest Expo SDK")
    return 0


def cmd_update_expo(args: Any, printer: Printer, repo_root: Path, config: DepUpdaterConfig) -> int:
    """Move to the latest Expo SDK: pin its versions in syncpack, then update."""
    if not config.expo.enabled:
        printer.info("Expo SDK updates are disabled in config")
        return 0

    package_json = _expo_package_json(printer, repo_root, config)
    if package_json is None:
        return 1

    try:
        syncpack_path = resolve_in_repo(repo_root, config.syncpack.config_path)
        has_update, current, latest = check_for_expo_update(package_json)
    except (ConfigError, ExpoFetchError) as e:
        printer.error(str(e))
        return 1

    if not has_update:
        printer.success(f"Already on latest Expo SDK ({current})")
        return 0

    printer.action(f"Updating Expo SDK: {current} → {latest.version}")

    if args.dry_run:
        printer.dry_run_banner()
        printer.line("Would perform the following steps:")
        printer.detail("1. Fetch Expo recommended versions")
        printer.detail(f"2. Regenerate {config.syncpack.config_path}")
        printer.detail("3. Update dependencies with Bun")
        return 0

    try:
        expo_versions = fetch_expo_versions(latest.version)
    except ExpoFetchError as e:
        printer.error(str(e))
        return 1
    printer.success(f"Fetched {len(expo_versions.packages)} package versions")

    try:
        update_syncpack_with_expo(
            expo_versions,
            syncpack_path,
            repo_root,
            preserve_custom_rules=config.syncpack.preserve_custom_rules,
            logger=logger,
        )
    except ConfigError as e:
        printer.error(str(e))
        return 1
    printer.success(f"Regenerated {config.syncpack.config_path}")

    result = update_bun_dependencies(
        repo_root,
        syncpack_fix_command=config.syncpack.fix_script_name,
        logger=logger,
    )
    expo_update = {
        "from": current,
        "to": latest.version,
        "changelogUrl": latest.changelog_url,
    }

    if args.json:
        _emit_json({"success": result.success, "expo": expo_update, "result": result.to_dict()})
        return 0 if result.success else 1

    _render_result(printer, result)
    if not result.success:
        return 1

    printer.blank()
    printer.success("Expo SDK update complete")
    if latest.changelog_url:
        printer.detail(f"Changelog: {latest.changelog_url}")
    return 0


# ═══════════════════════════════════════════════════════════════════════════════
# generate-syncpack
# ═══════════════════════════════════════════════════════════════════════════════


def cmd_generate_syncpack(args: Any, printer: Printer, repo_root: Path, config: DepUpdaterConfig) -> int:
    """Reconcile the syncpack config for an Expo SDK.

    Uses --expo-version when given, otherwise the SDK in the configured
    package.json (requires expo.enabled).
    """
    try:
        syncpack_path = resolve_in_repo(repo_root, config.syncpack.config_path)
    except ConfigError as e:
        printer.error(str(e))
        return 1

    sdk_version = args.expo_version
    if not sdk_version:
        if not config.expo.enabled:
            printer.error("Expo is not enabled and no SDK version specified")
            printer.info("Usage: dep-updater generate-syncpack --expo-version 52.0.0")
            return 1

        package_json = _expo_package_json(printer, repo_root, config)
        if package_json is None:
            return 1
        sdk_version = get_current_expo_sdk(package_json)

    printer.action(f"Generating syncpack config for Expo SDK {sdk_version}")

    if args.dry_run:
        printer.dry_run_banner()
        printer.line(f"Would regenerate {config.syncpack.config_path}")
        return 0

    try:
        expo_versions = fetch_expo_versions(sdk_version)
    except ExpoFetchError as e:
        printer.error(str(e))
        return 1

    try:
        config_data = update_syncpack_with_expo(
            expo_versions,
            syncpack_path,
            repo_root,
            preserve_custom_rules=config.syncpack.preserve_custom_rules,
            logger=logger,
        )
    except ConfigError as e:
        printer.error(str(e))
        return 1

    if args.json:
        _emit_json(config_data)
        return 0

    for name, version in filter_critical_versions(expo_versions).items():
        printer.kv_line(name, version)
    printer.blank()
    printer.success(f"Generated syncpack config at {config.syncpack.config_path}")
    printer.info(f"Next: run `bun run {config.syncpack.fix_script_name}` to align package versions")
    return 0
