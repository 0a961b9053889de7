"""
nixpkgs.py - Nixpkgs overlay updates via nvfetcher.

nvfetcher rewrites _sources/generated.json with the newest upstream tags.
Versions are compared before and after, then each changed package gets a
best-effort `nix build` to catch broken bumps early.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dep_updater.models import UpdateResult
from dep_updater.shared import command_exists
from dep_updater.snapshots import diff_snapshots, parse_nvfetcher_sources
from dep_updater.steps import StepRunner

SOURCES_DIR = "_sources"
SOURCES_FILE = "generated.json"
PACKAGE_PREFIX = "nixpkgs-"


def github_token_env() -> dict[str, str]:
    """Forward a GitHub token to nvfetcher to avoid API rate limits."""
    token = os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN")
    return {"GITHUB_TOKEN": token} if token else {}


def update_nixpkgs_overlay(
    overlay_path: Path,
    *,
    dry_run: bool = False,
    verify_builds: bool = True,
    logger: logging.Logger | None = None,
) -> UpdateResult:
    """Update overlay sources with nvfetcher.

    nvfetcher has no preview mode either; in dry run the _sources directory
    is restored from git after versions are read, and builds are skipped.

    Args:
        overlay_path: Overlay directory containing nvfetcher.toml
        dry_run: Restore _sources after detecting updates
        verify_builds: Build each updated package after a real update
        logger: Logger for progress and warnings

    Returns:
        UpdateResult for the nixpkgs ecosystem
    """
    log = logger or logging.getLogger(__name__)
    log.info("Updating nixpkgs overlay...")

    if not command_exists("nvfetcher"):
        return UpdateResult.failed("nixpkgs", "nvfetcher not available (not found in PATH)")

    runner = StepRunner(log, cwd=overlay_path)
    sources_path = overlay_path / SOURCES_DIR / SOURCES_FILE

    try:
        versions_before = parse_nvfetcher_sources(sources_path, log)

        fetch = runner.required("nvfetcher", ["nvfetcher"], env=github_token_env(), stream=True)
        if not fetch.ok:
            return UpdateResult.failed(
                "nixpkgs", f"nvfetcher failed: {fetch.summary}", runner.warnings
            )

        versions_after = parse_nvfetcher_sources(sources_path, log)
        updates = diff_snapshots(versions_before, versions_after, "nixpkgs", prefix=PACKAGE_PREFIX)
        log.info("✓ Found %d nixpkgs overlay updates", len(updates))

        if dry_run:
            runner.optional(
                f"restore {SOURCES_DIR}",
                ["git", "restore", SOURCES_DIR],
                warning=f"Could not restore {SOURCES_DIR} via git, changes will persist",
            )
        elif verify_builds:
            # One build at a time: these are heavy and must not overcommit the host
            for update in updates:
                package = update.name.removeprefix(PACKAGE_PREFIX)
                runner.optional(
                    f"nix build {package}",
                    ["nix", "build", f".#{package}", "--no-link"],
                    stream=True,
                    warning=f"Nix build verification failed for {package}",
                )
    except Exception as e:
        log.exception("Nixpkgs overlay update aborted")
        return UpdateResult.failed("nixpkgs", str(e) or type(e).__name__, runner.warnings)

    return UpdateResult.ok("nixpkgs", updates, runner.warnings)
