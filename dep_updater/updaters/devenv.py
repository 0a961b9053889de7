"""
devenv.py - Nix flake input updates for a devenv environment.

Changes are found by snapshotting devenv.lock around `devenv update`.
Optionally the built profiles are compared with dix, which reports real
package versions instead of input revisions.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from dep_updater.models import PackageUpdate, UpdateResult
from dep_updater.parsers import DixParseResult, parse_dix_output
from dep_updater.shared import run_command
from dep_updater.snapshots import diff_snapshots, parse_devenv_lock
from dep_updater.steps import StepRunner

LOCK_FILE = "devenv.lock"
DIX_FLAKE = "github:faukah/dix"
REBUILD_TIMEOUT = 300

_PROFILE_PATTERN = re.compile(r"DEVENV_PROFILE:\s*(\S+)")


# ═══════════════════════════════════════════════════════════════════════════════
# Profile Diffing (dix)
# ═══════════════════════════════════════════════════════════════════════════════


def get_devenv_profile_path(devenv_path: Path) -> str | None:
    """Read the current profile store path from `devenv info`.

    Looks for a line like "- DEVENV_PROFILE: /nix/store/...".
    """
    success, output = run_command(["devenv", "info"], cwd=devenv_path, timeout=120)
    if not success:
        return None
    match = _PROFILE_PATTERN.search(output)
    return match.group(1) if match else None


def diff_devenv_profiles(
    before: str,
    after: str,
    runner: StepRunner,
) -> DixParseResult:
    """Compare two profile store paths with dix."""
    outcome = runner.optional(
        "dix diff",
        ["nix", "shell", DIX_FLAKE, "-c", "dix", before, after],
        warning="dix diff failed",
    )
    if not outcome.ok:
        return DixParseResult()

    parsed = parse_dix_output(outcome.output)
    if outcome.output.strip() and not parsed.updates and not parsed.downgrades:
        runner.log.debug("dix output present but no packages parsed - format may have changed")
        runner.log.debug("dix output: %s", outcome.output[:500])
    return parsed


def _derivation_changes(
    devenv_path: Path,
    profile_before: str,
    runner: StepRunner,
) -> tuple[DixParseResult, bool]:
    """Rebuild the environment and diff profiles.

    Returns:
        Tuple of (changes, profiles_identical)
    """
    log = runner.log
    # devenv info only reports the cached profile, so force an evaluation first
    runner.optional(
        "devenv rebuild",
        ["devenv", "shell", "--", "true"],
        timeout=REBUILD_TIMEOUT,
        warning="Failed to rebuild devenv environment for diff",
    )
    profile_after = get_devenv_profile_path(devenv_path)
    log.debug("Profile before: %s", profile_before)
    log.debug("Profile after: %s", profile_after)

    if not profile_after:
        log.debug("Could not get profile after update")
        return DixParseResult(), False
    if profile_after == profile_before:
        log.debug("Profiles are identical - no derivation changes detected")
        return DixParseResult(), True

    changes = diff_devenv_profiles(profile_before, profile_after, runner)
    if changes.updates:
        log.info("✓ Found %d package version changes (via dix)", len(changes.updates))
    if changes.downgrades:
        log.info(
            "i Found %d package downgrades/removals (informational only)",
            len(changes.downgrades),
        )
    return changes, False


# ═══════════════════════════════════════════════════════════════════════════════
# Updater
# ═══════════════════════════════════════════════════════════════════════════════


def update_devenv(
    devenv_path: Path,
    *,
    dry_run: bool = False,
    use_derivation_diff: bool = False,
    logger: logging.Logger | None = None,
) -> UpdateResult:
    """Update devenv flake inputs.

    devenv has no preview mode, so the update always runs; in dry run the
    lock file is restored from git afterwards.

    Args:
        devenv_path: Directory containing devenv.nix and devenv.lock
        dry_run: Restore devenv.lock after detecting updates
        use_derivation_diff: Diff built profiles with dix before falling
            back to lock revisions
        logger: Logger for progress and warnings

    Returns:
        UpdateResult for the nix ecosystem
    """
    log = logger or logging.getLogger(__name__)
    log.info("Updating devenv dependencies...")

    runner = StepRunner(log, cwd=devenv_path)
    lock_path = devenv_path / LOCK_FILE

    try:
        # Snapshot before any devenv command: `devenv info` can rewrite the lock
        lock_before = parse_devenv_lock(lock_path, log)

        profile_before = None
        if use_derivation_diff:
            profile_before = get_devenv_profile_path(devenv_path)

        update = runner.required("devenv update", ["devenv", "update"], stream=True)
        if not update.ok:
            return UpdateResult.failed(
                "nix", f"devenv update failed: {update.summary}", runner.warnings
            )

        lock_after = parse_devenv_lock(lock_path, log)

        updates: list[PackageUpdate] = []
        downgrades: list[PackageUpdate] = []
        profiles_identical = False
        if profile_before:
            changes, profiles_identical = _derivation_changes(devenv_path, profile_before, runner)
            updates, downgrades = changes.updates, changes.downgrades
        elif use_derivation_diff:
            log.debug("No profile before update - skipping derivation diff")

        if not updates and not downgrades and not profiles_identical:
            log.debug("Lock before: %d entries, after: %d entries", len(lock_before), len(lock_after))
            updates = diff_snapshots(lock_before, lock_after, "nix")
            if updates:
                log.info("✓ Found %d Nix input updates (via lock file)", len(updates))
            else:
                log.info("✓ No updates found")
        elif profiles_identical and not updates:
            log.info("✓ Nix inputs updated but no package version changes detected")

        if dry_run:
            runner.optional(
                f"restore {LOCK_FILE}",
                ["git", "restore", LOCK_FILE],
                warning=f"Could not restore {LOCK_FILE} via git, changes will persist",
            )
    except Exception as e:
        log.exception("Devenv update aborted")
        return UpdateResult.failed("nix", str(e) or type(e).__name__, runner.warnings)

    return UpdateResult.ok("nix", updates, runner.warnings, downgrades)
