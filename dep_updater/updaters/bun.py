"""
bun.py - npm dependency updates through Bun.

Runs bun update, resyncs the lock file, applies syncpack fixes, then reads
the resulting package.json diff to find what changed.
"""

from __future__ import annotations

import logging
from pathlib import Path

from dep_updater.models import PackageUpdate, UpdateResult
from dep_updater.parsers import parse_bun_update_output, parse_package_json_diff
from dep_updater.steps import StepRunner

# Root manifest plus workspaces one and two levels deep
MANIFEST_PATHSPECS = ["package.json", "*/package.json", "*/*/package.json"]


def update_bun_dependencies(
    repo_root: Path,
    *,
    dry_run: bool = False,
    recursive: bool = True,
    syncpack_fix_command: str = "syncpack:fix",
    logger: logging.Logger | None = None,
) -> UpdateResult:
    """Update npm dependencies with Bun.

    Dry run leaves every file untouched and reports no updates, since bun
    has no way to preview an update without writing manifests.

    Args:
        repo_root: Repository root containing package.json
        dry_run: Skip all commands
        recursive: Pass --recursive to update every workspace
        syncpack_fix_command: package.json script that fixes version mismatches
        logger: Logger for progress and warnings

    Returns:
        UpdateResult for the npm ecosystem
    """
    log = logger or logging.getLogger(__name__)
    log.info("Updating Bun dependencies...")

    if dry_run:
        log.info("Dry run: skipping bun update")
        return UpdateResult.ok("npm")

    runner = StepRunner(log, cwd=repo_root)
    try:
        cmd = ["bun", "update"]
        if recursive:
            cmd.append("--recursive")

        update = runner.required("bun update", cmd)
        if not update.ok:
            return UpdateResult.failed(
                "npm", f"bun update failed: {update.summary}", runner.warnings
            )
        if update.output:
            log.info(update.output)

        runner.optional(
            "bun install",
            ["bun", "install"],
            warning="bun install failed, lock file may be out of sync",
        )
        fix = runner.optional(
            f"syncpack {syncpack_fix_command}",
            ["bun", "run", syncpack_fix_command],
            warning=f"{syncpack_fix_command} failed, continuing",
        )
        if fix.ok and fix.output:
            log.info(fix.output)

        updates = _collect_updates(runner, update.output)
    except Exception as e:
        log.exception("Bun update aborted")
        return UpdateResult.failed("npm", str(e) or type(e).__name__, runner.warnings)

    log.info("✓ Found %d package updates", len(updates))
    return UpdateResult.ok("npm", updates, runner.warnings)


def _collect_updates(runner: StepRunner, update_output: str) -> list[PackageUpdate]:
    """Prefer the manifest diff; fall back to bun's own log."""
    diff = runner.optional(
        "git diff",
        ["git", "diff", "--", *MANIFEST_PATHSPECS],
        warning="Could not get git diff, falling back to stdout parsing",
    )
    if not diff.ok:
        return parse_bun_update_output(update_output)
    if not diff.output:
        return []
    return parse_package_json_diff(diff.output)
