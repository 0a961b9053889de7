"""
cli.py - Typer-based CLI for dep-updater.

Detects and applies dependency updates across npm (Bun), devenv, a
nixpkgs overlay and the Expo SDK.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import Annotated, Any, ParamSpec, TypeVar, cast

import typer
from rich.console import Console
from rich.logging import RichHandler

from dep_updater.commands import (
    cmd_check_expo,
    cmd_generate_syncpack,
    cmd_update,
    cmd_update_expo,
)
from dep_updater.config import DepUpdaterConfig, find_repo_root, load_config
from dep_updater.errors import ConfigError
from dep_updater.printer import Printer

# ═══════════════════════════════════════════════════════════════════════════════
# Application State
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class AppState:
    """Global application state, initialized in the main callback."""

    printer: Printer | None = None
    repo_root: Path | None = None
    config: DepUpdaterConfig | None = None
    verbose: bool = False
    quiet: bool = False
    plain: bool = False
    json_output: bool = False
    dry_run: bool = False


state = AppState()

# ═══════════════════════════════════════════════════════════════════════════════
# Typer App
# ═══════════════════════════════════════════════════════════════════════════════

app = typer.Typer(
    name="dep-updater",
    help="Dependency update detection for Bun, devenv, nixpkgs overlays and Expo",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

P = ParamSpec("P")
R = TypeVar("R")


def _typed_command(*args: Any, **kwargs: Any) -> Callable[[Callable[P, R]], Callable[P, R]]:
    return cast(Callable[[Callable[P, R]], Callable[P, R]], app.command(*args, **kwargs))


def _typed_callback(*args: Any, **kwargs: Any) -> Callable[[Callable[P, R]], Callable[P, R]]:
    return cast(Callable[[Callable[P, R]], Callable[P, R]], app.callback(*args, **kwargs))


# ═══════════════════════════════════════════════════════════════════════════════
# Type Aliases for Common Options
# ═══════════════════════════════════════════════════════════════════════════════

OptDryRun = Annotated[bool, typer.Option("--dry-run", "-n", help="Show what would happen")]
OptPlain = Annotated[bool, typer.Option("--plain", help="Plain text output")]
OptVerbose = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")]
OptQuiet = Annotated[bool, typer.Option("--quiet", "-q", help="Only log warnings and errors")]
OptJson = Annotated[bool, typer.Option("--json", help="JSON output")]
OptExpoVersion = Annotated[
    str | None,
    typer.Option("--expo-version", "--expo-sdk", help="Expo SDK version (default: current)"),
]


# ═══════════════════════════════════════════════════════════════════════════════
# State Helpers
# ═══════════════════════════════════════════════════════════════════════════════


def setup_logging(verbose: bool = False, quiet: bool = False, plain: bool = False) -> None:
    """Send package logs to stderr through rich."""
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    handler = RichHandler(
        console=Console(stderr=True, no_color=plain),
        show_time=False,
        show_path=verbose,
        markup=False,
    )
    package_logger = logging.getLogger("dep_updater")
    package_logger.handlers = [h for h in package_logger.handlers if not isinstance(h, RichHandler)]
    package_logger.addHandler(handler)
    package_logger.setLevel(level)


def make_args(**overrides: Any) -> SimpleNamespace:
    """Create an Args-like namespace from global state + overrides."""
    data: dict[str, Any] = {
        "dry_run": state.dry_run,
        "json": state.json_output,
        "verbose": state.verbose,
        "expo_version": None,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


def _init_state(
    verbose: bool = False,
    quiet: bool = False,
    plain: bool = False,
    json_output: bool = False,
    dry_run: bool = False,
) -> None:
    """Initialize global state (called from the main callback)."""
    state.verbose = verbose
    state.quiet = quiet
    state.plain = plain
    state.json_output = json_output
    state.dry_run = dry_run

    # JSON goes to stdout, so human-readable output moves to stderr
    stream = sys.stderr if json_output else sys.stdout
    state.printer = Printer(use_plain=plain, stream=stream)
    setup_logging(verbose=verbose, quiet=quiet, plain=plain)

    try:
        state.repo_root = find_repo_root()
        state.config = load_config(state.repo_root)
    except ConfigError as e:
        state.printer.error(str(e))
        raise typer.Exit(1) from None


def _require_state() -> tuple[Printer, Path, DepUpdaterConfig]:
    """Return initialized state or exit if missing."""
    if state.printer is None or state.repo_root is None or state.config is None:
        raise typer.Exit(1)
    return state.printer, state.repo_root, state.config


def _effective_flag(value: bool, fallback: bool) -> bool:
    """Return a flag that falls back to an existing value when false."""
    return value or fallback


# ═══════════════════════════════════════════════════════════════════════════════
# Main Callback (global options only)
# ═══════════════════════════════════════════════════════════════════════════════


@_typed_callback()
def main(
    verbose: OptVerbose = False,
    quiet: OptQuiet = False,
    plain: OptPlain = False,
    dry_run: OptDryRun = False,
    json_output: OptJson = False,
) -> None:
    """
    Detect and apply dependency updates.

    Examples:
        dep-updater update                              # Bun (+ Nix if enabled)
        dep-updater --dry-run update                    # Report without changing files
        dep-updater check-expo                          # Current vs latest Expo SDK
        dep-updater generate-syncpack --expo-version 52.0.0
    """
    _init_state(
        verbose=verbose,
        quiet=quiet,
        plain=plain,
        json_output=json_output,
        dry_run=dry_run,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Subcommands
# ═══════════════════════════════════════════════════════════════════════════════


@_typed_command("update")
def update_cmd(dry_run: OptDryRun = False) -> None:
    """Update npm packages, then devenv inputs and the nixpkgs overlay."""
    printer, repo_root, config = _require_state()
    args = make_args(dry_run=_effective_flag(dry_run, state.dry_run))
    raise typer.Exit(cmd_update(args, printer, repo_root, config))


@_typed_command("check-expo")
def check_expo_cmd() -> None:
    """Compare the project's Expo SDK with the latest release."""
    printer, repo_root, config = _require_state()
    raise typer.Exit(cmd_check_expo(make_args(), printer, repo_root, config))


@_typed_command("update-expo")
def update_expo_cmd(dry_run: OptDryRun = False) -> None:
    """Move to the latest Expo SDK and align dependencies."""
    printer, repo_root, config = _require_state()
    args = make_args(dry_run=_effective_flag(dry_run, state.dry_run))
    raise typer.Exit(cmd_update_expo(args, printer, repo_root, config))


@_typed_command("generate-syncpack")
def generate_syncpack_cmd(
    expo_version: OptExpoVersion = None,
    dry_run: OptDryRun = False,
) -> None:
    """Pin Expo SDK package versions in the syncpack config."""
    printer, repo_root, config = _require_state()
    args = make_args(
        expo_version=expo_version,
        dry_run=_effective_flag(dry_run, state.dry_run),
    )
    raise typer.Exit(cmd_generate_syncpack(args, printer, repo_root, config))


# ═══════════════════════════════════════════════════════════════════════════════
# CLI Entry Point
# ═══════════════════════════════════════════════════════════════════════════════


def run_cli() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    run_cli()
