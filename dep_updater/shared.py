"""
shared.py - Common utilities for dep-updater.

Subprocess helpers used by every updater. They report failures through
their return values and never raise for a missing tool, a non-zero exit
or a timeout.
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

# ═══════════════════════════════════════════════════════════════════════════════
# Subprocess Helpers
# ═══════════════════════════════════════════════════════════════════════════════


def command_exists(name: str) -> bool:
    """Check whether an executable is reachable on PATH."""
    return shutil.which(name) is not None


def build_env(overrides: Mapping[str, str] | None = None) -> dict[str, str] | None:
    """Return os.environ merged with overrides, or None to inherit as-is."""
    if not overrides:
        return None
    return {**os.environ, **overrides}


def run_command(
    cmd: list[str],
    cwd: Path | None = None,
    timeout: int = 600,
    env: Mapping[str, str] | None = None,
) -> tuple[bool, str]:
    """Run a command and return (success, output).

    Args:
        cmd: Command and arguments as list
        cwd: Working directory (optional)
        timeout: Timeout in seconds (default 600)
        env: Extra environment variables layered over os.environ

    Returns:
        Tuple of (success: bool, output: str). On success the output is
        stdout; on failure it is the best available error message.
    """
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
            env=build_env(env),
        )
    except subprocess.TimeoutExpired:
        return False, f"{cmd[0]}: timeout after {timeout}s"
    except FileNotFoundError:
        return False, f"{cmd[0]}: command not found"
    except OSError as e:
        return False, f"{cmd[0]}: {e}"

    if result.returncode == 0:
        return True, result.stdout.rstrip()

    message = result.stderr.strip() or result.stdout.strip()
    return False, message or f"{cmd[0]} exited with code {result.returncode}"


def run_streaming_command(
    cmd: list[str],
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    on_line: Callable[[str], None] | None = None,
    skip_blank_lines: bool = True,
) -> tuple[int, str]:
    """Run a long-lived command, forwarding its output line by line.

    stderr is merged into stdout so progress messages from Nix tools are
    not lost.

    Args:
        cmd: Command and arguments.
        cwd: Optional working directory.
        env: Extra environment variables layered over os.environ
        on_line: Called with each output line as it arrives.
        skip_blank_lines: If True, blank lines are neither forwarded nor kept.

    Returns:
        Tuple of (returncode, collected_output). A missing executable
        returns 127.
    """
    try:
        process = subprocess.Popen(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
            env=build_env(env),
        )
    except FileNotFoundError:
        return 127, f"{cmd[0]}: command not found"
    except OSError as e:
        return 126, f"{cmd[0]}: {e}"
    assert process.stdout is not None

    output_lines: list[str] = []
    try:
        for raw_line in process.stdout:
            line = raw_line.rstrip()
            if not line and skip_blank_lines:
                continue
            output_lines.append(line)
            if on_line:
                on_line(line)
    finally:
        process.stdout.close()

    process.wait()
    return process.returncode, "\n".join(output_lines)


# ═══════════════════════════════════════════════════════════════════════════════
# File Helpers
# ═══════════════════════════════════════════════════════════════════════════════


def read_json_file(path: Path) -> Any:
    """Load a JSON file. Raises OSError or ValueError like json.load."""
    with open(path) as f:
        return json.load(f)


def write_json_file(path: Path, data: Any) -> None:
    """Write JSON with 2-space indentation and a trailing newline."""
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
        f.write("\n")
