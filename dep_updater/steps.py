"""
steps.py - Required and best-effort command steps.

An updater runs one required step (its primary tool) and any number of
optional steps (lock resync, constraint fixes, build checks, restores).
Required failures decide the result; optional failures are logged as
warnings and collected for the final UpdateResult.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dep_updater.shared import run_command, run_streaming_command

DEFAULT_TIMEOUT = 600


@dataclass
class StepOutcome:
    """Result of a single command step."""

    name: str
    ok: bool
    output: str = ""

    @property
    def summary(self) -> str:
        """Last non-empty output line, for one-line error messages."""
        return _last_line(self.output)


class StepRunner:
    """Runs command steps for one updater and accumulates warnings."""

    def __init__(self, log: logging.Logger, cwd: Path | None = None):
        self.log = log
        self.cwd = cwd
        self.warnings: list[str] = []

    def _run(
        self,
        name: str,
        cmd: list[str],
        cwd: Path | None,
        timeout: int,
        env: Mapping[str, str] | None,
        stream: bool,
    ) -> StepOutcome:
        workdir = cwd or self.cwd
        self.log.debug("Running %s: %s", name, " ".join(cmd))

        if stream:
            returncode, output = run_streaming_command(
                cmd,
                cwd=workdir,
                env=env,
                on_line=lambda line: self.log.info("  %s", line),
            )
            return StepOutcome(name=name, ok=returncode == 0, output=output)

        ok, output = run_command(cmd, cwd=workdir, timeout=timeout, env=env)
        return StepOutcome(name=name, ok=ok, output=output)

    def required(
        self,
        name: str,
        cmd: list[str],
        cwd: Path | None = None,
        timeout: int = DEFAULT_TIMEOUT,
        env: Mapping[str, str] | None = None,
        stream: bool = False,
    ) -> StepOutcome:
        """Run a step whose failure fails the whole updater.

        The caller turns a failed outcome into UpdateResult.failed().
        """
        outcome = self._run(name, cmd, cwd, timeout, env, stream)
        if outcome.ok:
            self.log.info("✓ %s completed", name)
        else:
            self.log.error("%s failed: %s", name, outcome.summary)
        return outcome

    def optional(
        self,
        name: str,
        cmd: list[str],
        cwd: Path | None = None,
        timeout: int = DEFAULT_TIMEOUT,
        env: Mapping[str, str] | None = None,
        stream: bool = False,
        warning: str | None = None,
    ) -> StepOutcome:
        """Run a best-effort step. Failure is recorded as a warning only.

        Args:
            warning: Message to record instead of the default "<name> failed"
        """
        outcome = self._run(name, cmd, cwd, timeout, env, stream)
        if outcome.ok:
            self.log.info("✓ %s completed", name)
        else:
            self.warn(warning or f"{name} failed", outcome.output)
        return outcome

    def warn(self, message: str, detail: str = "") -> None:
        """Record a non-fatal problem."""
        detail = _last_line(detail)
        text = f"{message}: {detail}" if detail else message
        self.warnings.append(text)
        self.log.warning("Warning: %s", text)


def _last_line(output: str) -> str:
    """Return the last non-empty line of command output."""
    lines = [line for line in output.splitlines() if line.strip()]
    return lines[-1].strip() if lines else ""
