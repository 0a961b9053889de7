"""
printer.py - Terminal output for dep-updater reports.

Renders through rich by default. --plain switches to ASCII glyphs and
undecorated text for CI logs. Detected updates are shown as one table row
per PackageUpdate.
"""

from __future__ import annotations

import shutil
import sys
import textwrap
from typing import ClassVar, TextIO

from rich import box
from rich.console import Console
from rich.padding import Padding
from rich.table import Table
from rich.text import Text
from rich.theme import Theme
from wcwidth import wcswidth

from dep_updater.models import PackageUpdate

THEME = Theme({
    "success": "green",
    "error": "bold red",
    "warning": "yellow",
    "heading": "bold",
    "path": "cyan",
    "callout": "cyan",
    "dim": "dim",
    "major": "bold red",
    "minor": "yellow",
    "patch": "green",
    "unknown": "dim",
})


class Printer:
    """Report output for the CLI commands.

    Glyphs sit in columns 0-1. Titles and messages start at column 2;
    details, key-value rows and tables at column 4.
    """

    INDENT = "  "  # message column
    INDENT2 = "    "  # detail column

    GLYPHS_UNICODE: ClassVar[dict[str, str]] = {
        "success": "✔",
        "error": "✘",
        "warning": "!",
        "action": "➜",
        "dry_run": "~",
        "arrow": "→",
    }

    GLYPHS_MINIMAL: ClassVar[dict[str, str]] = {
        "success": "+",
        "error": "x",
        "warning": "!",
        "action": ">",
        "dry_run": "~",
        "arrow": "->",
    }

    def __init__(
        self,
        use_plain: bool = False,
        use_minimal: bool = False,
        stream: TextIO | None = None,
    ):
        self.use_plain = use_plain
        self.stream = stream or sys.stdout
        self.use_minimal = use_minimal or use_plain
        self.glyphs = self.GLYPHS_MINIMAL if self.use_minimal else self.GLYPHS_UNICODE
        self.console: Console | None = None if use_plain else Console(theme=THEME, file=self.stream)

    def _pad_glyph(self, glyph: str, target_width: int = 2) -> str:
        """Pad a glyph to a fixed gutter; some glyphs render double width."""
        width = int(wcswidth(glyph))
        if width <= 0:
            # unprintable
            width = 1
        return glyph + " " * max(0, target_width - width)

    def _write(self, text: str, file: TextIO | None = None) -> None:
        print(text, file=file or self.stream)

    def blank(self) -> None:
        print(file=self.stream)

    @staticmethod
    def _wrap_plain_line(text: str, indent: str) -> str:
        """Fill text to the terminal width with the indent on every line."""
        term_width = shutil.get_terminal_size(fallback=(80, 24)).columns
        wrapper = textwrap.TextWrapper(
            width=max(len(indent) + 20, term_width),
            initial_indent=indent,
            subsequent_indent=indent,
            replace_whitespace=False,
            drop_whitespace=False,
        )
        return wrapper.fill(text)

    def _print_indented_text(self, text: str, indent: str, style: str | None = None) -> None:
        """Multi-line text, each line padded to indent."""
        for line in text.splitlines() or [text]:
            if not line:
                self.blank()
                continue
            if self.console is not None:
                rendered = Text(line)
                if style:
                    rendered.stylize(style)
                self.console.print(Padding(rendered, (0, 0, 0, len(indent)), expand=False), overflow="fold")
            else:
                self._write(self._wrap_plain_line(line, indent))

    def _print_glyph_line(self, glyph_key: str, style: str, text: str, file: TextIO | None = None) -> None:
        g = self._pad_glyph(self.glyphs[glyph_key])
        if self.console is not None:
            rendered = Text(g, style=style)
            rendered.append(text)
            self.console.print(rendered)
        else:
            self._write(f"{g}{text}", file=file)

    # ═══════════════════════════════════════════════════════════════════════════
    # Status Lines
    # ═══════════════════════════════════════════════════════════════════════════

    def action(self, text: str) -> None:
        """Step header, e.g. "➜ Updating npm packages"."""
        self.blank()
        g = self._pad_glyph(self.glyphs["action"])
        if self.console is not None:
            rendered = Text(g, style="callout")
            rendered.append(text, style="heading")
            self.console.print(rendered)
        else:
            self._write(f"{g}{text}")

    def section(self, title: str, count: int = 0, tag: str = "") -> None:
        """Ecosystem header, e.g. "npm packages (3)" or "nixpkgs overlay (failed)"."""
        self.blank()
        suffix = ""
        if count > 0:
            suffix += f" ({count})"
        if tag:
            suffix += f" ({tag})"

        if self.console is not None:
            rendered = Text(title, style="heading")
            if suffix:
                rendered.append(suffix)
            self.console.print(Padding(rendered, (0, 0, 0, len(self.INDENT)), expand=False))
        else:
            self._write(f"{self.INDENT}{title}{suffix}")

    def success(self, text: str) -> None:
        """Print a success line."""
        self._print_glyph_line("success", "success", text)

    def warn(self, text: str) -> None:
        self._print_glyph_line("warning", "warning", text)

    def error(self, text: str) -> None:
        """Errors go to stderr when plain."""
        self._print_glyph_line("error", "error", text, file=sys.stderr)

    def line(self, text: str) -> None:
        self._print_indented_text(text, self.INDENT)

    def detail(self, text: str) -> None:
        self._print_indented_text(text, self.INDENT2, style="dim")

    def info(self, text: str) -> None:
        """Dim text at column 2."""
        self._print_indented_text(text, self.INDENT, style="dim")

    def kv_line(self, key: str, value: str) -> None:
        """Aligned key: value row (SDK versions, pinned packages)."""
        label = f"{key + ':':<13}"
        if not label.endswith(" "):
            label += " "
        if self.console is not None:
            rendered = Text(label)
            rendered.append(value, style="dim")
            self.console.print(Padding(rendered, (0, 0, 0, len(self.INDENT2)), expand=False))
        else:
            self._write(f"{self.INDENT2}{label}{value}")

    def dry_run_banner(self) -> None:
        """Announce that nothing will be written."""
        self.blank()
        g = self._pad_glyph(self.glyphs["dry_run"])
        if self.console is not None:
            rendered = Text(g, style="warning")
            rendered.append("Dry Run", style="heading")
            rendered.append(" (no changes will be made)", style="dim")
            self.console.print(rendered)
        else:
            self._write(f"{g}Dry Run (no changes will be made)")

    # ═══════════════════════════════════════════════════════════════════════════
    # Update Tables
    # ═══════════════════════════════════════════════════════════════════════════

    def updates_table(self, updates: list[PackageUpdate]) -> None:
        """Print detected updates as name, from, to, type columns."""
        if not updates:
            return

        arrow = self.glyphs["arrow"]
        if self.console is not None:
            table = Table(box=box.SIMPLE, show_header=True, header_style="heading", pad_edge=False)
            table.add_column("Package", style="path")
            table.add_column("From", style="dim")
            table.add_column("")
            table.add_column("To")
            table.add_column("Type")
            for update in updates:
                table.add_row(
                    update.name,
                    update.from_version,
                    arrow,
                    update.to_version,
                    Text(update.update_type, style=update.update_type),
                )
            self.console.print(Padding(table, (0, 0, 0, len(self.INDENT)), expand=False))
            return

        name_width = max(len(u.name) for u in updates)
        from_width = max(len(u.from_version) for u in updates)
        for update in updates:
            self._write(
                f"{self.INDENT2}{update.name:<{name_width}}  "
                f"{update.from_version:>{from_width}} {arrow} {update.to_version}"
                f"  ({update.update_type})"
            )
