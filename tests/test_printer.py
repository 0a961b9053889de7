import io
import sys
import unittest
from pathlib import Path
from unittest.mock import patch


def _add_dep_updater_path():
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_add_dep_updater_path()

from dep_updater.models import PackageUpdate  # noqa: E402
from dep_updater.printer import Printer  # noqa: E402

UPDATES = [
    PackageUpdate("react", "18.2.0", "18.3.1", "minor", "npm"),
    PackageUpdate("react-native-svg", "15.8.0", "15.9.0", "minor", "npm"),
]


class PlainPrinterTests(unittest.TestCase):
    def setUp(self):
        self.out = io.StringIO()
        self.printer = Printer(use_plain=True, stream=self.out)

    def test_minimal_glyphs(self):
        self.printer.success("Updated 2 packages")
        self.printer.warn("1 downgraded or removed")
        self.printer.kv_line("Latest", "53.0.4")

        self.assertEqual(
            self.out.getvalue().splitlines(),
            ["+ Updated 2 packages", "! 1 downgraded or removed", "    Latest:      53.0.4"],
        )

    def test_kv_line_long_key(self):
        self.printer.kv_line("@types/react-native", "~0.73.0")
        self.assertEqual(self.out.getvalue(), "    @types/react-native: ~0.73.0\n")

    def test_errors_go_to_stderr(self):
        with patch("sys.stderr", new_callable=io.StringIO) as err:
            self.printer.error("devenv update failed")

        self.assertEqual(err.getvalue(), "x devenv update failed\n")
        self.assertEqual(self.out.getvalue(), "")

    def test_section_header(self):
        self.printer.section("npm packages", count=2)
        self.printer.section("devenv inputs", tag="failed")

        self.assertEqual(self.out.getvalue(), "\n  npm packages (2)\n\n  devenv inputs (failed)\n")

    def test_updates_table_alignment(self):
        self.printer.updates_table(UPDATES)

        self.assertEqual(
            self.out.getvalue().splitlines(),
            [
                "    react" + " " * 13 + "18.2.0 -> 18.3.1  (minor)",
                "    react-native-svg  15.8.0 -> 15.9.0  (minor)",
            ],
        )

    def test_empty_table_prints_nothing(self):
        self.printer.updates_table([])
        self.assertEqual(self.out.getvalue(), "")


class RichPrinterTests(unittest.TestCase):
    def test_table_renders_to_stream(self):
        out = io.StringIO()
        printer = Printer(stream=out)

        printer.updates_table(UPDATES)

        text = out.getvalue()
        self.assertIn("Package", text)
        self.assertIn("react-native-svg", text)
        self.assertIn("→", text)
        self.assertIn("minor", text)

    def test_pad_glyph(self):
        printer = Printer(stream=io.StringIO())
        self.assertEqual(printer._pad_glyph("✔"), "✔ ")
        self.assertEqual(printer._pad_glyph("->"), "->")


if __name__ == "__main__":
    unittest.main()
