import sys
import unittest
from pathlib import Path


def _add_dep_updater_path():
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_add_dep_updater_path()

from dep_updater.models import PackageUpdate, UpdateResult  # noqa: E402


def _update(**overrides):
    data = {
        "name": "react",
        "from_version": "19.1.0",
        "to_version": "19.2.0",
        "update_type": "minor",
        "ecosystem": "npm",
    }
    data.update(overrides)
    return PackageUpdate(**data)


class PackageUpdateTests(unittest.TestCase):
    def test_equal_versions_rejected(self):
        with self.assertRaises(ValueError):
            _update(to_version="19.1.0")

    def test_invalid_tags_rejected(self):
        with self.assertRaises(ValueError):
            _update(update_type="huge")
        with self.assertRaises(ValueError):
            _update(ecosystem="pip")

    def test_to_dict_uses_camel_case(self):
        self.assertEqual(
            _update().to_dict(),
            {
                "name": "react",
                "fromVersion": "19.1.0",
                "toVersion": "19.2.0",
                "updateType": "minor",
                "ecosystem": "npm",
            },
        )
        with_extras = _update(changelog="notes", breaking_changes=("drops node 18",))
        self.assertEqual(with_extras.to_dict()["breakingChanges"], ["drops node 18"])

    def test_frozen(self):
        update = _update()
        with self.assertRaises(AttributeError):
            update.name = "vue"  # type: ignore[misc]


class UpdateResultTests(unittest.TestCase):
    def test_failed_result_has_no_updates(self):
        with self.assertRaises(ValueError):
            UpdateResult(success=False, ecosystem="npm", updates=[_update()], error="boom")
        with self.assertRaises(ValueError):
            UpdateResult(success=False, ecosystem="npm")

    def test_successful_result_has_no_error(self):
        with self.assertRaises(ValueError):
            UpdateResult(success=True, ecosystem="npm", error="boom")

    def test_constructors(self):
        ok = UpdateResult.ok("npm", [_update()], warnings=["bun install failed"])
        self.assertTrue(ok.success)
        self.assertEqual(len(ok.updates), 1)
        self.assertEqual(ok.warnings, ["bun install failed"])

        failed = UpdateResult.failed("nixpkgs", "nvfetcher failed")
        self.assertFalse(failed.success)
        self.assertEqual(failed.to_dict(), {
            "success": False,
            "ecosystem": "nixpkgs",
            "updates": [],
            "error": "nvfetcher failed",
        })


if __name__ == "__main__":
    unittest.main()
