import json
import logging
import sys
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch


def _add_dep_updater_path():
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_add_dep_updater_path()

from dep_updater.updaters.devenv import get_devenv_profile_path, update_devenv  # noqa: E402

LOG = logging.getLogger("dep_updater.tests.devenv")


def _lock(revs: dict[str, str]) -> str:
    return json.dumps({"nodes": {name: {"locked": {"rev": rev}} for name, rev in revs.items()}})


LOCK_BEFORE = _lock({"nixpkgs": "aaaaaaa111", "devenv": "bbbbbbb222", "git-hooks": "ccccccc333"})
LOCK_AFTER = _lock({"nixpkgs": "ddddddd444", "devenv": "bbbbbbb222", "git-hooks": "eeeeeee555"})

DIX_OUTPUT = "CHANGED\n[D.] nodejs  22.10.0 -> 22.11.0\n[D.] openssl  3.4.1 -> 3.4.0\n"


class DevenvUpdaterTests(unittest.TestCase):
    def _rewrite_lock_on_update(self, lock_path: Path, content: str = LOCK_AFTER, returncode: int = 0):
        def _stream(cmd, cwd=None, env=None, on_line=None):
            if returncode == 0:
                lock_path.write_text(content)
            return returncode, "updating inputs" if returncode == 0 else "error: cannot fetch input"

        return _stream

    def test_lock_snapshot_updates(self):
        with TemporaryDirectory() as tmp:
            devenv_path = Path(tmp)
            lock_path = devenv_path / "devenv.lock"
            lock_path.write_text(LOCK_BEFORE)

            with patch(
                "dep_updater.steps.run_streaming_command",
                side_effect=self._rewrite_lock_on_update(lock_path),
            ) as mock_stream, patch("dep_updater.steps.run_command") as mock_run:
                result = update_devenv(devenv_path, logger=LOG)

            self.assertEqual(mock_stream.call_args.args[0], ["devenv", "update"])
            self.assertEqual(mock_stream.call_args.kwargs["cwd"], devenv_path)
            mock_run.assert_not_called()

        self.assertTrue(result.success)
        self.assertEqual(
            [(u.name, u.from_version, u.to_version) for u in result.updates],
            [("nixpkgs", "aaaaaaa", "ddddddd"), ("git-hooks", "ccccccc", "eeeeeee")],
        )
        self.assertTrue(all(u.update_type == "unknown" and u.ecosystem == "nix" for u in result.updates))

    def test_dry_run_restores_lock(self):
        with TemporaryDirectory() as tmp:
            devenv_path = Path(tmp)
            lock_path = devenv_path / "devenv.lock"
            lock_path.write_text(LOCK_BEFORE)

            with patch(
                "dep_updater.steps.run_streaming_command",
                side_effect=self._rewrite_lock_on_update(lock_path),
            ), patch("dep_updater.steps.run_command", return_value=(True, "")) as mock_run:
                result = update_devenv(devenv_path, dry_run=True, logger=LOG)

        self.assertTrue(result.success)
        self.assertEqual(len(result.updates), 2)
        mock_run.assert_called_once_with(
            ["git", "restore", "devenv.lock"], cwd=devenv_path, timeout=600, env=None
        )

    def test_dry_run_restore_failure_is_warning(self):
        with TemporaryDirectory() as tmp:
            devenv_path = Path(tmp)
            lock_path = devenv_path / "devenv.lock"
            lock_path.write_text(LOCK_BEFORE)

            with patch(
                "dep_updater.steps.run_streaming_command",
                side_effect=self._rewrite_lock_on_update(lock_path),
            ), patch("dep_updater.steps.run_command", return_value=(False, "fatal: not a git repository")):
                with self.assertLogs(LOG, level="WARNING"):
                    result = update_devenv(devenv_path, dry_run=True, logger=LOG)

        self.assertTrue(result.success)
        self.assertEqual(
            result.warnings,
            ["Could not restore devenv.lock via git, changes will persist: fatal: not a git repository"],
        )

    def test_update_failure(self):
        with TemporaryDirectory() as tmp:
            devenv_path = Path(tmp)
            lock_path = devenv_path / "devenv.lock"
            lock_path.write_text(LOCK_BEFORE)

            with patch(
                "dep_updater.steps.run_streaming_command",
                side_effect=self._rewrite_lock_on_update(lock_path, returncode=1),
            ):
                result = update_devenv(devenv_path, logger=LOG)

            self.assertEqual(lock_path.read_text(), LOCK_BEFORE)

        self.assertFalse(result.success)
        self.assertEqual(result.error, "devenv update failed: error: cannot fetch input")

    def test_missing_lock_reports_nothing(self):
        with TemporaryDirectory() as tmp:
            with patch("dep_updater.steps.run_streaming_command", return_value=(0, "")):
                result = update_devenv(Path(tmp), logger=LOG)

        self.assertTrue(result.success)
        self.assertEqual(result.updates, [])

    def test_derivation_diff(self):
        with TemporaryDirectory() as tmp:
            devenv_path = Path(tmp)
            lock_path = devenv_path / "devenv.lock"
            lock_path.write_text(LOCK_BEFORE)

            infos = iter([
                (True, "- DEVENV_PROFILE: /nix/store/aaa-devenv-profile"),
                (True, "- DEVENV_PROFILE: /nix/store/bbb-devenv-profile"),
            ])

            def step_run(cmd, cwd=None, timeout=600, env=None):
                if cmd[:2] == ["nix", "shell"]:
                    return True, DIX_OUTPUT
                return True, ""

            with patch(
                "dep_updater.updaters.devenv.run_command",
                side_effect=lambda *a, **k: next(infos),
            ), patch(
                "dep_updater.steps.run_streaming_command",
                side_effect=self._rewrite_lock_on_update(lock_path),
            ), patch("dep_updater.steps.run_command", side_effect=step_run) as mock_run:
                result = update_devenv(devenv_path, use_derivation_diff=True, logger=LOG)

        self.assertTrue(result.success)
        self.assertEqual([u.name for u in result.updates], ["nodejs"])
        self.assertEqual([u.name for u in result.downgrades], ["openssl"])
        commands = [c.args[0] for c in mock_run.call_args_list]
        self.assertIn(["devenv", "shell", "--", "true"], commands)
        self.assertIn(
            [
                "nix", "shell", "github:faukah/dix", "-c", "dix",
                "/nix/store/aaa-devenv-profile", "/nix/store/bbb-devenv-profile",
            ],
            commands,
        )

    def test_identical_profiles_skip_lock_fallback(self):
        with TemporaryDirectory() as tmp:
            devenv_path = Path(tmp)
            lock_path = devenv_path / "devenv.lock"
            lock_path.write_text(LOCK_BEFORE)

            profile = (True, "DEVENV_PROFILE: /nix/store/same-profile")
            with patch("dep_updater.updaters.devenv.run_command", return_value=profile), patch(
                "dep_updater.steps.run_streaming_command",
                side_effect=self._rewrite_lock_on_update(lock_path),
            ), patch("dep_updater.steps.run_command", return_value=(True, "")):
                result = update_devenv(devenv_path, use_derivation_diff=True, logger=LOG)

        self.assertTrue(result.success)
        self.assertEqual(result.updates, [])

    def test_dix_failure_falls_back_to_lock(self):
        with TemporaryDirectory() as tmp:
            devenv_path = Path(tmp)
            lock_path = devenv_path / "devenv.lock"
            lock_path.write_text(LOCK_BEFORE)

            infos = iter([(True, "DEVENV_PROFILE: /nix/store/aaa"), (True, "DEVENV_PROFILE: /nix/store/bbb")])

            def step_run(cmd, cwd=None, timeout=600, env=None):
                if cmd[:2] == ["nix", "shell"]:
                    return False, "error: unable to download dix"
                return True, ""

            with patch(
                "dep_updater.updaters.devenv.run_command",
                side_effect=lambda *a, **k: next(infos),
            ), patch(
                "dep_updater.steps.run_streaming_command",
                side_effect=self._rewrite_lock_on_update(lock_path),
            ), patch("dep_updater.steps.run_command", side_effect=step_run):
                with self.assertLogs(LOG, level="WARNING"):
                    result = update_devenv(devenv_path, use_derivation_diff=True, logger=LOG)

        self.assertTrue(result.success)
        self.assertEqual([u.name for u in result.updates], ["nixpkgs", "git-hooks"])
        self.assertEqual(result.warnings, ["dix diff failed: error: unable to download dix"])

    def test_exception_without_message_uses_type_name(self):
        with TemporaryDirectory() as tmp:
            with patch("dep_updater.steps.run_streaming_command", side_effect=OSError()):
                with self.assertLogs(LOG, level="ERROR"):
                    result = update_devenv(Path(tmp), logger=LOG)

        self.assertFalse(result.success)
        self.assertEqual(result.error, "OSError")


class ProfilePathTests(unittest.TestCase):
    def test_parses_devenv_info(self):
        output = "# env\n- DEVENV_ROOT: /repo\n- DEVENV_PROFILE: /nix/store/xyz-devenv-profile\n"
        with patch("dep_updater.updaters.devenv.run_command", return_value=(True, output)) as mock_run:
            self.assertEqual(get_devenv_profile_path(Path("/repo")), "/nix/store/xyz-devenv-profile")

        mock_run.assert_called_once_with(["devenv", "info"], cwd=Path("/repo"), timeout=120)

    def test_missing_profile(self):
        with patch("dep_updater.updaters.devenv.run_command", return_value=(False, "devenv: command not found")):
            self.assertIsNone(get_devenv_profile_path(Path("/repo")))
        with patch("dep_updater.updaters.devenv.run_command", return_value=(True, "no profile here")):
            self.assertIsNone(get_devenv_profile_path(Path("/repo")))


if __name__ == "__main__":
    unittest.main()
