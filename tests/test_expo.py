import json
import sys
import unittest
import urllib.error
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch


def _add_dep_updater_path():
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_add_dep_updater_path()

from dep_updater.errors import DepUpdaterError, ExpoFetchError  # noqa: E402
from dep_updater.expo import (  # noqa: E402
    check_for_expo_update,
    fetch_expo_versions,
    filter_critical_versions,
    get_critical_packages,
    get_current_expo_sdk,
    get_latest_expo_sdk,
)
from dep_updater.models import ExpoPackageVersions  # noqa: E402

BUNDLED = {
    "expo-updates": "~0.27.1",
    "expo-status-bar": "~2.0.1",
    "react-native-reanimated": "~3.16.1",
    "@types/react": "~18.3.12",
}
EXPO_PACKAGE_JSON = {
    "name": "expo",
    "version": "52.0.11",
    "peerDependencies": {"react": "*", "react-native": "*"},
}


def _fetch_by_url(responses):
    def _fetch(url, allow_missing=False, timeout=15):
        for suffix, value in responses.items():
            if url.endswith(suffix):
                if isinstance(value, Exception):
                    raise value
                return value
        raise AssertionError(f"unexpected url {url}")

    return _fetch


class CurrentSdkTests(unittest.TestCase):
    def _write(self, tmp: str, data) -> Path:
        path = Path(tmp) / "package.json"
        path.write_text(json.dumps(data))
        return path

    def test_dependencies_then_dev_dependencies(self):
        with TemporaryDirectory() as tmp:
            path = self._write(tmp, {"dependencies": {"expo": "~52.0.11"}})
            self.assertEqual(get_current_expo_sdk(path), "52.0.11")

            path = self._write(tmp, {"devDependencies": {"expo": "^51.0.0"}})
            self.assertEqual(get_current_expo_sdk(path), "51.0.0")

    def test_no_expo(self):
        with TemporaryDirectory() as tmp:
            path = self._write(tmp, {"dependencies": {"react": "19.0.0"}})
            self.assertIsNone(get_current_expo_sdk(path))

    def test_unreadable_manifest(self):
        with TemporaryDirectory() as tmp:
            with self.assertLogs("dep_updater.expo.sdk_checker", level="ERROR"):
                self.assertIsNone(get_current_expo_sdk(Path(tmp) / "package.json"))


class LatestSdkTests(unittest.TestCase):
    def test_latest_from_registry(self):
        with patch("dep_updater.expo.sdk_checker.fetch_json", return_value={"version": "53.0.4"}) as mock_fetch:
            latest = get_latest_expo_sdk()

        mock_fetch.assert_called_once_with("https://registry.npmjs.org/expo/latest")
        self.assertEqual(latest.version, "53.0.4")
        self.assertTrue(latest.is_latest)
        self.assertEqual(latest.changelog_url, "https://expo.dev/changelog/53")

    def test_network_failure_raises(self):
        error = urllib.error.URLError("offline")
        with patch("dep_updater.expo.sdk_checker.fetch_json", side_effect=error):
            with self.assertRaises(ExpoFetchError) as ctx:
                get_latest_expo_sdk()

        self.assertIsInstance(ctx.exception, DepUpdaterError)

    def test_malformed_response_raises(self):
        with patch("dep_updater.expo.sdk_checker.fetch_json", return_value={"name": "expo"}):
            with self.assertRaises(ExpoFetchError):
                get_latest_expo_sdk()

    def test_check_for_update(self):
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "package.json"
            path.write_text(json.dumps({"dependencies": {"expo": "~52.0.11"}}))

            with patch("dep_updater.expo.sdk_checker.fetch_json", return_value={"version": "53.0.4"}):
                has_update, current, latest = check_for_expo_update(path)
            self.assertTrue(has_update)
            self.assertEqual(current, "52.0.11")
            self.assertEqual(latest.version, "53.0.4")

            with patch("dep_updater.expo.sdk_checker.fetch_json", return_value={"version": "52.0.11"}):
                has_update, _current, _latest = check_for_expo_update(path)
            self.assertFalse(has_update)

    def test_check_without_expo(self):
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "package.json"
            path.write_text("{}")
            with patch("dep_updater.expo.sdk_checker.fetch_json", return_value={"version": "53.0.4"}):
                self.assertEqual(check_for_expo_update(path)[:2], (False, None))


class FetchExpoVersionsTests(unittest.TestCase):
    def test_merges_peers_and_bundled_modules(self):
        package_json = {"peerDependencies": {"react": "^18.3.1", "react-native": "~0.76.3"}}
        fetch = _fetch_by_url({
            "sdk-52/packages/expo/bundledNativeModules.json": BUNDLED,
            "sdk-52/packages/expo/package.json": package_json,
        })
        with patch("dep_updater.expo.versions_fetcher.fetch_json", side_effect=fetch):
            versions = fetch_expo_versions("52.0.11")

        self.assertEqual(versions.sdk_version, "52.0.11")
        self.assertEqual(versions.packages["react"], "18.3.1")
        self.assertEqual(versions.packages["react-native"], "0.76.3")
        self.assertEqual(versions.packages["expo"], "~52.0.11")
        self.assertEqual(versions.packages["expo-updates"], "~0.27.1")
        self.assertEqual(versions.packages["react-native-reanimated"], "~3.16.1")

    def test_bundled_map_wins(self):
        fetch = _fetch_by_url({
            "bundledNativeModules.json": {"react": "18.3.1"},
            "package.json": EXPO_PACKAGE_JSON,
        })
        with patch("dep_updater.expo.versions_fetcher.fetch_json", side_effect=fetch):
            versions = fetch_expo_versions("52.0.0")

        self.assertEqual(versions.packages["react"], "18.3.1")

    def test_missing_package_json_uses_defaults(self):
        fetch = _fetch_by_url({
            "bundledNativeModules.json": BUNDLED,
            "package.json": None,
        })
        with patch("dep_updater.expo.versions_fetcher.fetch_json", side_effect=fetch):
            versions = fetch_expo_versions("52.0.0")

        self.assertEqual(versions.packages["react"], "19.0.0")
        self.assertEqual(versions.packages["react-native"], "0.76.0")

    def test_network_failure_is_fatal(self):
        fetch = _fetch_by_url({
            "bundledNativeModules.json": urllib.error.URLError("offline"),
        })
        with patch("dep_updater.expo.versions_fetcher.fetch_json", side_effect=fetch):
            with self.assertRaises(ExpoFetchError):
                fetch_expo_versions("52.0.0")

    def test_server_error_on_package_json_is_fatal(self):
        server_error = urllib.error.HTTPError("url", 503, "Service Unavailable", {}, None)
        fetch = _fetch_by_url({
            "bundledNativeModules.json": BUNDLED,
            "package.json": server_error,
        })
        with patch("dep_updater.expo.versions_fetcher.fetch_json", side_effect=fetch):
            with self.assertRaises(ExpoFetchError):
                fetch_expo_versions("52.0.0")


class CriticalPackagesTests(unittest.TestCase):
    def test_allow_list(self):
        self.assertEqual(
            get_critical_packages(),
            [
                "react",
                "react-native",
                "expo",
                "@types/react",
                "@types/react-native",
                "expo-modules-core",
                "expo-updates",
                "expo-splash-screen",
                "expo-status-bar",
            ],
        )

    def test_filter_keeps_allow_list_order(self):
        versions = ExpoPackageVersions(
            sdk_version="52.0.0",
            packages={
                "expo-status-bar": "~2.0.1",
                "react-native-reanimated": "~3.16.1",
                "react": "18.3.1",
                "expo": "~52.0.0",
            },
        )
        self.assertEqual(
            list(filter_critical_versions(versions).items()),
            [("react", "18.3.1"), ("expo", "~52.0.0"), ("expo-status-bar", "~2.0.1")],
        )


if __name__ == "__main__":
    unittest.main()
