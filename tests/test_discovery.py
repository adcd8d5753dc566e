import asyncio
import os
import tempfile
import unittest

from launcher_core.registry.app_discovery import ApplicationDiscovery
from launcher_core.registry.bundle_metadata import BundleMetadataReader
from launcher_core.registry.directory_scanner import DirectoryScanner
from launcher_core.registry.icon_extractor import IconExtractor
from launcher_core.registry.settings_discovery import SettingsDiscovery, is_helper_extension
from launcher_core.schemas import CommandCategory
from tests.helpers import FAKE_PLUTIL, FakeIcons, make_bundle, write_script


class TestApplicationDiscovery(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name
        self.system_apps = os.path.join(self.root, "System", "Applications")
        self.user_apps = os.path.join(self.root, "home", "Applications")
        os.makedirs(self.system_apps)
        os.makedirs(self.user_apps)

    def tearDown(self):
        self._tmp.cleanup()

    def _discover(self, icons, dirs=None, batch_size=15):
        discovery = ApplicationDiscovery(
            DirectoryScanner(), icons, dirs or [self.system_apps, self.user_apps],
            batch_size=batch_size,
        )
        return asyncio.run(discovery.discover())

    def test_empty_directories_yield_nothing(self):
        missing = os.path.join(self.root, "nope")
        self.assertEqual(self._discover(FakeIcons(), dirs=[self.system_apps, missing]), [])

    def test_builds_application_entries(self):
        chrome = make_bundle(self.system_apps, "Google Chrome.app")
        apps = self._discover(FakeIcons({chrome: "data:image/png;base64,AAAA"}))

        self.assertEqual(len(apps), 1)
        entry = apps[0]
        self.assertEqual(entry.id, "app-google-chrome")
        self.assertEqual(entry.title, "Google Chrome")
        self.assertEqual(entry.keywords, ["google chrome"])
        self.assertEqual(entry.category, CommandCategory.APPLICATION)
        self.assertEqual(entry.target, chrome)
        self.assertEqual(entry.icon, "data:image/png;base64,AAAA")

    def test_first_directory_wins_on_duplicate_names(self):
        first = make_bundle(self.system_apps, "Notes.app")
        make_bundle(self.user_apps, "notes.app")
        apps = self._discover(FakeIcons())
        self.assertEqual([a.target for a in apps], [first])

    def test_non_bundles_are_ignored(self):
        make_bundle(self.system_apps, "Calculator.app")
        with open(os.path.join(self.system_apps, "README.txt"), "w") as f:
            f.write("x")
        self.assertEqual([a.title for a in self._discover(FakeIcons())], ["Calculator"])

    def test_batches_cover_every_bundle(self):
        for i in range(7):
            make_bundle(self.user_apps, f"App{i}.app")
        apps = self._discover(FakeIcons(), batch_size=3)
        self.assertEqual(sorted(a.title for a in apps), [f"App{i}" for i in range(7)])

    def test_unreadable_manifest_still_yields_entry(self):
        broken = make_bundle(self.system_apps, "Broken.app", raw_manifest="{{{ not a plist")
        metadata = BundleMetadataReader(os.path.join(self.root, "missing-plutil"))
        icons = IconExtractor(metadata, sips_path=os.path.join(self.root, "missing-sips"))

        apps = self._discover(icons)

        self.assertEqual(len(apps), 1)
        self.assertEqual(apps[0].id, "app-broken")
        self.assertEqual(apps[0].title, "Broken")
        self.assertEqual(apps[0].target, broken)
        self.assertIsNone(apps[0].icon)

    def test_failing_item_does_not_abort_batch(self):
        bad = make_bundle(self.system_apps, "Bad.app")
        make_bundle(self.system_apps, "Good.app")

        class _Icons(FakeIcons):
            async def extract(self, bundle_path):
                if bundle_path == bad:
                    raise RuntimeError("boom")
                return None

        self.assertEqual([a.title for a in self._discover(_Icons())], ["Good"])


@unittest.skipUnless(os.name == "posix", "stand-in tools are shell scripts")
class TestSettingsDiscovery(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name
        self.ext_dir = os.path.join(self.root, "ExtensionKit", "Extensions")
        self.pane_dir = os.path.join(self.root, "PreferencePanes")
        self.apps_dir = os.path.join(self.root, "Applications")
        for d in (self.ext_dir, self.pane_dir, self.apps_dir):
            os.makedirs(d)
        self.plutil = write_script(self.root, "plutil", FAKE_PLUTIL)
        self.settings_app = make_bundle(self.apps_dir, "System Settings.app")

    def tearDown(self):
        self._tmp.cleanup()

    def _ext(self, file_name, **info):
        return make_bundle(self.ext_dir, file_name, info=info)

    def _pane(self, file_name):
        return make_bundle(self.pane_dir, file_name)

    def _discover(self, icons):
        discovery = SettingsDiscovery(
            DirectoryScanner(),
            BundleMetadataReader(self.plutil),
            icons,
            extension_dir=self.ext_dir,
            preference_pane_dirs=[self.pane_dir, os.path.join(self.root, "missing")],
            settings_app_paths=[os.path.join(self.root, "nope.app"), self.settings_app],
        )
        return asyncio.run(discovery.discover())

    def test_merges_sources_with_extension_priority(self):
        bt_ext = self._ext("BluetoothSettings.appex",
                           CFBundleDisplayName="Bluetooth",
                           CFBundleIdentifier="com.apple.BluetoothSettings")
        bt_pane = self._pane("Bluetooth.prefPane")
        self._pane("DateAndTime.prefPane")
        icons = FakeIcons({bt_ext: "ext-icon", bt_pane: "pane-icon", self.settings_app: "shared"})

        panels = {p.title: p for p in self._discover(icons)}

        self.assertEqual(set(panels), {"Bluetooth", "Date & Time"})
        self.assertEqual(panels["Bluetooth"].target, "com.apple.BluetoothSettings")
        self.assertEqual(panels["Bluetooth"].icon, "ext-icon")
        self.assertEqual(panels["Date & Time"].target, "DateAndTime")
        self.assertEqual(panels["Date & Time"].icon, "shared")
        self.assertEqual(panels["Date & Time"].id, "settings-date-time")
        self.assertEqual(panels["Date & Time"].keywords,
                         ["system settings", "preferences", "date & time"])
        self.assertNotIn(bt_pane, icons.calls)

    def test_extension_filters(self):
        self._ext("Wallpaper.appex", CFBundleName="Wallpaper",
                  CFBundleIdentifier="com.apple.Wallpaper-Settings.extension")
        self._ext("KeyboardSettingsIntents.appex", CFBundleDisplayName="Keyboard Intents",
                  CFBundleIdentifier="com.apple.keyboard.intents")
        self._ext("BatteryPrefs.appex", CFBundleDisplayName="Battery",
                  CFBundleIdentifier="com.apple.battery.widget")
        self._ext("Random.appex", CFBundleDisplayName="Random Thing",
                  CFBundleIdentifier="com.apple.random")
        self._ext("LoginItems.appex", CFBundleDisplayName="Login Items Settings",
                  CFBundleIdentifier="com.apple.LoginItems-Settings.extension")
        self._ext("ScreenTimeSettings.appex", CFBundleDisplayName="ScreenTimeSettingsExtension",
                  CFBundleIdentifier="com.apple.Screen-Time-Settings.extension")
        self._ext("APref.appex", CFBundleDisplayName="ASettings", CFBundleIdentifier="com.apple.a")
        make_bundle(self.ext_dir, "NoManifestSettings.appex")

        titles = sorted(p.title for p in self._discover(FakeIcons()))

        self.assertEqual(titles, ["Login Items", "Screen Time", "Wallpaper"])

    def test_extension_without_identifier_falls_back_to_file_name(self):
        self._ext("SoundSettings.appex", CFBundleDisplayName="Sound")
        panels = self._discover(FakeIcons())
        self.assertEqual([(p.title, p.target) for p in panels], [("Sound", "SoundSettings")])

    def test_legacy_names_are_normalized_and_deduplicated(self):
        self._pane("Expose.prefPane")
        self._pane("DesktopScreenEffectsPref.prefPane")
        self._pane("DesktopScreenEffects.prefPane")

        panels = self._discover(FakeIcons())
        titles = [p.title for p in panels]

        self.assertEqual(sorted(titles), ["Desktop & Screen Saver", "Mission Control"])
        self.assertEqual(len({t.lower() for t in titles}), len(titles))
        for p in panels:
            self.assertEqual(p.category, CommandCategory.SETTINGS_PANEL)

    def test_nothing_installed(self):
        self.assertEqual(self._discover(FakeIcons()), [])


class TestHelperDetection(unittest.TestCase):

    def test_helpers(self):
        self.assertTrue(is_helper_extension("Siri Intents", "com.apple.siri"))
        self.assertTrue(is_helper_extension("Weather Widget", "com.apple.weather"))
        self.assertTrue(is_helper_extension("AirPodsDeviceExpert", "com.apple.airpods"))
        self.assertTrue(is_helper_extension("Focus", "com.apple.focus.intents"))
        self.assertFalse(is_helper_extension("Bluetooth", "com.apple.BluetoothSettings"))


if __name__ == "__main__":
    unittest.main()
