import json
import tempfile
import unittest
from pathlib import Path

from wintweak.models.config_model import (
    ConfigSection,
    ConfigurationItem,
    FeatureGroupSection,
    UnifiedConfigurationFile,
)
from wintweak.models.setting_model import BuildRange
from wintweak.services.config_file_service import ConfigFileService
from wintweak.services.config_load_service import ConfigLoadService

from tests.fakes import (
    FakeLocalizationService,
    FakeSettingsRegistry,
    FakeWindowsVersionService,
    RecordingDialogService,
    toggle,
)


def _privacy_config(*item_ids, windows_apps=None):
    return UnifiedConfigurationFile(
        optimize=FeatureGroupSection(
            is_included=True,
            features={
                "privacy": ConfigSection(
                    is_included=True,
                    items=[ConfigurationItem(id=i, is_selected=True) for i in item_ids],
                )
            },
        ),
        windows_apps=windows_apps or ConfigSection(),
    )


class TestCompatibilityFilter(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = FakeSettingsRegistry(
            settings={},
            bypassed={
                "privacy": [
                    toggle("legacy-telemetry", "Legacy Telemetry", is_windows10_only=True),
                    toggle("new-privacy", "New Privacy", is_windows11_only=True),
                    toggle("min-build", "Min Build", minimum_build_number=26100),
                    toggle("ranged", "Ranged", supported_build_ranges=(BuildRange(19041, 19045),)),
                    toggle("plain", "Plain"),
                ]
            },
        )
        self.dialogs = RecordingDialogService()
        self.service = ConfigLoadService(
            dialog_service=self.dialogs,
            localization_service=FakeLocalizationService(),
            windows_version_service=FakeWindowsVersionService(is_windows11=True, build_number=22631),
            compatible_settings_registry=self.registry,
            config_file_service=ConfigFileService(),
        )

    def test_win10_only_setting_is_reported_and_removed_on_windows11(self) -> None:
        config = _privacy_config("legacy-telemetry", "plain")

        self.assertEqual(
            self.service.detect_incompatible_settings(config),
            ["Legacy Telemetry (privacy)"],
        )
        filtered = self.service.filter_config_for_current_system(config)
        self.assertEqual([i.id for i in filtered.optimize.features["privacy"].items], ["plain"])

    def test_every_version_predicate_is_evaluated(self) -> None:
        config = _privacy_config("legacy-telemetry", "new-privacy", "min-build", "ranged", "plain")

        incompatible = self.service.detect_incompatible_settings(config)

        self.assertEqual(
            incompatible,
            ["Legacy Telemetry (privacy)", "Min Build (privacy)", "Ranged (privacy)"],
        )

    def test_unknown_items_and_app_sections_are_kept(self) -> None:
        apps = ConfigSection(is_included=True, items=[ConfigurationItem(id="app1", name="App")])
        config = _privacy_config("not-in-catalog", "legacy-telemetry", windows_apps=apps)

        filtered = self.service.filter_config_for_current_system(config)

        self.assertEqual(
            [i.id for i in filtered.optimize.features["privacy"].items], ["not-in-catalog"]
        )
        self.assertEqual(filtered.windows_apps, config.windows_apps)
        # The filtered config owns its lists
        self.assertIsNot(filtered.windows_apps.items, config.windows_apps.items)
        filtered.windows_apps.items.append(ConfigurationItem(id="app2"))
        self.assertEqual([i.id for i in config.windows_apps.items], ["app1"])
        self.assertEqual(len(config.optimize.features["privacy"].items), 2)

    def test_detection_does_not_modify_config(self) -> None:
        config = _privacy_config("legacy-telemetry")
        self.service.detect_incompatible_settings(config)
        self.assertEqual(len(config.optimize.features["privacy"].items), 1)


class TestLoadingFiles(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_dir = Path(self._tmp.name)
        self.dialogs = RecordingDialogService()
        self.service = ConfigLoadService(
            dialog_service=self.dialogs,
            localization_service=FakeLocalizationService(),
            windows_version_service=FakeWindowsVersionService(),
            compatible_settings_registry=FakeSettingsRegistry(),
            config_file_service=ConfigFileService(),
        )

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write(self, name, data) -> Path:
        path = self.tmp_dir / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_loads_and_migrates_current_version(self) -> None:
        path = self._write(
            "mine.wtcfg",
            {
                "Version": "2.0",
                "Customize": {
                    "IsIncluded": True,
                    "Features": {
                        "taskbar": {
                            "IsIncluded": True,
                            "Items": [{"Id": "taskbar-transparent", "IsSelected": True, "InputType": "Toggle"}],
                        }
                    },
                },
            },
        )

        config = self.service.load_configuration_from_file(path)

        self.assertIsNotNone(config)
        self.assertEqual(config.customize.features["taskbar"].items[0].selected_index, 1)
        self.assertEqual(self.dialogs.messages, [])

    def test_rejects_unsupported_version(self) -> None:
        path = self._write("old.wtcfg", {"Version": "1.0"})

        self.assertIsNone(self.service.load_configuration_from_file(path))
        self.assertEqual(len(self.dialogs.informations), 1)
        message, title = self.dialogs.informations[0]
        self.assertIn("1.0", message)
        self.assertEqual(title, "Incompatible Configuration")

    def test_unreadable_file_shows_error(self) -> None:
        path = self.tmp_dir / "broken.wtcfg"
        path.write_text("garbage", encoding="utf-8")

        self.assertIsNone(self.service.load_configuration_from_file(path))
        self.assertEqual(self.dialogs.messages[0][1], "Error")

    def test_user_backup_picks_newest_file(self) -> None:
        self._write("UserBackup_20250101_080000.wtcfg", {"Version": "2.0", "CreatedAt": "old"})
        self._write("UserBackup_20250301_080000.wtcfg", {"Version": "2.0", "CreatedAt": "new"})
        self._write("SomethingElse.wtcfg", {"Version": "2.0", "CreatedAt": "other"})

        config = self.service.load_user_backup_configuration(self.tmp_dir)

        self.assertEqual(config.created_at, "new")

    def test_missing_user_backup_shows_not_found(self) -> None:
        self.assertIsNone(self.service.load_user_backup_configuration(self.tmp_dir / "missing"))
        self.assertEqual(self.dialogs.messages, [("No backup configuration files found.", "No Backup Found")])


if __name__ == "__main__":
    unittest.main()
