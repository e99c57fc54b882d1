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
from wintweak.models.setting_model import InputType
from wintweak.services.config_file_service import ConfigFileError, ConfigFileService


class TestConfigFileService(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_dir = Path(self._tmp.name)
        self.service = ConfigFileService()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write_json(self, name, data) -> Path:
        path = self.tmp_dir / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_reads_pascal_case_document(self) -> None:
        path = self._write_json(
            "config.wtcfg",
            {
                "Version": "2.0",
                "Optimize": {
                    "IsIncluded": True,
                    "Features": {
                        "power": {
                            "IsIncluded": True,
                            "Items": [
                                {
                                    "Id": "power-plan-selection",
                                    "Name": "Power Plan",
                                    "InputType": "Selection",
                                    "PowerPlanGuid": "381b4222-f694-41f0-9685-ff5bb260df2e",
                                    "PowerPlanName": "Balanced",
                                }
                            ],
                        }
                    },
                },
                "WindowsApps": {
                    "IsIncluded": True,
                    "Items": [{"Id": "app1", "Name": "App", "AppxPackageName": "Pkg.App"}],
                },
            },
        )

        config = self.service.read_configuration(path)

        self.assertEqual(config.version, "2.0")
        item = config.optimize.features["power"].items[0]
        self.assertEqual(item.input_type, InputType.SELECTION)
        self.assertEqual(item.power_plan_guid, "381b4222-f694-41f0-9685-ff5bb260df2e")
        self.assertEqual(config.windows_apps.items[0].appx_package_name, "Pkg.App")
        self.assertFalse(config.customize.is_included)
        self.assertEqual(config.external_apps.items, [])

    def test_invalid_json_raises_config_file_error(self) -> None:
        path = self.tmp_dir / "broken.wtcfg"
        path.write_text("{ not json", encoding="utf-8")
        with self.assertRaises(ConfigFileError):
            self.service.read_configuration(path)

    def test_non_object_document_raises_config_file_error(self) -> None:
        path = self._write_json("list.wtcfg", [1, 2, 3])
        with self.assertRaises(ConfigFileError):
            self.service.read_configuration(path)

    def test_unknown_input_type_raises_config_file_error(self) -> None:
        path = self._write_json(
            "bad_type.wtcfg",
            {
                "Version": "2.0",
                "WindowsApps": {"IsIncluded": True, "Items": [{"Id": "x", "InputType": "Slider"}]},
            },
        )
        with self.assertRaises(ConfigFileError):
            self.service.read_configuration(path)

    def test_missing_file_raises_config_file_error(self) -> None:
        with self.assertRaises(ConfigFileError):
            self.service.read_configuration(self.tmp_dir / "nope.wtcfg")

    def test_written_file_reads_back_with_same_items(self) -> None:
        config = UnifiedConfigurationFile(
            created_at="2026-01-02T03:04:05",
            customize=FeatureGroupSection(
                is_included=True,
                features={
                    "taskbar": ConfigSection(
                        is_included=True,
                        items=[
                            ConfigurationItem(id="taskbar-alignment", name="Align", is_selected=True),
                            ConfigurationItem(
                                id="taskbar-size",
                                name="Size",
                                input_type=InputType.SELECTION,
                                selected_index=2,
                            ),
                        ],
                    )
                },
            ),
        )
        path = self.tmp_dir / "nested" / "out.wtcfg"

        self.service.write_configuration(config, path)
        raw = json.loads(path.read_text(encoding="utf-8"))
        loaded = self.service.read_configuration(path)

        # Empty optional payloads are not written
        self.assertNotIn("SelectedIndex", raw["Customize"]["Features"]["taskbar"]["Items"][0])
        self.assertEqual(loaded.customize.features["taskbar"].items, config.customize.features["taskbar"].items)
        self.assertEqual(loaded.created_at, "2026-01-02T03:04:05")

    def test_migrates_taskbar_transparent_toggle_to_selection(self) -> None:
        config = UnifiedConfigurationFile(
            customize=FeatureGroupSection(
                is_included=True,
                features={
                    "taskbar": ConfigSection(
                        is_included=True,
                        items=[
                            ConfigurationItem(id="taskbar-transparent", is_selected=True),
                            ConfigurationItem(id="taskbar-other", is_selected=True),
                        ],
                    )
                },
            )
        )

        migrated = self.service.migrate_config(config)
        items = migrated.customize.features["taskbar"].items

        self.assertEqual(items[0].input_type, InputType.SELECTION)
        self.assertEqual(items[0].selected_index, 1)
        self.assertIsNone(items[0].is_selected)
        self.assertEqual(items[1], config.customize.features["taskbar"].items[1])
        # The source snapshot is untouched
        self.assertEqual(config.customize.features["taskbar"].items[0].input_type, InputType.TOGGLE)

    def test_migration_maps_unselected_toggle_to_default_index(self) -> None:
        config = UnifiedConfigurationFile(
            customize=FeatureGroupSection(
                features={
                    "taskbar": ConfigSection(
                        items=[ConfigurationItem(id="taskbar-transparent", is_selected=False)]
                    )
                }
            )
        )
        migrated = self.service.migrate_config(config)
        self.assertEqual(migrated.customize.features["taskbar"].items[0].selected_index, 0)

    def test_migration_leaves_items_without_id_alone(self) -> None:
        item = ConfigurationItem(id="", name="Nameless")
        config = UnifiedConfigurationFile(windows_apps=ConfigSection(items=[item]))
        migrated = self.service.migrate_config(config)
        self.assertEqual(migrated.windows_apps.items, [item])


if __name__ == "__main__":
    unittest.main()
