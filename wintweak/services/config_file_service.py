# wintweak/services/config_file_service.py
import dataclasses
import json
from pathlib import Path
from typing import Any

from wintweak.core.constants import SETTING_TASKBAR_TRANSPARENT
from wintweak.models.config_model import (
    ConfigSection,
    ConfigurationItem,
    FeatureGroupSection,
    UnifiedConfigurationFile,
)
from wintweak.models.setting_model import InputType
from wintweak.utils.logger_utils import logger


class ConfigFileError(IOError):
    pass


class ConfigFileService:
    """Reads, writes and migrates configuration files (JSON, version 2.0)."""

    # --- Public Methods ---

    def read_configuration(self, path: Path) -> UnifiedConfigurationFile:
        """
        Parses a configuration file. Raises ConfigFileError when the file cannot
        be read or is not a valid configuration document.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigFileError(f"Could not read configuration '{path}': {e}") from e

        if not isinstance(data, dict):
            raise ConfigFileError(f"Configuration '{path}' is not a JSON object.")

        try:
            return self.from_dict(data)
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigFileError(f"Malformed configuration '{path}': {e}") from e

    def write_configuration(self, config: UnifiedConfigurationFile, path: Path):
        """Serializes the configuration to disk with a human-readable indent."""
        logger.info(f"Saving configuration to {path}...")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(config), f, indent=2)
        except (OSError, TypeError) as e:
            raise ConfigFileError(f"Failed to write configuration '{path}': {e}") from e
        logger.info(f"Configuration saved successfully to {path}.")

    def migrate_config(
        self, config: UnifiedConfigurationFile
    ) -> UnifiedConfigurationFile:
        """
        Upgrades legacy items to their current shape. Currently converts the
        'taskbar-transparent' Toggle into a Selection (1 = transparent, 0 = default).
        """
        return dataclasses.replace(
            config,
            optimize=self._migrate_group(config.optimize),
            customize=self._migrate_group(config.customize),
            windows_apps=self._migrate_section(config.windows_apps, "WindowsApps"),
            external_apps=self._migrate_section(config.external_apps, "ExternalApps"),
        )

    # --- Serialization ---

    def to_dict(self, config: UnifiedConfigurationFile) -> dict[str, Any]:
        data: dict[str, Any] = {"Version": config.version}
        if config.created_at:
            data["CreatedAt"] = config.created_at
        data["Optimize"] = self._group_to_dict(config.optimize)
        data["Customize"] = self._group_to_dict(config.customize)
        data["WindowsApps"] = self._section_to_dict(config.windows_apps)
        data["ExternalApps"] = self._section_to_dict(config.external_apps)
        return data

    def from_dict(self, data: dict[str, Any]) -> UnifiedConfigurationFile:
        return UnifiedConfigurationFile(
            version=data.get("Version"),
            created_at=data.get("CreatedAt"),
            optimize=self._group_from_dict(data.get("Optimize")),
            customize=self._group_from_dict(data.get("Customize")),
            windows_apps=self._section_from_dict(data.get("WindowsApps")),
            external_apps=self._section_from_dict(data.get("ExternalApps")),
        )

    # --- Private Helpers ---

    def _group_to_dict(self, group: FeatureGroupSection) -> dict[str, Any]:
        return {
            "IsIncluded": group.is_included,
            "Features": {
                feature_id: self._section_to_dict(section)
                for feature_id, section in group.features.items()
            },
        }

    def _section_to_dict(self, section: ConfigSection) -> dict[str, Any]:
        return {
            "IsIncluded": section.is_included,
            "Items": [self._item_to_dict(item) for item in section.items],
        }

    def _item_to_dict(self, item: ConfigurationItem) -> dict[str, Any]:
        data: dict[str, Any] = {"Id": item.id, "Name": item.name}
        if item.is_selected is not None:
            data["IsSelected"] = item.is_selected
        data["InputType"] = item.input_type.value

        # Optional payloads are omitted when empty
        optional = {
            "SelectedIndex": item.selected_index,
            "PowerSettings": item.power_settings,
            "PowerPlanGuid": item.power_plan_guid,
            "PowerPlanName": item.power_plan_name,
            "CustomStateValues": item.custom_state_values,
            "AppxPackageName": item.appx_package_name,
            "CapabilityName": item.capability_name,
            "OptionalFeatureName": item.optional_feature_name,
            "SubPackages": list(item.sub_packages) if item.sub_packages else None,
            "WinGetPackageId": item.win_get_package_id,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    def _group_from_dict(self, data: dict[str, Any] | None) -> FeatureGroupSection:
        if not data:
            return FeatureGroupSection()
        features = data.get("Features") or {}
        return FeatureGroupSection(
            is_included=bool(data.get("IsIncluded", False)),
            features={
                feature_id: self._section_from_dict(section)
                for feature_id, section in features.items()
            },
        )

    def _section_from_dict(self, data: dict[str, Any] | None) -> ConfigSection:
        if not data:
            return ConfigSection()
        return ConfigSection(
            is_included=bool(data.get("IsIncluded", False)),
            items=[self._item_from_dict(item) for item in data.get("Items") or []],
        )

    def _item_from_dict(self, data: dict[str, Any]) -> ConfigurationItem:
        sub_packages = data.get("SubPackages")
        return ConfigurationItem(
            id=data.get("Id") or "",
            name=data.get("Name") or "",
            is_selected=data.get("IsSelected"),
            input_type=InputType(data.get("InputType", InputType.TOGGLE.value)),
            selected_index=data.get("SelectedIndex"),
            power_settings=data.get("PowerSettings"),
            power_plan_guid=data.get("PowerPlanGuid"),
            power_plan_name=data.get("PowerPlanName"),
            custom_state_values=data.get("CustomStateValues"),
            appx_package_name=data.get("AppxPackageName"),
            capability_name=data.get("CapabilityName"),
            optional_feature_name=data.get("OptionalFeatureName"),
            sub_packages=tuple(sub_packages) if sub_packages else None,
            win_get_package_id=data.get("WinGetPackageId"),
        )

    def _migrate_group(self, group: FeatureGroupSection) -> FeatureGroupSection:
        features = {
            feature_id: self._migrate_section(section, feature_id)
            for feature_id, section in group.features.items()
        }
        return dataclasses.replace(group, features=features)

    def _migrate_section(self, section: ConfigSection, section_name: str) -> ConfigSection:
        items = [self._migrate_item(item, section_name) for item in section.items]
        return dataclasses.replace(section, items=items)

    def _migrate_item(self, item: ConfigurationItem, feature_id: str) -> ConfigurationItem:
        if not item.id:
            return item

        if (
            item.id == SETTING_TASKBAR_TRANSPARENT
            and item.input_type == InputType.TOGGLE
        ):
            new_index = 1 if item.is_selected else 0
            logger.info(
                f"Migrated '{item.id}' in '{feature_id}' from Toggle to Selection (index {new_index})"
            )
            return dataclasses.replace(
                item,
                input_type=InputType.SELECTION,
                selected_index=new_index,
                is_selected=None,
            )
        return item
