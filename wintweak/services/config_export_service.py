# wintweak/services/config_export_service.py
from datetime import datetime
from pathlib import Path

from wintweak.core.constants import (
    CONFIG_FILE_EXTENSION,
    CONFIG_FILE_VERSION,
    CUSTOMIZE_FEATURES,
    OPTIMIZE_FEATURES,
    SETTING_POWER_PLAN,
    USER_BACKUP_PREFIX,
    USER_BACKUP_TIMESTAMP_FORMAT,
    RAW_ACTIVE_PLAN_GUID,
    RAW_ACTIVE_PLAN_NAME,
)
from wintweak.models.app_model import AppItem
from wintweak.models.config_model import (
    ConfigSection,
    ConfigurationItem,
    FeatureGroupSection,
    UnifiedConfigurationFile,
)
from wintweak.models.setting_model import InputType, SettingDefinition, SettingStateResult
from wintweak.services.config_file_service import ConfigFileError, ConfigFileService
from wintweak.services.contracts import (
    CompatibleSettingsRegistry,
    DialogService,
    ExternalAppsItemsProvider,
    LocalizationService,
    SystemSettingsDiscoveryService,
    WindowsAppsItemsProvider,
)
from wintweak.utils.localization_utils import tr
from wintweak.utils.logger_utils import logger


class ConfigExportService:
    """Snapshots the live system into a configuration file."""

    def __init__(
        self,
        dialog_service: DialogService,
        localization_service: LocalizationService,
        compatible_settings_registry: CompatibleSettingsRegistry,
        discovery_service: SystemSettingsDiscoveryService,
        windows_apps_provider: WindowsAppsItemsProvider,
        external_apps_provider: ExternalAppsItemsProvider,
        config_file_service: ConfigFileService,
    ):
        # --- Injected Services ---
        self.dialog_service = dialog_service
        self.localization_service = localization_service
        self.compatible_settings_registry = compatible_settings_registry
        self.discovery_service = discovery_service
        self.windows_apps_provider = windows_apps_provider
        self.external_apps_provider = external_apps_provider
        self.config_file_service = config_file_service

    # --- Public Methods ---

    def create_configuration_from_system(
        self, is_backup: bool = False
    ) -> UnifiedConfigurationFile:
        """
        Builds a config from the current state of every compatible setting.
        Apps: the selected list items, or every list item for a backup.
        """
        optimize = self._build_feature_group(OPTIMIZE_FEATURES)
        customize = self._build_feature_group(CUSTOMIZE_FEATURES)

        return UnifiedConfigurationFile(
            version=CONFIG_FILE_VERSION,
            created_at=datetime.now().isoformat(timespec="seconds"),
            optimize=optimize,
            customize=customize,
            windows_apps=self._build_app_section(self.windows_apps_provider, is_backup),
            external_apps=self._build_app_section(self.external_apps_provider, is_backup),
        )

    def export_configuration(self, path: Path) -> bool:
        """Flow 4.1: Writes the current system state to the chosen path."""
        path = Path(path)
        if path.suffix != CONFIG_FILE_EXTENSION:
            path = path.with_suffix(CONFIG_FILE_EXTENSION)

        try:
            config = self.create_configuration_from_system()
            self.config_file_service.write_configuration(config, path)
        except ConfigFileError as e:
            logger.error(f"Failed to export configuration: {e}", exc_info=True)
            self.dialog_service.show_message(f"Error saving configuration: {e}", "Error")
            return False

        self.dialog_service.show_information(
            tr(self.localization_service, "Config_Export_Success_Message", str(path)),
            tr(self.localization_service, "Config_Export_Success_Title"),
        )
        return True

    def create_user_backup(self, backup_dir: Path) -> Path | None:
        """Writes UserBackup_<timestamp> into backup_dir. Silent: no dialogs."""
        timestamp = datetime.now().strftime(USER_BACKUP_TIMESTAMP_FORMAT)
        path = Path(backup_dir) / f"{USER_BACKUP_PREFIX}{timestamp}{CONFIG_FILE_EXTENSION}"
        try:
            config = self.create_configuration_from_system(is_backup=True)
            self.config_file_service.write_configuration(config, path)
        except ConfigFileError as e:
            logger.error(f"Failed to create user backup: {e}", exc_info=True)
            return None

        logger.info(f"User backup created at {path}")
        return path

    # --- Private Helpers ---

    def _build_feature_group(self, feature_ids: tuple[str, ...]) -> FeatureGroupSection:
        features = {}
        for feature_id in feature_ids:
            definitions = self.compatible_settings_registry.get_filtered_settings(feature_id)
            if not definitions:
                continue
            states = self.discovery_service.get_setting_states(list(definitions))
            items = []
            for setting in definitions:
                if setting.input_type == InputType.ACTION:
                    continue
                state = states.get(setting.id)
                if state is None or not state.success:
                    logger.warning(f"Skipping '{setting.id}' in export: state unavailable")
                    continue
                items.append(self._item_from_state(setting, state))
            if items:
                features[feature_id] = ConfigSection(is_included=True, items=items)
        return FeatureGroupSection(is_included=bool(features), features=features)

    @staticmethod
    def _item_from_state(
        setting: SettingDefinition, state: SettingStateResult
    ) -> ConfigurationItem:
        if setting.input_type == InputType.SELECTION:
            if setting.id == SETTING_POWER_PLAN:
                raw = state.raw_values or {}
                return ConfigurationItem(
                    id=setting.id,
                    name=setting.name,
                    input_type=setting.input_type,
                    power_plan_guid=raw.get(RAW_ACTIVE_PLAN_GUID),
                    power_plan_name=raw.get(RAW_ACTIVE_PLAN_NAME),
                )
            index = state.current_value if isinstance(state.current_value, int) else None
            return ConfigurationItem(
                id=setting.id,
                name=setting.name,
                input_type=setting.input_type,
                selected_index=index,
            )

        if setting.input_type == InputType.NUMERIC_RANGE:
            return ConfigurationItem(
                id=setting.id,
                name=setting.name,
                input_type=setting.input_type,
                power_settings={"ACValue": state.current_value},
            )

        return ConfigurationItem(
            id=setting.id,
            name=setting.name,
            is_selected=state.is_enabled,
            input_type=setting.input_type,
        )

    @staticmethod
    def _build_app_section(provider, include_all: bool) -> ConfigSection:
        if not provider.is_initialized:
            provider.load_items()
        apps: list[AppItem] = [
            app for app in provider.items if include_all or app.is_selected
        ]
        items = [
            ConfigurationItem(
                id=app.id,
                name=app.name,
                is_selected=True,
                appx_package_name=app.appx_package_name,
                capability_name=app.capability_name,
                optional_feature_name=app.optional_feature_name,
                win_get_package_id=app.win_get_package_id,
            )
            for app in apps
        ]
        return ConfigSection(is_included=bool(items), items=items)
