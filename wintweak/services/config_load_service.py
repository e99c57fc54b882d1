# wintweak/services/config_load_service.py
import copy
import dataclasses
from pathlib import Path

from wintweak.core.constants import (
    CONFIG_FILE_EXTENSION,
    CONFIG_FILE_VERSION,
    USER_BACKUP_PREFIX,
)
from wintweak.models.config_model import (
    ConfigSection,
    FeatureGroupSection,
    UnifiedConfigurationFile,
)
from wintweak.models.setting_model import SettingDefinition
from wintweak.services.config_file_service import ConfigFileError, ConfigFileService
from wintweak.services.contracts import (
    CompatibleSettingsRegistry,
    DialogService,
    LocalizationService,
    WindowsVersionService,
)
from wintweak.utils.localization_utils import tr
from wintweak.utils.logger_utils import logger


class ConfigLoadService:
    """Loads configuration files and drops settings the running OS cannot apply."""

    def __init__(
        self,
        dialog_service: DialogService,
        localization_service: LocalizationService,
        windows_version_service: WindowsVersionService,
        compatible_settings_registry: CompatibleSettingsRegistry,
        config_file_service: ConfigFileService,
    ):
        # --- Injected Services ---
        self.dialog_service = dialog_service
        self.localization_service = localization_service
        self.windows_version_service = windows_version_service
        self.compatible_settings_registry = compatible_settings_registry
        self.config_file_service = config_file_service

    # --- Public Methods: Loading ---

    def load_configuration_from_file(
        self, path: Path
    ) -> UnifiedConfigurationFile | None:
        """
        Reads and migrates a configuration file. Returns None (after telling the
        user) when the file is unreadable or has an unsupported version.
        """
        try:
            loaded = self.config_file_service.read_configuration(Path(path))
        except ConfigFileError as e:
            logger.error(f"Failed to load configuration file: {e}")
            self.dialog_service.show_message(
                f"Failed to load configuration file: {e}", "Error"
            )
            return None

        loaded = self.config_file_service.migrate_config(loaded)

        if loaded.version != CONFIG_FILE_VERSION:
            version_text = loaded.version or "unknown"
            self.dialog_service.show_information(
                tr(self.localization_service, "Config_Unsupported_Message", version_text),
                tr(self.localization_service, "Config_Unsupported_Title"),
            )
            logger.warning(f"Rejected incompatible config version: {loaded.version}")
            return None

        logger.info(f"Loaded config v{loaded.version} from {path}")
        return loaded

    def load_user_backup_configuration(
        self, backup_dir: Path
    ) -> UnifiedConfigurationFile | None:
        """Loads the newest UserBackup_* file from the backup folder."""
        backup_dir = Path(backup_dir)
        backup_files = []
        if backup_dir.is_dir():
            backup_files = sorted(
                backup_dir.glob(f"{USER_BACKUP_PREFIX}*{CONFIG_FILE_EXTENSION}"),
                reverse=True,
            )

        if not backup_files:
            self.dialog_service.show_message(
                tr(self.localization_service, "Config_Backup_NotFound"),
                tr(self.localization_service, "Config_Backup_NotFound_Title"),
            )
            return None

        file_path = backup_files[0]
        logger.info(f"Loading user backup configuration from {file_path}")
        try:
            config = self.config_file_service.read_configuration(file_path)
        except ConfigFileError as e:
            logger.error(f"Error loading user backup configuration: {e}")
            self.dialog_service.show_message(
                f"Error loading backup configuration: {e}", "Error"
            )
            return None

        logger.info("Successfully loaded user backup configuration")
        return self.config_file_service.migrate_config(config)

    # --- Public Methods: Compatibility ---

    def detect_incompatible_settings(
        self, config: UnifiedConfigurationFile
    ) -> list[str]:
        """
        Returns "{Name} ({module})" for every config item whose definition fails
        a version predicate on this system. Does not modify the config.
        """
        is_windows11 = self.windows_version_service.is_windows11()
        build_number = self.windows_version_service.get_windows_build_number()

        incompatible = []
        for group in (config.optimize, config.customize):
            if group is None or not group.features:
                continue
            for feature_id, section in group.features.items():
                definitions = self._bypassed_definitions(feature_id)
                for item in section.items:
                    setting = definitions.get(item.id)
                    if setting and not setting.is_compatible_with(is_windows11, build_number):
                        incompatible.append(f"{setting.name} ({feature_id})")
        return incompatible

    def filter_config_for_current_system(
        self, config: UnifiedConfigurationFile
    ) -> UnifiedConfigurationFile:
        """
        Builds a deep copy of the config without the incompatible items. App
        sections and items unknown to the catalog are carried over unchanged.
        """
        is_windows11 = self.windows_version_service.is_windows11()
        build_number = self.windows_version_service.get_windows_build_number()

        snapshot = copy.deepcopy(config)
        return dataclasses.replace(
            snapshot,
            optimize=self._filter_group(snapshot.optimize, is_windows11, build_number),
            customize=self._filter_group(snapshot.customize, is_windows11, build_number),
        )

    # --- Private Helpers ---

    def _bypassed_definitions(self, feature_id: str) -> dict[str, SettingDefinition]:
        return {
            s.id: s
            for s in self.compatible_settings_registry.get_bypassed_settings(feature_id)
        }

    def _filter_group(
        self, group: FeatureGroupSection, is_windows11: bool, build_number: int
    ) -> FeatureGroupSection:
        if group is None or not group.features:
            return group

        features = {}
        for feature_id, section in group.features.items():
            definitions = self._bypassed_definitions(feature_id)
            kept = []
            for item in section.items:
                setting = definitions.get(item.id)
                if setting is None or setting.is_compatible_with(is_windows11, build_number):
                    kept.append(item)
                else:
                    logger.info(
                        f"Filtered incompatible setting '{item.id}' from '{feature_id}'"
                    )
            features[feature_id] = ConfigSection(
                is_included=section.is_included, items=kept
            )

        return FeatureGroupSection(is_included=group.is_included, features=features)
