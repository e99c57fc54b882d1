# wintweak/services/config_application_execution_service.py
import dataclasses
import time
from typing import Any

from wintweak.core.constants import (
    EXPLORER_AUTO_RESTART_INTERVAL_S,
    EXPLORER_AUTO_RESTART_RETRIES,
    EXPLORER_PROCESS,
    EXPLORER_SETTLE_DELAY_S,
    EXPLORER_VERIFY_INTERVAL_S,
    EXPLORER_VERIFY_RETRIES,
    FEATURE_START_MENU,
    FEATURE_TASKBAR,
    FEATURE_WINDOWS_THEME,
    SECTION_CUSTOMIZE,
    SECTION_EXTERNAL_APPS,
    SECTION_OPTIMIZE,
    SECTION_WINDOWS_APPS,
    SETTING_POWER_PLAN,
    SETTING_START_MENU_CLEAN_10,
    SETTING_START_MENU_CLEAN_11,
    SETTING_TASKBAR_CLEAN,
    SETTING_THEME_MODE,
    SETTING_UPDATES_POLICY,
)
from wintweak.core.signals import global_signals
from wintweak.models.config_model import (
    ConfigSection,
    ConfigurationItem,
    FeatureGroupSection,
    ImportOptions,
    UnifiedConfigurationFile,
)
from wintweak.models.review_model import SectionApplyResult
from wintweak.models.setting_model import InputType, SettingDefinition
from wintweak.services.config_app_selection_service import ConfigAppSelectionService
from wintweak.services.config_application_bridge_service import (
    ConfigurationApplicationBridgeService,
)
from wintweak.services.config_import_state import ConfigImportState
from wintweak.services.config_load_service import ConfigLoadService
from wintweak.services.contracts import (
    ConfigImportOverlayService,
    DialogService,
    LocalizationService,
    WindowsVersionService,
)
from wintweak.utils.localization_utils import tr
from wintweak.utils.logger_utils import logger
from wintweak.utils.system_utils import SystemUtils


def add_action_only_subsections(
    selected_sections: list[str], options: ImportOptions
) -> ImportOptions:
    """
    Makes sure enabled Customize actions have a feature section to run in, even
    when no regular setting of that feature was selected. Mutates
    selected_sections and returns the options with action_only_subsections set.
    """
    action_features = (
        (options.apply_clean_taskbar, FEATURE_TASKBAR),
        (options.apply_clean_start_menu, FEATURE_START_MENU),
        (options.apply_theme_wallpaper, FEATURE_WINDOWS_THEME),
    )
    action_only = set()
    for enabled, feature_id in action_features:
        key = f"{SECTION_CUSTOMIZE}_{feature_id}"
        if not enabled or key in selected_sections:
            continue
        if SECTION_CUSTOMIZE not in selected_sections:
            selected_sections.append(SECTION_CUSTOMIZE)
        selected_sections.append(key)
        action_only.add(key)
    return dataclasses.replace(options, action_only_subsections=frozenset(action_only))


class ConfigApplicationExecutionService:
    """Applies a configuration (or its reviewed subset) to the system."""

    def __init__(
        self,
        dialog_service: DialogService,
        localization_service: LocalizationService,
        windows_version_service: WindowsVersionService,
        bridge_service: ConfigurationApplicationBridgeService,
        overlay_service: ConfigImportOverlayService,
        config_import_state: ConfigImportState,
        app_selection_service: ConfigAppSelectionService,
        config_load_service: ConfigLoadService,
    ):
        # --- Injected Services ---
        self.dialog_service = dialog_service
        self.localization_service = localization_service
        self.windows_version_service = windows_version_service
        self.bridge_service = bridge_service
        self.overlay_service = overlay_service
        self.config_import_state = config_import_state
        self.app_selection_service = app_selection_service
        self.config_load_service = config_load_service

    # --- Public Methods ---

    def execute_config_import(
        self, config: UnifiedConfigurationFile, dialog_options: ImportOptions
    ):
        """
        Flow 3.1: Direct import without review. Applies everything compatible in
        the config, honouring the user's import dialog choices.
        """
        try:
            incompatible = self.config_load_service.detect_incompatible_settings(config)
            if incompatible:
                config = self.config_load_service.filter_config_for_current_system(config)
                logger.info(
                    f"Silently filtered {len(incompatible)} incompatible settings from config"
                )

            has_windows_apps = bool(config.windows_apps.items)
            has_external_apps = bool(config.external_apps.items)
            selected_sections: list[str] = []
            if has_windows_apps:
                selected_sections.append(SECTION_WINDOWS_APPS)
            if has_external_apps:
                selected_sections.append(SECTION_EXTERNAL_APPS)
            for group_name, group in (
                (SECTION_OPTIMIZE, config.optimize),
                (SECTION_CUSTOMIZE, config.customize),
            ):
                for feature_id, section in group.features.items():
                    if not section.items:
                        continue
                    if group_name not in selected_sections:
                        selected_sections.append(group_name)
                    selected_sections.append(f"{group_name}_{feature_id}")

            if not selected_sections:
                self._show_no_changes()
                return

            save_removal_scripts = True
            if has_windows_apps:
                self.app_selection_service.select_windows_apps_from_config(config.windows_apps)
                if dialog_options.process_windows_apps_removal:
                    should_continue, save_removal_scripts = (
                        self.app_selection_service.confirm_windows_apps_removal()
                    )
                    if not should_continue:
                        self.app_selection_service.clear_windows_apps_selection()
                        selected_sections.remove(SECTION_WINDOWS_APPS)
                        logger.info("User cancelled Windows Apps removal")

            if has_external_apps:
                self.app_selection_service.select_external_apps_from_config(config.external_apps)

            windows_apps_kept = has_windows_apps and SECTION_WINDOWS_APPS in selected_sections
            options = ImportOptions(
                process_windows_apps_removal=windows_apps_kept
                and dialog_options.process_windows_apps_removal,
                process_windows_apps_installation=windows_apps_kept
                and dialog_options.process_windows_apps_installation,
                process_external_apps_installation=has_external_apps
                and dialog_options.process_external_apps_installation,
                process_external_apps_removal=has_external_apps
                and dialog_options.process_external_apps_removal,
                apply_theme_wallpaper=dialog_options.apply_theme_wallpaper,
                apply_clean_taskbar=dialog_options.apply_clean_taskbar,
                apply_clean_start_menu=dialog_options.apply_clean_start_menu,
                review_before_apply=dialog_options.review_before_apply,
            )
            options = add_action_only_subsections(selected_sections, options)

            self.overlay_service.show_overlay(self._applying_status())
            self.config_import_state.is_active = True
            try:
                self._apply_configuration(
                    config, selected_sections, options, save_removal_scripts
                )
            finally:
                self.config_import_state.is_active = False
                self.overlay_service.hide_overlay()

            self._show_import_success()

            if has_windows_apps and options.process_windows_apps_installation:
                logger.info("Processing Windows Apps installation")
                self.app_selection_service.install_windows_apps()

            if has_external_apps and options.process_external_apps_installation:
                self.app_selection_service.process_external_apps_installation(
                    config.external_apps
                )
            elif has_external_apps and options.process_external_apps_removal:
                self.app_selection_service.process_external_apps_removal(
                    config.external_apps
                )
        except Exception as e:
            logger.error(f"Error importing configuration: {e}", exc_info=True)
            self.overlay_service.hide_overlay()
            self.dialog_service.show_message(
                f"Error importing configuration: {e}", "Error"
            )

    def apply_configuration_with_options(
        self,
        config: UnifiedConfigurationFile,
        selected_sections: list[str],
        options: ImportOptions,
        save_removal_scripts: bool = True,
    ) -> list[SectionApplyResult]:
        """Applies the selected sections. Errors propagate to the caller."""
        return self._apply_configuration(
            config, selected_sections, options, save_removal_scripts
        )

    # --- Private: Pipeline ---

    def _apply_configuration(
        self,
        config: UnifiedConfigurationFile,
        selected_sections: list[str],
        options: ImportOptions,
        save_removal_scripts: bool,
    ) -> list[SectionApplyResult]:
        logger.info(f"Applying configuration to: {', '.join(selected_sections)}")

        should_remove_apps = (
            SECTION_WINDOWS_APPS in selected_sections
            and options.process_windows_apps_removal
        )
        has_optimize = any(
            s == SECTION_OPTIMIZE or s.startswith(f"{SECTION_OPTIMIZE}_")
            for s in selected_sections
        )
        has_customize = any(
            s == SECTION_CUSTOMIZE or s.startswith(f"{SECTION_CUSTOMIZE}_")
            for s in selected_sections
        )

        if should_remove_apps:
            logger.info("Processing Windows Apps removal")
            self.app_selection_service.remove_windows_apps(save_removal_scripts)

        results: list[SectionApplyResult] = []
        if has_optimize or has_customize:
            results = self._apply_all_settings_groups(
                config, selected_sections, options, has_optimize, has_customize
            )

        failed = [setting_id for r in results for setting_id in r.failed]
        if failed:
            global_signals.toast_requested.emit(
                f"{len(failed)} setting(s) failed to apply. See the log for details.",
                "warning",
            )

        self._restart_explorer_if_needed(results)
        return results

    def _apply_all_settings_groups(
        self,
        config: UnifiedConfigurationFile,
        selected_sections: list[str],
        options: ImportOptions,
        has_optimize: bool,
        has_customize: bool,
    ) -> list[SectionApplyResult]:
        groups = []
        if has_optimize:
            groups.append((SECTION_OPTIMIZE, config.optimize))
        if has_customize:
            groups.append((SECTION_CUSTOMIZE, config.customize))

        total = 0
        for group_name, group in groups:
            total += sum(1 for f in group.features if f"{group_name}_{f}" in selected_sections)
            total += len(self._unprocessed_action_only(group_name, group, selected_sections, options))
        total = max(total, 1)

        status = self._applying_status()
        progress = {"completed": 0}
        self.overlay_service.update_status(status, f"0/{total} features applied")

        def on_feature_completed(feature_id: str):
            progress["completed"] += 1
            self.overlay_service.update_status(
                status, f"{progress['completed']}/{total} features applied"
            )
            logger.info(f"Feature completed: {feature_id} ({progress['completed']}/{total})")

        results = []
        for group_name, group in groups:
            group_results = self._apply_feature_group(
                group, group_name, options, selected_sections, on_feature_completed
            )
            success = all(r.success for r in group_results)
            logger.info(f"  {group_name} group: {'Success' if success else 'Failed'}")
            results.extend(group_results)
        return results

    def _apply_feature_group(
        self,
        group: FeatureGroupSection,
        group_name: str,
        options: ImportOptions,
        selected_sections: list[str],
        on_feature_completed,
    ) -> list[SectionApplyResult]:
        action_only_extra = self._unprocessed_action_only(
            group_name, group, selected_sections, options
        )
        if not group.features and not action_only_extra:
            logger.warning(f"{group_name} has no features to apply")
            return []

        confirmation_handler = self._build_confirmation_handler(options)
        results: list[SectionApplyResult] = []

        # Features from the config file
        for feature_id, section in group.features.items():
            feature_key = f"{group_name}_{feature_id}"
            if feature_key not in selected_sections:
                logger.info(f"Skipping {feature_id} - not selected by user")
                continue

            section_name = f"{group_name}.{feature_id}"
            action_items = self._build_action_items(options, feature_id)
            if action_items:
                logger.info(f"Executing {len(action_items)} action command(s) for {feature_id}")
                results.append(
                    self.bridge_service.apply_configuration_section(
                        ConfigSection(is_included=True, items=action_items),
                        section_name,
                        confirmation_handler,
                    )
                )

            if feature_key not in options.action_only_subsections:
                logger.info(
                    f"Applying {len(section.items)} settings from {group_name} > {feature_id}"
                )
                result = self.bridge_service.apply_configuration_section(
                    section, section_name, confirmation_handler
                )
                if not result.success:
                    logger.warning(
                        f"Failed to apply some settings from {group_name} > {feature_id}"
                    )
                results.append(result)

            on_feature_completed(feature_id)

        # Action-only subsections the config file has no feature for
        for feature_key in action_only_extra:
            feature_id = feature_key[len(group_name) + 1 :]
            action_items = self._build_action_items(options, feature_id)
            if options.apply_theme_wallpaper and feature_id == FEATURE_WINDOWS_THEME:
                action_items.append(
                    ConfigurationItem(
                        id=SETTING_THEME_MODE,
                        name="Windows Theme",
                        is_selected=True,
                        input_type=InputType.SELECTION,
                        selected_index=0,
                    )
                )

            if action_items:
                logger.info(
                    f"Executing {len(action_items)} action command(s) for {feature_id} (not in config file)"
                )
                results.append(
                    self.bridge_service.apply_configuration_section(
                        ConfigSection(is_included=True, items=action_items),
                        f"{group_name}.{feature_id}",
                        confirmation_handler,
                    )
                )
            else:
                logger.info(f"No action commands to execute for {feature_id}")
            on_feature_completed(feature_id)

        return results

    # --- Private Helpers ---

    @staticmethod
    def _unprocessed_action_only(
        group_name: str,
        group: FeatureGroupSection,
        selected_sections: list[str],
        options: ImportOptions,
    ) -> list[str]:
        prefix = f"{group_name}_"
        return [
            s
            for s in selected_sections
            if s.startswith(prefix)
            and s in options.action_only_subsections
            and s[len(prefix) :] not in group.features
        ]

    @staticmethod
    def _build_confirmation_handler(options: ImportOptions):
        """Answers per-setting confirmation prompts from the import options."""

        def handler(setting_id: str, value: Any, setting: SettingDefinition):
            if setting_id in (SETTING_POWER_PLAN, SETTING_UPDATES_POLICY):
                return True, True
            if setting_id == SETTING_THEME_MODE:
                return True, options.apply_theme_wallpaper
            if setting_id == SETTING_TASKBAR_CLEAN:
                return True, options.apply_clean_taskbar
            if setting_id in (SETTING_START_MENU_CLEAN_10, SETTING_START_MENU_CLEAN_11):
                return True, options.apply_clean_start_menu
            return True, True

        return handler

    def _build_action_items(
        self, options: ImportOptions, feature_id: str
    ) -> list[ConfigurationItem]:
        items = []
        if options.apply_clean_taskbar and feature_id == FEATURE_TASKBAR:
            items.append(
                ConfigurationItem(
                    id=SETTING_TASKBAR_CLEAN,
                    name="Clean Taskbar",
                    is_selected=True,
                    input_type=InputType.TOGGLE,
                )
            )
        if options.apply_clean_start_menu and feature_id == FEATURE_START_MENU:
            setting_id = (
                SETTING_START_MENU_CLEAN_11
                if self.windows_version_service.is_windows11()
                else SETTING_START_MENU_CLEAN_10
            )
            items.append(
                ConfigurationItem(
                    id=setting_id,
                    name="Clean Start Menu",
                    is_selected=True,
                    input_type=InputType.TOGGLE,
                )
            )
        return items

    def _restart_explorer_if_needed(self, results: list[SectionApplyResult]):
        """
        Restarts Explorer when an applied setting asks for it. Explorer is never
        started if it was not running before.
        """
        restart_processes = {p.lower() for r in results for p in r.restart_processes}
        if EXPLORER_PROCESS not in restart_processes:
            logger.debug("No applied setting requires an Explorer restart")
            return

        try:
            if not SystemUtils.is_process_running(EXPLORER_PROCESS):
                logger.info("Explorer not running, skipping restart")
                return

            self.overlay_service.update_status(
                self._applying_status(),
                tr(self.localization_service, "Config_Import_Status_RestartingExplorer"),
            )
            logger.info("Killing explorer to apply changes")
            SystemUtils.kill_process(EXPLORER_PROCESS)
            time.sleep(EXPLORER_SETTLE_DELAY_S)

            for _ in range(EXPLORER_AUTO_RESTART_RETRIES):
                if SystemUtils.is_process_running(EXPLORER_PROCESS):
                    logger.info("Explorer.exe has auto-restarted")
                    return
                time.sleep(EXPLORER_AUTO_RESTART_INTERVAL_S)

            logger.warning("Explorer did not auto-restart, starting manually")
            SystemUtils.start_process(f"{EXPLORER_PROCESS}.exe")

            for _ in range(EXPLORER_VERIFY_RETRIES):
                time.sleep(EXPLORER_VERIFY_INTERVAL_S)
                if SystemUtils.is_process_running(EXPLORER_PROCESS):
                    logger.info("Explorer.exe started successfully")
                    return

            logger.error("Failed to verify explorer restart")
        except Exception as e:
            logger.error(f"Error restarting explorer: {e}", exc_info=True)

    def _applying_status(self) -> str:
        return tr(self.localization_service, "Config_Import_Status_Applying")

    def _show_no_changes(self):
        self.dialog_service.show_message(
            tr(self.localization_service, "Config_Import_Error_NoSelection"),
            tr(self.localization_service, "Config_Import_Error_NoSelection_Title"),
        )

    def _show_import_success(self):
        self.dialog_service.show_information(
            tr(self.localization_service, "Config_Import_Success_Message"),
            tr(self.localization_service, "Config_Import_Success_Title"),
        )
