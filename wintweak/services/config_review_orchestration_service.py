# wintweak/services/config_review_orchestration_service.py
from dataclasses import dataclass, field

from PyQt6.QtCore import QObject, pyqtSignal

from wintweak.core.constants import (
    SECTION_CUSTOMIZE,
    SECTION_EXTERNAL_APPS,
    SECTION_OPTIMIZE,
    SECTION_WINDOWS_APPS,
    SETTING_START_MENU_CLEAN_10,
    SETTING_START_MENU_CLEAN_11,
    SETTING_TASKBAR_CLEAN,
    SETTING_THEME_MODE,
)
from wintweak.models.app_model import AppAction
from wintweak.models.config_model import (
    ConfigSection,
    FeatureGroupSection,
    ImportOptions,
    UnifiedConfigurationFile,
)
from wintweak.models.review_model import SectionApplyResult
from wintweak.services.config_app_selection_service import ConfigAppSelectionService
from wintweak.services.config_application_execution_service import (
    ConfigApplicationExecutionService,
    add_action_only_subsections,
)
from wintweak.services.config_import_state import ConfigImportState
from wintweak.services.config_load_service import ConfigLoadService
from wintweak.services.config_review_service import ConfigReviewService
from wintweak.services.contracts import (
    CompatibleSettingsRegistry,
    ConfigImportOverlayService,
    DialogService,
    LocalizationService,
)
from wintweak.utils.localization_utils import tr
from wintweak.utils.logger_utils import logger


@dataclass
class ReviewedApplyPlan:
    """What a reviewed apply will do, built on the UI thread before the worker runs."""

    config: UnifiedConfigurationFile
    selected_sections: list[str]
    options: ImportOptions
    save_removal_scripts: bool = True
    selected_external_app_ids: list[str] = field(default_factory=list)
    external_removal_section: ConfigSection = field(default_factory=ConfigSection)


class ConfigReviewOrchestrationService(QObject):
    """Flow 2: enter review, apply the approved subset, or cancel."""

    # Pages listening for this clear any per-setting review decoration
    review_mode_exited = pyqtSignal()

    def __init__(
        self,
        dialog_service: DialogService,
        localization_service: LocalizationService,
        review_service: ConfigReviewService,
        overlay_service: ConfigImportOverlayService,
        config_import_state: ConfigImportState,
        app_selection_service: ConfigAppSelectionService,
        execution_service: ConfigApplicationExecutionService,
        config_load_service: ConfigLoadService,
        compatible_settings_registry: CompatibleSettingsRegistry,
    ):
        super().__init__()
        # --- Injected Services ---
        self.dialog_service = dialog_service
        self.localization_service = localization_service
        self.review_service = review_service
        self.overlay_service = overlay_service
        self.config_import_state = config_import_state
        self.app_selection_service = app_selection_service
        self.execution_service = execution_service
        self.config_load_service = config_load_service
        self.compatible_settings_registry = compatible_settings_registry

        # Filter flag the user had before review forced it on
        self._previous_filter_enabled: bool | None = None

        self.review_service.review_mode_changed.connect(self._on_review_mode_changed)

    # --- Public Methods ---

    def enter_review_mode(self, config: UnifiedConfigurationFile):
        """Flow 2.1: Filters the config, computes diffs and pre-selects apps."""
        try:
            incompatible = self.config_load_service.detect_incompatible_settings(config)
            if incompatible:
                config = self.config_load_service.filter_config_for_current_system(config)
                logger.info(
                    f"Silently filtered {len(incompatible)} incompatible settings from config"
                )

            # Version-filtered settings must not produce phantom diffs
            if self._previous_filter_enabled is None:
                self._previous_filter_enabled = (
                    self.compatible_settings_registry.is_filter_enabled()
                )
            self.compatible_settings_registry.set_filter_enabled(True)

            self.review_service.enter_review_mode(config)

            if config.windows_apps.items:
                self.app_selection_service.select_windows_apps_from_config(config.windows_apps)
                logger.info(
                    f"Pre-selected {len(config.windows_apps.items)} Windows Apps for review"
                )
            if config.external_apps.items:
                self.app_selection_service.select_external_apps_from_config(config.external_apps)
                logger.info(
                    f"Pre-selected {len(config.external_apps.items)} External Apps for review"
                )

            logger.info("Review mode activated - user can now navigate and review changes")
        except Exception as e:
            logger.error(f"Error entering review mode: {e}", exc_info=True)
            self.review_service.exit_review_mode()
            self.dialog_service.show_message(f"Error entering review mode: {e}", "Error")

    def apply_reviewed_config(self):
        """Flow 2.2: Applies only the approved diffs and the chosen app actions."""
        plan = self.prepare_reviewed_apply()
        if plan is None:
            return

        error: Exception | None = None
        try:
            self.run_reviewed_apply(plan)
        except Exception as e:
            error = e
        self.finish_reviewed_apply(plan, error)

    def prepare_reviewed_apply(self) -> ReviewedApplyPlan | None:
        """
        Flow 2.2a: Builds the apply plan from the approvals and runs the user
        prompts. Returns None when there is nothing to apply. On success the
        overlay is shown and the import state is active until the plan is
        finished.
        """
        config = self.review_service.active_config
        if not self.review_service.is_in_review_mode or config is None:
            logger.warning("apply_reviewed_config called but not in review mode")
            return None

        approved_diffs = self.review_service.get_approved_diffs()

        try:
            selected_sections: list[str] = []

            windows_action = self.app_selection_service.windows_apps_action
            has_windows_apps = (
                self.app_selection_service.has_selected_windows_apps()
                and windows_action is not None
            )
            if has_windows_apps:
                selected_sections.append(SECTION_WINDOWS_APPS)

            external_action = self.app_selection_service.external_apps_action
            has_external_apps = (
                self.app_selection_service.has_selected_external_apps()
                and external_action is not None
            )
            if has_external_apps:
                selected_sections.append(SECTION_EXTERNAL_APPS)

            approved_ids = {d.setting_id for d in approved_diffs}
            for group_name, group in (
                (SECTION_OPTIMIZE, config.optimize),
                (SECTION_CUSTOMIZE, config.customize),
            ):
                feature_keys = [
                    f"{group_name}_{feature_id}"
                    for feature_id, section in group.features.items()
                    if any(item.id in approved_ids for item in section.items)
                ]
                if feature_keys:
                    selected_sections.append(group_name)
                    selected_sections.extend(feature_keys)

            options = ImportOptions(
                process_windows_apps_removal=has_windows_apps
                and windows_action == AppAction.REMOVE,
                process_windows_apps_installation=has_windows_apps
                and windows_action == AppAction.INSTALL,
                process_external_apps_installation=has_external_apps
                and external_action == AppAction.INSTALL,
                process_external_apps_removal=has_external_apps
                and external_action == AppAction.REMOVE,
                apply_theme_wallpaper=SETTING_THEME_MODE in approved_ids,
                apply_clean_taskbar=SETTING_TASKBAR_CLEAN in approved_ids,
                apply_clean_start_menu=SETTING_START_MENU_CLEAN_10 in approved_ids
                or SETTING_START_MENU_CLEAN_11 in approved_ids,
                review_before_apply=True,
            )
            options = add_action_only_subsections(selected_sections, options)

            if not selected_sections:
                self.dialog_service.show_message(
                    tr(self.localization_service, "Config_Import_Error_NoSelection"),
                    tr(self.localization_service, "Config_Import_Error_NoSelection_Title"),
                )
                return None

            # Captured before exiting review mode clears the lists
            selected_external_app_ids: list[str] = []
            if has_external_apps:
                selected_external_app_ids = (
                    self.app_selection_service.selected_external_app_ids()
                )

            save_removal_scripts = True
            if options.process_windows_apps_removal:
                should_continue, save_removal_scripts = (
                    self.app_selection_service.confirm_windows_apps_removal()
                )
                if not should_continue:
                    self.app_selection_service.clear_windows_apps_selection()
                    selected_sections.remove(SECTION_WINDOWS_APPS)
                    logger.info("User cancelled Windows Apps removal during review apply")

            plan = ReviewedApplyPlan(
                config=self._build_filtered_config_from_approvals(config, approved_ids),
                selected_sections=selected_sections,
                options=options,
                save_removal_scripts=save_removal_scripts,
                selected_external_app_ids=selected_external_app_ids,
                external_removal_section=ConfigSection(
                    is_included=True,
                    items=[
                        item
                        for item in config.external_apps.items
                        if (item.id or item.name) in selected_external_app_ids
                    ],
                ),
            )
        except Exception as e:
            logger.error(f"Error preparing reviewed config: {e}", exc_info=True)
            self.review_service.exit_review_mode()
            self.dialog_service.show_message(f"Error applying configuration: {e}", "Error")
            return None

        self.overlay_service.show_overlay(
            tr(self.localization_service, "Config_Import_Status_Applying")
        )
        self.config_import_state.is_active = True
        return plan

    def run_reviewed_apply(self, plan: ReviewedApplyPlan) -> list[SectionApplyResult]:
        """Flow 2.2b: Applies the plan's settings. Safe to run off the UI thread."""
        return self.execution_service.apply_configuration_with_options(
            plan.config,
            plan.selected_sections,
            plan.options,
            plan.save_removal_scripts,
        )

    def finish_reviewed_apply(
        self, plan: ReviewedApplyPlan, error: BaseException | None = None
    ):
        """
        Flow 2.2c: Leaves review mode and reports the outcome. App installs and
        external removals only run when the settings were applied.
        """
        self.config_import_state.is_active = False
        self.overlay_service.hide_overlay()
        self.review_service.exit_review_mode()

        if error is not None:
            logger.error(f"Error applying reviewed config: {error}", exc_info=error)
            self.dialog_service.show_message(f"Error applying configuration: {error}", "Error")
            return

        try:
            self.dialog_service.show_information(
                tr(self.localization_service, "Config_Import_Success_Message"),
                tr(self.localization_service, "Config_Import_Success_Title"),
            )

            options = plan.options
            if options.process_windows_apps_installation:
                self.app_selection_service.install_windows_apps()

            if plan.selected_external_app_ids:
                if options.process_external_apps_installation:
                    self.app_selection_service.process_external_apps_from_user_selection(
                        plan.selected_external_app_ids
                    )
                elif options.process_external_apps_removal:
                    self.app_selection_service.process_external_apps_removal(
                        plan.external_removal_section
                    )
        except Exception as e:
            logger.error(f"Error processing apps after reviewed apply: {e}", exc_info=True)
            self.dialog_service.show_message(f"Error applying configuration: {e}", "Error")

    def cancel_review_mode(self):
        """Flow 2.3: Drops the session and the app selections it made."""
        if not self.review_service.is_in_review_mode:
            return

        self.app_selection_service.clear_windows_apps_selection()
        self.app_selection_service.clear_external_apps_selection()
        self.review_service.exit_review_mode()
        logger.info("Review mode cancelled - all selections cleared")

    # --- Private Helpers ---

    def _on_review_mode_changed(self):
        if self.review_service.is_in_review_mode:
            return

        if self._previous_filter_enabled is not None:
            self.compatible_settings_registry.set_filter_enabled(
                self._previous_filter_enabled
            )
            self._previous_filter_enabled = None

        self.app_selection_service.windows_apps_action = None
        self.app_selection_service.external_apps_action = None
        self.review_service.is_software_apps_reviewed = False
        self.review_mode_exited.emit()
        logger.info("Published review_mode_exited to clear review state from loaded settings")

    @staticmethod
    def _build_filtered_config_from_approvals(
        original: UnifiedConfigurationFile, approved_ids: set[str]
    ) -> UnifiedConfigurationFile:
        # Apps are filtered by checkbox selection, not by diffs
        return UnifiedConfigurationFile(
            version=original.version,
            created_at=original.created_at,
            optimize=_filter_group_by_approvals(original.optimize, approved_ids),
            customize=_filter_group_by_approvals(original.customize, approved_ids),
            windows_apps=original.windows_apps,
            external_apps=original.external_apps,
        )


def _filter_group_by_approvals(
    group: FeatureGroupSection, approved_ids: set[str]
) -> FeatureGroupSection:
    features = {}
    for feature_id, section in group.features.items():
        approved_items = [item for item in section.items if item.id in approved_ids]
        if approved_items:
            features[feature_id] = ConfigSection(
                is_included=section.is_included, items=approved_items
            )
    return FeatureGroupSection(is_included=group.is_included, features=features)
