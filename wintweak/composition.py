# wintweak/composition.py
from dataclasses import dataclass
from pathlib import Path

from wintweak.core.constants import LOG_DIR_NAME
from wintweak.services import (
    ConfigAppSelectionService,
    ConfigApplicationExecutionService,
    ConfigExportService,
    ConfigFileService,
    ConfigImportState,
    ConfigLoadService,
    ConfigReviewOrchestrationService,
    ConfigReviewService,
    ConfigurationApplicationBridgeService,
)
from wintweak.services.contracts import (
    ComboBoxResolver,
    ComboBoxSetupService,
    CompatibleSettingsRegistry,
    ConfigImportOverlayService,
    DialogService,
    ExternalAppsItemsProvider,
    LocalizationService,
    SettingApplicationService,
    SystemSettingsDiscoveryService,
    WindowsAppsItemsProvider,
    WindowsVersionService,
)
from wintweak.utils.logger_utils import logger, reconfigure_logger
from wintweak.viewmodels import ReviewModeBarViewModel


@dataclass
class ReviewEngine:
    """Every session-scoped object of the review and apply engine."""

    config_file_service: ConfigFileService
    config_import_state: ConfigImportState
    load_service: ConfigLoadService
    review_service: ConfigReviewService
    app_selection_service: ConfigAppSelectionService
    bridge_service: ConfigurationApplicationBridgeService
    execution_service: ConfigApplicationExecutionService
    orchestration_service: ConfigReviewOrchestrationService
    export_service: ConfigExportService
    review_bar_vm: ReviewModeBarViewModel


def create_review_engine(
    *,
    dialog_service: DialogService,
    localization_service: LocalizationService,
    windows_version_service: WindowsVersionService,
    compatible_settings_registry: CompatibleSettingsRegistry,
    discovery_service: SystemSettingsDiscoveryService,
    combo_box_setup_service: ComboBoxSetupService,
    combo_box_resolver: ComboBoxResolver,
    setting_application_service: SettingApplicationService,
    overlay_service: ConfigImportOverlayService,
    windows_apps_provider: WindowsAppsItemsProvider,
    external_apps_provider: ExternalAppsItemsProvider,
    app_path: Path | None = None,
) -> ReviewEngine:
    """
    Composition root: creates and wires the engine around the host's
    collaborators. Must be called on the Qt main thread.
    """
    if app_path is not None:
        log_path = Path(app_path) / LOG_DIR_NAME
        log_path.mkdir(parents=True, exist_ok=True)
        reconfigure_logger(log_path)

    # Services with no or minimal dependencies first.
    config_file_service = ConfigFileService()
    config_import_state = ConfigImportState()
    load_service = ConfigLoadService(
        dialog_service=dialog_service,
        localization_service=localization_service,
        windows_version_service=windows_version_service,
        compatible_settings_registry=compatible_settings_registry,
        config_file_service=config_file_service,
    )
    review_service = ConfigReviewService(
        localization_service=localization_service,
        windows_version_service=windows_version_service,
        compatible_settings_registry=compatible_settings_registry,
        discovery_service=discovery_service,
        combo_box_setup_service=combo_box_setup_service,
        combo_box_resolver=combo_box_resolver,
    )
    app_selection_service = ConfigAppSelectionService(
        windows_apps_provider=windows_apps_provider,
        external_apps_provider=external_apps_provider,
    )
    bridge_service = ConfigurationApplicationBridgeService(
        setting_application_service=setting_application_service,
        compatible_settings_registry=compatible_settings_registry,
    )

    # Services that depend on other services.
    execution_service = ConfigApplicationExecutionService(
        dialog_service=dialog_service,
        localization_service=localization_service,
        windows_version_service=windows_version_service,
        bridge_service=bridge_service,
        overlay_service=overlay_service,
        config_import_state=config_import_state,
        app_selection_service=app_selection_service,
        config_load_service=load_service,
    )
    orchestration_service = ConfigReviewOrchestrationService(
        dialog_service=dialog_service,
        localization_service=localization_service,
        review_service=review_service,
        overlay_service=overlay_service,
        config_import_state=config_import_state,
        app_selection_service=app_selection_service,
        execution_service=execution_service,
        config_load_service=load_service,
        compatible_settings_registry=compatible_settings_registry,
    )
    export_service = ConfigExportService(
        dialog_service=dialog_service,
        localization_service=localization_service,
        compatible_settings_registry=compatible_settings_registry,
        discovery_service=discovery_service,
        windows_apps_provider=windows_apps_provider,
        external_apps_provider=external_apps_provider,
        config_file_service=config_file_service,
    )

    review_bar_vm = ReviewModeBarViewModel(
        review_service=review_service,
        orchestration_service=orchestration_service,
        app_selection_service=app_selection_service,
        localization_service=localization_service,
        dialog_service=dialog_service,
    )

    logger.info("Review engine services initialized.")
    return ReviewEngine(
        config_file_service=config_file_service,
        config_import_state=config_import_state,
        load_service=load_service,
        review_service=review_service,
        app_selection_service=app_selection_service,
        bridge_service=bridge_service,
        execution_service=execution_service,
        orchestration_service=orchestration_service,
        export_service=export_service,
        review_bar_vm=review_bar_vm,
    )
