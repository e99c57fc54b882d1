# wintweak/viewmodels/review_mode_bar_vm.py
from PyQt6.QtCore import QObject, QThreadPool, pyqtSignal

from wintweak.core.constants import (
    CUSTOMIZE_FEATURES,
    FEATURE_EXTERNAL_APPS,
    FEATURE_WINDOWS_APPS,
    OPTIMIZE_FEATURES,
    SECTION_CUSTOMIZE,
    SECTION_OPTIMIZE,
)
from wintweak.models.app_model import AppAction
from wintweak.services.config_app_selection_service import ConfigAppSelectionService
from wintweak.services.config_review_orchestration_service import (
    ConfigReviewOrchestrationService,
    ReviewedApplyPlan,
)
from wintweak.services.config_review_service import ConfigReviewService
from wintweak.services.contracts import DialogService, LocalizationService
from wintweak.utils.async_utils import Worker
from wintweak.utils.localization_utils import tr
from wintweak.utils.logger_utils import logger


class ReviewModeBarViewModel(QObject):
    """State and commands for the review bar shown while a config is under review."""

    # --- Signals for UI ---
    state_changed = pyqtSignal()
    operation_started = pyqtSignal()
    operation_finished = pyqtSignal()

    def __init__(
        self,
        review_service: ConfigReviewService,
        orchestration_service: ConfigReviewOrchestrationService,
        app_selection_service: ConfigAppSelectionService,
        localization_service: LocalizationService,
        dialog_service: DialogService,
    ):
        super().__init__()
        # --- Injected Services ---
        self.review_service = review_service
        self.orchestration_service = orchestration_service
        self.app_selection_service = app_selection_service
        self.localization_service = localization_service
        self.dialog_service = dialog_service

        # --- View State ---
        self.is_in_review_mode: bool = False
        self.status_text: str = ""
        self.can_apply: bool = False
        self.is_busy: bool = False
        self._pending_plan: ReviewedApplyPlan | None = None

        self.review_service.review_mode_changed.connect(self._on_review_mode_changed)
        self.review_service.approval_count_changed.connect(self._refresh)
        self.review_service.badge_state_changed.connect(self._on_badge_state_changed)
        self.localization_service.language_changed.connect(self._on_language_changed)

    # --- Public Methods (API for the View) ---

    def set_app_actions(
        self, windows_action: AppAction | None, external_action: AppAction | None
    ):
        """
        Records the install/remove choice of the Software Apps page. The section
        counts as reviewed once every app list present in the config has one.
        """
        self.app_selection_service.windows_apps_action = windows_action
        self.app_selection_service.external_apps_action = external_action

        windows_done = windows_action is not None or not self.review_service.is_feature_in_config(
            FEATURE_WINDOWS_APPS
        )
        external_done = external_action is not None or not self.review_service.is_feature_in_config(
            FEATURE_EXTERNAL_APPS
        )
        self.review_service.is_software_apps_reviewed = windows_done and external_done
        self.review_service.notify_badge_state_changed()

    def apply_reviewed_config(self):
        """
        Runs the prompts of the reviewed apply here, then applies the settings
        on a worker thread. The outcome is reported back on this thread.
        """
        if self.is_busy or not self.can_apply:
            return

        plan = self.orchestration_service.prepare_reviewed_apply()
        if plan is None:
            return

        self._pending_plan = plan
        self.is_busy = True
        self.operation_started.emit()

        worker = Worker(self.orchestration_service.run_reviewed_apply, plan)
        worker.signals.result.connect(self._on_apply_completed)
        worker.signals.error.connect(self._on_apply_error)
        QThreadPool.globalInstance().start(worker)

    def cancel_review_mode(self):
        """Asks for confirmation, then drops the review session."""
        if self.is_busy:
            return

        confirmed = self.dialog_service.show_confirmation(
            tr(self.localization_service, "Review_Mode_Cancel_Confirmation"),
            tr(self.localization_service, "Review_Mode_Cancel_Confirmation_Title"),
        )
        if not confirmed:
            return
        self.orchestration_service.cancel_review_mode()

    # --- Private Slots ---

    def _on_review_mode_changed(self):
        self.is_in_review_mode = self.review_service.is_in_review_mode
        self._refresh()

    def _on_badge_state_changed(self):
        self._update_can_apply()
        self.state_changed.emit()

    def _on_language_changed(self):
        if self.is_in_review_mode:
            self._refresh()

    def _on_apply_completed(self, results):
        failed = sum(len(r.failed) for r in results)
        logger.info(f"Reviewed apply finished with {failed} failed setting(s)")
        self._finish_apply(None)

    def _on_apply_error(self, error_info: tuple):
        exctype, value, tb = error_info
        logger.critical(f"A worker error occurred during reviewed apply: {value}\n{tb}")
        self._finish_apply(value)

    # --- Private Helpers ---

    def _finish_apply(self, error: BaseException | None):
        plan, self._pending_plan = self._pending_plan, None
        try:
            self.orchestration_service.finish_reviewed_apply(plan, error)
        finally:
            self.is_busy = False
            self.operation_finished.emit()

    def _refresh(self):
        self._update_status_text()
        self._update_can_apply()
        self.state_changed.emit()

    def _update_status_text(self):
        service = self.review_service
        if not service.is_in_review_mode:
            self.status_text = ""
        elif service.total_changes > 0:
            self.status_text = tr(
                self.localization_service,
                "Review_Mode_Status_Format",
                service.reviewed_changes,
                service.total_changes,
                service.approved_changes,
            )
        elif service.total_config_items > 0:
            self.status_text = tr(self.localization_service, "Review_Mode_Status_AllMatch")
        else:
            self.status_text = tr(self.localization_service, "Review_Mode_Status_NoItems")

    def _update_can_apply(self):
        service = self.review_service
        if not self.is_in_review_mode:
            self.can_apply = False
            return

        all_settings_reviewed = (
            service.total_changes == 0
            or service.reviewed_changes >= service.total_changes
        )
        software_apps_reviewed = service.is_software_apps_reviewed or (
            not service.is_feature_in_config(FEATURE_WINDOWS_APPS)
            and not service.is_feature_in_config(FEATURE_EXTERNAL_APPS)
        )
        optimize_reviewed = service.is_section_fully_reviewed(SECTION_OPTIMIZE) or not any(
            service.is_feature_in_config(f) for f in OPTIMIZE_FEATURES
        )
        customize_reviewed = service.is_section_fully_reviewed(SECTION_CUSTOMIZE) or not any(
            service.is_feature_in_config(f) for f in CUSTOMIZE_FEATURES
        )
        self.can_apply = (
            all_settings_reviewed
            and software_apps_reviewed
            and optimize_reviewed
            and customize_reviewed
        )
