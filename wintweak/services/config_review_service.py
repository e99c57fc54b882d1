# wintweak/services/config_review_service.py
import dataclasses

from PyQt6.QtCore import QObject, pyqtSignal

from wintweak.core.constants import (
    ACTION_SETTING_IDS,
    CUSTOMIZE_FEATURES,
    FEATURE_EXTERNAL_APPS,
    FEATURE_WINDOWS_APPS,
    OPTIMIZE_FEATURES,
    SECTION_CUSTOMIZE,
    SECTION_OPTIMIZE,
    SECTION_SOFTWARE_APPS,
    SETTING_START_MENU_CLEAN_10,
    SETTING_START_MENU_CLEAN_11,
    SETTING_TASKBAR_CLEAN,
    SETTING_THEME_MODE,
)
from wintweak.models.config_model import ConfigurationItem, UnifiedConfigurationFile
from wintweak.models.review_model import ConfigReviewDiff
from wintweak.models.setting_model import InputType, SettingStateResult
from wintweak.services.contracts import (
    ComboBoxResolver,
    ComboBoxSetupService,
    CompatibleSettingsRegistry,
    LocalizationService,
    SystemSettingsDiscoveryService,
    WindowsVersionService,
)
from wintweak.services.review_diff_calculator import DiffContext, compute_diff
from wintweak.utils.localization_utils import localize_display_text, tr
from wintweak.utils.logger_utils import logger


class ConfigReviewService(QObject):
    """
    Owns the state of one review session: the diff map, per-feature config item
    counts and the visited features. One instance per application session.
    """

    # --- Signals ---
    review_mode_changed = pyqtSignal()
    approval_count_changed = pyqtSignal()
    badge_state_changed = pyqtSignal()

    def __init__(
        self,
        localization_service: LocalizationService,
        windows_version_service: WindowsVersionService,
        compatible_settings_registry: CompatibleSettingsRegistry,
        discovery_service: SystemSettingsDiscoveryService,
        combo_box_setup_service: ComboBoxSetupService,
        combo_box_resolver: ComboBoxResolver,
    ):
        super().__init__()
        # --- Injected Services ---
        self.localization_service = localization_service
        self.windows_version_service = windows_version_service
        self.compatible_settings_registry = compatible_settings_registry
        self.discovery_service = discovery_service
        self.combo_box_setup_service = combo_box_setup_service
        self.combo_box_resolver = combo_box_resolver

        # --- Session State ---
        self.is_in_review_mode: bool = False
        self.active_config: UnifiedConfigurationFile | None = None
        self.total_config_items: int = 0
        self.is_software_apps_reviewed: bool = False
        self._diffs: dict[str, ConfigReviewDiff] = {}
        self._config_item_counts: dict[str, int] = {}
        self._features_in_config: set[str] = set()
        self._visited_features: set[str] = set()

        self._disposed = False
        self.localization_service.language_changed.connect(self._on_language_changed)

    def dispose(self):
        if self._disposed:
            return
        self._disposed = True
        self.localization_service.language_changed.disconnect(self._on_language_changed)

    # --- Counters (live views over the diff map) ---

    @property
    def total_changes(self) -> int:
        return len(self._diffs)

    @property
    def approved_changes(self) -> int:
        return sum(1 for d in self._diffs.values() if d.is_effectively_approved)

    @property
    def reviewed_changes(self) -> int:
        return sum(1 for d in self._diffs.values() if d.is_reviewed)

    # --- Public Methods: Lifecycle ---

    def enter_review_mode(self, config: UnifiedConfigurationFile):
        """
        Starts a review session for the config, discarding any previous one,
        and eagerly computes diffs for every Optimize and Customize feature.
        """
        self.active_config = config
        self._diffs.clear()
        self._config_item_counts.clear()
        self._features_in_config.clear()
        self._visited_features.clear()
        self.is_in_review_mode = True

        self._compute_config_item_counts(config)
        self._compute_eager_diffs(config)

        # Features with nothing to review count as visited
        for feature_id in list(self._features_in_config):
            if feature_id in OPTIMIZE_FEATURES or feature_id in CUSTOMIZE_FEATURES:
                if self.get_feature_diff_count(feature_id) == 0:
                    self._visited_features.add(feature_id)

        logger.info(
            f"Entered review mode with {self.total_config_items} total config items, "
            f"{self.total_changes} actual diffs"
        )
        self.review_mode_changed.emit()
        self.badge_state_changed.emit()

    def exit_review_mode(self):
        self.active_config = None
        self._diffs.clear()
        self._config_item_counts.clear()
        self._features_in_config.clear()
        self._visited_features.clear()
        self.total_config_items = 0
        self.is_in_review_mode = False
        logger.info("Exited review mode")
        self.review_mode_changed.emit()
        self.badge_state_changed.emit()

    # --- Public Methods: Diffs ---

    def get_diff_for_setting(self, setting_id: str) -> ConfigReviewDiff | None:
        return self._diffs.get(setting_id)

    def set_setting_approval(self, setting_id: str, approved: bool):
        """Records the user's decision. Unknown ids are ignored."""
        diff = self._diffs.get(setting_id)
        if diff is None:
            return

        self._diffs[setting_id] = dataclasses.replace(
            diff, is_reviewed=True, is_approved=approved
        )
        self.approval_count_changed.emit()
        self.badge_state_changed.emit()

    def get_approved_diffs(self) -> list[ConfigReviewDiff]:
        """Reviewed and approved diffs, in registration order."""
        return [d for d in self._diffs.values() if d.is_effectively_approved]

    def register_diff(self, diff: ConfigReviewDiff):
        self._diffs[diff.setting_id] = diff
        logger.debug(
            f"Registered diff for '{diff.setting_id}': "
            f"{diff.current_value_display} -> {diff.config_value_display}"
        )
        self.approval_count_changed.emit()
        self.badge_state_changed.emit()

    def notify_badge_state_changed(self):
        self.badge_state_changed.emit()
        self.approval_count_changed.emit()

    # --- Public Methods: Badges & Completeness ---

    def mark_feature_visited(self, feature_id: str):
        if feature_id in self._visited_features:
            return
        self._visited_features.add(feature_id)
        logger.debug(f"Feature '{feature_id}' marked as visited")
        self.badge_state_changed.emit()

    def get_nav_badge_count(self, section_tag: str) -> int:
        if not self.is_in_review_mode:
            return 0

        if section_tag == SECTION_SOFTWARE_APPS:
            return self._config_item_counts.get(
                FEATURE_WINDOWS_APPS, 0
            ) + self._config_item_counts.get(FEATURE_EXTERNAL_APPS, 0)
        if section_tag == SECTION_OPTIMIZE:
            return sum(self.get_feature_pending_diff_count(f) for f in OPTIMIZE_FEATURES)
        if section_tag == SECTION_CUSTOMIZE:
            return sum(self.get_feature_pending_diff_count(f) for f in CUSTOMIZE_FEATURES)
        return 0

    def get_feature_diff_count(self, feature_id: str) -> int:
        return sum(1 for d in self._diffs.values() if d.feature_module_id == feature_id)

    def get_feature_pending_diff_count(self, feature_id: str) -> int:
        return sum(
            1
            for d in self._diffs.values()
            if d.feature_module_id == feature_id and not d.is_reviewed
        )

    def is_feature_in_config(self, feature_id: str) -> bool:
        return feature_id in self._features_in_config

    def is_section_fully_reviewed(self, section_tag: str) -> bool:
        if not self.is_in_review_mode:
            return False

        # Software apps completeness is driven by the action choice in the UI
        if section_tag == SECTION_SOFTWARE_APPS:
            return self.is_software_apps_reviewed

        if section_tag == SECTION_OPTIMIZE:
            feature_ids = OPTIMIZE_FEATURES
        elif section_tag == SECTION_CUSTOMIZE:
            feature_ids = CUSTOMIZE_FEATURES
        else:
            feature_ids = ()

        relevant = [f for f in feature_ids if f in self._features_in_config]
        if not relevant:
            return False
        return all(self.is_feature_fully_reviewed(f) for f in relevant)

    def is_feature_fully_reviewed(self, feature_id: str) -> bool:
        if not self.is_in_review_mode:
            return False
        if feature_id not in self._features_in_config:
            return False

        feature_diffs = [
            d for d in self._diffs.values() if d.feature_module_id == feature_id
        ]
        if not feature_diffs:
            # Already matches the config
            return True

        if feature_id not in self._visited_features:
            return False
        return all(d.is_reviewed for d in feature_diffs)

    # --- Private Helpers: Diff Computation ---

    def _compute_config_item_counts(self, config: UnifiedConfigurationFile):
        total = 0
        sections = [
            (FEATURE_WINDOWS_APPS, config.windows_apps),
            (FEATURE_EXTERNAL_APPS, config.external_apps),
        ]
        sections += list(config.optimize.features.items())
        sections += list(config.customize.features.items())

        for feature_id, section in sections:
            if section.is_included and section.items:
                self._config_item_counts[feature_id] = len(section.items)
                self._features_in_config.add(feature_id)
                total += len(section.items)

        self.total_config_items = total

    def _compute_eager_diffs(self, config: UnifiedConfigurationFile):
        ctx = DiffContext.create(self.localization_service, self.combo_box_setup_service)
        for group in (config.optimize, config.customize):
            for feature_id, section in group.features.items():
                if not section.is_included or not section.items:
                    continue
                self._compute_feature_diffs(ctx, feature_id, section.items)

    def _compute_feature_diffs(
        self, ctx: DiffContext, feature_id: str, items: list[ConfigurationItem]
    ):
        """Diffs one feature module. A failure here never aborts the session."""
        try:
            definitions = self.compatible_settings_registry.get_filtered_settings(feature_id)
            definition_map = {s.id: s for s in definitions}
            states = dict(self.discovery_service.get_setting_states(list(definitions)))
        except Exception as e:
            logger.error(
                f"Error computing eager diffs for '{feature_id}': {e}", exc_info=True
            )
            return

        # Selection values arrive raw and need resolving to an option value
        for setting in definitions:
            if setting.input_type != InputType.SELECTION:
                continue
            state = states.get(setting.id)
            if state is None or state.raw_values is None:
                continue
            try:
                resolved = self.combo_box_resolver.resolve_current_value(
                    setting, state.raw_values
                )
                states[setting.id] = dataclasses.replace(state, current_value=resolved)
            except Exception as e:
                logger.warning(f"Failed to resolve combo box for '{setting.id}': {e}")

        is_windows11 = self.windows_version_service.is_windows11()
        for item in items:
            setting = definition_map.get(item.id)
            if setting is None:
                continue

            # Only the start menu clean matching this Windows version is offered
            if item.id == SETTING_START_MENU_CLEAN_10 and is_windows11:
                continue
            if item.id == SETTING_START_MENU_CLEAN_11 and not is_windows11:
                continue

            is_action = item.id in ACTION_SETTING_IDS
            state = states.get(item.id)
            if not is_action and (state is None or not state.success):
                logger.warning(
                    f"No state for '{item.id}' in '{feature_id}', skipping diff"
                )
                continue

            try:
                outcome = compute_diff(ctx, setting, item, state or SettingStateResult())
            except Exception as e:
                logger.error(f"Error computing diff for '{item.id}': {e}", exc_info=True)
                if not is_action:
                    continue
                outcome = None

            if not is_action and not outcome.has_diff:
                continue

            diff = ConfigReviewDiff(
                setting_id=item.id,
                setting_name=setting.name,
                feature_module_id=feature_id,
                current_value_display=outcome.current_display if outcome else "",
                config_value_display=outcome.config_display if outcome else "",
                current_display_key=outcome.current_key if outcome else None,
                config_display_key=outcome.config_key if outcome else None,
                config_item=item,
                input_type=setting.input_type,
                is_action_setting=is_action,
                action_confirmation_message=(
                    self._get_action_confirmation_message(item.id) if is_action else None
                ),
            )
            self._diffs[item.id] = diff
            logger.debug(
                f"Eager diff for '{item.id}' in '{feature_id}': "
                f"{'[Action] ' if is_action else ''}"
                f"{diff.current_value_display} -> {diff.config_value_display}"
            )

    def _get_action_confirmation_message(self, setting_id: str) -> str:
        if setting_id == SETTING_THEME_MODE:
            return tr(self.localization_service, "Review_Mode_Action_ThemeWallpaper")
        if setting_id == SETTING_TASKBAR_CLEAN:
            return tr(self.localization_service, "Review_Mode_Action_CleanTaskbar")
        if setting_id in (SETTING_START_MENU_CLEAN_10, SETTING_START_MENU_CLEAN_11):
            return tr(self.localization_service, "Review_Mode_Action_CleanStartMenu")
        return ""

    # --- Language Change ---

    def _on_language_changed(self):
        if not self.is_in_review_mode:
            return
        self._relocalize_display_strings()

    def _relocalize_display_strings(self):
        """Re-renders stored display strings from their raw keys. No rediscovery."""
        for setting_id, diff in list(self._diffs.items()):
            updated = diff
            if diff.current_display_key is not None:
                updated = dataclasses.replace(
                    updated,
                    current_value_display=localize_display_text(
                        self.localization_service, diff.current_display_key
                    ),
                )
            if diff.config_display_key is not None:
                updated = dataclasses.replace(
                    updated,
                    config_value_display=localize_display_text(
                        self.localization_service, diff.config_display_key
                    ),
                )
            if diff.is_action_setting:
                updated = dataclasses.replace(
                    updated,
                    action_confirmation_message=self._get_action_confirmation_message(
                        setting_id
                    ),
                )
            self._diffs[setting_id] = updated
