# wintweak/services/config_application_bridge_service.py
from typing import Any, Callable

from wintweak.core.constants import SETTING_POWER_PLAN
from wintweak.models.config_model import ConfigSection, ConfigurationItem
from wintweak.models.review_model import SectionApplyResult, SettingApplyOutcome
from wintweak.models.setting_model import InputType, SettingDefinition
from wintweak.services.contracts import (
    CompatibleSettingsRegistry,
    SettingApplicationService,
)
from wintweak.utils.logger_utils import logger

# (setting_id, value, definition) -> (confirmed, checkbox_result)
ConfirmationHandler = Callable[[str, Any, SettingDefinition], tuple[bool, bool]]


class InvalidConfigurationError(ValueError):
    pass


class ConfigurationApplicationBridgeService:
    """Turns config items into apply_setting calls on the domain service router."""

    def __init__(
        self,
        setting_application_service: SettingApplicationService,
        compatible_settings_registry: CompatibleSettingsRegistry,
    ):
        # --- Injected Services ---
        self.setting_application_service = setting_application_service
        self.compatible_settings_registry = compatible_settings_registry

    def apply_configuration_section(
        self,
        section: ConfigSection | None,
        section_name: str,
        confirmation_handler: ConfirmationHandler | None = None,
    ) -> SectionApplyResult:
        """
        Applies every item of a section in order. One failing setting is
        recorded and the rest of the section still runs.
        """
        if section is None or not section.items:
            logger.warning(f"Section '{section_name}' is empty")
            return SectionApplyResult(section_name=section_name)

        logger.info(f"Applying {len(section.items)} settings from {section_name} section")

        outcomes: list[SettingApplyOutcome] = []
        restart_processes: set[str] = set()
        definitions = self._all_definitions()

        for item in section.items:
            if not item.id:
                logger.warning(f"Skipping item '{item.name}' - no ID")
                outcomes.append(SettingApplyOutcome(item.name, "failed", "missing id"))
                continue

            setting = definitions.get(item.id)
            if setting is None:
                logger.debug(
                    f"Setting '{item.id}' skipped (not compatible with this Windows version)"
                )
                outcomes.append(SettingApplyOutcome(item.id, "skipped", "os-incompatible"))
                continue

            try:
                applied = self._apply_item(setting, item, confirmation_handler)
            except Exception as e:
                logger.error(f"Failed to apply setting '{item.name}': {e}", exc_info=True)
                outcomes.append(SettingApplyOutcome(item.id, "failed", str(e)))
                continue

            if not applied:
                outcomes.append(SettingApplyOutcome(item.id, "skipped", "declined"))
                continue

            outcomes.append(SettingApplyOutcome(item.id, "applied"))
            if setting.restart_process:
                restart_processes.add(setting.restart_process)
            logger.debug(f"Applied setting: {item.name}")

        result = SectionApplyResult(
            section_name=section_name,
            outcomes=outcomes,
            restart_processes=frozenset(restart_processes),
        )
        logger.info(
            f"Section '{section_name}': {len(result.applied)} applied, "
            f"{len(result.skipped)} skipped, {len(result.failed)} failed"
        )
        return result

    # --- Private Helpers ---

    def _all_definitions(self) -> dict[str, SettingDefinition]:
        definitions: dict[str, SettingDefinition] = {}
        for feature_settings in self.compatible_settings_registry.get_all_filtered_settings().values():
            for setting in feature_settings:
                definitions.setdefault(setting.id, setting)
        return definitions

    def _apply_item(
        self,
        setting: SettingDefinition,
        item: ConfigurationItem,
        confirmation_handler: ConfirmationHandler | None,
    ) -> bool:
        checkbox_result = False
        if setting.requires_confirmation and confirmation_handler is not None:
            value = (
                self._resolve_selection_value(setting, item)
                if setting.input_type == InputType.SELECTION
                else bool(item.is_selected)
            )
            confirmed, checkbox_result = confirmation_handler(item.id, value, setting)
            if not confirmed:
                logger.info(f"User skipped setting '{item.id}' during config import")
                return False

        if setting.input_type == InputType.ACTION and setting.action_command:
            self.setting_application_service.apply_setting(
                item.id,
                False,
                None,
                checkbox_result,
                setting.action_command,
            )
            return True

        value_to_apply = None
        if setting.input_type == InputType.SELECTION:
            value_to_apply = self._resolve_selection_value(setting, item)
        elif setting.input_type == InputType.NUMERIC_RANGE:
            value_to_apply = self._resolve_numeric_range_value(item)

        self.setting_application_service.apply_setting(
            item.id, bool(item.is_selected), value_to_apply, checkbox_result
        )
        return True

    def _resolve_selection_value(
        self, setting: SettingDefinition, item: ConfigurationItem
    ) -> Any:
        if setting.id == SETTING_POWER_PLAN:
            if not item.power_plan_guid:
                logger.error("Config file is missing PowerPlanGuid for power-plan-selection.")
                raise InvalidConfigurationError("Configuration file is invalid or corrupted.")
            return {"Guid": item.power_plan_guid, "Name": item.power_plan_name or "Unknown"}

        if item.custom_state_values:
            return item.custom_state_values
        if item.selected_index is not None:
            return item.selected_index
        return 0

    @staticmethod
    def _resolve_numeric_range_value(item: ConfigurationItem) -> Any:
        power_settings = item.power_settings
        if not power_settings:
            return None

        if "ACValue" in power_settings or "DCValue" in power_settings:
            ac_value = power_settings.get("ACValue")
            dc_value = power_settings.get("DCValue")
            return {
                "ACValue": ac_value,
                "DCValue": dc_value if dc_value is not None else ac_value,
            }
        return power_settings.get("Value")
