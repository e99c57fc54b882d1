# wintweak/services/review_diff_calculator.py
"""
Per-input-type comparison of a setting's live state against a config item.
Each InputType has exactly one handler in _DIFF_HANDLERS.
"""
import uuid
from dataclasses import dataclass
from typing import Any, Callable

from wintweak.core.constants import (
    BUILT_IN_POWER_PLANS,
    POWER_PLAN_BRAND,
    RAW_ACTIVE_PLAN_GUID,
    RAW_ACTIVE_PLAN_NAME,
    PredefinedPowerPlan,
)
from wintweak.models.config_model import ConfigurationItem
from wintweak.models.review_model import DiffOutcome
from wintweak.models.setting_model import (
    ComboBoxSetupResult,
    InputType,
    SettingDefinition,
    SettingStateResult,
)
from wintweak.services.contracts import ComboBoxSetupService, LocalizationService
from wintweak.utils.localization_utils import (
    is_missing_translation,
    localize_display_text,
    tr,
)
from wintweak.utils.logger_utils import logger

KEY_ON = "Common_On"
KEY_OFF = "Common_Off"


@dataclass(frozen=True)
class DiffContext:
    localization_service: LocalizationService
    combo_box_setup_service: ComboBoxSetupService
    on_text: str
    off_text: str

    @classmethod
    def create(cls, localization_service, combo_box_setup_service) -> "DiffContext":
        return cls(
            localization_service=localization_service,
            combo_box_setup_service=combo_box_setup_service,
            on_text=tr(localization_service, KEY_ON),
            off_text=tr(localization_service, KEY_OFF),
        )


# --- Power Plan Helpers ---


def normalize_guid(guid: str | None) -> str:
    """Canonical lower-case form, tolerant of braces and casing."""
    if not guid:
        return ""
    try:
        return str(uuid.UUID(guid.strip()))
    except ValueError:
        return guid.lower()


def find_power_plan_by_guid(guid: str | None) -> PredefinedPowerPlan | None:
    if not guid:
        return None
    normalized = normalize_guid(guid)
    return next(
        (p for p in BUILT_IN_POWER_PLANS if normalize_guid(p.guid) == normalized), None
    )


def resolve_to_predefined_plan(
    guid: str | None, name: str | None
) -> PredefinedPowerPlan | None:
    """GUID match first; a plan named after the app brand matches the brand plan."""
    by_guid = find_power_plan_by_guid(guid)
    if by_guid:
        return by_guid

    if name and POWER_PLAN_BRAND.lower() in name.lower():
        return next(
            (p for p in BUILT_IN_POWER_PLANS if POWER_PLAN_BRAND.lower() in p.name.lower()),
            None,
        )
    return None


def localize_power_plan_by_guid(localization_service, guid: str | None) -> str | None:
    plan = find_power_plan_by_guid(guid)
    if plan is None:
        return None
    localized = localization_service.get_string(plan.localization_key)
    return plan.name if is_missing_translation(localized) else localized


# --- Handlers ---


def _toggle_diff(
    ctx: DiffContext,
    setting: SettingDefinition,
    item: ConfigurationItem,
    state: SettingStateResult,
) -> DiffOutcome:
    current = bool(state.is_enabled)
    wanted = bool(item.is_selected)
    if current == wanted:
        return DiffOutcome.no_diff()

    return DiffOutcome(
        has_diff=True,
        current_display=ctx.on_text if current else ctx.off_text,
        config_display=ctx.on_text if wanted else ctx.off_text,
        current_key=KEY_ON if current else KEY_OFF,
        config_key=KEY_ON if wanted else KEY_OFF,
    )


def _numeric_range_diff(
    ctx: DiffContext,
    setting: SettingDefinition,
    item: ConfigurationItem,
    state: SettingStateResult,
) -> DiffOutcome:
    if not item.power_settings:
        return DiffOutcome.no_diff()

    wanted = item.power_settings.get("ACValue", item.power_settings.get("Value"))
    if not _is_int(wanted):
        return DiffOutcome.no_diff()

    current = state.current_value if _is_int(state.current_value) else 0
    if current == wanted:
        return DiffOutcome.no_diff()
    return DiffOutcome(True, str(current), str(wanted))


def _selection_diff(
    ctx: DiffContext,
    setting: SettingDefinition,
    item: ConfigurationItem,
    state: SettingStateResult,
) -> DiffOutcome:
    combo = ctx.combo_box_setup_service.setup_combo_box_options(
        setting, state.current_value
    )
    if _is_int(combo.selected_value):
        current_index = combo.selected_value
    elif _is_int(state.current_value):
        current_index = state.current_value
    else:
        current_index = -1

    if item.power_plan_guid is not None:
        return _power_plan_diff(ctx, item, state)

    if item.custom_state_values is not None:
        current_key = _option_text(combo, current_index)
        if current_key is not None:
            current_display = localize_display_text(ctx.localization_service, current_key)
        else:
            current_display = _fallback_display_name(ctx, combo, current_index)
        config_display = item.power_plan_name or "Custom"
        if current_display.casefold() == config_display.casefold():
            return DiffOutcome.no_diff()
        return DiffOutcome(True, current_display, config_display, current_key, config_display)

    if item.selected_index is None:
        return DiffOutcome.no_diff()

    config_index = item.selected_index
    if current_index == config_index:
        return DiffOutcome.no_diff()

    current_key = _option_text(combo, current_index)
    config_key = _option_text(combo, config_index)
    return DiffOutcome(
        has_diff=True,
        current_display=(
            localize_display_text(ctx.localization_service, current_key)
            if current_key is not None
            else str(current_index)
        ),
        config_display=(
            localize_display_text(ctx.localization_service, config_key)
            if config_key is not None
            else str(config_index)
        ),
        current_key=current_key,
        config_key=config_key,
    )


def _power_plan_diff(
    ctx: DiffContext, item: ConfigurationItem, state: SettingStateResult
) -> DiffOutcome:
    """Compares by GUID from raw discovery values, which is locale-independent."""
    raw = state.raw_values or {}
    current_guid = _str_or_none(raw.get(RAW_ACTIVE_PLAN_GUID))
    current_name = _str_or_none(raw.get(RAW_ACTIVE_PLAN_NAME))
    config_guid = item.power_plan_guid
    config_name = item.power_plan_name

    logger.debug(
        f"PowerPlan comparison: currentGuid='{current_guid}', configGuid='{config_guid}', "
        f"currentName='{current_name}', configName='{config_name}'"
    )

    if current_guid and normalize_guid(current_guid) == normalize_guid(config_guid):
        return DiffOutcome.no_diff()

    # A brand plan may have been created with a different GUID on this machine
    current_plan = resolve_to_predefined_plan(current_guid, current_name)
    config_plan = resolve_to_predefined_plan(config_guid, config_name)
    if (
        current_plan is not None
        and config_plan is not None
        and normalize_guid(current_plan.guid) == normalize_guid(config_plan.guid)
    ):
        return DiffOutcome.no_diff()

    current_known = find_power_plan_by_guid(current_guid)
    config_known = find_power_plan_by_guid(config_guid)
    current_key = (current_known.localization_key if current_known else None) or current_name or "Unknown"
    config_key = (config_known.localization_key if config_known else None) or config_name or "Custom"

    current_display = (
        localize_power_plan_by_guid(ctx.localization_service, current_guid)
        or current_name
        or "Unknown"
    )
    config_display = (
        localize_power_plan_by_guid(ctx.localization_service, config_guid)
        or config_name
        or "Custom"
    )
    logger.debug(f"PowerPlan: diff detected - '{current_display}' -> '{config_display}'")
    return DiffOutcome(True, current_display, config_display, current_key, config_key)


def _action_diff(
    ctx: DiffContext,
    setting: SettingDefinition,
    item: ConfigurationItem,
    state: SettingStateResult,
) -> DiffOutcome:
    # Action settings carry no comparable state
    return DiffOutcome.no_diff()


_DIFF_HANDLERS: dict[InputType, Callable[..., DiffOutcome]] = {
    InputType.TOGGLE: _toggle_diff,
    InputType.CHECKBOX: _toggle_diff,
    InputType.NUMERIC_RANGE: _numeric_range_diff,
    InputType.SELECTION: _selection_diff,
    InputType.ACTION: _action_diff,
}


def compute_diff(
    ctx: DiffContext,
    setting: SettingDefinition,
    item: ConfigurationItem,
    state: SettingStateResult,
) -> DiffOutcome:
    """Dispatches on the definition's input type."""
    return _DIFF_HANDLERS[setting.input_type](ctx, setting, item, state)


# --- Private Helpers ---


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _str_or_none(value: Any) -> str | None:
    return None if value is None else str(value)


def _option_text(combo: ComboBoxSetupResult, index: int) -> str | None:
    if 0 <= index < len(combo.options):
        return combo.options[index].display_text
    return None


def _fallback_display_name(
    ctx: DiffContext, combo: ComboBoxSetupResult, index: int
) -> str:
    if index < 0 and _is_int(combo.selected_value):
        text = _option_text(combo, combo.selected_value)
        if text is not None:
            return localize_display_text(ctx.localization_service, text)
    return str(index) if index >= 0 else "Unknown"
