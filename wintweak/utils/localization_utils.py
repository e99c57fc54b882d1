# wintweak/utils/localization_utils.py
from typing import Any

from wintweak.core.constants import DEFAULT_STRINGS


def is_missing_translation(text: str | None) -> bool:
    """The localization service returns None, "" or "[key]" for unknown keys."""
    return not text or (text.startswith("[") and text.endswith("]"))


def tr(localization_service, key: str, *args: Any) -> str:
    """
    Looks up a UI string, falling back to the built-in English text.
    Positional args fill "{0}"-style placeholders in either source.
    """
    localized = localization_service.get_string(key, *args)
    if not is_missing_translation(localized):
        return localized

    fallback = DEFAULT_STRINGS.get(key, key)
    return fallback.format(*args) if args else fallback


def localize_display_text(localization_service, display_text: str | None) -> str:
    """
    Resolves combo box display text that may be a localization key
    (e.g. "PowerPlan_Balanced_Name"). Plain text passes through unchanged.
    """
    if not display_text:
        return "Unknown"

    localized = localization_service.get_string(display_text)
    if not is_missing_translation(localized):
        return localized
    return DEFAULT_STRINGS.get(display_text, display_text)
