# wintweak/services/contracts.py
"""
Contracts of the collaborators this engine talks to but does not own:
settings catalog and discovery, OS version, localization, dialogs, the
import overlay, the domain service router and the app list providers.
"""
from __future__ import annotations
from typing import Any, Protocol

from wintweak.models.app_model import AppItem
from wintweak.models.setting_model import (
    ComboBoxSetupResult,
    SettingDefinition,
    SettingStateResult,
)


class CompatibleSettingsRegistry(Protocol):
    def get_filtered_settings(self, feature_id: str) -> list[SettingDefinition]: ...

    def get_bypassed_settings(self, feature_id: str) -> list[SettingDefinition]: ...

    def get_all_filtered_settings(self) -> dict[str, list[SettingDefinition]]: ...

    def set_filter_enabled(self, enabled: bool) -> None: ...

    def is_filter_enabled(self) -> bool: ...


class SystemSettingsDiscoveryService(Protocol):
    def get_setting_states(
        self, settings: list[SettingDefinition]
    ) -> dict[str, SettingStateResult]: ...


class ComboBoxSetupService(Protocol):
    def setup_combo_box_options(
        self, setting: SettingDefinition, current_value: Any
    ) -> ComboBoxSetupResult: ...


class ComboBoxResolver(Protocol):
    def resolve_current_value(
        self, setting: SettingDefinition, raw_values: dict[str, Any]
    ) -> Any: ...


class WindowsVersionService(Protocol):
    def is_windows11(self) -> bool: ...

    def get_windows_build_number(self) -> int: ...


class LocalizationService(Protocol):
    """
    get_string returns None or "[key]" for unknown keys.
    language_changed is a bound pyqtSignal with no arguments.
    """

    language_changed: Any

    def get_string(self, key: str, *args: Any) -> str | None: ...


class DialogService(Protocol):
    def show_message(self, message: str, title: str) -> None: ...

    def show_information(self, message: str, title: str) -> None: ...

    def show_confirmation(self, message: str, title: str) -> bool: ...


class ConfigImportOverlayService(Protocol):
    def show_overlay(self, status: str, detail: str | None = None) -> None: ...

    def update_status(self, status: str, detail: str | None = None) -> None: ...

    def hide_overlay(self) -> None: ...


class SettingApplicationService(Protocol):
    """Routes a setting to the domain service that owns it."""

    def apply_setting(
        self,
        setting_id: str,
        enable: bool,
        value: Any = None,
        checkbox_result: bool = False,
        command_string: str | None = None,
    ) -> None: ...


class WindowsAppsItemsProvider(Protocol):
    is_initialized: bool
    items: list[AppItem]

    def load_items(self) -> None: ...

    def show_removal_summary_and_confirm(self) -> tuple[bool, bool]: ...

    def remove_apps(self, skip_confirmation: bool, save_removal_scripts: bool) -> None: ...

    def install_apps(self) -> None: ...


class ExternalAppsItemsProvider(Protocol):
    is_initialized: bool
    items: list[AppItem]

    def load_items(self) -> None: ...

    def install_apps(self, items: list[AppItem]) -> None: ...

    def uninstall_apps(self, items: list[AppItem]) -> None: ...
