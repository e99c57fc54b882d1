from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from wintweak.core.constants import CONFIG_FILE_VERSION
from wintweak.models.setting_model import InputType


@dataclass(frozen=True)
class ConfigurationItem:
    """A single entry of a configuration file section. Immutable."""

    id: str
    name: str = ""
    is_selected: bool | None = None
    input_type: InputType = InputType.TOGGLE
    selected_index: int | None = None

    # --- Selection / NumericRange payloads ---
    power_settings: dict[str, Any] | None = None
    power_plan_guid: str | None = None
    power_plan_name: str | None = None
    custom_state_values: dict[str, Any] | None = None

    # --- App identity (WindowsApps / ExternalApps sections) ---
    appx_package_name: str | None = None
    capability_name: str | None = None
    optional_feature_name: str | None = None
    sub_packages: tuple[str, ...] | None = None
    win_get_package_id: str | None = None


@dataclass(frozen=True)
class ConfigSection:
    is_included: bool = False
    items: list[ConfigurationItem] = field(default_factory=list)


@dataclass(frozen=True)
class FeatureGroupSection:
    """Optimize or Customize: feature module id -> section, in file order."""

    is_included: bool = False
    features: dict[str, ConfigSection] = field(default_factory=dict)


@dataclass(frozen=True)
class UnifiedConfigurationFile:
    """A whole configuration file. Treated as an immutable snapshot."""

    version: str | None = CONFIG_FILE_VERSION
    created_at: str | None = None
    optimize: FeatureGroupSection = field(default_factory=FeatureGroupSection)
    customize: FeatureGroupSection = field(default_factory=FeatureGroupSection)
    windows_apps: ConfigSection = field(default_factory=ConfigSection)
    external_apps: ConfigSection = field(default_factory=ConfigSection)


@dataclass(frozen=True)
class ImportOptions:
    """Effective choices for one import run."""

    process_windows_apps_removal: bool = False
    process_windows_apps_installation: bool = False
    process_external_apps_installation: bool = False
    process_external_apps_removal: bool = False
    apply_theme_wallpaper: bool = False
    apply_clean_taskbar: bool = False
    apply_clean_start_menu: bool = False
    review_before_apply: bool = False
    action_only_subsections: frozenset[str] = frozenset()
