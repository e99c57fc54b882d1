from __future__ import annotations
from dataclasses import dataclass, field

from wintweak.models.config_model import ConfigurationItem
from wintweak.models.setting_model import InputType


@dataclass(frozen=True)
class ConfigReviewDiff:
    """
    One reviewable difference between the live system and the config.
    Updated only through dataclasses.replace by ConfigReviewService.
    """

    setting_id: str
    setting_name: str
    feature_module_id: str
    current_value_display: str
    config_value_display: str
    config_item: ConfigurationItem
    input_type: InputType

    # Raw keys kept so display strings can be re-localized
    current_display_key: str | None = None
    config_display_key: str | None = None

    is_action_setting: bool = False
    action_confirmation_message: str | None = None

    # --- Review State ---
    is_reviewed: bool = False
    is_approved: bool = False

    @property
    def is_effectively_approved(self) -> bool:
        return self.is_reviewed and self.is_approved


@dataclass(frozen=True)
class DiffOutcome:
    """Result of comparing one setting. has_diff=False carries no display data."""

    has_diff: bool
    current_display: str = ""
    config_display: str = ""
    current_key: str | None = None
    config_key: str | None = None

    @classmethod
    def no_diff(cls) -> "DiffOutcome":
        return cls(has_diff=False)


@dataclass(frozen=True)
class SettingApplyOutcome:
    setting_id: str
    status: str  # 'applied', 'skipped', 'failed'
    reason: str | None = None


@dataclass(frozen=True)
class SectionApplyResult:
    """Batch result of applying one config section."""

    section_name: str
    outcomes: list[SettingApplyOutcome] = field(default_factory=list)
    restart_processes: frozenset[str] = frozenset()

    @property
    def applied(self) -> list[str]:
        return [o.setting_id for o in self.outcomes if o.status == "applied"]

    @property
    def skipped(self) -> list[str]:
        return [o.setting_id for o in self.outcomes if o.status == "skipped"]

    @property
    def failed(self) -> list[str]:
        return [o.setting_id for o in self.outcomes if o.status == "failed"]

    @property
    def success(self) -> bool:
        return bool(self.outcomes) and not self.failed
