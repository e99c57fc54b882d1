from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class InputType(Enum):
    """How a setting is presented and applied. Values match the config file."""

    TOGGLE = "Toggle"
    CHECKBOX = "CheckBox"
    NUMERIC_RANGE = "NumericRange"
    SELECTION = "Selection"
    ACTION = "Action"


@dataclass(frozen=True)
class BuildRange:
    """Inclusive Windows build range."""

    min_build: int
    max_build: int

    def contains(self, build_number: int) -> bool:
        return self.min_build <= build_number <= self.max_build


@dataclass(frozen=True)
class SettingDefinition:
    """Catalog entry for a tweakable setting. Immutable."""

    id: str
    name: str
    input_type: InputType = InputType.TOGGLE
    description: str = ""
    group_name: str | None = None

    # --- OS Compatibility ---
    is_windows10_only: bool = False
    is_windows11_only: bool = False
    minimum_build_number: int | None = None
    maximum_build_number: int | None = None
    supported_build_ranges: tuple[BuildRange, ...] = ()

    # --- Application Behaviour ---
    requires_confirmation: bool = False
    action_command: str | None = None
    restart_process: str | None = None
    custom_properties: dict[str, Any] = field(default_factory=dict)

    def is_compatible_with(self, is_windows11: bool, build_number: int) -> bool:
        """
        Evaluates the version predicates in order. The first failing
        predicate marks the setting as incompatible.
        """
        if self.is_windows10_only and is_windows11:
            return False
        if self.is_windows11_only and not is_windows11:
            return False
        if (
            self.minimum_build_number is not None
            and build_number < self.minimum_build_number
        ):
            return False
        if (
            self.maximum_build_number is not None
            and build_number > self.maximum_build_number
        ):
            return False
        if self.supported_build_ranges:
            return any(r.contains(build_number) for r in self.supported_build_ranges)
        return True


@dataclass(frozen=True)
class SettingStateResult:
    """Snapshot of a setting's live state, as reported by discovery."""

    success: bool = False
    is_enabled: bool = False
    current_value: Any = None
    raw_values: dict[str, Any] | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class ComboBoxOption:
    display_text: str
    value: Any = None


@dataclass(frozen=True)
class ComboBoxSetupResult:
    options: tuple[ComboBoxOption, ...] = ()
    selected_value: Any = None
