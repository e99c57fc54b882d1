from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class AppAction(Enum):
    """What to do with the selected apps of a list."""

    INSTALL = "install"
    REMOVE = "remove"


@dataclass
class AppItem:
    """
    A row of the Windows Apps or External Apps list. Mutable: the
    providers own these objects and toggle is_selected in place.
    """

    id: str
    name: str
    is_selected: bool = False
    appx_package_name: str | None = None
    capability_name: str | None = None
    optional_feature_name: str | None = None
    win_get_package_id: str | None = None
