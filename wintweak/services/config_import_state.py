# wintweak/services/config_import_state.py
from PyQt6.QtCore import QObject, pyqtSignal


class ConfigImportState(QObject):
    """Session-wide flag telling pages that a config import is being applied."""

    active_changed = pyqtSignal(bool)

    def __init__(self):
        super().__init__()
        self._is_active = False

    @property
    def is_active(self) -> bool:
        return self._is_active

    @is_active.setter
    def is_active(self, value: bool):
        self._is_active = value
        self.active_changed.emit(value)
