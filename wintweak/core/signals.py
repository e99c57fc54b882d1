# wintweak/core/signals.py
from PyQt6.QtCore import QObject, pyqtSignal


class GlobalSignals(QObject):
    """
    A singleton class for application-wide signals.
    Helps to decouple components that don't have a direct relationship.

    Note: Use this sparingly. Review state changes travel through the signals of
    ConfigReviewService itself.
    """

    # Used by deep services (like the apply pipeline) to request a UI toast
    # without needing a direct reference to any ViewModel or View.
    # Emits: message (str), level (str, e.g., 'info', 'warning', 'error')
    toast_requested = pyqtSignal(str, str)


# Create a single, global instance that can be imported anywhere
global_signals = GlobalSignals()
