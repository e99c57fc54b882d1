# wintweak/utils/async_utils.py
import sys
import traceback
import inspect
from typing import Any, Callable
from PyQt6.QtCore import QObject, pyqtSignal, QRunnable


class WorkerSignals(QObject):
    """
    Defines the signals available from a running worker thread.
    Supported signals are:
    - finished: No data
    - error: tuple (exctype, value, traceback.format_exc())
    - result: object data returned from processing
    - progress: int current, int total
    """

    finished = pyqtSignal()
    error = pyqtSignal(tuple)  # exctype, value, traceback
    result = pyqtSignal(object)
    progress = pyqtSignal(int, int)  # current, total


class Worker(QRunnable):
    """A generic, reusable worker for running review and apply flows off the UI thread."""

    def __init__(self, fn: Callable, *args: Any, **kwargs: Any):
        super().__init__()
        # --- Store task and arguments ---
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        self.signals = WorkerSignals()

        # Only inject the progress_callback if the target function can accept it.
        try:
            sig = inspect.signature(self.fn)
            if "progress_callback" in sig.parameters:
                self.kwargs["progress_callback"] = self.signals.progress
        except (ValueError, TypeError):
            # Built-ins cannot be inspected and never take the callback
            pass

    def run(self):
        """Execute the worker's task."""
        try:
            result = self.fn(*self.args, **self.kwargs)
        except Exception:
            exctype, value = sys.exc_info()[:2]
            tb = traceback.format_exc()
            self.signals.error.emit((exctype, value, tb))
        else:
            self.signals.result.emit(result)
        finally:
            self.signals.finished.emit()
