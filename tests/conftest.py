import sys
import tempfile

import pytest
from PyQt6.QtCore import QCoreApplication

from wintweak.utils.logger_utils import set_log_directory

# Keep test runs from writing log files into the package folder
set_log_directory(tempfile.mkdtemp(prefix="wintweak-test-logs-"))


@pytest.fixture(scope="session", autouse=True)
def qt_core_app():
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    yield app
