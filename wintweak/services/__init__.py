from .config_app_selection_service import ConfigAppSelectionService
from .config_application_bridge_service import ConfigurationApplicationBridgeService
from .config_application_execution_service import ConfigApplicationExecutionService
from .config_export_service import ConfigExportService
from .config_file_service import ConfigFileError, ConfigFileService
from .config_import_state import ConfigImportState
from .config_load_service import ConfigLoadService
from .config_review_orchestration_service import ConfigReviewOrchestrationService
from .config_review_service import ConfigReviewService

__all__ = [
    "ConfigAppSelectionService",
    "ConfigurationApplicationBridgeService",
    "ConfigApplicationExecutionService",
    "ConfigExportService",
    "ConfigFileError",
    "ConfigFileService",
    "ConfigImportState",
    "ConfigLoadService",
    "ConfigReviewOrchestrationService",
    "ConfigReviewService",
]
