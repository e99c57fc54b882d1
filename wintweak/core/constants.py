# wintweak/core/constants.py
from dataclasses import dataclass

# --- Application Info ---
APP_NAME: str = "WinTweak"
ORG_NAME: str = "wintweak"
APP_VERSION: str = "0.1.0"

# --- File & Directory Names ---
CONFIG_FILE_VERSION: str = "2.0"
CONFIG_FILE_EXTENSION: str = ".wtcfg"
USER_BACKUP_PREFIX: str = "UserBackup_"
USER_BACKUP_TIMESTAMP_FORMAT: str = "%Y%m%d_%H%M%S"
LOG_DIR_NAME: str = "logs"
BACKUP_DIR_NAME: str = "Backup"

# --- Feature Module Ids ---
FEATURE_PRIVACY: str = "privacy"
FEATURE_POWER: str = "power"
FEATURE_GAMING: str = "gaming-performance"
FEATURE_NOTIFICATIONS: str = "notifications"
FEATURE_SOUND: str = "sound"
FEATURE_UPDATE: str = "update"
FEATURE_EXPLORER: str = "explorer-customization"
FEATURE_START_MENU: str = "start-menu"
FEATURE_TASKBAR: str = "taskbar"
FEATURE_WINDOWS_THEME: str = "windows-theme"
FEATURE_WINDOWS_APPS: str = "windows-apps"
FEATURE_EXTERNAL_APPS: str = "external-apps"

OPTIMIZE_FEATURES: tuple[str, ...] = (
    FEATURE_PRIVACY,
    FEATURE_POWER,
    FEATURE_GAMING,
    FEATURE_NOTIFICATIONS,
    FEATURE_SOUND,
    FEATURE_UPDATE,
)
CUSTOMIZE_FEATURES: tuple[str, ...] = (
    FEATURE_EXPLORER,
    FEATURE_START_MENU,
    FEATURE_TASKBAR,
    FEATURE_WINDOWS_THEME,
)

# --- Section Tags (navigation + import sections) ---
SECTION_OPTIMIZE: str = "Optimize"
SECTION_CUSTOMIZE: str = "Customize"
SECTION_SOFTWARE_APPS: str = "SoftwareApps"
SECTION_WINDOWS_APPS: str = "WindowsApps"
SECTION_EXTERNAL_APPS: str = "ExternalApps"

# --- Special Setting Ids ---
SETTING_THEME_MODE: str = "theme-mode-windows"
SETTING_TASKBAR_CLEAN: str = "taskbar-clean"
SETTING_START_MENU_CLEAN_10: str = "start-menu-clean-10"
SETTING_START_MENU_CLEAN_11: str = "start-menu-clean-11"
SETTING_POWER_PLAN: str = "power-plan-selection"
SETTING_UPDATES_POLICY: str = "updates-policy-mode"
SETTING_TASKBAR_TRANSPARENT: str = "taskbar-transparent"

ACTION_SETTING_IDS: frozenset[str] = frozenset(
    {
        SETTING_THEME_MODE,
        SETTING_TASKBAR_CLEAN,
        SETTING_START_MENU_CLEAN_10,
        SETTING_START_MENU_CLEAN_11,
    }
)

# Raw discovery keys for the active power plan
RAW_ACTIVE_PLAN_GUID: str = "ActivePowerPlanGuid"
RAW_ACTIVE_PLAN_NAME: str = "ActivePowerPlan"

# --- Explorer Restart ---
EXPLORER_PROCESS: str = "explorer"
EXPLORER_AUTO_RESTART_RETRIES: int = 20
EXPLORER_AUTO_RESTART_INTERVAL_S: float = 0.25
EXPLORER_VERIFY_RETRIES: int = 10
EXPLORER_VERIFY_INTERVAL_S: float = 0.5
EXPLORER_SETTLE_DELAY_S: float = 1.0


@dataclass(frozen=True)
class PredefinedPowerPlan:
    name: str
    guid: str
    localization_key: str


BUILT_IN_POWER_PLANS: tuple[PredefinedPowerPlan, ...] = (
    PredefinedPowerPlan(
        "Balanced", "381b4222-f694-41f0-9685-ff5bb260df2e", "PowerPlan_Balanced_Name"
    ),
    PredefinedPowerPlan(
        "High Performance",
        "8c5e7fda-e8bf-4a96-9a85-a6e23a8c635c",
        "PowerPlan_HighPerformance_Name",
    ),
    PredefinedPowerPlan(
        "Power Saver", "a1841308-3541-4fab-bc81-f71556f20b4a", "PowerPlan_PowerSaver_Name"
    ),
    PredefinedPowerPlan(
        "Ultimate Performance",
        "e9a42b02-d5df-448d-aa00-03f14749eb61",
        "PowerPlan_UltimatePerformance_Name",
    ),
    PredefinedPowerPlan(
        "WinTweak Power Plan",
        "57696e54-7765-616b-506f-776572000000",
        "PowerPlan_WinTweak_Name",
    ),
)
# Custom plans created by the app keep this brand name across locales
POWER_PLAN_BRAND: str = "WinTweak"

# --- Default (English) UI Strings, keyed by localization key ---
DEFAULT_STRINGS: dict[str, str] = {
    "Common_On": "On",
    "Common_Off": "Off",
    "Review_Mode_Action_ThemeWallpaper": "Apply the default wallpaper for this theme? (Recommended)",
    "Review_Mode_Action_CleanTaskbar": "Clean the taskbar as part of this configuration?",
    "Review_Mode_Action_CleanStartMenu": "Clean the start menu as part of this configuration?",
    "Review_Mode_Status_Format": "{0} of {1} reviewed ({2} will be applied)",
    "Review_Mode_Status_AllMatch": "All settings already match config",
    "Review_Mode_Status_NoItems": "No configuration items to apply",
    "Review_Mode_Cancel_Confirmation": "Are you sure you want to cancel reviewing this configuration? No changes will be applied.",
    "Review_Mode_Cancel_Confirmation_Title": "Cancel Review",
    "Config_Import_Error_NoSelection": "No changes to apply.",
    "Config_Import_Error_NoSelection_Title": "No Changes",
    "Config_Import_Status_Applying": "Sit back and relax while WinTweak applies your desired settings...",
    "Config_Import_Status_RestartingExplorer": "Restarting Explorer...",
    "Config_Import_Success_Message": "Configuration imported successfully.",
    "Config_Import_Success_Title": "Import Successful",
    "Config_Unsupported_Message": "This configuration file version ({0}) is not compatible with this version of WinTweak.",
    "Config_Unsupported_Title": "Incompatible Configuration",
    "Config_Backup_NotFound": "No backup configuration files found.",
    "Config_Backup_NotFound_Title": "No Backup Found",
    "Config_Export_Success_Message": "Configuration saved to {0}.",
    "Config_Export_Success_Title": "Export Successful",
}
