# wintweak/services/config_app_selection_service.py
from wintweak.models.app_model import AppAction, AppItem
from wintweak.models.config_model import ConfigSection, ConfigurationItem
from wintweak.services.contracts import (
    ExternalAppsItemsProvider,
    WindowsAppsItemsProvider,
)
from wintweak.utils.logger_utils import logger


class ConfigAppSelectionService:
    """Mirrors a config's app sections onto the Windows/External app lists."""

    def __init__(
        self,
        windows_apps_provider: WindowsAppsItemsProvider,
        external_apps_provider: ExternalAppsItemsProvider,
    ):
        # --- Injected Services ---
        self.windows_apps_provider = windows_apps_provider
        self.external_apps_provider = external_apps_provider

        # --- Review Choices ---
        self.windows_apps_action: AppAction | None = None
        self.external_apps_action: AppAction | None = None

    # --- Public Methods: Selection ---

    def select_windows_apps_from_config(self, section: ConfigSection | None):
        """
        Clears the Windows app list selection, then selects every app the config
        lists. Matches by package, capability, optional feature name or id.
        """
        provider = self.windows_apps_provider
        if not provider.is_initialized:
            provider.load_items()

        for app in provider.items:
            app.is_selected = False

        if section is None or not section.items:
            return

        wanted = [item for item in section.items if item.is_selected is not False]
        selected = 0
        for app in provider.items:
            if any(self._matches_windows_app(app, item) for item in wanted):
                app.is_selected = True
                selected += 1
        logger.info(f"Selected {selected} Windows apps from config")

    def select_external_apps_from_config(self, section: ConfigSection | None):
        provider = self.external_apps_provider
        if not provider.is_initialized:
            provider.load_items()

        for app in provider.items:
            app.is_selected = False

        if section is None or not section.items:
            return

        wanted = [item for item in section.items if item.is_selected is not False]
        selected = 0
        for app in provider.items:
            if any(self._matches_external_app(app, item) for item in wanted):
                app.is_selected = True
                selected += 1
        logger.info(f"Selected {selected} external apps from config")

    def clear_windows_apps_selection(self):
        for app in self.windows_apps_provider.items:
            app.is_selected = False

    def clear_external_apps_selection(self):
        for app in self.external_apps_provider.items:
            app.is_selected = False

    def has_selected_windows_apps(self) -> bool:
        return any(app.is_selected for app in self.windows_apps_provider.items)

    def has_selected_external_apps(self) -> bool:
        return any(app.is_selected for app in self.external_apps_provider.items)

    def selected_external_app_ids(self) -> list[str]:
        return [
            app.id or app.name
            for app in self.external_apps_provider.items
            if app.is_selected
        ]

    # --- Public Methods: Processing ---

    def confirm_windows_apps_removal(self) -> tuple[bool, bool]:
        """Returns (continue, save_removal_scripts)."""
        if not self.has_selected_windows_apps():
            return True, True
        return self.windows_apps_provider.show_removal_summary_and_confirm()

    def remove_windows_apps(self, save_removal_scripts: bool = True):
        logger.info("Removing selected Windows apps")
        self.windows_apps_provider.remove_apps(
            skip_confirmation=True, save_removal_scripts=save_removal_scripts
        )

    def install_windows_apps(self):
        logger.info("Installing selected Windows apps")
        self.windows_apps_provider.install_apps()

    def process_external_apps_installation(self, section: ConfigSection):
        self.select_external_apps_from_config(section)
        selected = self._selected_external_apps()
        if not selected:
            logger.info("No external apps selected for installation")
            return
        logger.info(f"Installing {len(selected)} external apps")
        self.external_apps_provider.install_apps(selected)

    def process_external_apps_removal(self, section: ConfigSection):
        self.select_external_apps_from_config(section)
        selected = self._selected_external_apps()
        if not selected:
            logger.info("No external apps selected for removal")
            return
        logger.info(f"Removing {len(selected)} external apps")
        self.external_apps_provider.uninstall_apps(selected)

    def process_external_apps_from_user_selection(self, app_ids: list[str]):
        """Installs exactly the apps the user left ticked during review."""
        wanted = set(app_ids)
        for app in self.external_apps_provider.items:
            app.is_selected = (app.id or app.name) in wanted

        selected = self._selected_external_apps()
        if not selected:
            return
        logger.info(f"Installing {len(selected)} external apps from review selection")
        self.external_apps_provider.install_apps(selected)

    # --- Private Helpers ---

    def _selected_external_apps(self) -> list[AppItem]:
        return [app for app in self.external_apps_provider.items if app.is_selected]

    @staticmethod
    def _matches_windows_app(app: AppItem, item: ConfigurationItem) -> bool:
        if item.appx_package_name and app.appx_package_name == item.appx_package_name:
            return True
        if item.capability_name and app.capability_name == item.capability_name:
            return True
        if (
            item.optional_feature_name
            and app.optional_feature_name == item.optional_feature_name
        ):
            return True
        return bool(item.id) and app.id == item.id

    @staticmethod
    def _matches_external_app(app: AppItem, item: ConfigurationItem) -> bool:
        if item.win_get_package_id and app.win_get_package_id == item.win_get_package_id:
            return True
        return bool(item.id) and app.id == item.id
