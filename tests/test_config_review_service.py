import unittest
from unittest import mock

from wintweak.models.config_model import (
    ConfigSection,
    ConfigurationItem,
    FeatureGroupSection,
    UnifiedConfigurationFile,
)
from wintweak.models.review_model import ConfigReviewDiff
from wintweak.models.setting_model import InputType, SettingDefinition
from wintweak.services.config_review_service import ConfigReviewService

from tests.fakes import (
    FakeComboBoxResolver,
    FakeComboBoxSetupService,
    FakeDiscoveryService,
    FakeLocalizationService,
    FakeSettingsRegistry,
    FakeWindowsVersionService,
    state,
    toggle,
)


def _section(*items):
    return ConfigSection(is_included=True, items=list(items))


def _config(optimize=None, customize=None, windows_apps=None, external_apps=None):
    return UnifiedConfigurationFile(
        optimize=FeatureGroupSection(is_included=bool(optimize), features=optimize or {}),
        customize=FeatureGroupSection(is_included=bool(customize), features=customize or {}),
        windows_apps=windows_apps or ConfigSection(),
        external_apps=external_apps or ConfigSection(),
    )


class ReviewServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = FakeSettingsRegistry(
            settings={
                "privacy": [toggle("privacy-setting", "Privacy Setting"), toggle("s1", "S1"), toggle("s2", "S2")],
                "power": [toggle("power-toggle", "Power Toggle")],
                "taskbar": [
                    SettingDefinition("taskbar-clean", "Clean Taskbar", input_type=InputType.ACTION),
                    toggle("taskbar-alignment", "Alignment"),
                ],
                "start-menu": [
                    SettingDefinition("start-menu-clean-10", "Clean 10", input_type=InputType.ACTION),
                    SettingDefinition("start-menu-clean-11", "Clean 11", input_type=InputType.ACTION),
                ],
                "windows-theme": [
                    SettingDefinition("theme-mode-windows", "Theme", input_type=InputType.SELECTION),
                ],
            }
        )
        self.discovery = FakeDiscoveryService(
            {
                "privacy-setting": state(is_enabled=False),
                "s1": state(is_enabled=False),
                "s2": state(is_enabled=False),
                "power-toggle": state(is_enabled=True),
                "taskbar-alignment": state(is_enabled=True),
                "theme-mode-windows": state(raw_values={"SelectedIndex": 0}),
            }
        )
        self.loc = FakeLocalizationService()
        self.version = FakeWindowsVersionService(is_windows11=True)
        self.service = ConfigReviewService(
            localization_service=self.loc,
            windows_version_service=self.version,
            compatible_settings_registry=self.registry,
            discovery_service=self.discovery,
            combo_box_setup_service=FakeComboBoxSetupService({"theme-mode-windows": ["Light", "Dark"]}),
            combo_box_resolver=FakeComboBoxResolver(),
        )

    def tearDown(self) -> None:
        self.service.dispose()


class TestDiffRegistration(ReviewServiceTestCase):
    def test_toggle_off_to_on_registers_one_diff(self) -> None:
        config = _config(optimize={"privacy": _section(ConfigurationItem(id="privacy-setting", is_selected=True))})

        self.service.enter_review_mode(config)

        self.assertEqual(self.service.total_changes, 1)
        diff = self.service.get_diff_for_setting("privacy-setting")
        self.assertEqual(diff.current_value_display, "Off")
        self.assertEqual(diff.config_value_display, "On")
        self.assertEqual(diff.feature_module_id, "privacy")
        self.assertFalse(diff.is_reviewed)

    def test_matching_state_registers_no_diff(self) -> None:
        self.discovery.states["privacy-setting"] = state(is_enabled=True)
        config = _config(optimize={"privacy": _section(ConfigurationItem(id="privacy-setting", is_selected=True))})

        self.service.enter_review_mode(config)

        self.assertEqual(self.service.total_changes, 0)
        self.assertIsNone(self.service.get_diff_for_setting("privacy-setting"))
        self.assertEqual(self.service.total_config_items, 1)

    def test_action_settings_always_register(self) -> None:
        config = _config(customize={"taskbar": _section(ConfigurationItem(id="taskbar-clean", is_selected=True))})

        self.service.enter_review_mode(config)

        diff = self.service.get_diff_for_setting("taskbar-clean")
        self.assertIsNotNone(diff)
        self.assertTrue(diff.is_action_setting)
        self.assertEqual(
            diff.action_confirmation_message,
            "Clean the taskbar as part of this configuration?",
        )

    def test_only_start_menu_clean_for_running_version_is_offered(self) -> None:
        config = _config(
            customize={
                "start-menu": _section(
                    ConfigurationItem(id="start-menu-clean-10"),
                    ConfigurationItem(id="start-menu-clean-11"),
                )
            }
        )

        self.service.enter_review_mode(config)

        self.assertIsNone(self.service.get_diff_for_setting("start-menu-clean-10"))
        self.assertIsNotNone(self.service.get_diff_for_setting("start-menu-clean-11"))

    def test_failed_or_missing_state_is_skipped(self) -> None:
        self.discovery.states["s1"] = state(success=False)
        del self.discovery.states["s2"]
        config = _config(
            optimize={
                "privacy": _section(
                    ConfigurationItem(id="s1", is_selected=True),
                    ConfigurationItem(id="s2", is_selected=True),
                    ConfigurationItem(id="privacy-setting", is_selected=True),
                )
            }
        )

        self.service.enter_review_mode(config)

        self.assertEqual([d.setting_id for d in self.service.get_approved_diffs()], [])
        self.assertEqual(self.service.total_changes, 1)
        self.assertIsNotNone(self.service.get_diff_for_setting("privacy-setting"))

    def test_items_unknown_to_the_catalog_are_ignored(self) -> None:
        config = _config(optimize={"privacy": _section(ConfigurationItem(id="ghost", is_selected=True))})
        self.service.enter_review_mode(config)
        self.assertEqual(self.service.total_changes, 0)

    def test_discovery_failure_only_drops_that_feature(self) -> None:
        original = self.discovery.get_setting_states

        def flaky(settings):
            if any(s.id == "power-toggle" for s in settings):
                raise RuntimeError("WMI unavailable")
            return original(settings)

        self.discovery.get_setting_states = flaky
        config = _config(
            optimize={
                "power": _section(ConfigurationItem(id="power-toggle", is_selected=False)),
                "privacy": _section(ConfigurationItem(id="privacy-setting", is_selected=True)),
            }
        )

        self.service.enter_review_mode(config)

        self.assertTrue(self.service.is_in_review_mode)
        self.assertIsNone(self.service.get_diff_for_setting("power-toggle"))
        self.assertIsNotNone(self.service.get_diff_for_setting("privacy-setting"))

    def test_selection_state_is_resolved_before_diffing(self) -> None:
        config = _config(
            customize={
                "windows-theme": _section(
                    ConfigurationItem(id="theme-mode-windows", input_type=InputType.SELECTION, selected_index=1)
                )
            }
        )

        self.service.enter_review_mode(config)

        diff = self.service.get_diff_for_setting("theme-mode-windows")
        self.assertTrue(diff.is_action_setting)
        self.assertEqual((diff.current_value_display, diff.config_value_display), ("Light", "Dark"))
        self.assertEqual(
            diff.action_confirmation_message,
            "Apply the default wallpaper for this theme? (Recommended)",
        )

    def test_resolver_failure_keeps_raw_state(self) -> None:
        self.service.combo_box_resolver = mock.Mock()
        self.service.combo_box_resolver.resolve_current_value.side_effect = RuntimeError("boom")
        self.discovery.states["theme-mode-windows"] = state(current_value=1, raw_values={"SelectedIndex": 0})
        config = _config(
            customize={"windows-theme": _section(ConfigurationItem(id="theme-mode-windows", selected_index=1))}
        )

        self.service.enter_review_mode(config)

        diff = self.service.get_diff_for_setting("theme-mode-windows")
        # Current index 1 already matches, only the action entry remains
        self.assertEqual(diff.current_value_display, "")


class TestApprovals(ReviewServiceTestCase):
    def _enter_with_two_diffs(self):
        config = _config(
            optimize={
                "privacy": _section(
                    ConfigurationItem(id="s1", is_selected=True),
                    ConfigurationItem(id="s2", is_selected=True),
                )
            }
        )
        self.service.enter_review_mode(config)

    def test_approve_then_reject(self) -> None:
        self._enter_with_two_diffs()

        self.service.set_setting_approval("s1", True)
        self.assertEqual([d.setting_id for d in self.service.get_approved_diffs()], ["s1"])

        self.service.set_setting_approval("s1", False)
        self.assertEqual(self.service.get_approved_diffs(), [])
        self.assertEqual(self.service.reviewed_changes, 1)
        self.assertEqual(self.service.approved_changes, 0)

    def test_approved_diffs_keep_registration_order(self) -> None:
        self._enter_with_two_diffs()
        self.service.set_setting_approval("s2", True)
        self.service.set_setting_approval("s1", True)

        approved = self.service.get_approved_diffs()

        self.assertEqual([d.setting_id for d in approved], ["s1", "s2"])
        self.assertLessEqual(len(approved), self.service.total_changes)

    def test_unknown_setting_approval_is_ignored(self) -> None:
        self._enter_with_two_diffs()
        emitted = []
        self.service.approval_count_changed.connect(lambda: emitted.append(True))

        self.service.set_setting_approval("nope", True)

        self.assertEqual(emitted, [])
        self.assertEqual(self.service.reviewed_changes, 0)

    def test_approval_emits_change_signals(self) -> None:
        self._enter_with_two_diffs()
        counts, badges = [], []
        self.service.approval_count_changed.connect(lambda: counts.append(self.service.approved_changes))
        self.service.badge_state_changed.connect(lambda: badges.append(True))

        self.service.set_setting_approval("s2", True)

        # Emitted after the mutation
        self.assertEqual(counts, [1])
        self.assertEqual(badges, [True])

    def test_register_diff_adds_to_map(self) -> None:
        self._enter_with_two_diffs()
        self.service.register_diff(
            ConfigReviewDiff(
                setting_id="late",
                setting_name="Late",
                feature_module_id="privacy",
                current_value_display="Off",
                config_value_display="On",
                config_item=ConfigurationItem(id="late"),
                input_type=InputType.TOGGLE,
            )
        )
        self.assertEqual(self.service.total_changes, 3)


class TestSessionLifecycle(ReviewServiceTestCase):
    def test_exit_resets_session(self) -> None:
        config = _config(optimize={"privacy": _section(ConfigurationItem(id="s1", is_selected=True))})
        self.service.enter_review_mode(config)
        changes = []
        self.service.review_mode_changed.connect(lambda: changes.append(self.service.is_in_review_mode))

        self.service.exit_review_mode()

        self.assertEqual(changes, [False])
        self.assertEqual(self.service.total_changes, 0)
        self.assertEqual(self.service.total_config_items, 0)
        self.assertIsNone(self.service.active_config)
        self.assertFalse(self.service.is_feature_in_config("privacy"))

    def test_entering_twice_discards_first_session(self) -> None:
        self.service.enter_review_mode(
            _config(optimize={"privacy": _section(ConfigurationItem(id="s1", is_selected=True))})
        )
        self.service.set_setting_approval("s1", True)

        second = _config(optimize={"privacy": _section(ConfigurationItem(id="s2", is_selected=True))})
        self.service.enter_review_mode(second)

        self.assertIsNone(self.service.get_diff_for_setting("s1"))
        self.assertIsNotNone(self.service.get_diff_for_setting("s2"))
        self.assertIs(self.service.active_config, second)
        self.assertEqual(self.service.approved_changes, 0)

    def test_language_change_relocalizes_displays(self) -> None:
        self.service.enter_review_mode(
            _config(optimize={"privacy": _section(ConfigurationItem(id="s1", is_selected=True))})
        )
        before = self.discovery.requests[:]

        self.loc.switch_language({"Common_On": "Ein", "Common_Off": "Aus"})

        diff = self.service.get_diff_for_setting("s1")
        self.assertEqual((diff.current_value_display, diff.config_value_display), ("Aus", "Ein"))
        # No rediscovery
        self.assertEqual(self.discovery.requests, before)

    def test_dispose_stops_listening_to_language_changes(self) -> None:
        self.service.enter_review_mode(
            _config(optimize={"privacy": _section(ConfigurationItem(id="s1", is_selected=True))})
        )
        self.service.dispose()
        self.service.dispose()

        self.loc.switch_language({"Common_On": "Ein", "Common_Off": "Aus"})

        self.assertEqual(self.service.get_diff_for_setting("s1").config_value_display, "On")


class TestBadgesAndCompleteness(ReviewServiceTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.config = _config(
            optimize={
                "privacy": _section(
                    ConfigurationItem(id="s1", is_selected=True),
                    ConfigurationItem(id="s2", is_selected=True),
                ),
                "power": _section(ConfigurationItem(id="power-toggle", is_selected=True)),
            },
            customize={"taskbar": _section(ConfigurationItem(id="taskbar-alignment", is_selected=False))},
            windows_apps=_section(ConfigurationItem(id="app1"), ConfigurationItem(id="app2")),
            external_apps=_section(ConfigurationItem(id="ext1")),
        )
        self.service.enter_review_mode(self.config)

    def test_counts(self) -> None:
        self.assertEqual(self.service.total_config_items, 7)
        self.assertEqual(self.service.get_nav_badge_count("SoftwareApps"), 3)
        self.assertEqual(self.service.get_nav_badge_count("Optimize"), 2)
        self.assertEqual(self.service.get_nav_badge_count("Customize"), 1)
        self.assertEqual(self.service.get_nav_badge_count("Other"), 0)
        self.assertEqual(self.service.get_feature_diff_count("privacy"), 2)

    def test_badges_drop_as_settings_are_reviewed(self) -> None:
        self.service.set_setting_approval("s1", True)
        self.service.set_setting_approval("s2", False)

        self.assertEqual(self.service.get_nav_badge_count("Optimize"), 0)
        self.assertEqual(self.service.get_feature_pending_diff_count("privacy"), 0)

    def test_zero_diff_feature_counts_as_reviewed(self) -> None:
        self.assertTrue(self.service.is_feature_fully_reviewed("power"))

    def test_feature_needs_visit_and_all_reviewed(self) -> None:
        self.service.set_setting_approval("s1", True)
        self.service.set_setting_approval("s2", True)
        self.assertFalse(self.service.is_feature_fully_reviewed("privacy"))

        self.service.mark_feature_visited("privacy")

        self.assertTrue(self.service.is_feature_fully_reviewed("privacy"))
        self.assertTrue(self.service.is_section_fully_reviewed("Optimize"))
        self.assertFalse(self.service.is_section_fully_reviewed("Customize"))

    def test_feature_not_in_config_is_never_reviewed(self) -> None:
        self.assertFalse(self.service.is_feature_fully_reviewed("sound"))

    def test_software_apps_follow_flag(self) -> None:
        self.assertFalse(self.service.is_section_fully_reviewed("SoftwareApps"))
        self.service.is_software_apps_reviewed = True
        self.assertTrue(self.service.is_section_fully_reviewed("SoftwareApps"))

    def test_nothing_counts_outside_review(self) -> None:
        self.service.exit_review_mode()
        self.assertEqual(self.service.get_nav_badge_count("Optimize"), 0)
        self.assertFalse(self.service.is_section_fully_reviewed("Optimize"))


if __name__ == "__main__":
    unittest.main()
