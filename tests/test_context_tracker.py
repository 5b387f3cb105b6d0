"""Tests for ContextTracker caching."""

from detection.context_tracker import AppContext, ContextTracker

from conftest import FakeInspector


class TestContextTracker:
    def test_refresh_caches_frontmost_app(self, safari_inspector):
        tracker = ContextTracker(inspector=safari_inspector)

        tracker.refresh()

        assert tracker.current_context == AppContext("com.apple.Safari", "Safari", "GitHub")
        assert tracker.all_apps_used == ["com.apple.Safari"]

    def test_apps_used_are_sorted_and_unique(self):
        inspector = FakeInspector()
        tracker = ContextTracker(inspector=inspector)

        for bundle_id in ["com.microsoft.VSCode", "com.apple.Safari", "com.microsoft.VSCode"]:
            inspector.app = {"name": bundle_id, "bundle_id": bundle_id, "pid": 1}
            tracker.refresh()

        assert tracker.all_apps_used == ["com.apple.Safari", "com.microsoft.VSCode"]

    def test_failed_lookup_keeps_previous_context(self, safari_inspector):
        tracker = ContextTracker(inspector=safari_inspector)
        tracker.refresh()

        safari_inspector.app = {"name": "Unknown", "bundle_id": "", "pid": 0, "error": "no app"}
        tracker.refresh()

        assert tracker.current_context.app_name == "Safari"

    def test_app_without_bundle_id_is_not_recorded(self):
        inspector = FakeInspector(app={"name": "Helper", "bundle_id": None, "pid": 3})
        tracker = ContextTracker(inspector=inspector)

        tracker.refresh()

        assert tracker.current_context.app_name == "Helper"
        assert tracker.current_context.bundle_id is None
        assert tracker.all_apps_used == []

    def test_reset(self, safari_inspector):
        tracker = ContextTracker(inspector=safari_inspector)
        tracker.refresh()

        tracker.reset()

        assert tracker.current_context == AppContext()
        assert tracker.all_apps_used == []

    def test_refresh_returns_current_context(self, safari_inspector):
        tracker = ContextTracker(inspector=safari_inspector)

        first = tracker.refresh()
        safari_inspector.app = None
        second = tracker.refresh()

        assert first == AppContext("com.apple.Safari", "Safari", "GitHub")
        assert second == first
