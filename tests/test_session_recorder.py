"""Tests for SessionRecorder enrichment, filtering and session metadata."""

import threading
from datetime import datetime

import pytest

from common.privacy_guard import PrivacyGuard, PrivacyLevel
from detection.context_tracker import ContextTracker
from detection.models import ActionKind, ElementDescriptor
from plugins.registry import PluginRegistry
from recorder.session_recorder import SessionRecorder

from conftest import FakeInspector, ax, button, make_action


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def inspector(safari_inspector):
    safari_inspector.windows["com.apple.Safari"] = ax("AXWindow", children=[
        ax("AXTextField", value="https://github.com/?token=secret"),
    ])
    return safari_inspector


def build_recorder(inspector, clock, steps=None, privacy=None):
    return SessionRecorder(
        context_tracker=ContextTracker(inspector=inspector),
        plugins=PluginRegistry(inspector=inspector),
        privacy_guard=privacy or PrivacyGuard(),
        on_step=steps.append if steps is not None else None,
        screen_size=(2560, 1600),
        clock=clock,
    )


class TestEnrichment:
    def test_click_is_enriched_from_context_and_plugin(self, inspector, clock):
        steps = []
        recorder = build_recorder(inspector, clock, steps)
        recorder.start()

        step = recorder.handle_action(make_action(t=1.0, element=button("Sign in")))

        assert step is not None
        assert step.app_bundle_id == "com.apple.Safari"
        assert step.app_name == "Safari"
        assert step.window_title == "GitHub"
        assert step.url == "https://github.com/?token=[MASKED]"
        assert step.auto_caption == "Click the 'Sign in' button"
        assert steps == [step]
        assert recorder.steps == [step]

    def test_action_fields_take_precedence(self, inspector, clock):
        recorder = build_recorder(inspector, clock)
        recorder.start()

        step = recorder.handle_action(make_action(
            ActionKind.APP_SWITCH, 1.0,
            app_bundle_id="com.microsoft.VSCode",
            app_name="Visual Studio Code",
            window_title="main.py - my-app - Visual Studio Code",
        ))

        assert step.auto_caption == "Switch to Visual Studio Code"
        assert step.app_bundle_id == "com.microsoft.VSCode"
        assert step.url is None
        assert dict(step.plugin_info) == {"file": "main.py", "project": "my-app"}

    def test_unknown_app_has_no_plugin_info(self, clock):
        inspector = FakeInspector(app={"name": "Finder", "bundle_id": "com.apple.finder", "pid": 1})
        recorder = build_recorder(inspector, clock)
        recorder.start()

        step = recorder.handle_action(make_action(t=1.0))

        assert step.auto_caption == "Click in Finder"
        assert dict(step.plugin_info) == {}


class TestPrivacy:
    def test_typing_after_password_click_is_dropped(self, inspector, clock):
        recorder = build_recorder(inspector, clock)
        recorder.start()

        password = ElementDescriptor(role="AXSecureTextField", title="Password", value="hunter2")
        click = recorder.handle_action(make_action(t=1.0, element=password))
        typed = recorder.handle_action(make_action(ActionKind.TYPE, 2.0, typed_text="hunter2"))

        assert click.element.value == "[MASKED]"
        assert typed is None
        assert recorder.step_count == 1

    def test_typing_after_normal_click_is_kept(self, inspector, clock):
        recorder = build_recorder(inspector, clock)
        recorder.start()

        recorder.handle_action(make_action(t=1.0, element=ElementDescriptor(role="AXSecureTextField")))
        recorder.handle_action(make_action(t=2.0, element=ElementDescriptor(role="AXTextField", title="Search")))
        typed = recorder.handle_action(make_action(ActionKind.TYPE, 3.0, typed_text="cats"))

        assert typed.auto_caption == "Type 'cats'"
        assert recorder.step_count == 3

    def test_off_keeps_url(self, inspector, clock):
        recorder = build_recorder(inspector, clock, privacy=PrivacyGuard(PrivacyLevel.OFF))
        recorder.start()

        step = recorder.handle_action(make_action(t=1.0, element=button()))

        assert step.url == "https://github.com/?token=secret"

    def test_typing_after_custom_password_control_is_dropped(self, inspector, clock):
        recorder = build_recorder(inspector, clock)
        recorder.start()

        field = ElementDescriptor(role="AXTextField", title="PIN", role_description="PIN code")
        recorder.handle_action(make_action(t=1.0, element=field))

        assert recorder.handle_action(make_action(ActionKind.TYPE, 2.0, typed_text="1234")) is None


class TestSession:
    def test_manual_marker_uses_clock(self, inspector, clock):
        recorder = build_recorder(inspector, clock)
        recorder.start()
        clock.now += 4.0

        step = recorder.add_manual_marker()

        assert step.kind == ActionKind.MANUAL_MARKER
        assert step.timestamp == pytest.approx(4.0)
        assert step.auto_caption == "Manual step marker"

    def test_stop_builds_session(self, inspector, clock):
        recorder = build_recorder(inspector, clock)
        start = recorder.start()
        recorder.handle_action(make_action(t=1.0, element=button()))
        recorder.handle_action(make_action(ActionKind.SCROLL, 2.0))
        clock.now += 30.0

        session = recorder.stop()

        assert start == 1000.0
        assert session.started_at == datetime.fromtimestamp(1000.0)
        assert session.duration == pytest.approx(30.0)
        assert session.screen_resolution == "2560x1600"
        assert session.apps_used == ["com.apple.Safari"]
        assert [s.order_index for s in session.steps] == [0]
        assert session.session_id

    def test_restart_clears_previous_session(self, inspector, clock):
        recorder = build_recorder(inspector, clock)
        recorder.start()
        recorder.handle_action(make_action(t=1.0, element=button()))

        recorder.start()
        step = recorder.handle_action(make_action(t=0.2, element=button()))

        assert step.order_index == 0
        assert recorder.steps == [step]


class TestMalformedAddressBar:
    def test_unparseable_url_does_not_block_click(self, safari_inspector, clock):
        safari_inspector.windows["com.apple.Safari"] = ax("AXWindow", children=[
            ax("AXTextField", value="http://[::1/?q=1"),
        ])
        recorder = build_recorder(safari_inspector, clock)
        recorder.start()

        step = recorder.handle_action(make_action(t=1.0, element=button("Reload")))

        assert step is not None
        assert step.url == "http://[::1/?q=1"


class TestConcurrentSources:
    def test_actions_from_several_threads_get_contiguous_indices(self, inspector, clock):
        steps = []
        recorder = build_recorder(inspector, clock, steps)
        recorder.start()
        barrier = threading.Barrier(3)

        def producer(offset):
            barrier.wait()
            for i in range(20):
                recorder.handle_action(make_action(ActionKind.MANUAL_MARKER, t=(offset * 20 + i) * 10.0))

        threads = [threading.Thread(target=producer, args=(n,)) for n in range(3)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert [s.order_index for s in steps] == list(range(len(steps)))
        assert [s.order_index for s in recorder.steps] == list(range(len(steps)))
