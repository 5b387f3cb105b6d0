"""Tests for TypingBuffer and the ordering of typed text against clicks."""

import pytest

from common.typing_buffer import TypingBuffer
from detection.action_buffer import ActionBuffer
from detection.context_tracker import ContextTracker
from detection.models import ActionKind, ElementDescriptor
from plugins.registry import PluginRegistry
from recorder.session_recorder import SessionRecorder

from conftest import button, make_action

START = 1000.0


class FakeClock:
    def __init__(self, now=START):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def type_text(typing, clock, text, at):
    clock.now = START + at
    for char in text:
        typing.add(char)


class TestTypingBuffer:
    def test_flush_emits_one_type_action_at_first_char_time(self, clock):
        emitted = []
        typing = TypingBuffer(START, emitted.append, flush_sec=60.0, viewport=lambda: (1440, 900), clock=clock)

        type_text(typing, clock, "he", at=1.5)
        type_text(typing, clock, "llo", at=1.9)
        typing.flush()

        assert len(emitted) == 1
        action = emitted[0]
        assert action.kind == ActionKind.TYPE
        assert action.typed_text == "hello"
        assert action.relative_time == pytest.approx(1.5)
        assert (action.viewport_width, action.viewport_height) == (1440, 900)
        assert typing.pending == ""

    def test_flush_without_input_does_nothing(self, clock):
        emitted = []
        TypingBuffer(START, emitted.append, clock=clock).flush()
        assert emitted == []

    def test_callback_error_does_not_propagate(self, clock):
        def explode(action):
            raise RuntimeError("listener down")

        typing = TypingBuffer(START, explode, flush_sec=60.0, clock=clock)
        type_text(typing, clock, "x", at=1.0)

        typing.flush()

        assert typing.pending == ""


class TestTypingBeforeClick:
    """Pending text is flushed before the click that ends it, as EventMonitor does."""

    def _recorder(self, safari_inspector, clock, buffer):
        return SessionRecorder(
            buffer=buffer,
            context_tracker=ContextTracker(inspector=safari_inspector),
            plugins=PluginRegistry(inspector=safari_inspector),
            clock=clock,
        )

    def test_type_then_click_keeps_both_steps(self, safari_inspector, clock):
        recorder = self._recorder(safari_inspector, clock, ActionBuffer())
        recorder.start()
        typing = TypingBuffer(START, recorder.handle_action, flush_sec=60.0, clock=clock)

        recorder.handle_action(make_action(t=0.0, element=button("Search", role="AXTextField")))
        type_text(typing, clock, "cats", at=1.0)
        clock.now = START + 2.3
        typing.flush()
        recorder.handle_action(make_action(t=2.3, element=button("Submit")))

        assert [s.auto_caption for s in recorder.steps] == [
            "Click the 'Search' text field",
            "Type 'cats'",
            "Click the 'Submit' button",
        ]

    def test_password_is_dropped_before_login_click(self, safari_inspector, clock):
        buffer = ActionBuffer()
        recorder = self._recorder(safari_inspector, clock, buffer)
        recorder.start()
        typing = TypingBuffer(START, recorder.handle_action, flush_sec=60.0, clock=clock)

        password = ElementDescriptor(role="AXSecureTextField", title="Password")
        recorder.handle_action(make_action(t=0.0, element=password))
        type_text(typing, clock, "hunter2", at=1.0)
        clock.now = START + 2.0
        typing.flush()
        recorder.handle_action(make_action(t=2.0, element=button("Log in")))

        assert [s.kind for s in recorder.steps] == [ActionKind.CLICK, ActionKind.CLICK]
        assert all(a.typed_text is None for a in buffer.actions)
