"""Shared fixtures and OS fakes for the step detection tests."""

import pytest

from detection.models import ActionKind, ElementDescriptor, RawAction


class FakeInspector:
    """Stands in for AppInspector: frontmost app, window title and an AX tree of dicts."""

    def __init__(self, app=None, window_title=None, windows=None):
        self.app = app
        self.window_title = window_title
        self.windows = windows or {}
        self.refresh_calls = 0

    def get_frontmost_app(self):
        self.refresh_calls += 1
        return self.app

    def get_front_window_title(self):
        return self.window_title

    def get_focused_window(self, bundle_id):
        return self.windows.get(bundle_id)

    def get_attribute(self, element, attr):
        if element is None:
            return None
        return element.get(attr)


def ax(role=None, value=None, role_description=None, children=None):
    """Builds a fake accessibility element."""
    element = {}
    if role is not None:
        element["AXRole"] = role
    if value is not None:
        element["AXValue"] = value
    if role_description is not None:
        element["AXRoleDescription"] = role_description
    if children is not None:
        element["AXChildren"] = children
    return element


def make_action(kind=ActionKind.CLICK, t=1.0, **kwargs):
    return RawAction(relative_time=t, kind=kind, **kwargs)


def button(title="OK", role="AXButton"):
    return ElementDescriptor(role=role, title=title, parent_chain=("AXToolbar", "AXWindow"))


@pytest.fixture
def safari_inspector():
    return FakeInspector(
        app={"name": "Safari", "bundle_id": "com.apple.Safari", "pid": 42},
        window_title="GitHub",
    )
