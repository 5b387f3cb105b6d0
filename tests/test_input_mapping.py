"""Tests for OS input to action value conversion."""

import pytest

from common.input_mapping import (
    ax_point,
    build_key_combo,
    is_shortcut,
    key_name,
    modifiers_from_flags,
    normalize_click,
    viewport_size,
)

CMD = 0x00100000
CTRL = 0x00040000
OPT = 0x00080000
SHIFT = 0x00020000


class TestKeys:
    def test_modifier_order(self):
        assert modifiers_from_flags(SHIFT | OPT | CTRL | CMD) == ["Cmd", "Ctrl", "Opt", "Shift"]
        assert modifiers_from_flags(0) == []

    @pytest.mark.parametrize("mods, expected", [
        (["Cmd"], True),
        (["Ctrl", "Shift"], True),
        (["Opt"], True),
        (["Shift"], False),
        ([], False),
    ])
    def test_is_shortcut(self, mods, expected):
        assert is_shortcut(mods) is expected

    def test_key_name(self):
        assert key_name(48, "\t") == "Tab"
        assert key_name(36, "\r") == "Enter"
        assert key_name(1, "s") == "S"
        assert key_name(200, None) == "[200]"

    def test_build_key_combo(self):
        assert build_key_combo(modifiers_from_flags(CMD | SHIFT), key_name(1, "s")) == "Cmd+Shift+S"
        assert build_key_combo(["Cmd"], key_name(48, "\t")) == "Cmd+Tab"
        assert build_key_combo(["Shift", "Cmd"], "Z") == "Cmd+Shift+Z"


class TestCoordinates:
    def test_normalize_flips_y(self):
        assert normalize_click(640, 400, 2560, 1600) == (0.25, 0.75)

    def test_normalize_clamps(self):
        assert normalize_click(-10, 2000, 2560, 1600) == (0.0, 0.0)
        assert normalize_click(3000, -5, 2560, 1600) == (1.0, 1.0)

    def test_normalize_invalid_size(self):
        assert normalize_click(10, 10, 0, 1600) == (0.0, 0.0)

    def test_ax_point(self):
        assert ax_point(640, 400, 1600) == (640, 1200)

    @pytest.mark.parametrize("screen, expected", [
        ((1440, 900), (1440, 900)),
        (None, (2560, 1600)),
        ((0, 900), (2560, 1600)),
    ])
    def test_viewport_size(self, screen, expected):
        assert viewport_size(screen, (2560, 1600)) == expected
