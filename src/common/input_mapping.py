"""
OS入力イベントを RawAction の値に変換する純粋関数群（OS API に依存しない）

【使用方法】
from common.input_mapping import (
    modifiers_from_flags, is_shortcut, key_name, build_key_combo,
    normalize_click, ax_point, viewport_size,
)

mods = modifiers_from_flags(0x00100000 | 0x00020000)   # => ["Cmd", "Shift"]
is_shortcut(mods)                                       # => True
build_key_combo(mods, key_name(1, "s"))                 # => "Cmd+Shift+S"
build_key_combo(["Cmd"], key_name(48, "\t"))            # => "Cmd+Tab"

normalize_click(640, 400, 2560, 1600)   # 左下原点 → (0.25, 0.75)
ax_point(640, 400, 1600)                # 左下原点 → 左上原点 (640, 1200)
viewport_size(None, (2560, 1600))       # => (2560, 1600)

【処理内容】
1. CGEventFlags から修飾キー名を Cmd, Ctrl, Opt, Shift の順で取得
2. Cmd/Ctrl/Opt のいずれかを含む場合のみショートカット扱い（Shift のみは通常入力）
3. 特殊キーはキーコードから名前、通常キーは修飾キー無視の文字を大文字化
4. クリック座標を画面サイズで 0〜1 に正規化（Y は上端基準に反転、範囲外はクランプ）
"""

from typing import List, Optional, Sequence, Tuple

# 修飾キーフラグ定数（キーコンボでの表示順）
_MOD_FLAGS = [(0x00100000, "Cmd"), (0x00040000, "Ctrl"), (0x00080000, "Opt"), (0x00020000, "Shift")]
_SHORTCUT_MODS = {"Cmd", "Ctrl", "Opt"}

# 特殊キーコードのマッピング
KEYCODE_NAMES = {
    36: "Enter", 48: "Tab", 51: "Delete", 53: "Escape",
    123: "Left", 124: "Right", 125: "Down", 126: "Up",
    49: "Space", 116: "PageUp", 121: "PageDown",
    115: "Home", 119: "End", 117: "FwdDel",
}


def modifiers_from_flags(flags: int) -> List[str]:
    return [name for mask, name in _MOD_FLAGS if flags & mask]


def is_shortcut(modifiers: Sequence[str]) -> bool:
    return bool(_SHORTCUT_MODS & set(modifiers))


def key_name(keycode: int, chars: Optional[str]) -> str:
    if keycode in KEYCODE_NAMES:
        return KEYCODE_NAMES[keycode]
    if chars:
        return chars.upper()
    return f"[{keycode}]"


def build_key_combo(modifiers: Sequence[str], key: str) -> str:
    ordered = [name for _, name in _MOD_FLAGS if name in modifiers]
    return "+".join(ordered + [key])


def _clamp(v: float) -> float:
    return min(1.0, max(0.0, v))


def normalize_click(x: float, y: float, width: int, height: int) -> Tuple[float, float]:
    """左下原点の画面座標を 0〜1（左上原点）に正規化"""
    if width <= 0 or height <= 0:
        return 0.0, 0.0
    return _clamp(x / width), _clamp(1.0 - y / height)


def ax_point(x: float, y: float, height: int) -> Tuple[float, float]:
    """左下原点の画面座標を Accessibility API 用の左上原点座標に変換"""
    return x, height - y


def viewport_size(screen_size: Optional[Tuple[int, int]], fallback: Tuple[int, int]) -> Tuple[int, int]:
    if not screen_size or screen_size[0] <= 0 or screen_size[1] <= 0:
        return fallback
    return int(screen_size[0]), int(screen_size[1])
