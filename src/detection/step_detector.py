"""
ステップ検出: RawAction を採用/破棄し、採用時はキャプション付き DetectedStep を生成する

【使用方法】
from detection.step_detector import StepDetector

detector = StepDetector()
step = detector.classify(action, order_index=0)
if step:
    print(step.auto_caption)   # => "Click the 'Submit' button"

detector.reset()   # 新しい録画セッション開始時

# キャプション生成のみ（状態を持たない）
StepDetector.generate_caption(action)

【処理内容】
1. 操作種別（クリックは要素 role も）から確信度 0.0〜1.0 を算出
2. 確信度 < 0.3 は破棄
3. 直前に採用したステップから 0.5 秒未満のアクションは破棄（デバウンス）
   破棄されたアクションはデバウンス窓を更新しない
4. 採用時: 最終採用時刻を更新し、キャプションを生成して DetectedStep を返す
   スクショキーは "step-{order_index}.jpg"

スレッドセーフではない。ActionBuffer のロック内からのみ呼ぶこと。

【依存】
detection.models
"""

import logging
from typing import Dict, Optional

from detection.models import ActionKind, DetectedStep, RawAction

logger = logging.getLogger(__name__)

# ボタン・リンク等、意図が明確な操作対象の role
INTERACTIVE_ROLES = frozenset({
    "AXButton", "AXLink", "AXMenuItem", "AXMenuBarItem",
    "AXCheckBox", "AXRadioButton", "AXPopUpButton",
    "AXComboBox", "AXTextField", "AXTextArea",
    "AXTab", "AXToolbar", "AXDisclosureTriangle",
})

# クリック以外の操作種別の確信度
_KIND_CONFIDENCE: Dict[ActionKind, float] = {
    ActionKind.KEYBOARD_SHORTCUT: 0.9,
    ActionKind.APP_SWITCH: 0.8,
    ActionKind.TYPE: 0.4,              # 単純な入力は大きなステップの一部であることが多い
    ActionKind.MANUAL_MARKER: 1.0,
    ActionKind.MENU_SELECTION: 0.9,
    ActionKind.URL_NAVIGATION: 0.8,
    ActionKind.DIALOG_INTERACTION: 0.7,
    ActionKind.SCROLL: 0.1,            # 常に閾値未満
    ActionKind.DRAG: 0.6,
    ActionKind.UNKNOWN: 0.0,
}

FRIENDLY_ROLE_NAMES = {
    "AXButton": "button",
    "AXLink": "link",
    "AXMenuItem": "menu item",
    "AXMenuBarItem": "menu bar item",
    "AXCheckBox": "checkbox",
    "AXRadioButton": "radio button",
    "AXPopUpButton": "dropdown",
    "AXComboBox": "combo box",
    "AXTextField": "text field",
    "AXTextArea": "text area",
    "AXTab": "tab",
    "AXToolbar": "toolbar",
    "AXImage": "image",
    "AXStaticText": "text",
    "AXGroup": "area",
    "AXScrollArea": "scroll area",
    "AXTable": "table",
    "AXRow": "row",
    "AXCell": "cell",
    "AXDisclosureTriangle": "disclosure triangle",
}

KNOWN_SHORTCUTS = {
    "Cmd+C": "Copy",
    "Cmd+V": "Paste",
    "Cmd+X": "Cut",
    "Cmd+Z": "Undo",
    "Cmd+Shift+Z": "Redo",
    "Cmd+S": "Save",
    "Cmd+A": "Select All",
    "Cmd+F": "Find",
    "Cmd+N": "New",
    "Cmd+O": "Open",
    "Cmd+W": "Close Window",
    "Cmd+Q": "Quit",
    "Cmd+T": "New Tab",
    "Cmd+P": "Print",
    "Cmd+Shift+S": "Save As",
    "Cmd+Tab": "Switch App",
}

_TYPE_PREVIEW_LEN = 30


class StepDetector:
    """生アクションを確信度・デバウンスで判定するステップ検出器"""

    # ステップ間の最小間隔（秒）
    MIN_STEP_INTERVAL = 0.5
    # この確信度未満はノイズ扱い
    CONFIDENCE_THRESHOLD = 0.3
    # 「まだ採用なし」を表す番兵値（有効な relative_time の範囲外）
    _NO_STEP = -1.0

    def __init__(self):
        self._last_accepted_time = self._NO_STEP

    @property
    def last_accepted_time(self) -> float:
        return self._last_accepted_time

    def classify(self, action: RawAction, order_index: int) -> Optional[DetectedStep]:
        """
        アクションがステップかを判定する

        Input:
            action: 生アクション
            order_index: 採用時に付与する順序番号（ActionBuffer が管理）
        Output:
            DetectedStep: 採用時
            None: 確信度不足 or デバウンスで破棄
        """
        confidence = self.confidence_for(action)
        if confidence < self.CONFIDENCE_THRESHOLD:
            logger.debug("破棄(確信度 %.1f): %s t=%.2f", confidence, action.kind.value, action.relative_time)
            return None

        if action.relative_time - self._last_accepted_time < self.MIN_STEP_INTERVAL:
            logger.debug("破棄(デバウンス): %s t=%.2f", action.kind.value, action.relative_time)
            return None

        self._last_accepted_time = action.relative_time
        caption = self.generate_caption(action)
        return DetectedStep.from_action(action, order_index, caption)

    def reset(self) -> None:
        """新しい録画セッション用に状態をリセット"""
        self._last_accepted_time = self._NO_STEP

    # ===== 確信度 =====

    @staticmethod
    def confidence_for(action: RawAction) -> float:
        """確信度を算出（副作用なし、検出器の状態に依存しない）"""
        kind = ActionKind.parse(action.kind)
        if kind == ActionKind.CLICK:
            if action.element is None:
                return 0.5
            if action.element.role in INTERACTIVE_ROLES:
                return 1.0
            return 0.7
        return _KIND_CONFIDENCE.get(kind, 0.0)

    # ===== キャプション =====

    @classmethod
    def generate_caption(cls, action: RawAction) -> str:
        """操作種別と文脈から人が読めるキャプションを生成"""
        kind = ActionKind.parse(action.kind)
        if kind == ActionKind.CLICK:
            return cls._click_caption(action)
        if kind == ActionKind.KEYBOARD_SHORTCUT:
            return cls._shortcut_caption(action)
        if kind == ActionKind.APP_SWITCH:
            return f"Switch to {action.app_name}" if action.app_name is not None else "Switch application"
        if kind == ActionKind.TYPE:
            return cls._type_caption(action)
        if kind == ActionKind.MANUAL_MARKER:
            return "Manual step marker"
        if kind == ActionKind.MENU_SELECTION:
            title = action.element.title if action.element else None
            return f"Select '{title}' from menu" if title is not None else "Select menu item"
        if kind == ActionKind.URL_NAVIGATION:
            return f"Navigate to {action.url}" if action.url is not None else "Navigate to URL"
        if kind == ActionKind.DIALOG_INTERACTION:
            title = action.element.title if action.element else None
            return f"Interact with '{title}' dialog" if title is not None else "Interact with dialog"
        if kind == ActionKind.SCROLL:
            return "Scroll"
        if kind == ActionKind.DRAG:
            return "Drag action"
        return "Action performed"

    @staticmethod
    def _click_caption(action: RawAction) -> str:
        info = action.element
        if info is None:
            if action.app_name is not None:
                return f"Click in {action.app_name}"
            return "Click"

        element_type = friendly_role_name(info.role)
        if info.title:
            return f"Click the '{info.title}' {element_type}"
        if action.app_name is not None:
            return f"Click {element_type} in {action.app_name}"
        return f"Click {element_type}"

    @staticmethod
    def _shortcut_caption(action: RawAction) -> str:
        combo = action.key_combo
        if combo is None:
            return "Keyboard shortcut"

        description = KNOWN_SHORTCUTS.get(combo)
        if description:
            return f"{description} ({combo})"
        if action.app_name is not None:
            return f"Press {combo} in {action.app_name}"
        return f"Press {combo}"

    @staticmethod
    def _type_caption(action: RawAction) -> str:
        text = action.typed_text
        if text:
            preview = text[:_TYPE_PREVIEW_LEN] + "..." if len(text) > _TYPE_PREVIEW_LEN else text
            return f"Type '{preview}'"
        return "Type text"


def friendly_role_name(role: str) -> str:
    """AX role を人が読める名前に変換（未登録は "AX" を除去して小文字化）"""
    return FRIENDLY_ROLE_NAMES.get(role, role.replace("AX", "").lower())
