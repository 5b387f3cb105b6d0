"""
macOS Accessibility API / NSWorkspace でアプリ・ウィンドウ・UI要素情報を取得するモジュール

【使用方法】
from common.app_inspector import AppInspector

inspector = AppInspector()
app_info = inspector.get_frontmost_app()
# => {"name": "Safari", "bundle_id": "com.apple.Safari", "pid": 1234}

inspector.get_front_window_title()
# => "GitHub"

element = inspector.get_element_descriptor(500, 300)
# => ElementDescriptor(role="AXButton", title="Submit", value=None, parent_chain=("AXToolbar", "AXWindow"))

window = inspector.get_focused_window("com.google.Chrome")   # AXUIElement or None
inspector.get_attribute(window, "AXChildren")

inspector.get_main_screen_size()
# => (1728, 1117) / 取得失敗時は None

【処理内容】
1. NSWorkspaceで最前面アプリ情報(名前, bundle_id, pid)を取得
2. AXFocusedWindow の AXTitle で最前面ウィンドウのタイトルを取得
3. AXUIElementで座標（左上原点）のUI要素(role, title, value, role description)と祖先 role チェーンを取得
4. bundle_id から実行中アプリを探し、フォーカス中ウィンドウの AX 要素を返す
5. NSScreen.mainScreen のフレームから画面サイズを取得

【必要な権限】
- アクセシビリティ: システム設定 > プライバシーとセキュリティ > アクセシビリティ

【依存】
pyobjc-framework-ApplicationServices, pyobjc-framework-Cocoa, detection.models
"""

import logging
from typing import Any, Dict, Optional, Tuple

from detection.models import ElementDescriptor

logger = logging.getLogger(__name__)

try:
    from ApplicationServices import (
        AXUIElementCopyElementAtPosition,
        AXUIElementCreateSystemWide,
        AXUIElementCopyAttributeValue,
        AXUIElementCreateApplication,
    )
    from AppKit import NSScreen, NSWorkspace
    QUARTZ_AVAILABLE = True
except ImportError as e:
    logger.debug("Quartz/AppKit をインポートできません: %s", e)
    QUARTZ_AVAILABLE = False

# 祖先 role チェーンの最大段数
_MAX_PARENT_DEPTH = 10
# AXValue の最大保持文字数
_MAX_VALUE_LEN = 2000


class AppInspector:
    """Accessibility APIを使ってアプリ・ウィンドウ・UI要素情報を取得するクラス"""

    def __init__(self):
        if not QUARTZ_AVAILABLE:
            raise RuntimeError(
                "Quartz framework not available. "
                "pip install pyobjc-framework-Cocoa pyobjc-framework-Quartz "
                "pyobjc-framework-ApplicationServices"
            )

    def get_frontmost_app(self) -> Dict[str, Any]:
        """
        最前面のアプリケーション情報を取得

        Output:
            Dict: {"name": str, "bundle_id": str, "pid": int}
            エラー時: {"name": "Unknown", "bundle_id": "", "pid": 0, "error": str}
        """
        try:
            ws = NSWorkspace.sharedWorkspace()
            app = ws.frontmostApplication()
            return {
                "name": app.localizedName(),
                "bundle_id": app.bundleIdentifier(),
                "pid": app.processIdentifier(),
            }
        except Exception as e:
            return {"name": "Unknown", "bundle_id": "", "pid": 0, "error": str(e)}

    def get_attribute(self, element, attr: str) -> Optional[Any]:
        """Accessibility要素の属性を取得（失敗時 None）"""
        if element is None:
            return None
        try:
            err, value = AXUIElementCopyAttributeValue(element, attr, None)
            if err == 0 and value is not None:
                return value
            return None
        except Exception as e:
            logger.debug("AX属性取得失敗: %s - %s", attr, e)
            return None

    def get_front_window_title(self) -> Optional[str]:
        """最前面アプリのフォーカス中ウィンドウのタイトル"""
        app = self.get_frontmost_app()
        pid = app.get("pid")
        if not pid:
            return None
        app_element = AXUIElementCreateApplication(pid)
        window = self.get_attribute(app_element, "AXFocusedWindow")
        title = self.get_attribute(window, "AXTitle")
        return str(title) if title else None

    def get_focused_window(self, bundle_id: str):
        """bundle_id のアプリのフォーカス中ウィンドウ（AX要素）"""
        try:
            ws = NSWorkspace.sharedWorkspace()
            running = [a for a in ws.runningApplications() if a.bundleIdentifier() == bundle_id]
        except Exception as e:
            logger.debug("実行中アプリ取得失敗: %s - %s", bundle_id, e)
            return None
        if not running:
            return None
        app_element = AXUIElementCreateApplication(running[0].processIdentifier())
        return self.get_attribute(app_element, "AXFocusedWindow")

    def get_element_descriptor(self, x: float, y: float) -> Optional[ElementDescriptor]:
        """
        指定座標（左上原点の画面座標）のUI要素情報を取得

        Output:
            ElementDescriptor: 要素が見つかった場合（role が取れなければ空文字）
            None: 要素なし・取得失敗
        """
        try:
            system_wide = AXUIElementCreateSystemWide()
            err, element = AXUIElementCopyElementAtPosition(system_wide, x, y, None)
        except Exception as e:
            logger.debug("要素取得失敗: (%s, %s) - %s", x, y, e)
            return None

        if err != 0 or element is None:
            return None

        role = self.get_attribute(element, "AXRole")
        title = self.get_attribute(element, "AXTitle")
        value = self.get_attribute(element, "AXValue")
        role_description = self.get_attribute(element, "AXRoleDescription")

        return ElementDescriptor(
            role=str(role) if role else "",
            title=str(title) if title else None,
            value=str(value)[:_MAX_VALUE_LEN] if value else None,
            role_description=str(role_description) if role_description else None,
            parent_chain=tuple(self._parent_roles(element)),
        )

    def _parent_roles(self, element):
        """AXParent を辿って祖先の role を発見順に返す"""
        roles = []
        current = self.get_attribute(element, "AXParent")
        for _ in range(_MAX_PARENT_DEPTH):
            if current is None:
                break
            role = self.get_attribute(current, "AXRole")
            if role:
                roles.append(str(role))
            current = self.get_attribute(current, "AXParent")
        return roles

    def get_main_screen_size(self) -> Optional[Tuple[int, int]]:
        """メイン画面のサイズ (width, height)。取得失敗時は None"""
        try:
            screen = NSScreen.mainScreen()
            if screen is None:
                return None
            frame = screen.frame()
            return int(frame.size.width), int(frame.size.height)
        except Exception as e:
            logger.debug("画面サイズ取得失敗: %s", e)
            return None
