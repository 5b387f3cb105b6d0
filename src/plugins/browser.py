"""
ブラウザのアドレスバーから現在の URL を Accessibility API で取得するプラグイン

【使用方法】
from plugins.browser import BrowserPlugin

plugin = BrowserPlugin()                      # 省略時は AppInspector を遅延生成
ctx = plugin.extract_context("com.google.Chrome", "GitHub")
# => AppPluginContext(url="https://github.com/", additional_info={})

# inspector は以下を持つこと（テストでは差し替え）
#   get_focused_window(bundle_id) -> AX要素 or None
#   get_attribute(element, "AXRole") -> 値 or None
plugin = BrowserPlugin(inspector=fake_inspector)

【処理内容】
1. bundle_id のアプリのフォーカス中ウィンドウを取得
2. AXツリーを深さ10未満で再帰探索
   - AXTextField / AXComboBox の値が URL らしければ採用
   - AXRoleDescription に "url" / "address" を含む要素の文字列値を採用
3. URL が見つからなくてもコンテキスト（url=None）は返す

【必要な権限】
- アクセシビリティ: システム設定 > プライバシーとセキュリティ > アクセシビリティ
"""

import logging
from typing import Optional

from plugins.base import AppPlugin, AppPluginContext

logger = logging.getLogger(__name__)

_MAX_DEPTH = 10
_URL_FIELD_ROLES = ("AXTextField", "AXComboBox")
_URL_HINTS = ("://", "www.", ".com", ".org", "localhost")


def looks_like_url(value: str) -> bool:
    return any(hint in value for hint in _URL_HINTS)


class BrowserPlugin(AppPlugin):
    name = "browser"
    supported_bundle_ids = frozenset({
        "com.google.Chrome",
        "com.apple.Safari",
        "org.mozilla.firefox",
        "com.microsoft.edgemac",
        "company.thebrowser.Browser",  # Arc
        "com.brave.Browser",
    })

    def __init__(self, inspector=None):
        self._inspector = inspector

    def _get_inspector(self):
        if self._inspector is None:
            from common.app_inspector import AppInspector
            self._inspector = AppInspector()
        return self._inspector

    def _extract(self, bundle_id: str, window_title: Optional[str]) -> Optional[AppPluginContext]:
        return AppPluginContext(url=self._extract_url(bundle_id), additional_info={})

    def _extract_url(self, bundle_id: str) -> Optional[str]:
        inspector = self._get_inspector()
        window = inspector.get_focused_window(bundle_id)
        if window is None:
            return None
        return self._find_url_field(inspector, window, depth=0)

    def _find_url_field(self, inspector, element, depth: int) -> Optional[str]:
        """URL 入力欄を再帰探索"""
        if depth >= _MAX_DEPTH:
            return None

        role = inspector.get_attribute(element, "AXRole")
        if role in _URL_FIELD_ROLES:
            value = inspector.get_attribute(element, "AXValue")
            if isinstance(value, str) and looks_like_url(value):
                return value

        # 一部のブラウザは role description で URL 欄を示す
        desc = inspector.get_attribute(element, "AXRoleDescription")
        if isinstance(desc, str) and ("url" in desc.lower() or "address" in desc.lower()):
            value = inspector.get_attribute(element, "AXValue")
            if isinstance(value, str):
                return value

        children = inspector.get_attribute(element, "AXChildren")
        if not children:
            return None
        for child in children:
            url = self._find_url_field(inspector, child, depth + 1)
            if url:
                return url
        return None
