"""
アプリ別プラグインの登録・ディスパッチ

【使用方法】
from plugins.registry import PluginRegistry

registry = PluginRegistry()          # Browser, Terminal, VSCode, Figma の順
ctx = registry.extract("com.microsoft.VSCode", "main.py - app - Visual Studio Code")
plugin = registry.plugin_for("com.apple.Safari")   # => BrowserPlugin

【処理内容】
1. 登録順にプラグインを走査し、bundle_id に対応する最初の1つだけを使う
2. プラグイン内の失敗はログに残してコンテキスト無し扱い（補助情報のため）

【依存】
plugins.*
"""

import logging
from typing import Iterable, List, Optional

from plugins.base import AppPlugin, AppPluginContext
from plugins.browser import BrowserPlugin
from plugins.figma import FigmaPlugin
from plugins.terminal import TerminalPlugin
from plugins.vscode import VSCodePlugin

logger = logging.getLogger(__name__)


def default_plugins(inspector=None) -> List[AppPlugin]:
    return [
        BrowserPlugin(inspector=inspector),
        TerminalPlugin(),
        VSCodePlugin(),
        FigmaPlugin(),
    ]


class PluginRegistry:
    def __init__(self, plugins: Optional[Iterable[AppPlugin]] = None, inspector=None):
        self._plugins: List[AppPlugin] = list(plugins) if plugins is not None else default_plugins(inspector)

    @property
    def plugins(self) -> List[AppPlugin]:
        return list(self._plugins)

    def plugin_for(self, bundle_id: Optional[str]) -> Optional[AppPlugin]:
        for plugin in self._plugins:
            if plugin.supports(bundle_id):
                return plugin
        return None

    def extract(self, bundle_id: Optional[str], window_title: Optional[str]) -> Optional[AppPluginContext]:
        plugin = self.plugin_for(bundle_id)
        if plugin is None:
            return None
        try:
            return plugin.extract_context(bundle_id, window_title)
        except Exception as e:
            logger.warning("プラグイン抽出失敗: %s (%s) - %s", plugin.name, bundle_id, e)
            return None
