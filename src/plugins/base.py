"""
アプリ別プラグインの共通インターフェース

【使用方法】
from plugins.base import AppPlugin, AppPluginContext

class MyPlugin(AppPlugin):
    supported_bundle_ids = frozenset({"com.example.App"})

    def _extract(self, bundle_id, window_title):
        return AppPluginContext(url=None, additional_info={"key": "value"})

plugin = MyPlugin()
plugin.supports("com.example.App")                    # => True
plugin.extract_context("com.example.App", "Title")    # => AppPluginContext(...)
plugin.extract_context("com.other.App", "Title")      # => None（対象外）

【処理内容】
- supports(): bundle_id が対象集合に含まれるか
- extract_context(): 対象外なら None、対象なら _extract() の結果
- 抽出結果は補助情報であり、ステップ採用の判定には使わない

【依存】
Python標準ライブラリのみ (dataclasses, typing)
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional


@dataclass(frozen=True)
class AppPluginContext:
    """プラグインが抽出した追加コンテキスト"""
    url: Optional[str] = None
    additional_info: Dict[str, str] = field(default_factory=dict)


class AppPlugin:
    """アプリ別プラグインの基底クラス"""
    name = "generic"
    supported_bundle_ids: FrozenSet[str] = frozenset()

    def supports(self, bundle_id: Optional[str]) -> bool:
        return bool(bundle_id) and bundle_id in self.supported_bundle_ids

    def extract_context(self, bundle_id: str, window_title: Optional[str]) -> Optional[AppPluginContext]:
        if not self.supports(bundle_id):
            return None
        return self._extract(bundle_id, window_title)

    def _extract(self, bundle_id: str, window_title: Optional[str]) -> Optional[AppPluginContext]:
        raise NotImplementedError
