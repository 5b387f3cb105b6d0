"""
Figma のウィンドウタイトルからファイル名・ページ名を抽出するプラグイン

【使用方法】
from plugins.figma import FigmaPlugin

FigmaPlugin().extract_context("com.figma.Desktop", "Landing - Figma")
# => additional_info={"figma_file": "Landing"}
FigmaPlugin().extract_context("com.figma.Desktop", "Hero - Landing - Figma")
# => additional_info={"figma_page": "Hero", "figma_file": "Landing"}
"""

from typing import Dict, Optional

from plugins.base import AppPlugin, AppPluginContext


class FigmaPlugin(AppPlugin):
    name = "figma"
    supported_bundle_ids = frozenset({"com.figma.Desktop"})

    def _extract(self, bundle_id: str, window_title: Optional[str]) -> Optional[AppPluginContext]:
        if window_title is None:
            return None

        info: Dict[str, str] = {}
        # "ファイル名 - Figma" または "ページ - ファイル名 - Figma"
        parts = window_title.split(" - ")
        if len(parts) >= 2:
            info["figma_file"] = parts[0].strip()
        if len(parts) >= 3:
            info["figma_page"] = parts[0].strip()
            info["figma_file"] = parts[1].strip()

        return AppPluginContext(url=None, additional_info=info)
