"""
VS Code 系エディタのウィンドウタイトルからファイル・プロジェクト・ブランチを抽出するプラグイン

【使用方法】
from plugins.vscode import VSCodePlugin

ctx = VSCodePlugin().extract_context(
    "com.microsoft.VSCode", "main.py - my-app (feature/login) - Visual Studio Code",
)
# => additional_info={"file": "main.py", "branch": "feature/login", "project": "my-app"}

【処理内容】
タイトル形式: "ファイル名 - フォルダ - Visual Studio Code"
         または "ファイル名 - フォルダ (ブランチ) - Visual Studio Code"
1. " - " で分割し、2要素以上なら先頭を file
2. 3要素以上なら2番目をフォルダ部として、括弧内を branch、" (" より前を project
"""

import re
from typing import Dict, Optional

from plugins.base import AppPlugin, AppPluginContext

_BRANCH_PATTERN = re.compile(r"\(([^)]+)\)")


class VSCodePlugin(AppPlugin):
    name = "vscode"
    supported_bundle_ids = frozenset({
        "com.microsoft.VSCode",
        "com.microsoft.VSCodeInsiders",
        "com.vscodium",
    })

    def _extract(self, bundle_id: str, window_title: Optional[str]) -> Optional[AppPluginContext]:
        if window_title is None:
            return None

        info: Dict[str, str] = {}
        parts = window_title.split(" - ")
        if len(parts) >= 2:
            info["file"] = parts[0].strip()
        if len(parts) >= 3:
            folder = parts[1].strip()
            match = _BRANCH_PATTERN.search(folder)
            if match:
                info["branch"] = match.group(1)
            info["project"] = folder.split(" (")[0]

        return AppPluginContext(url=None, additional_info=info)
