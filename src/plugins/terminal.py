"""
ターミナル系アプリのウィンドウタイトルからパス・コマンドを抽出するプラグイン

【使用方法】
from plugins.terminal import TerminalPlugin

ctx = TerminalPlugin().extract_context("com.apple.Terminal", "user@host: ~/projects/app — git status")
# => AppPluginContext(url=None, additional_info={"path": "~/projects/app — git status", "detected_command": "git"})

【処理内容】
1. タイトルに ":" があれば最後の ":" 以降を path とする（"user@host: ~/path" 形式）
2. 既知のCLIツール名を先頭から順に探し、最初に含まれたものを detected_command とする
タイトルが無い場合は None
"""

from typing import Dict, Optional

from plugins.base import AppPlugin, AppPluginContext

KNOWN_COMMANDS = ("git", "npm", "yarn", "docker", "ssh", "python", "node", "cargo", "make", "brew")


class TerminalPlugin(AppPlugin):
    name = "terminal"
    supported_bundle_ids = frozenset({
        "com.apple.Terminal",
        "com.googlecode.iterm2",
        "dev.warp.Warp-Stable",
        "io.alacritty",
        "com.mitchellh.ghostty",
    })

    def _extract(self, bundle_id: str, window_title: Optional[str]) -> Optional[AppPluginContext]:
        if window_title is None:
            return None

        info: Dict[str, str] = {}
        if ":" in window_title:
            info["path"] = window_title.rsplit(":", 1)[-1].strip()

        title_lower = window_title.lower()
        for cmd in KNOWN_COMMANDS:
            if cmd in title_lower:
                info["detected_command"] = cmd
                break

        return AppPluginContext(url=None, additional_info=info)
