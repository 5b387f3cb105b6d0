"""
最前面アプリのコンテキスト（bundle_id・アプリ名・ウィンドウタイトル）をキャッシュする

【使用方法】
from detection.context_tracker import ContextTracker

tracker = ContextTracker()          # 省略時は AppInspector を遅延生成
ctx = tracker.refresh()             # OS から最前面アプリを再取得し、そのコンテキストを返す
ctx = tracker.current_context
# => AppContext(bundle_id="com.apple.Safari", app_name="Safari", window_title="GitHub")
tracker.all_apps_used               # => ["com.apple.Safari", ...]（ソート済み）
tracker.reset()

# テスト等では inspector を差し替え可能
# inspector は get_frontmost_app() -> {"name", "bundle_id", ...} と
# get_front_window_title() -> Optional[str] を持つこと
tracker = ContextTracker(inspector=fake_inspector)

【処理内容】
1. refresh(): inspector から最前面アプリとウィンドウタイトルを取得してキャッシュ
   bundle_id はセッション中に使ったアプリ集合に追加
   最前面アプリが取れない場合はキャッシュを変更しない
2. 全操作はロックで保護（アクション送信と同じ通知スレッドから呼ばれうるため）

【依存】
threading, common.app_inspector（inspector 未指定時のみ）
"""

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional, Set

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContext:
    bundle_id: Optional[str] = None
    app_name: Optional[str] = None
    window_title: Optional[str] = None


class ContextTracker:
    def __init__(self, inspector=None):
        self._inspector = inspector
        self._lock = threading.Lock()
        self._context = AppContext()
        self._apps_used: Set[str] = set()

    def _get_inspector(self):
        if self._inspector is None:
            from common.app_inspector import AppInspector
            self._inspector = AppInspector()
        return self._inspector

    def refresh(self) -> AppContext:
        """最前面アプリを再取得し、更新後（取得失敗時は直前）のコンテキストを返す"""
        with self._lock:
            inspector = self._get_inspector()
            app = inspector.get_frontmost_app()
            if not app or app.get("error") or not (app.get("bundle_id") or app.get("name")):
                logger.debug("最前面アプリを取得できないためコンテキスト維持: %s", app)
                return self._context

            bundle_id = app.get("bundle_id") or None
            self._context = AppContext(
                bundle_id=bundle_id,
                app_name=app.get("name") or None,
                window_title=inspector.get_front_window_title(),
            )
            if bundle_id:
                self._apps_used.add(bundle_id)
            return self._context

    @property
    def current_context(self) -> AppContext:
        with self._lock:
            return self._context

    @property
    def all_apps_used(self) -> List[str]:
        with self._lock:
            return sorted(self._apps_used)

    def reset(self) -> None:
        with self._lock:
            self._context = AppContext()
            self._apps_used.clear()
