"""
NSWorkspace のアプリ切り替え通知から appSwitch アクションを生成するモジュール

【使用方法】
from common.app_switch_tracker import AppSwitchTracker

tracker = AppSwitchTracker(session_start=time.time(), on_action=on_action)
tracker.start()   # 通知はメインスレッドの RunLoop（EventMonitor.start()）で配送される
tracker.stop()

【処理内容】
1. NSWorkspaceDidActivateApplicationNotification を購読
2. 直前と同じ bundle_id の再アクティブ化は無視
3. bundle_id・アプリ名・ウィンドウタイトル・画面サイズ付きの appSwitch アクションを通知

【依存】
pyobjc-framework-Cocoa, common.app_inspector, common.input_mapping
"""

import logging
import sys
import time
from datetime import datetime
from typing import Callable, Optional, Tuple

if sys.platform != "darwin":
    raise ImportError("このモジュールはmacOS専用です")

from AppKit import (
    NSWorkspace,
    NSWorkspaceApplicationKey,
    NSWorkspaceDidActivateApplicationNotification,
)

from common.app_inspector import AppInspector
from common.input_mapping import viewport_size
from detection.models import ActionKind, RawAction

logger = logging.getLogger(__name__)


class AppSwitchTracker:
    def __init__(
        self,
        session_start: float,
        on_action: Callable[[RawAction], None],
        inspector: Optional[AppInspector] = None,
        viewport_fallback: Tuple[int, int] = (2560, 1600),
    ):
        self._session_start = session_start
        self._on_action = on_action
        self._inspector = inspector or AppInspector()
        self._viewport_fallback = viewport_fallback
        self._observer = None
        self._last_bundle_id: Optional[str] = None

    def start(self) -> None:
        self._last_bundle_id = self._inspector.get_frontmost_app().get("bundle_id") or None
        center = NSWorkspace.sharedWorkspace().notificationCenter()
        self._observer = center.addObserverForName_object_queue_usingBlock_(
            NSWorkspaceDidActivateApplicationNotification, None, None, self._handle_notification,
        )
        logger.info("アプリ切り替え監視開始 (current=%s)", self._last_bundle_id)

    def stop(self) -> None:
        if self._observer is not None:
            NSWorkspace.sharedWorkspace().notificationCenter().removeObserver_(self._observer)
            self._observer = None

    def _handle_notification(self, notification) -> None:
        try:
            user_info = notification.userInfo()
            app = user_info.get(NSWorkspaceApplicationKey) if user_info else None
            if app is None:
                return

            bundle_id = app.bundleIdentifier()
            if bundle_id == self._last_bundle_id:
                return
            self._last_bundle_id = bundle_id

            now = time.time()
            width, height = viewport_size(self._inspector.get_main_screen_size(), self._viewport_fallback)
            self._on_action(RawAction(
                timestamp=datetime.fromtimestamp(now),
                relative_time=max(0.0, now - self._session_start),
                kind=ActionKind.APP_SWITCH,
                viewport_width=width,
                viewport_height=height,
                app_bundle_id=bundle_id,
                app_name=app.localizedName(),
                window_title=self._inspector.get_front_window_title(),
            ))
        except Exception:
            logger.exception("アプリ切り替え通知の処理でエラー")
