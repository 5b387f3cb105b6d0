"""
録画セッション: 生アクションをコンテキスト補完・プラグイン抽出・プライバシーフィルタしてから
ActionBuffer に送り、採用されたステップを集める

【使用方法】
from recorder.session_recorder import SessionRecorder

recorder = SessionRecorder(on_step=lambda step: print(step.auto_caption))
session_start = recorder.start()     # バッファ・コンテキストをリセットして開始時刻を記録

recorder.handle_action(action)       # EventMonitor / AppSwitchTracker のコールバックから
recorder.add_manual_marker()         # 手動マーカー（現在時刻）

session = recorder.stop()            # => RecordingSession
print(session.to_dict())

【処理内容】
1. ContextTracker.refresh() で最前面アプリを取得し、アクションに無いアプリ情報を補完
2. PluginRegistry で bundle_id に対応するプラグインから URL・追加情報を抽出
   （アクションに URL があればそちらを優先）
3. PrivacyGuard でURL・入力テキスト・要素値をフィルタ
   （直前のクリックがパスワード欄なら、その後の入力は記録しない）
4. ActionBuffer.submit() でステップ判定し、採用ステップを保持して on_step に渡す
5. stop() でセッションメタデータ（使用アプリ一覧・画面解像度・OSバージョン等）を構築
   ディスクへの保存やアップロードは行わない

【依存】
detection.*, plugins.registry, common.privacy_guard
"""

import logging
import platform
import threading
import time
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from common.privacy_guard import PrivacyGuard
from detection.action_buffer import ActionBuffer
from detection.context_tracker import ContextTracker
from detection.models import ActionKind, DetectedStep, RawAction, RecordingSession
from plugins.registry import PluginRegistry

logger = logging.getLogger(__name__)


class SessionRecorder:
    def __init__(
        self,
        buffer: Optional[ActionBuffer] = None,
        context_tracker: Optional[ContextTracker] = None,
        plugins: Optional[PluginRegistry] = None,
        privacy_guard: Optional[PrivacyGuard] = None,
        on_step: Optional[Callable[[DetectedStep], None]] = None,
        screen_size: Optional[Tuple[int, int]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._buffer = buffer or ActionBuffer()
        self._context = context_tracker or ContextTracker()
        self._plugins = plugins or PluginRegistry()
        self._privacy = privacy_guard or PrivacyGuard()
        self._on_step = on_step
        self._screen_size = screen_size
        self._clock = clock

        self._steps: List[DetectedStep] = []
        self._steps_lock = threading.Lock()
        # handle_action 全体を1件ずつ直列化（イベントタップ・フラッシュタイマー両スレッドから呼ばれる）
        self._action_lock = threading.Lock()
        self._in_secure_field = False
        self._session_start: Optional[float] = None
        self._buffer.set_listener(self._accept_step)

    @property
    def session_start(self) -> Optional[float]:
        return self._session_start

    @property
    def steps(self) -> List[DetectedStep]:
        with self._steps_lock:
            return list(self._steps)

    @property
    def step_count(self) -> int:
        return self._buffer.current_step_count

    def start(self, started_at: Optional[float] = None) -> float:
        """新しいセッションを開始。返却: セッション開始時刻"""
        self._buffer.reset()
        self._context.reset()
        with self._steps_lock:
            self._steps.clear()
        with self._action_lock:
            self._in_secure_field = False
        self._session_start = started_at if started_at is not None else self._clock()
        logger.info("セッション開始: %s", datetime.fromtimestamp(self._session_start).isoformat())
        return self._session_start

    def _accept_step(self, step: DetectedStep) -> None:
        with self._steps_lock:
            self._steps.append(step)
        if self._on_step:
            self._on_step(step)

    def _enrich(self, action: RawAction) -> RawAction:
        """コンテキスト・プラグイン情報でアクションを補完"""
        ctx = self._context.refresh()

        bundle_id = action.app_bundle_id or ctx.bundle_id
        app_name = action.app_name if action.app_name is not None else ctx.app_name
        window_title = action.window_title if action.window_title is not None else ctx.window_title

        url = action.url
        info: Dict[str, str] = dict(action.plugin_info)
        plugin_ctx = self._plugins.extract(bundle_id, window_title)
        if plugin_ctx is not None:
            if url is None:
                url = plugin_ctx.url
            for key, value in plugin_ctx.additional_info.items():
                info.setdefault(key, value)

        return replace(
            action,
            app_bundle_id=bundle_id,
            app_name=app_name,
            window_title=window_title,
            url=url,
            plugin_info=info,
        )

    def handle_action(self, action: RawAction) -> Optional[DetectedStep]:
        """生アクション1件を処理する。採用されたステップを返す"""
        with self._action_lock:
            enriched = self._enrich(action)

            if enriched.kind == ActionKind.CLICK:
                element = enriched.element
                self._in_secure_field = element is not None and self._privacy.is_secure_field(
                    element.role, element.role_description,
                )

            filtered = self._privacy.filter_action(enriched, in_secure_field=self._in_secure_field)
            if filtered is None:
                return None
            return self._buffer.submit(filtered)

    def add_manual_marker(self) -> Optional[DetectedStep]:
        """現在時刻に手動ステップマーカーを追加"""
        now = self._clock()
        start = self._session_start if self._session_start is not None else now
        return self.handle_action(RawAction(
            timestamp=datetime.fromtimestamp(now),
            relative_time=max(0.0, now - start),
            kind=ActionKind.MANUAL_MARKER,
        ))

    def stop(self) -> RecordingSession:
        """セッションを終了してメタデータを返す"""
        now = self._clock()
        start = self._session_start if self._session_start is not None else now
        resolution = f"{self._screen_size[0]}x{self._screen_size[1]}" if self._screen_size else ""
        session = RecordingSession(
            session_id=str(uuid.uuid4()),
            started_at=datetime.fromtimestamp(start),
            duration=max(0.0, now - start),
            macos_version=platform.mac_ver()[0],
            screen_resolution=resolution,
            apps_used=self._context.all_apps_used,
            steps=self.steps,
        )
        logger.info(
            "セッション終了: steps=%d, actions=%d, duration=%.1fs",
            len(session.steps), len(self._buffer.actions), session.duration,
        )
        return session
