"""
macOS CGEventTapでクリック・キーボードショートカットを監視し RawAction を生成するモジュール

【使用方法】
from common.event_monitor import EventMonitor

def on_action(action):
    print(action.kind, action.relative_time)

monitor = EventMonitor(
    session_start=time.time(),
    on_action=on_action,
    capture_typing=False,
    text_flush_sec=1.0,
)
monitor.start()   # メインスレッドでブロッキング（CFRunLoop）
# monitor.stop()  # 別スレッドから呼ぶ or SIGINTで停止

【処理内容】
1. CGEventTapでマウスクリック（左・右）・キーダウンを監視
2. クリック: 画面サイズで座標を 0〜1 に正規化（Y は上端基準に反転）し、
   Accessibility API でクリック位置の要素情報を取得して click アクションを通知
3. キー: Cmd/Ctrl/Opt を含む場合のみ "Cmd+Shift+S" 形式のキーコンボで
   keyboardShortcut アクションを通知（通常入力はこの経路では通知しない）
4. capture_typing=True の場合のみ、通常入力を TypingBuffer に溜めて
   text_flush_sec 経過後に type アクションとして通知
   クリック・ショートカットの前には溜まった入力を先にフラッシュする（入力→クリックの順序を保つ）
5. relative_time はセッション開始時刻からの経過秒
6. アプリ情報はここでは付与しない（SessionRecorder が ContextTracker から補完）

コールバック内で例外が出てもOSのイベントタップには伝播させない（ログのみ）。

【必要な権限】
- アクセシビリティ: システム設定 > プライバシーとセキュリティ > アクセシビリティ
- 入力監視: システム設定 > プライバシーとセキュリティ > 入力監視

【依存】
pyobjc-framework-Quartz, pyobjc-framework-Cocoa, common.app_inspector, common.input_mapping, common.typing_buffer
"""

import logging
import sys
import time
from datetime import datetime
from typing import Callable, Optional, Tuple

if sys.platform != "darwin":
    raise ImportError("このモジュールはmacOS専用です")

from AppKit import NSEvent
from Quartz import (
    CGEventTapCreate,
    CGEventGetIntegerValueField,
    CGEventGetFlags,
    CGEventTapEnable,
    kCGSessionEventTap,
    kCGHeadInsertEventTap,
    kCGEventTapOptionListenOnly,
    kCGEventLeftMouseDown,
    kCGEventRightMouseDown,
    kCGEventKeyDown,
    kCGKeyboardEventKeycode,
)
from Quartz import CFMachPortCreateRunLoopSource, CFRunLoopGetCurrent, CFRunLoopAddSource, CFRunLoopRun, CFRunLoopStop, kCFRunLoopCommonModes

from common.app_inspector import AppInspector
from common.input_mapping import (
    ax_point,
    build_key_combo,
    is_shortcut,
    key_name,
    modifiers_from_flags,
    normalize_click,
    viewport_size,
)
from common.typing_buffer import TypingBuffer
from detection.models import ActionKind, RawAction

logger = logging.getLogger(__name__)

ActionCallback = Callable[[RawAction], None]

# テキスト入力で無視するキー（Delete, Escape）
_IGNORED_TEXT_KEYCODES = (51, 53)


class EventMonitor:
    """CGEventTapでクリック・キーボードを監視して RawAction を通知するクラス"""

    def __init__(
        self,
        session_start: float,
        on_action: ActionCallback,
        inspector: Optional[AppInspector] = None,
        viewport_fallback: Tuple[int, int] = (2560, 1600),
        capture_typing: bool = False,
        text_flush_sec: float = 1.0,
    ):
        """
        Input:
            session_start: セッション開始時刻（time.time()）
            on_action: アクション通知コールバック fn(RawAction)
            inspector: AppInspector（None なら生成）
            viewport_fallback: 画面サイズ取得失敗時の (width, height)
            capture_typing: 通常入力を type アクションとして通知するか
            text_flush_sec: テキストフラッシュ秒
        """
        self._session_start = session_start
        self._on_action = on_action
        self._inspector = inspector or AppInspector()
        self._viewport_fallback = viewport_fallback
        self._capture_typing = capture_typing
        self._typing: Optional[TypingBuffer] = None
        if capture_typing:
            self._typing = TypingBuffer(
                session_start=session_start,
                on_action=self._emit,
                flush_sec=text_flush_sec,
                viewport=self._viewport,
            )
        self._run_loop = None
        self._running = False

    def _relative_time(self, now: float) -> float:
        return max(0.0, now - self._session_start)

    def _viewport(self) -> Tuple[int, int]:
        return viewport_size(self._inspector.get_main_screen_size(), self._viewport_fallback)

    def _flush_typing(self) -> None:
        if self._typing:
            self._typing.flush()

    def _emit(self, action: RawAction) -> None:
        try:
            self._on_action(action)
        except Exception:
            logger.exception("アクション通知コールバックでエラー: %s", action.kind.value)

    def _event_callback(self, proxy, event_type, event, refcon):
        """CGEventTapコールバック（軽量に保つ）"""
        try:
            if event_type in (kCGEventLeftMouseDown, kCGEventRightMouseDown):
                self._handle_click(event)
            elif event_type == kCGEventKeyDown:
                self._handle_key(event)
        except Exception:
            logger.exception("イベント処理でエラー: type=%s", event_type)
        return event

    def _handle_click(self, event):
        """クリックイベント処理"""
        self._flush_typing()
        now = time.time()
        width, height = self._viewport()

        # NSEvent の座標は左下原点
        loc = NSEvent.eventWithCGEvent_(event).locationInWindow()
        click_x, click_y = normalize_click(loc.x, loc.y, width, height)
        ax_x, ax_y = ax_point(loc.x, loc.y, height)

        self._emit(RawAction(
            timestamp=datetime.fromtimestamp(now),
            relative_time=self._relative_time(now),
            kind=ActionKind.CLICK,
            click_x=click_x,
            click_y=click_y,
            viewport_width=width,
            viewport_height=height,
            element=self._inspector.get_element_descriptor(ax_x, ax_y),
        ))

    def _handle_key(self, event):
        """キーボードイベント処理（修飾キー判定付き）"""
        keycode = CGEventGetIntegerValueField(event, kCGKeyboardEventKeycode)
        modifiers = modifiers_from_flags(CGEventGetFlags(event))
        now = time.time()

        if is_shortcut(modifiers):
            self._flush_typing()
            chars = NSEvent.eventWithCGEvent_(event).charactersIgnoringModifiers()
            width, height = self._viewport()
            self._emit(RawAction(
                timestamp=datetime.fromtimestamp(now),
                relative_time=self._relative_time(now),
                kind=ActionKind.KEYBOARD_SHORTCUT,
                viewport_width=width,
                viewport_height=height,
                key_combo=build_key_combo(modifiers, key_name(keycode, chars)),
            ))
            return

        if self._typing is None or keycode in _IGNORED_TEXT_KEYCODES:
            return

        if keycode == 36:  # Return
            char = "\n"
        elif keycode == 48:  # Tab
            char = "\t"
        else:
            char = NSEvent.eventWithCGEvent_(event).characters() or ""
        self._typing.add(char)

    def start(self):
        """
        イベント監視を開始（メインスレッドでブロッキング）
        停止するにはstop()を別スレッドから呼ぶ
        """
        event_mask = (
            (1 << kCGEventLeftMouseDown)
            | (1 << kCGEventRightMouseDown)
            | (1 << kCGEventKeyDown)
        )

        tap = CGEventTapCreate(
            kCGSessionEventTap,
            kCGHeadInsertEventTap,
            kCGEventTapOptionListenOnly,
            event_mask,
            self._event_callback,
            None,
        )

        if tap is None:
            raise RuntimeError(
                "CGEventTap作成失敗。以下の権限を確認してください:\n"
                "  - システム設定 > プライバシーとセキュリティ > アクセシビリティ\n"
                "  - システム設定 > プライバシーとセキュリティ > 入力監視"
            )

        source = CFMachPortCreateRunLoopSource(None, tap, 0)
        self._run_loop = CFRunLoopGetCurrent()
        CFRunLoopAddSource(self._run_loop, source, kCFRunLoopCommonModes)
        CGEventTapEnable(tap, True)

        self._running = True
        logger.info("イベント監視開始 (typing=%s)", self._capture_typing)
        CFRunLoopRun()

    def stop(self):
        """イベント監視を停止"""
        self._running = False
        # テキストバッファをフラッシュ
        self._flush_typing()

        if self._run_loop:
            CFRunLoopStop(self._run_loop)
        logger.info("イベント監視停止")
