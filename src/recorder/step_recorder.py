#!/usr/bin/env python3
"""
クリック・ショートカット・アプリ切り替えを監視し、チュートリアルのステップをリアルタイム検出するCLI（macOS専用）

使用方法:
    # デフォルト（クリック・ショートカット・アプリ切り替え）
    cd src && python3 -m recorder.step_recorder

    # 通常のテキスト入力も type ステップとして記録
    python3 -m recorder.step_recorder --capture-typing --text-flush 2.0

    # プライバシーレベル指定 + 終了時にセッションJSONを標準出力へ
    python3 -m recorder.step_recorder --privacy strict --json

    # 停止: Ctrl+C

処理内容:
    1. RecorderConfig を .env + 環境変数からロードし、CLI 引数で上書き
    2. EventMonitor（CGEventTap）でクリック・ショートカット（・テキスト入力）を監視
    3. AppSwitchTracker で NSWorkspace のアプリ切り替え通知を監視
    4. 生アクションを SessionRecorder に渡してステップ判定
    5. 採用ステップは queue.Queue 経由でワーカースレッドがログ出力
       ※ CGEventTapコールバック内で重い処理をするとOSがタップを無効化するためキュー経由
       ※ スクリーンショット撮影・保存・アップロードは後段（step-{index}.jpg のキーで受け渡し）
    6. SIGINT/SIGTERM で停止し、セッションサマリーを表示

入力:
    --privacy:        standard / strict / off
    --capture-typing: 通常入力を type アクションとして記録
    --text-flush:     テキストフラッシュ秒
    --json:           終了時にセッションJSONを標準出力に出す
    --verbose:        DEBUG ログ

必要な権限:
    - アクセシビリティ: システム設定 > プライバシーとセキュリティ > アクセシビリティ
    - 入力監視: システム設定 > プライバシーとセキュリティ > 入力監視
"""

import argparse
import json
import logging
import queue
import signal
import sys
import threading

from common.privacy_guard import PrivacyGuard
from detection.config import RecorderConfig
from detection.context_tracker import ContextTracker
from detection.models import RecordingSession
from plugins.registry import PluginRegistry
from recorder.session_recorder import SessionRecorder

logger = logging.getLogger(__name__)


def _step_worker(step_queue: "queue.Queue"):
    """ワーカースレッド: 採用ステップを取り出して出力"""
    while True:
        step = step_queue.get()
        if step is None:  # 終了シグナル
            break
        logger.info(
            "#%d [%s] %s -> %s",
            step.order_index, step.kind.value, step.auto_caption, step.screenshot_key,
        )


def _print_summary(session: RecordingSession):
    """終了サマリーを表示"""
    print()
    print("=" * 50)
    print(f"停止しました (ステップ: {len(session.steps)}件, {session.duration:.1f}秒)")
    if session.apps_used:
        print(f"  使用アプリ: {', '.join(session.apps_used)}")
    print("=" * 50)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="操作からチュートリアルのステップをリアルタイム検出する (macOS)",
    )
    parser.add_argument("--privacy", choices=["standard", "strict", "off"], help="プライバシーレベル")
    parser.add_argument("--capture-typing", action="store_true", help="通常入力を type ステップとして記録")
    parser.add_argument("--text-flush", type=float, help="テキストフラッシュ秒")
    parser.add_argument("--json", action="store_true", help="終了時にセッションJSONを標準出力に出す")
    parser.add_argument("--verbose", "-v", action="store_true", help="DEBUGログを出力")
    return parser


def apply_args(config: RecorderConfig, args: argparse.Namespace) -> RecorderConfig:
    if args.privacy:
        config.privacy_level = args.privacy
    if args.capture_typing:
        config.capture_typing = True
    if args.text_flush is not None:
        config.text_flush_sec = args.text_flush
    if args.verbose:
        config.log_level = "DEBUG"
    return config


def main():
    args = build_parser().parse_args()
    config = apply_args(RecorderConfig.from_env(), args)

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # macOS 専用モジュールはここで読み込む
    from common.app_inspector import AppInspector
    from common.app_switch_tracker import AppSwitchTracker
    from common.event_monitor import EventMonitor
    from common.input_mapping import viewport_size

    inspector = AppInspector()
    fallback = (config.viewport_fallback_width, config.viewport_fallback_height)

    step_queue: "queue.Queue" = queue.Queue()
    recorder = SessionRecorder(
        context_tracker=ContextTracker(inspector=inspector),
        plugins=PluginRegistry(inspector=inspector),
        privacy_guard=PrivacyGuard.from_name(config.privacy_level),
        on_step=step_queue.put,
        screen_size=viewport_size(inspector.get_main_screen_size(), fallback),
    )
    session_start = recorder.start()

    monitor = EventMonitor(
        session_start=session_start,
        on_action=recorder.handle_action,
        inspector=inspector,
        viewport_fallback=fallback,
        capture_typing=config.capture_typing,
        text_flush_sec=config.text_flush_sec,
    )
    app_tracker = AppSwitchTracker(
        session_start=session_start,
        on_action=recorder.handle_action,
        inspector=inspector,
        viewport_fallback=fallback,
    )

    worker = threading.Thread(target=_step_worker, args=(step_queue,), daemon=True)
    worker.start()

    def _signal_handler(signum, frame):
        monitor.stop()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    print("=" * 50)
    print("Step Recorder - 操作ステップ検出")
    print("=" * 50)
    print(f"  Privacy : {config.privacy_level}")
    print(f"  Typing  : {config.capture_typing}")
    print(f"  Stop    : Ctrl+C")
    print("=" * 50)

    app_tracker.start()
    try:
        monitor.start()  # メインスレッドでブロッキング（CFRunLoop）
    except KeyboardInterrupt:
        monitor.stop()
    except RuntimeError as e:
        print(f"エラー: {e}")
        sys.exit(1)
    finally:
        app_tracker.stop()

    session = recorder.stop()
    step_queue.put(None)
    worker.join(timeout=5.0)

    _print_summary(session)
    if args.json:
        print(json.dumps(session.to_dict(), ensure_ascii=False, indent=2, default=str))


if __name__ == "__main__":
    main()
