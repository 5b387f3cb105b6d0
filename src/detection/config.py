"""
ステップレコーダー設定管理モジュール

【使用方法】
from detection.config import RecorderConfig

# .env + 環境変数からロード
config = RecorderConfig.from_env()

# デフォルト値で生成
config = RecorderConfig()

# 個別指定
config = RecorderConfig(privacy_level="strict", capture_typing=True)

【処理内容】
1. python-dotenv で .env ファイルを読み込み
2. 環境変数から設定値を取得（未設定ならデフォルト値）
3. RecorderConfig dataclass としてアクセス可能にする

検出の閾値（確信度 0.3・デバウンス 0.5 秒）は StepDetector の固定値であり設定対象外。

【環境変数】
RECORDER_PRIVACY_LEVEL: standard / strict / off（デフォルト: standard）
RECORDER_CAPTURE_TYPING: 通常のテキスト入力を type アクションとして記録するか（デフォルト: false）
RECORDER_TEXT_FLUSH_SEC: テキスト入力をまとめる秒数（デフォルト: 1.0）
RECORDER_VIEWPORT_FALLBACK_WIDTH / HEIGHT: 画面サイズが取れない時の値（デフォルト: 2560x1600）
RECORDER_LOG_LEVEL: ログレベル（デフォルト: INFO）

【依存】
python-dotenv, os, pathlib
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclass
class RecorderConfig:
    privacy_level: str = "standard"
    capture_typing: bool = False
    text_flush_sec: float = 1.0
    viewport_fallback_width: int = 2560
    viewport_fallback_height: int = 1600
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "RecorderConfig":
        # プロジェクトルートの .env を明示的に探す
        src_dir = Path(__file__).resolve().parent.parent
        for candidate in [src_dir / ".env", src_dir.parent / ".env"]:
            if candidate.exists():
                load_dotenv(candidate)
                break
        else:
            load_dotenv()
        return cls(
            privacy_level=os.getenv("RECORDER_PRIVACY_LEVEL", "standard").strip().lower(),
            capture_typing=_env_bool("RECORDER_CAPTURE_TYPING", False),
            text_flush_sec=float(os.getenv("RECORDER_TEXT_FLUSH_SEC", "1.0")),
            viewport_fallback_width=int(os.getenv("RECORDER_VIEWPORT_FALLBACK_WIDTH", "2560")),
            viewport_fallback_height=int(os.getenv("RECORDER_VIEWPORT_FALLBACK_HEIGHT", "1600")),
            log_level=os.getenv("RECORDER_LOG_LEVEL", "INFO").strip().upper(),
        )
