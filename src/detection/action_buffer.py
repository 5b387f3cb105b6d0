"""
アクションバッファ: 複数スレッドから届く RawAction を直列化して StepDetector に渡す

【使用方法】
from detection.action_buffer import ActionBuffer
from detection.step_detector import StepDetector

def on_step(step):
    print(step.order_index, step.auto_caption)

buffer = ActionBuffer(StepDetector(), on_step=on_step)
buffer.submit(action)          # どのスレッドから呼んでもよい
buffer.current_step_count      # => 採用済みステップ数
buffer.reset()                 # 新しい録画セッション開始時

【処理内容】
1. submit() はロックを取得したまま以下を行う
   - アクションログに追記（リプレイ用。ステップ生成の正しさには不要）
   - StepDetector.classify(action, 採用済みステップ数) を呼ぶ
   - ステップが返れば採用数を +1 してから on_step コールバックを呼ぶ
2. 順序番号はロック取得順に 0,1,2... と 1 ずつ増え、破棄があっても欠番・再利用しない
3. reset() はロック内でログ・採用数・検出器をすべて初期化

【依存】
detection.models, detection.step_detector, threading
"""

import logging
import threading
from typing import Callable, List, Optional

from detection.models import DetectedStep, RawAction
from detection.step_detector import StepDetector

logger = logging.getLogger(__name__)

StepCallback = Callable[[DetectedStep], None]


class ActionBuffer:
    """StepDetector へのアクセスを直列化し、セッション内の順序番号を管理する"""

    def __init__(self, step_detector: Optional[StepDetector] = None, on_step: Optional[StepCallback] = None):
        self._detector = step_detector or StepDetector()
        self._on_step = on_step
        self._lock = threading.Lock()
        self._actions: List[RawAction] = []
        self._step_count = 0

    @property
    def detector(self) -> StepDetector:
        return self._detector

    def set_listener(self, on_step: Optional[StepCallback]) -> None:
        """ステップ採用時のコールバックを登録（None で解除）"""
        with self._lock:
            self._on_step = on_step

    def submit(self, action: RawAction) -> Optional[DetectedStep]:
        """アクションを1件処理する。採用されたステップを返す（破棄時は None）"""
        with self._lock:
            self._actions.append(action)

            step = self._detector.classify(action, self._step_count)
            if step is None:
                return None

            # コールバックが例外を投げても番号は再利用しない
            self._step_count += 1
            logger.info("ステップ検出 #%d: %s", step.order_index, step.auto_caption)
            if self._on_step:
                self._on_step(step)
            return step

    @property
    def current_step_count(self) -> int:
        with self._lock:
            return self._step_count

    @property
    def actions(self) -> List[RawAction]:
        """アクションログのスナップショット"""
        with self._lock:
            return list(self._actions)

    def reset(self) -> None:
        with self._lock:
            self._actions.clear()
            self._step_count = 0
            self._detector.reset()
