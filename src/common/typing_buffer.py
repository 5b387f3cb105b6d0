"""
通常のテキスト入力を溜めて type アクションにまとめるバッファ（OS API に依存しない）

【使用方法】
from common.typing_buffer import TypingBuffer

typing = TypingBuffer(
    session_start=time.time(),
    on_action=recorder.handle_action,
    flush_sec=1.0,
    viewport=lambda: (2560, 1600),
)
typing.add("h")
typing.add("i")
typing.flush()     # クリック・ショートカットを通知する前に必ず呼ぶ

【処理内容】
1. add(): 1文字追加し、フラッシュタイマーを張り直す
2. タイマー満了 or flush() で、溜まった文字列を1件の type アクションとして通知
   （時刻は最初の1文字を入力した時刻）
3. 入力を終わらせたクリック等より前に flush() することで、
   type アクションがそのクリックより先に ActionBuffer に届く
"""

import logging
import threading
import time
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from detection.models import ActionKind, RawAction

logger = logging.getLogger(__name__)


class TypingBuffer:
    def __init__(
        self,
        session_start: float,
        on_action: Callable[[RawAction], None],
        flush_sec: float = 1.0,
        viewport: Optional[Callable[[], Tuple[int, int]]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._session_start = session_start
        self._on_action = on_action
        self._flush_sec = flush_sec
        self._viewport = viewport or (lambda: (0, 0))
        self._clock = clock

        self._lock = threading.Lock()
        self._chars: List[str] = []
        self._started_at: Optional[float] = None
        self._timer: Optional[threading.Timer] = None

    @property
    def pending(self) -> str:
        with self._lock:
            return "".join(self._chars)

    def add(self, char: str) -> None:
        if not char:
            return
        now = self._clock()
        with self._lock:
            if not self._chars:
                self._started_at = now
            self._chars.append(char)
            self._restart_timer()

    def _restart_timer(self) -> None:
        if self._timer:
            self._timer.cancel()
        self._timer = threading.Timer(self._flush_sec, self.flush)
        self._timer.daemon = True
        self._timer.start()

    def flush(self) -> None:
        """溜まった入力を type アクションとして通知（空なら何もしない）"""
        with self._lock:
            if self._timer:
                self._timer.cancel()
                self._timer = None
            if not self._chars:
                return
            text = "".join(self._chars)
            started_at = self._started_at if self._started_at is not None else self._clock()
            self._chars.clear()
            self._started_at = None

        width, height = self._viewport()
        action = RawAction(
            timestamp=datetime.fromtimestamp(started_at),
            relative_time=max(0.0, started_at - self._session_start),
            kind=ActionKind.TYPE,
            viewport_width=width,
            viewport_height=height,
            typed_text=text,
        )
        try:
            self._on_action(action)
        except Exception:
            logger.exception("type アクション通知でエラー")
