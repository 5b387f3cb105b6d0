"""
ステップ検出パイプラインで共有するデータモデル定義

【使用方法】
from detection.models import ActionKind, ElementDescriptor, RawAction, DetectedStep

element = ElementDescriptor(role="AXButton", title="Submit", parent_chain=("AXToolbar", "AXWindow"))

action = RawAction(
    relative_time=1.0,
    kind=ActionKind.CLICK,
    click_x=0.5, click_y=0.3,
    viewport_width=2560, viewport_height=1600,
    app_bundle_id="com.apple.Safari",
    app_name="Safari",
    element=element,
)

ActionKind.parse("keyboardShortcut")  # => ActionKind.KEYBOARD_SHORTCUT
ActionKind.parse("???")               # => ActionKind.UNKNOWN

step.to_dict()   # => {"order_index": 0, "action_type": "click", ...}

【処理内容】
ActionKind: 操作種別（閉じた列挙。未知の値は UNKNOWN に寄せる）
ElementDescriptor: クリック位置のアクセシビリティ要素情報（role は常に存在、空文字可）
RawAction: OS イベント1件を表すイミュータブルな生アクション
DetectedStep: ステップとして採用されたアクション（キャプション・スクショキー付き）
RecordingSession: 1回の録画セッションのメタデータ（メモリ上のみ、永続化しない）

【依存】
Python標準ライブラリのみ (dataclasses, datetime, enum, typing, uuid)
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class ActionKind(str, Enum):
    """操作種別（値は録画データの action_type と同じ文字列）"""
    CLICK = "click"
    TYPE = "type"
    KEYBOARD_SHORTCUT = "keyboardShortcut"
    APP_SWITCH = "appSwitch"
    URL_NAVIGATION = "urlNavigation"
    MENU_SELECTION = "menuSelection"
    DRAG = "drag"
    SCROLL = "scroll"
    DIALOG_INTERACTION = "dialogInteraction"
    MANUAL_MARKER = "manualMarker"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "ActionKind":
        """文字列（または ActionKind）から変換。未知の値は UNKNOWN"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class ElementDescriptor:
    """クリック位置のUI要素情報"""
    role: str = ""
    title: Optional[str] = None
    value: Optional[str] = None
    # AXRoleDescription（パスワード欄の判定に使う）
    role_description: Optional[str] = None
    # 発見順（内側→外側）の祖先 role
    parent_chain: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.role is None:
            object.__setattr__(self, "role", "")
        object.__setattr__(self, "parent_chain", tuple(self.parent_chain))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "title": self.title,
            "value": self.value,
            "role_description": self.role_description,
            "parent_chain": list(self.parent_chain),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ElementDescriptor":
        return cls(
            role=d.get("role") or "",
            title=d.get("title"),
            value=d.get("value"),
            role_description=d.get("role_description"),
            parent_chain=tuple(d.get("parent_chain") or ()),
        )


def _frozen_info(info: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return MappingProxyType(dict(info or {}))


@dataclass(frozen=True)
class RawAction:
    """OSイベントから生成される生アクション（1回だけ ActionBuffer に渡される）"""
    relative_time: float
    kind: ActionKind
    click_x: Optional[float] = None
    click_y: Optional[float] = None
    viewport_width: int = 0
    viewport_height: int = 0
    app_bundle_id: Optional[str] = None
    app_name: Optional[str] = None
    window_title: Optional[str] = None
    url: Optional[str] = None
    element: Optional[ElementDescriptor] = None
    key_combo: Optional[str] = None
    typed_text: Optional[str] = None
    plugin_info: Mapping[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        # frozen なので object.__setattr__ で正規化
        object.__setattr__(self, "kind", ActionKind.parse(self.kind))
        object.__setattr__(self, "plugin_info", _frozen_info(self.plugin_info))


@dataclass(frozen=True)
class DetectedStep:
    """ステップとして採用されたアクション"""
    order_index: int
    timestamp: float
    kind: ActionKind
    screenshot_key: str
    auto_caption: str
    click_x: Optional[float] = None
    click_y: Optional[float] = None
    viewport_width: int = 0
    viewport_height: int = 0
    app_bundle_id: Optional[str] = None
    app_name: Optional[str] = None
    window_title: Optional[str] = None
    url: Optional[str] = None
    element: Optional[ElementDescriptor] = None
    plugin_info: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "plugin_info", _frozen_info(self.plugin_info))

    @classmethod
    def from_action(cls, action: RawAction, order_index: int, caption: str) -> "DetectedStep":
        """採用された RawAction から DetectedStep を生成"""
        return cls(
            order_index=order_index,
            timestamp=action.relative_time,
            kind=action.kind,
            screenshot_key=f"step-{order_index}.jpg",
            auto_caption=caption,
            click_x=action.click_x,
            click_y=action.click_y,
            viewport_width=action.viewport_width,
            viewport_height=action.viewport_height,
            app_bundle_id=action.app_bundle_id,
            app_name=action.app_name,
            window_title=action.window_title,
            url=action.url,
            element=action.element,
            plugin_info=action.plugin_info,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_index": self.order_index,
            "timestamp": self.timestamp,
            "action_type": self.kind.value,
            "screenshot_key": self.screenshot_key,
            "click_x": self.click_x,
            "click_y": self.click_y,
            "viewport_width": self.viewport_width,
            "viewport_height": self.viewport_height,
            "app_bundle_id": self.app_bundle_id,
            "app_name": self.app_name,
            "window_title": self.window_title,
            "url": self.url,
            "element_info": self.element.to_dict() if self.element else None,
            "auto_caption": self.auto_caption,
            "plugin_info": dict(self.plugin_info),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectedStep":
        element = d.get("element_info")
        order_index = int(d.get("order_index", 0))
        return cls(
            order_index=order_index,
            timestamp=float(d.get("timestamp", 0.0)),
            kind=ActionKind.parse(d.get("action_type")),
            screenshot_key=d.get("screenshot_key") or f"step-{order_index}.jpg",
            auto_caption=d.get("auto_caption", ""),
            click_x=d.get("click_x"),
            click_y=d.get("click_y"),
            viewport_width=int(d.get("viewport_width", 0)),
            viewport_height=int(d.get("viewport_height", 0)),
            app_bundle_id=d.get("app_bundle_id"),
            app_name=d.get("app_name"),
            window_title=d.get("window_title"),
            url=d.get("url"),
            element=ElementDescriptor.from_dict(element) if element else None,
            plugin_info=d.get("plugin_info") or {},
        )


@dataclass
class RecordingSession:
    """1回の録画セッションのメタデータ"""
    session_id: str
    started_at: datetime
    duration: float = 0.0
    macos_version: str = ""
    screen_resolution: str = ""
    apps_used: List[str] = field(default_factory=list)
    steps: List[DetectedStep] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.session_id,
            "started_at": self.started_at.isoformat(),
            "duration": round(self.duration, 2),
            "macos_version": self.macos_version,
            "screen_resolution": self.screen_resolution,
            "apps_used": list(self.apps_used),
            "steps": [s.to_dict() for s in self.steps],
        }
