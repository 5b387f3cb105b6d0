"""
プライバシー保護フィルタ: RawAction に含まれるパスワード・機密情報をステップに残さない

【使用方法】
from common.privacy_guard import PrivacyGuard, PrivacyLevel

# デフォルト（standard）: secureフィールドと機密パターンのみフィルタ
guard = PrivacyGuard()

# strict: 全テキスト入力・全URLパラメータ・全要素値をマスク
guard = PrivacyGuard(PrivacyLevel.STRICT)

# 設定文字列から
guard = PrivacyGuard.from_name("off")

guard.is_secure_field("AXSecureTextField")                # True
guard.is_secure_field("AXTextField", "PIN code")          # True（role description のキーワード）
guard.sanitize_url("https://x.com?token=abc")             # "https://x.com?token=[MASKED]"
guard.redact_sensitive_patterns("key sk-abc123...")       # "key [API_KEY]"
guard.filter_action(action, in_secure_field=False)        # RawAction or None（記録しない）

【処理内容】
1. PrivacyLevel: standard / strict / off の3段階
2. URL のトークン・APIキーパラメータをマスク（strict は全パラメータ）
3. 入力テキスト内のクレジットカード番号・APIキーパターンを除去
   secureフィールドへの入力は type アクションごと破棄、strict は "[TEXT_INPUT]"
4. AXSecureTextField・パスワード系 role description の要素値をマスク（strict は全要素値）

【依存】
Python標準ライブラリ (re, enum, dataclasses, urllib.parse), detection.models
"""

import logging
import re
from dataclasses import replace
from enum import Enum
from typing import Optional
from urllib.parse import parse_qs, urlparse, urlunparse

from detection.models import ActionKind, ElementDescriptor, RawAction

logger = logging.getLogger(__name__)


class PrivacyLevel(Enum):
    STANDARD = "standard"
    STRICT = "strict"
    OFF = "off"


# URL内のマスク対象パラメータ名
_SENSITIVE_URL_PARAMS = {
    "token", "access_token", "api_key", "apikey", "api-key",
    "password", "passwd", "secret", "session", "session_id",
    "jwt", "auth", "authorization", "key", "private_key",
    "client_secret", "refresh_token", "id_token",
}

# テキスト内の機密パターン（正規表現）
_SENSITIVE_PATTERNS = [
    # クレジットカード番号（4桁×4、スペースorハイフン区切り）
    (re.compile(r'\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}\b'), "[CARD_NUMBER]"),
    # OpenAI APIキー
    (re.compile(r'sk-[A-Za-z0-9]{20,}'), "[API_KEY]"),
    # GitHub トークン
    (re.compile(r'gh[ps]_[A-Za-z0-9]{36,}'), "[API_KEY]"),
    # Slack トークン
    (re.compile(r'xox[bpras]-[A-Za-z0-9\-]{10,}'), "[API_KEY]"),
    # Google APIキー
    (re.compile(r'AIza[A-Za-z0-9\-_]{35}'), "[API_KEY]"),
    # AWS アクセスキー
    (re.compile(r'AKIA[A-Z0-9]{16}'), "[API_KEY]"),
    # 汎用 Bearer トークン
    (re.compile(r'Bearer\s+[A-Za-z0-9\-._~+/]+=*', re.IGNORECASE), "[BEARER_TOKEN]"),
]

_SECURE_ROLES = ("AXSecureTextField",)

# パスワードフィールド判定キーワード（role description 用）
_PASSWORD_KEYWORDS = ("password", "パスワード", "passwd", "passcode", "pin")


class PrivacyGuard:
    """RawAction 用プライバシー保護フィルタ"""

    def __init__(self, level: PrivacyLevel = PrivacyLevel.STANDARD):
        self.level = level

    @classmethod
    def from_name(cls, name: str) -> "PrivacyGuard":
        try:
            return cls(PrivacyLevel(name.strip().lower()))
        except ValueError:
            logger.warning("不明なプライバシーレベル: %s。standard を使用", name)
            return cls(PrivacyLevel.STANDARD)

    @staticmethod
    def is_secure_field(role: Optional[str], role_description: Optional[str] = None) -> bool:
        """AXSecureTextField、または role description がパスワード系のフィールドか"""
        if role in _SECURE_ROLES:
            return True
        if role_description:
            desc_lower = role_description.lower()
            return any(kw in desc_lower for kw in _PASSWORD_KEYWORDS)
        return False

    def sanitize_url(self, url: Optional[str]) -> Optional[str]:
        """URLから機密パラメータをマスク"""
        if self.level == PrivacyLevel.OFF or not url:
            return url
        try:
            parsed = urlparse(url)
            params = parse_qs(parsed.query, keep_blank_values=True)
        except ValueError as e:
            # 不正なURL（閉じていないIPv6ホスト等）はそのまま返す
            logger.debug("URL解析失敗: %s", e)
            return url
        if not params:
            return url

        changed = False
        for key in params:
            if self.level == PrivacyLevel.STRICT or key.lower() in _SENSITIVE_URL_PARAMS:
                params[key] = ["[MASKED]"]
                changed = True
        if not changed:
            return url
        # parse_qsはリスト値を返すので、単一値に戻す
        new_query = "&".join(f"{k}={v[0]}" for k, v in params.items())
        return urlunparse(parsed._replace(query=new_query))

    def redact_sensitive_patterns(self, text: str) -> str:
        """テキスト内の機密パターン（APIキー、カード番号等）を除去"""
        if self.level == PrivacyLevel.OFF:
            return text
        result = text
        for pattern, replacement in _SENSITIVE_PATTERNS:
            result = pattern.sub(replacement, result)
        return result

    def _filter_element(self, element: Optional[ElementDescriptor]) -> Optional[ElementDescriptor]:
        if element is None or element.value is None:
            return element
        if self.level == PrivacyLevel.STRICT or self.is_secure_field(element.role, element.role_description):
            return replace(element, value="[MASKED]")
        return element

    def filter_action(self, action: RawAction, in_secure_field: bool = False) -> Optional[RawAction]:
        """
        アクションから機密情報を除去する

        Input:
            action: 生アクション
            in_secure_field: 直前のフォーカスがパスワード欄か（type アクションの判定用）
        Output:
            RawAction: フィルタ後のアクション
            None: 記録しない（secureフィールドへの入力）
        """
        if self.level == PrivacyLevel.OFF:
            return action

        typed_text = action.typed_text
        if action.kind == ActionKind.TYPE and typed_text is not None:
            if self.level == PrivacyLevel.STRICT:
                typed_text = "[TEXT_INPUT]"
            elif in_secure_field:
                logger.debug("secureフィールドへの入力を破棄")
                return None
            else:
                typed_text = self.redact_sensitive_patterns(typed_text)

        return replace(
            action,
            url=self.sanitize_url(action.url),
            typed_text=typed_text,
            element=self._filter_element(action.element),
        )
