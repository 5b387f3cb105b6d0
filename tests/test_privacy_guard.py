"""Tests for privacy filtering of raw actions."""

import pytest

from common.privacy_guard import PrivacyGuard, PrivacyLevel
from detection.models import ActionKind, ElementDescriptor

from conftest import make_action


class TestPrivacyGuard:
    def test_from_name(self):
        assert PrivacyGuard.from_name(" Strict ").level is PrivacyLevel.STRICT
        assert PrivacyGuard.from_name("paranoid").level is PrivacyLevel.STANDARD

    def test_sanitize_url_masks_sensitive_params(self):
        guard = PrivacyGuard()
        assert guard.sanitize_url("https://x.com/cb?token=abc&page=2") == "https://x.com/cb?token=[MASKED]&page=2"
        assert guard.sanitize_url("https://x.com/?page=2") == "https://x.com/?page=2"
        assert guard.sanitize_url(None) is None

    def test_strict_masks_all_params(self):
        guard = PrivacyGuard(PrivacyLevel.STRICT)
        assert guard.sanitize_url("https://x.com/?q=cats") == "https://x.com/?q=[MASKED]"

    @pytest.mark.parametrize("text, expected", [
        ("card 4111 1111 1111 1111", "card [CARD_NUMBER]"),
        ("key sk-" + "a" * 24, "key [API_KEY]"),
        ("Authorization: Bearer abc.def", "Authorization: [BEARER_TOKEN]"),
        ("hello world", "hello world"),
    ])
    def test_redact(self, text, expected):
        assert PrivacyGuard().redact_sensitive_patterns(text) == expected

    def test_secure_field_typing_dropped(self):
        action = make_action(ActionKind.TYPE, typed_text="hunter2")
        assert PrivacyGuard().filter_action(action, in_secure_field=True) is None

    def test_strict_typing_replaced(self):
        action = make_action(ActionKind.TYPE, typed_text="hello")
        filtered = PrivacyGuard(PrivacyLevel.STRICT).filter_action(action, in_secure_field=True)
        assert filtered.typed_text == "[TEXT_INPUT]"

    def test_secure_element_value_masked(self):
        element = ElementDescriptor(role="AXSecureTextField", value="hunter2")
        filtered = PrivacyGuard().filter_action(make_action(element=element))
        assert filtered.element.value == "[MASKED]"
        assert filtered.element.role == "AXSecureTextField"

    def test_plain_element_value_kept(self):
        element = ElementDescriptor(role="AXTextField", value="query")
        assert PrivacyGuard().filter_action(make_action(element=element)).element.value == "query"

    def test_off_passes_through(self):
        action = make_action(ActionKind.TYPE, typed_text="sk-" + "b" * 30, url="https://x.com/?token=1")
        assert PrivacyGuard(PrivacyLevel.OFF).filter_action(action, in_secure_field=True) is action

    def test_filter_keeps_identity_fields(self):
        action = make_action(url="https://x.com/?token=1")
        filtered = PrivacyGuard().filter_action(action)
        assert filtered.id == action.id
        assert filtered.relative_time == action.relative_time
        assert filtered.url == "https://x.com/?token=[MASKED]"

    def test_malformed_url_is_returned_unchanged(self):
        assert PrivacyGuard().sanitize_url("http://[::1/?token=1") == "http://[::1/?token=1"

    @pytest.mark.parametrize("role, role_description, expected", [
        ("AXSecureTextField", None, True),
        ("AXTextField", "Password", True),
        ("AXGroup", "PIN entry", True),
        ("AXTextField", "パスワード", True),
        ("AXTextField", "search text field", False),
        ("AXTextField", None, False),
    ])
    def test_is_secure_field(self, role, role_description, expected):
        assert PrivacyGuard.is_secure_field(role, role_description) is expected

    def test_custom_password_control_value_masked(self):
        element = ElementDescriptor(role="AXTextField", value="hunter2", role_description="password field")
        assert PrivacyGuard().filter_action(make_action(element=element)).element.value == "[MASKED]"

    def test_google_api_key_redacted(self):
        key = "AIza" + "B" * 35
        assert PrivacyGuard().redact_sensitive_patterns(f"key={key}") == "key=[API_KEY]"
