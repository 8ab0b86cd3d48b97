from __future__ import annotations

from lovebridge.services.logging import preview, redact_secrets


def test_redacts_credential_like_keys():
    event = {
        "event": "startup",
        "openai_api_key": "sk-abcdef123456",
        "authorization": "Bearer s3cret",
        "admin_secret": "abc",
        "text_len": 12,
    }
    out = redact_secrets(None, "info", dict(event))
    assert out["openai_api_key"] == "sk***"
    assert out["authorization"] == "Be***"
    assert out["admin_secret"] == "***"
    assert out["text_len"] == 12
    assert out["event"] == "startup"


def test_preview_flattens_and_truncates():
    assert preview("a\nb   c") == "a b c"
    assert preview("x" * 80, limit=10) == "x" * 10 + "..."
    assert preview(None) == ""
