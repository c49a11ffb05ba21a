from __future__ import annotations

import pytest

from conftest import FakeResponse, FakeSession, gemini_reply

from labelscan.config import ChatConfig
from labelscan.domain.models import ChatMessage, ScanResult
from labelscan.errors import ConfigurationError, UpstreamError, ValidationError
from labelscan.gateway.chat import (
    FALLBACK_REPLY,
    ChatGateway,
    build_contents,
    build_system_instruction,
    extract_reply,
)


def test_two_turn_history_maps_to_three_turns_with_translated_roles(chat_config) -> None:
    session = FakeSession(FakeResponse(200, gemini_reply("Sure.")))
    history = [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]

    ChatGateway(chat_config, session=session).chat(history, None)

    contents = session.calls[0]["json"]["contents"]
    assert len(contents) == 3
    assert [c["role"] for c in contents] == ["user", "user", "model"]
    assert contents[1]["parts"] == [{"text": "hi"}]
    assert contents[2]["parts"] == [{"text": "hello"}]
    assert contents[0]["parts"][0]["text"] == build_system_instruction(None)


def test_endpoint_and_key_are_sent(chat_config) -> None:
    session = FakeSession(FakeResponse(200, gemini_reply("ok")))
    ChatGateway(chat_config, session=session).chat([ChatMessage(role="user", content="hi")])
    call = session.calls[0]
    assert call["url"] == "https://gemini.test/v1beta/models/gemini-1.5-flash:generateContent"
    assert call["params"] == {"key": "test-gemini-key"}


def test_reply_fragments_are_concatenated(chat_config) -> None:
    session = FakeSession(FakeResponse(200, gemini_reply("Oats are ", "a good ", "choice.")))
    reply = ChatGateway(chat_config, session=session).chat([{"role": "user", "content": "oats?"}])
    assert reply == "Oats are a good choice."


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"candidates": []},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"finishReason": "SAFETY"}]},
        {"candidates": [{"content": {"parts": [{"inlineData": {}}]}}]},
    ],
)
def test_no_text_yields_fallback_reply(body) -> None:
    assert extract_reply(body) == FALLBACK_REPLY


def test_non_success_is_upstream_error_with_details(chat_config) -> None:
    session = FakeSession(FakeResponse(400, text="API key not valid"))
    with pytest.raises(UpstreamError) as excinfo:
        ChatGateway(chat_config, session=session).chat([{"role": "user", "content": "hi"}])
    assert excinfo.value.details == "API key not valid"
    assert excinfo.value.upstream_status == 400


def test_rate_limit_is_not_special_cased_for_chat(chat_config) -> None:
    session = FakeSession(FakeResponse(429, text="quota"))
    with pytest.raises(UpstreamError):
        ChatGateway(chat_config, session=session).chat([{"role": "user", "content": "hi"}])


def test_transport_failure(chat_config, connection_error) -> None:
    session = FakeSession(connection_error)
    with pytest.raises(UpstreamError):
        ChatGateway(chat_config, session=session).chat([{"role": "user", "content": "hi"}])


def test_missing_key_fails_before_call() -> None:
    session = FakeSession()
    with pytest.raises(ConfigurationError):
        ChatGateway(ChatConfig(api_key=None), session=session).chat([])
    assert session.calls == []


def test_invalid_role_is_validation_error() -> None:
    with pytest.raises(ValidationError):
        build_contents([{"role": "system", "content": "x"}])


def test_scan_context_block_lists_present_fields() -> None:
    ctx = ScanResult(score=72, ingredients=["sugar", "salt"], highlights=["High sugar"], summary="Moderate")
    text = build_system_instruction(ctx)
    assert "Scan Context:\n" in text
    assert "Summary: Moderate\n" in text
    assert "Key Points: High sugar\n" in text
    assert "Ingredients: sugar, salt\n" in text
    assert "Health Score: 72\n" in text


def test_scan_context_skips_missing_or_malformed_fields() -> None:
    text = build_system_instruction({"summary": "", "highlights": "not a list", "score": "72"})
    assert "Scan Context:" in text
    assert "Summary:" not in text
    assert "Key Points:" not in text
    assert "Ingredients:" not in text
    assert "Health Score:" not in text


def test_no_context_means_persona_only() -> None:
    text = build_system_instruction(None)
    assert text.startswith("You are Health Assistant")
    assert "Scan Context" not in text
