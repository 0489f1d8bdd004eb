from __future__ import annotations

import logging

import pytest

from quizdeck.core.config import default_config
from quizdeck.quiz.errors import HintGenerationError
from quizdeck.quiz.hints import (
    HINT_ERROR_MESSAGE,
    HINT_UNHELPFUL_MESSAGE,
    HintService,
    build_hint_prompts,
)


def test_build_hint_prompts_embeds_question():
    system_prompt, user_prompt = build_hint_prompts("What is a nonce?")
    assert "hints for quiz questions" in system_prompt
    assert user_prompt.endswith("Question: What is a nonce?")
    assert '"isHelpful"' in user_prompt


def test_helpful_hint_is_returned_verbatim(fake_client):
    hint = "  Think about miners.  "
    client = fake_client({"hint": hint, "isHelpful": True})
    service = HintService(client=client, model="m1", request_timeout=9)

    assert service.get_hint("How are blocks found?") == hint

    call = client.completions.calls[0]
    assert call["model"] == "m1"
    assert call["timeout"] == 9
    assert call["response_format"] == {"type": "json_object"}
    assert "How are blocks found?" in call["messages"][1]["content"]


def test_unhelpful_hint_uses_fallback_text(fake_client):
    client = fake_client({"hint": "no idea", "isHelpful": False})
    service = HintService(client=client)
    assert service.get_hint("Q?") == HINT_UNHELPFUL_MESSAGE


def test_client_failure_returns_error_text(fake_client, caplog):
    caplog.set_level(logging.ERROR, logger="quizdeck.quiz.hints")
    client = fake_client(ConnectionError("offline"))
    service = HintService(client=client)

    assert service.get_hint("Q?") == HINT_ERROR_MESSAGE
    assert any(record.exc_info for record in caplog.records)


@pytest.mark.parametrize(
    "reply",
    [
        {"hint": "x"},
        {"hint": 3, "isHelpful": True},
        {"hint": "x", "isHelpful": "yes"},
        "not json at all",
        "",
    ],
)
def test_malformed_reply_is_an_error(fake_client, reply):
    service = HintService(client=fake_client(reply))
    with pytest.raises(HintGenerationError):
        service.generate("Q?")
    service = HintService(client=fake_client(reply))
    assert service.get_hint("Q?") == HINT_ERROR_MESSAGE


def test_fenced_reply_is_accepted(fake_client):
    reply = '```json\n{"hint": "Look at the header.", "isHelpful": true}\n```'
    service = HintService(client=fake_client(reply))
    response = service.generate("Q?")
    assert response.hint == "Look at the header."
    assert response.is_helpful is True


def test_missing_credentials_fall_back_to_error_text():
    def _no_key():
        raise RuntimeError("OPENAI_API_KEY not found in environment.")

    service = HintService(client_factory=_no_key)
    with pytest.raises(HintGenerationError) as exc:
        service.generate("Q?")
    assert "OPENAI_API_KEY" in str(exc.value)
    assert service.get_hint("Q?") == HINT_ERROR_MESSAGE


def test_client_is_created_once(fake_client):
    created = []

    def _factory():
        client = fake_client(
            {"hint": "one", "isHelpful": True},
            {"hint": "two", "isHelpful": True},
        )
        created.append(client)
        return client

    service = HintService(client_factory=_factory)
    assert service.get_hint("Q1") == "one"
    assert service.get_hint("Q2") == "two"
    assert len(created) == 1


def test_from_config_caps_hint_tokens(fake_client):
    config = default_config()
    client = fake_client({"hint": "h", "isHelpful": True})
    service = HintService.from_config(config.ai, client=client)
    service.get_hint("Q?")

    call = client.completions.calls[0]
    assert call["max_tokens"] == 300
    assert call["model"] == config.ai.model
    assert call["timeout"] == config.ai.request_timeout_seconds
