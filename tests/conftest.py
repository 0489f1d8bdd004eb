from __future__ import annotations

import json
import logging
from types import SimpleNamespace
from typing import Any, Callable, Iterator, List

import pytest

from quizdeck.core.logging import ROOT_LOGGER
from quizdeck.quiz.models import Question


class FakeCompletions:
    """Records ``create`` calls and replays queued replies in order."""

    def __init__(self, replies: List[Any]) -> None:
        self.replies = list(replies)
        self.calls: List[dict[str, Any]] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if not isinstance(reply, str):
            reply = json.dumps(reply)
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def fake_client() -> Callable[..., Any]:
    """Build a duck-typed OpenAI client replying with the given payloads."""

    def _build(*replies: Any) -> Any:
        completions = FakeCompletions(list(replies))
        client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
        client.completions = completions
        return client

    return _build


def make_question_dict(
    number: int = 1, *, answer: str = "B", url: str | None = None
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "question": f"Question {number}?",
        "options": [
            f"A) first {number}",
            f"B) second {number}",
            f"C) third {number}",
            f"D) fourth {number}",
        ],
        "correct_answer": answer,
        "explanation": f"Because of reason {number}.",
    }
    if url:
        payload["documentation_url"] = url
    return payload


@pytest.fixture
def question_dict() -> Callable[..., dict[str, Any]]:
    return make_question_dict


@pytest.fixture
def make_questions() -> Callable[[int], tuple[Question, ...]]:
    def _build(count: int, *, start: int = 1) -> tuple[Question, ...]:
        return tuple(
            Question.from_dict(make_question_dict(number))
            for number in range(start, start + count)
        )

    return _build


@pytest.fixture(autouse=True)
def _reset_quizdeck_logger(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv("QUIZDECK_CONFIG", raising=False)
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
