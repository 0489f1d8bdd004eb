"""Question generation adapter backed by an OpenAI chat model."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, List, Optional, Sequence

from ..core.ai import AIResponseError, complete_json, load_client
from ..core.logging import get_logger
from ..core.config import AIConfig
from .errors import QuestionGenerationError
from .models import Question, validate_question

__all__ = [
    "BATCH_SIZE",
    "QuestionGenerator",
    "build_generation_prompts",
    "parse_generated_questions",
]

BATCH_SIZE = 5

_LOGGER = get_logger("quiz.generation")

_SYSTEM_PROMPT = "You are an AI assistant that creates quiz questions."


def build_generation_prompts(
    topic: str, count: int, existing_questions: str
) -> tuple[str, str]:
    """Return system and user prompts for a batch of ``count`` questions.

    ``existing_questions`` is the JSON-encoded array of question texts the
    model should steer away from.
    """

    schema_line = (
        '{"questions": [{"question": str, "options": [str, str, str, str], '
        '"correct_answer": str, "explanation": str}]}'
    )
    user_prompt = (
        f"Generate {count} new and unique quiz questions about the topic: "
        f"{topic}.\n\n"
        "The questions should be distinct from the following existing "
        f"questions:\n{existing_questions}\n\n"
        "Each question must have exactly 4 multiple-choice options, labeled "
        "A, B, C, and D. One of these options must be the correct answer. "
        "You must also provide a brief explanation for why the answer is "
        "correct.\n\n"
        "Return the questions as a JSON object matching this schema:\n"
        f"{schema_line}\n"
        "Ensure the 'correct_answer' is only the letter (e.g., \"A\", \"B\", "
        '"C", or "D"). The options should be formatted as "A) Answer text", '
        '"B) Answer text", etc.'
    )
    return _SYSTEM_PROMPT, user_prompt


def parse_generated_questions(
    payload: Any, *, count: int = BATCH_SIZE
) -> List[Question]:
    """Validate a ``{"questions": [...]}`` reply into exactly ``count`` items.

    Any problem rejects the whole batch with QuestionGenerationError.
    """

    items = payload.get("questions") if isinstance(payload, dict) else None
    if not isinstance(items, list) or not items:
        raise QuestionGenerationError("The model returned no questions.")
    if len(items) != count:
        raise QuestionGenerationError(
            f"Expected {count} questions, received {len(items)}."
        )
    questions: List[Question] = []
    for position, item in enumerate(items, start=1):
        try:
            validate_question(item, single_letter_answer=True)
        except ValueError as exc:
            raise QuestionGenerationError(
                f"Generated question {position} is invalid: {exc}"
            ) from exc
        questions.append(Question.from_dict(item))
    return questions


class QuestionGenerator:
    """Requests fresh batches of questions on a topic."""

    def __init__(
        self,
        *,
        client: Any | None = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        max_tokens: int = 1200,
        request_timeout: Optional[int] = None,
        client_factory: Callable[[], Any] = load_client,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._client_factory = client_factory
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = request_timeout
        self._logger = logger or _LOGGER

    @classmethod
    def from_config(
        cls, config: AIConfig, *, client: Any | None = None
    ) -> "QuestionGenerator":
        return cls(
            client=client,
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            request_timeout=config.request_timeout_seconds,
            client_factory=lambda: load_client(api_base=config.api_base),
        )

    def get_more_questions(
        self, topic: str, existing: Sequence[Question]
    ) -> List[Question]:
        """Return a validated batch of ``BATCH_SIZE`` new questions.

        Uniqueness against ``existing`` is left to the model. Raises
        QuestionGenerationError on failure; there is no retry.
        """

        existing_texts = json.dumps([item.question for item in existing])
        system_prompt, user_prompt = build_generation_prompts(
            topic, BATCH_SIZE, existing_texts
        )
        try:
            client = self._resolve_client()
            payload = complete_json(
                client,
                model=self._model,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                timeout=self._timeout,
            )
        except QuestionGenerationError:
            raise
        except AIResponseError as exc:
            raise QuestionGenerationError(str(exc)) from exc
        except Exception as exc:
            raise QuestionGenerationError(
                f"Question generation request failed: {exc}"
            ) from exc

        questions = parse_generated_questions(payload, count=BATCH_SIZE)
        self._logger.info(
            "Generated questions",
            extra={
                "topic": topic,
                "existing_count": len(existing),
                "generated_count": len(questions),
            },
        )
        return questions

    def _resolve_client(self) -> Any:
        if self._client is None:
            try:
                self._client = self._client_factory()
            except RuntimeError as exc:
                raise QuestionGenerationError(str(exc)) from exc
        return self._client
