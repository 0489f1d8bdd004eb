"""Quiz source loading.

A source is a UTF-8 JSON document shaped as ``{"topic_key": [question, ...]}``.
Only the first key is used; its name becomes the display title.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Union

from ..core.logging import get_logger
from .errors import FormatError, LoadError
from .models import Question, QuizData, validate_question

__all__ = [
    "NOT_FOUND_TITLE",
    "format_title",
    "load_quiz",
    "get_quiz_data",
]

NOT_FOUND_TITLE = "Quiz Not Found"

_LOGGER = get_logger("quiz.store")

Source = Union[Path, str, bytes]


def format_title(key: str) -> str:
    """Turn ``blockchain_basics`` into ``Blockchain Basics``."""

    return " ".join(word[:1].upper() + word[1:] for word in key.split("_"))


def load_quiz(source: Source) -> QuizData:
    """Load and validate a quiz collection.

    ``source`` is a path to the JSON file or the raw document itself
    (``bytes`` or ``str`` holding JSON). Raises LoadError when the file
    cannot be read and FormatError when the document is malformed.
    """

    raw = _read_source(source)
    try:
        data = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise FormatError(f"Quiz source is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise FormatError("Quiz source must be a JSON object keyed by topic.")
    if not data:
        raise FormatError("Quiz source does not define any topic.")

    key = next(iter(data))
    items = data[key]
    if not isinstance(items, list):
        raise FormatError(f"Topic '{key}' must map to an array of questions.")

    questions = []
    for position, item in enumerate(items):
        try:
            validate_question(item)
        except ValueError as exc:
            raise FormatError(
                f"Question {position + 1} of '{key}' is invalid: {exc}"
            ) from exc
        questions.append(Question.from_dict(item))
    return QuizData(
        title=format_title(key),
        questions=tuple(questions),
        topic_key=key,
    )


def get_quiz_data(
    source: Source, *, logger: logging.Logger | None = None
) -> QuizData:
    """Load a quiz, substituting the empty "not found" state on failure."""

    log = logger or _LOGGER
    try:
        quiz = load_quiz(source)
    except LoadError as exc:
        log.error(
            "Failed to load quiz data",
            extra={"source": _describe(source), "reason": str(exc)},
        )
        return QuizData(title=NOT_FOUND_TITLE, questions=())
    log.info(
        "Loaded quiz data",
        extra={
            "source": _describe(source),
            "topic": quiz.topic_key,
            "question_count": len(quiz.questions),
        },
    )
    return quiz


def _read_source(source: Source) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, str) and source.lstrip().startswith(("{", "[")):
        return source.encode("utf-8")
    path = Path(source)
    try:
        return path.read_bytes()
    except FileNotFoundError as exc:
        raise LoadError(f"Quiz source not found: {path}") from exc
    except OSError as exc:
        raise LoadError(f"Could not read quiz source {path}: {exc}") from exc


def _describe(source: Source) -> str:
    if isinstance(source, bytes):
        return "<inline document>"
    if isinstance(source, str) and source.lstrip().startswith(("{", "[")):
        return "<inline document>"
    return str(source)
