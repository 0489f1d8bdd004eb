"""Question data model shared by the loader, adapters and session."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

__all__ = [
    "OPTION_COUNT",
    "Question",
    "QuizData",
    "validate_question",
    "option_label",
    "option_text",
]

OPTION_COUNT = 4

_OPTION_PATTERN = re.compile(r"^[A-Z]\) ")


def option_label(option: str) -> str:
    """Return the one-letter label of an option such as ``"B) text"``."""

    return option[:1]


def option_text(option: str) -> str:
    """Return an option without its ``"X) "`` prefix."""

    if len(option) >= 2 and option[1] == ")":
        return option[2:].lstrip()
    return option


@dataclass(frozen=True)
class Question:
    """A multiple-choice question as stored in the quiz source file."""

    question: str
    options: Tuple[str, ...]
    correct_answer: str
    explanation: str
    documentation_url: Optional[str] = None

    def labels(self) -> Tuple[str, ...]:
        return tuple(option_label(option) for option in self.options)

    def option_for(self, letter: Optional[str]) -> Optional[str]:
        if not letter:
            return None
        for option in self.options:
            if option_label(option) == letter:
                return option
        return None

    def is_correct(self, letter: Optional[str]) -> bool:
        """True when ``letter`` is the answer and labels one of the options."""

        if not letter or letter != self.correct_answer:
            return False
        return letter in self.labels()

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "question": self.question,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "explanation": self.explanation,
        }
        if self.documentation_url:
            payload["documentation_url"] = self.documentation_url
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Question":
        """Build from a mapping already checked by ``validate_question``."""

        return cls(
            question=payload["question"],
            options=tuple(payload["options"]),
            correct_answer=payload["correct_answer"],
            explanation=payload["explanation"],
            documentation_url=payload.get("documentation_url") or None,
        )


@dataclass(frozen=True)
class QuizData:
    """Result of loading a quiz source: display title plus questions."""

    title: str
    questions: Tuple[Question, ...] = ()
    topic_key: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.questions


def validate_question(
    payload: Any, *, single_letter_answer: bool = False
) -> None:
    """Validate the shape of a question mapping.

    Requires a string ``question``, exactly four string ``options`` each
    prefixed with a unique ``"X) "`` label, a string ``correct_answer``, a
    string ``explanation`` and, when present, a string
    ``documentation_url``. With
    ``single_letter_answer`` the answer must be exactly one character.
    Whether the answer labels one of the options is not checked here.
    Raises ValueError with an actionable message when invalid.
    """

    if not isinstance(payload, Mapping):
        raise ValueError("question must be an object")
    if not isinstance(payload.get("question"), str):
        raise ValueError("'question' must be a string")
    options = payload.get("options")
    if not isinstance(options, list) or len(options) != OPTION_COUNT:
        raise ValueError(f"'options' must be a list of {OPTION_COUNT} strings")
    if not all(isinstance(option, str) and option for option in options):
        raise ValueError("every option must be a non-empty string")
    for option in options:
        if not _OPTION_PATTERN.match(option):
            raise ValueError(
                f"option '{option}' must start with a label such as 'A) '"
            )
    labels = [option_label(option) for option in options]
    if len(set(labels)) != len(labels):
        raise ValueError("duplicate option labels detected")
    answer = payload.get("correct_answer")
    if not isinstance(answer, str):
        raise ValueError("'correct_answer' must be a string")
    if single_letter_answer and len(answer) != 1:
        raise ValueError("'correct_answer' must be a single letter")
    if not isinstance(payload.get("explanation"), str):
        raise ValueError("'explanation' must be a string")
    url = payload.get("documentation_url")
    if url is not None and not isinstance(url, str):
        raise ValueError("'documentation_url' must be a string when set")
