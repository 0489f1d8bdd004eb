"""Error taxonomy for quiz loading, AI adapters and session rendering."""

from __future__ import annotations

__all__ = [
    "QuizError",
    "LoadError",
    "FormatError",
    "HintGenerationError",
    "QuestionGenerationError",
    "DataIntegrityError",
]


class QuizError(RuntimeError):
    """Base class for quiz failures; all of them are recoverable."""


class LoadError(QuizError):
    """Raised when the quiz source cannot be read."""


class FormatError(LoadError):
    """Raised when the quiz source is not a valid question collection."""


class HintGenerationError(QuizError):
    """Raised when the hint capability fails or replies with bad data."""


class QuestionGenerationError(QuizError):
    """Raised when a generated batch is missing, empty or malformed."""


class DataIntegrityError(QuizError):
    """Raised when no question exists at the session's current index."""
