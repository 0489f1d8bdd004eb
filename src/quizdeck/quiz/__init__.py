from .errors import (
    DataIntegrityError,
    FormatError,
    HintGenerationError,
    LoadError,
    QuestionGenerationError,
    QuizError,
)
from .models import Question, QuizData, validate_question
from .store import format_title, get_quiz_data, load_quiz
from .shuffle import shuffle, shuffled_copy
from .hints import (
    HINT_ERROR_MESSAGE,
    HINT_UNHELPFUL_MESSAGE,
    HintResponse,
    HintService,
)
from .generation import BATCH_SIZE, QuestionGenerator
from .session import (
    QuizSession,
    QuizSummary,
    SessionState,
    current_question,
    render_summary,
    summarize_session,
    transition,
)

__all__ = [
    "DataIntegrityError",
    "FormatError",
    "HintGenerationError",
    "LoadError",
    "QuestionGenerationError",
    "QuizError",
    "Question",
    "QuizData",
    "validate_question",
    "format_title",
    "get_quiz_data",
    "load_quiz",
    "shuffle",
    "shuffled_copy",
    "HINT_ERROR_MESSAGE",
    "HINT_UNHELPFUL_MESSAGE",
    "HintResponse",
    "HintService",
    "BATCH_SIZE",
    "QuestionGenerator",
    "QuizSession",
    "QuizSummary",
    "SessionState",
    "current_question",
    "render_summary",
    "summarize_session",
    "transition",
]
