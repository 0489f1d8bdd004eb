"""Quiz session state machine and its controller.

``SessionState`` is immutable. Every user or adapter event is a command
object passed to :func:`transition`, which returns the next state, so the
whole question lifecycle can be exercised without a terminal. The
:class:`QuizSession` controller owns the current state and runs the AI
adapters off the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import (
    Callable,
    Literal,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Union,
)

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..core.logging import get_logger
from .errors import DataIntegrityError, QuestionGenerationError
from .hints import HINT_ERROR_MESSAGE
from .models import Question, option_label
from .shuffle import shuffled_copy

__all__ = [
    "Phase",
    "Direction",
    "Notice",
    "SessionState",
    "Loaded",
    "SelectAnswer",
    "Navigate",
    "SettleNavigation",
    "RequestHint",
    "HintReady",
    "RequestMoreQuestions",
    "QuestionsGenerated",
    "GenerationFailed",
    "DismissNotice",
    "Command",
    "transition",
    "current_question",
    "QuizSession",
    "QuizSummary",
    "summarize_session",
    "render_summary",
]

Phase = Literal["loading", "active", "completed", "empty"]
Direction = Literal["next", "back"]

GENERATION_FAILED_TITLE = "Failed to generate questions"
GENERATION_FAILED_TEXT = (
    "The AI could not generate new questions. Please try again."
)
GENERATION_ERROR_TITLE = "An error occurred"
GENERATION_ERROR_TEXT = "Something went wrong while generating new questions."

_LOGGER = get_logger("quiz.session")


@dataclass(frozen=True)
class Notice:
    """User-visible failure message, shown once as a toast."""

    title: str
    description: str


@dataclass(frozen=True)
class SessionState:
    """Snapshot of a quiz session."""

    phase: Phase = "loading"
    questions: Tuple[Question, ...] = ()
    current_index: int = 0
    selected_answer: Optional[str] = None
    show_explanation: bool = False
    hint: Optional[str] = None
    score: int = 0
    answers: Mapping[int, str] = field(
        default_factory=lambda: MappingProxyType({})
    )
    animating: Optional[Direction] = None
    hint_pending_for: Optional[int] = None
    generating: bool = False
    notice: Optional[Notice] = None

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def completed(self) -> bool:
        return self.total > 0 and self.current_index >= self.total

    @property
    def hint_pending(self) -> bool:
        return self.hint_pending_for is not None

    @property
    def is_last(self) -> bool:
        return self.current_index == self.total - 1

    @property
    def is_correct(self) -> bool:
        if self.selected_answer is None or self.current_index >= self.total:
            return False
        question = self.questions[self.current_index]
        return question.is_correct(self.selected_answer)

    @property
    def can_go_back(self) -> bool:
        return (
            self.phase == "active"
            and self.animating is None
            and self.current_index > 0
        )

    @property
    def can_go_forward(self) -> bool:
        return self.phase == "active" and self.animating is None

    @property
    def can_request_hint(self) -> bool:
        return (
            self.phase == "active"
            and not self.show_explanation
            and not self.hint_pending
            and self.current_index < self.total
        )

    @property
    def can_generate(self) -> bool:
        return self.phase == "completed" and not self.generating


@dataclass(frozen=True)
class Loaded:
    questions: Tuple[Question, ...]


@dataclass(frozen=True)
class SelectAnswer:
    """Select an option; accepts the full option text or just its letter."""

    option: str


@dataclass(frozen=True)
class Navigate:
    direction: Direction


@dataclass(frozen=True)
class SettleNavigation:
    pass


@dataclass(frozen=True)
class RequestHint:
    pass


@dataclass(frozen=True)
class HintReady:
    text: str
    index: int


@dataclass(frozen=True)
class RequestMoreQuestions:
    pass


@dataclass(frozen=True)
class QuestionsGenerated:
    questions: Tuple[Question, ...]


@dataclass(frozen=True)
class GenerationFailed:
    title: str = GENERATION_FAILED_TITLE
    description: str = GENERATION_FAILED_TEXT


@dataclass(frozen=True)
class DismissNotice:
    pass


Command = Union[
    Loaded,
    SelectAnswer,
    Navigate,
    SettleNavigation,
    RequestHint,
    HintReady,
    RequestMoreQuestions,
    QuestionsGenerated,
    GenerationFailed,
    DismissNotice,
]


def current_question(state: SessionState) -> Question:
    """Return the question at ``current_index`` or raise DataIntegrityError."""

    if 0 <= state.current_index < state.total:
        return state.questions[state.current_index]
    raise DataIntegrityError(
        "No question at index {0} of {1}.".format(
            state.current_index, state.total
        )
    )


def transition(state: SessionState, command: Command) -> SessionState:
    """Apply ``command`` and return the resulting state.

    Commands that are not allowed in the current state return ``state``
    unchanged.
    """

    if isinstance(command, Loaded):
        return _on_loaded(state, command)
    if isinstance(command, SelectAnswer):
        return _on_select(state, command)
    if isinstance(command, Navigate):
        return _on_navigate(state, command)
    if isinstance(command, SettleNavigation):
        return _on_settle(state)
    if isinstance(command, RequestHint):
        if not state.can_request_hint:
            return state
        return replace(
            state, hint=None, hint_pending_for=state.current_index
        )
    if isinstance(command, HintReady):
        if not state.hint_pending:
            return state
        if command.index != state.current_index or state.phase != "active":
            return replace(state, hint_pending_for=None)
        return replace(state, hint=command.text, hint_pending_for=None)
    if isinstance(command, RequestMoreQuestions):
        if not state.can_generate:
            return state
        return replace(state, generating=True, notice=None)
    if isinstance(command, QuestionsGenerated):
        return _on_generated(state, command)
    if isinstance(command, GenerationFailed):
        if state.phase != "completed":
            return state
        return replace(
            state,
            generating=False,
            notice=Notice(command.title, command.description),
        )
    if isinstance(command, DismissNotice):
        return replace(state, notice=None)
    raise TypeError(f"Unsupported session command: {command!r}")


def _on_loaded(state: SessionState, command: Loaded) -> SessionState:
    if state.phase != "loading":
        return state
    questions = tuple(command.questions)
    if not questions:
        return replace(state, phase="empty", questions=())
    return replace(state, phase="active", questions=questions, current_index=0)


def _on_select(state: SessionState, command: SelectAnswer) -> SessionState:
    if state.phase != "active" or state.show_explanation:
        return state
    if state.animating is not None or state.current_index >= state.total:
        return state
    letter = option_label(command.option.strip()).upper()
    question = state.questions[state.current_index]
    if letter not in question.labels():
        return state
    score = state.score
    answers = state.answers
    if state.current_index not in answers:
        if question.is_correct(letter):
            score += 1
        answers = MappingProxyType(
            {**answers, state.current_index: letter}
        )
    return replace(
        state,
        selected_answer=letter,
        show_explanation=True,
        score=score,
        answers=answers,
    )


def _on_navigate(state: SessionState, command: Navigate) -> SessionState:
    if command.direction == "back":
        allowed = state.can_go_back
    else:
        allowed = state.can_go_forward and state.current_index < state.total
    if not allowed:
        return state
    return replace(state, animating=command.direction)


def _on_settle(state: SessionState) -> SessionState:
    if state.animating is None:
        return state
    index = state.current_index
    if state.animating == "next" and index + 1 <= state.total:
        index += 1
    elif state.animating == "back" and index > 0:
        index -= 1
    phase: Phase = "completed" if index >= state.total else "active"
    return replace(
        state,
        phase=phase,
        current_index=index,
        selected_answer=None,
        show_explanation=False,
        hint=None,
        animating=None,
    )


def _on_generated(
    state: SessionState, command: QuestionsGenerated
) -> SessionState:
    if state.phase != "completed":
        return state
    batch = tuple(command.questions)
    if not batch:
        return transition(state, GenerationFailed())
    return replace(
        state,
        phase="active",
        questions=state.questions + batch,
        current_index=state.total,
        selected_answer=None,
        show_explanation=False,
        hint=None,
        generating=False,
        notice=None,
    )


class HintProvider(Protocol):
    def get_hint(self, question: str) -> str:
        """Return display text for a hint; must not raise."""


class BatchProvider(Protocol):
    def get_more_questions(
        self, topic: str, existing: Sequence[Question]
    ) -> Sequence[Question]:
        """Return new questions or raise QuestionGenerationError."""


StateListener = Callable[[SessionState], None]


class QuizSession:
    """Owns a :class:`SessionState` and applies commands to it.

    Adapter calls are blocking, so they run in a worker thread while the
    state itself is only replaced on the caller's event loop.
    """

    def __init__(
        self,
        *,
        hint_service: Optional[HintProvider] = None,
        generator: Optional[BatchProvider] = None,
        rng: Optional[random.Random] = None,
        loading_delay: float = 0.0,
        on_change: Optional[StateListener] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._state = SessionState()
        self._hint_service = hint_service
        self._generator = generator
        self._rng = rng
        self._loading_delay = loading_delay
        self._listeners: list[StateListener] = []
        if on_change is not None:
            self._listeners.append(on_change)
        self._logger = logger or _LOGGER

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def dispatch(self, command: Command) -> SessionState:
        previous = self._state
        self._state = transition(previous, command)
        if self._state is not previous:
            self._logger.debug(
                "Session transition",
                extra={
                    "command": type(command).__name__,
                    "phase": self._state.phase,
                    "index": self._state.current_index,
                    "score": self._state.score,
                },
            )
            for listener in list(self._listeners):
                listener(self._state)
        return self._state

    async def start(
        self, load: Callable[[], Sequence[Question]]
    ) -> SessionState:
        """Load questions, shuffle a copy and leave the loading phase.

        The loading phase lasts at least ``loading_delay`` seconds even
        when ``load`` returns sooner.
        """

        questions, _ = await asyncio.gather(
            asyncio.to_thread(load),
            asyncio.sleep(self._loading_delay),
        )
        shuffled = shuffled_copy(questions, self._rng)
        return self.dispatch(Loaded(tuple(shuffled)))

    def select(self, option: str) -> SessionState:
        return self.dispatch(SelectAnswer(option))

    def navigate(self, direction: Direction) -> bool:
        """Begin moving in ``direction``; False when the move was ignored."""

        before = self._state
        return self.dispatch(Navigate(direction)) is not before

    def settle(self) -> SessionState:
        return self.dispatch(SettleNavigation())

    def dismiss_notice(self) -> SessionState:
        return self.dispatch(DismissNotice())

    async def request_hint(self) -> SessionState:
        state = self._state
        if not state.can_request_hint:
            return state
        index = state.current_index
        question = current_question(state)
        self.dispatch(RequestHint())
        if self._hint_service is None:
            text = HINT_ERROR_MESSAGE
        else:
            text = await asyncio.to_thread(
                self._hint_service.get_hint, question.question
            )
        return self.dispatch(HintReady(text, index))

    async def generate_more(self, topic: str) -> SessionState:
        state = self._state
        if not state.can_generate:
            return state
        self.dispatch(RequestMoreQuestions())
        if self._generator is None:
            return self.dispatch(GenerationFailed())
        try:
            batch = await asyncio.to_thread(
                self._generator.get_more_questions, topic, state.questions
            )
        except QuestionGenerationError as exc:
            self._logger.warning(
                "Question generation failed",
                extra={"topic": topic, "reason": str(exc)},
            )
            return self.dispatch(GenerationFailed())
        except Exception:
            self._logger.exception(
                "Unexpected error while generating questions",
                extra={"topic": topic},
            )
            return self.dispatch(
                GenerationFailed(GENERATION_ERROR_TITLE, GENERATION_ERROR_TEXT)
            )
        return self.dispatch(QuestionsGenerated(tuple(batch)))


@dataclass(frozen=True)
class QuizSummary:
    """Overall session summary shown after the quiz."""

    total_questions: int
    answered_questions: int
    correct_answers: int

    @property
    def accuracy(self) -> float:
        if self.answered_questions == 0:
            return 0.0
        return self.correct_answers / self.answered_questions


def summarize_session(state: SessionState) -> QuizSummary:
    return QuizSummary(
        total_questions=state.total,
        answered_questions=len(state.answers),
        correct_answers=state.score,
    )


def render_summary(console: Console, state: SessionState) -> None:
    """Print the final score and the first answer given to each question."""

    summary = summarize_session(state)
    console.print()
    console.rule(Text("Quiz Summary", style="bold magenta"))

    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Total questions", str(summary.total_questions))
    overview.add_row("Answered", str(summary.answered_questions))
    overview.add_row("Correct", str(summary.correct_answers))
    overview.add_row("Accuracy", f"{summary.accuracy * 100:.1f}%")
    console.print(overview)

    if not state.answers:
        return
    responses = Table(title="Responses", box=box.SIMPLE, expand=True)
    responses.add_column("#", justify="right")
    responses.add_column("Question", overflow="fold")
    responses.add_column("Your answer")
    responses.add_column("Correct answer")
    responses.add_column("Result", justify="center")
    for index, question in enumerate(state.questions):
        chosen = state.answers.get(index)
        if chosen is None:
            continue
        responses.add_row(
            str(index + 1),
            question.question,
            chosen,
            question.correct_answer or "—",
            "✅" if question.is_correct(chosen) else "❌",
        )
    console.print(responses)
