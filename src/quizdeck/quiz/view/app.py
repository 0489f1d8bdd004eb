"""Textual front end for a quiz session.

The app only renders :class:`SessionState` snapshots and turns key presses,
button clicks and timers into session commands. The helpers at the top of
the module are pure so they can be tested without running the app.
"""

from __future__ import annotations

from typing import Callable, Literal

from rich.style import Style
from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.css.query import NoMatches
from textual.widget import Widget
from textual.widgets import (
    Button,
    Footer,
    LoadingIndicator,
    ProgressBar,
    Static,
)

from ..errors import DataIntegrityError
from ..models import Question, QuizData, option_label, option_text
from ..session import QuizSession, SessionState, current_question

__all__ = [
    "ViewKind",
    "view_kind",
    "progress_text",
    "progress_value",
    "option_class",
    "forward_label",
    "feedback_text",
    "ErrorCard",
    "LoadingView",
    "QuestionView",
    "CompletedView",
    "build_view",
    "QuizApp",
    "run_app",
]

ViewKind = Literal["loading", "empty", "integrity", "completed", "question"]

LOAD_ERROR_TITLE = "Error Loading Quiz"
LOAD_ERROR_TEXT = (
    "Could not load the quiz data. Please ensure the quiz source file exists "
    "and is correctly formatted."
)
INTEGRITY_ERROR_TITLE = "Error Displaying Question"
INTEGRITY_ERROR_TEXT = (
    "Could not find the current question. This might indicate an issue with "
    "question indexing or data integrity."
)


def view_kind(state: SessionState) -> ViewKind:
    """Decide which screen represents ``state``."""

    if state.phase == "loading":
        return "loading"
    if state.phase == "empty" or not state.questions:
        return "empty"
    if state.phase == "completed":
        return "completed"
    try:
        current_question(state)
    except DataIntegrityError:
        return "integrity"
    return "question"


def progress_text(state: SessionState) -> str:
    return f"Question {state.current_index + 1} of {state.total}"


def progress_value(state: SessionState) -> float:
    """Percentage shown by the progress bar."""

    if not state.total:
        return 0.0
    return (state.current_index + 1) / state.total * 100


def option_class(state: SessionState, option: str) -> str:
    """CSS class for an option button.

    Before an answer is locked only the selection is highlighted; afterwards
    the correct option, a wrong pick and the remaining options differ.
    """

    letter = option_label(option)
    if not state.show_explanation:
        return "selected" if state.selected_answer == letter else ""
    question = current_question(state)
    if letter == question.correct_answer:
        return "correct"
    if letter == state.selected_answer and not state.is_correct:
        return "incorrect"
    return "muted"


def forward_label(state: SessionState) -> str:
    return "Finish" if state.is_last else "Next"


def feedback_text(question: Question) -> Text:
    """Explanation body, with the documentation link when there is one."""

    text = Text(question.explanation)
    if question.documentation_url:
        text.append(" ")
        text.append(
            "Documentation Link",
            style=Style(link=question.documentation_url, underline=True),
        )
    return text


class ErrorCard(Widget):
    """Full-width card describing a problem that stops the quiz."""

    DEFAULT_CSS = """
    ErrorCard { height: auto; border: round $error; padding: 1 2; }
    ErrorCard .card-title { text-style: bold; color: $error; }
    """

    def __init__(self, title: str, message: str) -> None:
        super().__init__()
        self.card_title = title
        self.message = message

    def compose(self) -> ComposeResult:
        yield Static(self.card_title, classes="card-title")
        yield Static(self.message)


class LoadingView(Widget):
    DEFAULT_CSS = """
    LoadingView { height: auto; border: round $primary; padding: 1 2; }
    LoadingView LoadingIndicator { height: 3; }
    """

    def compose(self) -> ComposeResult:
        yield Static("Loading Quiz...", classes="card-title")
        yield LoadingIndicator()


class QuestionView(Widget):
    """Renders the current question, its options, hint and navigation."""

    DEFAULT_CSS = """
    QuestionView { height: auto; border: round $primary; padding: 1 2; }
    QuestionView #title { text-style: bold; color: $primary; content-align: center middle; width: 100%; }
    QuestionView #progress-text { color: $text-muted; content-align: center middle; width: 100%; }
    QuestionView #stem { text-style: bold; padding: 1 0; }
    QuestionView #choices Button { width: 100%; margin: 0 0 1 0; }
    QuestionView #choices Button.selected { background: $secondary; }
    QuestionView #choices Button.correct { background: $success; text-style: bold; }
    QuestionView #choices Button.incorrect { background: $error; text-style: bold; }
    QuestionView #choices Button.muted { opacity: 60%; }
    QuestionView #feedback { border: round $success; padding: 0 1; height: auto; }
    QuestionView #feedback.wrong { border: round $error; }
    QuestionView #hint-text { border: round $warning; padding: 0 1; height: auto; }
    QuestionView #nav { height: auto; align: center middle; }
    """

    def __init__(self, state: SessionState, title: str) -> None:
        super().__init__()
        self.state = state
        self.title_text = title
        self.question = current_question(state)

    def compose(self) -> ComposeResult:
        state = self.state
        yield Static(Text(self.title_text), id="title")
        yield Static(progress_text(state), id="progress-text")
        yield ProgressBar(total=100, show_eta=False, id="progress")
        yield Static(Text(self.question.question), id="stem")
        with Vertical(id="choices"):
            for index, option in enumerate(self.question.options):
                letter = option_label(option)
                button = Button(
                    Text(f"{letter}. {option_text(option)}"),
                    id=f"choice-{index}",
                    disabled=state.show_explanation,
                )
                css_class = option_class(state, option)
                if css_class:
                    button.add_class(css_class)
                yield button
        if state.show_explanation:
            verdict = "Correct!" if state.is_correct else "Incorrect."
            feedback = Static(
                feedback_text(self.question),
                id="feedback",
            )
            feedback.border_title = verdict
            if not state.is_correct:
                feedback.add_class("wrong")
            yield feedback
        yield Button(
            "Thinking…" if state.hint_pending else "Get a Hint",
            id="hint",
            variant="default",
            disabled=not state.can_request_hint,
        )
        if state.hint:
            hint = Static(Text(state.hint), id="hint-text")
            hint.border_title = "Hint"
            yield hint
        with Horizontal(id="nav"):
            yield Button("Back", id="back", disabled=not state.can_go_back)
            yield Button(
                forward_label(state),
                id="next",
                variant="primary",
                disabled=not state.can_go_forward,
            )

    def on_mount(self) -> None:
        self.query_one(ProgressBar).update(progress=progress_value(self.state))


class CompletedView(Widget):
    DEFAULT_CSS = """
    CompletedView { height: auto; border: round $primary; padding: 1 2; }
    CompletedView #done { text-style: bold; color: $primary; }
    """

    def __init__(self, state: SessionState) -> None:
        super().__init__()
        self.state = state

    def compose(self) -> ComposeResult:
        state = self.state
        yield Static("Quiz Completed!", id="done")
        yield Static(
            f"You scored {state.score} out of {state.total} questions."
        )
        yield Static("Great Job!")
        yield Button(
            "Generating…" if state.generating else "Generate More Questions",
            id="generate",
            variant="primary",
            disabled=not state.can_generate,
        )


def build_view(state: SessionState, title: str) -> Widget:
    """Return the widget tree for ``state``."""

    kind = view_kind(state)
    if kind == "loading":
        return LoadingView()
    if kind == "empty":
        return ErrorCard(LOAD_ERROR_TITLE, LOAD_ERROR_TEXT)
    if kind == "integrity":
        return ErrorCard(INTEGRITY_ERROR_TITLE, INTEGRITY_ERROR_TEXT)
    if kind == "completed":
        return CompletedView(state)
    return QuestionView(state, title)


class QuizApp(App):
    CSS = """
    Screen { align: center middle; }
    #stage { width: 90; max-width: 100%; height: auto; }
    """
    BINDINGS = [
        ("a", "select('A')", "A"),
        ("b", "select('B')", "B"),
        ("c", "select('C')", "C"),
        ("d", "select('D')", "D"),
        ("n", "next", "Next"),
        ("p", "back", "Back"),
        ("h", "hint", "Hint"),
        ("g", "generate", "More"),
        ("t", "toggle_theme", "Theme"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        session: QuizSession,
        loader: Callable[[], QuizData],
        *,
        transition_delay: float = 0.3,
        settle_delay: float = 0.05,
    ) -> None:
        super().__init__()
        self.session = session
        self._loader = loader
        self._quiz_title = ""
        self._transition_delay = transition_delay
        self._settle_delay = settle_delay
        session.subscribe(self._on_state_change)

    @property
    def quiz_title(self) -> str:
        return self._quiz_title

    def compose(self) -> ComposeResult:
        with Container(id="stage"):
            yield build_view(self.session.state, self._quiz_title)
        yield Footer()

    def on_mount(self) -> None:
        self.run_worker(self._load(), group="load", exclusive=True)

    async def _load(self) -> None:
        def load() -> tuple[Question, ...]:
            quiz = self._loader()
            self._quiz_title = quiz.title
            return quiz.questions

        await self.session.start(load)

    def _on_state_change(self, state: SessionState) -> None:
        if state.notice is not None:
            self.notify(
                state.notice.description,
                title=state.notice.title,
                severity="error",
            )
            self.session.dismiss_notice()
            return
        self._update_stage()

    def _update_stage(self) -> None:
        try:
            stage = self.query_one("#stage", Container)
        except NoMatches:
            return
        stage.remove_children()
        stage.mount(build_view(self.session.state, self._quiz_title))

    def action_select(self, letter: str) -> None:
        self.session.select(letter)

    def _select_position(self, index: int) -> None:
        try:
            question = current_question(self.session.state)
        except DataIntegrityError:
            return
        if 0 <= index < len(question.options):
            self.action_select(option_label(question.options[index]))

    def action_next(self) -> None:
        self._navigate("next")

    def action_back(self) -> None:
        self._navigate("back")

    def _navigate(self, direction: Literal["next", "back"]) -> None:
        if not self.session.navigate(direction):
            return
        stage = self.query_one("#stage", Container)
        stage.styles.animate(
            "opacity", value=0.0, duration=self._transition_delay
        )
        self.set_timer(self._transition_delay, self._settle)

    def _settle(self) -> None:
        self.session.settle()
        stage = self.query_one("#stage", Container)
        stage.styles.animate("opacity", value=1.0, duration=self._settle_delay)

    def action_hint(self) -> None:
        if self.session.state.can_request_hint:
            self.run_worker(self.session.request_hint(), group="hint")

    def action_generate(self) -> None:
        if self.session.state.can_generate:
            self.run_worker(
                self.session.generate_more(self._quiz_title),
                group="generate",
            )

    def action_toggle_theme(self) -> None:
        self.theme = (
            "textual-light" if self.theme == "textual-dark" else "textual-dark"
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid.startswith("choice-"):
            self._select_position(int(bid.split("-", 1)[1]))
        elif bid == "next":
            self.action_next()
        elif bid == "back":
            self.action_back()
        elif bid == "hint":
            self.action_hint()
        elif bid == "generate":
            self.action_generate()


def run_app(
    session: QuizSession,
    loader: Callable[[], QuizData],
    *,
    transition_delay: float,
    settle_delay: float,
) -> SessionState:
    """Run the full-screen quiz and return the final session state."""

    app = QuizApp(
        session,
        loader,
        transition_delay=transition_delay,
        settle_delay=settle_delay,
    )
    app.run()
    return session.state
