from __future__ import annotations

import asyncio
from dataclasses import replace

from textual.widgets import Button

from quizdeck.quiz.models import Question, QuizData
from quizdeck.quiz.session import (
    Loaded,
    Navigate,
    QuizSession,
    SelectAnswer,
    SessionState,
    SettleNavigation,
    transition,
)
from quizdeck.quiz.view.app import (
    INTEGRITY_ERROR_TITLE,
    LOAD_ERROR_TITLE,
    CompletedView,
    ErrorCard,
    LoadingView,
    QuestionView,
    QuizApp,
    build_view,
    feedback_text,
    forward_label,
    option_class,
    progress_text,
    progress_value,
    view_kind,
)


def _active(make_questions, count=2):
    return transition(SessionState(), Loaded(make_questions(count)))


def test_view_kind_follows_phase(make_questions):
    assert view_kind(SessionState()) == "loading"
    assert view_kind(transition(SessionState(), Loaded(()))) == "empty"
    active = _active(make_questions)
    assert view_kind(active) == "question"
    assert view_kind(replace(active, current_index=9)) == "integrity"
    done = replace(active, phase="completed", current_index=2)
    assert view_kind(done) == "completed"


def test_progress_helpers(make_questions):
    state = _active(make_questions, count=4)
    assert progress_text(state) == "Question 1 of 4"
    assert progress_value(state) == 25.0
    assert progress_value(SessionState()) == 0.0


def test_forward_label_switches_to_finish(make_questions):
    state = _active(make_questions)
    assert forward_label(state) == "Next"
    state = transition(transition(state, Navigate("next")), SettleNavigation())
    assert forward_label(state) == "Finish"


def test_option_class_before_and_after_answer(make_questions):
    state = _active(make_questions)
    question = state.questions[0]
    assert [option_class(state, o) for o in question.options] == [""] * 4

    picked = replace(state, selected_answer="C")
    assert option_class(picked, question.options[2]) == "selected"

    wrong = transition(state, SelectAnswer("A"))
    assert [option_class(wrong, o) for o in question.options] == [
        "incorrect",
        "correct",
        "muted",
        "muted",
    ]

    right = transition(state, SelectAnswer("B"))
    assert [option_class(right, o) for o in question.options] == [
        "muted",
        "correct",
        "muted",
        "muted",
    ]


def test_feedback_text_links_documentation():
    question = Question(
        question="Q?",
        options=("A) a", "B) b", "C) c", "D) d"),
        correct_answer="A",
        explanation="Because.",
        documentation_url="https://example.com/docs",
    )
    text = feedback_text(question)
    assert text.plain == "Because. Documentation Link"
    links = [span.style.link for span in text.spans if span.style]
    assert "https://example.com/docs" in links

    plain = feedback_text(replace(question, documentation_url=None))
    assert plain.plain == "Because."


def test_build_view_picks_widget(make_questions):
    assert isinstance(build_view(SessionState(), "T"), LoadingView)

    empty = build_view(transition(SessionState(), Loaded(())), "T")
    assert isinstance(empty, ErrorCard)
    assert empty.card_title == LOAD_ERROR_TITLE

    active = _active(make_questions)
    view = build_view(active, "Demo")
    assert isinstance(view, QuestionView)
    assert view.question is active.questions[0]
    assert view.title_text == "Demo"

    broken = build_view(replace(active, current_index=5), "T")
    assert isinstance(broken, ErrorCard)
    assert broken.card_title == INTEGRITY_ERROR_TITLE

    done = build_view(replace(active, phase="completed", current_index=2), "T")
    assert isinstance(done, CompletedView)


def test_quiz_app_binds_keys():
    keys = {binding[0] for binding in QuizApp.BINDINGS}
    assert {"a", "b", "c", "d", "n", "p", "h", "g", "t", "q"} <= keys


def test_quiz_app_answers_and_advances(make_questions):
    session = QuizSession()
    quiz = QuizData(title="Demo", questions=make_questions(2))
    app = QuizApp(
        session,
        lambda: quiz,
        transition_delay=0.01,
        settle_delay=0.01,
    )

    async def scenario() -> None:
        async with app.run_test() as pilot:
            await app.workers.wait_for_complete()
            await pilot.pause()
            assert session.state.phase == "active"
            assert app.quiz_title == "Demo"
            assert app.query_one(QuestionView)

            await pilot.press("b")
            await pilot.pause()
            assert session.state.score == 1

            await pilot.press("n")
            await pilot.pause(0.2)
            assert session.state.current_index == 1

            theme = app.theme
            await pilot.press("t")
            assert app.theme != theme

    asyncio.run(scenario())


def test_quiz_app_shows_load_error():
    session = QuizSession()
    app = QuizApp(session, lambda: QuizData(title="Quiz Not Found"))

    async def scenario() -> None:
        async with app.run_test() as pilot:
            await app.workers.wait_for_complete()
            await pilot.pause()
            assert session.state.phase == "empty"
            card = app.query_one(ErrorCard)
            assert card.card_title == LOAD_ERROR_TITLE

    asyncio.run(scenario())


def test_choice_buttons_are_keyed_by_position(make_questions):
    session = QuizSession()
    quiz = QuizData(title="Demo", questions=make_questions(1))
    app = QuizApp(session, lambda: quiz)

    async def scenario() -> None:
        async with app.run_test() as pilot:
            await app.workers.wait_for_complete()
            await pilot.pause()
            ids = [button.id for button in app.query("#choices Button")]
            assert ids == ["choice-0", "choice-1", "choice-2", "choice-3"]

            app.query_one("#choice-1", Button).press()
            await pilot.pause()
            assert session.state.selected_answer == "B"
            assert session.state.score == 1

    asyncio.run(scenario())
