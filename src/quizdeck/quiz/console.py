"""Line-oriented Rich front end for a quiz session.

Used by ``quizdeck start --plain`` where a full-screen terminal is not
available. Navigation settles immediately; there is no animation.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, Literal, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .errors import DataIntegrityError
from .models import option_label, option_text
from .session import (
    QuizSession,
    SessionState,
    current_question,
    render_summary,
)

__all__ = [
    "ConsoleCommand",
    "parse_console_command",
    "run_console_session",
]

InputProvider = Callable[[], str]
ExitAction = Literal["quit", "empty", "eof"]


@dataclass(frozen=True)
class ConsoleCommand:
    """Normalized user command parsed from console input."""

    type: Literal["next", "back", "hint", "generate", "quit", "select"]
    choice: Optional[str] = None


def parse_console_command(raw: Optional[str]) -> Optional[ConsoleCommand]:
    """Parse raw user input into a structured command."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"n", "next", "finish"}:
        return ConsoleCommand("next")
    if lowered in {"p", "prev", "back"}:
        return ConsoleCommand("back")
    if lowered in {"h", "hint"}:
        return ConsoleCommand("hint")
    if lowered in {"g", "more", "generate"}:
        return ConsoleCommand("generate")
    if lowered in {"q", "quit", "exit"}:
        return ConsoleCommand("quit")
    key = text[0].upper()
    if key.isalpha() and len(text) == 1:
        return ConsoleCommand("select", key)
    return None


def run_console_session(
    session: QuizSession,
    console: Console,
    input_provider: InputProvider,
    *,
    title: str,
) -> ExitAction:
    """Drive ``session`` from typed commands until the user quits.

    The session must already be started.
    """

    state = session.state
    if state.phase in {"empty", "loading"}:
        console.print(
            Panel(
                "Could not load the quiz data. Please check the quiz source "
                "file exists and is correctly formatted.",
                title="Error Loading Quiz",
                border_style="red",
            )
        )
        return "empty"

    exit_action: ExitAction = "quit"
    while True:
        _render(console, session.state, title)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            exit_action = "eof"
            break
        command = parse_console_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            break
        _apply(command, session, console, title)

    render_summary(console, session.state)
    return exit_action


def _apply(
    command: ConsoleCommand,
    session: QuizSession,
    console: Console,
    title: str,
) -> None:
    state = session.state
    if command.type == "select" and command.choice:
        if state.phase != "active":
            return
        if state.show_explanation:
            console.print("[dim]Answer already locked in.[/dim]")
            return
        after = session.select(command.choice)
        if after is state:
            console.print(
                "[red]'%s' is not a valid choice for this question.[/red]"
                % command.choice
            )
        return
    if command.type in {"next", "back"}:
        if session.navigate(command.type):  # type: ignore[arg-type]
            session.settle()
        return
    if command.type == "hint":
        if not state.can_request_hint:
            console.print("[dim]A hint is not available right now.[/dim]")
            return
        asyncio.run(session.request_hint())
        return
    if command.type == "generate":
        if not state.can_generate:
            console.print("[dim]Finish the quiz to generate more.[/dim]")
            return
        console.print("Generating more questions…")
        after = asyncio.run(session.generate_more(title))
        if after.notice is not None:
            console.print(
                Panel(
                    after.notice.description,
                    title=after.notice.title,
                    border_style="red",
                )
            )
            session.dismiss_notice()


def _render(console: Console, state: SessionState, title: str) -> None:
    console.print()
    if state.phase == "completed":
        console.rule(Text("Quiz Completed!", style="bold cyan"))
        console.print(
            f"You scored {state.score} out of {state.total} questions."
        )
        console.print(
            Text("Commands: g (generate more), q (quit)", style="dim")
        )
        return
    try:
        question = current_question(state)
    except DataIntegrityError:
        console.print(
            Panel(
                "Could not find the current question. This might indicate an "
                "issue with question indexing or data integrity.",
                title="Error Displaying Question",
                border_style="red",
            )
        )
        return

    header = Text.assemble(
        (title, "bold cyan"),
        (f"  Question {state.current_index + 1} of {state.total}", "dim"),
    )
    console.rule(header)
    console.print(Text(question.question, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Choice")
    for option in question.options:
        letter = option_label(option)
        row = Text(option_text(option))
        if state.show_explanation and letter == question.correct_answer:
            row.stylize("bold green")
        elif state.show_explanation and letter == state.selected_answer:
            row.stylize("bold red")
        table.add_row(letter, row)
    console.print(table)

    if state.show_explanation:
        verdict = "Correct!" if state.is_correct else "Incorrect."
        body = question.explanation
        if question.documentation_url:
            body += f"\n\nDocumentation: {question.documentation_url}"
        console.print(
            Panel(
                Text(body),
                title=verdict,
                border_style="green" if state.is_correct else "red",
            )
        )
    if state.hint:
        console.print(
            Panel(Text(state.hint), title="Hint", border_style="yellow")
        )

    forward = "finish" if state.is_last else "next"
    console.print(
        Text(
            f"Score {state.score} | Commands: choices "
            f"[{', '.join(question.labels())}], h (hint), n ({forward}), "
            "p (back), q (quit)",
            style="dim",
        )
    )
