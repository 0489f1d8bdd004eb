"""Command-line entry point for quizdeck."""

from __future__ import annotations

import argparse
import asyncio
import json
import random
import sys
from importlib import metadata
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .core import bootstrap
from .core.config import (
    CONFIG_FILENAME,
    ConfigError,
    QuizdeckConfig,
    load_config,
    write_default_config,
)
from .quiz.console import run_console_session
from .quiz.errors import QuestionGenerationError
from .quiz.generation import QuestionGenerator
from .quiz.hints import HintService
from .quiz.models import QuizData, option_label, option_text
from .quiz.session import QuizSession, render_summary
from .quiz.store import get_quiz_data


def _console() -> Console:
    return Console()


def _load_settings(
    args: argparse.Namespace, *, console: bool = True
) -> QuizdeckConfig:
    config = load_config(getattr(args, "config", None))
    bootstrap.init(
        config,
        verbose=getattr(args, "verbose", False) or None,
        console=console,
    )
    return config


def _source_for(args: argparse.Namespace, config: QuizdeckConfig) -> Path:
    explicit = getattr(args, "source", None)
    if explicit:
        return Path(explicit).expanduser().resolve()
    return config.quiz.source


def _cmd_init(args: argparse.Namespace) -> int:
    path = Path(args.path or CONFIG_FILENAME).expanduser().resolve()
    try:
        write_default_config(
            path, source=args.source, overwrite=bool(args.force)
        )
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Created template {path}")
    return 0


def _cmd_show(args: argparse.Namespace) -> int:
    config = _load_settings(args)
    quiz = get_quiz_data(_source_for(args, config))
    console = _console()
    if quiz.is_empty:
        console.print(
            Panel(
                "Could not load the quiz data from "
                f"{_source_for(args, config)}.",
                title="Error Loading Quiz",
                border_style="red",
            )
        )
        return 1
    console.rule(Text(quiz.title, style="bold cyan"))
    for number, question in enumerate(quiz.questions, start=1):
        table = Table(
            title=f"{number}. {question.question}",
            title_justify="left",
            show_header=False,
            expand=True,
        )
        table.add_column("Key", justify="center", style="cyan")
        table.add_column("Choice")
        for option in question.options:
            row = Text(option_text(option))
            if option_label(option) == question.correct_answer:
                row.stylize("bold green")
            table.add_row(option_label(option), row)
        console.print(table)
    summary = f"{len(quiz.questions)} question(s) in '{quiz.topic_key}'."
    console.print(Text(summary, style="dim"))
    return 0


def _cmd_hint(args: argparse.Namespace) -> int:
    config = _load_settings(args)
    service = HintService.from_config(config.ai)
    hint = service.get_hint(args.question)
    _console().print(Panel(Text(hint), title="Hint"))
    return 0


def _cmd_generate(args: argparse.Namespace) -> int:
    config = _load_settings(args)
    existing: QuizData = get_quiz_data(_source_for(args, config))
    generator = QuestionGenerator.from_config(config.ai)
    try:
        batch = generator.get_more_questions(args.topic, existing.questions)
    except QuestionGenerationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    key = args.key or (existing.topic_key or "generated")
    payload = json.dumps(
        {key: [question.to_dict() for question in batch]},
        indent=2,
        ensure_ascii=False,
    )
    if args.out:
        out = Path(args.out).expanduser()
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(payload + "\n", encoding="utf-8")
        print(f"Wrote {len(batch)} question(s) -> {out}")
    else:
        print(payload)
    return 0


def _cmd_start(args: argparse.Namespace) -> int:
    # The Textual app owns the terminal; log to file only.
    config = _load_settings(args, console=bool(args.plain))
    source = _source_for(args, config)
    rng = random.Random(args.seed) if args.seed is not None else None
    hint_service = None
    generator = None
    if not args.no_ai:
        hint_service = HintService.from_config(config.ai)
        generator = QuestionGenerator.from_config(config.ai)
    session = QuizSession(
        hint_service=hint_service,
        generator=generator,
        rng=rng,
        loading_delay=config.session.loading_delay_seconds,
    )
    console = _console()

    if args.plain:
        quiz = get_quiz_data(source)
        asyncio.run(session.start(lambda: quiz.questions))
        action = run_console_session(
            session,
            console,
            lambda: console.input("> "),
            title=quiz.title,
        )
        return 1 if action == "empty" else 0

    from .quiz.view.app import run_app

    state = run_app(
        session,
        lambda: get_quiz_data(source),
        transition_delay=config.session.transition_delay_seconds,
        settle_delay=config.session.settle_delay_seconds,
    )
    if state.phase == "empty":
        return 1
    if state.answers:
        render_summary(console, state)
    return 0


def _version() -> str:
    try:
        return metadata.version("quizdeck")
    except metadata.PackageNotFoundError:
        return "unknown"


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="quizdeck",
        description="Multiple-choice quiz runner with AI hints and questions",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("-V", "--version", action="version", version=_version())
    sub = p.add_subparsers(dest="command", required=True)

    sp_init = sub.add_parser("init", help="Create a quizdeck.toml template")
    sp_init.add_argument("--path", help="Where to write the template")
    sp_init.add_argument("--source", help="Quiz JSON file to reference")
    sp_init.add_argument(
        "--force", action="store_true", help="Overwrite an existing file"
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=Path, help="Path to quizdeck.toml")
    common.add_argument(
        "--verbose", action="store_true", help="Log to stderr as well"
    )

    sourced = argparse.ArgumentParser(add_help=False)
    sourced.add_argument("--source", help="Quiz JSON file to load")

    sp_start = sub.add_parser(
        "start", parents=[common, sourced], help="Start a quiz session"
    )
    sp_start.add_argument("--seed", type=int, help="Seed the question shuffle")
    sp_start.add_argument(
        "--plain",
        action="store_true",
        help="Use a line-oriented prompt instead of the full-screen UI",
    )
    sp_start.add_argument(
        "--no-ai",
        action="store_true",
        help="Disable hints and question generation",
    )

    sub.add_parser(
        "show", parents=[common, sourced], help="Print the loaded questions"
    )

    sp_hint = sub.add_parser(
        "hint", parents=[common], help="Ask the AI for a hint"
    )
    sp_hint.add_argument("question", help="Question text")

    sp_gen = sub.add_parser(
        "generate",
        parents=[common, sourced],
        help="Generate a batch of new questions as JSON",
    )
    sp_gen.add_argument("topic", help="Topic for the new questions")
    sp_gen.add_argument("--key", help="Topic key for the output document")
    sp_gen.add_argument("--out", help="Write JSON here instead of stdout")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    handlers = {
        "init": _cmd_init,
        "start": _cmd_start,
        "show": _cmd_show,
        "hint": _cmd_hint,
        "generate": _cmd_generate,
    }
    try:
        return handlers[args.command](args)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
