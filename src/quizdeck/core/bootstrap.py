"""One-time process initialisation shared by every quizdeck command."""

from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv

from .config import QuizdeckConfig
from .logging import ROOT_LOGGER, configure_logger

__all__ = ["init"]


def init(
    config: QuizdeckConfig,
    *,
    verbose: bool | None = None,
    console: bool = True,
) -> tuple[logging.Logger, Path]:
    """Load ``.env`` credentials and configure the ``quizdeck`` logger.

    Call once at process start, before any quiz state exists.
    """

    load_dotenv()
    logger, log_path = configure_logger(
        ROOT_LOGGER,
        log_dir=config.logging.directory,
        level=config.logging.level,
        verbose=config.logging.verbose if verbose is None else verbose,
        console=console,
    )
    logger.debug(
        "quizdeck initialised",
        extra={
            "config_path": config.path,
            "source": config.quiz.source,
            "model": config.ai.model,
        },
    )
    return logger, log_path
