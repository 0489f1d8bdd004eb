"""Core shared helpers for quizdeck commands."""

from __future__ import annotations

from .ai import AIResponseError, complete_json, load_client
from .bootstrap import init
from .config import (
    ConfigError,
    QuizdeckConfig,
    default_config,
    load_config,
    load_toml,
    merge_defaults,
    template_text,
    write_default_config,
    write_toml_template,
)
from .logging import JsonLogFormatter, configure_logger, get_logger

__all__ = [
    "AIResponseError",
    "complete_json",
    "load_client",
    "init",
    "ConfigError",
    "QuizdeckConfig",
    "default_config",
    "load_config",
    "load_toml",
    "merge_defaults",
    "template_text",
    "write_default_config",
    "write_toml_template",
    "configure_logger",
    "get_logger",
    "JsonLogFormatter",
]
