"""TOML configuration for quizdeck.

Defaults live in ``_DEFAULTS``; a user file is merged on top of them with
unknown keys rejected, then every value is validated into frozen
dataclasses so the rest of the package never touches raw mappings.
"""

from __future__ import annotations

import copy
import json
import os
import re
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

try:  # Python >= 3.11 ships ``tomllib`` in the stdlib.
    import tomllib
except ModuleNotFoundError as exc:  # pragma: no cover - should never happen
    raise RuntimeError("Python 3.11+ is required for tomllib support.") from exc

__all__ = [
    "CONFIG_FILENAME",
    "CONFIG_PATH_ENV",
    "ConfigError",
    "QuizSourceConfig",
    "SessionConfig",
    "AIConfig",
    "LoggingConfig",
    "QuizdeckConfig",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
    "template_text",
    "write_default_config",
    "resolve_config_path",
    "load_config",
    "default_config",
]


CONFIG_FILENAME = "quizdeck.toml"
CONFIG_PATH_ENV = "QUIZDECK_CONFIG"
DEFAULT_LOG_DIR = Path.home() / ".quizdeck" / "logs"


class ConfigError(RuntimeError):
    """Raised when configuration IO, parsing or validation fails."""


@dataclass(frozen=True)
class QuizSourceConfig:
    source: Path


@dataclass(frozen=True)
class SessionConfig:
    loading_delay_seconds: float
    transition_delay_seconds: float
    settle_delay_seconds: float


@dataclass(frozen=True)
class AIConfig:
    model: str
    temperature: float
    max_tokens: int
    request_timeout_seconds: int
    api_base: Optional[str]


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool
    directory: Path


@dataclass(frozen=True)
class QuizdeckConfig:
    quiz: QuizSourceConfig
    session: SessionConfig
    ai: AIConfig
    logging: LoggingConfig
    path: Optional[Path] = None


_DEFAULTS: Dict[str, Any] = {
    "quiz": {
        "source": "data/quizzes/blockchain.json",
    },
    "session": {
        "loading_delay_seconds": 1.2,
        "transition_delay_seconds": 0.3,
        "settle_delay_seconds": 0.05,
    },
    "ai": {
        "model": "gpt-4o-mini",
        "temperature": 0.2,
        "max_tokens": 1200,
        "request_timeout_seconds": 60,
        "api_base": None,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
        "dir": None,
    },
}

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
_SOURCE_LINE = re.compile(r"^source = .*$", re.MULTILINE)


def load_toml(path: Path) -> Mapping[str, Any]:
    """Load a TOML document from ``path``."""

    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse config TOML: {exc}") from exc


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    """Recursively merge ``override`` into ``base`` enforcing known keys."""

    for key, value in override.items():
        if key not in base:
            dotted = f"{path}{key}" if path else key
            raise ConfigError(f"Unknown configuration key '{dotted}'.")
        base_value = base[key]
        if isinstance(base_value, MutableMapping):
            if not isinstance(value, Mapping):
                dotted = f"{path}{key}" if path else key
                raise ConfigError(
                    "Expected table for '{0}', found {1}.".format(
                        dotted,
                        type(value).__name__,
                    )
                )
            merge_defaults(base_value, value, path=f"{path}{key}.")
            continue
        base[key] = value


def write_toml_template(
    path: Path,
    *,
    template: str,
    overwrite: bool = False,
    mode: int = 0o600,
) -> Path:
    """Write ``template`` to ``path`` honouring ``overwrite`` semantics."""

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists() and not overwrite:
        raise ConfigError(f"Config already exists: {path}")
    with path.open("w", encoding="utf-8") as handle:
        handle.write(template)
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path


def template_text(*, source: Optional[str] = None) -> str:
    """Return the packaged ``quizdeck.toml``.

    When ``source`` is given it replaces the sample quiz path in the
    ``[quiz]`` table.
    """

    resource = resources.files(__package__).joinpath(CONFIG_FILENAME)
    text = resource.read_text(encoding="utf-8")
    if source is None:
        return text
    line = f"source = {json.dumps(source)}"
    return _SOURCE_LINE.sub(lambda _match: line, text, count=1)


def write_default_config(
    path: Path, *, source: Optional[str] = None, overwrite: bool = False
) -> Path:
    """Write the commented default configuration to ``path``."""

    return write_toml_template(
        path, template=template_text(source=source), overwrite=overwrite
    )


def resolve_config_path(explicit: Optional[Path] = None) -> Optional[Path]:
    """Return the config file to load, or ``None`` to use defaults.

    An explicit path (argument or ``$QUIZDECK_CONFIG``) must exist; the
    working-directory ``quizdeck.toml`` is only used when present.
    """

    if explicit is not None:
        candidate = Path(explicit).expanduser()
        if not candidate.exists():
            raise ConfigError(f"Config file not found: {candidate}")
        return candidate.resolve()
    env_value = os.getenv(CONFIG_PATH_ENV)
    if env_value:
        candidate = Path(env_value).expanduser()
        if not candidate.exists():
            raise ConfigError(
                f"{CONFIG_PATH_ENV} points to a missing file: {candidate}"
            )
        return candidate.resolve()
    local = Path(CONFIG_FILENAME)
    if local.exists():
        return local.resolve()
    return None


def default_config() -> QuizdeckConfig:
    """Return the configuration used when no file is present."""

    return _build_config(copy.deepcopy(_DEFAULTS), path=None)


def load_config(path: Optional[Path] = None) -> QuizdeckConfig:
    """Resolve, load and validate the quizdeck configuration."""

    resolved = resolve_config_path(path)
    data = copy.deepcopy(_DEFAULTS)
    if resolved is not None:
        merge_defaults(data, load_toml(resolved))
    return _build_config(data, path=resolved)


def _build_config(
    data: Mapping[str, Any], *, path: Optional[Path]
) -> QuizdeckConfig:
    quiz = data["quiz"]
    session = data["session"]
    ai = data["ai"]
    log = data["logging"]

    base_dir = path.parent if path is not None else Path.cwd()
    source = Path(_require_string(quiz["source"], field="quiz.source"))
    source = source.expanduser()
    if not source.is_absolute():
        source = base_dir / source

    level = _require_string(log["level"], field="logging.level").upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(
            "'logging.level' must be one of: {0}.".format(
                ", ".join(sorted(_LOG_LEVELS))
            )
        )
    log_dir_raw = log["dir"]
    if log_dir_raw is None:
        log_dir = DEFAULT_LOG_DIR
    else:
        log_dir = Path(
            _require_string(log_dir_raw, field="logging.dir")
        ).expanduser()

    return QuizdeckConfig(
        quiz=QuizSourceConfig(source=source),
        session=SessionConfig(
            loading_delay_seconds=_require_non_negative_float(
                session["loading_delay_seconds"],
                field="session.loading_delay_seconds",
            ),
            transition_delay_seconds=_require_non_negative_float(
                session["transition_delay_seconds"],
                field="session.transition_delay_seconds",
            ),
            settle_delay_seconds=_require_non_negative_float(
                session["settle_delay_seconds"],
                field="session.settle_delay_seconds",
            ),
        ),
        ai=AIConfig(
            model=_require_string(ai["model"], field="ai.model"),
            temperature=_require_float_range(
                ai["temperature"],
                field="ai.temperature",
                min_value=0.0,
                max_value=2.0,
            ),
            max_tokens=_require_positive_int(
                ai["max_tokens"], field="ai.max_tokens"
            ),
            request_timeout_seconds=_require_positive_int(
                ai["request_timeout_seconds"],
                field="ai.request_timeout_seconds",
            ),
            api_base=_coerce_optional_string(
                ai["api_base"], field="ai.api_base"
            ),
        ),
        logging=LoggingConfig(
            level=level,
            verbose=_require_bool(log["verbose"], field="logging.verbose"),
            directory=log_dir,
        ),
        path=path,
    )


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{field}' must be a positive integer.")
    return value


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _require_non_negative_float(value: Any, *, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    if value < 0:
        raise ConfigError(f"'{field}' must be zero or greater.")
    return float(value)


def _require_float_range(
    value: Any, *, field: str, min_value: float, max_value: float
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    number = float(value)
    if not (min_value <= number <= max_value):
        raise ConfigError(
            f"'{field}' must be between {min_value} and {max_value}."
        )
    return number


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _coerce_optional_string(value: Any, *, field: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string when set.")
    return value.strip()
