"""JSON-lines logging for quizdeck.

Every module logs under the ``quizdeck`` namespace; ``configure_logger``
attaches the rotating file handler (and an optional stderr handler) to the
namespace root once per process.
"""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

__all__ = [
    "ROOT_LOGGER",
    "JsonLogFormatter",
    "configure_logger",
    "get_logger",
]

ROOT_LOGGER = "quizdeck"

_FILE_MARKER = "_quizdeck_file"
_CONSOLE_MARKER = "_quizdeck_console"


class JsonLogFormatter(logging.Formatter):
    """Emit log records as structured JSON lines."""

    _RESERVED = set(
        logging.LogRecord("", 0, "", 0, "", None, None).__dict__
    ) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: _coerce_value(value)
            for key, value in record.__dict__.items()
            if key not in self._RESERVED
        }
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the ``quizdeck`` namespace."""

    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def configure_logger(
    name: str = ROOT_LOGGER,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 3,
    filename: str | None = None,
    console: bool = True,
) -> tuple[logging.Logger, Path]:
    """Configure ``name`` with JSON file output and return it with the path.

    Calling this again reuses the managed handlers, so repeated CLI runs in
    one process (tests) do not duplicate output. With ``console`` off,
    ``verbose`` only lowers the file level and stderr stays untouched.
    """

    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    file_level = logging.DEBUG if verbose else _coerce_level(level)
    log_name = filename or f"{name.rsplit('.', 1)[-1]}.log"
    handler, path = _ensure_file_handler(
        logger,
        log_dir=log_dir,
        filename=log_name,
        max_bytes=max_bytes,
        backup_count=backup_count,
    )
    handler.setLevel(file_level)

    if verbose and console:
        _enable_console_handler(logger)
    else:
        _disable_console_handler(logger)
    return logger, path


def _coerce_level(level: str) -> int:
    numeric = logging.getLevelName(level.upper())
    if isinstance(numeric, int):
        return numeric
    return logging.INFO


def _ensure_file_handler(
    logger: logging.Logger,
    *,
    log_dir: Path,
    filename: str,
    max_bytes: int,
    backup_count: int,
) -> tuple[logging.Handler, Path]:
    for handler in logger.handlers:
        if getattr(handler, _FILE_MARKER, False):
            return handler, Path(getattr(handler, "baseFilename"))

    path = _writable_log_path(log_dir, filename)
    try:
        handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    except PermissionError:
        path = _writable_log_path(_fallback_log_dir(), filename)
        handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    handler.setFormatter(JsonLogFormatter())
    setattr(handler, _FILE_MARKER, True)
    logger.addHandler(handler)
    return handler, path


def _writable_log_path(log_dir: Path, filename: str) -> Path:
    for directory in (Path(log_dir).expanduser(), _fallback_log_dir()):
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path = directory / filename
            path.touch(exist_ok=True)
        except PermissionError:
            continue
        try:
            path.chmod(0o600)
        except PermissionError:  # pragma: no cover - depends on filesystem
            pass
        return path
    raise PermissionError(f"No writable log directory for {filename}")


def _enable_console_handler(logger: logging.Logger) -> None:
    for handler in logger.handlers:
        if getattr(handler, _CONSOLE_MARKER, False):
            handler.setLevel(logging.DEBUG)
            return
    console = logging.StreamHandler(stream=sys.stderr)
    console.setLevel(logging.DEBUG)
    console.setFormatter(logging.Formatter("%(levelname)s %(name)s %(message)s"))
    setattr(console, _CONSOLE_MARKER, True)
    logger.addHandler(console)


def _disable_console_handler(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if getattr(handler, _CONSOLE_MARKER, False):
            logger.removeHandler(handler)
            handler.close()


def _coerce_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(key): _coerce_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_coerce_value(item) for item in value]
    return repr(value)


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "quizdeck-logs"
