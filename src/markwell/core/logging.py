"""Run logs for markwell commands.

Every command logs JSON lines to ``<workspace>/logs/<command>.log``
(rotated at 5 MB). ``--verbose`` additionally renders records on stderr
through Rich.
"""

from __future__ import annotations

import json
import logging
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

__all__ = [
    "JsonLogFormatter",
    "configure_logger",
]

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_FIELDS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

_OWNED = "_markwell_handler"


class JsonLogFormatter(logging.Formatter):
    """One JSON object per record; ``extra`` fields go under ``"extra"``."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": stamp.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_FIELDS
        }
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, ensure_ascii=True, default=_json_default)


def _json_default(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return repr(value)


def configure_logger(
    name: str,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    filename: str | None = None,
) -> tuple[logging.Logger, Path]:
    """Return the logger ``name`` wired to a fresh run log, plus its path.

    Handlers from an earlier call for the same logger are replaced, so a
    process that runs several commands never writes a record twice.
    """

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for handler in [h for h in logger.handlers if getattr(h, _OWNED, False)]:
        logger.removeHandler(handler)
        handler.close()

    path = _open_log_file(log_dir, filename or f"{name.split('.')[-1]}.log")
    file_handler = RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    file_handler.setFormatter(JsonLogFormatter())
    file_handler.setLevel(logging.DEBUG if verbose else _coerce_level(level))
    _install(logger, file_handler)

    if verbose:
        _install(
            logger,
            RichHandler(
                console=Console(stderr=True),
                show_path=False,
                rich_tracebacks=True,
            ),
        )
    return logger, path


def _install(logger: logging.Logger, handler: logging.Handler) -> None:
    setattr(handler, _OWNED, True)
    logger.addHandler(handler)


def _coerce_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "markwell-logs"


def _open_log_file(log_dir: Path, filename: str) -> Path:
    try:
        return _touch(log_dir, filename)
    except PermissionError:
        return _touch(_fallback_log_dir(), filename)


def _touch(directory: Path, filename: str) -> Path:
    directory.mkdir(mode=0o700, parents=True, exist_ok=True)
    path = directory / filename
    path.touch(mode=0o600, exist_ok=True)
    return path
