from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

APP_LOGGER = "growatt"
CONSOLE_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
CONSOLE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# DEBUG output of these loggers includes request URLs, bot token included.
URL_LOGGERS = ("urllib3",)


class ConsoleLog:
    """Console logging: a single stdout handler on the root logger."""

    def __init__(self, level: str = "INFO", quiet: bool = False, debug_modules: Iterable[str] | None = None):
        self.level = level.upper()
        self.quiet = quiet
        self.debug_modules = list(debug_modules or [])

    def _stdout_handler(self) -> logging.Handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(getattr(logging, self.level, logging.INFO))
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATEFMT))
        return handler

    def setup(self) -> logging.Logger:
        root = logging.getLogger()
        root.handlers.clear()
        # Visibility is decided per handler.
        root.setLevel(logging.DEBUG)
        if not self.quiet:
            root.addHandler(self._stdout_handler())

        for name in URL_LOGGERS:
            logging.getLogger(name).setLevel(logging.INFO)
        for name in self.debug_modules:
            logging.getLogger(name).setLevel(logging.DEBUG)

        return logging.getLogger(APP_LOGGER)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"{type(obj).__name__} is not JSON serializable")


@dataclass
class CycleLogEntry:
    """One line of the structured cycle log."""

    timestamp: str
    aborted: bool
    snapshot: dict[str, Any] | None
    notifications: list[str] | None
    sent_count: int
    failed_count: int
    saved: bool
    state: dict[str, Any] | None
    error: str | None = None

    def to_json(self) -> str:
        return json.dumps(asdict(self), default=_json_default, ensure_ascii=False)


class StructuredLog:
    """Appends one JSON object per cycle to a JSONL file."""

    def __init__(self, path: str | None, enabled: bool = False):
        self.path = Path(path).expanduser() if path else None
        self.enabled = bool(enabled and self.path)
        if self.enabled:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def write(self, entry: CycleLogEntry) -> None:
        if not self.enabled:
            return
        try:
            line = entry.to_json()
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        except (OSError, TypeError, ValueError) as exc:
            logging.getLogger(f"{APP_LOGGER}.structured").warning("Structured log write skipped: %s", exc)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
