# src/cfo_workspace/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the interactive console usable:
    - allow cfo_workspace logs
    - but keep the background poll and notifiers quiet unless WARNING+
    - suppress transport libraries (httpx, nio) unless WARNING+
    - suppress any other third-party noise unless ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("cfo_workspace."):
            if name.startswith(("cfo_workspace.notify.", "cfo_workspace.storage.")):
                return record.levelno >= logging.WARNING
            return True

        if name.startswith(("httpx", "httpcore", "nio")):
            return record.levelno >= logging.WARNING

        if name == "py.warnings":
            return record.levelno >= logging.ERROR

        return record.levelno >= logging.ERROR


def parse_level(level: str | int, default: int = logging.INFO) -> int:
    """Map "debug" / "WARNING" / 30 to a logging level; unknown names fall back to `default`."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else default


def setup_logging(
    *,
    log_dir: str | Path = ".local/cfo",
    level: str | int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Console handler at `level` (a name from CFO_LOG_LEVEL or a number), filtered for the REPL.
    File handler at `file_level` in `log_dir`/workspace.log. Returns the log file path.

    Replaces any handlers already on the root logger.
    """
    console_level = parse_level(level)
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "workspace.log"

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))

    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    logging.captureWarnings(True)
    return log_file
