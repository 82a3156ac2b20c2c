"""
Logging setup shared by the CLI and the worker process.

Component loggers are named voicecode.<component>; configure_logging() installs
the root handlers once per process (console, plus an optional file).
"""

from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def get_logger(component: str) -> logging.Logger:
    """Logger for a pipeline component ("coordinator", "worker"); blank names map to "pipeline"."""
    name = (component or "").strip() or "pipeline"
    return logging.getLogger(f"voicecode.{name}")


def parse_level(level: str | int | None, default: int = logging.INFO) -> int:
    """Accept "debug"/"INFO"/20 style values; unknown names fall back to default."""
    if isinstance(level, int) and not isinstance(level, bool):
        return level
    value = getattr(logging, str(level or "").strip().upper(), None)
    return value if isinstance(value, int) else default


def configure_logging(
    level: str | int | None = logging.INFO,
    log_file: str | Path | None = None,
    base_dir: Path | None = None,
) -> int:
    """
    Configure the root logger if nothing else has.

    The worker process calls this on start-up with the parent's level; the CLI
    also passes logging.file (relative paths resolve against base_dir).
    Returns the numeric level applied.
    """
    numeric = parse_level(level)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=numeric, format=LOG_FORMAT)
    if log_file:
        path = Path(log_file)
        if not path.is_absolute() and base_dir is not None:
            path = base_dir / path
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setLevel(numeric)
        fh.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(fh)
    return numeric


__all__ = ["LOG_FORMAT", "configure_logging", "get_logger", "parse_level"]
