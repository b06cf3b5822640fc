"""Logger helpers for the ``lazysync`` namespace."""

from __future__ import annotations

import logging
from pathlib import Path

from platformdirs import user_log_dir

APP_NAME = "lazysync"
DEBUG_LOG_PATH = Path(user_log_dir(APP_NAME, appauthor=False)) / "debug.log"


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger; handlers live on the root ``lazysync`` logger."""
    if name != APP_NAME and not name.startswith(APP_NAME + "."):
        name = f"{APP_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(debug: bool = False, log_path: Path | None = None) -> logging.Logger:
    """Install the stream handler once and, in debug mode, a debug log file."""
    logger = logging.getLogger(APP_NAME)
    if not any(getattr(handler, "_lazysync_stream", False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        handler._lazysync_stream = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False

    if debug:
        target = log_path or DEBUG_LOG_PATH
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(target, encoding="utf-8")
        except OSError as exc:
            logger.warning("Cannot open debug log %s: %s", target, exc)
        else:
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
            )
            logger.addHandler(file_handler)
    return logger


__all__ = ["APP_NAME", "DEBUG_LOG_PATH", "get_logger", "configure_logging"]
