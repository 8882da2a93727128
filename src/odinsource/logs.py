"""Logging setup shared by the CLI and the MCP server.

All module loggers live under the ``odinsource`` namespace. Front-ends
call :func:`configure_logging` once at startup.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

LOGGER_NAME = "odinsource"
_FORMAT = "%(asctime)s [%(process)d] %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(LOGGER_NAME)

_stderr_handler: logging.Handler | None = None
_file_handler: logging.Handler | None = None


def configure_logging(level: int = logging.WARNING, log_path: Path | None = None) -> logging.Logger:
    """Attach a stderr handler at *level* and, if given, a rotating file log.

    Safe to call more than once: the stderr level is updated and the file
    handler is only attached the first time.
    """
    global _stderr_handler, _file_handler
    logger.setLevel(logging.DEBUG)

    if _stderr_handler is None:
        _stderr_handler = logging.StreamHandler(sys.stderr)
        _stderr_handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(_stderr_handler)
    _stderr_handler.setLevel(level)

    if log_path is not None and _file_handler is None:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=2_000_000,
                backupCount=3,
                encoding="utf-8",
            )
        except OSError as exc:
            logger.warning("Cannot write log file %s: %s", log_path, exc)
        else:
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(logging.Formatter(_FORMAT))
            logger.addHandler(fh)
            _file_handler = fh
            logger.debug("Log attached to %s", log_path)
    return logger


def reset_logging() -> None:
    """Detach and close handlers added by :func:`configure_logging`."""
    global _stderr_handler, _file_handler
    for h in (_stderr_handler, _file_handler):
        if h is not None:
            logger.removeHandler(h)
            h.close()
    _stderr_handler = None
    _file_handler = None
