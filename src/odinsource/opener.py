"""Open a stored document with an external viewer."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def default_command() -> list[str]:
    """Platform default opener. Empty on Windows, where os.startfile is used."""
    if sys.platform == "darwin":
        return ["open"]
    if sys.platform.startswith("win"):
        return []
    return ["xdg-open"]


def open_path(path: Path, command: list[str] | None = None) -> None:
    """Launch *command* (or the platform default) on *path* without waiting.

    Raises:
        OSError: If the viewer cannot be started.
    """
    cmd = list(command or default_command())
    if not cmd:
        logger.info("Opening %s with os.startfile", path)
        os.startfile(str(path))  # type: ignore[attr-defined]
        return
    logger.info("Opening %s with %s", path, cmd[0])
    subprocess.Popen(
        [*cmd, str(path)],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )
