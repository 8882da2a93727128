"""Canonical directory names for OdinSource.

Single source of truth for the dot-directory used for configuration,
the catalog database, the content store and the log file.

Layout (defaults, all overridable through config.yaml or the environment):
  ~/.odinsource/              home_dir()   config.yaml, odinsource.log
  ~/.odinsource/catalog.db   catalog database
  ~/.odinsource/documents/   content store
"""

from __future__ import annotations

import os
from pathlib import Path

DOT_DIR = ".odinsource"

HOME_ENV = "ODINSOURCE_HOME"
STORE_ENV = "ODINSOURCE_STORE"
DB_ENV = "ODINSOURCE_DB"

CATALOG_DB_NAME = "catalog.db"
STORE_DIR_NAME = "documents"
LOG_NAME = "odinsource.log"


def home_dir() -> Path:
    """Return the config directory: $ODINSOURCE_HOME or ~/.odinsource/."""
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / DOT_DIR


def expand(path: str | Path, base: Path | None = None) -> Path:
    """Expand ``~`` and anchor relative paths at *base* (if given)."""
    p = Path(path).expanduser()
    if base is not None and not p.is_absolute():
        p = base / p
    return p
