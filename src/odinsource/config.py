"""OdinSource configuration: loads and validates config.yaml.

The config file lives in the OdinSource home directory (~/.odinsource/ or
$ODINSOURCE_HOME). It names the content store directory, the catalog
database and the command used to open stored documents.

If no config exists, create_default() writes a commented starter file.
Environment variables override file values:
  ODINSOURCE_STORE  content store directory
  ODINSOURCE_DB     catalog database path
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from odinsource import paths
from odinsource.errors import ConfigError

DEFAULT_EXTENSION = "pdf"

CONFIG_NAME = "config.yaml"

_KNOWN_KEYS = frozenset({"store_dir", "catalog_db", "extension", "opener"})


@dataclass
class OdinConfig:
    """Parsed config.yaml with environment overrides applied."""

    home: Path = field(default_factory=paths.home_dir)
    store_dir: Path | None = None
    catalog_db: Path | None = None
    extension: str = DEFAULT_EXTENSION
    opener: list[str] = field(default_factory=list)  # empty = platform default

    def __post_init__(self) -> None:
        if self.store_dir is None:
            self.store_dir = self.home / paths.STORE_DIR_NAME
        if self.catalog_db is None:
            self.catalog_db = self.home / paths.CATALOG_DB_NAME

    @property
    def log_path(self) -> Path:
        return self.home / paths.LOG_NAME


_DEFAULT_CONFIG = """\
# OdinSource configuration
# Paths may use ~ and may be relative to this directory.

# Directory holding one renamed copy of every catalogued document.
# Can also be set via the ODINSOURCE_STORE environment variable.
store_dir: documents

# SQLite database with the documents and tags tables.
# Can also be set via the ODINSOURCE_DB environment variable.
catalog_db: catalog.db

# Extension of accepted source files (and of stored copies).
extension: pdf

# Command used by 'odinsource doc open'. The document path is appended.
# Leave empty to use the platform default (xdg-open, open, or startfile).
# opener: [evince]
opener: []
"""


def config_path(home: Path) -> Path:
    """Path to config.yaml inside the home directory."""
    return home / CONFIG_NAME


def create_default(home: Path) -> Path:
    """Write a starter config.yaml if it doesn't exist. Returns the path."""
    p = config_path(home)
    if not p.exists():
        home.mkdir(parents=True, exist_ok=True)
        p.write_text(_DEFAULT_CONFIG, encoding="utf-8")
    return p


def load_config(home: Path | None = None) -> OdinConfig:
    """Load and validate config.yaml. Returns defaults if the file is missing."""
    home = paths.expand(home) if home is not None else paths.home_dir()
    data: dict = {}

    p = config_path(home)
    if p.exists():
        raw = p.read_text(encoding="utf-8")
        try:
            data = yaml.safe_load(raw) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {p}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a YAML mapping in {p}, got {type(data).__name__}")

    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ConfigError(
            f"Unknown keys in {p}: {', '.join(unknown)}",
            hint=f"Valid keys: {', '.join(sorted(_KNOWN_KEYS))}.",
        )

    for key in ("store_dir", "catalog_db"):
        if key in data and data[key] is not None and not isinstance(data[key], str):
            raise ConfigError(f"'{key}' must be a path string in {p}")

    store_raw = os.environ.get(paths.STORE_ENV) or data.get("store_dir")
    db_raw = os.environ.get(paths.DB_ENV) or data.get("catalog_db")

    extension = str(data.get("extension") or DEFAULT_EXTENSION).lstrip(".").lower()
    if not extension.isalnum():
        raise ConfigError(f"Invalid extension {extension!r} in {p}")

    opener = data.get("opener") or []
    if isinstance(opener, str):
        opener = opener.split()
    if not isinstance(opener, list) or not all(isinstance(a, str) for a in opener):
        raise ConfigError(f"'opener' must be a list of strings in {p}")

    return OdinConfig(
        home=home,
        store_dir=paths.expand(store_raw, home) if store_raw else None,
        catalog_db=paths.expand(db_raw, home) if db_raw else None,
        extension=extension,
        opener=list(opener),
    )
