"""Catalog handle: the SQLite database plus the content store.

A :class:`Catalog` is created once by a front-end and passed explicitly to
every tag and document operation. It holds no cached rows: every operation
opens its own connection through :meth:`Catalog.connect`, so the handle can
be used from a worker thread and always sees fresh data.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from odinsource.config import OdinConfig
from odinsource.content import ContentStore
from odinsource.errors import ConfigError

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    id          INTEGER PRIMARY KEY,
    title       TEXT NOT NULL UNIQUE,
    author      TEXT DEFAULT '',
    publication TEXT DEFAULT '',
    volume      INTEGER DEFAULT 0,
    year        INTEGER DEFAULT 0,
    content_id  TEXT NOT NULL UNIQUE,
    tags        TEXT DEFAULT '',
    doi         TEXT DEFAULT ''
);

CREATE TABLE IF NOT EXISTS tags (
    id    INTEGER PRIMARY KEY,
    value TEXT NOT NULL UNIQUE
);
"""


@dataclass
class Catalog:
    """Database path and content store for one OdinSource library."""

    db_path: Path
    store: ContentStore

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Connection that commits on success and rolls back on any exception."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init(self) -> None:
        """Create the tables if they don't exist."""
        with self.connect() as conn:
            conn.executescript(_SCHEMA)


def open_catalog(config: OdinConfig) -> Catalog:
    """Build a ready-to-use catalog from configuration.

    Creates the content store directory and the database tables.

    Raises:
        StoreUnavailable: If the content store directory cannot be created.
        ConfigError: If the database cannot be opened.
    """
    store = ContentStore(config.store_dir, config.extension)
    store.ensure()
    catalog = Catalog(db_path=config.catalog_db, store=store)
    try:
        catalog.init()
    except (sqlite3.Error, OSError) as exc:
        raise ConfigError(f"Cannot open catalog database {config.catalog_db}: {exc}") from exc
    logger.debug("Catalog ready: db=%s store=%s", catalog.db_path, store.root)
    return catalog
