"""Tag catalog: the canonical set of known tag values.

Each tag has a stable integer id and a unique lowercase value. Documents
do not reference tags by id: they carry a comma-joined copy of the values
(see :mod:`odinsource.sync`), so renaming or deleting a tag rewrites the
documents that mention it in the same operation.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass

from odinsource.catalog import Catalog
from odinsource.errors import InvalidTag, TagExists, TagNotFound

logger = logging.getLogger(__name__)

SEPARATOR = ","


@dataclass(frozen=True)
class Tag:
    id: int
    value: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> Tag:
        return cls(id=row["id"], value=row["value"])

    def __str__(self) -> str:
        return f"{self.id:>4}  {self.value}"


# ---------------------------------------------------------------------------
# Tag strings
# ---------------------------------------------------------------------------


def normalize_value(value: str) -> str:
    """Lowercase and trim a single tag value.

    Raises:
        InvalidTag: If the value is empty or contains a comma.
    """
    v = value.strip().lower()
    if not v:
        raise InvalidTag(value, "tag is empty")
    if SEPARATOR in v:
        raise InvalidTag(value, "a single tag cannot contain a comma")
    return v


def _unique(tokens: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for t in tokens:
        if t and t not in seen:
            seen.append(t)
    return seen


def join_tags(tokens: Iterable[str]) -> str:
    """Join tokens with commas, dropping empties and repeats (first wins)."""
    return SEPARATOR.join(_unique(tokens))


def split_tags(tags: str | None) -> list[str]:
    """Split a comma-joined tag string into trimmed lowercase tokens."""
    if not tags:
        return []
    return _unique(t.strip().lower() for t in tags.split(SEPARATOR))


def normalize_tags(tags: str | None) -> str:
    """Canonical form of a tag string: ``" ML, systems,,ml"`` -> ``"ml,systems"``."""
    return join_tags(split_tags(tags))


# ---------------------------------------------------------------------------
# Connection-level helpers (shared with documents and sync)
# ---------------------------------------------------------------------------


def _get(conn: sqlite3.Connection, tag_id: int) -> Tag | None:
    row = conn.execute("SELECT id, value FROM tags WHERE id = ?", (tag_id,)).fetchone()
    return Tag.from_row(row) if row else None


def _get_by_value(conn: sqlite3.Connection, value: str) -> Tag | None:
    row = conn.execute("SELECT id, value FROM tags WHERE value = ?", (value,)).fetchone()
    return Tag.from_row(row) if row else None


def _insert(conn: sqlite3.Connection, value: str) -> Tag:
    """Insert-if-absent on an open connection. *value* must be normalized."""
    existing = _get_by_value(conn, value)
    if existing is not None:
        return existing
    cur = conn.execute("INSERT INTO tags (value) VALUES (?)", (value,))
    logger.info("Tag %r added with id %d", value, cur.lastrowid)
    return Tag(id=cur.lastrowid, value=value)


def ensure_tags(conn: sqlite3.Connection, tags: str | None) -> list[Tag]:
    """Make sure every token of a tag string exists in the tag catalog."""
    return [_insert(conn, token) for token in split_tags(tags)]


def _lookup(conn: sqlite3.Connection, tag_id: int | None, value: str | None) -> Tag:
    if (tag_id is None) == (value is None):
        raise ValueError("Identify the tag by exactly one of tag_id or value")
    if tag_id is not None:
        tag = _get(conn, tag_id)
        if tag is None:
            raise TagNotFound(tag_id)
        return tag
    v = normalize_value(value)
    tag = _get_by_value(conn, v)
    if tag is None:
        raise TagNotFound(v)
    return tag


# ---------------------------------------------------------------------------
# Public operations
# ---------------------------------------------------------------------------


def insert_tag(catalog: Catalog, value: str) -> Tag:
    """Add a tag, or return the existing one with the same value."""
    v = normalize_value(value)
    with catalog.connect() as conn:
        return _insert(conn, v)


def insert_tags(catalog: Catalog, values: str) -> list[Tag]:
    """Add every tag of a comma-separated list (``"ml, nlp"``)."""
    tokens = split_tags(values)
    if not tokens:
        raise InvalidTag(values, "no tags given")
    with catalog.connect() as conn:
        return [_insert(conn, t) for t in tokens]


def get_tag(catalog: Catalog, tag_id: int) -> Tag:
    with catalog.connect() as conn:
        return _lookup(conn, tag_id, None)


def get_tag_by_value(catalog: Catalog, value: str) -> Tag:
    with catalog.connect() as conn:
        return _lookup(conn, None, value)


def list_tags(catalog: Catalog) -> list[Tag]:
    """All tags in storage order."""
    with catalog.connect() as conn:
        rows = conn.execute("SELECT id, value FROM tags ORDER BY id").fetchall()
        return [Tag.from_row(r) for r in rows]


def delete_tag(
    catalog: Catalog,
    *,
    tag_id: int | None = None,
    value: str | None = None,
) -> Tag | None:
    """Delete a tag and scrub it from every document.

    Deleting a value that is not in the catalog is a logged no-op (the
    document scrub still runs, finishing any interrupted earlier delete).

    Returns:
        The deleted tag, or None if no tag had this value.

    Raises:
        TagNotFound: If *tag_id* is given and unknown.
    """
    from odinsource import sync

    if (tag_id is None) == (value is None):
        raise ValueError("Identify the tag by exactly one of tag_id or value")

    with catalog.connect() as conn:
        if tag_id is not None:
            tag: Tag | None = _lookup(conn, tag_id, None)
            v = tag.value
        else:
            v = normalize_value(value)
            tag = _get_by_value(conn, v)

        scrubbed = sync.on_tag_deleted(conn, v)
        if tag is None:
            logger.warning("Tag %r not in catalog; nothing to delete", v)
        else:
            conn.execute("DELETE FROM tags WHERE id = ?", (tag.id,))
            logger.info("Tag %r (id %d) deleted, removed from %d document(s)", v, tag.id, scrubbed)
    return tag


def rename_tag(
    catalog: Catalog,
    new_value: str,
    *,
    tag_id: int | None = None,
    value: str | None = None,
) -> Tag:
    """Change a tag's value in place, keeping its id, and rewrite documents.

    Raises:
        TagNotFound: If the tag to rename does not exist.
        TagExists: If *new_value* already belongs to another tag.
    """
    from odinsource import sync

    new = normalize_value(new_value)
    with catalog.connect() as conn:
        tag = _lookup(conn, tag_id, value)
        if tag.value == new:
            return tag
        clash = _get_by_value(conn, new)
        if clash is not None:
            raise TagExists(new, clash.id)
        sync.on_tag_renamed(conn, tag.value, new)
    return Tag(id=tag.id, value=new)
