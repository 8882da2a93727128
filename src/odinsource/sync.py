"""Consistency synchronizer: keeps document tag strings in step with the tag catalog.

Documents store their tags as a denormalized comma-joined string rather
than through a join table. When a tag is renamed or deleted, every
document whose token list contains the old value is rewritten here.

The scan is a full pass over the documents table (no index is kept);
that is fine at personal-library scale. Both functions run on the
caller's connection, so the rewrites commit together with the tag
mutation that triggered them. Re-running either one is harmless: a
token that is already gone or already renamed is simply not found.
"""

from __future__ import annotations

import logging
import sqlite3

from odinsource.tags import join_tags, split_tags

logger = logging.getLogger(__name__)


def replace_token(tags: str | None, old: str, new: str) -> str:
    """Replace token *old* with *new*, collapsing any resulting repeat."""
    return join_tags(new if t == old else t for t in split_tags(tags))


def remove_token(tags: str | None, value: str) -> str:
    """Drop token *value*; neighbouring tokens stay comma-joined, no empty slots."""
    return join_tags(t for t in split_tags(tags) if t != value)


def _rewrite(conn: sqlite3.Connection, value: str, rewrite) -> int:
    """Apply *rewrite* to the tag string of every document carrying *value*."""
    rows = conn.execute("SELECT id, title, tags FROM documents ORDER BY id").fetchall()
    changed = 0
    for row in rows:
        if value not in split_tags(row["tags"]):
            continue
        new_tags = rewrite(row["tags"])
        conn.execute("UPDATE documents SET tags = ? WHERE id = ?", (new_tags, row["id"]))
        logger.debug("Document %d (%s): tags %r -> %r", row["id"], row["title"], row["tags"], new_tags)
        changed += 1
    return changed


def on_tag_renamed(conn: sqlite3.Connection, old_value: str, new_value: str) -> int:
    """Rename a tag everywhere: every document's tag string and the tag row itself.

    Returns:
        Number of documents rewritten.
    """
    changed = _rewrite(conn, old_value, lambda tags: replace_token(tags, old_value, new_value))
    conn.execute("UPDATE tags SET value = ? WHERE value = ?", (new_value, old_value))
    logger.info("Tag %r renamed to %r in %d document(s)", old_value, new_value, changed)
    return changed


def on_tag_deleted(conn: sqlite3.Connection, value: str) -> int:
    """Remove a tag value from every document's tag string.

    The tag row itself is deleted by the caller.

    Returns:
        Number of documents rewritten.
    """
    changed = _rewrite(conn, value, lambda tags: remove_token(tags, value))
    logger.debug("Tag %r scrubbed from %d document(s)", value, changed)
    return changed
