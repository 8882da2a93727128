"""Consistency check between the documents table, the tags table and the content store.

Finds:
  - tag tokens used by documents but missing from the tag catalog
  - documents whose stored file is gone
  - stored files no document references (orphans)

``repair_catalog`` fixes the first and last kind. Missing content cannot
be recreated; those documents are only reported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from odinsource.catalog import Catalog
from odinsource.documents import Document, list_documents
from odinsource.tags import ensure_tags, join_tags, list_tags

logger = logging.getLogger(__name__)


@dataclass
class CheckReport:
    missing_tags: list[str] = field(default_factory=list)
    missing_content: list[Document] = field(default_factory=list)
    orphan_content: list[str] = field(default_factory=list)
    repaired: bool = False

    @property
    def ok(self) -> bool:
        return not (self.missing_tags or self.missing_content or self.orphan_content)

    def summary(self) -> str:
        if self.ok:
            return "Catalog is consistent."
        lines = []
        if self.missing_tags:
            verb = "created" if self.repaired else "missing from tag catalog"
            lines.append(f"Tags {verb}: {', '.join(self.missing_tags)}")
        for doc in self.missing_content:
            lines.append(f"Stored file missing for document {doc.id} ({doc.title})")
        if self.orphan_content:
            verb = "removed" if self.repaired else "not referenced by any document"
            lines.append(f"Stored files {verb}: {', '.join(self.orphan_content)}")
        return "\n".join(lines)


def check_catalog(catalog: Catalog) -> CheckReport:
    """Report inconsistencies without changing anything."""
    docs = list_documents(catalog)
    known = {t.value for t in list_tags(catalog)}

    used: list[str] = []
    for doc in docs:
        used.extend(doc.tag_list)
    missing_tags = [t for t in join_tags(used).split(",") if t and t not in known]

    missing_content = [d for d in docs if not catalog.store.exists(d.content_id)]
    referenced = {d.content_id for d in docs}
    orphans = [cid for cid in catalog.store.iter_content_ids() if cid not in referenced]

    return CheckReport(
        missing_tags=missing_tags,
        missing_content=missing_content,
        orphan_content=orphans,
    )


def repair_catalog(catalog: Catalog) -> CheckReport:
    """Create missing tags and delete orphan files. Returns what was found."""
    report = check_catalog(catalog)
    if report.missing_tags:
        with catalog.connect() as conn:
            ensure_tags(conn, ",".join(report.missing_tags))
    for cid in report.orphan_content:
        catalog.store.remove(cid)
    if report.missing_content:
        logger.warning(
            "%d document(s) have no stored file; delete and re-add them",
            len(report.missing_content),
        )
    report.repaired = True
    return report
