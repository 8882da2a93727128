"""Content store: one renamed copy of each catalogued document.

Files live flat in the store directory as ``<content_id>.<extension>``.
The content id is an opaque UUID4 string assigned when the document is
catalogued; it never changes afterwards.
"""

from __future__ import annotations

import logging
import shutil
import uuid
from collections.abc import Iterator
from pathlib import Path

from odinsource.config import DEFAULT_EXTENSION
from odinsource.errors import ContentStoreError, StoreUnavailable

logger = logging.getLogger(__name__)


def new_content_id() -> str:
    """Return a fresh opaque content identifier."""
    return str(uuid.uuid4())


class ContentStore:
    """Flat directory of stored document files keyed by content id."""

    def __init__(self, root: Path, extension: str = DEFAULT_EXTENSION):
        self.root = Path(root)
        self.extension = extension.lstrip(".").lower()

    def __repr__(self) -> str:
        return f"ContentStore({str(self.root)!r}, extension={self.extension!r})"

    def ensure(self) -> Path:
        """Create the store directory if needed.

        Raises:
            StoreUnavailable: If the directory cannot be created.
        """
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreUnavailable(str(self.root), exc.strerror or str(exc)) from exc
        if not self.root.is_dir():
            raise StoreUnavailable(str(self.root), "path exists and is not a directory")
        return self.root

    def resolve(self, content_id: str) -> Path:
        """Map a content id to its file location. Does not check existence."""
        return self.root / f"{content_id}.{self.extension}"

    def exists(self, content_id: str) -> bool:
        return self.resolve(content_id).is_file()

    def put(self, content_id: str, source: Path) -> Path:
        """Copy *source* into the store under *content_id*.

        Raises:
            ContentStoreError: If the copy fails for any reason.
        """
        dest = self.resolve(content_id)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            shutil.copy2(str(source), str(dest))
        except OSError as exc:
            try:
                dest.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove partial copy %s", dest)
            raise ContentStoreError(content_id, exc.strerror or str(exc)) from exc
        logger.info("Document %s stored as %s", source, dest)
        return dest

    def remove(self, content_id: str) -> bool:
        """Delete the stored file. Returns False (and logs) if it could not be removed."""
        path = self.resolve(content_id)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Could not delete %s: file not in content store", path)
            return False
        except OSError as exc:
            logger.warning("Could not delete %s: %s", path, exc)
            return False
        logger.info("Document %s deleted", path)
        return True

    def iter_content_ids(self) -> Iterator[str]:
        """Yield the content id of every stored file (sorted)."""
        if not self.root.is_dir():
            return
        for p in sorted(self.root.glob(f"*.{self.extension}")):
            if p.is_file():
                yield p.stem
