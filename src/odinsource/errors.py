"""Exception hierarchy for OdinSource.

Every error message includes what happened and what to do next, so the
CLI and the MCP server can surface it to the user verbatim.
"""

from __future__ import annotations


class OdinError(Exception):
    """Base class for all OdinSource errors."""


# ---------------------------------------------------------------------------
# Lookup misses
# ---------------------------------------------------------------------------


class NotFound(OdinError):
    """A tag, document or stored file could not be found."""


class TagNotFound(NotFound):
    """No tag with this id or value in the tag catalog."""

    def __init__(self, ident: int | str):
        field = "id" if isinstance(ident, int) else "value"
        super().__init__(
            f"No tag with {field} {ident!r} in the catalog. "
            f"Use 'odinsource tag list' to see the known tags."
        )
        self.ident = ident


class DocumentNotFound(NotFound):
    """No document with this id or title in the document catalog."""

    def __init__(self, ident: int | str):
        field = "id" if isinstance(ident, int) else "title"
        super().__init__(
            f"No document with {field} {ident!r} in the catalog. "
            f"Use 'odinsource doc list' to see the stored documents."
        )
        self.ident = ident


class ContentMissing(NotFound):
    """The document row exists but its stored file does not."""

    def __init__(self, title: str, path: str):
        super().__init__(
            f"Document '{title}' is catalogued but its file is missing from the "
            f"content store ({path}). Run 'odinsource check' to list store drift, "
            f"then delete and re-add the document."
        )
        self.title = title
        self.path = path


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class DuplicateTitle(OdinError):
    """Another document already uses this (normalized) title."""

    def __init__(self, title: str, existing_id: int | None = None):
        msg = f"A document titled '{title}' already exists"
        if existing_id is not None:
            msg += f" (id {existing_id})"
        msg += ". Titles are unique; choose a different title or modify the existing document."
        super().__init__(msg)
        self.title = title
        self.existing_id = existing_id


class TagExists(OdinError):
    """Rename target already belongs to a different tag."""

    def __init__(self, value: str, existing_id: int):
        super().__init__(
            f"Tag '{value}' already exists with id {existing_id}. "
            f"Delete one of the two tags first, or rename to a different value."
        )
        self.value = value
        self.existing_id = existing_id


class InvalidTag(OdinError):
    """Tag value is empty or contains a comma."""

    def __init__(self, value: str, reason: str):
        super().__init__(
            f"Invalid tag {value!r}: {reason}. "
            f"Tags are single words or phrases; separate several tags with commas."
        )
        self.value = value
        self.reason = reason


class InvalidRecord(OdinError):
    """A document field has an unusable value."""

    def __init__(self, field: str, value: object, reason: str):
        super().__init__(f"Invalid {field}={value!r}: {reason}.")
        self.field = field
        self.value = value
        self.reason = reason


class InvalidSource(OdinError):
    """Source path is not an existing file of the expected format."""

    def __init__(self, path: str, expected: str = "pdf", reason: str = ""):
        detail = reason or f"not an existing .{expected} file"
        super().__init__(
            f"Cannot use '{path}' as a source: {detail}. "
            f"Check the path and that the file has a .{expected} extension."
        )
        self.path = path
        self.expected = expected
        self.reason = detail


class BulkImportError(OdinError):
    """The bulk import file could not be parsed or validated."""

    def __init__(self, path: str, detail: str):
        super().__init__(
            f"Failed to import '{path}': {detail}. "
            f"No documents from this file were added. Fix the file and retry."
        )
        self.path = path
        self.detail = detail


# ---------------------------------------------------------------------------
# Content store I/O
# ---------------------------------------------------------------------------


class ContentStoreError(OdinError):
    """Copying a file into the content store failed."""

    def __init__(self, content_id: str, detail: str):
        super().__init__(
            f"Could not store content {content_id}: {detail}. "
            f"The document was not added. Check free space and permissions "
            f"on the content store directory."
        )
        self.content_id = content_id
        self.detail = detail


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigError(OdinError):
    """Configuration is missing or invalid."""

    def __init__(self, detail: str, hint: str = ""):
        msg = f"Configuration error: {detail}."
        if hint:
            msg += f" {hint}"
        super().__init__(msg)
        self.detail = detail
        self.hint = hint


class StoreUnavailable(ConfigError):
    """The content store directory does not exist and cannot be created."""

    def __init__(self, store_dir: str, reason: str):
        super().__init__(
            f"Content store directory {store_dir} cannot be created ({reason})",
            hint=(
                "Set 'store_dir' in config.yaml or the ODINSOURCE_STORE "
                "environment variable to a writable directory."
            ),
        )
        self.store_dir = store_dir
        self.reason = reason
