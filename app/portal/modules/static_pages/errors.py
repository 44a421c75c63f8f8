from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    block_id: str | None = None
    language: str | None = None

    def to_dict(self) -> dict:
        out = {"field": self.field, "message": self.message}
        if self.block_id is not None:
            out["block_id"] = self.block_id
        if self.language is not None:
            out["language"] = self.language
        return out


class StaticPageError(Exception):
    code = "static_page_error"


# Validation family: reported synchronously, nothing is committed.


class PageValidationError(StaticPageError):
    code = "validation"


class InvalidSlug(PageValidationError):
    code = "invalid_slug"


class InvalidBlockType(PageValidationError):
    code = "invalid_block_type"


class SystemManagedType(PageValidationError):
    code = "system_managed_type"


class MapLimitExceeded(PageValidationError):
    code = "map_limit_exceeded"


class StructureLocked(PageValidationError):
    code = "structure_locked"

    def __init__(self, block_id: str, message: str | None = None) -> None:
        self.block_id = block_id
        super().__init__(message or f"Block {block_id} structure is locked")


class ContentLocked(PageValidationError):
    code = "content_locked"

    def __init__(self, block_id: str, message: str | None = None) -> None:
        self.block_id = block_id
        super().__init__(message or f"Block {block_id} content is locked")


class NoPublishedSnapshot(PageValidationError):
    code = "no_published_snapshot"


class RevisionRequired(PageValidationError):
    code = "revision_required"


class ValidationFailed(PageValidationError):
    code = "validation_failed"

    def __init__(self, errors: list[FieldError], message: str = "Validation failed") -> None:
        self.errors = list(errors)
        super().__init__(f"{message}: " + "; ".join(f"{e.field}: {e.message}" for e in self.errors))


# Conflict family: caller must refetch and retry.


class PageConflictError(StaticPageError):
    code = "conflict"


class DuplicateSlug(PageConflictError):
    code = "duplicate_slug"


class RevisionConflict(PageConflictError):
    code = "revision_conflict"

    def __init__(self, page_id: int | None, expected: int | None = None, actual: int | None = None) -> None:
        self.page_id = page_id
        self.expected = expected
        self.actual = actual
        if expected is not None:
            msg = f"Page {page_id} is at revision {actual}, not {expected}; refetch and retry"
        else:
            msg = f"Page {page_id} was modified concurrently; refetch and retry"
        super().__init__(msg)


# Not-found family.


class PageNotFoundError(StaticPageError):
    code = "not_found"


class PageNotFound(PageNotFoundError):
    code = "page_not_found"


class BlockNotFound(PageNotFoundError):
    code = "block_not_found"
