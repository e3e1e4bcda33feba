"""Error types raised at the history-store boundary."""

from __future__ import annotations


class ClipTrailError(Exception):
    """Base class for cliptrail errors."""


class FetchError(ClipTrailError):
    """A history page could not be loaded from the store."""

    def __init__(self, page: int, category: str, cause: BaseException | None = None) -> None:
        self.page = page
        self.category = category
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"failed to load page {page} ({category}){detail}")


class PersistError(ClipTrailError):
    """A save, delete or clear operation was rejected by the store."""

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} failed{detail}")
