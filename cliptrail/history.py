"""Paginated clipboard history controller.

:class:`HistoryController` owns the in-memory list of loaded entries, the
store's total count and the load state.  It talks to an asynchronous
:class:`HistoryStore` and never lets a store failure escape: failures are
logged, reported through the injected ``notify`` callback and returned to
the caller as :class:`~cliptrail.errors.FetchError` /
:class:`~cliptrail.errors.PersistError` values.

Deletes are optimistic: the entry disappears locally first and a failed
store delete is reconciled by reloading page 1.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Callable, Protocol, runtime_checkable

from ._utils import format_size
from .classifier import classify
from .errors import FetchError, PersistError
from .log import logger
from .models import FILTER_ALL, ClipboardEntry, HistoryPage, LoadState

DEFAULT_PAGE_SIZE = 10


@runtime_checkable
class HistoryStore(Protocol):
    """Asynchronous backing store for clipboard history.

    Every method may raise; the controller treats any exception as a
    rejected operation.
    """

    async def get_history(self, page: int, page_size: int, category: str) -> HistoryPage: ...

    async def save_item(self, entry: ClipboardEntry) -> int | None: ...

    async def delete_item(self, entry_id: int) -> bool: ...

    async def clear_all(self) -> bool: ...


class HistoryController:
    """Fetch history page by page and mirror local edits optimistically.

    Parameters
    ----------
    store:
        The :class:`HistoryStore` collaborator.
    page_size:
        Number of entries requested per page.
    active_filter:
        ``"all"`` or a :class:`~cliptrail.models.Category` value.
    notify:
        Callback for user-visible notices (e.g. ``app.notify``).
    """

    def __init__(
        self,
        store: HistoryStore,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        active_filter: str = FILTER_ALL,
        notify: Callable[[str], object] | None = None,
    ) -> None:
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self._store = store
        self.page_size = page_size
        self.active_filter = str(active_filter)
        self._notify = notify
        self.entries: list[ClipboardEntry] = []
        self.total_count: int = 0
        self.current_page: int = 1
        self.state: LoadState = LoadState.IDLE
        # Bumped on every load; completions from older loads are discarded.
        self._generation: int = 0

    @property
    def is_loading(self) -> bool:
        return self.state is LoadState.LOADING

    @property
    def has_more(self) -> bool:
        return len(self.entries) < self.total_count

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(
        self, page: int = 1, append: bool = False, category: str | None = None
    ) -> FetchError | None:
        """Fetch *page* and append it or replace the list with it.

        Returns ``None`` on success (including a discarded stale result) or
        the :class:`FetchError` on failure, in which case the list, the total
        and the current page are left untouched.
        """
        category = self.active_filter if category is None else str(category)
        self._generation += 1
        generation = self._generation
        self.state = LoadState.LOADING
        try:
            result = await self._store.get_history(page, self.page_size, category)
        except Exception as exc:
            if generation != self._generation:
                logger.debug("Ignoring failure of superseded load (page %d)", page)
                return None
            self.state = LoadState.IDLE
            error = FetchError(page, category, exc)
            logger.warning("History load failed: %s", error, exc_info=True)
            self._surface("Failed to load clipboard history")
            return error

        if generation != self._generation:
            logger.debug("Discarding stale page %d (generation %d)", page, generation)
            return None

        self.state = LoadState.IDLE
        self.current_page = page
        self.total_count = result.total
        items = list(result.items)
        if append and page > 1:
            self._warn_overlap(items)
            self.entries = self.entries + items
        else:
            self.entries = items
        return None

    async def load_more(self) -> FetchError | None:
        """Append the next page unless loading or everything is loaded."""
        if self.is_loading or len(self.entries) >= self.total_count:
            return None
        return await self.load(self.current_page + 1, append=True)

    async def reload(self) -> FetchError | None:
        return await self.load(1, append=False)

    async def set_filter(self, category: str) -> FetchError | None:
        """Switch the active category filter and reload from page 1."""
        self.active_filter = str(category)
        return await self.load(1, append=False)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add(self, content: str) -> ClipboardEntry | None:
        """Classify, persist and prepend new clipboard content.

        Content already present in the loaded list is ignored.  If the store
        rejects the entry the list is reloaded instead of trusting local
        state.  Returns the saved entry, or ``None``.
        """
        if not content:
            return None
        if any(entry.content == content for entry in self.entries):
            logger.debug("Skipping duplicate clipboard content")
            return None

        category = classify(content)
        entry = ClipboardEntry(
            id=int(time.time() * 1000),
            category=category,
            content=content,
            captured_at=datetime.now(),
            size_label=format_size(len(content.encode("utf-8"))),
        )
        visible_here = self.active_filter in (FILTER_ALL, category.value)

        try:
            saved_id = await self._store.save_item(entry)
        except Exception:
            logger.warning("Saving clipboard entry failed", exc_info=True)
            saved_id = None

        if not isinstance(saved_id, int) or isinstance(saved_id, bool) or not saved_id:
            logger.debug("Store returned no id (%r), reloading history", saved_id)
            await self.reload()
            return None

        entry.id = saved_id
        if visible_here:
            self.entries.insert(0, entry)
            self.total_count += 1
        return entry

    async def remove(self, entry_id: int) -> PersistError | None:
        """Remove an entry locally, then delete it from the store."""
        index = next(
            (i for i, entry in enumerate(self.entries) if entry.id == entry_id), None
        )
        if index is not None:
            del self.entries[index]
            self.total_count = max(0, self.total_count - 1)

        try:
            deleted = await self._store.delete_item(entry_id)
        except Exception as exc:
            error = PersistError("delete", exc)
            logger.warning("Deleting entry %s failed", entry_id, exc_info=True)
        else:
            if deleted or index is None:
                if not deleted:
                    logger.debug("Store had no entry %s to delete", entry_id)
                return None
            error = PersistError("delete")
            logger.warning("Store refused to delete entry %s", entry_id)

        self._surface("Delete failed, refreshing history")
        await self.reload()
        return error

    async def clear_all(self) -> PersistError | None:
        """Delete every entry in the store and empty the local list."""
        try:
            cleared = await self._store.clear_all()
        except Exception as exc:
            error = PersistError("clear", exc)
            logger.warning("Clearing history failed", exc_info=True)
        else:
            if cleared:
                self.entries = []
                self.total_count = 0
                self.current_page = 1
                return None
            error = PersistError("clear")
            logger.warning("Store refused to clear history")

        self._surface("Clearing history failed")
        await self.reload()
        return error

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _surface(self, message: str) -> None:
        if self._notify is None:
            return
        try:
            self._notify(message)
        except Exception:
            logger.debug("notify callback failed", exc_info=True)

    def _warn_overlap(self, items: list[ClipboardEntry]) -> None:
        known = {entry.id for entry in self.entries}
        overlap = [item.id for item in items if item.id in known]
        if overlap:
            # Pages are appended as-is; overlapping pages mean the store shifted.
            logger.warning("Appended page repeats %d loaded id(s): %s", len(overlap), overlap[:5])
