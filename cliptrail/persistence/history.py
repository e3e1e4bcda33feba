"""Clipboard history persistence store."""

from __future__ import annotations

import asyncio
import json
import os
import threading
from pathlib import Path

from ..log import logger
from ..models import FILTER_ALL, ClipboardEntry, HistoryPage

DEFAULT_MAX_ENTRIES = 1000


class JsonHistoryStore:
    """Clipboard history kept in one JSON file (newest first).

    File layout: ``{"next_id": int, "entries": [entry, ...]}``.  Writes go to
    a sibling temp file that is swapped into place, so a crash never leaves
    a half-written history.  The async methods implement
    :class:`cliptrail.history.HistoryStore` by running the blocking file I/O
    in a worker thread.
    """

    def __init__(self, path: Path, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self.path = path
        self.max_entries = max_entries
        self._lock = threading.Lock()

    # -- HistoryStore ---------------------------------------------------------

    async def get_history(self, page: int, page_size: int, category: str) -> HistoryPage:
        return await asyncio.to_thread(self.read_page, page, page_size, category)

    async def save_item(self, entry: ClipboardEntry) -> int | None:
        return await asyncio.to_thread(self.insert, entry)

    async def delete_item(self, entry_id: int) -> bool:
        return await asyncio.to_thread(self.delete, entry_id)

    async def clear_all(self) -> bool:
        await asyncio.to_thread(self.clear)
        return True

    # -- synchronous core -----------------------------------------------------

    def read_page(self, page: int, page_size: int, category: str = FILTER_ALL) -> HistoryPage:
        """Return 1-based *page* of entries matching *category*."""
        entries = self._entries()
        if category != FILTER_ALL:
            entries = [e for e in entries if e.get("category") == category]
        page = max(page, 1)
        start = (page - 1) * page_size
        items: list[ClipboardEntry] = []
        for raw in entries[start : start + page_size]:
            try:
                items.append(ClipboardEntry.from_dict(raw))
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping malformed history entry %r", raw, exc_info=True)
        return HistoryPage(items=items, total=len(entries))

    def insert(self, entry: ClipboardEntry) -> int:
        """Store *entry* at the top, assign and return its id, prune to max size."""
        with self._lock:
            data = self._data()
            new_id = self._next_id(data)
            record = entry.to_dict()
            record["id"] = new_id
            entries = [record, *data["entries"]][: self.max_entries]
            self.save_raw({"next_id": new_id + 1, "entries": entries})
        return new_id

    def delete(self, entry_id: int) -> bool:
        """Remove the entry with *entry_id*. Returns False if it was not stored."""
        with self._lock:
            data = self._data()
            entries = data["entries"]
            kept = [e for e in entries if not (isinstance(e, dict) and e.get("id") == entry_id)]
            if len(kept) == len(entries):
                return False
            data["entries"] = kept
            self.save_raw(data)
        return True

    def clear(self) -> int:
        """Clear all entries. Returns the count that was cleared."""
        with self._lock:
            data = self._data()
            count = len(data["entries"])
            data["entries"] = []
            self.save_raw(data)
        return count

    # -- file I/O -------------------------------------------------------------

    def load_raw(self) -> object:
        """Parsed file contents, or ``None`` when missing or unreadable."""
        try:
            if self.path.exists():
                return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.debug("failed to load history from %s", self.path, exc_info=True)
        return None

    def save_raw(self, data: dict) -> None:
        """Write *data* to a sibling temp file, then swap it into place."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)

    # -- helpers --------------------------------------------------------------

    def _data(self) -> dict:
        raw = self.load_raw()
        if not isinstance(raw, dict) or not isinstance(raw.get("entries"), list):
            return {"next_id": 1, "entries": []}
        return raw

    def _entries(self) -> list[dict]:
        return [e for e in self._data()["entries"] if isinstance(e, dict)]

    @staticmethod
    def _next_id(data: dict) -> int:
        """Stored counter, never below one past the highest id on file."""
        highest = 0
        for record in data["entries"]:
            if isinstance(record, dict):
                try:
                    highest = max(highest, int(record.get("id", 0)))
                except (TypeError, ValueError):
                    continue
        try:
            stored = int(data.get("next_id", 1))
        except (TypeError, ValueError):
            stored = 1
        return max(stored, highest + 1)
