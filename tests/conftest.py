"""Shared test fixtures for the cliptrail test suite."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable

import pytest

from cliptrail.models import FILTER_ALL, Category, ClipboardEntry, HistoryPage


def make_entry(
    entry_id: int,
    content: str | None = None,
    category: Category = Category.TEXT,
) -> ClipboardEntry:
    """Entry with deterministic content and timestamp derived from its id."""
    return ClipboardEntry(
        id=entry_id,
        category=category,
        content=content if content is not None else f"entry number {entry_id}",
        captured_at=datetime(2026, 1, 15, 10, 0, 0) + timedelta(seconds=entry_id),
        size_label="12 B",
    )


# -- Fake history store -------------------------------------------------------


class FakeHistoryStore:
    """In-memory ``HistoryStore`` with failure injection.

    ``entries`` is newest first.  Set ``gates[page]`` to an
    :class:`asyncio.Event` to hold ``get_history`` for that page until the
    event is set, which lets tests complete fetches out of order.
    """

    def __init__(self, entries: list[ClipboardEntry] | None = None) -> None:
        self.entries: list[ClipboardEntry] = list(entries or [])
        self.next_id = 1000
        self.calls: list[tuple[Any, ...]] = []
        self.gates: dict[int, asyncio.Event] = {}
        self.fail_get = False
        self.fail_save = False
        self.fail_delete = False
        self.fail_clear = False
        self.save_result: Callable[[ClipboardEntry], Any] | None = None
        self.delete_result: bool | None = None
        self.clear_result = True

    async def get_history(self, page: int, page_size: int, category: str) -> HistoryPage:
        self.calls.append(("get_history", page, page_size, category))
        gate = self.gates.get(page)
        if gate is not None:
            await gate.wait()
        if self.fail_get:
            raise ConnectionError("store offline")
        matching = [
            e for e in self.entries if category == FILTER_ALL or e.category.value == category
        ]
        start = (page - 1) * page_size
        items = [replace(e) for e in matching[start : start + page_size]]
        return HistoryPage(items=items, total=len(matching))

    async def save_item(self, entry: ClipboardEntry) -> int | None:
        self.calls.append(("save_item", entry.content))
        if self.fail_save:
            raise OSError("disk full")
        if self.save_result is not None:
            return self.save_result(entry)
        self.next_id += 1
        self.entries.insert(0, replace(entry, id=self.next_id))
        return self.next_id

    async def delete_item(self, entry_id: int) -> bool:
        self.calls.append(("delete_item", entry_id))
        if self.fail_delete:
            raise OSError("locked")
        if self.delete_result is not None:
            return self.delete_result
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.id != entry_id]
        return len(self.entries) != before

    async def clear_all(self) -> bool:
        self.calls.append(("clear_all",))
        if self.fail_clear:
            raise OSError("locked")
        if self.clear_result:
            self.entries = []
        return self.clear_result

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def sample_entries() -> list[ClipboardEntry]:
    """25 entries, newest (highest id) first, with a mix of categories."""
    categories = [Category.TEXT, Category.URL, Category.CODE, Category.TEXT, Category.IMAGE]
    return [make_entry(i, category=categories[i % 5]) for i in range(25, 0, -1)]


@pytest.fixture
def store(sample_entries: list[ClipboardEntry]) -> FakeHistoryStore:
    return FakeHistoryStore(sample_entries)


# -- Fake clock ---------------------------------------------------------------


class FakeTimer:
    def __init__(self, due: float, callback: Callable[[], Any]) -> None:
        self.due = due
        self.callback = callback
        self.stopped = False
        self.fired = False

    def stop(self) -> None:
        self.stopped = True


class FakeClock:
    """Drop-in ``set_timer`` whose time only moves when ``advance`` is called."""

    def __init__(self, *, honour_stop: bool = True) -> None:
        self.now = 0.0
        self.timers: list[FakeTimer] = []
        self.honour_stop = honour_stop

    def set_timer(self, delay: float, callback: Callable[[], Any]) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        self.now += seconds
        for timer in list(self.timers):
            if timer.fired or timer.due > self.now:
                continue
            if timer.stopped and self.honour_stop:
                continue
            timer.fired = True
            timer.callback()

    @property
    def live_timers(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.stopped and not t.fired]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
