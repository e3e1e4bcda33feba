"""Tests for cliptrail.history.HistoryController.

Covers paging (replace vs append), load_more guards, the stale-completion
guard, optimistic add/remove with reconciling reloads, clear_all and the
category filter.  The store is the in-memory FakeHistoryStore from conftest.
"""

from __future__ import annotations

import asyncio
import logging

import pytest

from conftest import FakeHistoryStore, make_entry

from cliptrail.errors import FetchError, PersistError
from cliptrail.history import HistoryController, HistoryStore
from cliptrail.models import Category, LoadState


@pytest.fixture()
def notices() -> list[str]:
    return []


@pytest.fixture()
def controller(store: FakeHistoryStore, notices: list[str]) -> HistoryController:
    return HistoryController(store, page_size=10, notify=notices.append)


def ids(controller: HistoryController) -> list[int]:
    return [e.id for e in controller.entries]


class TestInit:
    def test_defaults(self, controller: HistoryController):
        assert controller.entries == []
        assert controller.total_count == 0
        assert controller.current_page == 1
        assert controller.state == LoadState.IDLE
        assert controller.active_filter == "all"

    def test_rejects_bad_page_size(self, store: FakeHistoryStore):
        with pytest.raises(ValueError):
            HistoryController(store, page_size=0)

    def test_fake_store_satisfies_protocol(self, store: FakeHistoryStore):
        assert isinstance(store, HistoryStore)


# -- load ------------------------------------------------------------------------


class TestLoad:
    @pytest.mark.asyncio
    async def test_first_page_replaces(self, controller: HistoryController):
        assert await controller.load(1, append=False) is None
        assert ids(controller) == list(range(25, 15, -1))
        assert controller.total_count == 25
        assert controller.state == LoadState.IDLE

    @pytest.mark.asyncio
    async def test_append_second_page(self, controller: HistoryController):
        await controller.load(1, append=False)
        await controller.load(2, append=True)
        assert len(controller.entries) == 20
        assert ids(controller) == list(range(25, 5, -1))
        assert controller.current_page == 2

    @pytest.mark.asyncio
    async def test_append_first_page_replaces(self, controller: HistoryController):
        await controller.load(2, append=False)
        await controller.load(1, append=True)
        assert ids(controller) == list(range(25, 15, -1))

    @pytest.mark.asyncio
    async def test_empty_page_without_append_clears(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1)
        store.entries = []
        await controller.load(1, append=False)
        assert controller.entries == []
        assert controller.total_count == 0

    @pytest.mark.asyncio
    async def test_empty_first_page_with_append_still_replaces(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1)
        store.entries = []
        await controller.load(1, append=True)
        assert controller.entries == []

    @pytest.mark.asyncio
    async def test_empty_page_with_append_keeps_list(self, controller: HistoryController):
        await controller.load(1)
        await controller.load(9, append=True)
        assert len(controller.entries) == 10

    @pytest.mark.asyncio
    async def test_uses_active_filter_and_page_size(
        self, store: FakeHistoryStore
    ):
        controller = HistoryController(store, page_size=3, active_filter="url")
        await controller.load()
        assert store.calls[-1] == ("get_history", 1, 3, "url")
        assert all(e.category == Category.URL for e in controller.entries)
        assert controller.total_count == 5

    @pytest.mark.asyncio
    async def test_explicit_category_overrides_filter(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1, category="code")
        assert store.calls[-1][3] == "code"
        assert controller.active_filter == "all"

    @pytest.mark.asyncio
    async def test_failure_leaves_state_untouched(
        self,
        controller: HistoryController,
        store: FakeHistoryStore,
        notices: list[str],
    ):
        await controller.load(1)
        before = list(controller.entries)
        store.fail_get = True
        error = await controller.load(2, append=True)
        assert isinstance(error, FetchError)
        assert error.page == 2
        assert isinstance(error.cause, ConnectionError)
        assert controller.entries == before
        assert controller.total_count == 25
        assert controller.current_page == 1
        assert controller.state == LoadState.IDLE
        assert notices == ["Failed to load clipboard history"]

    @pytest.mark.asyncio
    async def test_failure_without_notify_callback(self, store: FakeHistoryStore):
        store.fail_get = True
        controller = HistoryController(store)
        assert isinstance(await controller.load(), FetchError)

    @pytest.mark.asyncio
    async def test_overlapping_pages_are_kept_and_logged(
        self,
        controller: HistoryController,
        store: FakeHistoryStore,
        caplog: pytest.LogCaptureFixture,
    ):
        await controller.load(1)
        # A new entry shifts every page down by one.
        store.entries.insert(0, make_entry(99))
        with caplog.at_level(logging.WARNING, logger="cliptrail"):
            await controller.load(2, append=True)
        assert len(controller.entries) == 20
        assert ids(controller).count(16) == 2
        assert "repeats 1 loaded id" in caplog.text


class TestStaleCompletion:
    @pytest.mark.asyncio
    async def test_older_fetch_finishing_last_is_discarded(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1)
        store.gates[2] = asyncio.Event()
        slow = asyncio.create_task(controller.load(2, append=True))
        await asyncio.sleep(0)
        assert controller.is_loading

        # A filter change starts a newer load that finishes first.
        await controller.set_filter("code")
        assert controller.state == LoadState.IDLE
        code_ids = ids(controller)

        store.gates[2].set()
        assert await slow is None
        assert ids(controller) == code_ids
        assert controller.current_page == 1
        assert controller.total_count == 5

    @pytest.mark.asyncio
    async def test_loading_until_latest_finishes(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        store.gates[1] = asyncio.Event()
        first = asyncio.create_task(controller.load(1))
        await asyncio.sleep(0)
        second = asyncio.create_task(controller.load(1))
        await asyncio.sleep(0)
        assert controller.is_loading
        store.gates[1].set()
        await asyncio.gather(first, second)
        assert controller.state == LoadState.IDLE
        assert len(controller.entries) == 10


# -- load_more -------------------------------------------------------------------


class TestLoadMore:
    @pytest.mark.asyncio
    async def test_fetches_next_page(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1)
        await controller.load_more()
        assert store.calls[-1] == ("get_history", 2, 10, "all")
        assert len(controller.entries) == 20

    @pytest.mark.asyncio
    async def test_noop_when_everything_loaded(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1)
        await controller.load_more()
        await controller.load_more()
        assert len(controller.entries) == 25
        calls = len(store.calls)
        assert await controller.load_more() is None
        assert len(store.calls) == calls

    @pytest.mark.asyncio
    async def test_noop_while_loading(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1)
        store.gates[2] = asyncio.Event()
        pending = asyncio.create_task(controller.load_more())
        await asyncio.sleep(0)
        calls = len(store.calls)
        assert await controller.load_more() is None
        assert len(store.calls) == calls
        store.gates[2].set()
        await pending
        assert len(controller.entries) == 20

    @pytest.mark.asyncio
    async def test_failed_page_is_retried(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1)
        store.fail_get = True
        assert isinstance(await controller.load_more(), FetchError)
        store.fail_get = False
        await controller.load_more()
        assert store.calls[-1][1] == 2
        assert len(controller.entries) == 20


# -- add -------------------------------------------------------------------------


class TestAdd:
    @pytest.mark.asyncio
    async def test_prepends_saved_entry(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1)
        entry = await controller.add("https://example.com/path")
        assert entry is not None
        assert entry.id == 1001
        assert entry.category == Category.URL
        assert entry.size_label == "24 B"
        assert controller.entries[0] is entry
        assert controller.total_count == 26

    @pytest.mark.asyncio
    async def test_classifies_code(self, controller: HistoryController):
        entry = await controller.add("const x = () => x+1;")
        assert entry is not None
        assert entry.category == Category.CODE

    @pytest.mark.asyncio
    async def test_duplicate_content_is_ignored(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1)
        assert await controller.add("entry number 25") is None
        assert "save_item" not in store.call_names()
        assert controller.total_count == 25

    @pytest.mark.asyncio
    async def test_empty_content_is_ignored(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        assert await controller.add("") is None
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_other_category_is_saved_but_not_shown(
        self, store: FakeHistoryStore
    ):
        controller = HistoryController(store, active_filter="code")
        await controller.load(1)
        before = ids(controller)
        entry = await controller.add("just some plain words here")
        assert entry is not None
        assert entry.category == Category.TEXT
        assert ids(controller) == before
        assert controller.total_count == 5
        assert store.entries[0].id == entry.id

    @pytest.mark.asyncio
    async def test_no_id_falls_back_to_reload(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1)
        store.save_result = lambda entry: None
        assert await controller.add("new words") is None
        assert store.call_names()[-2:] == ["save_item", "get_history"]
        assert store.calls[-1][1] == 1

    @pytest.mark.asyncio
    async def test_save_error_falls_back_to_reload(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        store.fail_save = True
        assert await controller.add("new words") is None
        assert store.call_names() == ["save_item", "get_history"]
        assert len(controller.entries) == 10


# -- remove ----------------------------------------------------------------------


class TestRemove:
    @pytest.mark.asyncio
    async def test_removes_locally_and_in_store(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1)
        assert await controller.remove(20) is None
        assert 20 not in ids(controller)
        assert controller.total_count == 24
        assert all(e.id != 20 for e in store.entries)

    @pytest.mark.asyncio
    async def test_missing_id_changes_nothing(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1)
        before = ids(controller)
        assert await controller.remove(4242) is None
        assert ids(controller) == before
        assert controller.total_count == 25
        assert "get_history" not in store.call_names()[1:]

    @pytest.mark.asyncio
    async def test_store_error_reconciles(
        self,
        controller: HistoryController,
        store: FakeHistoryStore,
        notices: list[str],
    ):
        await controller.load(1)
        store.fail_delete = True
        error = await controller.remove(20)
        assert isinstance(error, PersistError)
        assert error.operation == "delete"
        # The reload put the still-stored entry back.
        assert 20 in ids(controller)
        assert controller.total_count == 25
        assert notices == ["Delete failed, refreshing history"]

    @pytest.mark.asyncio
    async def test_store_refusal_for_loaded_entry_reconciles(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1)
        store.delete_result = False
        assert isinstance(await controller.remove(20), PersistError)
        assert store.call_names()[-1] == "get_history"
        assert 20 in ids(controller)


# -- clear_all / set_filter ------------------------------------------------------


class TestClearAll:
    @pytest.mark.asyncio
    async def test_success_empties_everything(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1)
        await controller.load_more()
        assert await controller.clear_all() is None
        assert controller.entries == []
        assert controller.total_count == 0
        assert controller.current_page == 1
        assert store.entries == []

    @pytest.mark.asyncio
    async def test_refusal_reloads(
        self,
        controller: HistoryController,
        store: FakeHistoryStore,
        notices: list[str],
    ):
        await controller.load(1)
        store.clear_result = False
        error = await controller.clear_all()
        assert isinstance(error, PersistError)
        assert error.operation == "clear"
        assert len(controller.entries) == 10
        assert notices == ["Clearing history failed"]

    @pytest.mark.asyncio
    async def test_exception_reloads(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        store.fail_clear = True
        assert isinstance(await controller.clear_all(), PersistError)
        assert store.call_names() == ["clear_all", "get_history"]


class TestSetFilter:
    @pytest.mark.asyncio
    async def test_switch_reloads_first_page(
        self, controller: HistoryController, store: FakeHistoryStore
    ):
        await controller.load(1)
        await controller.load_more()
        await controller.set_filter("image")
        assert controller.active_filter == "image"
        assert store.calls[-1] == ("get_history", 1, 10, "image")
        assert {e.category for e in controller.entries} == {Category.IMAGE}
        assert controller.total_count == 5
        assert controller.current_page == 1
