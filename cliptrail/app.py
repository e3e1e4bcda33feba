"""Main ClipTrail application.

The app is glue: it forwards viewport events to the
:class:`~cliptrail.features.windower.ViewportWindower`, keystrokes in the
search box to the :class:`~cliptrail.features.search.DebouncedQuery`, and
clipboard changes to the :class:`~cliptrail.history.HistoryController`,
then renders whatever slice the windower reports as visible.
"""

from __future__ import annotations

import time
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Input

from ._utils import copy_to_clipboard
from .features.capture import ClipboardWatcher
from .features.search import DebouncedQuery
from .features.windower import ViewportWindower
from .history import HistoryController, HistoryStore
from .log import logger
from .models import ClipboardEntry
from .persistence import JsonHistoryStore
from .preferences import VALID_FILTERS, Preferences, load_preferences, save_active_filter
from .widgets import HistoryView, SearchInput, StatusBar

_CSS = """\
Screen {
    background: $background;
}

#search-input {
    dock: top;
    margin: 0 0;
}

#history-view {
    height: 1fr;
    padding: 0 0;
}

#status-bar {
    dock: bottom;
    height: 1;
    background: $panel;
    color: $text-muted;
    padding: 0 1;
}
"""

_CLEAR_CONFIRM_SECONDS = 3.0


class ClipTrailApp(App):
    """Browse, search and manage clipboard history."""

    CSS = _CSS
    TITLE = "ClipTrail"

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=True),
        Binding("ctrl+f", "cycle_filter", "Filter", show=True, priority=True),
        Binding("ctrl+r", "reload", "Reload", show=False, priority=True),
        Binding("ctrl+y", "copy_entry", "Copy", show=True, priority=True),
        Binding("ctrl+d", "delete_entry", "Delete", show=True, priority=True),
        Binding("ctrl+x", "clear_all", "Clear all", show=False, priority=True),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("up", "cursor_up", "Up", show=False),
    ]

    def __init__(
        self,
        *,
        store: HistoryStore | None = None,
        prefs: Preferences | None = None,
        prefs_path: Path | None = None,
        capture: bool | None = None,
        persist_prefs: bool | None = None,
    ) -> None:
        super().__init__()
        # By default only preferences loaded here from disk are written back.
        self._prefs_path = prefs_path
        self._persist_prefs = prefs is None if persist_prefs is None else persist_prefs
        self._prefs = prefs or load_preferences(prefs_path)

        hp = self._prefs.history
        if store is None:
            store = JsonHistoryStore(hp.resolved_store_path, hp.max_entries)
        self.controller = HistoryController(
            store,
            page_size=hp.page_size,
            active_filter=hp.active_filter,
            notify=self._notify_error,
        )
        self.query_filter = DebouncedQuery(
            set_timer=self.set_timer,
            delay=self._prefs.search.debounce_seconds,
            on_change=self._on_query_applied,
        )
        vp = self._prefs.viewport
        self.windower = ViewportWindower(
            items=self.displayed_entries,
            source=self.controller,
            request_more=self._request_more,
            item_height=vp.item_height,
            overscan=vp.overscan,
            load_more_buffer=vp.load_more_buffer,
        )
        self.watcher = ClipboardWatcher(
            on_content=self._on_clipboard_content,
            set_interval=self.set_interval,
        )
        self._capture = self._prefs.capture.enabled if capture is None else capture
        self.selected_index: int = 0
        self._clear_armed_until: float = 0.0

    # ------------------------------------------------------------------
    # Layout & lifecycle
    # ------------------------------------------------------------------

    def compose(self) -> ComposeResult:
        with Vertical():
            yield SearchInput()
            yield HistoryView(id="history-view")
            yield StatusBar()

    async def on_mount(self) -> None:
        self.query_one("#search-input", SearchInput).focus()
        await self.controller.load(1, append=False)
        await self.refresh_view()
        if self._capture:
            self.watcher.start(self._prefs.capture.poll_seconds)

    def on_unmount(self) -> None:
        self.watcher.stop()
        self.query_filter.cancel()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def displayed_entries(self) -> list[ClipboardEntry]:
        """Loaded entries narrowed by the effective search query."""
        return self.query_filter.filtered_view(self.controller.entries)

    def selected_entry(self) -> ClipboardEntry | None:
        entries = self.displayed_entries()
        if 0 <= self.selected_index < len(entries):
            return entries[self.selected_index]
        return None

    async def refresh_view(self) -> None:
        """Recompute the window for the current geometry and re-render."""
        view = self.query_one("#history-view", HistoryView)
        window = self.windower.update(view.scroll_y, view.size.height)
        entries = self.displayed_entries()
        self.selected_index = max(0, min(self.selected_index, len(entries) - 1))
        await view.show_window(
            self.windower.visible_items(),  # type: ignore[arg-type]
            window,
            item_count=len(entries),
            selected_index=self.selected_index,
        )
        self._update_status(len(entries))

    def _update_status(self, shown: int) -> None:
        self.query_one("#status-bar", StatusBar).show_status(
            loaded=len(self.controller.entries),
            total=self.controller.total_count,
            shown=shown,
            active_filter=self.controller.active_filter,
            query=self.query_filter.effective_query,
            loading=self.controller.is_loading,
        )

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    async def on_history_view_viewport_changed(self, _event: HistoryView.ViewportChanged) -> None:
        await self.refresh_view()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search-input":
            self.query_filter.set_query(event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "search-input":
            self.query_filter.flush()

    def _on_query_applied(self, _query: str) -> None:
        self.selected_index = 0
        self.query_one("#history-view", HistoryView).scroll_home(animate=False)
        self.call_later(self.refresh_view)

    def _on_clipboard_content(self, content: str) -> None:
        self.run_worker(self._add_content(content), group="history")

    def _request_more(self) -> None:
        self.run_worker(self._load_more(), group="history")

    def _notify_error(self, message: str) -> None:
        self.notify(message, severity="error")

    # ------------------------------------------------------------------
    # Controller round-trips
    # ------------------------------------------------------------------

    async def _add_content(self, content: str) -> None:
        entry = await self.controller.add(content)
        if entry is not None:
            logger.debug("Captured entry %s (%s)", entry.id, entry.category.value)
        await self.refresh_view()

    async def _load_more(self) -> None:
        loaded = len(self.controller.entries)
        error = await self.controller.load_more()
        if error is not None or len(self.controller.entries) == loaded:
            # Nothing new arrived; re-rendering would just ask again.
            self._update_status(len(self.displayed_entries()))
            return
        await self.refresh_view()

    async def _remove(self, entry_id: int) -> None:
        error = await self.controller.remove(entry_id)
        if error is None:
            self.notify("Deleted")
        await self.refresh_view()

    async def _set_filter(self, category: str) -> None:
        self.selected_index = 0
        await self.controller.set_filter(category)
        self.query_one("#history-view", HistoryView).scroll_home(animate=False)
        await self.refresh_view()

    async def _reload(self) -> None:
        await self.controller.reload()
        await self.refresh_view()

    async def _clear_all(self) -> None:
        error = await self.controller.clear_all()
        if error is None:
            self.notify("Cleared all history")
        self.selected_index = 0
        await self.refresh_view()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def action_cycle_filter(self) -> None:
        current = self.controller.active_filter
        index = VALID_FILTERS.index(current) if current in VALID_FILTERS else -1
        category = VALID_FILTERS[(index + 1) % len(VALID_FILTERS)]
        if self._persist_prefs:
            save_active_filter(category, self._prefs_path)
        self.run_worker(self._set_filter(category), group="history")

    def action_reload(self) -> None:
        self.run_worker(self._reload(), group="history")

    def action_copy_entry(self) -> None:
        entry = self.selected_entry()
        if entry is None:
            return
        if copy_to_clipboard(entry.content):
            # Don't re-capture our own copy as a new entry.
            self.watcher.last_content = entry.content
            self.notify("Copied to clipboard")
        else:
            self.notify("Could not access the clipboard", severity="warning")

    def action_delete_entry(self) -> None:
        entry = self.selected_entry()
        if entry is not None:
            self.run_worker(self._remove(entry.id), group="history")

    def action_clear_all(self) -> None:
        now = time.monotonic()
        if now > self._clear_armed_until:
            self._clear_armed_until = now + _CLEAR_CONFIRM_SECONDS
            self.notify("Press ctrl+x again to clear all history", severity="warning")
            return
        self._clear_armed_until = 0.0
        self.run_worker(self._clear_all(), group="history")

    async def action_cursor_down(self) -> None:
        await self._move_cursor(1)

    async def action_cursor_up(self) -> None:
        await self._move_cursor(-1)

    async def _move_cursor(self, delta: int) -> None:
        count = len(self.displayed_entries())
        if count == 0:
            return
        self.selected_index = max(0, min(self.selected_index + delta, count - 1))
        view = self.query_one("#history-view", HistoryView)
        height = self.windower.item_height
        top = self.selected_index * height
        if top < view.scroll_y:
            view.scroll_to(y=top, animate=False)
        elif top + height > view.scroll_y + view.size.height:
            view.scroll_to(y=top + height - view.size.height, animate=False)
        await self.refresh_view()
