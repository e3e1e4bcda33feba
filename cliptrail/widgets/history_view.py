"""Virtualized history list widget.

Only the rows inside the current :class:`~cliptrail.models.ViewportWindow`
exist as widgets.  Two spacers above and below stand in for the rows that
are not rendered, so the scrollbar reflects the full loaded list.  Row
widgets are pooled and re-filled on every window change instead of being
remounted.
"""

from __future__ import annotations

from rich.markup import escape
from textual import events
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.message import Message
from textual.widgets import Static

from .._utils import format_time, truncate_text
from ..models import ClipboardEntry, ViewportWindow

_PREVIEW_CHARS = 200


def entry_markup(entry: ClipboardEntry, preview_lines: int) -> str:
    """Rich markup for one entry: a header line plus a content preview."""
    header = (
        f"[b]{entry.category.value}[/b]  [dim]{entry.size_label}  "
        f"{format_time(entry.captured_at)}[/dim]"
    )
    if preview_lines <= 0:
        return header
    lines = truncate_text(entry.content, _PREVIEW_CHARS).splitlines() or [""]
    preview = "\n".join(escape(line) for line in lines[:preview_lines])
    return f"{header}\n{preview}"


class EntryRow(Static):
    """One rendered history entry (pooled, re-filled on scroll)."""

    def __init__(self) -> None:
        super().__init__("", classes="entry-row", markup=True)
        self.entry_id: int | None = None

    def show_entry(self, entry: ClipboardEntry, *, height: int, selected: bool) -> None:
        self.entry_id = entry.id
        self.styles.height = height
        self.set_class(selected, "-selected")
        self.update(entry_markup(entry, preview_lines=height - 1))
        self.display = True

    def hide(self) -> None:
        self.entry_id = None
        self.display = False


class HistoryView(VerticalScroll):
    """Scrollable list that renders only the visible window of entries."""

    DEFAULT_CSS = """
    HistoryView {
        height: 1fr;
    }
    HistoryView > .spacer {
        height: 0;
    }
    HistoryView > .entry-row {
        padding: 0 1;
        border-left: thick $panel;
        overflow: hidden;
    }
    HistoryView > .entry-row.-selected {
        border-left: thick $accent;
        background: $boost;
    }
    """

    class ViewportChanged(Message):
        """Posted on scroll and resize so the app can recompute the window."""

    def __init__(self, **kwargs: object) -> None:
        super().__init__(**kwargs)  # type: ignore[arg-type]
        self._top = Static("", classes="spacer")
        self._bottom = Static("", classes="spacer")
        self._rows: list[EntryRow] = []
        self._rendered: tuple | None = None

    def compose(self) -> ComposeResult:
        yield self._top
        yield self._bottom

    @property
    def rendered_ids(self) -> list[int]:
        """Ids of the entries currently shown, top to bottom."""
        return [r.entry_id for r in self._rows if r.display and r.entry_id is not None]

    def watch_scroll_y(self, old_value: float, new_value: float) -> None:
        super().watch_scroll_y(old_value, new_value)
        self.post_message(self.ViewportChanged())

    def on_resize(self, _event: events.Resize) -> None:
        self.post_message(self.ViewportChanged())

    async def show_window(
        self,
        entries: list[ClipboardEntry],
        window: ViewportWindow,
        *,
        item_count: int,
        selected_index: int,
    ) -> None:
        """Render *entries* (the window slice) between the two spacers."""
        height = max(1, int(window.item_height))
        key = (
            window.start_index,
            window.end_index,
            item_count,
            height,
            selected_index,
            tuple((e.id, e.content) for e in entries),
        )
        if key == self._rendered:
            return
        self._rendered = key

        missing = len(entries) - len(self._rows)
        if missing > 0:
            new_rows = [EntryRow() for _ in range(missing)]
            self._rows.extend(new_rows)
            await self.mount_all(new_rows, before=self._bottom)

        below = 0 if window.is_empty else item_count - window.end_index - 1
        self._top.styles.height = 0 if window.is_empty else window.start_index * height
        self._bottom.styles.height = max(0, below) * height
        for offset, row in enumerate(self._rows):
            if offset < len(entries):
                index = window.start_index + offset
                row.show_entry(entries[offset], height=height, selected=index == selected_index)
            else:
                row.hide()
