"""Search and status bar widgets for ClipTrail."""

from __future__ import annotations

from rich.markup import escape
from textual.widgets import Input, Static


class SearchInput(Input):
    """Search box above the history list."""

    def __init__(self) -> None:
        super().__init__(placeholder="Search clipboard history", id="search-input")


class StatusBar(Static):
    """Bottom line: loaded/total counts, active filter, search and load state."""

    def __init__(self) -> None:
        super().__init__("", id="status-bar")
        self.status_text = ""

    def show_status(
        self,
        *,
        loaded: int,
        total: int,
        shown: int,
        active_filter: str,
        query: str,
        loading: bool,
    ) -> None:
        parts = [f"{loaded}/{total} loaded", f"filter: {active_filter}"]
        if query:
            parts.append(f"search: '{escape(query)}' ({shown} match)")
        if loading:
            parts.append("loading…")
        self.status_text = " | ".join(parts)
        self.update(self.status_text)
