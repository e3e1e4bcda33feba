"""Widget classes used by the ClipTrail app."""

from .bars import SearchInput, StatusBar
from .history_view import EntryRow, HistoryView, entry_markup

__all__ = [
    "EntryRow",
    "HistoryView",
    "SearchInput",
    "StatusBar",
    "entry_markup",
]
