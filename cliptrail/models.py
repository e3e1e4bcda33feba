"""Core data types shared by the controller, the store and the UI."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

FILTER_ALL = "all"


class Category(str, Enum):
    TEXT = "text"
    URL = "url"
    CODE = "code"
    IMAGE = "image"


class LoadState(Enum):
    IDLE = "idle"
    LOADING = "loading"


@dataclass
class ClipboardEntry:
    """A single clipboard history item.

    ``id`` is provisional (a millisecond timestamp) until the store assigns
    the real one.  ``content`` may be empty for image entries.
    """

    id: int
    category: Category
    content: str
    captured_at: datetime = field(default_factory=datetime.now)
    size_label: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category.value,
            "content": self.content,
            "captured_at": self.captured_at.isoformat(),
            "size_label": self.size_label,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClipboardEntry:
        """Build an entry from its stored form, tolerating missing fields."""
        try:
            category = Category(data.get("category", "text"))
        except ValueError:
            category = Category.TEXT
        raw_ts = data.get("captured_at")
        try:
            captured_at = datetime.fromisoformat(raw_ts) if raw_ts else datetime.now()
        except (TypeError, ValueError):
            captured_at = datetime.now()
        return cls(
            id=int(data["id"]),
            category=category,
            content=str(data.get("content", "")),
            captured_at=captured_at,
            size_label=str(data.get("size_label", "")),
        )


@dataclass(frozen=True)
class HistoryPage:
    """One page of entries plus the store's total for the active filter."""

    items: list[ClipboardEntry]
    total: int


@dataclass
class ScoreVector:
    url: int = 0
    code: int = 0
    text: int = 0


@dataclass(frozen=True)
class ViewportWindow:
    """Visible slice of the loaded history for the current scroll position.

    ``end_index`` is inclusive and is ``-1`` when there are no items;
    otherwise ``start_index <= end_index < item_count``.
    """

    start_index: int = 0
    end_index: int = -1
    visible_count: int = 0
    item_height: float = 0
    container_height: float = 0
    total_height: float = 0

    @property
    def is_empty(self) -> bool:
        return self.end_index < self.start_index
