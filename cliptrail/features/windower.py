"""Viewport windowing for the history list.

Only the slice of loaded entries that is (nearly) on screen gets rendered.
:class:`ViewportWindower` turns a scroll position and container size into a
:class:`~cliptrail.models.ViewportWindow` and asks for more data when the
window approaches the end of what has been loaded while the store still has
more.
"""

from __future__ import annotations

import math
from typing import Callable, Protocol, Sequence

from ..log import logger
from ..models import ViewportWindow

DEFAULT_ITEM_HEIGHT = 100
DEFAULT_OVERSCAN = 4
DEFAULT_LOAD_MORE_BUFFER = 3


class PagedSourceLike(Protocol):
    """What the windower needs to know about the paginated controller."""

    @property
    def total_count(self) -> int: ...

    @property
    def is_loading(self) -> bool: ...


def compute_window(
    *,
    scroll_top: float,
    container_height: float,
    item_height: float,
    item_count: int,
    overscan: int = DEFAULT_OVERSCAN,
) -> ViewportWindow:
    """Pure window arithmetic.

    One row above the first visible one is kept rendered, plus *overscan*
    rows below the last.  A scroll offset past the end of the list (the
    list shrank before the view scrolled back) pins the window to the last
    item.
    """
    visible_count = math.ceil(container_height / item_height) + overscan
    start_index = max(0, math.floor(scroll_top / item_height) - 1)
    start_index = min(start_index, max(0, item_count - 1))
    end_index = min(item_count - 1, start_index + visible_count)
    if item_count == 0:
        start_index, end_index = 0, -1
    return ViewportWindow(
        start_index=start_index,
        end_index=end_index,
        visible_count=visible_count,
        item_height=item_height,
        container_height=container_height,
        total_height=item_count * item_height,
    )


class ViewportWindower:
    """Track the visible window and trigger "load more" near the bottom.

    Parameters
    ----------
    items:
        Callable returning the currently displayed (possibly filtered) items.
    source:
        The paginated controller (anything with ``total_count`` and
        ``is_loading``).
    request_more:
        Called when the window reaches the end of the loaded items while the
        store reports more.  Typically schedules ``controller.load_more()``.
    """

    def __init__(
        self,
        *,
        items: Callable[[], Sequence[object]],
        source: PagedSourceLike,
        request_more: Callable[[], object],
        item_height: float = DEFAULT_ITEM_HEIGHT,
        overscan: int = DEFAULT_OVERSCAN,
        load_more_buffer: int = DEFAULT_LOAD_MORE_BUFFER,
    ) -> None:
        if overscan < 0 or load_more_buffer < 0:
            raise ValueError("overscan and load_more_buffer must be >= 0")
        self._items = items
        self._source = source
        self._request_more = request_more
        self._item_height = self._check_height(item_height)
        self.overscan = overscan
        self.load_more_buffer = load_more_buffer
        self._scroll_top: float = 0
        self._container_height: float = 0
        self.window = ViewportWindow(item_height=self._item_height)

    # -- Properties -----------------------------------------------------------

    @property
    def item_height(self) -> float:
        return self._item_height

    @item_height.setter
    def item_height(self, value: float) -> None:
        """Set a measured row height and recompute."""
        self._item_height = self._check_height(value)
        self.refresh()

    # -- Event entry points ---------------------------------------------------

    def update(self, scroll_top: float, container_height: float) -> ViewportWindow:
        """Handle a scroll or resize event."""
        self._scroll_top = max(0.0, scroll_top)
        self._container_height = max(0.0, container_height)
        return self.refresh()

    def refresh(self) -> ViewportWindow:
        """Recompute with the last known geometry (e.g. after items changed)."""
        items = self._items()
        item_count = len(items)
        self.window = compute_window(
            scroll_top=self._scroll_top,
            container_height=self._container_height,
            item_height=self._item_height,
            item_count=item_count,
            overscan=self.overscan,
        )
        if self._needs_more(item_count):
            logger.debug(
                "Near end of loaded history (%d/%d), requesting more",
                item_count,
                self._source.total_count,
            )
            self._request_more()
        return self.window

    def visible_items(self) -> list[object]:
        if self.window.is_empty:
            return []
        return list(self._items()[self.window.start_index : self.window.end_index + 1])

    # -- Internals ------------------------------------------------------------

    def _needs_more(self, item_count: int) -> bool:
        near_bottom = self.window.end_index >= item_count - 1 - self.load_more_buffer
        has_more = item_count < self._source.total_count
        return near_bottom and has_more and not self._source.is_loading

    @staticmethod
    def _check_height(value: float) -> float:
        if value <= 0:
            raise ValueError(f"item height must be positive, got {value}")
        return value
