"""Debounced search query over the loaded history.

The :class:`DebouncedQuery` keeps the text the user typed (``raw_query``)
separate from the normalized query that actually filters the list
(``effective_query``).  The effective query only catches up after a quiet
period with no further typing.  Timers come from an injected ``set_timer``
callable (``App.set_timer`` in the TUI) so the class stays independent of
Textual and is trivially testable with a fake clock.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Iterable, Protocol, TypeVar

from ..log import logger

DEFAULT_DEBOUNCE_SECONDS = 0.3


class TimerHandle(Protocol):
    """Anything with a ``stop()`` method, e.g. a Textual ``Timer``."""

    def stop(self) -> Any: ...


SetTimer = Callable[[float, Callable[[], Any]], TimerHandle]


class _LoopTimer:
    """Adapts an :class:`asyncio.TimerHandle` to the ``stop()`` interface."""

    def __init__(self, handle: asyncio.TimerHandle) -> None:
        self._handle = handle

    def stop(self) -> None:
        self._handle.cancel()


def asyncio_timer(delay: float, callback: Callable[[], Any]) -> TimerHandle:
    """Single-shot timer on the running event loop."""
    loop = asyncio.get_running_loop()
    return _LoopTimer(loop.call_later(delay, callback))


def normalize_query(query: str) -> str:
    return query.strip().lower()


class _HasContent(Protocol):
    content: str


_T = TypeVar("_T", bound=_HasContent)


def filter_entries(items: Iterable[_T], query: str) -> list[_T]:
    """Entries whose content contains *query* (already normalized).

    An empty query keeps every item in its original order.
    """
    if not query:
        return list(items)
    return [
        item
        for item in items
        if isinstance(item.content, str) and item.content and query in item.content.lower()
    ]


class DebouncedQuery:
    """Single-slot debounced query string.

    Parameters
    ----------
    set_timer:
        ``set_timer(delay_seconds, callback) -> handle``; the handle must
        have ``stop()``.  Defaults to :func:`asyncio_timer`.
    delay:
        Quiet period in seconds before the query takes effect.
    on_change:
        Called with the new effective query each time it changes.
    """

    def __init__(
        self,
        *,
        set_timer: SetTimer | None = None,
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        on_change: Callable[[str], object] | None = None,
    ) -> None:
        if delay < 0:
            raise ValueError(f"debounce delay must be >= 0, got {delay}")
        self._set_timer: SetTimer = set_timer or asyncio_timer
        self._delay = delay
        self._on_change = on_change
        self.raw_query: str = ""
        self.effective_query: str = ""
        self._timer: TimerHandle | None = None
        self._token: int = 0  # only the callback carrying the latest token may fire

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def set_query(self, query: str) -> None:
        """Record *query* now and schedule it to take effect after the delay."""
        self.raw_query = query
        self._cancel_timer()
        self._token += 1
        token = self._token
        self._timer = self._set_timer(self._delay, lambda: self._fire(token))

    def flush(self) -> None:
        """Apply the pending query immediately (e.g. on Enter)."""
        if self._timer is None:
            return
        self._cancel_timer()
        self._apply(self.raw_query)

    def cancel(self) -> None:
        """Drop any pending update; the effective query stays as it is."""
        self._cancel_timer()
        self._token += 1

    def filtered_view(self, items: Iterable[_T]) -> list[_T]:
        return filter_entries(items, self.effective_query)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fire(self, token: int) -> None:
        if token != self._token:
            logger.debug("Ignoring superseded search timer")
            return
        self._timer = None
        self._apply(self.raw_query)

    def _apply(self, query: str) -> None:
        normalized = normalize_query(query)
        if normalized == self.effective_query:
            return
        self.effective_query = normalized
        if self._on_change is not None:
            self._on_change(normalized)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None
