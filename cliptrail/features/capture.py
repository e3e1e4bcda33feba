"""Clipboard watcher that polls the system clipboard for new text.

The :class:`ClipboardWatcher` owns the polling timer and the last seen
clipboard text.  New content is handed to an ``on_content`` callback
injected at construction time (the app routes it to
``HistoryController.add``), keeping it decoupled from Textual.
"""

from __future__ import annotations

from typing import Any, Callable

from .._utils import read_clipboard
from ..log import logger

# Type alias for the timer handle returned by ``App.set_interval``.
TimerHandle = Any


class ClipboardWatcher:
    """Deliver clipboard text that changed since the previous poll.

    Parameters
    ----------
    on_content:
        Called with each new non-empty clipboard text.
    set_interval:
        Callback to start a periodic timer (e.g. ``app.set_interval``).
        Must return a handle with a ``.stop()`` method.
    read:
        Clipboard reader; defaults to :func:`cliptrail._utils.read_clipboard`.
    """

    def __init__(
        self,
        *,
        on_content: Callable[[str], object],
        set_interval: Callable[..., TimerHandle] | None = None,
        read: Callable[[], str | None] = read_clipboard,
    ) -> None:
        self._on_content = on_content
        self._set_interval = set_interval
        self._read = read
        self._timer: TimerHandle | None = None
        self._primed = False
        self.last_content: str | None = None

    @property
    def running(self) -> bool:
        return self._timer is not None

    def start(self, interval: float) -> None:
        if self._timer is not None or self._set_interval is None:
            return
        self._timer = self._set_interval(interval, self.poll)

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None

    def poll(self) -> str | None:
        """Read the clipboard once. Returns the text if it was delivered."""
        try:
            content = self._read()
        except Exception:
            logger.debug("Clipboard read failed", exc_info=True)
            return None
        if content is None:
            return None

        if not self._primed:
            # Whatever is on the clipboard at startup is not a new copy.
            self._primed = True
            self.last_content = content
            return None

        if content == self.last_content or not content.strip():
            return None
        self.last_content = content
        logger.debug("Clipboard changed (%d chars)", len(content))
        self._on_content(content)
        return content
