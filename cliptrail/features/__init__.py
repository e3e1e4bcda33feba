"""Feature modules kept apart from the Textual app.

Stateless helpers are standalone functions; stateful features are helper
classes that own their own state and communicate with the app through
injected callbacks.

Modules
-------
search
    :class:`DebouncedQuery`: debounced, normalized search over entries.
windower
    :class:`ViewportWindower`: visible slice + "load more" trigger.
capture
    :class:`ClipboardWatcher`: polls the system clipboard for new text.
"""

from .capture import ClipboardWatcher
from .search import DebouncedQuery, asyncio_timer, filter_entries, normalize_query
from .windower import ViewportWindower, compute_window

__all__ = [
    "ClipboardWatcher",
    "DebouncedQuery",
    "ViewportWindower",
    "asyncio_timer",
    "compute_window",
    "filter_entries",
    "normalize_query",
]
