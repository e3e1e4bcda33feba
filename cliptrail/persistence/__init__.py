"""Persistence layer – each store owns its file path, data format, and I/O."""

from .history import JsonHistoryStore

__all__ = [
    "JsonHistoryStore",
]
