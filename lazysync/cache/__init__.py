"""Durable store, mirror key layout and batched writes."""

from __future__ import annotations

from .batch import BatchWriter
from .mirror import MirrorCache
from .store import KeyValueStore, SQLiteStore

__all__ = ["BatchWriter", "KeyValueStore", "MirrorCache", "SQLiteStore"]
