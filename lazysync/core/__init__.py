"""Cache-consistency and navigation-state engine."""

from __future__ import annotations

from .dedup import DedupLedger, FetchKind, fetch_key
from .navigation import NavigationStack
from .router import InvalidationRouter
from .staleness import StalenessTracker, is_transient

__all__ = [
    "DedupLedger",
    "FetchKind",
    "InvalidationRouter",
    "NavigationStack",
    "StalenessTracker",
    "fetch_key",
    "is_transient",
]
