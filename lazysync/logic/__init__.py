"""Pure sequencing helpers: selection, sorting, batching and matching.

Nothing in this package performs I/O.
"""

from __future__ import annotations

from .ignore import find_matching_patterns, ignore_pattern_for, ignore_pattern_matches
from .paths import is_under_prefix, join_prefix, normalize_dir_prefix, parent_prefix, translate_path
from .performance import (
    is_idle,
    should_cleanup_stale_pending,
    should_flush,
    should_refresh_filter,
    should_verify_pending,
)
from .search import is_effective_query, search_matches
from .selection import find_index_by_name, next_selection, prev_selection, restore_selection
from .sorting import SortMode, compare_entries, modified_epoch, next_sort_mode, sort_entries
from .sync_states import determine_sync_state, sync_state_priority
from .timestamps import parse_rfc3339

__all__ = [
    "find_matching_patterns",
    "ignore_pattern_for",
    "ignore_pattern_matches",
    "is_under_prefix",
    "join_prefix",
    "normalize_dir_prefix",
    "parent_prefix",
    "translate_path",
    "is_idle",
    "should_cleanup_stale_pending",
    "should_flush",
    "should_refresh_filter",
    "should_verify_pending",
    "is_effective_query",
    "search_matches",
    "find_index_by_name",
    "next_selection",
    "prev_selection",
    "restore_selection",
    "SortMode",
    "compare_entries",
    "modified_epoch",
    "next_sort_mode",
    "sort_entries",
    "determine_sync_state",
    "sync_state_priority",
    "parse_rfc3339",
]
