"""
Search engine: match finding and the search session store.
"""

from .types import MatchSpan, SearchOptions, SearchState, SearchTarget, TargetKind, ViewScope
from .match_finder import find, find_in_targets, extract_context
from .search_store import SearchStore

__all__ = [
    'MatchSpan',
    'SearchOptions',
    'SearchState',
    'SearchTarget',
    'TargetKind',
    'ViewScope',
    'find',
    'find_in_targets',
    'extract_context',
    'SearchStore',
]
