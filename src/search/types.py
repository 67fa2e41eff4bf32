"""
Value types shared by the search, highlight and controller layers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class TargetKind(Enum):
    """Which representation of the document a search target comes from."""
    BUFFER = 'buffer'
    RENDERED = 'rendered'


class ViewScope(Enum):
    """Which views participate in a search."""
    BUFFER = 'buffer'
    RENDERED = 'rendered'
    BOTH = 'both'

    def includes(self, kind: TargetKind) -> bool:
        if self is ViewScope.BOTH:
            return True
        return self.value == kind.value

    def next(self) -> 'ViewScope':
        order = (ViewScope.BUFFER, ViewScope.RENDERED, ViewScope.BOTH)
        return order[(order.index(self) + 1) % len(order)]


@dataclass(frozen=True)
class SearchOptions:
    """Match rules applied to one search invocation."""
    case_sensitive: bool = False
    whole_word: bool = False
    use_regex: bool = False


@dataclass(frozen=True)
class MatchSpan:
    """A half-open ``[start, end)`` hit inside one search target."""
    start: int
    end: int
    matched_text: str
    context: str = ""
    target: TargetKind = TargetKind.BUFFER

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class SearchTarget:
    """Text content of one visible view, supplied by the caller of ``search()``."""
    kind: TargetKind
    content: str


@dataclass(frozen=True)
class SearchState:
    """
    Snapshot of the search session.

    ``cursor_index`` is 1-based; 0 means nothing is selected. Instances are
    never mutated, the store publishes a new snapshot for every change.
    """
    query: str = ""
    is_active: bool = False
    results: Tuple[MatchSpan, ...] = field(default_factory=tuple)
    cursor_index: int = 0
    view_scope: ViewScope = ViewScope.BOTH

    @property
    def total_matches(self) -> int:
        return len(self.results)

    @property
    def current_result(self):
        if self.cursor_index == 0 or not self.results:
            return None
        return self.results[self.cursor_index - 1]
