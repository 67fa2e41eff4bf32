"""
Owner of the search session state.

All mutations go through SearchStore; views only read the published
SearchState snapshots and react to SEARCH_STATE_CHANGED events.
"""

from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Tuple

from config import SEARCH_DEBOUNCE_MS, MAX_SEARCH_DOCUMENT_CHARS
from events import EventBus, Event, EventType
from scheduling import Debouncer, Scheduler, GLibScheduler
from .match_finder import find_in_targets
from .types import MatchSpan, SearchOptions, SearchState, SearchTarget, TargetKind, ViewScope


class SearchStore:
    """
    Holds the query, options, results and 1-based cursor of the search session.

    Handles:
    - Immediate query updates with a debounced re-search
    - Cyclic next/previous navigation
    - View scope selection for subsequent searches
    - One SEARCH_STATE_CHANGED event per mutating operation
    """

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        scheduler: Optional[Scheduler] = None,
        debounce_ms: int = SEARCH_DEBOUNCE_MS,
        max_chars: Optional[int] = MAX_SEARCH_DOCUMENT_CHARS,
    ):
        self._event_bus = event_bus
        self._scheduler = scheduler or GLibScheduler()
        self._state = SearchState()
        self._options = SearchOptions()
        self._matched_query: Optional[str] = None
        self._max_chars = max_chars
        self._targets_provider: Optional[Callable[[], Iterable[SearchTarget]]] = None
        self._debouncer = Debouncer(
            self._scheduler,
            debounce_ms,
            self._on_query_settled,
            on_repeat=self._settle,
        )
        self._listeners: List[Callable[[SearchState, str], None]] = []

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def options(self) -> SearchOptions:
        return self._options

    @property
    def has_pending_query(self) -> bool:
        return self._debouncer.is_pending

    def set_targets_provider(self, provider: Optional[Callable[[], Iterable[SearchTarget]]]) -> None:
        """Install the callable that supplies the current targets when a query settles."""
        self._targets_provider = provider

    def add_listener(self, listener: Callable[[SearchState, str], None]) -> None:
        """Register a direct callback ``listener(state, reason)`` alongside the event bus."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[SearchState, str], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Activate the search session without touching existing results."""
        self._commit(replace(self._state, is_active=True), 'open')

    def close(self) -> None:
        """Reset to the empty, inactive state and drop any pending debounced query."""
        self._debouncer.reset()
        self._matched_query = None
        self._commit(SearchState(view_scope=self._state.view_scope), 'close')

    def toggle(self) -> None:
        if self._state.is_active:
            self.close()
        else:
            self.open()

    # ------------------------------------------------------------------
    # Query and matching
    # ------------------------------------------------------------------

    def set_query(self, query: str) -> None:
        """
        Update the query immediately and schedule a debounced re-search.

        The written query is visible to a ``search()`` call made right after
        this one; only the automatic re-search waits for the quiet period.
        """
        self._commit(replace(self._state, query=query, cursor_index=0), 'query')
        self._debouncer.push(query)

    def set_options(self, **changes) -> None:
        """Replace the match options; prior results are discarded."""
        options = replace(self._options, **changes)
        if options == self._options:
            return
        self._options = options
        self._matched_query = None
        self._commit(replace(self._state, results=(), cursor_index=0), 'options')
        if self._state.is_active and self._state.query and self._targets_provider:
            self.search(self._targets_provider())

    def search(self, targets: Iterable[SearchTarget]) -> List[MatchSpan]:
        """
        Run the matcher over every in-scope target with the current query.

        Results keep the order of ``targets``, then offset order within a
        target. The cursor lands on the first match, or 0 when there is none.
        """
        state = self._state
        if not state.is_active:
            return []
        scoped = [t for t in targets if state.view_scope.includes(t.kind)]
        results = find_in_targets(state.query, scoped, self._options, max_chars=self._max_chars)
        self._matched_query = state.query
        self._commit(replace(
            state,
            results=tuple(results),
            cursor_index=1 if results else 0,
        ), 'results')
        return results

    def refresh(self, targets: Iterable[SearchTarget]) -> List[MatchSpan]:
        """
        Re-match after the searched text changed, keeping the cursor where it can.

        The cursor stays on the same ordinal when it is still in range, is
        clamped to the last match otherwise, and becomes 1 when it was 0.
        """
        state = self._state
        if not state.is_active:
            return []
        scoped = [t for t in targets if state.view_scope.includes(t.kind)]
        results = find_in_targets(state.query, scoped, self._options, max_chars=self._max_chars)
        self._matched_query = state.query
        cursor = min(max(state.cursor_index, 1), len(results))
        self._commit(replace(state, results=tuple(results), cursor_index=cursor), 'refresh')
        return results

    def _on_query_settled(self, query: str) -> None:
        if self._event_bus:
            self._event_bus.publish(Event(
                type=EventType.SEARCH_QUERY_SETTLED,
                data={'query': query},
                source='search_store',
            ))
        self._settle(query)

    def _settle(self, query: str) -> None:
        state = self._state
        if not state.is_active or state.query != query:
            return
        if self._matched_query == query:
            # Results already belong to this query; only the cursor may need restoring.
            if state.results and state.cursor_index == 0:
                self._commit(replace(state, cursor_index=1), 'results')
        elif self._targets_provider:
            self.search(self._targets_provider())

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def next(self) -> None:
        """Advance the cursor, wrapping from the last match to the first."""
        total = self._state.total_matches
        if total == 0:
            return
        current = self._state.cursor_index
        index = current + 1 if current < total else 1
        self._commit(replace(self._state, cursor_index=index), 'navigate')

    def previous(self) -> None:
        """Move the cursor back, wrapping from the first match to the last."""
        total = self._state.total_matches
        if total == 0:
            return
        current = self._state.cursor_index
        index = current - 1 if current > 1 else total
        self._commit(replace(self._state, cursor_index=index), 'navigate')

    def current_result(self) -> Optional[MatchSpan]:
        return self._state.current_result

    # ------------------------------------------------------------------
    # Scope
    # ------------------------------------------------------------------

    def set_view_scope(self, scope: ViewScope) -> None:
        """Choose which views take part in later searches. Does not re-search."""
        self._matched_query = None
        self._commit(replace(self._state, view_scope=scope), 'scope')

    def cycle_scope(self) -> ViewScope:
        scope = self._state.view_scope.next()
        self.set_view_scope(scope)
        return scope

    def partition(self, kind: TargetKind) -> Tuple[List[MatchSpan], int]:
        """
        Return the results belonging to one view and the cursor local to them.

        The local cursor is 0 when the active match lives in the other view.
        """
        state = self._state
        results: List[MatchSpan] = []
        local_cursor = 0
        for ordinal, span in enumerate(state.results, start=1):
            if span.target is not kind:
                continue
            results.append(span)
            if ordinal == state.cursor_index:
                local_cursor = len(results)
        return results, local_cursor

    def status_text(self) -> str:
        state = self._state
        return f"{state.cursor_index} of {state.total_matches}"

    # ------------------------------------------------------------------

    def _commit(self, state: SearchState, reason: str) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state, reason)
        if self._event_bus:
            self._event_bus.publish(Event(
                type=EventType.SEARCH_STATE_CHANGED,
                data={'state': state, 'reason': reason},
                source='search_store',
            ))
