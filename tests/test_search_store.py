"""Tests for SearchStore: session lifecycle, debouncing, navigation and scope."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest

from events import EventBus, EventType
from search import SearchStore, SearchTarget, TargetKind, ViewScope
from fakes import FakeScheduler

TEXT = "The cat sat on the mat"


def make_store(targets=None, debounce_ms=300):
    bus = EventBus()
    scheduler = FakeScheduler()
    store = SearchStore(event_bus=bus, scheduler=scheduler, debounce_ms=debounce_ms)
    calls = []

    def provider():
        calls.append(1)
        return targets if targets is not None else [SearchTarget(TargetKind.BUFFER, TEXT)]

    store.set_targets_provider(provider)
    return store, bus, scheduler, calls


def record(bus, event_type=EventType.SEARCH_STATE_CHANGED):
    events = []
    bus.subscribe(event_type, events.append)
    return events


class TestLifecycle:

    def test_initial_state(self):
        store, _bus, _sched, _calls = make_store()
        state = store.state
        assert state.query == ""
        assert state.is_active is False
        assert state.results == ()
        assert state.cursor_index == 0

    def test_open_keeps_results(self):
        store, _bus, _sched, _calls = make_store()
        store.open()
        store.set_query("at")
        store.search([SearchTarget(TargetKind.BUFFER, TEXT)])
        store.open()
        assert store.state.total_matches == 3

    def test_close_resets_everything(self):
        store, _bus, _sched, _calls = make_store()
        store.open()
        store.set_query("at")
        store.search([SearchTarget(TargetKind.BUFFER, TEXT)])
        store.close()
        state = store.state
        assert (state.query, state.is_active, state.results, state.cursor_index) == ("", False, (), 0)

    def test_toggle(self):
        store, _bus, _sched, _calls = make_store()
        store.toggle()
        assert store.state.is_active
        store.toggle()
        assert not store.state.is_active

    def test_every_mutation_publishes_once(self):
        store, bus, _sched, _calls = make_store()
        events = record(bus)
        store.open()
        store.set_query("at")
        store.search([SearchTarget(TargetKind.BUFFER, TEXT)])
        store.next()
        store.close()
        assert [e.data['reason'] for e in events] == ['open', 'query', 'results', 'navigate', 'close']
        assert events[-1].data['state'] is store.state

    def test_listener_receives_state(self):
        store, _bus, _sched, _calls = make_store()
        seen = []
        listener = lambda state, reason: seen.append(reason)
        store.add_listener(listener)
        store.open()
        store.remove_listener(listener)
        store.close()
        assert seen == ['open']


class TestSearch:

    def test_search_sets_cursor_to_first(self):
        store, _bus, _sched, _calls = make_store()
        store.open()
        store.set_query("at")
        results = store.search([SearchTarget(TargetKind.BUFFER, TEXT)])
        assert len(results) == 3
        assert store.state.cursor_index == 1
        assert store.current_result().start == 5

    def test_search_with_no_match_has_zero_cursor(self):
        store, _bus, _sched, _calls = make_store()
        store.open()
        store.set_query("dog")
        store.search([SearchTarget(TargetKind.BUFFER, TEXT)])
        assert store.state.total_matches == 0
        assert store.state.cursor_index == 0
        assert store.status_text() == "0 of 0"

    def test_search_sees_query_written_just_before(self):
        store, _bus, _sched, _calls = make_store()
        store.open()
        store.set_query("mat")
        store.search([SearchTarget(TargetKind.BUFFER, TEXT)])
        assert [r.start for r in store.state.results] == [19]

    def test_search_while_inactive_is_noop(self):
        store, bus, _sched, _calls = make_store()
        events = record(bus)
        assert store.search([SearchTarget(TargetKind.BUFFER, TEXT)]) == []
        assert events == []
        assert store.state.results == ()

    def test_options_discard_results_and_research(self):
        store, _bus, _sched, calls = make_store()
        store.open()
        store.set_query("the")
        store.search([SearchTarget(TargetKind.BUFFER, TEXT)])
        assert store.state.total_matches == 2
        store.set_options(case_sensitive=True)
        assert calls == [1]
        assert store.state.total_matches == 1

    def test_unchanged_options_do_nothing(self):
        store, bus, _sched, _calls = make_store()
        events = record(bus)
        store.set_options(case_sensitive=False)
        assert events == []


class TestDebounce:

    def test_query_settles_after_quiet_period(self):
        store, bus, scheduler, calls = make_store()
        settled = record(bus, EventType.SEARCH_QUERY_SETTLED)
        store.open()
        store.set_query("at")
        assert store.has_pending_query
        scheduler.advance(299)
        assert calls == []
        scheduler.advance(1)
        assert calls == [1]
        assert [e.data['query'] for e in settled] == ["at"]
        assert store.state.total_matches == 3

    def test_rapid_queries_supersede(self):
        store, _bus, scheduler, calls = make_store()
        store.open()
        for query in ("c", "ca", "cat"):
            store.set_query(query)
            scheduler.advance(100)
        assert calls == []
        scheduler.advance(300)
        assert calls == [1]
        assert store.state.query == "cat"
        assert store.state.total_matches == 1

    def test_close_before_settle_cancels_search(self):
        store, bus, scheduler, calls = make_store()
        store.open()
        store.set_query("at")
        store.close()
        events = record(bus)
        scheduler.advance(1000)
        assert calls == []
        assert events == []
        assert store.state.results == ()
        assert not store.has_pending_query

    def test_same_query_after_reopen_searches_again(self):
        store, _bus, scheduler, calls = make_store()
        store.open()
        store.set_query("at")
        scheduler.advance(300)
        store.close()
        store.open()
        store.set_query("at")
        scheduler.advance(300)
        assert calls == [1, 1]
        assert store.state.total_matches == 3

    def test_settled_query_equal_to_last_is_suppressed(self):
        store, _bus, scheduler, calls = make_store()
        store.open()
        store.set_query("at")
        scheduler.advance(300)
        store.set_query("a")
        store.set_query("at")
        scheduler.advance(300)
        assert calls == [1]

    def test_retyped_query_restores_cursor(self):
        store, bus, scheduler, _calls = make_store()
        store.open()
        store.set_query("at")
        scheduler.advance(300)
        store.set_query("a")
        store.set_query("at")
        assert store.state.cursor_index == 0
        events = record(bus)
        scheduler.advance(300)
        assert store.state.cursor_index == 1
        assert store.status_text() == "1 of 3"
        assert [e.data['reason'] for e in events] == ['results']

    def test_settle_after_immediate_search_keeps_navigation(self):
        store, _bus, scheduler, calls = make_store()
        store.open()
        store.set_query("at")
        store.search([SearchTarget(TargetKind.BUFFER, TEXT)])
        store.next()
        scheduler.advance(300)
        assert calls == []
        assert store.state.cursor_index == 2

    def test_settle_researches_after_other_query_was_matched(self):
        store, _bus, scheduler, calls = make_store()
        store.open()
        store.set_query("at")
        scheduler.advance(300)
        store.set_query("mat")
        store.search([SearchTarget(TargetKind.BUFFER, TEXT)])
        store.set_query("at")
        scheduler.advance(300)
        assert calls == [1, 1]
        assert store.state.total_matches == 3

    def test_retyped_query_without_results_stays_at_zero(self):
        store, _bus, scheduler, _calls = make_store()
        store.open()
        store.set_query("dog")
        scheduler.advance(300)
        store.set_query("do")
        store.set_query("dog")
        scheduler.advance(300)
        assert store.status_text() == "0 of 0"


class TestRefresh:

    def test_refresh_keeps_cursor_in_range(self):
        store, bus, _scheduler, _calls = make_store()
        store.open()
        store.set_query("at")
        store.search([SearchTarget(TargetKind.BUFFER, TEXT)])
        store.next()
        store.next()
        events = record(bus)
        store.refresh([SearchTarget(TargetKind.BUFFER, TEXT + " at last")])
        assert store.state.total_matches == 4
        assert store.state.cursor_index == 3
        assert [e.data['reason'] for e in events] == ['refresh']

    def test_refresh_clamps_cursor(self):
        store, _bus, _scheduler, _calls = make_store()
        store.open()
        store.set_query("at")
        store.search([SearchTarget(TargetKind.BUFFER, TEXT)])
        store.previous()
        store.refresh([SearchTarget(TargetKind.BUFFER, "a cat")])
        assert store.state.cursor_index == 1
        store.refresh([SearchTarget(TargetKind.BUFFER, "nothing")])
        assert store.state.cursor_index == 0
        assert store.state.results == ()

    def test_refresh_while_inactive_is_noop(self):
        store, bus, _scheduler, _calls = make_store()
        events = record(bus)
        assert store.refresh([SearchTarget(TargetKind.BUFFER, TEXT)]) == []
        assert events == []


class TestNavigation:

    def _store_with_matches(self):
        store, bus, scheduler, calls = make_store()
        store.open()
        store.set_query("at")
        store.search([SearchTarget(TargetKind.BUFFER, TEXT)])
        return store

    def test_next_wraps(self):
        store = self._store_with_matches()
        cursors = []
        for _ in range(4):
            store.next()
            cursors.append(store.state.cursor_index)
        assert cursors == [2, 3, 1, 2]

    def test_previous_wraps(self):
        store = self._store_with_matches()
        store.previous()
        assert store.state.cursor_index == 3
        store.previous()
        assert store.state.cursor_index == 2

    def test_full_cycle_returns_to_start(self):
        store = self._store_with_matches()
        for _ in range(store.state.total_matches):
            store.next()
        assert store.state.cursor_index == 1

    def test_navigation_without_results_is_noop(self):
        store, bus, _sched, _calls = make_store()
        store.open()
        events = record(bus)
        store.next()
        store.previous()
        assert events == []
        assert store.state.cursor_index == 0

    def test_status_text(self):
        store = self._store_with_matches()
        store.next()
        assert store.status_text() == "2 of 3"


class TestScope:

    TARGETS = [
        SearchTarget(TargetKind.BUFFER, "**cat** and cat"),
        SearchTarget(TargetKind.RENDERED, "cat and cat"),
    ]

    def test_default_scope_is_both(self):
        store, _bus, _sched, _calls = make_store()
        assert store.state.view_scope is ViewScope.BOTH

    def test_scope_filters_targets(self):
        store, _bus, _sched, _calls = make_store()
        store.open()
        store.set_query("cat")
        store.set_view_scope(ViewScope.RENDERED)
        results = store.search(self.TARGETS)
        assert {r.target for r in results} == {TargetKind.RENDERED}

    def test_cycle_scope(self):
        store, _bus, _sched, _calls = make_store()
        assert store.cycle_scope() is ViewScope.BUFFER
        assert store.cycle_scope() is ViewScope.RENDERED
        assert store.cycle_scope() is ViewScope.BOTH

    def test_scope_survives_close(self):
        store, _bus, _sched, _calls = make_store()
        store.set_view_scope(ViewScope.BUFFER)
        store.close()
        assert store.state.view_scope is ViewScope.BUFFER

    def test_partition_maps_cursor_to_view(self):
        store, _bus, _sched, _calls = make_store()
        store.open()
        store.set_query("cat")
        store.search(self.TARGETS)
        assert store.state.total_matches == 4

        buffer_results, buffer_cursor = store.partition(TargetKind.BUFFER)
        rendered_results, rendered_cursor = store.partition(TargetKind.RENDERED)
        assert len(buffer_results) == 2 and buffer_cursor == 1
        assert len(rendered_results) == 2 and rendered_cursor == 0

        store.next()
        store.next()
        store.next()
        assert store.partition(TargetKind.BUFFER)[1] == 0
        assert store.partition(TargetKind.RENDERED)[1] == 2
