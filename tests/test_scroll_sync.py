"""Tests for the bidirectional scroll sync engine."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest

from sync import ScrollSyncEngine, SyncState, scroll_percentage, apply_scroll_percentage
from fakes import FakePane, FakeScheduler


def attached_pair(cooldown_ms=500):
    scheduler = FakeScheduler()
    editor = FakePane(content=3000, viewport=1000)
    preview = FakePane(content=5000, viewport=1000)
    engine = ScrollSyncEngine(scheduler=scheduler, cooldown_ms=cooldown_ms)
    engine.attach(editor, preview)
    return engine, editor, preview, scheduler


class TestPercentage:

    def test_percentage_of_scrollable_range(self):
        pane = FakePane(content=3000, viewport=1000)
        pane.offset = 500
        assert scroll_percentage(pane) == pytest.approx(0.25)

    def test_percentage_clamped(self):
        pane = FakePane(content=3000, viewport=1000)
        pane.offset = 5000
        assert scroll_percentage(pane) == 1.0

    def test_content_shorter_than_viewport(self):
        pane = FakePane(content=500, viewport=1000)
        assert scroll_percentage(pane) == 0.0
        apply_scroll_percentage(pane, 0.5)
        assert pane.offset == 0.0


class TestScrollSync:

    def test_attach_and_state(self, capsys):
        engine, editor, preview, _ = attached_pair()
        assert engine.state is SyncState.ATTACHED
        assert engine.is_active()
        assert editor.listener_count == 1 and preview.listener_count == 1
        assert "[ScrollSync]" in capsys.readouterr().out

    def test_user_scroll_is_mirrored_by_percentage(self):
        engine, editor, preview, scheduler = attached_pair()
        editor.user_scroll(1000)  # 50% of 2000
        assert preview.offset == pytest.approx(2000)  # 50% of 4000
        scheduler.run_idle()
        assert abs(scroll_percentage(editor) - scroll_percentage(preview)) < 0.01

    def test_mirrored_write_does_not_echo(self):
        engine, editor, preview, scheduler = attached_pair()
        editor.user_scroll(1000)
        assert engine.mirrored_writes == 1
        assert len(preview.writes) == 1
        assert len(editor.writes) == 1  # only the user's own scroll

    def test_guard_released_after_frame(self):
        engine, editor, preview, scheduler = attached_pair()
        editor.user_scroll(400)
        assert engine.is_syncing
        preview.user_scroll(100)  # same frame: ignored
        assert engine.mirrored_writes == 1
        scheduler.run_idle()
        assert not engine.is_syncing
        preview.user_scroll(4000)
        assert engine.mirrored_writes == 2
        assert editor.offset == pytest.approx(2000)

    def test_scroll_to_position_holds_guard_for_cooldown(self):
        engine, editor, preview, scheduler = attached_pair(cooldown_ms=500)
        editor.user_scroll(300)
        assert engine.mirrored_writes == 1
        engine.scroll_to_position(editor, 1200)
        assert editor.writes[-1] == (1200, True)
        assert len(preview.writes) == 1
        # The frame release must not drop a guard the cool-down owns.
        scheduler.run_idle()
        assert engine.is_syncing
        editor.user_scroll(1300)
        scheduler.advance(499)
        assert engine.is_syncing
        scheduler.advance(1)
        assert not engine.is_syncing
        assert engine.mirrored_writes == 1

    def test_user_scroll_after_cooldown_syncs(self):
        engine, editor, preview, scheduler = attached_pair()
        engine.scroll_to_position(editor, 1200)
        scheduler.advance(500)
        editor.user_scroll(2000)
        assert preview.offset == pytest.approx(4000)

    def test_repeated_jumps_restart_cooldown(self):
        engine, editor, preview, scheduler = attached_pair()
        engine.scroll_to_position(editor, 100)
        scheduler.advance(400)
        engine.scroll_to_position(editor, 200)
        scheduler.advance(400)
        assert engine.is_syncing
        scheduler.advance(100)
        assert not engine.is_syncing
        assert scheduler.pending_timers == 0

    def test_scroll_to_position_without_pane_is_noop(self):
        engine, _editor, _preview, scheduler = attached_pair()
        engine.scroll_to_position(None, 100)
        assert not engine.is_syncing
        assert scheduler.pending_timers == 0

    def test_sync_from(self):
        engine, editor, preview, scheduler = attached_pair()
        editor.offset = 2000
        engine.sync_from(editor)
        assert preview.offset == pytest.approx(4000)
        assert engine.mirrored_writes == 1

    def test_detach_removes_listeners_and_timers(self):
        engine, editor, preview, scheduler = attached_pair()
        editor.user_scroll(500)
        engine.scroll_to_position(editor, 100)
        engine.detach()
        assert engine.state is SyncState.DETACHED
        assert editor.listener_count == 0 and preview.listener_count == 0
        assert scheduler.pending_timers == 0 and scheduler.pending_idle == 0
        assert not engine.is_syncing
        writes = len(preview.writes)
        editor.user_scroll(900)
        assert len(preview.writes) == writes

    def test_attach_replaces_previous_pair(self):
        engine, editor, preview, scheduler = attached_pair()
        other = FakePane()
        engine.attach(editor, other)
        assert preview.listener_count == 0
        assert editor.listener_count == 1

    def test_attach_with_missing_pane(self, capsys):
        engine = ScrollSyncEngine(scheduler=FakeScheduler())
        engine.attach(FakePane(), None)
        assert engine.state is SyncState.DETACHED
        assert "Could not attach" in capsys.readouterr().out
