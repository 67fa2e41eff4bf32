"""Tests for SettingsRepository and SettingsManager."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest

from events import EventBus, EventType
from repositories import SettingsRepository, DEFAULT_SETTINGS
from settings import SettingsManager


def make_manager(tmp_path, event_bus=None):
    repo = SettingsRepository(settings_file=str(tmp_path / "settings.cfg"))
    return SettingsManager(repository=repo, event_bus=event_bus), repo


class TestSettingsRepository:

    def test_defaults_when_file_missing(self, tmp_path):
        repo = SettingsRepository(settings_file=str(tmp_path / "none.cfg"))
        assert repo.get_all() == DEFAULT_SETTINGS
        assert repo.get('view_mode') == 'preview'
        assert not repo.is_explicitly_set('VIEW_MODE')

    def test_load_typed_values(self, tmp_path):
        path = tmp_path / "settings.cfg"
        path.write_text(
            "# comment\n"
            "VIEW_MODE=split\n"
            "SIDEBAR_VISIBLE=false\n"
            "FONT_SIZE=15\n"
            "WINDOW_WIDTH=notanumber\n"
            "UNKNOWN_KEY=1\n"
        )
        repo = SettingsRepository(settings_file=str(path))
        assert repo.get('VIEW_MODE') == 'split'
        assert repo.get('SIDEBAR_VISIBLE') is False
        assert repo.get('FONT_SIZE') == 15
        assert repo.get('WINDOW_WIDTH') == DEFAULT_SETTINGS['WINDOW_WIDTH']
        assert repo.get('UNKNOWN_KEY') is None
        assert repo.is_explicitly_set('FONT_SIZE')

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "nested" / "settings.cfg"
        repo = SettingsRepository(settings_file=str(path))
        repo.set('LAST_DIRECTORY', '/tmp/notes')
        repo.set('SIDEBAR_VISIBLE', False)
        repo.save()

        content = path.read_text()
        assert content.startswith("# mdmirror Settings")
        assert "SIDEBAR_VISIBLE=false" in content

        reloaded = SettingsRepository(settings_file=str(path))
        assert reloaded.get('LAST_DIRECTORY') == '/tmp/notes'
        assert reloaded.get('SIDEBAR_VISIBLE') is False

    def test_set_rejects_bad_type(self, tmp_path):
        repo = SettingsRepository(settings_file=str(tmp_path / "s.cfg"))
        with pytest.raises(ValueError):
            repo.set('FONT_SIZE', 'large')

    def test_reset_to_defaults(self, tmp_path):
        repo = SettingsRepository(settings_file=str(tmp_path / "s.cfg"))
        repo.set('THEME', 'dark')
        repo.reset_to_defaults()
        assert repo.get('THEME') == 'light'


class TestSettingsManager:

    def test_get_with_default(self, tmp_path):
        manager, _repo = make_manager(tmp_path)
        assert manager.get('NONEXISTENT_KEY', 'fallback') == 'fallback'
        assert manager.get('VIEW_MODE') == 'preview'
        assert 'FONT_SIZE' in manager

    def test_set_coerces_and_emits(self, tmp_path):
        event_bus = EventBus()
        events = []
        event_bus.subscribe(EventType.SETTINGS_CHANGED, events.append)
        manager, _repo = make_manager(tmp_path, event_bus)

        manager.set('FONT_SIZE', '14')
        manager.set('SIDEBAR_VISIBLE', 'no')

        assert manager.get('FONT_SIZE') == 14
        assert manager.get('SIDEBAR_VISIBLE') is False
        assert [e.data['key'] for e in events] == ['FONT_SIZE', 'SIDEBAR_VISIBLE']
        assert events[0].data['old_value'] == 12

    def test_set_without_event(self, tmp_path):
        event_bus = EventBus()
        events = []
        event_bus.subscribe(EventType.SETTINGS_CHANGED, events.append)
        manager, _repo = make_manager(tmp_path, event_bus)
        manager.set('THEME', 'dark', emit_event=False)
        assert events == []
        assert manager['THEME'] == 'dark'

    def test_unchanged_value_emits_nothing(self, tmp_path):
        event_bus = EventBus()
        events = []
        event_bus.subscribe(EventType.SETTINGS_CHANGED, events.append)
        manager, _repo = make_manager(tmp_path, event_bus)
        manager.set('VIEW_MODE', 'preview')
        assert events == []

    def test_save_clears_dirty(self, tmp_path):
        manager, _repo = make_manager(tmp_path)
        manager['VIEW_MODE'] = 'split'
        assert manager.has_unsaved_changes()
        manager.save()
        assert not manager.has_unsaved_changes()
        assert (tmp_path / "settings.cfg").exists()

    def test_reload_discards_unsaved(self, tmp_path):
        manager, _repo = make_manager(tmp_path)
        manager.set('VIEW_MODE', 'edit')
        manager.save()
        manager.set('VIEW_MODE', 'split')
        manager.reload()
        assert manager.get('VIEW_MODE') == 'edit'
        assert not manager.has_unsaved_changes()
