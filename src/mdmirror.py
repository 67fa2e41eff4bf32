#!/usr/bin/env python3
import os
import sys

import gi
gi.require_version("Gtk", "3.0")
gi.require_version("GtkSource", "4")
from gi.repository import Gtk, Gdk

from config import SETTINGS_CONFIG
from controller import EditorController
from events import EventType, Event, get_event_bus
from repositories import MarkdownFileRepository
from services import DocumentService
from settings import SettingsManager
from ui import DocumentView, FileSidebar

SHORTCUTS = {
    'find': '<Ctrl>f',
    'close_find': 'Escape',
    'find_next': 'F3',
    'find_previous': '<Shift>F3',
    'cycle_view': '<Ctrl>e',
    'toggle_sidebar': '<Ctrl>b',
    'save': '<Ctrl>s',
    'open': '<Ctrl>o',
}


class MarkdownMirrorWindow(Gtk.Window):
    def __init__(self, path=None):
        super().__init__(title="mdmirror")

        self.event_bus = get_event_bus()
        self.settings_manager = SettingsManager(event_bus=self.event_bus)
        self.file_repository = MarkdownFileRepository()
        self.document_service = DocumentService(
            repository=self.file_repository,
            event_bus=self.event_bus,
        )
        self.controller = EditorController(
            document_service=self.document_service,
            settings_manager=self.settings_manager,
            event_bus=self.event_bus,
        )

        width = self.settings_manager.get('WINDOW_WIDTH', SETTINGS_CONFIG['WINDOW_WIDTH']['default'])
        height = self.settings_manager.get('WINDOW_HEIGHT', SETTINGS_CONFIG['WINDOW_HEIGHT']['default'])
        self.set_default_size(width, height)
        self.current_geometry = (width, height)

        gtk_settings = Gtk.Settings.get_default()
        if gtk_settings is not None:
            gtk_settings.set_property(
                "gtk-application-prefer-dark-theme",
                self.settings_manager.get('THEME') == 'dark',
            )

        self.document_view = DocumentView(
            self.controller,
            event_bus=self.event_bus,
            font_family=self.settings_manager.get('FONT_FAMILY'),
            font_size=self.settings_manager.get('FONT_SIZE'),
            preview_font_family=self.settings_manager.get('PREVIEW_FONT_FAMILY'),
        )
        self.sidebar = FileSidebar(
            self.file_repository,
            event_bus=self.event_bus,
            on_file_selected=self.open_file,
            on_directory_changed=self._on_directory_changed,
        )

        self.paned = Gtk.Paned(orientation=Gtk.Orientation.HORIZONTAL)
        self.paned.pack1(self.sidebar.widget, False, False)
        self.paned.pack2(self.document_view.widget, True, False)
        self.add(self.paned)

        self.event_bus.subscribe(EventType.SIDEBAR_TOGGLED, self._on_sidebar_toggled)
        self.event_bus.subscribe(EventType.DOCUMENT_LOADED, self._on_title_event)
        self.event_bus.subscribe(EventType.DOCUMENT_UPDATED, self._on_title_event)
        self.event_bus.subscribe(EventType.DOCUMENT_SAVED, self._on_title_event)
        self.event_bus.subscribe(EventType.ERROR_OCCURRED, self._on_error)

        directory = self.settings_manager.get('LAST_DIRECTORY') or os.getcwd()
        if path and os.path.isdir(path):
            directory = path
        self.sidebar.set_directory(directory)

        if path and os.path.isfile(path):
            self.open_file(path)
        else:
            self.document_service.new_document()

        self.connect("configure-event", self.on_configure_event)
        self.connect("delete-event", self.on_delete_event)
        self.connect("destroy", self.on_destroy)
        self.connect("key-press-event", self._on_global_key_press)

    def show_all(self):
        super().show_all()
        # Apply persisted visibility after widgets are realized
        self.sidebar.widget.set_visible(self.controller.sidebar_visible)
        self.document_view.apply_view_mode(self.controller.view_mode)
        self.document_view.focus_editor()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def open_file(self, path):
        if not self._confirm_discard():
            return
        self.document_service.open_document(path)

    def save_file(self):
        if self.document_service.path:
            return self.document_service.save_document()
        dialog = Gtk.FileChooserDialog(
            title="Save Markdown",
            transient_for=self,
            action=Gtk.FileChooserAction.SAVE,
        )
        dialog.add_buttons(
            Gtk.STOCK_CANCEL, Gtk.ResponseType.CANCEL,
            Gtk.STOCK_SAVE, Gtk.ResponseType.OK,
        )
        dialog.set_do_overwrite_confirmation(True)
        if self.sidebar.directory:
            dialog.set_current_folder(self.sidebar.directory)
        dialog.set_current_name("Untitled.md")
        response = dialog.run()
        path = dialog.get_filename()
        dialog.destroy()
        if response != Gtk.ResponseType.OK or not path:
            return False
        return self.document_service.save_document_as(path)

    def choose_file(self):
        dialog = Gtk.FileChooserDialog(
            title="Open Markdown",
            transient_for=self,
            action=Gtk.FileChooserAction.OPEN,
        )
        dialog.add_buttons(
            Gtk.STOCK_CANCEL, Gtk.ResponseType.CANCEL,
            Gtk.STOCK_OPEN, Gtk.ResponseType.OK,
        )
        md_filter = Gtk.FileFilter()
        md_filter.set_name("Markdown")
        md_filter.add_pattern("*.md")
        md_filter.add_pattern("*.markdown")
        dialog.add_filter(md_filter)
        if self.sidebar.directory:
            dialog.set_current_folder(self.sidebar.directory)
        response = dialog.run()
        path = dialog.get_filename()
        dialog.destroy()
        if response == Gtk.ResponseType.OK and path:
            self.open_file(path)

    def _confirm_discard(self):
        """Ask before dropping unsaved edits. Returns True to continue."""
        if not self.document_service.is_dirty:
            return True
        dialog = Gtk.MessageDialog(
            transient_for=self,
            modal=True,
            message_type=Gtk.MessageType.QUESTION,
            buttons=Gtk.ButtonsType.NONE,
            text=f"Save changes to {self.document_service.title}?",
        )
        dialog.add_buttons(
            "Discard", Gtk.ResponseType.NO,
            Gtk.STOCK_CANCEL, Gtk.ResponseType.CANCEL,
            Gtk.STOCK_SAVE, Gtk.ResponseType.YES,
        )
        response = dialog.run()
        dialog.destroy()
        if response == Gtk.ResponseType.YES:
            return self.save_file()
        return response == Gtk.ResponseType.NO

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_title_event(self, event: Event):
        marker = "*" if self.document_service.is_dirty else ""
        self.set_title(f"{marker}{self.document_service.title} - mdmirror")

    def _on_sidebar_toggled(self, event: Event):
        self.sidebar.widget.set_visible(event.data['visible'])

    def _on_directory_changed(self, directory):
        self.settings_manager.set('LAST_DIRECTORY', directory, emit_event=False)

    def _on_error(self, event: Event):
        message = event.data.get('message', 'Unknown error')
        print(f"[mdmirror] {message}")
        dialog = Gtk.MessageDialog(
            transient_for=self,
            modal=True,
            message_type=Gtk.MessageType.ERROR,
            buttons=Gtk.ButtonsType.OK,
            text=message,
        )
        dialog.run()
        dialog.destroy()

    def _on_global_key_press(self, widget, event):
        """Handle global keyboard shortcuts."""
        parts = []
        if event.state & Gdk.ModifierType.CONTROL_MASK:
            parts.append('<Ctrl>')
        if event.state & Gdk.ModifierType.SHIFT_MASK:
            parts.append('<Shift>')
        if event.state & Gdk.ModifierType.MOD1_MASK:
            parts.append('<Alt>')

        key_name = Gdk.keyval_name(event.keyval)
        if key_name:
            parts.append(key_name)
        current_combo = ''.join(parts)

        for action, shortcut in SHORTCUTS.items():
            if shortcut.lower() == current_combo.lower():
                return self._execute_shortcut_action(action)
        return False

    def _execute_shortcut_action(self, action):
        """Execute a shortcut action. Returns True if handled."""
        if action == 'find':
            self.document_view.open_search()
            return True
        elif action == 'close_find':
            if not self.controller.search_store.state.is_active:
                return False
            self.controller.close_search()
            return True
        elif action == 'find_next':
            self.controller.next_match()
            return True
        elif action == 'find_previous':
            self.controller.previous_match()
            return True
        elif action == 'cycle_view':
            self.controller.cycle_view_mode()
            return True
        elif action == 'toggle_sidebar':
            self.controller.toggle_sidebar()
            return True
        elif action == 'save':
            self.save_file()
            return True
        elif action == 'open':
            self.choose_file()
            return True
        return False

    # ------------------------------------------------------------------
    # Window lifecycle
    # ------------------------------------------------------------------

    def on_configure_event(self, widget, event):
        # Called whenever window is resized or moved
        if not self.is_maximized():
            self.current_geometry = self.get_size()
        return False

    def on_delete_event(self, widget, event):
        # Returning True keeps the window open
        return not self._confirm_discard()

    def on_destroy(self, widget):
        """Save settings and cleanup before closing."""
        self.settings_manager.set('WINDOW_WIDTH', self.current_geometry[0], emit_event=False)
        self.settings_manager.set('WINDOW_HEIGHT', self.current_geometry[1], emit_event=False)
        if self.sidebar.directory:
            self.settings_manager.set('LAST_DIRECTORY', self.sidebar.directory, emit_event=False)
        self.settings_manager.save()

        self.document_view.cleanup()
        self.sidebar.cleanup()
        self.controller.cleanup()
        Gtk.main_quit()


def main():
    path = sys.argv[1] if len(sys.argv) > 1 else None
    win = MarkdownMirrorWindow(path)
    win.show_all()
    Gtk.main()


if __name__ == "__main__":
    main()
