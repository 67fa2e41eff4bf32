"""
Document view UI component.

This component provides the editing interface with:
- Raw markdown editor and rendered preview, alone or side by side
- Find bar with match options, search scope and "n of m" counter
- Toolbar cycling the view mode
"""

from typing import Optional

import gi
gi.require_version('Gtk', '3.0')
gi.require_version('GtkSource', '4')
from gi.repository import Gtk, Gdk, GtkSource

from .base import UIComponent
from .panes import SourceEditorSurface, RenderedTreeSurface
from controller import EditorController, VIEW_MODE_EDIT, VIEW_MODE_PREVIEW, VIEW_MODE_SPLIT
from events import EventBus, EventType, Event
from search import ViewScope

_SCOPE_LABELS = {
    ViewScope.BUFFER: "Editor",
    ViewScope.RENDERED: "Preview",
    ViewScope.BOTH: "Both",
}

_VIEW_MODE_LABELS = {
    VIEW_MODE_PREVIEW: "Preview",
    VIEW_MODE_EDIT: "Edit",
    VIEW_MODE_SPLIT: "Split",
}


class DocumentView(UIComponent):
    """
    Editor and preview panes plus the find bar for one open document.
    """

    def __init__(
        self,
        controller: EditorController,
        event_bus: Optional[EventBus] = None,
        font_family: str = "Monospace",
        font_size: int = 12,
        preview_font_family: str = "Sans",
    ):
        super().__init__(event_bus)
        self._controller = controller
        self._font_family = font_family
        self._font_size = font_size
        self._preview_font_family = preview_font_family

        # Flag to prevent feedback loops during programmatic updates
        self._updating_programmatically = False
        self._updating_find_bar = False

        self._widget = self._build_ui()

        self._controller.register_editor(SourceEditorSurface(self._text_view, self._edit_scrolled))
        self._controller.register_preview(RenderedTreeSurface(self._preview_view, self._preview_scrolled))
        self.apply_view_mode(self._controller.view_mode)

        self.subscribe(EventType.SEARCH_STATE_CHANGED, self._on_search_state_changed)
        self.subscribe(EventType.VIEW_MODE_CHANGED, self._on_view_mode_changed)
        self.subscribe(EventType.DOCUMENT_LOADED, self._on_document_loaded)
        self.subscribe(EventType.DOCUMENT_CLOSED, self._on_document_loaded)

    @property
    def widget(self) -> Gtk.Widget:
        return self._widget

    def _build_ui(self) -> Gtk.Box:
        """Build the document view UI."""
        container = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=0)

        # Edit view (GtkSource)
        edit_scrolled = Gtk.ScrolledWindow()
        edit_scrolled.set_policy(Gtk.PolicyType.AUTOMATIC, Gtk.PolicyType.AUTOMATIC)
        edit_scrolled.set_vexpand(True)
        edit_scrolled.set_hexpand(True)
        self._edit_scrolled = edit_scrolled

        self._text_view = GtkSource.View()
        self._text_view.set_wrap_mode(Gtk.WrapMode.WORD)
        self._text_view.set_editable(True)
        self._text_view.set_cursor_visible(True)
        self._text_view.set_show_line_numbers(False)
        self._text_view.set_auto_indent(True)
        self._text_view.set_tab_width(4)
        self._text_view.set_insert_spaces_instead_of_tabs(True)
        self._text_view.set_left_margin(12)
        self._text_view.set_right_margin(12)
        self._text_view.set_top_margin(12)
        self._text_view.set_bottom_margin(12)
        self.apply_css(self._text_view, f"""
            textview {{
                font-family: {self._font_family};
                font-size: {self._font_size}pt;
            }}
        """)

        self._buffer = GtkSource.Buffer()
        lang_manager = GtkSource.LanguageManager.get_default()
        markdown_lang = lang_manager.get_language('markdown')
        if markdown_lang:
            self._buffer.set_language(markdown_lang)
        self._text_view.set_buffer(self._buffer)
        self._buffer.connect('changed', self._on_buffer_changed)
        edit_scrolled.add(self._text_view)

        # Preview view (rendered tree)
        preview_scrolled = Gtk.ScrolledWindow()
        preview_scrolled.set_policy(Gtk.PolicyType.AUTOMATIC, Gtk.PolicyType.AUTOMATIC)
        preview_scrolled.set_vexpand(True)
        preview_scrolled.set_hexpand(True)
        self._preview_scrolled = preview_scrolled

        self._preview_view = Gtk.TextView()
        self._preview_view.set_editable(False)
        self._preview_view.set_cursor_visible(False)
        self._preview_view.set_wrap_mode(Gtk.WrapMode.WORD_CHAR)
        self._preview_view.set_left_margin(16)
        self._preview_view.set_right_margin(16)
        self._preview_view.set_top_margin(12)
        self._preview_view.set_bottom_margin(12)
        self.apply_css(self._preview_view, f"""
            textview {{
                font-family: {self._preview_font_family};
                font-size: {self._font_size}pt;
            }}
        """)
        preview_scrolled.add(self._preview_view)

        self._paned = Gtk.Paned(orientation=Gtk.Orientation.HORIZONTAL)
        self._paned.pack1(edit_scrolled, True, False)
        self._paned.pack2(preview_scrolled, True, False)

        container.pack_start(self._build_toolbar(), False, False, 0)
        container.pack_start(self._build_find_bar(), False, False, 0)
        container.pack_start(self._paned, True, True, 0)
        return container

    def _build_toolbar(self) -> Gtk.Box:
        """Build the document toolbar."""
        toolbar = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=6)
        toolbar.set_margin_start(6)
        toolbar.set_margin_end(6)
        toolbar.set_margin_top(4)
        toolbar.set_margin_bottom(4)

        self._view_mode_btn = Gtk.Button(label=_VIEW_MODE_LABELS[self._controller.view_mode])
        self._view_mode_btn.set_tooltip_text("Cycle view mode (Ctrl+E)")
        self._view_mode_btn.connect("clicked", lambda _w: self._controller.cycle_view_mode())
        toolbar.pack_start(self._view_mode_btn, False, False, 0)

        find_btn = Gtk.Button.new_from_icon_name("edit-find-symbolic", Gtk.IconSize.SMALL_TOOLBAR)
        find_btn.set_tooltip_text("Find (Ctrl+F)")
        find_btn.connect("clicked", lambda _w: self.open_search())
        toolbar.pack_end(find_btn, False, False, 0)
        return toolbar

    def _build_find_bar(self) -> Gtk.Revealer:
        """Build the find bar."""
        self._find_revealer = Gtk.Revealer()
        self._find_revealer.set_transition_type(Gtk.RevealerTransitionType.SLIDE_DOWN)
        self._find_revealer.set_reveal_child(False)

        box = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=6)
        box.set_margin_start(6)
        box.set_margin_end(6)
        box.set_margin_top(4)
        box.set_margin_bottom(4)

        self._find_entry = Gtk.SearchEntry()
        self._find_entry.set_placeholder_text("Find")
        self._find_entry.set_hexpand(True)
        self._find_entry.connect("key-press-event", self._on_find_entry_key_press)
        self._find_entry.connect("changed", self._on_find_text_changed)
        box.pack_start(self._find_entry, True, True, 0)

        self._case_toggle = Gtk.ToggleButton(label="Aa")
        self._case_toggle.set_tooltip_text("Match case")
        self._case_toggle.connect(
            "toggled", lambda b: self._controller.set_search_options(case_sensitive=b.get_active())
        )
        box.pack_start(self._case_toggle, False, False, 0)

        self._word_toggle = Gtk.ToggleButton(label="W")
        self._word_toggle.set_tooltip_text("Whole word")
        self._word_toggle.connect(
            "toggled", lambda b: self._controller.set_search_options(whole_word=b.get_active())
        )
        box.pack_start(self._word_toggle, False, False, 0)

        self._regex_toggle = Gtk.ToggleButton(label=".*")
        self._regex_toggle.set_tooltip_text("Regular expression")
        self._regex_toggle.connect(
            "toggled", lambda b: self._controller.set_search_options(use_regex=b.get_active())
        )
        box.pack_start(self._regex_toggle, False, False, 0)

        self._scope_btn = Gtk.Button(label=_SCOPE_LABELS[self._controller.search_store.state.view_scope])
        self._scope_btn.set_tooltip_text("Search in editor, preview or both")
        self._scope_btn.connect("clicked", lambda _w: self._controller.cycle_scope())
        box.pack_start(self._scope_btn, False, False, 0)

        self._count_label = Gtk.Label(label="0 of 0")
        self._count_label.set_width_chars(9)
        box.pack_start(self._count_label, False, False, 0)

        prev_btn = Gtk.Button.new_from_icon_name("go-up-symbolic", Gtk.IconSize.SMALL_TOOLBAR)
        prev_btn.set_tooltip_text("Find previous (Shift+F3)")
        prev_btn.connect("clicked", lambda _w: self._controller.previous_match())
        box.pack_start(prev_btn, False, False, 0)

        next_btn = Gtk.Button.new_from_icon_name("go-down-symbolic", Gtk.IconSize.SMALL_TOOLBAR)
        next_btn.set_tooltip_text("Find next (F3)")
        next_btn.connect("clicked", lambda _w: self._controller.next_match())
        box.pack_start(next_btn, False, False, 0)

        close_btn = Gtk.Button.new_from_icon_name("window-close-symbolic", Gtk.IconSize.SMALL_TOOLBAR)
        close_btn.set_tooltip_text("Close find (Escape)")
        close_btn.connect("clicked", lambda _w: self._controller.close_search())
        box.pack_start(close_btn, False, False, 0)

        self._find_revealer.add(box)
        return self._find_revealer

    # ------------------------------------------------------------------
    # Signal handlers
    # ------------------------------------------------------------------

    def _on_buffer_changed(self, buffer: GtkSource.Buffer) -> None:
        if self._updating_programmatically:
            return
        self._controller.document_service.set_content(self.get_content())

    def _on_find_text_changed(self, entry: Gtk.SearchEntry) -> None:
        if self._updating_find_bar:
            return
        self._controller.set_query(entry.get_text())

    def _on_find_entry_key_press(self, _widget, event) -> bool:
        """Enter/Shift+Enter navigate, Escape closes."""
        key_name = Gdk.keyval_name(event.keyval) or ""
        if key_name in ("Return", "KP_Enter"):
            if self._controller.search_store.state.total_matches == 0:
                self._controller.search_now()
            elif event.state & Gdk.ModifierType.SHIFT_MASK:
                self._controller.previous_match()
            else:
                self._controller.next_match()
            return True
        if key_name == "Escape":
            self._controller.close_search()
            return True
        return False

    def _on_search_state_changed(self, event: Event) -> None:
        state = event.data['state']
        self._count_label.set_text(self._controller.search_store.status_text())
        self._scope_btn.set_label(_SCOPE_LABELS[state.view_scope])
        if self._find_revealer.get_reveal_child() != state.is_active:
            self._find_revealer.set_reveal_child(state.is_active)
        if not state.is_active and self._find_entry.get_text():
            self._updating_find_bar = True
            try:
                self._find_entry.set_text("")
            finally:
                self._updating_find_bar = False
            self._text_view.grab_focus()

    def _on_view_mode_changed(self, event: Event) -> None:
        self.apply_view_mode(event.data['mode'])

    def _on_document_loaded(self, event: Event) -> None:
        self.set_content(self._controller.document_service.content)

    def apply_view_mode(self, mode: str) -> None:
        """Show the panes that belong to ``mode``."""
        self._view_mode_btn.set_label(_VIEW_MODE_LABELS[mode])
        self._edit_scrolled.set_visible(mode in (VIEW_MODE_EDIT, VIEW_MODE_SPLIT))
        self._preview_scrolled.set_visible(mode in (VIEW_MODE_PREVIEW, VIEW_MODE_SPLIT))
        if mode == VIEW_MODE_SPLIT:
            width = self._paned.get_allocated_width()
            if width > 0:
                self._paned.set_position(width // 2)

    # ------------------------------------------------------------------
    # Public methods
    # ------------------------------------------------------------------

    def open_search(self) -> None:
        """Open the find bar, seeding it with a single-line selection."""
        selection = self._selected_text()
        self._controller.open_search(selection if selection and "\n" not in selection else None)
        if selection and "\n" not in selection:
            self._updating_find_bar = True
            try:
                self._find_entry.set_text(selection)
            finally:
                self._updating_find_bar = False
        self._find_entry.grab_focus()

    def set_content(self, content: str) -> None:
        """Set the document content programmatically."""
        self._updating_programmatically = True
        try:
            self._buffer.set_text(content)
        finally:
            self._updating_programmatically = False

    def get_content(self) -> str:
        """Get the current document content."""
        return self._buffer.get_text(
            self._buffer.get_start_iter(),
            self._buffer.get_end_iter(),
            True
        )

    def _selected_text(self) -> str:
        if not self._buffer.get_has_selection():
            return ""
        start, end = self._buffer.get_selection_bounds()
        return self._buffer.get_text(start, end, True)

    def focus_editor(self) -> None:
        """Focus the document editor."""
        self._text_view.grab_focus()
