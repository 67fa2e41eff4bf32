"""
controller.py - Editor state and orchestration, decoupled from GTK UI.

This module provides the EditorController class that manages:
- The view mode (edit, preview, split) and sidebar visibility
- The search session and its projection onto the visible views
- Scroll synchronisation while both panes are shown

The controller only talks to the views through small surface objects, so
it can be driven without a display.
"""

from __future__ import annotations

from typing import List, Optional

from config import VIEW_MODES
from events import EventBus, Event, EventType, get_event_bus
from highlight import BufferHighlighter, TreeHighlighter
from scheduling import GLibScheduler
from search import SearchStore, SearchTarget, TargetKind, ViewScope
from services import DocumentService
from settings import SettingsManager
from sync import ScrollSyncEngine

VIEW_MODE_EDIT = 'edit'
VIEW_MODE_PREVIEW = 'preview'
VIEW_MODE_SPLIT = 'split'


class EditorController:
    """
    Wires the document, the search session, the highlighters and scroll sync.

    Views register a buffer surface (editor) and a tree surface (preview);
    the controller decides which of them take part in searching and
    highlighting based on the current view mode.
    """

    def __init__(
        self,
        document_service: Optional[DocumentService] = None,
        settings_manager: Optional[SettingsManager] = None,
        event_bus: Optional[EventBus] = None,
        scheduler=None,
        search_store: Optional[SearchStore] = None,
        scroll_sync: Optional[ScrollSyncEngine] = None,
    ):
        """
        Initialize the controller.

        Parameters
        ----------
        document_service : Optional[DocumentService]
            Owner of the document buffer. Created with defaults if None.
        settings_manager : Optional[SettingsManager]
            Persisted layout settings. Created with defaults if None.
        event_bus : Optional[EventBus]
            Event bus shared with the views. If None, uses global.
        scheduler : Optional[Scheduler]
            Deferred-callback source; the GLib main loop if None.
        """
        self._event_bus = event_bus or get_event_bus()
        self._scheduler = scheduler or GLibScheduler()
        self._settings_manager = settings_manager or SettingsManager(event_bus=self._event_bus)
        self._document_service = document_service or DocumentService(event_bus=self._event_bus)
        self._search_store = search_store or SearchStore(
            event_bus=self._event_bus,
            scheduler=self._scheduler,
        )
        self._scroll_sync = scroll_sync or ScrollSyncEngine(scheduler=self._scheduler)
        self._buffer_highlighter = BufferHighlighter(scroll_sync=self._scroll_sync)
        self._tree_highlighter = TreeHighlighter(
            scheduler=self._scheduler,
            scroll_sync=self._scroll_sync,
        )
        self._editor_surface = None
        self._preview_surface = None

        view_mode = self._settings_manager.get('VIEW_MODE', VIEW_MODE_PREVIEW)
        self._view_mode = view_mode if view_mode in VIEW_MODES else VIEW_MODE_PREVIEW
        self._sidebar_visible = bool(self._settings_manager.get('SIDEBAR_VISIBLE', True))

        self._search_store.set_targets_provider(self.collect_search_targets)
        self._event_bus.subscribe(EventType.SEARCH_STATE_CHANGED, self._on_search_state_changed)
        self._event_bus.subscribe(EventType.DOCUMENT_UPDATED, self._on_document_updated)
        self._event_bus.subscribe(EventType.DOCUMENT_LOADED, self._on_document_switched)
        self._event_bus.subscribe(EventType.DOCUMENT_CLOSED, self._on_document_switched)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def document_service(self) -> DocumentService:
        return self._document_service

    @property
    def search_store(self) -> SearchStore:
        return self._search_store

    @property
    def scroll_sync(self) -> ScrollSyncEngine:
        return self._scroll_sync

    @property
    def buffer_highlighter(self) -> BufferHighlighter:
        return self._buffer_highlighter

    @property
    def tree_highlighter(self) -> TreeHighlighter:
        return self._tree_highlighter

    @property
    def view_mode(self) -> str:
        return self._view_mode

    @property
    def sidebar_visible(self) -> bool:
        return self._sidebar_visible

    @property
    def buffer_visible(self) -> bool:
        return self._view_mode in (VIEW_MODE_EDIT, VIEW_MODE_SPLIT)

    @property
    def rendered_visible(self) -> bool:
        return self._view_mode in (VIEW_MODE_PREVIEW, VIEW_MODE_SPLIT)

    # ------------------------------------------------------------------
    # View registration and layout
    # ------------------------------------------------------------------

    def register_editor(self, surface) -> None:
        self._editor_surface = surface
        self._buffer_highlighter.set_surface(surface)
        self._update_scroll_sync()

    def register_preview(self, surface) -> None:
        self._preview_surface = surface
        self._tree_highlighter.set_surface(surface)
        self._tree_highlighter.clear(self._document_service.rendered_tree)
        self._update_scroll_sync()

    def set_view_mode(self, mode: str) -> None:
        if mode not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {mode}")
        if mode == self._view_mode:
            return
        self._view_mode = mode
        self._settings_manager.set('VIEW_MODE', mode)
        self._publish(EventType.VIEW_MODE_CHANGED, {'mode': mode})
        self._update_scroll_sync()
        if self._search_store.state.is_active and self._search_store.state.query:
            self._search_store.search(self.collect_search_targets())
        else:
            self.refresh_highlights()

    def cycle_view_mode(self) -> str:
        """Rotate preview -> edit -> split -> preview."""
        index = VIEW_MODES.index(self._view_mode)
        mode = VIEW_MODES[(index + 1) % len(VIEW_MODES)]
        self.set_view_mode(mode)
        return mode

    def toggle_sidebar(self) -> bool:
        self._sidebar_visible = not self._sidebar_visible
        self._settings_manager.set('SIDEBAR_VISIBLE', self._sidebar_visible)
        self._publish(EventType.SIDEBAR_TOGGLED, {'visible': self._sidebar_visible})
        return self._sidebar_visible

    def _update_scroll_sync(self) -> None:
        editor_pane = self._editor_surface.get_scroll_pane() if self._editor_surface else None
        preview_pane = self._preview_surface.get_scroll_pane() if self._preview_surface else None
        if self._view_mode == VIEW_MODE_SPLIT and editor_pane is not None and preview_pane is not None:
            self._scroll_sync.attach(editor_pane, preview_pane)
            self._scroll_sync.sync_from(editor_pane)
        else:
            self._scroll_sync.detach()

    # ------------------------------------------------------------------
    # Search actions
    # ------------------------------------------------------------------

    def open_search(self, initial_query: Optional[str] = None) -> None:
        """Open search; a selected word, if given, becomes the query and is searched at once."""
        self._search_store.open()
        if initial_query:
            self._search_store.set_query(initial_query)
            self._search_store.search(self.collect_search_targets())

    def close_search(self) -> None:
        self._search_store.close()

    def toggle_search(self) -> None:
        if self._search_store.state.is_active:
            self.close_search()
        else:
            self.open_search()

    def set_query(self, query: str) -> None:
        self._search_store.set_query(query)

    def search_now(self) -> None:
        """Search immediately with the current query (e.g. on Enter)."""
        self._search_store.search(self.collect_search_targets())

    def next_match(self) -> None:
        self._search_store.next()

    def previous_match(self) -> None:
        self._search_store.previous()

    def cycle_scope(self) -> ViewScope:
        scope = self._search_store.cycle_scope()
        if self._search_store.state.is_active and self._search_store.state.query:
            self._search_store.search(self.collect_search_targets())
        return scope

    def set_search_options(self, **changes) -> None:
        self._search_store.set_options(**changes)

    def collect_search_targets(self) -> List[SearchTarget]:
        """Targets for the views currently on screen, editor first."""
        targets: List[SearchTarget] = []
        if self.buffer_visible:
            targets.append(SearchTarget(TargetKind.BUFFER, self._document_service.content))
        if self.rendered_visible:
            targets.append(SearchTarget(
                TargetKind.RENDERED,
                self._document_service.rendered_tree.search_text(),
            ))
        return targets

    # ------------------------------------------------------------------
    # Highlight projection
    # ------------------------------------------------------------------

    def refresh_highlights(self, reveal: bool = True) -> None:
        """Project the search state onto the visible views; ``reveal`` moves the caret and scrolls."""
        state = self._search_store.state
        tree = self._document_service.rendered_tree
        if not state.is_active or not state.query:
            self._buffer_highlighter.clear()
            self._tree_highlighter.clear(tree)
            return

        if self.buffer_visible:
            results, cursor = self._search_store.partition(TargetKind.BUFFER)
            self._buffer_highlighter.render(
                self._document_service.content, results, cursor, reveal=reveal
            )
        else:
            self._buffer_highlighter.clear()

        if self.rendered_visible:
            results, cursor = self._search_store.partition(TargetKind.RENDERED)
            self._tree_highlighter.render(tree, results, cursor, reveal=reveal)

    def _on_search_state_changed(self, event: Event) -> None:
        # Edits re-match in place; the caret stays with the user.
        self.refresh_highlights(reveal=event.data.get('reason') != 'refresh')

    def _on_document_updated(self, event: Event) -> None:
        state = self._search_store.state
        if state.is_active and state.query:
            self._search_store.refresh(self.collect_search_targets())
        else:
            self._tree_highlighter.clear(self._document_service.rendered_tree)

    def _on_document_switched(self, event: Event) -> None:
        # Search state never carries over to another document.
        if self._search_store.state.is_active:
            self._search_store.close()
        else:
            self.refresh_highlights()

    # ------------------------------------------------------------------

    def _publish(self, event_type: EventType, data: dict) -> None:
        self._event_bus.publish(Event(type=event_type, data=data, source='editor_controller'))

    def cleanup(self) -> None:
        """Release listeners and scroll sync. Call when the window is destroyed."""
        self._search_store.close()
        self._scroll_sync.detach()
        self._event_bus.unsubscribe(EventType.SEARCH_STATE_CHANGED, self._on_search_state_changed)
        self._event_bus.unsubscribe(EventType.DOCUMENT_UPDATED, self._on_document_updated)
        self._event_bus.unsubscribe(EventType.DOCUMENT_LOADED, self._on_document_switched)
        self._event_bus.unsubscribe(EventType.DOCUMENT_CLOSED, self._on_document_switched)
