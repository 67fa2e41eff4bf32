"""
File sidebar UI component.

Shows the markdown files under a directory as a tree and opens the
activated file.
"""

import os
from typing import Callable, List, Optional

import gi
gi.require_version('Gtk', '3.0')
from gi.repository import Gtk, Gdk, Pango

from .base import UIComponent
from events import EventBus, EventType, Event
from repositories import MarkdownFileRepository, FileTreeNode

# TreeStore columns
_COL_NAME = 0
_COL_PATH = 1
_COL_IS_DIR = 2


class FileSidebar(UIComponent):
    """
    Sidebar listing markdown files under the current directory.

    Features:
    - Directories first, empty directories hidden
    - Folder chooser and refresh buttons
    - Selection follows the open document
    """

    def __init__(
        self,
        repository: MarkdownFileRepository,
        event_bus: Optional[EventBus] = None,
        on_file_selected: Optional[Callable[[str], None]] = None,
        on_directory_changed: Optional[Callable[[str], None]] = None,
        width: int = 220,
    ):
        """
        Initialize the file sidebar.

        Parameters
        ----------
        repository : MarkdownFileRepository
            Source of the file listing.
        event_bus : Optional[EventBus]
            Event bus for communication.
        on_file_selected : Optional[Callable[[str], None]]
            Callback when a file row is activated.
        on_directory_changed : Optional[Callable[[str], None]]
            Callback when a new root directory is chosen.
        width : int
            Initial sidebar width.
        """
        super().__init__(event_bus)
        self._repository = repository
        self._on_file_selected = on_file_selected
        self._on_directory_changed = on_directory_changed
        self._directory: Optional[str] = None
        self._current_path: Optional[str] = None

        self.widget = self._build_ui()
        self.widget.set_size_request(width, -1)

        self.subscribe(EventType.DOCUMENT_LOADED, self._on_document_event)
        self.subscribe(EventType.DOCUMENT_SAVED, self._on_document_saved)

    @property
    def directory(self) -> Optional[str]:
        return self._directory

    def _build_ui(self) -> Gtk.Box:
        """Build the sidebar UI."""
        box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=8)
        box.set_margin_top(10)
        box.set_margin_bottom(10)
        box.set_margin_start(10)
        box.set_margin_end(10)

        top_row = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=4)

        folder_btn = Gtk.Button()
        folder_btn.set_image(Gtk.Image.new_from_icon_name("folder-open-symbolic", Gtk.IconSize.BUTTON))
        folder_btn.set_tooltip_text("Open Folder")
        folder_btn.connect("clicked", self._on_choose_folder)
        top_row.pack_start(folder_btn, False, False, 0)

        refresh_btn = Gtk.Button()
        refresh_btn.set_image(Gtk.Image.new_from_icon_name("view-refresh-symbolic", Gtk.IconSize.BUTTON))
        refresh_btn.set_tooltip_text("Refresh")
        refresh_btn.connect("clicked", lambda _b: self.refresh(force=True))
        top_row.pack_start(refresh_btn, False, False, 0)

        self._dir_label = Gtk.Label(label="")
        self._dir_label.set_xalign(0)
        self._dir_label.set_ellipsize(Pango.EllipsizeMode.END)
        top_row.pack_start(self._dir_label, True, True, 0)

        box.pack_start(top_row, False, False, 0)

        scrolled = Gtk.ScrolledWindow()
        scrolled.set_policy(Gtk.PolicyType.NEVER, Gtk.PolicyType.AUTOMATIC)
        box.pack_start(scrolled, True, True, 0)

        self._store = Gtk.TreeStore(str, str, bool)
        self._tree_view = Gtk.TreeView(model=self._store)
        self._tree_view.set_headers_visible(False)
        self._tree_view.get_style_context().add_class('navigation-sidebar')
        column = Gtk.TreeViewColumn("Name", Gtk.CellRendererText(), text=_COL_NAME)
        self._tree_view.append_column(column)
        self._tree_view.connect('row-activated', self._on_row_activated)
        self._tree_view.connect('key-press-event', self._on_key_press)
        scrolled.add(self._tree_view)

        return box

    def set_directory(self, directory: str) -> None:
        """Show the markdown files under ``directory``."""
        if not os.path.isdir(directory):
            print(f"[FileSidebar] Not a directory: {directory}")
            return
        self._directory = os.path.abspath(directory)
        self._dir_label.set_text(os.path.basename(self._directory) or self._directory)
        self._dir_label.set_tooltip_text(self._directory)
        self.refresh()

    def refresh(self, force: bool = False) -> None:
        """Repopulate the tree from the repository."""
        if not self._directory:
            return
        if force:
            self._repository.invalidate(self._directory)
        nodes = self._repository.list_markdown_files(self._directory)
        self._store.clear()
        self._append_nodes(None, nodes)
        self._tree_view.expand_all()
        if self._current_path:
            self.select_file(self._current_path)

    def _append_nodes(self, parent, nodes: List[FileTreeNode]) -> None:
        for node in nodes:
            it = self._store.append(parent, [node.name, node.path, node.is_directory])
            if node.is_directory:
                self._append_nodes(it, node.children)

    def select_file(self, path: str) -> None:
        """Select the row for ``path`` if it is listed."""
        target = os.path.abspath(path)

        def visit(model, tree_path, it):
            if not model[it][_COL_IS_DIR] and os.path.abspath(model[it][_COL_PATH]) == target:
                self._tree_view.expand_to_path(tree_path)
                self._tree_view.get_selection().select_path(tree_path)
                return True
            return False

        self._store.foreach(visit)

    def _on_row_activated(self, tree_view, tree_path, column) -> None:
        it = self._store.get_iter(tree_path)
        if self._store[it][_COL_IS_DIR]:
            if tree_view.row_expanded(tree_path):
                tree_view.collapse_row(tree_path)
            else:
                tree_view.expand_row(tree_path, False)
            return
        path = self._store[it][_COL_PATH]
        self._current_path = path
        if self._on_file_selected:
            self._on_file_selected(path)

    def _on_key_press(self, widget, event) -> bool:
        if event.keyval == Gdk.KEY_F5:
            self.refresh(force=True)
            return True
        return False

    def _on_choose_folder(self, button) -> None:
        dialog = Gtk.FileChooserDialog(
            title="Open Folder",
            transient_for=self.widget.get_toplevel(),
            action=Gtk.FileChooserAction.SELECT_FOLDER,
        )
        dialog.add_buttons(
            Gtk.STOCK_CANCEL, Gtk.ResponseType.CANCEL,
            Gtk.STOCK_OPEN, Gtk.ResponseType.OK,
        )
        if self._directory:
            dialog.set_current_folder(self._directory)
        response = dialog.run()
        directory = dialog.get_filename()
        dialog.destroy()
        if response == Gtk.ResponseType.OK and directory:
            self.set_directory(directory)
            if self._on_directory_changed:
                self._on_directory_changed(directory)

    def _on_document_event(self, event: Event) -> None:
        path = event.data.get('path')
        if path:
            self._current_path = path
            self.schedule_ui_update(lambda: self.select_file(path))

    def _on_document_saved(self, event: Event) -> None:
        self._on_document_event(event)
        self.schedule_ui_update(self.refresh)
