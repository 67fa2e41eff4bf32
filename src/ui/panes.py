"""
GTK adapters for the scroll panes and highlight surfaces.

These wrap GTK widgets in the small interfaces the controller, the
highlighters and the scroll sync engine work against.
"""

from typing import Any, Callable, Dict, Optional

import gi
gi.require_version('Gtk', '3.0')
gi.require_version('GtkSource', '4')
from gi.repository import Gtk, GtkSource, Pango

from config import SMOOTH_SCROLL_DURATION_MS
from highlight.buffer_highlighter import ACTIVE_CLASS, MATCH_BACKGROUND, ACTIVE_BACKGROUND, BufferOverlay
from highlight.tree_highlighter import MARK_TAG, ACTIVE_MARK_CLASS
from rendering import RenderNode
from sync import ScrollPane


class AdjustmentPane(ScrollPane):
    """ScrollPane over the vertical adjustment of a Gtk.ScrolledWindow."""

    def __init__(self, scrolled: Gtk.ScrolledWindow):
        self._scrolled = scrolled
        self._adjustment = scrolled.get_vadjustment()
        self._tick_id = None

    def get_scroll_offset(self) -> float:
        return self._adjustment.get_value() - self._adjustment.get_lower()

    def get_content_extent(self) -> float:
        return self._adjustment.get_upper() - self._adjustment.get_lower()

    def get_viewport_extent(self) -> float:
        return self._adjustment.get_page_size()

    def set_scroll_offset(self, offset: float, smooth: bool = False) -> None:
        adj = self._adjustment
        lower = adj.get_lower()
        target = max(lower, min(lower + offset, adj.get_upper() - adj.get_page_size()))
        self._stop_animation()
        if not smooth or not self._scrolled.get_mapped():
            adj.set_value(target)
            return
        self._animate_to(target)

    def connect_scroll(self, handler: Callable[[], None]) -> Any:
        return self._adjustment.connect("value-changed", lambda _adj: handler())

    def disconnect_scroll(self, handle: Any) -> None:
        self._adjustment.disconnect(handle)

    def _animate_to(self, target: float) -> None:
        adj = self._adjustment
        start_value = adj.get_value()
        clock = self._scrolled.get_frame_clock()
        if clock is None:
            adj.set_value(target)
            return
        start_time = clock.get_frame_time()
        duration_us = SMOOTH_SCROLL_DURATION_MS * 1000

        def on_tick(widget, frame_clock):
            elapsed = frame_clock.get_frame_time() - start_time
            t = min(1.0, elapsed / duration_us)
            eased = 1 - (1 - t) ** 3
            adj.set_value(start_value + (target - start_value) * eased)
            if t >= 1.0:
                self._tick_id = None
                return False
            return True

        self._tick_id = self._scrolled.add_tick_callback(on_tick)

    def _stop_animation(self) -> None:
        if self._tick_id is not None:
            self._scrolled.remove_tick_callback(self._tick_id)
            self._tick_id = None


class SourceEditorSurface:
    """Buffer surface over a GtkSource.View: search tags, selection and scroll pane."""

    MATCH_TAG = 'search-match'
    ACTIVE_TAG = 'search-active'

    def __init__(self, view: GtkSource.View, scrolled: Gtk.ScrolledWindow):
        self._view = view
        self._scrolled = scrolled
        self._pane = AdjustmentPane(scrolled)
        buffer = view.get_buffer()
        table = buffer.get_tag_table()
        if table.lookup(self.MATCH_TAG) is None:
            buffer.create_tag(self.MATCH_TAG, background=MATCH_BACKGROUND)
        if table.lookup(self.ACTIVE_TAG) is None:
            buffer.create_tag(self.ACTIVE_TAG, background=ACTIVE_BACKGROUND)

    def get_scroll_pane(self) -> AdjustmentPane:
        return self._pane

    def show_overlay(self, overlay: BufferOverlay) -> None:
        self.clear_overlay()
        buffer = self._view.get_buffer()
        for start, end, marker in overlay.tag_ranges():
            tag = self.ACTIVE_TAG if marker == ACTIVE_CLASS else self.MATCH_TAG
            buffer.apply_tag_by_name(tag, buffer.get_iter_at_offset(start), buffer.get_iter_at_offset(end))

    def clear_overlay(self) -> None:
        buffer = self._view.get_buffer()
        start, end = buffer.get_bounds()
        buffer.remove_tag_by_name(self.MATCH_TAG, start, end)
        buffer.remove_tag_by_name(self.ACTIVE_TAG, start, end)

    def select_range(self, start: int, end: int) -> None:
        buffer = self._view.get_buffer()
        buffer.select_range(buffer.get_iter_at_offset(start), buffer.get_iter_at_offset(end))

    def get_line_height(self) -> float:
        buffer = self._view.get_buffer()
        _y, height = self._view.get_line_yrange(buffer.get_start_iter())
        if height > 0:
            return float(height)
        metrics = self._view.get_pango_context().get_metrics(None, None)
        return (metrics.get_ascent() + metrics.get_descent()) / Pango.SCALE


# Text tags applied per rendered element.
_BLOCK_TAGS = {'p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'pre', 'blockquote', 'li', 'tr', 'raw-html'}
_HEADING_SCALES = {'h1': 2.0, 'h2': 1.6, 'h3': 1.3, 'h4': 1.15, 'h5': 1.05, 'h6': 1.0}


class RenderedTreeSurface:
    """Tree surface over a read-only Gtk.TextView that displays a RenderNode tree."""

    def __init__(self, view: Gtk.TextView, scrolled: Gtk.ScrolledWindow):
        self._view = view
        self._scrolled = scrolled
        self._pane = AdjustmentPane(scrolled)
        self._node_offsets: Dict[int, tuple] = {}
        self._create_tags(view.get_buffer())

    def _create_tags(self, buffer: Gtk.TextBuffer) -> None:
        for name, scale in _HEADING_SCALES.items():
            buffer.create_tag(name, weight=Pango.Weight.BOLD, scale=scale, pixels_above_lines=8)
        buffer.create_tag('strong', weight=Pango.Weight.BOLD)
        buffer.create_tag('em', style=Pango.Style.ITALIC)
        buffer.create_tag('s', strikethrough=True)
        buffer.create_tag('code', family='Monospace')
        buffer.create_tag('pre', family='Monospace', left_margin=24, paragraph_background='#f4f4f4')
        buffer.create_tag('blockquote', left_margin=24, style=Pango.Style.ITALIC, foreground='#555555')
        buffer.create_tag('a', underline=Pango.Underline.SINGLE, foreground='#1a73e8')
        buffer.create_tag('th', weight=Pango.Weight.BOLD)
        buffer.create_tag(MARK_TAG, background=MATCH_BACKGROUND)
        buffer.create_tag(ACTIVE_MARK_CLASS, background=ACTIVE_BACKGROUND)

    def get_scroll_pane(self) -> AdjustmentPane:
        return self._pane

    def commit(self, tree: RenderNode) -> None:
        """Replace the displayed content with ``tree``."""
        buffer = self._view.get_buffer()
        buffer.set_text("")
        self._node_offsets = {}
        self._insert_node(buffer, tree, [], list_index=None)

    def get_node_offset(self, node: RenderNode) -> Optional[float]:
        location = self._node_location(node)
        return float(location.y) if location is not None else None

    def get_node_extent(self, node: RenderNode) -> Optional[float]:
        location = self._node_location(node)
        return float(location.height) if location is not None else None

    def _node_location(self, node: RenderNode):
        span = self._node_offsets.get(id(node))
        if span is None:
            return None
        buffer = self._view.get_buffer()
        return self._view.get_iter_location(buffer.get_iter_at_offset(span[0]))

    def _insert_node(self, buffer: Gtk.TextBuffer, node: RenderNode, tags: list, list_index) -> None:
        if node.is_text:
            buffer.insert_with_tags_by_name(buffer.get_end_iter(), node.text, *tags)
            return
        tag = node.tag
        start = buffer.get_end_iter().get_offset()
        child_tags = list(tags)
        if buffer.get_tag_table().lookup(tag) is not None:
            child_tags.append(tag)
        if tag == MARK_TAG and node.has_class(ACTIVE_MARK_CLASS):
            child_tags.append(ACTIVE_MARK_CLASS)

        if tag == 'li':
            bullet = f"{list_index}. " if list_index is not None else "• "
            buffer.insert(buffer.get_end_iter(), bullet)
        elif tag == 'br':
            buffer.insert(buffer.get_end_iter(), "\n")
        elif tag == 'hr':
            buffer.insert(buffer.get_end_iter(), "─" * 40 + "\n")
        elif tag == 'img':
            buffer.insert(buffer.get_end_iter(), f"[{node.attrs.get('alt', 'image')}]")

        ordinal = 1 if tag == 'ol' else None
        for child in node.children:
            self._insert_node(buffer, child, child_tags, ordinal if child.tag == 'li' else None)
            if ordinal is not None and child.tag == 'li':
                ordinal += 1
            if tag == 'tr' and child.tag in ('td', 'th'):
                buffer.insert(buffer.get_end_iter(), "\t")

        if tag in _BLOCK_TAGS:
            last = buffer.get_end_iter()
            if last.backward_char() and last.get_char() != "\n":
                buffer.insert(buffer.get_end_iter(), "\n")
            if tag in ('p', 'pre', 'blockquote') or tag in _HEADING_SCALES:
                buffer.insert(buffer.get_end_iter(), "\n")
        self._node_offsets[id(node)] = (start, buffer.get_end_iter().get_offset())
