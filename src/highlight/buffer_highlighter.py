"""
Search highlighting for the plain-text editor.

The highlighter never edits the document text. It builds an overlay with
the same characters as the buffer, split into plain and marked segments,
and hands it to the editor surface to draw behind the text.
"""

from dataclasses import dataclass
from html import escape
from typing import List, Optional, Sequence, Tuple

from search.types import MatchSpan

MATCH_CLASS = 'search-highlight'
ACTIVE_CLASS = 'search-highlight current'

# Fraction of the viewport above the active match after scrolling to it.
ACTIVE_LINE_VIEWPORT_FRACTION = 1 / 3

MATCH_BACKGROUND = '#fff3a0'
ACTIVE_BACKGROUND = '#ff9632'


@dataclass(frozen=True)
class OverlaySegment:
    text: str
    marker: Optional[str] = None


@dataclass(frozen=True)
class BufferOverlay:
    """Text of the buffer split into segments; marked segments carry a class."""
    segments: Tuple[OverlaySegment, ...] = ()

    def plain_text(self) -> str:
        return ''.join(segment.text for segment in self.segments)

    def tag_ranges(self) -> List[Tuple[int, int, str]]:
        """Return ``(start, end, marker)`` for every marked segment, in offset order."""
        ranges = []
        offset = 0
        for segment in self.segments:
            end = offset + len(segment.text)
            if segment.marker:
                ranges.append((offset, end, segment.marker))
            offset = end
        return ranges

    def to_markup(self) -> str:
        """Pango markup with escaped text and a background span per marked segment."""
        parts = []
        for segment in self.segments:
            text = escape(segment.text, quote=False)
            if segment.marker == ACTIVE_CLASS:
                parts.append(f'<span background="{ACTIVE_BACKGROUND}">{text}</span>')
            elif segment.marker:
                parts.append(f'<span background="{MATCH_BACKGROUND}">{text}</span>')
            else:
                parts.append(text)
        return ''.join(parts)


def build_overlay(source_text: str, results: Sequence[MatchSpan], cursor_index: int) -> BufferOverlay:
    """
    Splice match markers into ``source_text`` from the last match backwards.

    Working from the end means each splice only touches text after the
    matches still to be processed, so their offsets stay valid.
    """
    ordered = sorted(results, key=lambda span: span.start, reverse=True)
    total = len(ordered)
    pieces: List[OverlaySegment] = []
    tail_start = len(source_text)
    for index, span in enumerate(ordered):
        ordinal = total - index
        if span.end < tail_start:
            pieces.append(OverlaySegment(source_text[span.end:tail_start]))
        marker = ACTIVE_CLASS if ordinal == cursor_index else MATCH_CLASS
        pieces.append(OverlaySegment(source_text[span.start:span.end], marker))
        tail_start = span.start
    if tail_start > 0:
        pieces.append(OverlaySegment(source_text[:tail_start]))
    pieces.reverse()
    return BufferOverlay(tuple(pieces))


def line_number_at(text: str, offset: int) -> int:
    """Zero-based line index of ``offset``."""
    return text.count('\n', 0, offset)


class BufferHighlighter:
    """
    Draws search matches over the editor and moves the caret to the active one.

    The surface is any object providing ``show_overlay(overlay)``,
    ``clear_overlay()``, ``select_range(start, end)``, ``get_line_height()``
    and ``get_scroll_pane()``.
    """

    def __init__(self, surface=None, scroll_sync=None):
        self._surface = surface
        self._scroll_sync = scroll_sync
        self._overlay: Optional[BufferOverlay] = None

    @property
    def overlay(self) -> Optional[BufferOverlay]:
        return self._overlay

    def set_surface(self, surface) -> None:
        self._surface = surface

    def render(
        self,
        source_text: str,
        results: Sequence[MatchSpan],
        cursor_index: int,
        reveal: bool = True,
    ) -> BufferOverlay:
        """Show the overlay; with ``reveal`` the active match is also selected and scrolled to."""
        overlay = build_overlay(source_text, results, cursor_index)
        self._overlay = overlay
        if self._surface is None:
            return overlay
        self._surface.show_overlay(overlay)
        if reveal and 1 <= cursor_index <= len(results):
            active = sorted(results, key=lambda span: span.start)[cursor_index - 1]
            self._surface.select_range(active.start, active.end)
            self._scroll_to_line(line_number_at(source_text, active.start))
        return overlay

    def clear(self) -> None:
        self._overlay = None
        if self._surface is not None:
            self._surface.clear_overlay()

    def _scroll_to_line(self, line: int) -> None:
        pane = self._surface.get_scroll_pane()
        if pane is None:
            return
        line_height = self._surface.get_line_height()
        target = line * line_height - pane.get_viewport_extent() * ACTIVE_LINE_VIEWPORT_FRACTION
        target = max(0.0, target)
        if self._scroll_sync is not None and self._scroll_sync.is_active():
            self._scroll_sync.scroll_to_position(pane, target)
        else:
            pane.set_scroll_offset(target, smooth=True)
