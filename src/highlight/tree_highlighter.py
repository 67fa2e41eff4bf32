"""
Search highlighting for the rendered markdown tree.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from rendering import RenderNode
from search.types import MatchSpan

MARK_TAG = 'mark'
MARK_CLASS = 'search-highlight'
ACTIVE_MARK_CLASS = 'current'
MATCH_ATTR = 'data-match'


def split_leaf(leaf: RenderNode, ranges: Sequence[Tuple[int, int, int]]) -> List[RenderNode]:
    """
    Return the fragments replacing ``leaf``: plain text leaves interleaved with marks.

    ``ranges`` holds ``(start, end, match_index)`` offsets into the leaf text,
    ascending and non-overlapping.
    """
    text = leaf.text
    fragments: List[RenderNode] = []
    last = 0
    for start, end, index in ranges:
        if start > last:
            fragments.append(RenderNode.text_leaf(text[last:start]))
        mark = RenderNode(tag=MARK_TAG, attrs={'class': MARK_CLASS, MATCH_ATTR: str(index)})
        mark.append(RenderNode.text_leaf(text[start:end]))
        fragments.append(mark)
        last = end
    if not fragments:
        return [leaf]
    if last < len(text):
        fragments.append(RenderNode.text_leaf(text[last:]))
    return fragments


def mark_matches(tree: RenderNode, results: Sequence[MatchSpan]) -> List[List[RenderNode]]:
    """
    Wrap the text covered by each result in ``mark`` elements, in place.

    Offsets refer to ``tree.search_text()``. A result crossing formatting
    gets one mark per text leaf it touches. Returns the marks of each
    result, in result order.
    """
    spans = sorted(enumerate(results), key=lambda item: item[1].start)
    groups: List[List[RenderNode]] = [[] for _ in results]
    if not spans:
        return groups

    pieces: Dict[int, List[Tuple[int, int, int]]] = {}
    leaves = tree.text_segments()
    first = 0
    for leaf, offset in leaves:
        leaf_end = offset + len(leaf.text)
        while first < len(spans) and spans[first][1].end <= offset:
            first += 1
        for index, span in spans[first:]:
            if span.start >= leaf_end:
                break
            start = max(span.start, offset) - offset
            end = min(span.end, leaf_end) - offset
            if start < end:
                pieces.setdefault(id(leaf), []).append((start, end, index))

    if not pieces:
        return groups
    for node in list(tree.iter()):
        if not any(id(child) in pieces for child in node.children):
            continue
        children: List[RenderNode] = []
        for child in node.children:
            if id(child) in pieces:
                children.extend(split_leaf(child, pieces[id(child)]))
            else:
                children.append(child)
        node.children = children

    for node in tree.iter():
        if node.tag == MARK_TAG and MATCH_ATTR in node.attrs:
            groups[int(node.attrs[MATCH_ATTR])].append(node)
    return groups


class TreeHighlighter:
    """
    Marks search matches in a disposable copy of the rendered tree.

    The authoritative tree passed to ``render`` is never modified, so every
    pass starts from unmarked content. The surface is any object providing
    ``commit(tree)``, ``get_node_offset(node)``, ``get_node_extent(node)``
    and ``get_scroll_pane()``.
    """

    def __init__(self, surface=None, scheduler=None, scroll_sync=None):
        self._surface = surface
        self._scheduler = scheduler
        self._scroll_sync = scroll_sync
        self._pending_scroll = None
        self._active_mark: Optional[RenderNode] = None
        self._groups: List[List[RenderNode]] = []

    @property
    def active_mark(self) -> Optional[RenderNode]:
        return self._active_mark

    @property
    def marks(self) -> List[RenderNode]:
        """Every inserted mark in document order."""
        return sorted(
            (mark for group in self._groups for mark in group),
            key=lambda mark: int(mark.attrs[MATCH_ATTR]),
        )

    @property
    def mark_groups(self) -> List[List[RenderNode]]:
        """The marks of each result, in result order."""
        return [list(group) for group in self._groups]

    def set_surface(self, surface) -> None:
        self._surface = surface

    def render(
        self,
        tree: Optional[RenderNode],
        results: Sequence[MatchSpan],
        cursor_index: int,
        reveal: bool = True,
    ) -> Optional[RenderNode]:
        """
        Return a highlighted copy of ``tree`` and commit it to the surface.

        ``results`` carry offsets into ``tree.search_text()``. With no
        results the clean copy is committed, which removes any earlier
        highlighting. The active match is scrolled into view only when
        ``reveal`` is set.
        """
        if tree is None:
            print("[TreeHighlighter] No rendered tree to highlight")
            return None
        self._cancel_pending_scroll()
        scratch = tree.copy()
        self._groups = mark_matches(scratch, results)
        self._active_mark = None
        if 1 <= cursor_index <= len(self._groups):
            active = self._groups[cursor_index - 1]
            for mark in active:
                mark.add_class(ACTIVE_MARK_CLASS)
            self._active_mark = active[0] if active else None
        if self._surface is not None:
            self._surface.commit(scratch)
            if reveal and self._active_mark is not None:
                self._pending_scroll = self._get_scheduler().next_frame(self._scroll_active_into_view)
        return scratch

    def clear(self, tree: Optional[RenderNode]) -> None:
        """Commit the unmarked tree again."""
        self._cancel_pending_scroll()
        self._groups = []
        self._active_mark = None
        if tree is not None and self._surface is not None:
            self._surface.commit(tree.copy())

    def _get_scheduler(self):
        if self._scheduler is None:
            from scheduling import GLibScheduler
            self._scheduler = GLibScheduler()
        return self._scheduler

    def _cancel_pending_scroll(self) -> None:
        if self._pending_scroll is not None:
            self._get_scheduler().cancel(self._pending_scroll)
            self._pending_scroll = None

    def _scroll_active_into_view(self) -> None:
        self._pending_scroll = None
        mark = self._active_mark
        if mark is None or self._surface is None:
            return
        pane = self._surface.get_scroll_pane()
        offset = self._surface.get_node_offset(mark)
        if pane is None or offset is None:
            return
        extent = self._surface.get_node_extent(mark) or 0.0
        target = max(0.0, offset + extent / 2 - pane.get_viewport_extent() / 2)
        if self._scroll_sync is not None and self._scroll_sync.is_active():
            self._scroll_sync.scroll_to_position(pane, target)
        else:
            pane.set_scroll_offset(target, smooth=True)
