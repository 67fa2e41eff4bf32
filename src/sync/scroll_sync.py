"""
Bidirectional scroll synchronisation between the editor and the preview.

Both panes are aligned by scroll percentage, the only coordinate the flat
text buffer and the rendered tree have in common.
"""

from enum import Enum
from typing import Any, Callable, Optional

from config import SCROLL_SYNC_COOLDOWN_MS


class ScrollPane:
    """
    Interface of a vertically scrollable pane.

    Extents and offsets are in pixels. ``connect_scroll`` returns a handle
    for ``disconnect_scroll``.
    """

    def get_scroll_offset(self) -> float:
        raise NotImplementedError

    def get_content_extent(self) -> float:
        raise NotImplementedError

    def get_viewport_extent(self) -> float:
        raise NotImplementedError

    def set_scroll_offset(self, offset: float, smooth: bool = False) -> None:
        raise NotImplementedError

    def connect_scroll(self, handler: Callable[[], None]) -> Any:
        raise NotImplementedError

    def disconnect_scroll(self, handle: Any) -> None:
        raise NotImplementedError


def scroll_percentage(pane: ScrollPane) -> float:
    """Scroll offset as a fraction of the scrollable range, clamped to [0, 1]."""
    scrollable = max(1.0, pane.get_content_extent() - pane.get_viewport_extent())
    return max(0.0, min(1.0, pane.get_scroll_offset() / scrollable))


def apply_scroll_percentage(pane: ScrollPane, percentage: float) -> None:
    scrollable = max(0.0, pane.get_content_extent() - pane.get_viewport_extent())
    pane.set_scroll_offset(percentage * scrollable)


class SyncState(Enum):
    DETACHED = 'detached'
    ATTACHED = 'attached'


class ScrollSyncEngine:
    """
    Mirrors scrolling between two panes without feedback loops.

    A guard flag is raised before each mirrored write and lowered on the
    next frame, so the scroll event caused by the write is ignored. Jumps to
    search results hold the guard for a fixed cool-down instead, covering
    the whole smooth-scroll animation.
    """

    def __init__(self, scheduler=None, cooldown_ms: int = SCROLL_SYNC_COOLDOWN_MS):
        self._scheduler = scheduler
        self._cooldown_ms = cooldown_ms
        self._pane_a: Optional[ScrollPane] = None
        self._pane_b: Optional[ScrollPane] = None
        self._handle_a = None
        self._handle_b = None
        self._syncing = False
        self._frame_release = None
        self._cooldown_release = None
        self.mirrored_writes = 0

    @property
    def state(self) -> SyncState:
        return SyncState.ATTACHED if self.is_active() else SyncState.DETACHED

    @property
    def is_syncing(self) -> bool:
        return self._syncing

    def is_active(self) -> bool:
        """True while both panes are known."""
        return self._pane_a is not None and self._pane_b is not None

    def attach(self, pane_a: ScrollPane, pane_b: ScrollPane) -> None:
        """Start mirroring between ``pane_a`` and ``pane_b``, replacing any earlier pair."""
        self.detach()
        if pane_a is None or pane_b is None:
            print("[ScrollSync] Could not attach: missing scrollable pane")
            return
        self._pane_a = pane_a
        self._pane_b = pane_b
        self._handle_a = pane_a.connect_scroll(lambda: self._on_scroll(pane_a, pane_b))
        self._handle_b = pane_b.connect_scroll(lambda: self._on_scroll(pane_b, pane_a))
        print("[ScrollSync] Attached bidirectional sync")

    def detach(self) -> None:
        """Remove both listeners and forget the panes."""
        was_active = self.is_active()
        if self._pane_a is not None and self._handle_a is not None:
            self._pane_a.disconnect_scroll(self._handle_a)
        if self._pane_b is not None and self._handle_b is not None:
            self._pane_b.disconnect_scroll(self._handle_b)
        self._cancel(self._frame_release)
        self._cancel(self._cooldown_release)
        self._frame_release = None
        self._cooldown_release = None
        self._pane_a = None
        self._pane_b = None
        self._handle_a = None
        self._handle_b = None
        self._syncing = False
        if was_active:
            print("[ScrollSync] Detached")

    def _on_scroll(self, source: ScrollPane, target: ScrollPane) -> None:
        if self._syncing:
            return
        self._syncing = True
        apply_scroll_percentage(target, scroll_percentage(source))
        self.mirrored_writes += 1
        self._frame_release = self._get_scheduler().next_frame(self._release_after_frame)

    def _release_after_frame(self) -> None:
        self._frame_release = None
        # A running cool-down owns the guard until it expires.
        if self._cooldown_release is None:
            self._syncing = False

    def sync_from(self, source: ScrollPane) -> None:
        """Mirror ``source`` onto its partner once, as if it had just scrolled."""
        if not self.is_active():
            return
        if source is self._pane_a:
            self._on_scroll(self._pane_a, self._pane_b)
        elif source is self._pane_b:
            self._on_scroll(self._pane_b, self._pane_a)

    def scroll_to_position(self, pane: Optional[ScrollPane], offset: float) -> None:
        """
        Smooth-scroll ``pane`` to ``offset`` without mirroring the animation.
        """
        if pane is None:
            return
        self._syncing = True
        self._cancel(self._cooldown_release)
        self._cooldown_release = self._get_scheduler().timeout_add(
            self._cooldown_ms, self._release_after_cooldown
        )
        pane.set_scroll_offset(offset, smooth=True)

    def _release_after_cooldown(self) -> None:
        self._cooldown_release = None
        self._syncing = False

    def _get_scheduler(self):
        if self._scheduler is None:
            from scheduling import GLibScheduler
            self._scheduler = GLibScheduler()
        return self._scheduler

    def _cancel(self, handle) -> None:
        if handle is not None and self._scheduler is not None:
            self._scheduler.cancel(handle)
