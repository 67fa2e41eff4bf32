"""
Scroll synchronisation between the editor and preview panes.
"""

from .scroll_sync import (
    ScrollPane,
    ScrollSyncEngine,
    SyncState,
    scroll_percentage,
    apply_scroll_percentage,
)

__all__ = ['ScrollPane', 'ScrollSyncEngine', 'SyncState', 'scroll_percentage', 'apply_scroll_percentage']
