"""
Projection of search results onto the editor buffer and the rendered tree.
"""

from .buffer_highlighter import BufferHighlighter, BufferOverlay, OverlaySegment, build_overlay
from .tree_highlighter import TreeHighlighter, mark_matches

__all__ = [
    'BufferHighlighter',
    'BufferOverlay',
    'OverlaySegment',
    'build_overlay',
    'TreeHighlighter',
    'mark_matches',
]
