"""
Markdown rendering into a walkable node tree.
"""

from .render_tree import RenderNode, TEXT_TAG, BLOCK_TAGS, BLOCK_SEPARATOR
from .markdown_renderer import MarkdownRenderer, render_markdown, detect_language

__all__ = [
    'RenderNode',
    'TEXT_TAG',
    'BLOCK_TAGS',
    'BLOCK_SEPARATOR',
    'MarkdownRenderer',
    'render_markdown',
    'detect_language',
]
