"""
Markdown to RenderNode tree conversion.

Parsing is done by markdown-it-py; this module only turns its token stream
into the node tree the preview pane and the tree highlighter work on.
"""

from typing import List, Optional

from markdown_it import MarkdownIt
from pygments.lexers import guess_lexer
from pygments.util import ClassNotFound

from .render_tree import RenderNode

DEFAULT_CODE_LANGUAGE = 'text'


def detect_language(info: str, code: str) -> str:
    """Return the fence language from its info string, else a Pygments guess."""
    name = info.strip().split(maxsplit=1)[0].lower() if info and info.strip() else ""
    if name:
        return name
    if not code.strip():
        return DEFAULT_CODE_LANGUAGE
    try:
        lexer = guess_lexer(code)
    except ClassNotFound:
        return DEFAULT_CODE_LANGUAGE
    if lexer.aliases:
        return lexer.aliases[0]
    return DEFAULT_CODE_LANGUAGE


class MarkdownRenderer:
    """Renders markdown text into a fresh RenderNode tree on every call."""

    def __init__(self, breaks: bool = True):
        self._breaks = breaks
        self._md = MarkdownIt(
            "commonmark",
            {"html": True, "breaks": breaks},
        ).enable("table").enable("strikethrough")

    def render(self, text: str) -> RenderNode:
        """
        Render ``text``. Total for any input; empty text gives an empty root.
        """
        root = RenderNode(tag='document', attrs={'class': 'markdown-body'})
        if not text:
            return root
        tokens = self._md.parse(text)
        stack: List[RenderNode] = [root]
        for token in tokens:
            parent = stack[-1]
            if token.nesting == 1:
                node = parent.append(self._element_for(token))
                stack.append(node)
            elif token.nesting == -1:
                if len(stack) > 1:
                    stack.pop()
            elif token.type == 'inline':
                self._render_inline(token.children or [], parent)
            elif token.type in ('fence', 'code_block'):
                parent.append(self._code_block(token))
            elif token.type == 'hr':
                parent.append(RenderNode(tag='hr'))
            elif token.type == 'html_block':
                raw = parent.append(RenderNode(tag='raw-html'))
                raw.append(RenderNode.text_leaf(token.content))
        return root

    def _element_for(self, token) -> RenderNode:
        attrs = {str(k): str(v) for k, v in (token.attrs or {}).items()}
        tag = token.tag or token.type
        if tag == 'blockquote':
            attrs['class'] = 'markdown-blockquote'
        elif tag == 'table':
            attrs['class'] = 'markdown-table'
        if token.map and len(token.map) == 2:
            attrs['data-line-start'] = str(token.map[0])
            attrs['data-line-end'] = str(token.map[1])
        return RenderNode(tag=tag, attrs=attrs)

    def _code_block(self, token) -> RenderNode:
        code = token.content
        info = token.info if token.type == 'fence' else ""
        language = detect_language(info, code)
        pre = RenderNode(tag='pre', attrs={'class': 'code-block', 'data-language': language})
        code_node = pre.append(RenderNode(tag='code', attrs={'class': f'language-{language}'}))
        code_node.append(RenderNode.text_leaf(code))
        return pre

    def _render_inline(self, children, parent: RenderNode) -> None:
        stack: List[RenderNode] = [parent]
        for child in children:
            current = stack[-1]
            if child.nesting == 1:
                stack.append(current.append(self._element_for(child)))
            elif child.nesting == -1:
                if len(stack) > 1:
                    stack.pop()
            elif child.type == 'text':
                if child.content:
                    current.append(RenderNode.text_leaf(child.content))
            elif child.type == 'code_inline':
                code = current.append(RenderNode(tag='code', attrs={'class': 'markdown-inline-code'}))
                code.append(RenderNode.text_leaf(child.content))
            elif child.type == 'softbreak':
                if self._breaks:
                    current.append(RenderNode(tag='br'))
                else:
                    current.append(RenderNode.text_leaf('\n'))
            elif child.type == 'hardbreak':
                current.append(RenderNode(tag='br'))
            elif child.type == 'image':
                attrs = {str(k): str(v) for k, v in (child.attrs or {}).items()}
                attrs['alt'] = child.content
                current.append(RenderNode(tag='img', attrs=attrs))
            elif child.type == 'html_inline':
                raw = current.append(RenderNode(tag='raw-html'))
                raw.append(RenderNode.text_leaf(child.content))


_default_renderer: Optional[MarkdownRenderer] = None


def render_markdown(text: str) -> RenderNode:
    """Render with a shared renderer instance."""
    global _default_renderer
    if _default_renderer is None:
        _default_renderer = MarkdownRenderer()
    return _default_renderer.render(text)
