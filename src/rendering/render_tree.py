"""
Tree produced by rendering markdown for display.
"""

import copy
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

TEXT_TAG = '#text'
BLOCK_SEPARATOR = '\n'

# Elements whose text never runs into the text of their neighbours.
BLOCK_TAGS = frozenset({
    'p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'pre', 'blockquote',
    'li', 'tr', 'td', 'th', 'hr', 'raw-html',
})


@dataclass
class RenderNode:
    """
    One node of the rendered document.

    Element nodes carry a tag, attributes and children. Text leaves use the
    ``#text`` tag and only carry ``text``.
    """
    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    children: List['RenderNode'] = field(default_factory=list)
    text: str = ""

    @classmethod
    def text_leaf(cls, text: str) -> 'RenderNode':
        return cls(tag=TEXT_TAG, text=text)

    @property
    def is_text(self) -> bool:
        return self.tag == TEXT_TAG

    @property
    def classes(self) -> List[str]:
        return self.attrs.get('class', '').split()

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def add_class(self, name: str) -> None:
        classes = self.classes
        if name not in classes:
            classes.append(name)
        self.attrs['class'] = ' '.join(classes)

    def append(self, child: 'RenderNode') -> 'RenderNode':
        self.children.append(child)
        return child

    def iter(self) -> Iterator['RenderNode']:
        """Yield this node and all descendants in document order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def iter_text_leaves(self) -> Iterator['RenderNode']:
        for node in self.iter():
            if node.is_text:
                yield node

    def find_all(self, tag: str, class_name: Optional[str] = None) -> List['RenderNode']:
        return [
            node for node in self.iter()
            if node.tag == tag and (class_name is None or node.has_class(class_name))
        ]

    def text_content(self) -> str:
        return ''.join(leaf.text for leaf in self.iter_text_leaves())

    def text_segments(self) -> List[Tuple['RenderNode', int]]:
        """
        Pair every non-empty text leaf with its offset in ``search_text()``.

        A separator is counted between text on either side of a block
        boundary or a ``br``, never at the start or the end.
        """
        segments: List[Tuple[RenderNode, int]] = []
        offset = 0
        pending_break = False
        stack: List[Tuple[RenderNode, bool]] = [(self, False)]
        while stack:
            node, closing = stack.pop()
            if closing:
                pending_break = True
                continue
            if node.is_text:
                if not node.text:
                    continue
                if pending_break and segments:
                    offset += len(BLOCK_SEPARATOR)
                pending_break = False
                segments.append((node, offset))
                offset += len(node.text)
                continue
            if node.tag == 'br' or node.tag in BLOCK_TAGS:
                pending_break = True
            if node.tag in BLOCK_TAGS:
                stack.append((node, True))
            stack.extend((child, False) for child in reversed(node.children))
        return segments

    def search_text(self) -> str:
        """Plain text as a reader sees it, one block per line."""
        parts: List[str] = []
        end = 0
        for leaf, offset in self.text_segments():
            if offset > end:
                parts.append(BLOCK_SEPARATOR)
            parts.append(leaf.text)
            end = offset + len(leaf.text)
        return ''.join(parts)

    def copy(self) -> 'RenderNode':
        """Return a deep, independent copy safe to mutate."""
        return copy.deepcopy(self)
