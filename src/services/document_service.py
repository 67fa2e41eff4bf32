"""
Service for managing the open document and its rendered form.
"""

from typing import Optional

from repositories import MarkdownFileRepository
from rendering import MarkdownRenderer, RenderNode
from events import EventBus, Event, EventType


class DocumentService:
    """
    Owner of the document buffer: the plain text of the open document.

    Handles:
    - Opening, saving and closing files through the repository
    - Single-writer content updates from the editor
    - Re-rendering the whole document whenever its content changes
    """

    def __init__(
        self,
        repository: Optional[MarkdownFileRepository] = None,
        renderer: Optional[MarkdownRenderer] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self._repository = repository or MarkdownFileRepository()
        self._renderer = renderer or MarkdownRenderer()
        self._event_bus = event_bus
        self._path: Optional[str] = None
        self._content = ""
        self._rendered_tree: RenderNode = self._renderer.render("")
        self._dirty = False
        self._open = False

    @property
    def path(self) -> Optional[str]:
        return self._path

    @property
    def content(self) -> str:
        return self._content

    @property
    def rendered_tree(self) -> RenderNode:
        """The authoritative rendered tree. Highlighters must work on a copy."""
        return self._rendered_tree

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def has_document(self) -> bool:
        return self._open

    @property
    def title(self) -> str:
        if not self._path:
            return "Untitled"
        return self._path.replace('\\', '/').rsplit('/', 1)[-1]

    def new_document(self, content: str = "") -> None:
        """Start an unsaved document."""
        self._path = None
        self._open = True
        self._replace_content(content)
        self._dirty = False
        self._emit(EventType.DOCUMENT_LOADED, {'path': None, 'title': self.title})

    def open_document(self, path: str) -> str:
        """
        Load ``path`` as the current document and return its content.

        A failed read yields an empty document; see MarkdownFileRepository.
        """
        content = self._repository.read(path)
        self._path = path
        self._open = True
        self._replace_content(content)
        self._dirty = False
        self._emit(EventType.DOCUMENT_LOADED, {'path': path, 'title': self.title})
        return content

    def set_content(self, content: str) -> None:
        """Record an edit made in the editor and re-render."""
        if content == self._content:
            return
        self._replace_content(content)
        self._dirty = True
        self._emit(EventType.DOCUMENT_UPDATED, {'path': self._path, 'content': content})

    def save_document(self) -> bool:
        """Write the current content to its path."""
        if not self._path:
            return False
        return self.save_document_as(self._path)

    def save_document_as(self, path: str) -> bool:
        if not self._repository.write(path, self._content):
            self._emit(EventType.ERROR_OCCURRED, {'message': f"Could not save {path}"})
            return False
        self._path = path
        self._dirty = False
        self._emit(EventType.DOCUMENT_SAVED, {'path': path})
        return True

    def close_document(self) -> None:
        """Close the current document."""
        self._path = None
        self._open = False
        self._replace_content("")
        self._dirty = False
        self._emit(EventType.DOCUMENT_CLOSED, {})

    def _replace_content(self, content: str) -> None:
        self._content = content
        self._rendered_tree = self._renderer.render(content)

    def _emit(self, event_type: EventType, data: dict) -> None:
        if self._event_bus:
            self._event_bus.publish(Event(type=event_type, data=data, source='document_service'))
