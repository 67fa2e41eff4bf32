"""Tests for DocumentService and MarkdownFileRepository."""

import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from repositories import MarkdownFileRepository
from services import DocumentService
from events import EventBus, EventType


class TestMarkdownFileRepository:
    def test_read_write_roundtrip(self, tmp_path):
        repo = MarkdownFileRepository()
        path = str(tmp_path / "notes" / "a.md")

        assert repo.write(path, "# Title\n\nbody")
        assert repo.exists(path)
        assert repo.read(path) == "# Title\n\nbody"

    def test_read_missing_file_returns_empty(self, tmp_path, capsys):
        repo = MarkdownFileRepository()
        assert repo.read(str(tmp_path / "missing.md")) == ""
        assert "Failed to read" in capsys.readouterr().out

    def test_read_undecodable_file_returns_empty(self, tmp_path):
        path = tmp_path / "binary.md"
        path.write_bytes(b"\xff\xfe\x00bad")
        assert MarkdownFileRepository().read(str(path)) == ""

    def test_write_failure_returns_false(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        repo = MarkdownFileRepository()
        assert repo.write(str(blocker / "child.md"), "text") is False

    def test_is_markdown_file(self):
        repo = MarkdownFileRepository()
        assert repo.is_markdown_file("README.md")
        assert repo.is_markdown_file("guide.MARKDOWN")
        assert not repo.is_markdown_file("notes.txt")

    def test_list_markdown_files(self, tmp_path):
        (tmp_path / "b.md").write_text("")
        (tmp_path / "A.markdown").write_text("")
        (tmp_path / "skip.txt").write_text("")
        (tmp_path / ".hidden.md").write_text("")
        (tmp_path / "docs").mkdir()
        (tmp_path / "docs" / "inner.md").write_text("")
        (tmp_path / "empty").mkdir()
        (tmp_path / "empty" / "image.png").write_text("")

        nodes = MarkdownFileRepository().list_markdown_files(str(tmp_path))

        assert [n.name for n in nodes] == ["docs", "A.markdown", "b.md"]
        assert nodes[0].is_directory
        assert [c.name for c in nodes[0].children] == ["inner.md"]

    def test_listing_is_cached_until_invalidated(self, tmp_path):
        repo = MarkdownFileRepository(cache_seconds=60)
        (tmp_path / "one.md").write_text("")
        assert len(repo.list_markdown_files(str(tmp_path))) == 1

        (tmp_path / "two.md").write_text("")
        assert len(repo.list_markdown_files(str(tmp_path))) == 1

        repo.invalidate(str(tmp_path))
        assert len(repo.list_markdown_files(str(tmp_path))) == 2

    def test_write_invalidates_listing(self, tmp_path):
        repo = MarkdownFileRepository(cache_seconds=60)
        assert repo.list_markdown_files(str(tmp_path)) == []
        repo.write(str(tmp_path / "new.md"), "")
        assert [n.name for n in repo.list_markdown_files(str(tmp_path))] == ["new.md"]


class TestDocumentService:
    def test_new_document(self):
        service = DocumentService()
        service.new_document(content="Initial")

        assert service.has_document
        assert service.content == "Initial"
        assert service.title == "Untitled"
        assert not service.is_dirty

    def test_open_document_renders(self, tmp_path):
        path = tmp_path / "doc.md"
        path.write_text("# Hello\n\nworld")
        service = DocumentService()

        assert service.open_document(str(path)) == "# Hello\n\nworld"
        assert service.title == "doc.md"
        assert service.rendered_tree.text_content() == "Helloworld"

    def test_open_unreadable_document_is_empty(self, tmp_path):
        service = DocumentService()
        service.open_document(str(tmp_path / "gone.md"))
        assert service.has_document
        assert service.content == ""
        assert service.rendered_tree.children == []

    def test_set_content_marks_dirty_and_rerenders(self):
        service = DocumentService()
        service.new_document(content="one")
        service.set_content("*two*")

        assert service.is_dirty
        assert service.rendered_tree.find_all('em')[0].text_content() == "two"

    def test_set_same_content_is_noop(self):
        event_bus = EventBus()
        service = DocumentService(event_bus=event_bus)
        service.new_document(content="same")
        events = []
        event_bus.subscribe(EventType.DOCUMENT_UPDATED, events.append)

        service.set_content("same")

        assert events == []
        assert not service.is_dirty

    def test_save_document(self, tmp_path):
        path = tmp_path / "doc.md"
        path.write_text("old")
        service = DocumentService()
        service.open_document(str(path))
        service.set_content("new")

        assert service.save_document()
        assert path.read_text() == "new"
        assert not service.is_dirty

    def test_save_untitled_requires_path(self, tmp_path):
        service = DocumentService()
        service.new_document(content="draft")
        assert not service.save_document()

        target = tmp_path / "draft.md"
        assert service.save_document_as(str(target))
        assert service.path == str(target)
        assert target.read_text() == "draft"

    def test_save_failure_emits_error(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        event_bus = EventBus()
        service = DocumentService(event_bus=event_bus)
        service.new_document(content="draft")
        service.set_content("changed")
        errors = []
        event_bus.subscribe(EventType.ERROR_OCCURRED, errors.append)

        assert not service.save_document_as(str(blocker / "x.md"))
        assert len(errors) == 1
        assert service.is_dirty

    def test_close_document(self):
        service = DocumentService()
        service.new_document(content="text")
        service.close_document()
        assert not service.has_document
        assert service.content == ""
        assert service.path is None

    def test_events_emitted(self, tmp_path):
        path = tmp_path / "doc.md"
        path.write_text("a")
        event_bus = EventBus()
        service = DocumentService(event_bus=event_bus)

        events = []
        for event_type in (EventType.DOCUMENT_LOADED, EventType.DOCUMENT_UPDATED,
                           EventType.DOCUMENT_SAVED, EventType.DOCUMENT_CLOSED):
            event_bus.subscribe(event_type, lambda e: events.append(e.type))

        service.open_document(str(path))
        service.set_content("b")
        service.save_document()
        service.close_document()

        assert events == [
            EventType.DOCUMENT_LOADED,
            EventType.DOCUMENT_UPDATED,
            EventType.DOCUMENT_SAVED,
            EventType.DOCUMENT_CLOSED,
        ]
