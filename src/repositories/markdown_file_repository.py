"""
Repository for reading and writing markdown documents on disk.
"""

import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from config import MARKDOWN_EXTENSIONS, FILE_TREE_CACHE_SECONDS


@dataclass
class FileTreeNode:
    """A file or directory in the markdown file listing."""
    name: str
    path: str
    is_directory: bool
    children: List['FileTreeNode'] = field(default_factory=list)


class MarkdownFileRepository:
    """
    Plain-text file access for markdown documents.

    Reads never raise: a failed read is reported and returns an empty
    string, so callers cannot tell an empty file from an unreadable one.
    """

    def __init__(self, cache_seconds: float = FILE_TREE_CACHE_SECONDS):
        self._cache_seconds = cache_seconds
        self._tree_cache: Dict[str, Tuple[float, List[FileTreeNode]]] = {}

    def read(self, path: str) -> str:
        """Return the file content, or "" if it cannot be read."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            print(f"[DocumentRepository] Failed to read {path}: {e}")
            return ""

    def write(self, path: str, text: str) -> bool:
        """Write ``text`` to ``path``. Returns True on success."""
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(text)
        except OSError as e:
            print(f"[DocumentRepository] Failed to write {path}: {e}")
            return False
        self.invalidate(os.path.dirname(os.path.abspath(path)))
        return True

    def exists(self, path: str) -> bool:
        return os.path.isfile(path)

    def is_markdown_file(self, path: str) -> bool:
        return path.lower().endswith(MARKDOWN_EXTENSIONS)

    def list_markdown_files(self, directory: str) -> List[FileTreeNode]:
        """
        List markdown files under ``directory`` recursively.

        Directories come first, then files, each sorted by name; directories
        with no markdown files anywhere beneath them are left out. Listings
        are cached per directory.
        """
        key = os.path.abspath(directory)
        cached = self._tree_cache.get(key)
        now = time.monotonic()
        if cached and now - cached[0] < self._cache_seconds:
            return cached[1]
        nodes = self._scan(key)
        self._tree_cache[key] = (now, nodes)
        return nodes

    def invalidate(self, directory: Optional[str] = None) -> None:
        """Drop cached listings for ``directory`` and its parents, or everything."""
        if directory is None:
            self._tree_cache.clear()
            return
        target = os.path.abspath(directory)
        for key in list(self._tree_cache):
            if target == key or target.startswith(key.rstrip(os.sep) + os.sep):
                del self._tree_cache[key]

    def _scan(self, directory: str) -> List[FileTreeNode]:
        try:
            entries = sorted(os.scandir(directory), key=lambda e: e.name.lower())
        except OSError as e:
            print(f"[DocumentRepository] Failed to list {directory}: {e}")
            return []
        dirs: List[FileTreeNode] = []
        files: List[FileTreeNode] = []
        for entry in entries:
            if entry.name.startswith('.'):
                continue
            if entry.is_dir(follow_symlinks=False):
                children = self._scan(entry.path)
                if children:
                    dirs.append(FileTreeNode(entry.name, entry.path, True, children))
            elif self.is_markdown_file(entry.name):
                files.append(FileTreeNode(entry.name, entry.path, False))
        return dirs + files
