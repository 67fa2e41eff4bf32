"""
Repository implementations for the data access layer.

These classes keep file access out of the services and UI: markdown
documents on disk and the persisted settings file.
"""

from .markdown_file_repository import MarkdownFileRepository, FileTreeNode
from .settings_repository import SettingsRepository, DEFAULT_SETTINGS

__all__ = [
    'MarkdownFileRepository',
    'FileTreeNode',
    'SettingsRepository',
    'DEFAULT_SETTINGS',
]
