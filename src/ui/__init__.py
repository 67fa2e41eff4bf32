"""
UI components for mdmirror.

This package contains GTK UI components that are decoupled from business logic.
Components communicate via the event bus and the EditorController.
"""

from .base import UIComponent
from .document_view import DocumentView
from .file_sidebar import FileSidebar

__all__ = ['UIComponent', 'DocumentView', 'FileSidebar']
