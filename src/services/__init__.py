"""
Service layer for mdmirror.

Services hold application state and coordinate between repositories and
the rendering pipeline.
"""

from .document_service import DocumentService

__all__ = [
    'DocumentService',
]
