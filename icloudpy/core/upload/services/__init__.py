"""Upload services module."""
from .file_service import FileValidator
from .content_service import ContentUploader
from .commit_service import DocumentCommitter

__all__ = [
    'FileValidator',
    'ContentUploader',
    'DocumentCommitter',
]
