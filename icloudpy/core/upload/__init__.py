"""
Upload module for iCloud Drive uploads.

An upload is a staging request, a multipart content post and a commit
command attaching the staged document to a folder.
"""
from .coordinator import UploadCoordinator
from .models import UploadConfig, UploadResult, UploadStaging, UploadedContent
from .services import FileValidator, ContentUploader, DocumentCommitter

__all__ = [
    # Main classes
    'UploadCoordinator',

    # Services
    'FileValidator',
    'ContentUploader',
    'DocumentCommitter',

    # Models
    'UploadConfig',
    'UploadResult',
    'UploadStaging',
    'UploadedContent',
]
