"""Upload data models."""
from .upload_models import UploadStaging, UploadedContent, UploadConfig, UploadResult

__all__ = [
    'UploadStaging',
    'UploadedContent',
    'UploadConfig',
    'UploadResult',
]
