"""iCloud Drive module."""
from .service import DriveService
from .stream import FileStream

__all__ = [
    'DriveService',
    'FileStream',
]
