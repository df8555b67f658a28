"""
Data models for upload module.

Uses dataclasses for immutable, type-safe data structures.
"""
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, Union


@dataclass(frozen=True)
class UploadStaging:
    """
    Placeholder document produced by the staging request.

    Short-lived: consumed by the content upload of the same transaction
    and never reused.

    Attributes:
        document_id: Server-side id of the staged document
        content_url: Where the file bytes are posted
        folder_id: Document id of the destination folder
    """
    document_id: str
    content_url: str
    folder_id: str


@dataclass(frozen=True)
class UploadedContent:
    """
    Content metadata returned by the content upload (``singleFile``).

    ``receipt`` is empty for zero-byte files.
    """
    checksum: str = ''
    reference_checksum: str = ''
    wrapping_key: str = ''
    receipt: str = ''
    size: int = 0

    @classmethod
    def from_response(cls, data: Any) -> 'UploadedContent':
        single = data.get('singleFile') if isinstance(data, dict) else None
        if not isinstance(single, dict):
            single = {}
        return cls(
            checksum=single.get('fileChecksum') or '',
            reference_checksum=single.get('referenceChecksum') or '',
            wrapping_key=single.get('wrappingKey') or '',
            receipt=single.get('receipt') or '',
            size=int(single.get('size') or 0),
        )


@dataclass
class UploadConfig:
    """
    Configuration for file upload.

    Attributes:
        folder_id: Document id of the destination folder
        file_path: Local file to upload (mutually exclusive with ``source``)
        source: Open binary stream or bytes to upload
        name: Remote file name (defaults to the local file name)
        size: Size in bytes (required with ``source``)
        mtime: Modification time (defaults to the local file's mtime or now)
        content_type: MIME type (guessed from the name if omitted)
    """
    folder_id: str
    file_path: Optional[Path] = None
    source: Optional[Union[bytes, BinaryIO]] = None
    name: Optional[str] = None
    size: Optional[int] = None
    mtime: Optional[datetime] = None
    content_type: Optional[str] = None

    def __post_init__(self):
        """Validate and normalize config."""
        if isinstance(self.file_path, str):
            self.file_path = Path(self.file_path)

        if self.file_path is None and self.source is None:
            raise ValueError("Either file_path or source is required")
        if self.file_path is not None and self.source is not None:
            raise ValueError("file_path and source are mutually exclusive")

        if self.name is None:
            if self.file_path is None:
                raise ValueError("name is required when uploading a stream")
            self.name = self.file_path.name
        else:
            self.name = Path(self.name).name

        if isinstance(self.source, (bytes, bytearray)) and self.size is None:
            self.size = len(self.source)


@dataclass(frozen=True)
class UploadResult:
    """
    Result of a committed upload.

    Attributes:
        document_id: Id of the staged-then-committed document
        name: Remote file name
        size: Size reported by the content upload
        response: Raw commit response
    """
    document_id: str
    name: str
    size: int
    response: Dict[str, Any] = field(default_factory=dict)
