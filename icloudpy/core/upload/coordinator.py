"""
Upload coordinator.

Orchestrates the upload transaction: stage, send content, commit.
The two server-side phases are not atomic; a failed commit leaves the
staged content orphaned and the caller must retry the whole upload.
"""
import mimetypes
import re
from datetime import datetime, timezone
from typing import Any, Optional

from .models import UploadConfig, UploadResult, UploadStaging
from .services import ContentUploader, DocumentCommitter, FileValidator
from ..exceptions import InvalidResponseError, UploadTokenError
from ..logging import get_logger

logger = get_logger('icloudpy.upload.coordinator')

TOKEN_COOKIE = 'X-APPLE-WEBAUTH-VALIDATE'
TOKEN_DOMAIN = 'icloud.com'
TOKEN_PATTERN = re.compile(r'\bt=([^:]+)')


class UploadCoordinator:
    """
    Coordinates the file upload process.

    Uses dependency injection for its services so each leg can be
    replaced in tests.
    """

    def __init__(
        self,
        api_client,
        docws_root: str,
        validator: Optional[FileValidator] = None,
        content_uploader: Optional[ContentUploader] = None,
        committer: Optional[DocumentCommitter] = None
    ):
        """
        Initialize upload coordinator.

        Args:
            api_client: Async API client (its cookie store holds the upload token)
            docws_root: Base URL of the document webservice
            validator: Local file validator
            content_uploader: Content upload leg
            committer: Commit leg
        """
        self._api = api_client
        self._docws_root = docws_root
        self._validator = validator or FileValidator()
        self._content = content_uploader or ContentUploader(api_client)
        self._committer = committer or DocumentCommitter(api_client, docws_root)

    def upload_token(self) -> str:
        """
        Short-lived upload token carried by the validate cookie.

        Raises:
            UploadTokenError: If the cookie or its token field is missing
        """
        value = self._api.cookies.get(TOKEN_COOKIE, TOKEN_DOMAIN)
        match = TOKEN_PATTERN.search(value) if value else None
        if match is None:
            raise UploadTokenError()
        return match.group(1)

    async def stage(self, folder_id: str, name: str, content_type: str, size: int) -> UploadStaging:
        """
        Request a content URL for a new document.

        Raises:
            UploadTokenError: If the upload token cannot be obtained
            InvalidResponseError: If the server returns no document id or URL
        """
        token = self.upload_token()
        url = f"{self._docws_root}/ws/com.apple.CloudDocs/upload/web?token={token}"
        data = {
            'filename': name,
            'type': 'FILE',
            'content_type': content_type,
            'size': size,
        }
        response = await self._api.post(url, data, {'Content-Type': 'text/plain'})

        entry = response[0] if isinstance(response, list) and response else {}
        document_id = entry.get('document_id') if isinstance(entry, dict) else None
        content_url = entry.get('url') if isinstance(entry, dict) else None
        if not document_id or not content_url:
            raise InvalidResponseError("invalid content url")
        return UploadStaging(document_id=document_id, content_url=content_url, folder_id=folder_id)

    async def upload(self, config: UploadConfig) -> UploadResult:
        """
        Execute the complete upload process.

        Args:
            config: Upload configuration

        Returns:
            Upload result with the committed document

        Raises:
            FileNotFoundError: If the local file doesn't exist
            UploadTokenError: If the upload token cannot be obtained
            ICloudAPIError: If any leg is rejected
        """
        source: Any = config.source
        size = config.size
        mtime = config.mtime
        if config.file_path is not None:
            path, size = self._validator.validate(config.file_path)
            source = path
            if mtime is None:
                mtime = self._validator.modification_time(path)
        if size is None:
            raise ValueError("size is required when uploading a stream")
        if mtime is None:
            mtime = datetime.now(timezone.utc)

        name = config.name
        content_type = config.content_type or mimetypes.guess_type(name)[0] or ''
        logger.info(f"Starting upload: {name} ({size} bytes)")

        staging = await self.stage(config.folder_id, name, content_type, size)
        logger.debug(f"Staged document {staging.document_id}")

        content = await self._content.upload(staging, name, source)
        response = await self._committer.commit(staging, content, name, mtime)

        logger.info(f"Upload complete: {name}")
        return UploadResult(
            document_id=staging.document_id,
            name=name,
            size=content.size,
            response=response,
        )

    async def put_stream(
        self,
        folder_id: str,
        source: Any,
        name: str,
        size: int,
        mtime: Optional[datetime] = None
    ) -> UploadResult:
        """Upload an open stream (or bytes) as ``name`` into a folder."""
        return await self.upload(UploadConfig(
            folder_id=folder_id,
            source=source,
            name=name,
            size=size,
            mtime=mtime,
        ))
