"""
Content upload service.

Posts the file bytes to the content URL obtained by staging.
"""
import inspect
import json
from pathlib import Path
from typing import Any, Optional, Tuple

import aiofiles
import aiohttp

from ..models import UploadedContent, UploadStaging
from ...logging import get_logger


class ContentUploader:
    """
    Uploads file content as a multipart form.

    The source is always closed before the request is sent. Of the errors
    raised while reading the source, building the form and closing the
    source, only the first one is propagated.
    """

    def __init__(self, api_client):
        """
        Initialize content uploader.

        Args:
            api_client: Async API client
        """
        self._api = api_client
        self._logger = get_logger('icloudpy.upload.content')

    async def upload(
        self,
        staging: UploadStaging,
        name: str,
        source: Any,
    ) -> UploadedContent:
        """
        Upload content to the staged document.

        Args:
            staging: Result of the staging request
            name: File name used for the form part
            source: Local Path, bytes, or a readable (sync or async) stream

        Returns:
            Content metadata needed by the commit request
        """
        form, error = await self._prepare(name, source)
        if error is not None:
            raise error

        self._logger.debug(f"Uploading content of {name} to document {staging.document_id}")
        response = await self._api.post(staging.content_url, form)
        if isinstance(response, (bytes, bytearray)):
            response = json.loads(response) if response.strip() else None
        return UploadedContent.from_response(response)

    async def _prepare(
        self,
        name: str,
        source: Any
    ) -> Tuple[Optional[aiohttp.MultipartWriter], Optional[BaseException]]:
        handle = source
        form = None
        error: Optional[BaseException] = None

        try:
            try:
                if isinstance(source, (str, Path)):
                    handle = await aiofiles.open(source, 'rb')
                form = self._build_form(name, await self._read(handle))
            except Exception as e:
                error = e
        finally:
            close_error = await self._close(handle)

        return form, error if error is not None else close_error

    @staticmethod
    async def _read(handle: Any) -> bytes:
        if isinstance(handle, (bytes, bytearray)):
            return bytes(handle)
        data = handle.read()
        if inspect.isawaitable(data):
            data = await data
        return data

    @staticmethod
    def _build_form(name: str, data: bytes) -> aiohttp.MultipartWriter:
        form = aiohttp.MultipartWriter('form-data')
        part = form.append(data, {'Content-Type': 'application/octet-stream'})
        part.set_content_disposition('form-data', name=name, filename=name)
        return form

    async def _close(self, handle: Any) -> Optional[Exception]:
        close = getattr(handle, 'close', None)
        if close is None:
            return None
        try:
            result = close()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self._logger.debug(f"Failed to close upload source: {e}")
            return e
        return None
