"""
Document commit service.

Attaches staged content to the remote tree.
"""
from datetime import datetime
from typing import Any, Dict

from ..models import UploadedContent, UploadStaging
from ...logging import get_logger


class DocumentCommitter:
    """
    Commits a staged document with an ``add_file`` command.

    If the commit fails the staged content stays orphaned on the server.
    Nothing is cleaned up here: callers retry the whole upload from scratch.
    """

    def __init__(self, api_client, docws_root: str):
        """
        Initialize document committer.

        Args:
            api_client: Async API client
            docws_root: Base URL of the document webservice
        """
        self._api = api_client
        self._url = f"{docws_root}/ws/com.apple.CloudDocs/update/documents"
        self._logger = get_logger('icloudpy.upload.commit')

    def build_command(
        self,
        staging: UploadStaging,
        content: UploadedContent,
        name: str,
        mtime: datetime
    ) -> Dict[str, Any]:
        """
        Build the ``add_file`` command.

        The receipt is only sent when the content upload returned one.
        """
        data: Dict[str, Any] = {
            'signature': content.checksum,
            'wrapping_key': content.wrapping_key,
            'reference_signature': content.reference_checksum,
            'size': content.size,
        }
        if content.receipt:
            data['receipt'] = content.receipt

        millis = int(mtime.timestamp() * 1000)
        return {
            'data': data,
            'command': 'add_file',
            'create_short_guid': True,
            'document_id': staging.document_id,
            'path': {
                'starting_document_id': staging.folder_id,
                'path': name,
            },
            'allow_conflict': True,
            'file_flags': {
                'is_writable': True,
                'is_executable': False,
                'is_hidden': False,
            },
            'mtime': millis,
            'btime': millis,
        }

    async def commit(
        self,
        staging: UploadStaging,
        content: UploadedContent,
        name: str,
        mtime: datetime
    ) -> Dict[str, Any]:
        """
        Commit the staged document.

        Returns:
            Commit response

        Raises:
            ICloudAPIError: If the server rejects the command
        """
        command = self.build_command(staging, content, name, mtime)
        self._logger.debug(f"Committing document {staging.document_id} as {name}")
        response = await self._api.post(self._url, command, {'Content-Type': 'text/plain'})
        return response if isinstance(response, dict) else {}
