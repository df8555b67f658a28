"""
iCloud Drive service.

Resolves the drive webservices from the account state and performs the
folder, download and mutation requests behind ``DriveNode``.
"""
from typing import Any, Dict, List, Optional

from .stream import FileStream
from ..exceptions import InvalidResponseError, NotDirectoryError
from ..logging import get_logger
from ..upload import UploadConfig, UploadCoordinator, UploadResult
from ...node import DriveNode

logger = get_logger('icloudpy.drive')


class DriveService:
    """
    iCloud Drive service.

    The root folder is fetched once and cached for the lifetime of the
    service. Mutations do not touch cached nodes: call ``DriveNode.stale()``
    to observe them.

    Example:
        >>> drive = DriveService(api)
        >>> root = await drive.root()
        >>> docs = await root.get("Documents")
    """

    ZONE = 'com.apple.CloudDocs'
    FOLDER_PREFIX = f'FOLDER::{ZONE}::'

    def __init__(self, api_client, uploader: Optional[UploadCoordinator] = None):
        """
        Initialize drive service.

        Args:
            api_client: Authenticated async API client

        Raises:
            ServiceNotActiveError: If drivews or docws is not available
        """
        self._api = api_client
        self._svc_root = api_client.account.webservice_url('drivews')
        self._doc_root = api_client.account.webservice_url('docws')
        self._uploader = uploader or UploadCoordinator(api_client, self._doc_root)
        self._root: Optional[DriveNode] = None

    @property
    def client_id(self) -> str:
        return self._api.session.client_id

    @property
    def uploader(self) -> UploadCoordinator:
        return self._uploader

    async def root(self) -> DriveNode:
        """Root folder, fetched on first call."""
        if self._root is None:
            item = await self.get_node_data('root')
            self._root = DriveNode.from_item(item, self, with_children=True)
        return self._root

    async def get_node_data(self, node_id: str) -> Dict[str, Any]:
        """
        Retrieve a folder item together with its children.

        Args:
            node_id: Document id of the folder ("root" for the root)
        """
        folder = {
            'drivewsid': self.FOLDER_PREFIX + node_id,
            'partialData': False,
        }
        response = await self._api.post(
            f"{self._svc_root}/retrieveItemDetailsInFolders", [folder]
        )
        if not isinstance(response, list) or not response or not isinstance(response[0], dict):
            raise InvalidResponseError("invalid node data")
        return response[0]

    async def get_path(self, path: str) -> DriveNode:
        """
        Resolve a slash-separated path from the root.

        Raises:
            NodeNotFoundError: If a component is missing
            NotDirectoryError: If an intermediate component is a file
        """
        node = await self.root()
        for part in path.split('/'):
            if not part or part == '.':
                continue
            if not node.is_folder:
                raise NotDirectoryError(f"{node.full_name}: not a directory")
            node = await node.get(part)
        return node

    async def get_file(self, document_id: str) -> FileStream:
        """
        Open a download stream for a document.

        Raises:
            InvalidResponseError: If no download URL is returned
        """
        url = f"{self._doc_root}/ws/{self.ZONE}/download/by_id?document_id={document_id}"
        response = await self._api.get(url)

        token = response.get('data_token') if isinstance(response, dict) else None
        file_url = token.get('url') if isinstance(token, dict) else None
        if not file_url:
            raise InvalidResponseError("failed to get file url")

        logger.debug(f"Downloading document {document_id}")
        return FileStream(await self._api.get(file_url, stream=True))

    async def move_to_trash(self, drive_id: str, etag: str) -> Any:
        """Move an item to the trash. A stale etag is rejected by the server."""
        data = {
            'items': [{
                'drivewsid': drive_id,
                'etag': etag,
                'clientId': self.client_id,
            }],
        }
        return await self._api.post(f"{self._svc_root}/moveItemsToTrash", data)

    async def rename_items(self, drive_id: str, etag: str, name: str) -> Any:
        data = {
            'items': [{
                'drivewsid': drive_id,
                'etag': etag,
                'name': name,
            }],
        }
        return await self._api.post(f"{self._svc_root}/renameItems", data)

    async def create_folders(self, parent_id: str, name: str) -> Any:
        """Create a folder under the folder with drive id ``parent_id``."""
        data = {
            'destinationDrivewsId': parent_id,
            'folders': [{
                'clientId': self.client_id,
                'name': name,
            }],
        }
        return await self._api.post(
            f"{self._svc_root}/createFolders", data, {'Content-Type': 'text/plain'}
        )

    async def upload(self, config: UploadConfig) -> UploadResult:
        """Upload a file; see ``UploadCoordinator.upload``."""
        return await self._uploader.upload(config)

    def build_children(self, item: Dict[str, Any]) -> List[DriveNode]:
        items = item.get('items') or []
        return [DriveNode.from_item(child, self) for child in items if isinstance(child, dict)]
