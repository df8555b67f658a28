"""DriveNode: a file or folder in iCloud Drive."""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Union, TYPE_CHECKING

import aiofiles

from .core.exceptions import NodeNotFoundError, NotDirectoryError, NotFileError
from .core.logging import get_logger
from .core.upload import UploadConfig, UploadResult

if TYPE_CHECKING:
    from .core.drive import DriveService, FileStream

logger = get_logger('icloudpy.node')


def _parse_time(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None


@dataclass
class DriveNode:
    """
    A file or folder in iCloud Drive.

    Children are fetched on first access and cached until ``stale()``.
    ``_children`` is None until listed; once listed it holds the list.
    A child knows its parent only by ``parent_id``.

        >>> root = await drive.root()
        >>> for name in await root.dir():
        ...     print(name)
        >>> report = await (await root.get("Documents")).get("report.pdf")
        >>> await report.download("report.pdf")
    """
    name: str
    extension: str = ''
    type: str = ''
    size: Optional[int] = None
    status: str = ''
    zone: str = ''
    date_created: Optional[datetime] = None
    date_changed: Optional[datetime] = None
    date_modified: Optional[datetime] = None
    last_opened: Optional[datetime] = None
    asset_quota: int = 0
    doc_id: str = ''
    drive_id: str = ''
    parent_id: str = ''
    etag: str = ''
    is_chained_to_parent: bool = False
    share_count: int = 0
    direct_children_count: int = 0
    file_count: int = 0
    item_count: int = 0

    _service: Optional[DriveService] = field(default=None, repr=False, compare=False)
    _children: Optional[List[DriveNode]] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_item(
        cls,
        item: Dict[str, Any],
        service: Optional[DriveService] = None,
        with_children: bool = False
    ) -> DriveNode:
        """
        Build a node from a drive item.

        Args:
            item: Item as returned by retrieveItemDetailsInFolders
            service: Drive service used for lazy loading and mutations
            with_children: The item carries its complete child listing
        """
        size = item.get('size')
        node = cls(
            name=item.get('name') or '',
            extension=item.get('extension') or '',
            type=(item.get('type') or '').lower(),
            size=int(size) if size is not None else None,
            status=item.get('status') or '',
            zone=item.get('zone') or '',
            date_created=_parse_time(item.get('dateCreated')),
            date_changed=_parse_time(item.get('dateChanged')),
            date_modified=_parse_time(item.get('dateModified')),
            last_opened=_parse_time(item.get('lastOpenTime')),
            asset_quota=int(item.get('assetQuota') or 0),
            doc_id=item.get('docwsid') or '',
            drive_id=item.get('drivewsid') or '',
            parent_id=item.get('parentId') or '',
            etag=item.get('etag') or '',
            is_chained_to_parent=bool(item.get('isChainedToParent')),
            share_count=int(item.get('shareCount') or 0),
            direct_children_count=int(item.get('directChildrenCount') or 0),
            file_count=int(item.get('fileCount') or 0),
            item_count=int(item.get('numberOfItems') or 0),
            _service=service,
        )
        if with_children and node.is_folder and service is not None:
            node._children = service.build_children(item)
        return node

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def full_name(self) -> str:
        """Base name joined with the extension when there is one."""
        if self.name and self.extension:
            return f"{self.name}.{self.extension}"
        return self.name

    @property
    def is_folder(self) -> bool:
        return self.type == 'folder'

    @property
    def is_file(self) -> bool:
        return not self.is_folder

    @property
    def file_size(self) -> int:
        """Size in bytes, -1 when unknown."""
        return -1 if self.size is None else self.size

    @property
    def is_listed(self) -> bool:
        return self._children is not None

    def _require_service(self) -> DriveService:
        if self._service is None:
            raise RuntimeError("No drive service attached")
        return self._service

    def __str__(self) -> str:
        kind = "[DIR]" if self.is_folder else "[FILE]"
        return f"{kind} {self.full_name}"

    # =========================================================================
    # Tree Navigation
    # =========================================================================

    async def children(self) -> List[DriveNode]:
        """
        Child nodes, fetched with one request on first call.

        Raises:
            NotDirectoryError: If this node is a file
        """
        if not self.is_folder:
            raise NotDirectoryError(f"{self.full_name}: must be a folder to list children")
        if self._children is None:
            service = self._require_service()
            item = await service.get_node_data(self.doc_id)
            self._children = service.build_children(item)
        return list(self._children)

    async def dir(self) -> List[str]:
        """Names of the children."""
        return [child.full_name for child in await self.children()]

    async def get(self, name: str) -> DriveNode:
        """
        Child with exactly this name (case-sensitive).

        Raises:
            NodeNotFoundError: If no child has this name
        """
        for child in await self.children():
            if child.full_name == name:
                return child
        raise NodeNotFoundError(f"{name}: path not found")

    def stale(self) -> None:
        """Drop the cached children; the next listing fetches them again."""
        self._children = None

    def __iter__(self) -> Iterator[DriveNode]:
        return iter(self._children or [])

    def __contains__(self, name: str) -> bool:
        return any(c.full_name == name for c in self._children or [])

    # =========================================================================
    # Content
    # =========================================================================

    async def open(self) -> FileStream:
        """
        Open the file for reading.

        Empty files (and files of unknown size) yield an empty stream
        without a request: the service rejects their download.

        Raises:
            NotFileError: If this node is a folder
        """
        from .core.drive import FileStream

        if self.is_folder:
            raise NotFileError(f"{self.full_name}: cannot open folder")
        if self.file_size <= 0:
            return FileStream.empty()
        return await self._require_service().get_file(self.doc_id)

    async def download(self, dest: Union[str, Path]) -> Path:
        """
        Download the file into a local path.

        The local file is always closed. If both the copy and the close
        fail, the copy error is raised.
        """
        path = Path(dest)
        stream = await self.open()
        try:
            try:
                out = await aiofiles.open(path, 'wb')
            except OSError as e:
                raise OSError(f"{path}: cannot create file: {e}") from e

            copy_error: Optional[BaseException] = None
            try:
                async for chunk in stream.iter_chunks():
                    await out.write(chunk)
            except Exception as e:
                copy_error = e

            try:
                await out.close()
            except Exception as e:
                if copy_error is None:
                    raise
                logger.debug(f"{path}: close failed after copy error: {e}")

            if copy_error is not None:
                raise copy_error
        finally:
            stream.close()

        logger.info(f"Saved {self.full_name} into {path}")
        return path

    async def upload(self, file_path: Union[str, Path]) -> UploadResult:
        """Upload a local file into this folder."""
        if not self.is_folder:
            raise NotDirectoryError(f"{self.full_name}: can only upload to a folder")
        return await self._require_service().upload(
            UploadConfig(folder_id=self.doc_id, file_path=Path(file_path))
        )

    async def put_stream(
        self,
        source: Union[bytes, BinaryIO],
        name: str,
        size: Optional[int] = None,
        mtime: Optional[datetime] = None
    ) -> UploadResult:
        """Upload a stream (or bytes) as ``name`` into this folder."""
        if not self.is_folder:
            raise NotDirectoryError(f"{self.full_name}: can only upload to a folder")
        return await self._require_service().upload(UploadConfig(
            folder_id=self.doc_id,
            source=source,
            name=name,
            size=size,
            mtime=mtime,
        ))

    # =========================================================================
    # Mutations (no cached node is updated)
    # =========================================================================

    async def delete(self) -> Any:
        """Move to trash, guarded by the current etag."""
        return await self._require_service().move_to_trash(self.drive_id, self.etag)

    async def rename(self, new_name: str) -> Any:
        return await self._require_service().rename_items(self.drive_id, self.etag, new_name)

    async def mkdir(self, name: str) -> Any:
        """Create a subfolder."""
        if not self.is_folder:
            raise NotDirectoryError(f"{self.full_name}: not a directory")
        return await self._require_service().create_folders(self.drive_id, name)
