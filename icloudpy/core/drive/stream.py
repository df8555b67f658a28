"""Readable stream over a file download."""
from typing import AsyncIterator, Optional

import aiohttp


class FileStream:
    """
    Async readable wrapper over a streamed download response.

    The empty variant holds no response, is already closed and reads as b"".

    Example:
        >>> async with await node.open() as stream:
        ...     async for chunk in stream.iter_chunks():
        ...         handle(chunk)
    """

    CHUNK_SIZE = 64 * 1024

    def __init__(self, response: Optional[aiohttp.ClientResponse] = None):
        self._response = response
        self._closed = response is None

    @classmethod
    def empty(cls) -> 'FileStream':
        """An already-closed stream with no content."""
        return cls(None)

    @property
    def closed(self) -> bool:
        return self._closed

    async def read(self, n: int = -1) -> bytes:
        """Read up to ``n`` bytes (everything if ``n`` is negative)."""
        if self._response is None:
            return b''
        return await self._response.content.read(n)

    async def iter_chunks(self, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
        if self._response is None:
            return
        async for chunk in self._response.content.iter_chunked(chunk_size):
            yield chunk

    def close(self) -> None:
        if self._response is not None and not self._closed:
            self._response.release()
        self._closed = True

    async def __aenter__(self) -> 'FileStream':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()
