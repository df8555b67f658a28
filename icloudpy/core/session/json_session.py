"""
JSON file session storage implementation.

Provides persistent session storage in a small flat JSON document,
rewritten after every request.
"""
import os
from pathlib import Path
from typing import Optional, Union

from ..logging import get_logger
from .protocols import SessionStorage
from .models import SessionData

logger = get_logger('icloudpy.session')


class JSONSession(SessionStorage):
    """
    JSON-file session storage.

    A missing file means "no prior session" and loads as None.
    The file is written with owner-only permissions.

    Example:
        >>> session = JSONSession("/tmp/icloud/user@example.com/session.json")
        >>> session.save(session_data)
        >>> loaded = session.load()
    """

    FILE_MODE = 0o600

    def __init__(self, path: Union[str, Path]):
        """
        Initialize JSON session storage.

        Args:
            path: Session file path; the parent directory is created if needed
        """
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        """Get session file path."""
        return self._path

    def load(self) -> Optional[SessionData]:
        """
        Load session data from file.

        Returns:
            SessionData if the file exists, None otherwise

        Raises:
            ValueError: If the file is not a JSON object
        """
        try:
            text = self._path.read_text(encoding='utf-8')
        except FileNotFoundError:
            logger.debug(f"Session file not found: {self._path}")
            return None
        return SessionData.from_json(text)

    def save(self, data: SessionData) -> None:
        """
        Save session data to file.

        Args:
            data: Session data to save

        Raises:
            OSError: If the file cannot be written
        """
        fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, self.FILE_MODE)
        with os.fdopen(fd, 'w', encoding='utf-8') as handle:
            handle.write(data.to_json())
        os.chmod(self._path, self.FILE_MODE)

    def delete(self) -> None:
        """Delete the session file."""
        if self._path.exists():
            self._path.unlink()

    def exists(self) -> bool:
        """
        Check if session exists.

        Returns:
            True if the session file exists
        """
        return self._path.exists()

    def close(self) -> None:
        """Close storage (no-op, the file is not held open)."""
        pass

    def __enter__(self) -> 'JSONSession':
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
