"""
File validation service.

Single Responsibility: checks local files before upload.
"""
from datetime import datetime, timezone
from pathlib import Path
from typing import Tuple, Union


class FileValidator:
    """
    Validates files before upload.

    Responsibilities:
    - Check file existence
    - Verify file is not a directory
    - Get file size and modification time
    """

    def validate(self, file_path: Union[str, Path]) -> Tuple[Path, int]:
        """
        Validate a file for upload.

        Args:
            file_path: Path to the file

        Returns:
            Tuple of (validated Path, file size in bytes)

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If path is not a regular file
        """
        path = Path(file_path) if isinstance(file_path, str) else file_path

        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        if not path.is_file():
            raise ValueError(f"Path is not a file: {path}")

        file_size = path.stat().st_size

        return path, file_size

    def modification_time(self, path: Path) -> datetime:
        """Modification time of a local file as an aware datetime."""
        return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
