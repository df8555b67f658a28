"""
Session storage protocols.

Defines interfaces for session storage implementations.
"""
from typing import Protocol, Optional, runtime_checkable
from .models import SessionData


@runtime_checkable
class SessionStorage(Protocol):
    """
    Protocol for session storage implementations.

    Implementations can use a JSON file, memory, or any other backend.
    The client saves after every HTTP round trip, so ``save`` must be cheap
    and must raise when the data could not be written.
    """

    def load(self) -> Optional[SessionData]:
        """
        Load session data from storage.

        Returns:
            SessionData if session exists, None otherwise
        """
        ...

    def save(self, data: SessionData) -> None:
        """
        Save session data to storage.

        Args:
            data: Session data to save
        """
        ...

    def delete(self) -> None:
        """
        Delete session data from storage.
        """
        ...

    def exists(self) -> bool:
        """
        Check if session exists in storage.

        Returns:
            True if session exists
        """
        ...

    def close(self) -> None:
        """
        Close storage and release resources.
        """
        ...
