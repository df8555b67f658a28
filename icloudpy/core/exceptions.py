"""
Custom exceptions for iCloud operations.

This module defines the exception classes surfaced by the client:
authentication sentinels, remote tree structural errors and fatal
session/upload conditions. API errors carrying a server code live in
``icloudpy.core.api.errors``.
"""
from typing import Optional


class ICloudException(Exception):
    """Base exception for all iCloud-related errors."""

    def __init__(self, message: str, error_code: Optional[int] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            error_code: Numeric error code (if available)
        """
        self.error_code = error_code
        super().__init__(message)


class ICloudAuthError(ICloudException):
    """Exception raised for authentication-related errors."""
    pass


class LoginFailedError(ICloudAuthError):
    """Login was refused. The server reason is intentionally hidden."""

    def __init__(self, message: str = "icloud login failed") -> None:
        super().__init__(message)


class TwoStepRequiredError(ICloudAuthError):
    """The account must finish 2-step authentication first."""

    def __init__(self, message: str = "2-step authentication required for account") -> None:
        super().__init__(message)


class NoDevicesError(ICloudAuthError):
    """The account has no trusted devices to send a code to."""

    def __init__(self, message: str = "no icloud device") -> None:
        super().__init__(message)


class WrongVerificationError(ICloudAuthError):
    """The verification code was rejected. Callers may re-prompt."""

    def __init__(self, message: str = "wrong verification code") -> None:
        super().__init__(message)


class ServiceNotActiveError(ICloudException):
    """A webservice is missing from the account metadata or not active."""

    def __init__(self, message: str = "icloud service not activated") -> None:
        super().__init__(message)


class SessionPersistError(ICloudException):
    """Session or cookie state could not be written to disk."""
    pass


class InvalidResponseError(ICloudException):
    """The server answered with a structurally unusable document."""
    pass


class UploadTokenError(ICloudException):
    """The upload token cookie is missing from the cookie store."""

    def __init__(self, message: str = "cannot obtain upload token") -> None:
        super().__init__(message)


class ICloudNodeError(ICloudException):
    """Exception raised for remote tree operations."""
    pass


class NodeNotFoundError(ICloudNodeError):
    """Exception raised when a node is not found."""

    def __init__(self, message: str = "path not found") -> None:
        super().__init__(message)


class NotDirectoryError(ICloudNodeError):
    """Exception raised when a folder operation targets a file."""

    def __init__(self, message: str = "path is not a directory") -> None:
        super().__init__(message)


class NotFileError(ICloudNodeError):
    """Exception raised when a file operation targets a folder."""

    def __init__(self, message: str = "path is not a file") -> None:
        super().__init__(message)
