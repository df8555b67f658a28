"""
icloudpy - Async Python library for iCloud Drive.

Usage:
    >>> from icloudpy import ICloudClient
    >>>
    >>> async with ICloudClient("user@example.com", "secret") as icloud:
    ...     await icloud.start()
    ...     root = await (await icloud.drive()).root()
    ...     for name in await root.dir():
    ...         print(name)
"""
import logging
from .client import ICloudClient
from .node import DriveNode

# Configuration
from .core.api import (
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    RetryConfig,
    AsyncAPIClient,
    AsyncAuthService,
    AccountState,
    Device,
    ICloudAPIError,
)

# Session management
from .core.session import (
    SessionStorage,
    SessionData,
    JSONSession,
    MemorySession,
    CookieStore,
)

from .core.drive import DriveService, FileStream
from .core.upload import UploadConfig, UploadResult
from .core.exceptions import (
    ICloudException,
    ICloudAuthError,
    LoginFailedError,
    TwoStepRequiredError,
    NoDevicesError,
    WrongVerificationError,
    ServiceNotActiveError,
    SessionPersistError,
    InvalidResponseError,
    UploadTokenError,
    ICloudNodeError,
    NodeNotFoundError,
    NotDirectoryError,
    NotFileError,
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for icloudpy modules.

    This ensures that all icloudpy loggers are properly configured
    to show log messages at the specified level.

    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'icloudpy',
        'icloudpy.api',
        'icloudpy.auth',
        'icloudpy.client',
        'icloudpy.session',
        'icloudpy.drive',
        'icloudpy.node',
        'icloudpy.upload',
        'icloudpy.upload.content',
        'icloudpy.upload.commit',
        'icloudpy.upload.coordinator',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        # Ensure propagation is enabled
        logger.propagate = True


__all__ = [
    'ICloudClient',
    'DriveNode',
    'DriveService',
    'FileStream',
    'UploadConfig',
    'UploadResult',
    'SessionStorage',
    'SessionData',
    'JSONSession',
    'MemorySession',
    'CookieStore',
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'RetryConfig',
    'AsyncAPIClient',
    'AsyncAuthService',
    'AccountState',
    'Device',
    'ICloudAPIError',
    'ICloudException',
    'ICloudAuthError',
    'LoginFailedError',
    'TwoStepRequiredError',
    'NoDevicesError',
    'WrongVerificationError',
    'ServiceNotActiveError',
    'SessionPersistError',
    'InvalidResponseError',
    'UploadTokenError',
    'ICloudNodeError',
    'NodeNotFoundError',
    'NotDirectoryError',
    'NotFileError',
    'setup_logging',
]
