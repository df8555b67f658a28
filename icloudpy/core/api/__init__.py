"""iCloud API module: transport, authentication and configuration."""
from .errors import ICloudAPIError, APIErrorCodes
from .config import APIConfig, ProxyConfig, SSLConfig, TimeoutConfig, RetryConfig
from .models import AccountState, AppCapabilities, Device, DsInfo, WebService
from .async_client import AsyncAPIClient
from .async_auth import AsyncAuthService

__all__ = [
    # Async client
    'AsyncAPIClient',
    'AsyncAuthService',

    # Account models
    'AccountState',
    'AppCapabilities',
    'Device',
    'DsInfo',
    'WebService',

    # Configuration
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'RetryConfig',

    # Errors
    'ICloudAPIError',
    'APIErrorCodes',
]
