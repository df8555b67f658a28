"""
API configuration module.

Endpoints, network settings and the per-account data directory used by
the iCloud client.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any, Union
from urllib.parse import quote, urlsplit, urlunsplit
import ssl
import tempfile

import aiohttp

AUTH_ENDPOINT = 'https://idmsa.apple.com/appleauth/auth'
HOME_ENDPOINT = 'https://www.icloud.com'
SETUP_ENDPOINT = 'https://setup.icloud.com/setup/ws/1'
DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/74.0.3729.169 Safari/537.36'
)
OAUTH_KEY = 'd39ba9916b7251055b22c7f910e2ea796ee65e98b2ddecea8f5dde8d9d1a815d'


@dataclass
class ProxyConfig:
    """
    Outgoing proxy for every request (auth, drive and content hosts).

    Credentials given separately are embedded in the proxy URL.
    """
    url: str
    username: Optional[str] = None
    password: Optional[str] = None

    def to_aiohttp_proxy(self) -> str:
        if not self.username:
            return self.url
        parts = urlsplit(self.url)
        auth = quote(self.username, safe='')
        if self.password:
            auth += ':' + quote(self.password, safe='')
        return urlunsplit(parts._replace(netloc=f"{auth}@{parts.netloc}"))


@dataclass
class SSLConfig:
    """TLS verification for the iCloud hosts."""
    verify: bool = True
    ca_file: Optional[str] = None  # extra CA bundle, e.g. for an intercepting proxy

    def create_ssl_context(self) -> Union[ssl.SSLContext, bool]:
        """SSL context for aiohttp, or False to skip verification."""
        if not self.verify:
            return False
        return ssl.create_default_context(cafile=self.ca_file)


@dataclass
class TimeoutConfig:
    """
    Request timeouts in seconds.

    ``total`` is left unset: downloads are streamed and may run long.
    """
    total: Optional[float] = None
    connect: float = 30.0
    sock_read: float = 120.0

    def to_aiohttp_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read,
        )


@dataclass
class RetryConfig:
    """
    Retry configuration.

    Names the failures that earn the single retry a call is allowed.
    The budget itself is fixed at one retry per logical call.
    """
    auth_error_codes: tuple = (421, 450, 500)  # statuses retried verbatim once
    reauth_code: int = 450  # status that triggers re-authentication first
    reauth_webservice: str = 'findme'  # webservice whose URLs get re-authenticated
    reauth_app: str = 'find'  # app name used for the scoped re-authentication


@dataclass
class APIConfig:
    """
    Complete API configuration.

    Example:
        >>> config = APIConfig.with_proxy("http://proxy.local:3128")
        >>> client = ICloudClient("user@example.com", config=config)
    """
    # Endpoints
    auth_endpoint: str = AUTH_ENDPOINT
    home_endpoint: str = HOME_ENDPOINT
    setup_endpoint: str = SETUP_ENDPOINT

    user_agent: str = DEFAULT_USER_AGENT

    # OAuth widget key sent with sign-in requests
    oauth_key: str = OAUTH_KEY

    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)

    # Sent with every request, after the defaults
    extra_headers: Dict[str, str] = field(default_factory=dict)

    # Session and cookie files live under <data_root>/<apple_id>/
    data_root: Optional[Path] = None

    @classmethod
    def default(cls) -> 'APIConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def with_proxy(cls, proxy_url: str, **kwargs) -> 'APIConfig':
        """Configuration routing every request through ``proxy_url``."""
        return cls(proxy=ProxyConfig(url=proxy_url), **kwargs)

    @classmethod
    def insecure(cls, **kwargs) -> 'APIConfig':
        """Configuration that skips TLS certificate verification."""
        return cls(ssl=SSLConfig(verify=False), **kwargs)

    def proxy_url(self) -> Optional[str]:
        return self.proxy.to_aiohttp_proxy() if self.proxy else None

    def data_dir(self, apple_id: str) -> Path:
        """Directory holding session.json and cookies.txt for an account."""
        root = Path(self.data_root) if self.data_root else Path(tempfile.gettempdir()) / 'icloud'
        return root / apple_id

    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {'ssl': self.ssl.create_ssl_context()}

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        return {'timeout': self.timeout.to_aiohttp_timeout()}
