"""
Persistent cookie store.

Cookies are kept in the Netscape ``cookies.txt`` layout so that curl,
browsers' export tools and other clients can read the same file. The jar
is flushed to disk after every response.
"""
from email.message import Message
from http.cookiejar import Cookie, MozillaCookieJar
from pathlib import Path
from typing import Iterator, List, Optional, Union
import urllib.request

from ..logging import get_logger

logger = get_logger('icloudpy.session')


class _ResponseInfo:
    """Adapts aiohttp response headers to what http.cookiejar expects."""

    def __init__(self, headers):
        self._message = Message()
        getall = getattr(headers, 'getall', None)
        if getall is not None:
            values = getall('Set-Cookie', [])
        else:
            value = headers.get('Set-Cookie')
            values = [value] if value else []
        for value in values:
            self._message['Set-Cookie'] = value

    def info(self) -> Message:
        return self._message


class CookieStore:
    """
    Cookie jar keyed by domain, persisted as a plain-text cookie file.

    Example:
        >>> store = CookieStore("/tmp/icloud/user@example.com/cookies.txt")
        >>> store.load()
        >>> store.header_for("https://www.icloud.com/")
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Initialize cookie store.

        Args:
            path: Cookie file path; None keeps cookies in memory only
        """
        self._path = Path(path) if path else None
        self._jar = MozillaCookieJar(str(self._path) if self._path else None)

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def load(self) -> None:
        """Load cookies from disk. A missing file is not an error."""
        if self._path is None:
            return
        try:
            self._jar.load(ignore_discard=True, ignore_expires=True)
        except FileNotFoundError:
            logger.debug(f"Cookie file not found: {self._path}")

    def save(self) -> None:
        """
        Flush cookies to disk.

        Raises:
            OSError: If the file cannot be written
        """
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._jar.save(ignore_discard=True, ignore_expires=True)

    def header_for(self, url: str) -> Optional[str]:
        """Value of the Cookie header to send to ``url``."""
        request = urllib.request.Request(url)
        self._jar.add_cookie_header(request)
        return request.get_header('Cookie')

    def extract(self, url: str, headers) -> None:
        """Absorb the Set-Cookie headers of a response to ``url``."""
        request = urllib.request.Request(url)
        self._jar.extract_cookies(_ResponseInfo(headers), request)

    def set(self, name: str, value: str, domain: str, path: str = '/') -> None:
        """Store a cookie directly."""
        self._jar.set_cookie(Cookie(
            version=0, name=name, value=value,
            port=None, port_specified=False,
            domain=domain, domain_specified=domain.startswith('.'),
            domain_initial_dot=domain.startswith('.'),
            path=path, path_specified=True,
            secure=True, expires=None, discard=False,
            comment=None, comment_url=None, rest={},
        ))

    def get(self, name: str, domain: str) -> Optional[str]:
        """
        Value of the cookie ``name`` visible to ``domain``.

        A cookie set for ``.icloud.com`` is visible to ``icloud.com`` and
        ``www.icloud.com``.
        """
        host = domain.lower().lstrip('.')
        for cookie in self._jar:
            if cookie.name != name:
                continue
            cookie_domain = cookie.domain.lower().lstrip('.')
            if host == cookie_domain or host.endswith('.' + cookie_domain):
                return cookie.value
        return None

    def __iter__(self) -> Iterator[Cookie]:
        return iter(self._jar)

    def __len__(self) -> int:
        return len(self._jar)

    def names(self) -> List[str]:
        return [cookie.name for cookie in self._jar]
