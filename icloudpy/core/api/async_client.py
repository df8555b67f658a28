"""
Async iCloud API client.

One HTTP round trip per attempt, with session persistence after every
response and a single retry for transient authentication failures.
"""
import io
import json
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import aiohttp

from .config import APIConfig
from .errors import ICloudAPIError, decode_error, translate_error
from .models import AccountState
from .retry import AuthRetryStrategy, RetryAction, RetryBudget
from ..exceptions import ICloudException, SessionPersistError
from ..logging import get_logger, redact, truncate
from ..session import CookieStore, MemorySession, SessionData, SessionStorage

JSON_CONTENT_TYPES = ('application/json', 'text/json')

# Callable re-running authentication: (force_refresh, service) -> None
Reauthenticator = Callable[[bool, Optional[str]], Awaitable[None]]


class AsyncAPIClient:
    """
    Asynchronous iCloud API client (transport).

    Features:
    - JSON encoding of request bodies, streams piped through unchanged
    - Session headers and cookies persisted after every response
    - Response classification (JSON payload, raw bytes, stream, failure)
    - At most one retry per call for transient auth failures
    - Typed errors for application-level error payloads

    Not safe for concurrent use: one caller at a time per session.

    Example:
        >>> async with AsyncAPIClient(config, session, storage, cookies) as api:
        ...     state = await api.post(config.setup_endpoint + '/validate')
    """

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        session: Optional[SessionData] = None,
        storage: Optional[SessionStorage] = None,
        cookies: Optional[CookieStore] = None,
        http_session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize async API client.

        Args:
            config: API configuration (uses defaults if not provided)
            session: Session credentials, mutated in place after each response
            storage: Where the session is persisted after each response
            cookies: Cookie jar sent with requests and flushed after responses
            http_session: Optional aiohttp session (created lazily otherwise)
        """
        self._config = config or APIConfig.default()
        self._session_data = session if session is not None else SessionData()
        self._session_data.ensure_client_id()
        self._storage: SessionStorage = storage if storage is not None else MemorySession()
        self._cookies = cookies if cookies is not None else CookieStore()
        self._http = http_session
        self._owns_http = http_session is None
        self._strategy = AuthRetryStrategy(
            self._config.retry.auth_error_codes,
            self._config.retry.reauth_code,
        )
        self._reauthenticate: Optional[Reauthenticator] = None
        self.account = AccountState()

        self._logger = get_logger('icloudpy.api')

    @property
    def config(self) -> APIConfig:
        """Get current configuration."""
        return self._config

    @property
    def session(self) -> SessionData:
        """Session credentials (mutated by every response)."""
        return self._session_data

    @property
    def cookies(self) -> CookieStore:
        return self._cookies

    def set_reauthenticator(self, callback: Optional[Reauthenticator]) -> None:
        """Register the callback used to re-authenticate an expired sub-service."""
        self._reauthenticate = callback

    async def __aenter__(self) -> 'AsyncAPIClient':
        """Async context manager entry."""
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._http is None or self._http.closed:
            connector = aiohttp.TCPConnector(**self._config.get_connector_kwargs())
            self._http = aiohttp.ClientSession(
                connector=connector,
                # Cookies are managed by CookieStore
                cookie_jar=aiohttp.DummyCookieJar(),
                **self._config.get_session_kwargs()
            )
            self._owns_http = True
        return self._http

    async def close(self):
        """Close client and release resources."""
        if self._owns_http and self._http is not None and not self._http.closed:
            await self._http.close()
        self._http = None

    async def get(self, url: str, headers: Optional[Dict[str, str]] = None, **kwargs) -> Any:
        """GET request."""
        return await self.request('GET', url, None, headers, **kwargs)

    async def post(
        self,
        url: str,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
        **kwargs
    ) -> Any:
        """POST request."""
        return await self.request('POST', url, data, headers, **kwargs)

    async def request(
        self,
        method: str,
        url: str,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
        *,
        stream: bool = False
    ) -> Any:
        """
        Execute one logical API call.

        Args:
            method: HTTP method
            url: Absolute URL
            data: Request body (see ``_encode_body``)
            headers: Extra request headers
            stream: Return the open response instead of reading it

        Returns:
            Decoded JSON document, raw bytes for non-JSON bodies,
            or an open ``aiohttp.ClientResponse`` in stream mode

        Raises:
            ICloudAPIError: On HTTP or application errors
            SessionPersistError: If session state cannot be written
            aiohttp.ClientError: On connection failures
        """
        body, body_repr = self._encode_body(data)
        budget = RetryBudget.ONE

        while True:
            response = await self._send(method, url, body, body_repr, headers)

            if stream:
                if response.status >= 400:
                    response.release()
                    raise translate_error(response.status, response.reason or '',
                                          response.reason or '', self.account)
                self._logger.debug(f"Streaming data from url {url}")
                return response

            status = response.status
            reason = response.reason or ''
            try:
                payload = await response.read()
            finally:
                response.release()

            is_json = self._content_type(response) in JSON_CONTENT_TYPES
            is_auth_err = self._strategy.is_auth_error(status)
            length = response.headers.get('Content-Length') or f"{len(payload)}.."
            self._logger.debug(
                f"Results: code={status} noauth={is_auth_err} json={is_json} len={length}"
            )

            if self._strategy.is_failure(status, is_json):
                action = self._strategy.decide(status, budget, self._in_reauth_service(url))
                if action is RetryAction.REAUTH_THEN_RETRY:
                    budget = budget.spend()
                    await self._reauth_service()
                    continue
                if action is RetryAction.RETRY:
                    budget = budget.spend()
                    self._logger.debug(f"Auth error {reason} ({status}). Retrying...")
                    continue
                raise translate_error(status, reason, reason, self.account)

            if not is_json:
                return payload
            return self._decode_json(payload)

    async def _send(
        self,
        method: str,
        url: str,
        body: Any,
        body_repr: str,
        headers: Optional[Dict[str, str]]
    ) -> aiohttp.ClientResponse:
        """Send one request and persist session state from its response."""
        http = self._ensure_session()

        request_headers = {
            'Origin': self._config.home_endpoint,
            'Referer': self._config.home_endpoint + '/',
            'User-Agent': self._config.user_agent,
            **self._config.extra_headers,
        }
        for key, value in (headers or {}).items():
            request_headers[key] = str(value)
        cookie_header = self._cookies.header_for(url)
        if cookie_header:
            request_headers['Cookie'] = cookie_header

        self._logger.debug(f"{method} {url} {body_repr}")
        proxy = self._config.proxy_url()
        response = await http.request(
            method, url, data=body, headers=request_headers, proxy=proxy
        )

        try:
            self._persist(url, response.headers)
        except SessionPersistError:
            response.release()
            raise
        return response

    def _persist(self, url: str, headers) -> None:
        """Absorb cookies and session headers, then write both to storage."""
        try:
            self._cookies.extract(url, headers)
            self._cookies.save()
            self._session_data.apply_response_headers(headers)
            self._storage.save(self._session_data)
        except (OSError, ValueError) as e:
            raise SessionPersistError(f"cannot save session state: {e}") from e
        self._logger.debug("Saved session state")

    def _encode_body(self, data: Any) -> Tuple[Any, str]:
        """Return the wire body and a loggable representation."""
        if data is None:
            return None, 'null'
        if isinstance(data, (aiohttp.MultipartWriter, aiohttp.FormData, io.IOBase)):
            return data, 'stream'
        if isinstance(data, (bytes, bytearray)):
            return bytes(data), truncate(bytes(data).decode('utf-8', 'replace'), 300)
        if isinstance(data, str):
            return data.encode('utf-8'), truncate(data, 300)
        body = json.dumps(data).encode('utf-8')
        return body, truncate(json.dumps(redact(data)), 300)

    def _decode_json(self, payload: bytes) -> Any:
        if not payload.strip():
            return None
        try:
            document = json.loads(payload)
        except ValueError as e:
            self._logger.error(f"Invalid JSON response: {truncate(payload.decode('utf-8', 'replace'))}")
            raise ICloudAPIError(0, '', f"invalid JSON response: {e}") from e

        error = decode_error(document, self.account)
        if error is not None:
            raise error
        self._logger.debug(f"JSON response: {truncate(json.dumps(redact(document)))}")
        return document

    @staticmethod
    def _content_type(response: aiohttp.ClientResponse) -> str:
        return response.headers.get('Content-Type', '').split(';')[0].strip().lower()

    def _in_reauth_service(self, url: str) -> bool:
        try:
            service_url = self.account.webservice_url(self._config.retry.reauth_webservice)
        except ICloudException:
            return False
        return bool(service_url) and service_url in url

    async def _reauth_service(self) -> None:
        app = self._config.retry.reauth_app
        self._logger.debug(f"Re-authenticating {app} service")
        if self._reauthenticate is None:
            return
        try:
            await self._reauthenticate(True, app)
        except SessionPersistError:
            raise
        except (ICloudException, aiohttp.ClientError) as e:
            self._logger.debug(f"Re-authentication failed: {e}")
