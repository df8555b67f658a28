"""
ICloudClient - High-level async client for iCloud.

Example:
    >>> async with ICloudClient("user@example.com", "secret") as icloud:
    ...     await icloud.start()
    ...     root = await (await icloud.drive()).root()
    ...     print(await root.dir())
"""
import asyncio
import dataclasses
import getpass
import inspect
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

from .core.api import (
    APIConfig,
    AccountState,
    AsyncAPIClient,
    AsyncAuthService,
    Device,
)
from .core.drive import DriveService
from .core.exceptions import WrongVerificationError
from .core.logging import get_logger
from .core.session import CookieStore, JSONSession, SessionData, SessionStorage

SESSION_FILE = 'session.json'
COOKIE_FILE = 'cookies.txt'

# Called with a prompt message, returns the code typed by the user
CodePrompt = Callable[[str], Any]
# Called with the trusted devices, returns the one to send a code to
DeviceChooser = Callable[[List[Device]], Any]


class ICloudClient:
    """
    High-level async client for iCloud with persistent sessions.

    Session credentials and cookies are kept under
    ``<data_root>/<apple_id>/`` and reused on the next run, so a valid
    session token skips the password and the verification prompts.

        >>> client = ICloudClient("user@example.com", "secret")
        >>> async with client:
        ...     await client.start()
        ...     drive = await client.drive()

    The client is meant for one caller at a time and one live client per
    data directory.
    """

    def __init__(
        self,
        apple_id: str,
        password: Optional[str] = None,
        *,
        config: Optional[APIConfig] = None,
        data_root: Optional[Union[str, Path]] = None,
        session: Optional[SessionStorage] = None,
        cookies: Optional[CookieStore] = None,
        http_session=None
    ):
        """
        Initialize iCloud client.

        Args:
            apple_id: Apple ID (account name)
            password: Password (only needed when the stored session is invalid)
            config: Optional API configuration
            data_root: Root directory for per-account session files
            session: Session storage (defaults to a JSON file in the data directory)
            cookies: Cookie store (defaults to cookies.txt in the data directory)
            http_session: Optional aiohttp session to send requests with
        """
        self._config = config or APIConfig.default()
        if data_root is not None:
            self._config = dataclasses.replace(self._config, data_root=Path(data_root))
        self._apple_id = apple_id
        self._logger = get_logger('icloudpy.client')

        self._data_dir = self._config.data_dir(apple_id)
        if session is None or cookies is None:
            self._data_dir.mkdir(parents=True, exist_ok=True, mode=0o700)

        self._storage: SessionStorage = (
            session if session is not None else JSONSession(self._data_dir / SESSION_FILE)
        )
        self._cookies = cookies if cookies is not None else CookieStore(self._data_dir / COOKIE_FILE)
        self._cookies.load()

        session_data = self._storage.load()
        if session_data is None:
            session_data = SessionData()
        if not session_data.client_id:
            session_data.ensure_client_id()
            self._storage.save(session_data)

        self._api = AsyncAPIClient(
            self._config,
            session_data,
            self._storage,
            self._cookies,
            http_session=http_session,
        )
        self._auth = AsyncAuthService(self._api, apple_id, password)
        self._api.set_reauthenticator(self._auth.authenticate)
        self._drive: Optional[DriveService] = None

    @property
    def apple_id(self) -> str:
        return self._apple_id

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def api(self) -> AsyncAPIClient:
        """Underlying transport."""
        return self._api

    @property
    def auth(self) -> AsyncAuthService:
        return self._auth

    @property
    def session(self) -> SessionData:
        return self._api.session

    @property
    def account(self) -> AccountState:
        """Current account snapshot."""
        return self._api.account

    # =========================================================================
    # Authentication
    # =========================================================================

    async def authenticate(self, force_refresh: bool = False, service: Optional[str] = None) -> None:
        await self._auth.authenticate(force_refresh, service)

    def requires_2fa(self) -> bool:
        return self._auth.requires_2fa()

    def requires_2sa(self) -> bool:
        return self._auth.requires_2sa()

    def is_trusted_session(self) -> bool:
        return self._auth.is_trusted_session()

    async def trusted_devices(self) -> List[Device]:
        return await self._auth.trusted_devices()

    async def send_verification_code(self, device: Device) -> None:
        await self._auth.send_verification_code(device)

    async def validate_verification_code(self, device: Device, code: str) -> None:
        await self._auth.validate_verification_code(device, code)

    async def validate_2fa_code(self, code: str) -> None:
        await self._auth.validate_2fa_code(code)

    async def trust_session(self) -> None:
        await self._auth.trust_session()

    async def start(
        self,
        code_prompt: Optional[CodePrompt] = None,
        device_chooser: Optional[DeviceChooser] = None
    ) -> 'ICloudClient':
        """
        Authenticate and complete any verification interactively.

        Args:
            code_prompt: Returns the verification code (stdin by default)
            device_chooser: Picks the device for 2-step auth (first by default)

        Returns:
            Self for chaining

        Raises:
            LoginFailedError: If credentials are refused
            NoDevicesError: If 2-step auth is required but no device is trusted
        """
        await self.authenticate()

        if self.requires_2sa() and not self.requires_2fa():
            self._logger.warning("Two-step authentication required.")
            devices = await self.trusted_devices()
            self._logger.info(f"Your trusted devices are: {', '.join(map(str, devices))}")
            device = await self._call(device_chooser, devices) if device_chooser else devices[0]
            self._logger.info(f"Sending verification code to {device}...")
            await self.send_verification_code(device)
            while True:
                code = await self._prompt(code_prompt, "Please enter validation code: ")
                try:
                    await self.validate_verification_code(device, code)
                    break
                except WrongVerificationError:
                    self._logger.warning("Wrong verification code, try again.")

        if self.requires_2fa():
            self._logger.warning("Two-factor authentication required.")
            while True:
                code = await self._prompt(
                    code_prompt,
                    "Enter the code you received of one of your approved devices: "
                )
                try:
                    await self.validate_2fa_code(code)
                    break
                except WrongVerificationError:
                    self._logger.warning("Wrong security code, try again.")

            if not self.is_trusted_session():
                self._logger.info("Session is not trusted. Requesting trust...")
                try:
                    await self.trust_session()
                except Exception:
                    self._logger.error(
                        "Failed to request trust. You will likely be prompted "
                        "for the code again in the coming weeks"
                    )
                    raise

        self._logger.info("Successfully authenticated")
        return self

    async def _prompt(self, code_prompt: Optional[CodePrompt], message: str) -> str:
        if code_prompt is not None:
            return str(await self._call(code_prompt, message)).strip()
        loop = asyncio.get_running_loop()
        return (await loop.run_in_executor(None, input, message)).strip()

    @staticmethod
    async def _call(func: Callable, *args) -> Any:
        result = func(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    @staticmethod
    async def prompt_password(apple_id: str) -> str:
        """Read a password from the terminal without echo."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, getpass.getpass, f"Password for {apple_id}: "
        )

    # =========================================================================
    # Services
    # =========================================================================

    async def drive(self) -> DriveService:
        """
        iCloud Drive service (created once).

        Raises:
            ServiceNotActiveError: If Drive is not enabled for the account
        """
        if self._drive is None:
            self._drive = DriveService(self._api)
        return self._drive

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def __aenter__(self) -> 'ICloudClient':
        """Async context manager entry."""
        await self._api.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self):
        """Close the transport and the session storage."""
        await self._api.close()
        self._storage.close()
