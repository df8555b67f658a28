"""
Async authentication service.

Drives the iCloud login protocol: token validation, credential login,
second-step and second-factor verification and session trust.
"""
from typing import Any, Dict, List, Optional

from .async_client import AsyncAPIClient
from .errors import APIErrorCodes, ICloudAPIError
from .models import AccountState, Device, parse_devices
from ..exceptions import (
    ICloudException,
    InvalidResponseError,
    LoginFailedError,
    NoDevicesError,
    SessionPersistError,
    WrongVerificationError,
)
from ..logging import get_logger


class AsyncAuthService:
    """
    Asynchronous authentication service.

    Every call that returns account data replaces ``client.account``
    wholesale, so the state queries below always read one snapshot.
    """

    def __init__(self, client: AsyncAPIClient, apple_id: str, password: Optional[str] = None):
        """
        Initialize auth service.

        Args:
            client: Async API client
            apple_id: Account name
            password: Account password (only needed for credential login)
        """
        self._client = client
        self._apple_id = apple_id
        self._password = password or ''
        self._config = client.config
        self._logger = get_logger('icloudpy.auth')

    @property
    def apple_id(self) -> str:
        return self._apple_id

    @property
    def account(self) -> AccountState:
        """Current account snapshot."""
        return self._client.account

    @property
    def password(self) -> str:
        return self._password

    @password.setter
    def password(self, value: str) -> None:
        self._password = value or ''

    def _replace_account(self, data: Any) -> AccountState:
        state = AccountState.from_response(data)
        self._client.account = state
        return state

    async def authenticate(self, force_refresh: bool = False, service: Optional[str] = None) -> None:
        """
        Authenticate, reusing the stored session token when possible.

        Args:
            force_refresh: Skip the stored-token fast path
            service: App name to try a scoped one-factor login for first

        Raises:
            LoginFailedError: If credentials are refused
            SessionPersistError: If session state cannot be written
        """
        session = self._client.session
        success = False

        if session.session_token and not force_refresh:
            try:
                await self.validate_token()
                success = True
            except SessionPersistError:
                raise
            except ICloudException as e:
                self._logger.debug(f"Will log in from scratch: {e}")

        if not success and service and self.account.allows_one_factor(service):
            self._logger.debug(f"Authenticating as {self._apple_id} for {service}")
            try:
                await self.authenticate_with_credentials_service(service)
                success = True
            except SessionPersistError:
                raise
            except ICloudException as e:
                self._logger.debug(
                    f"Could not log into service ({e}). Attempting brand new login."
                )

        if not success:
            await self._sign_in()
            await self.authenticate_with_token()

        self._logger.debug("Authentication completed successfully")

    async def _sign_in(self) -> None:
        self._logger.debug(f"Authenticating as {self._apple_id}")
        trust_token = self._client.session.trust_token
        data = {
            'accountName': self._apple_id,
            'password': self._password,
            'rememberMe': True,
            'trustTokens': [trust_token] if trust_token else [],
        }
        try:
            await self._client.post(
                f"{self._config.auth_endpoint}/signin?isRememberMeEnabled=true",
                data,
                self.get_auth_headers(use_session=True),
            )
        except SessionPersistError:
            raise
        except ICloudException as e:
            # The server reason is never surfaced
            self._logger.debug(f"Sign-in refused: {e}")
            raise LoginFailedError() from None

    async def validate_token(self) -> AccountState:
        """
        Check that the stored session token is still valid.

        Returns:
            The refreshed account snapshot
        """
        self._logger.debug("Checking session token validity")
        try:
            data = await self._client.post(f"{self._config.setup_endpoint}/validate")
        except ICloudException as e:
            self._logger.debug(f"Invalid authentication token: {e}")
            raise
        self._logger.debug("Session token is still valid")
        return self._replace_account(data)

    async def authenticate_with_token(self) -> AccountState:
        """
        Exchange the session token for full account state.

        Raises:
            LoginFailedError: On any server failure
        """
        session = self._client.session
        data = {
            'accountCountryCode': session.account_country,
            'dsWebAuthToken': session.session_token,
            'extended_login': True,
            'trustToken': session.trust_token,
        }
        try:
            response = await self._client.post(f"{self._config.setup_endpoint}/accountLogin", data)
        except SessionPersistError:
            raise
        except ICloudException as e:
            self._logger.debug(f"Account login refused: {e}")
            raise LoginFailedError() from None
        return self._replace_account(response)

    async def authenticate_with_credentials_service(self, service: str) -> AccountState:
        """Log into a single app with credentials, then validate."""
        data = {
            'appName': service,
            'apple_id': self._apple_id,
            'password': self._password,
        }
        try:
            await self._client.post(f"{self._config.setup_endpoint}/accountLogin", data)
        except SessionPersistError:
            raise
        except ICloudException:
            raise LoginFailedError() from None
        return await self.validate_token()

    def get_auth_headers(self, use_session: bool = False) -> Dict[str, str]:
        """
        Headers sent to the authentication endpoint.

        Args:
            use_session: Echo the stored scnt and session id
        """
        session = self._client.session
        key = self._config.oauth_key
        headers = {
            'Accept': '*/*',
            'Content-Type': 'application/json',
            'X-Apple-Widget-Key': key,
            'X-Apple-OAuth-Client-Id': key,
            'X-Apple-OAuth-Client-Type': 'firstPartyAuth',
            'X-Apple-OAuth-Redirect-URI': self._config.home_endpoint,
            'X-Apple-OAuth-Require-Grant-Code': 'true',
            'X-Apple-OAuth-Response-Mode': 'web_message',
            'X-Apple-OAuth-Response-Type': 'code',
            'X-Apple-OAuth-State': session.client_id,
        }
        if use_session and session.scnt:
            headers['scnt'] = session.scnt
        if use_session and session.session_id:
            headers['X-Apple-ID-Session-Id'] = session.session_id
        return headers

    # State queries

    def requires_2fa(self) -> bool:
        """True if 2-factor authentication is required."""
        return self.account.requires_2fa

    def requires_2sa(self) -> bool:
        """True if 2-step authentication is required."""
        return self.account.requires_2sa

    def is_trusted_session(self) -> bool:
        return self.account.is_trusted_session

    # Second step (HSA1)

    async def trusted_devices(self) -> List[Device]:
        """
        List devices a verification code can be sent to.

        Raises:
            InvalidResponseError: If the response is unusable
            NoDevicesError: If the account has no trusted devices
        """
        try:
            data = await self._client.get(f"{self._config.setup_endpoint}/listDevices")
        except SessionPersistError:
            raise
        except ICloudException as e:
            raise InvalidResponseError(f"invalid response from listDevices: {e}") from e
        devices = parse_devices(data)
        if devices is None:
            raise InvalidResponseError("invalid response from listDevices")
        if not devices:
            raise NoDevicesError()
        return devices

    async def send_verification_code(self, device: Device) -> None:
        """Ask iCloud to send a verification code to ``device``."""
        data = await self._client.post(
            f"{self._config.setup_endpoint}/sendVerificationCode", device.to_dict()
        )
        if not isinstance(data, dict) or not data.get('success'):
            raise ICloudException("failed to send verification code")

    async def validate_verification_code(self, device: Device, code: str) -> None:
        """
        Validate a code received on ``device`` and trust the session.

        Raises:
            WrongVerificationError: If the code was rejected
            LoginFailedError: If 2-step auth is still required afterwards
        """
        data = device.to_dict()
        data['verificationCode'] = code
        data['trustBrowser'] = True
        try:
            await self._client.post(
                f"{self._config.setup_endpoint}/validateVerificationCode", data
            )
        except ICloudAPIError as e:
            if e.code == APIErrorCodes.WRONG_VERIFICATION:
                raise WrongVerificationError() from None
            raise

        try:
            await self.trust_session()
        except ICloudAPIError as e:
            if e.code != APIErrorCodes.NOT_FOUND:
                raise
            self._logger.info("You seem to lack trusted Apple devices. Authenticating again...")
            await self.authenticate()
            return

        if self.requires_2sa():
            raise LoginFailedError()

    # Second factor (HSA2)

    async def validate_2fa_code(self, code: str) -> None:
        """
        Verify a code received via the 2-factor system.

        Raises:
            WrongVerificationError: If the code was rejected
        """
        headers = self.get_auth_headers(use_session=True)
        headers['Accept'] = 'application/json'
        try:
            await self._client.post(
                f"{self._config.auth_endpoint}/verify/trusteddevice/securitycode",
                {'securityCode': {'code': code}},
                headers,
            )
        except ICloudAPIError as e:
            if e.code == APIErrorCodes.WRONG_SECURITY_CODE:
                raise WrongVerificationError() from None
            raise

    async def trust_session(self) -> AccountState:
        """Request trust for this session so future logins skip the challenge."""
        await self._client.post(
            f"{self._config.auth_endpoint}/2sv/trust",
            None,
            self.get_auth_headers(use_session=True),
        )
        return await self.authenticate_with_token()
