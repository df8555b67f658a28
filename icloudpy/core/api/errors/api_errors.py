"""iCloud API error codes and exceptions."""
from typing import Any, Optional, TYPE_CHECKING

from ...exceptions import ICloudException, TwoStepRequiredError

if TYPE_CHECKING:
    from ..models import AccountState


class APIErrorCodes:
    """iCloud API error codes."""

    WRONG_VERIFICATION = 21669
    WRONG_SECURITY_CODE = -21669
    NOT_FOUND = 404

    # HTTP statuses treated as transient authentication failures
    AUTH_ERRORS = (421, 450, 500)

    # Payload fields holding an error reason, in priority order
    REASON_FIELDS = ('errorMessage', 'reason', 'errorReason', 'error')

    MISSING_WEBAUTH_TOKEN = "Missing X-APPLE-WEBAUTH-TOKEN cookie"


class ICloudAPIError(ICloudException):
    """Exception raised for iCloud API errors."""

    def __init__(self, code: int = 0, status: str = '', reason: str = '', retry: bool = False):
        self.code = code
        self.status = status
        self.reason = reason
        self.retry = retry
        self.message = self._format(code, status, reason, retry)
        super().__init__(self.message, code or None)

    @staticmethod
    def _format(code: int, status: str, reason: str, retry: bool) -> str:
        msg = reason
        if status:
            if not msg:
                msg = status
            else:
                if not msg.endswith('.'):
                    msg += '.'
                msg += ' ' + status
        if code:
            msg = f"{msg} ({code})"
        if retry:
            msg += '. Retrying ...'
        return msg


def translate_error(
    code: int,
    status: str,
    reason: str,
    account: Optional['AccountState'] = None
) -> ICloudException:
    """
    Map a server failure to the exception surfaced to callers.

    Args:
        code: HTTP status or application error code
        status: Status token (HTTP reason phrase or server status)
        reason: Human readable reason
        account: Current account snapshot, used to detect missing 2SA

    Returns:
        Exception instance (not raised)
    """
    if account is not None and account.requires_2sa and reason == APIErrorCodes.MISSING_WEBAUTH_TOKEN:
        return TwoStepRequiredError()

    if status in ('ZONE_NOT_FOUND', 'AUTHENTICATION_FAILED'):
        reason = ("Please log into https://icloud.com/ to manually "
                  "finish setting up your iCloud service")
        return ICloudAPIError(code, status, reason)
    if status == 'ACCESS_DENIED':
        reason += ".  Please wait a few minutes then try again"
        reason += ". The remote servers might be trying to throttle requests."

    if code in APIErrorCodes.AUTH_ERRORS:
        reason = "Authentication required for Account."

    return ICloudAPIError(code, status, reason)


def decode_error(payload: Any, account: Optional['AccountState'] = None) -> Optional[ICloudException]:
    """
    Extract an application error from a decoded JSON payload.

    Only objects are inspected; the first non-empty field of
    ``APIErrorCodes.REASON_FIELDS`` wins.

    Returns:
        Exception instance or None if the payload carries no error
    """
    if not isinstance(payload, dict):
        return None

    reason = ''
    for field_name in APIErrorCodes.REASON_FIELDS:
        value = payload.get(field_name)
        if isinstance(value, str) and value:
            reason = value
            break
    if not reason:
        return None

    code = _as_int(payload.get('errorCode')) or _as_int(payload.get('serverErrorCode'))
    return translate_error(code, '', reason, account)


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
