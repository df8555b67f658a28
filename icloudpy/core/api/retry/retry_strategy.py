"""Retry budget and strategy for transient authentication failures."""
from enum import Enum
from typing import Sequence


class RetryBudget(Enum):
    """Retries left for one logical call. A call starts with ONE."""

    EXHAUSTED = 0
    ONE = 1

    @property
    def available(self) -> bool:
        return self is RetryBudget.ONE

    def spend(self) -> 'RetryBudget':
        """Consume the retry. Spending an exhausted budget is a bug."""
        if not self.available:
            raise RuntimeError("retry budget already exhausted")
        return RetryBudget.EXHAUSTED


class RetryAction(Enum):
    """What the transport does with a failed response."""

    FAIL = 'fail'
    RETRY = 'retry'
    REAUTH_THEN_RETRY = 'reauth_then_retry'


class AuthRetryStrategy:
    """
    Decides how a classified failure is handled.

    Two triggers share the single retry of a call:
    - a reauth status on a URL of the reauth webservice re-authenticates first
    - any other transient auth status is retried verbatim
    """

    def __init__(self, auth_error_codes: Sequence[int], reauth_code: int):
        self._auth_error_codes = tuple(auth_error_codes)
        self._reauth_code = reauth_code

    def is_auth_error(self, status: int) -> bool:
        return status in self._auth_error_codes

    def is_failure(self, status: int, is_json: bool) -> bool:
        """A response is a failure when the status is an error and the body is not
        a usable JSON document or the status is a transient auth one."""
        return status >= 400 and (not is_json or self.is_auth_error(status))

    def decide(self, status: int, budget: RetryBudget, in_reauth_service: bool) -> RetryAction:
        if not budget.available:
            return RetryAction.FAIL
        if in_reauth_service and status == self._reauth_code:
            return RetryAction.REAUTH_THEN_RETRY
        if self.is_auth_error(status):
            return RetryAction.RETRY
        return RetryAction.FAIL
