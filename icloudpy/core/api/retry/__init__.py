"""Retry budget and strategy using Strategy Pattern."""
from .retry_strategy import RetryBudget, RetryAction, AuthRetryStrategy

__all__ = [
    'RetryBudget',
    'RetryAction',
    'AuthRetryStrategy',
]
