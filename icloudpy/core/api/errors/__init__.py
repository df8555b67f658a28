"""iCloud API errors and exceptions."""
from .api_errors import ICloudAPIError, APIErrorCodes, translate_error, decode_error

__all__ = [
    'ICloudAPIError',
    'APIErrorCodes',
    'translate_error',
    'decode_error',
]
