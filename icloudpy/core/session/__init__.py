"""
Session management module.

Provides persistent session storage for iCloud authentication:
session credentials in a JSON file and cookies in a cookies.txt jar.
"""
from .protocols import SessionStorage
from .models import SessionData
from .json_session import JSONSession
from .memory_session import MemorySession
from .cookies import CookieStore

__all__ = [
    'SessionStorage',
    'SessionData',
    'JSONSession',
    'MemorySession',
    'CookieStore',
]
