"""
Mneme Sync Client - Exceptions Package

Contains all exception classes for the Mneme sync client.
"""

from .api_error import MnemeSyncAPIError
from .unreachable_error import MnemeSyncUnreachableError
from .response_too_large_error import MnemeSyncResponseTooLargeError
from .server_error import MnemeSyncServerError
from .write_error import MnemeSyncWriteError

__all__ = [
    'MnemeSyncAPIError',
    'MnemeSyncUnreachableError',
    'MnemeSyncResponseTooLargeError',
    'MnemeSyncServerError',
    'MnemeSyncWriteError'
]
