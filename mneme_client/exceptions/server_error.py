"""
Mneme Sync Client - Server Error Exception

Raised when the coordinator answers with an unexpected status code.
"""

from typing import Optional

from .api_error import MnemeSyncAPIError


class MnemeSyncServerError(MnemeSyncAPIError):
    """Exception for non-2xx coordinator responses."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
