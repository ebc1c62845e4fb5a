"""
Mneme Sync Client - Response Too Large Exception
"""

from .api_error import MnemeSyncAPIError


class MnemeSyncResponseTooLargeError(MnemeSyncAPIError):
    """Exception raised when a response body exceeds the size cap. Never retried."""

    def __init__(self, limit_bytes: int):
        super().__init__(f"Response body too large (limit {limit_bytes} bytes)")
        self.limit_bytes = limit_bytes
