"""
Mneme Sync Client - Unreachable Error Exception

Raised by the transport when no HTTP response could be received
(connection refused, DNS failure, timeout) after all retries.
"""

from .api_error import MnemeSyncAPIError


class MnemeSyncUnreachableError(MnemeSyncAPIError):
    """Exception raised when the coordinator cannot be reached."""
    pass
