"""
Mneme Sync Client - API Error Exception

Base exception class for all coordinator communication errors.
"""


class MnemeSyncAPIError(Exception):
    """Base exception for coordinator errors."""
    pass
