"""
Mneme Sync Client - Write Error Exception

Raised when a local file cannot be written during reconciliation.
"""

from .api_error import MnemeSyncAPIError


class MnemeSyncWriteError(MnemeSyncAPIError):
    """Exception for local filesystem failures while applying pulled files."""

    def __init__(self, file_name: str, reason: str):
        super().__init__(f"Failed to write {file_name}: {reason}")
        self.file_name = file_name
