"""
Mneme Sync Client - Models Package

Contains data models and enumerations used by the client.
"""

from .timestamps import (
    parse_timestamp,
    format_timestamp,
    timestamp_to_micros,
    micros_to_ns
)
from .lease import Lease
from .tracked_file import TrackedFile, RemoteFileInfo, TRACKED_FILES, TRACKED_FILE_NAMES
from .sync_result import (
    SyncFailureReason,
    HealthResult,
    LockResult,
    OperationResult,
    FileListResult,
    DownloadResult,
    UploadResult,
    ReconcileResult,
    PullResult,
    PushResult
)
from .sync_session import SyncSession

__all__ = [
    'parse_timestamp',
    'format_timestamp',
    'timestamp_to_micros',
    'micros_to_ns',
    'Lease',
    'TrackedFile',
    'RemoteFileInfo',
    'TRACKED_FILES',
    'TRACKED_FILE_NAMES',
    'SyncFailureReason',
    'HealthResult',
    'LockResult',
    'OperationResult',
    'FileListResult',
    'DownloadResult',
    'UploadResult',
    'ReconcileResult',
    'PullResult',
    'PushResult',
    'SyncSession'
]
