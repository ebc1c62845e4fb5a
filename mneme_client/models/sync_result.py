"""
Mneme Sync Client - Sync Result Models

Typed results returned across every subsystem boundary. Failures are
carried as a SyncFailureReason instead of escaping as exceptions, so the
host session can always continue on local data.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from .lease import Lease
from .tracked_file import RemoteFileInfo


class SyncFailureReason(Enum):
    """
    Why a sync step did not succeed.

    SYNC_DISABLED is not an error: it is the no-op path taken when sync
    is not configured.
    """
    SYNC_DISABLED = "sync_disabled"
    UNREACHABLE = "unreachable"
    LOCKED_BY_OTHER = "locked_by_other"
    SERVER_ERROR = "server_error"
    WRITE_FAILURE = "write_failure"


@dataclass
class HealthResult:
    ok: bool
    reason: Optional[SyncFailureReason] = None
    auth_required: bool = False
    status_code: Optional[int] = None
    error: Optional[str] = None


@dataclass
class LockResult:
    """
    Outcome of a lock acquisition.

    On LOCKED_BY_OTHER, lease describes the current holder.
    """
    success: bool
    reason: Optional[SyncFailureReason] = None
    lease: Optional[Lease] = None
    status_code: Optional[int] = None
    error: Optional[str] = None


@dataclass
class OperationResult:
    """Outcome of release and heartbeat calls."""
    success: bool
    reason: Optional[SyncFailureReason] = None


@dataclass
class FileListResult:
    success: bool
    files: Dict[str, RemoteFileInfo] = field(default_factory=dict)
    reason: Optional[SyncFailureReason] = None


@dataclass
class DownloadResult:
    success: bool
    content: Optional[str] = None
    modified_at: Optional[datetime] = None
    status_code: Optional[int] = None


@dataclass
class UploadResult:
    success: bool
    modified_at: Optional[datetime] = None
    error: Optional[str] = None


@dataclass
class ReconcileResult:
    """Files moved by one reconciliation pass, plus the ones that failed."""
    transferred: List[str] = field(default_factory=list)
    failed: Dict[str, SyncFailureReason] = field(default_factory=dict)


@dataclass
class PullResult:
    synced: bool
    lock_acquired: bool
    files: List[str] = field(default_factory=list)
    message: str = ""


@dataclass
class PushResult:
    pushed: bool
    files: List[str] = field(default_factory=list)
    message: str = ""
