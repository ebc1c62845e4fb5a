"""
Mneme Sync Server - Lease Management

This module manages the per-project leases. All lease state lives in
memory and every mutation runs inside one critical section, so acquire,
renew, release and expiry are atomic with respect to each other.
Expiry is checked lazily whenever a lease is read.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone, timedelta
from typing import Dict, Iterator, Optional, Tuple

from mneme_server.file_storage import SafeProjectName
from mneme_server.models.infrastructure import ProjectLease

logger = logging.getLogger(__name__)

# Lease storage (in-memory only; a restart frees every project)
# Keyed by the sanitized project id, the same key that names the storage directory
_leases: Dict[str, ProjectLease] = {}
_leases_lock = threading.Lock()


def _Now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def _GetLiveLease(project_id: str, now: datetime) -> Optional[ProjectLease]:
    """Return the unexpired lease for a project. Caller must hold _leases_lock."""
    lease = _leases.get(SafeProjectName(project_id))
    if lease is None:
        return None

    if lease.IsExpired(now):
        logger.info(f"Lease on '{project_id}' held by '{lease.client_id}' expired "
                    f"after {lease.ElapsedSeconds(now)}s")
        del _leases[SafeProjectName(project_id)]
        return None

    return lease


def ResetLeases() -> None:
    """Drop all leases. Called during server startup"""
    with _leases_lock:
        _leases.clear()


def GetLease(project_id: str, now: Optional[datetime] = None) -> Optional[ProjectLease]:
    """Get the current lease on a project, if any (checking for expiration)"""
    with _leases_lock:
        return _GetLiveLease(project_id, _Now(now))


def AcquireLease(project_id: str, client_id: str, ttl_seconds: int,
                 now: Optional[datetime] = None) -> Tuple[bool, ProjectLease]:
    """
    Acquire the project lease, or renew it if the caller already holds it

    Args:
        project_id: Project to lock
        client_id: Requesting client
        ttl_seconds: Lease lifetime from now
        now: Clock override

    Returns:
        (success, lease): on failure the lease is the current holder's
    """
    now = _Now(now)

    with _leases_lock:
        current = _GetLiveLease(project_id, now)

        if current is not None and current.client_id != client_id:
            logger.info(f"Lease on '{project_id}' refused for '{client_id}': held by "
                        f"'{current.client_id}' (acquired {current.ElapsedSeconds(now)}s ago)")
            return False, current

        if current is not None:
            current.expires_at_utc = max(now + timedelta(seconds=ttl_seconds),
                                         current.expires_at_utc + timedelta(microseconds=1))
            logger.info(f"Lease on '{project_id}' renewed by '{client_id}'")
            return True, current

        lease = ProjectLease(
            project_id=project_id,
            client_id=client_id,
            acquired_at_utc=now,
            expires_at_utc=now + timedelta(seconds=ttl_seconds)
        )
        _leases[SafeProjectName(project_id)] = lease

    logger.info(f"Lease on '{project_id}' acquired by '{client_id}' (ttl: {ttl_seconds}s)")
    return True, lease


def HeartbeatLease(project_id: str, client_id: str, ttl_seconds: int,
                   now: Optional[datetime] = None) -> Optional[ProjectLease]:
    """
    Extend the caller's lease by one TTL

    expires_at always moves strictly forward, even within one clock tick.

    Returns:
        The extended lease, or None if the caller is not the live holder
    """
    now = _Now(now)

    with _leases_lock:
        current = _GetLiveLease(project_id, now)
        if current is None or current.client_id != client_id:
            holder = current.client_id if current else None
            logger.warning(f"Heartbeat on '{project_id}' rejected for '{client_id}' (holder: {holder})")
            return None

        current.expires_at_utc = max(now + timedelta(seconds=ttl_seconds),
                                     current.expires_at_utc + timedelta(microseconds=1))
        return current


def ReleaseLease(project_id: str, client_id: str, now: Optional[datetime] = None) -> bool:
    """
    Release the caller's lease

    Returns:
        True if released or already free, False if another client holds it
    """
    now = _Now(now)

    with _leases_lock:
        current = _GetLiveLease(project_id, now)
        if current is None:
            return True

        if current.client_id != client_id:
            logger.warning(f"Release of '{project_id}' by '{client_id}' refused: held by '{current.client_id}'")
            return False

        del _leases[SafeProjectName(project_id)]

    logger.info(f"Lease on '{project_id}' released by '{client_id}'")
    return True


@contextmanager
def HoldingLease(project_id: str, client_id: str,
                 now: Optional[datetime] = None) -> Iterator[bool]:
    """
    Check lease ownership and keep the lease registry locked until the block exits

    No lease can expire, change hands or be released while the block runs,
    so work done after a True answer is still covered by the lease.

    Yields:
        True if client_id holds the live lease on project_id
    """
    with _leases_lock:
        lease = _GetLiveLease(project_id, _Now(now))
        yield lease is not None and lease.client_id == client_id
