"""
Mneme Sync Server - Lock Endpoints

This module contains the per-project lease endpoints: acquire, release,
status and heartbeat.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from mneme_server import runtime
from mneme_server.auth import VerifyApiKey, GetClientId
from mneme_server.locks import AcquireLease, ReleaseLease, HeartbeatLease, GetLease
from mneme_server.models.api import LeaseInfo, LockResponse, LockStatusResponse, LockReleaseResponse
from mneme_server.rate_limit import CheckRateLimit


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter(
    prefix="/projects/{project_id}/lock",
    tags=["Locks"],
    dependencies=[Depends(CheckRateLimit), Depends(VerifyApiKey)]
)


# ==================== Lock Endpoints ====================

@router.post("", response_model=LockResponse)
async def acquire_lock(project_id: str, client_id: str = Depends(GetClientId)):
    """
    Acquire the project lease, or renew it if already held by the caller

    Returns:
        LockResponse, or 409 {error, lock} naming the current holder
    """
    success, lease = AcquireLease(project_id, client_id, runtime.config_manager.GetLockTtlSeconds())

    if not success:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "error": "Project is locked by another client",
                "lock": LeaseInfo.FromLease(lease).model_dump(mode="json", by_alias=True)
            }
        )

    return LockResponse(success=True, lock=LeaseInfo.FromLease(lease))


@router.delete("", response_model=LockReleaseResponse)
async def release_lock(project_id: str, client_id: str = Depends(GetClientId)):
    """
    Release the caller's lease

    Raises:
        HTTPException: 403 if another client holds the lease
    """
    if not ReleaseLease(project_id, client_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Lock held by another client"
        )
    return LockReleaseResponse(success=True)


@router.get("", response_model=LockStatusResponse)
async def get_lock_status(project_id: str):
    """Get the current lease on a project"""
    lease = GetLease(project_id)
    if lease is None:
        return LockStatusResponse(locked=False, lock=None)
    return LockStatusResponse(locked=True, lock=LeaseInfo.FromLease(lease))


@router.post("/heartbeat", response_model=LockResponse)
async def heartbeat_lock(project_id: str, client_id: str = Depends(GetClientId)):
    """
    Extend the caller's lease by one TTL

    Raises:
        HTTPException: 403 if the caller is not the live holder
    """
    lease = HeartbeatLease(project_id, client_id, runtime.config_manager.GetLockTtlSeconds())
    if lease is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not the lock holder"
        )
    return LockResponse(success=True, lock=LeaseInfo.FromLease(lease))
