"""
Mneme Sync Server - Lease API Models

Pydantic models for the project lock endpoints.
"""

from datetime import datetime
from typing import Optional

from mneme_server.models.api.camel_model import CamelModel
from mneme_server.models.infrastructure import ProjectLease


class LeaseInfo(CamelModel):
    """Wire representation of a lease"""
    project_id: str
    client_id: str
    acquired_at: datetime
    expires_at: datetime

    @classmethod
    def FromLease(cls, lease: ProjectLease) -> "LeaseInfo":
        return cls(
            project_id=lease.project_id,
            client_id=lease.client_id,
            acquired_at=lease.acquired_at_utc,
            expires_at=lease.expires_at_utc
        )


class LockResponse(CamelModel):
    """Response model for lock acquire and heartbeat"""
    success: bool
    lock: LeaseInfo


class LockStatusResponse(CamelModel):
    """Response model for lock status"""
    locked: bool
    lock: Optional[LeaseInfo] = None


class LockReleaseResponse(CamelModel):
    """Response model for lock release"""
    success: bool
