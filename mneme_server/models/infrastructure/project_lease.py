"""
Mneme Sync Server - Project Lease Model

Dataclass for representing the time-bounded exclusive lock on a project.
"""

from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Optional


@dataclass
class ProjectLease:
    """
    Represents the lease one client holds on a project

    Only the holder may renew or release it. An expired lease is treated
    as absent.
    """
    project_id: str
    client_id: str
    acquired_at_utc: datetime
    expires_at_utc: datetime

    def IsExpired(self, now: Optional[datetime] = None) -> bool:
        """Check if the lease has run past its expiry"""
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at_utc

    def ElapsedSeconds(self, now: Optional[datetime] = None) -> int:
        """Get elapsed time since the lease was first acquired"""
        now = now or datetime.now(timezone.utc)
        return int((now - self.acquired_at_utc).total_seconds())
