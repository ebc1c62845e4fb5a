"""
Mneme Sync Client - Lease Model

Client-side view of a lease held on the coordinator.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .timestamps import parse_timestamp


@dataclass(frozen=True)
class Lease:
    """
    Time-bounded exclusivity grant for a project.

    Only the coordinator creates or mutates leases; the client just
    reports what it was told.
    """
    project_id: str
    client_id: str
    acquired_at: Optional[datetime]
    expires_at: Optional[datetime]

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], project_id: str = "") -> Optional["Lease"]:
        """Build a Lease from the coordinator's JSON, or None if data is unusable."""
        if not isinstance(data, dict):
            return None
        client_id = data.get("clientId")
        if not client_id:
            return None
        return cls(
            project_id=str(data.get("projectId") or project_id),
            client_id=str(client_id),
            acquired_at=parse_timestamp(data.get("acquiredAt")),
            expires_at=parse_timestamp(data.get("expiresAt"))
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return self.expires_at <= now
