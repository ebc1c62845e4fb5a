"""
Shared fixtures for Mneme Sync Client tests

Provides an in-process fake coordinator that plugs in where the HTTP
Transport normally sits, so lease and file semantics can be exercised
without a network.
"""

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote

import pytest

from mneme_client.api import MnemeSyncAPI, TransportResponse, CLIENT_ID_HEADER
from mneme_client.exceptions import MnemeSyncUnreachableError
from mneme_client.managers import MemoryFolderManager
from mneme_client.models import TRACKED_FILE_NAMES, format_timestamp
from mneme_client.models.timestamps import EPOCH
from mneme_client.operations import SyncOperations

PROJECT_ID = "demo-project"


def at_seconds(seconds: float) -> datetime:
    """Aware UTC datetime the given number of seconds after the epoch."""
    return EPOCH + timedelta(seconds=seconds)


class FakeCoordinator:
    """
    In-memory coordinator with the same request() surface as Transport.

    Leases expire lazily against the clock. Upload timestamps are receipt
    time, forced strictly past the previous value for the file.
    """

    def __init__(self, ttl_seconds: int = 1800):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.now: Optional[datetime] = None  # None = wall clock
        self.reachable = True
        self.leases: Dict[str, Dict[str, Any]] = {}
        self.files: Dict[str, Dict[str, Tuple[str, datetime]]] = {}
        self.calls: List[Tuple[str, str]] = []
        # (method, route) -> status code to answer instead of the normal handler
        self.failures: Dict[Tuple[str, str], int] = {}
        self.closed = False

    # ==================== Test helpers ====================

    def clock(self) -> datetime:
        return self.now or datetime.now(timezone.utc)

    def seed_file(self, name: str, content: str, modified_at: datetime, project_id: str = PROJECT_ID):
        self.files.setdefault(project_id, {})[name] = (content, modified_at)

    def content_of(self, name: str, project_id: str = PROJECT_ID) -> Optional[str]:
        entry = self.files.get(project_id, {}).get(name)
        return entry[0] if entry else None

    def modified_at_of(self, name: str, project_id: str = PROJECT_ID) -> Optional[datetime]:
        entry = self.files.get(project_id, {}).get(name)
        return entry[1] if entry else None

    def holder(self, project_id: str = PROJECT_ID) -> Optional[str]:
        lease = self._live_lease(project_id)
        return lease["clientId"] if lease else None

    def count_calls(self, method: str, suffix: str) -> int:
        return sum(1 for m, p in self.calls if m == method and p.endswith(suffix))

    # ==================== Transport surface ====================

    def close(self):
        self.closed = True

    def request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None,
                headers: Optional[Dict[str, str]] = None) -> TransportResponse:
        self.calls.append((method, path))
        if not self.reachable:
            raise MnemeSyncUnreachableError("Cannot reach coordinator: connection refused")

        headers = headers or {}
        if path == "/health":
            return self._answer(method, "health",
                                lambda: (200, {"status": "ok", "version": "test", "authRequired": False}))

        parts = path.strip("/").split("/")
        project_id = unquote(parts[1])
        rest = parts[2:]
        client_id = headers.get(CLIENT_ID_HEADER)

        if rest == ["lock"]:
            handlers = {
                "POST": lambda: self._acquire(project_id, client_id),
                "DELETE": lambda: self._release(project_id, client_id),
                "GET": lambda: self._status(project_id),
            }
            return self._answer(method, "lock", handlers[method])
        if rest == ["lock", "heartbeat"]:
            return self._answer(method, "heartbeat", lambda: self._heartbeat(project_id, client_id))
        if rest == ["files"]:
            return self._answer(method, "files", lambda: self._list(project_id))
        if len(rest) == 2 and rest[0] == "files":
            name = unquote(rest[1])
            if method == "GET":
                return self._answer(method, "file", lambda: self._get(project_id, name))
            return self._answer(method, "file", lambda: self._put(project_id, name, client_id, body or {}))
        return TransportResponse(status=404, data={"error": "Not found"})

    def _answer(self, method, route, handler) -> TransportResponse:
        forced = self.failures.get((method, route))
        if forced is not None:
            return TransportResponse(status=forced, data={"error": "forced failure"})
        status, data = handler()
        return TransportResponse(status=status, data=data)

    # ==================== Lease handling ====================

    def _live_lease(self, project_id: str) -> Optional[Dict[str, Any]]:
        lease = self.leases.get(project_id)
        if lease and lease["expires"] <= self.clock():
            del self.leases[project_id]
            return None
        return lease

    def _lease_json(self, lease: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "projectId": lease["projectId"],
            "clientId": lease["clientId"],
            "acquiredAt": format_timestamp(lease["acquired"]),
            "expiresAt": format_timestamp(lease["expires"]),
        }

    def _acquire(self, project_id, client_id):
        if not client_id:
            return 400, {"error": "X-Client-Id header required"}
        lease = self._live_lease(project_id)
        if lease and lease["clientId"] != client_id:
            return 409, {"error": "Project is locked by another client", "lock": self._lease_json(lease)}
        now = self.clock()
        lease = {"projectId": project_id, "clientId": client_id, "acquired": now, "expires": now + self.ttl}
        self.leases[project_id] = lease
        return 200, {"success": True, "lock": self._lease_json(lease)}

    def _release(self, project_id, client_id):
        lease = self._live_lease(project_id)
        if lease and lease["clientId"] != client_id:
            return 403, {"error": "Lock held by another client"}
        self.leases.pop(project_id, None)
        return 200, {"success": True}

    def _status(self, project_id):
        lease = self._live_lease(project_id)
        return 200, {"locked": lease is not None, "lock": self._lease_json(lease) if lease else None}

    def _heartbeat(self, project_id, client_id):
        lease = self._live_lease(project_id)
        if not lease or lease["clientId"] != client_id:
            return 403, {"error": "Not the lock holder"}
        lease["expires"] = self.clock() + self.ttl
        return 200, {"success": True, "lock": self._lease_json(lease)}

    # ==================== File handling ====================

    def _list(self, project_id):
        entries = [
            {"name": name, "size": len(content.encode('utf-8')), "modifiedAt": format_timestamp(modified)}
            for name, (content, modified) in sorted(self.files.get(project_id, {}).items())
        ]
        return 200, {"files": entries}

    def _get(self, project_id, name):
        if name not in TRACKED_FILE_NAMES:
            return 400, {"error": "File not allowed"}
        entry = self.files.get(project_id, {}).get(name)
        if entry is None:
            return 404, {"error": "File not found"}
        return 200, {"content": entry[0], "modifiedAt": format_timestamp(entry[1])}

    def _put(self, project_id, name, client_id, body):
        if name not in TRACKED_FILE_NAMES:
            return 400, {"error": "File not allowed"}
        lease = self._live_lease(project_id)
        if not lease or lease["clientId"] != client_id:
            return 403, {"error": "Must hold lock to upload"}
        previous = self.modified_at_of(name, project_id)
        modified = self.clock()
        if previous is not None and modified <= previous:
            modified = previous + timedelta(microseconds=1)
        self.seed_file(name, body.get("content", ""), modified, project_id)
        return 200, {"success": True, "modifiedAt": format_timestamp(modified)}


@pytest.fixture
def coordinator():
    return FakeCoordinator()


@pytest.fixture
def advisories():
    return []


@pytest.fixture
def make_sync_ops(tmp_path, coordinator, advisories):
    """Factory building SyncOperations for a named client against the fake coordinator."""
    created: List[SyncOperations] = []

    def _make(client_id: str = "client-a", transport=coordinator,
              heartbeat_interval_seconds: float = 300) -> SyncOperations:
        api_client = MnemeSyncAPI(transport, PROJECT_ID, client_id)
        folder_mgr = MemoryFolderManager(tmp_path / client_id, PROJECT_ID)
        sync_ops = SyncOperations(
            api_client,
            folder_mgr,
            heartbeat_interval_seconds=heartbeat_interval_seconds,
            advisory_callback=advisories.append
        )
        created.append(sync_ops)
        return sync_ops

    yield _make

    for sync_ops in created:
        sync_ops.heartbeat.stop()


@pytest.fixture
def write_local():
    """Write a local memory file and pin its mtime to the given epoch seconds."""

    def _write(folder_mgr: MemoryFolderManager, name: str, content: str,
               seconds: Optional[float] = None) -> Path:
        folder_mgr.ensure_folders()
        path = folder_mgr.path_for(name)
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
        if seconds is not None:
            ns = int(seconds * 1_000_000) * 1000
            os.utime(path, ns=(ns, ns))
        return path

    return _write
