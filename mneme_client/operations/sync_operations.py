"""
Mneme Sync Client - Sync Operations Module

Implements the Pull (session start) and Push (session end) operations.
Sequences health check, lease acquisition, reconciliation, heartbeat and
release. Every failure degrades to local-only operation; nothing raised
here reaches the host session.
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from ..api import MnemeSyncAPI, Transport
from ..managers import (
    ConfigManager,
    MemoryFolderManager,
    HeartbeatScheduler,
    effective_heartbeat_interval,
    get_client_id,
    get_project_name
)
from ..models import SyncFailureReason, SyncSession, PullResult, PushResult, ReconcileResult
from .file_reconciler import FileReconciler

# Configure logging
logger = logging.getLogger(__name__)

ADVISORY_PREFIX = "[mneme-sync]"


class SyncOperations:
    """
    Orchestrates synchronization for one project session.

    Responsibilities:
    - Execute Pull: health check, acquire lease, download newer files, start heartbeat
    - Execute Push: stop heartbeat, upload newer files, release lease
    - Release a freshly acquired lease when a pull fails midway
    - Report a single-line advisory message via callback
    """

    def __init__(self, api_client: MnemeSyncAPI, folder_manager: MemoryFolderManager,
                 heartbeat_interval_seconds: float = 300,
                 lock_ttl_seconds: Optional[float] = None,
                 advisory_callback: Optional[Callable[[str], None]] = None):
        """
        Initialize sync operations handler.

        Args:
            api_client: MnemeSyncAPI for the project (transport None = sync disabled)
            folder_manager: MemoryFolderManager for the same project
            heartbeat_interval_seconds: Delay between lease renewals
            lock_ttl_seconds: Coordinator TTL hint; the interval is clamped to half of it
            advisory_callback: Optional callback receiving one-line user advisories
        """
        self.api = api_client
        self.folder_mgr = folder_manager
        self.reconciler = FileReconciler(api_client, folder_manager)
        self.heartbeat = HeartbeatScheduler(
            api_client.heartbeat,
            effective_heartbeat_interval(heartbeat_interval_seconds, lock_ttl_seconds)
        )
        self.session = SyncSession(
            enabled=api_client.enabled,
            project_id=api_client.project_id,
            client_id=api_client.client_id
        )
        self.advisory_callback = advisory_callback

    def close(self):
        """Stop background work and release the HTTP session. Does not release the lease."""
        self.heartbeat.stop()
        self.api.close()

    def _advise(self, message: str):
        logger.info(message)
        if self.advisory_callback:
            self.advisory_callback(f"{ADVISORY_PREFIX} {message}")

    def pull(self) -> PullResult:
        """
        Pull newer files from the coordinator at session start.

        Process:
        1. Return immediately when sync is disabled
        2. Health-check the coordinator (no lock request if it fails)
        3. Acquire the project lease
        4. Download files that are strictly newer on the coordinator
        5. Release the lease if reconciliation fails
        6. Start the heartbeat for the rest of the session

        Returns:
            PullResult(synced, lock_acquired, files, message)
        """
        if not self.session.enabled:
            return PullResult(synced=False, lock_acquired=False, message="Sync disabled")

        logger.info(f"Starting Pull for project {self.session.project_id}")

        health = self.api.check_health()
        if not health.ok:
            self._advise("Server unreachable, using local memory")
            return PullResult(synced=False, lock_acquired=False, message="Server unreachable")

        lock_result = self.api.acquire_lock()
        if not lock_result.success:
            if lock_result.reason == SyncFailureReason.LOCKED_BY_OTHER:
                holder = lock_result.lease.client_id if lock_result.lease else "unknown"
                self._advise(f"Project locked by {holder}, using local copy")
                return PullResult(synced=False, lock_acquired=False, message=f"Locked by {holder}")
            self._advise("Failed to acquire lock, using local memory")
            return PullResult(synced=False, lock_acquired=False, message="Lock failed")

        self.session.lock_held = True

        try:
            reconcile_result = self.reconciler.pull()
        except Exception as e:
            # Never leave an orphaned lease behind a failed pull
            logger.exception(f"Pull failed after acquiring lock: {e}")
            self.api.release_lock()
            self.session.lock_held = False
            self._advise(f"Pull failed, lock released: {e}")
            return PullResult(synced=False, lock_acquired=False, message=f"Pull failed: {e}")

        self.heartbeat.start()

        files = reconcile_result.transferred
        if files:
            self._advise(f"Synced from server: {', '.join(files)}")
        self._report_failures(reconcile_result)

        return PullResult(
            synced=True,
            lock_acquired=True,
            files=files,
            message="Synced from server" if files else "Already up to date"
        )

    def push(self) -> PushResult:
        """
        Push newer files to the coordinator at session end.

        Process:
        1. Stop the heartbeat
        2. Return when sync is disabled or the coordinator is unreachable
        3. Upload files that are strictly newer locally
        4. Release the lease whatever the upload outcome

        Returns:
            PushResult(pushed, files, message)
        """
        self.heartbeat.stop()

        if not self.session.enabled:
            return PushResult(pushed=False, message="Sync disabled")

        logger.info(f"Starting Push for project {self.session.project_id}")

        health = self.api.check_health()
        if not health.ok:
            self._advise("Server unreachable, changes saved locally only")
            return PushResult(pushed=False, message="Server unreachable")

        try:
            reconcile_result = self.reconciler.push()
        except Exception as e:
            logger.exception(f"Push failed: {e}")
            self._advise(f"Push failed: {e}")
            return PushResult(pushed=False, message=f"Push failed: {e}")
        finally:
            # The lease must not outlive a session once push is attempted
            self.api.release_lock()
            self.session.lock_held = False

        files = reconcile_result.transferred
        if files:
            self._advise(f"Pushed to server: {', '.join(files)}")
        self._report_failures(reconcile_result)

        if files:
            message = "Pushed to server"
        elif reconcile_result.failed:
            message = f"Push incomplete: {len(reconcile_result.failed)} file(s) failed"
        else:
            message = "No changes to push"
        return PushResult(pushed=True, files=files, message=message)

    def _report_failures(self, reconcile_result: ReconcileResult):
        if reconcile_result.failed:
            names = ', '.join(sorted(reconcile_result.failed))
            self._advise(f"Some files were not synced: {names}")


def create_sync_operations(config_manager: ConfigManager, cwd: Path,
                           project_override: Optional[str] = None,
                           advisory_callback: Optional[Callable[[str], None]] = None) -> SyncOperations:
    """
    Build SyncOperations from loaded configuration.

    Args:
        config_manager: ConfigManager with load_config() already called
        cwd: Working directory used for project detection
        project_override: Project id that wins over config and detection
        advisory_callback: Optional callback for advisory messages

    Returns:
        SyncOperations; its API client has no transport when sync is disabled
    """
    sync_config = config_manager.get_sync_config() if config_manager.is_sync_enabled() \
        else dict(config_manager.get("sync") or {})

    project_id = project_override or sync_config.get("project_id") or get_project_name(cwd)
    base_path = config_manager.base_path
    client_id = get_client_id(base_path)

    transport = None
    if config_manager.is_sync_enabled():
        retries = sync_config.get("retries")
        transport = Transport(
            sync_config["server_url"],
            api_key=sync_config.get("api_key"),
            timeout_seconds=float(sync_config.get("timeout_seconds") or 10.0),
            retries=int(retries if retries is not None else 3)
        )

    api_client = MnemeSyncAPI(transport, project_id, client_id)
    folder_mgr = MemoryFolderManager(base_path, project_id)

    return SyncOperations(
        api_client,
        folder_mgr,
        heartbeat_interval_seconds=float(sync_config.get("heartbeat_interval_seconds") or 300),
        lock_ttl_seconds=sync_config.get("lock_ttl_seconds"),
        advisory_callback=advisory_callback
    )
