"""
Mneme Sync Client - Coordinator API Module

Handles all communication with the sync coordinator: health checks, the
per-project lease (acquire, release, heartbeat) and the tracked-file
endpoints. Every method returns a typed result; transport failures never
escape this module.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from ..exceptions import MnemeSyncAPIError
from ..models import (
    SyncFailureReason,
    HealthResult,
    LockResult,
    OperationResult,
    FileListResult,
    DownloadResult,
    UploadResult,
    Lease,
    RemoteFileInfo,
    parse_timestamp
)
from .transport import Transport

# Configure logging
logger = logging.getLogger(__name__)

CLIENT_ID_HEADER = "X-Client-Id"


class MnemeSyncAPI:
    """
    API client for the sync coordinator.

    Responsibilities:
    - Check coordinator health
    - Acquire, renew and release the project lease as this client
    - List, download and upload tracked files
    - Convert transport errors into SyncFailureReason results

    When sync is disabled (no transport), every call is a no-op that
    returns a SYNC_DISABLED result.
    """

    def __init__(self, transport: Optional[Transport], project_id: str, client_id: str):
        """
        Initialize API client.

        Args:
            transport: Transport to the coordinator, or None when sync is disabled
            project_id: Project whose lease and files are addressed
            client_id: This machine's stable identifier
        """
        self.transport = transport
        self.project_id = project_id
        self.client_id = client_id

    @property
    def enabled(self) -> bool:
        return self.transport is not None

    def close(self):
        if self.transport is not None:
            self.transport.close()

    def _project_path(self, suffix: str = "") -> str:
        return f"/projects/{quote(self.project_id, safe='')}{suffix}"

    def _client_headers(self) -> Dict[str, str]:
        return {CLIENT_ID_HEADER: self.client_id}

    # ==================== Health ====================

    def check_health(self) -> HealthResult:
        """
        Check that the coordinator is up.

        Returns:
            HealthResult with ok=True and the coordinator's auth flag on success
        """
        if not self.enabled:
            return HealthResult(ok=False, reason=SyncFailureReason.SYNC_DISABLED)

        try:
            response = self.transport.request("GET", "/health")
        except MnemeSyncAPIError as e:
            logger.warning(f"Coordinator health check failed: {e}")
            return HealthResult(ok=False, reason=SyncFailureReason.UNREACHABLE, error=str(e))

        if response.status == 200 and response.data.get("status") == "ok":
            return HealthResult(ok=True, auth_required=bool(response.data.get("authRequired", False)))

        logger.warning(f"Coordinator health check returned status {response.status}")
        return HealthResult(ok=False, reason=SyncFailureReason.SERVER_ERROR, status_code=response.status)

    # ==================== Lease Endpoints ====================

    def acquire_lock(self) -> LockResult:
        """
        Acquire (or renew) this client's lease on the project.

        Returns:
            LockResult; on LOCKED_BY_OTHER the lease field names the holder
        """
        if not self.enabled:
            return LockResult(success=False, reason=SyncFailureReason.SYNC_DISABLED)

        try:
            response = self.transport.request("POST", self._project_path("/lock"),
                                              headers=self._client_headers())
        except MnemeSyncAPIError as e:
            logger.warning(f"Lock acquisition for {self.project_id} failed: {e}")
            return LockResult(success=False, reason=SyncFailureReason.UNREACHABLE, error=str(e))

        lease = Lease.from_dict(response.data.get("lock"), self.project_id)

        if response.status == 200:
            logger.info(f"Lock acquired for project {self.project_id} as {self.client_id}")
            return LockResult(success=True, lease=lease, status_code=200)

        if response.status == 409:
            holder = lease.client_id if lease else "unknown"
            logger.info(f"Project {self.project_id} is locked by {holder}")
            return LockResult(success=False, reason=SyncFailureReason.LOCKED_BY_OTHER,
                              lease=lease, status_code=409)

        logger.error(f"Lock acquisition failed with status {response.status}: {response.data}")
        return LockResult(success=False, reason=SyncFailureReason.SERVER_ERROR,
                          status_code=response.status, error=self._error_text(response.data))

    def release_lock(self) -> OperationResult:
        """
        Release this client's lease. Best-effort.

        Network failures are swallowed (the lease expires via TTL) and a
        holder mismatch is still reported as success locally.
        """
        if not self.enabled:
            return OperationResult(success=True)

        try:
            response = self.transport.request("DELETE", self._project_path("/lock"),
                                              headers=self._client_headers())
        except MnemeSyncAPIError as e:
            logger.warning(f"Lock release for {self.project_id} failed, lease will expire: {e}")
            return OperationResult(success=True)

        if response.status == 200:
            logger.info(f"Lock released for project {self.project_id}")
        else:
            logger.info(f"Lock release returned status {response.status}; lease no longer ours")
        return OperationResult(success=True)

    def heartbeat(self) -> OperationResult:
        """
        Extend this client's lease by one TTL.

        Returns:
            OperationResult(success=True) only if the coordinator still
            recognises this client as the holder
        """
        if not self.enabled:
            return OperationResult(success=False, reason=SyncFailureReason.SYNC_DISABLED)

        try:
            response = self.transport.request("POST", self._project_path("/lock/heartbeat"),
                                              headers=self._client_headers())
        except MnemeSyncAPIError as e:
            logger.warning(f"Heartbeat for {self.project_id} failed: {e}")
            return OperationResult(success=False, reason=SyncFailureReason.UNREACHABLE)

        if response.status == 200:
            logger.debug(f"Heartbeat extended lease on {self.project_id}")
            return OperationResult(success=True)

        logger.warning(f"Heartbeat rejected with status {response.status}")
        return OperationResult(success=False, reason=SyncFailureReason.SERVER_ERROR)

    def get_lock_status(self) -> LockResult:
        """
        Read the current lease without changing it.

        Returns:
            LockResult with success=True and lease=None when the project is unlocked
        """
        if not self.enabled:
            return LockResult(success=False, reason=SyncFailureReason.SYNC_DISABLED)

        try:
            response = self.transport.request("GET", self._project_path("/lock"))
        except MnemeSyncAPIError as e:
            return LockResult(success=False, reason=SyncFailureReason.UNREACHABLE, error=str(e))

        if response.status != 200:
            return LockResult(success=False, reason=SyncFailureReason.SERVER_ERROR,
                              status_code=response.status)
        return LockResult(success=True, lease=Lease.from_dict(response.data.get("lock"), self.project_id),
                          status_code=200)

    # ==================== File Endpoints ====================

    def list_files(self) -> FileListResult:
        """
        List tracked files held by the coordinator.

        Returns:
            FileListResult mapping file name to RemoteFileInfo
        """
        if not self.enabled:
            return FileListResult(success=False, reason=SyncFailureReason.SYNC_DISABLED)

        try:
            response = self.transport.request("GET", self._project_path("/files"))
        except MnemeSyncAPIError as e:
            logger.warning(f"Listing coordinator files failed: {e}")
            return FileListResult(success=False, reason=SyncFailureReason.UNREACHABLE)

        if response.status != 200:
            logger.error(f"Listing coordinator files returned status {response.status}")
            return FileListResult(success=False, reason=SyncFailureReason.SERVER_ERROR)

        files: Dict[str, RemoteFileInfo] = {}
        for entry in response.data.get("files") or []:
            info = RemoteFileInfo.from_dict(entry)
            if info is None:
                logger.warning(f"Ignoring malformed file entry: {entry}")
                continue
            files[info.name] = info
        return FileListResult(success=True, files=files)

    def download_file(self, file_name: str) -> DownloadResult:
        """
        Download a tracked file's content and coordinator timestamp.

        Args:
            file_name: Tracked file name
        """
        if not self.enabled:
            return DownloadResult(success=False)

        path = self._project_path(f"/files/{quote(file_name, safe='')}")
        try:
            response = self.transport.request("GET", path)
        except MnemeSyncAPIError as e:
            logger.warning(f"Download of {file_name} failed: {e}")
            return DownloadResult(success=False)

        if response.status != 200:
            logger.warning(f"Download of {file_name} returned status {response.status}")
            return DownloadResult(success=False, status_code=response.status)

        content = response.data.get("content")
        if not isinstance(content, str):
            logger.error(f"Download of {file_name} returned no content")
            return DownloadResult(success=False, status_code=response.status)

        return DownloadResult(
            success=True,
            content=content,
            modified_at=parse_timestamp(response.data.get("modifiedAt")),
            status_code=200
        )

    def upload_file(self, file_name: str, content: str) -> UploadResult:
        """
        Upload a tracked file. The coordinator assigns the new modifiedAt.

        Args:
            file_name: Tracked file name
            content: File content
        """
        if not self.enabled:
            return UploadResult(success=False, error="sync disabled")

        path = self._project_path(f"/files/{quote(file_name, safe='')}")
        try:
            response = self.transport.request("PUT", path, body={"content": content},
                                              headers=self._client_headers())
        except MnemeSyncAPIError as e:
            logger.warning(f"Upload of {file_name} failed: {e}")
            return UploadResult(success=False, error=str(e))

        if response.status == 200:
            return UploadResult(success=True, modified_at=parse_timestamp(response.data.get("modifiedAt")))

        error = self._error_text(response.data) or f"status {response.status}"
        logger.warning(f"Upload of {file_name} rejected: {error}")
        return UploadResult(success=False, error=error)

    @staticmethod
    def _error_text(data: Dict[str, Any]) -> Optional[str]:
        error = data.get("error") or data.get("detail")
        return str(error) if error else None
