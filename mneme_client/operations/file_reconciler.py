"""
Mneme Sync Client - File Reconciler Module

One-directional, timestamp-based reconciliation of the tracked memory files
between the local memory folder and the coordinator.

Conflict policy is last-write-wins on modification time alone. No content
is compared or merged, so edits made on two machines before either syncs
are resolved by discarding the older one.
"""

import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..api import MnemeSyncAPI
from ..exceptions import MnemeSyncServerError, MnemeSyncWriteError
from ..managers import MemoryFolderManager
from ..models import (
    SyncFailureReason,
    ReconcileResult,
    DownloadResult,
    RemoteFileInfo,
    TRACKED_FILES,
    timestamp_to_micros,
    micros_to_ns
)

# Configure logging
logger = logging.getLogger(__name__)


def local_mtime_micros(path: Path) -> Optional[int]:
    """Local modification time in whole microseconds, or None if the file is missing."""
    try:
        return path.stat().st_mtime_ns // 1000
    except FileNotFoundError:
        return None


class FileReconciler:
    """
    Moves tracked files in one direction per pass.

    Responsibilities:
    - Fetch the coordinator listing once per pass
    - Pull: download files strictly newer remotely, back up, overwrite, copy the timestamp
    - Push: upload files strictly newer locally; the coordinator stamps the receipt time
    - Never delete a file on either side
    """

    def __init__(self, api: MnemeSyncAPI, folder_manager: MemoryFolderManager):
        """
        Initialize reconciler.

        Args:
            api: Coordinator API client for the current project
            folder_manager: Local memory folder for the same project
        """
        self.api = api
        self.folder_mgr = folder_manager

    # ==================== Pull ====================

    def pull(self) -> ReconcileResult:
        """
        Download tracked files whose coordinator copy is strictly newer.

        Returns:
            ReconcileResult with the names written locally

        Raises:
            MnemeSyncServerError: If the coordinator listing cannot be fetched
        """
        listing = self.api.list_files()
        if not listing.success:
            raise MnemeSyncServerError(f"Failed to list coordinator files ({listing.reason.value})")

        result = ReconcileResult()
        self.folder_mgr.ensure_folders()

        for tracked in TRACKED_FILES:
            remote = listing.files.get(tracked.name)
            if remote is None:
                # Pull never deletes local files
                continue

            local_path = self.folder_mgr.path_for(tracked.name)
            local_us = local_mtime_micros(local_path)
            remote_us = timestamp_to_micros(remote.modified_at)

            if local_us is not None and remote_us <= local_us:
                logger.debug(f"{tracked.name}: local copy is current")
                continue

            download = self.api.download_file(tracked.name)
            if not download.success:
                logger.warning(f"Skipping {tracked.name}: download failed")
                result.failed[tracked.name] = SyncFailureReason.SERVER_ERROR
                continue

            try:
                self._apply_download(tracked.name, local_path, download, remote)
            except MnemeSyncWriteError as e:
                logger.error(f"[mneme-sync] {e}")
                result.failed[tracked.name] = SyncFailureReason.WRITE_FAILURE
                continue

            result.transferred.append(tracked.name)
            logger.info(f"Pulled {tracked.name} from coordinator")

        return result

    @staticmethod
    def _stamp_local(local_path: Path, modified_at: datetime):
        """Give the local copy the coordinator timestamp so the next pull sees it as current."""
        mtime_ns = micros_to_ns(timestamp_to_micros(modified_at))
        try:
            os.utime(local_path, ns=(mtime_ns, mtime_ns))
        except OSError as e:
            logger.warning(f"Could not update timestamp of {local_path.name}: {e}")

    def _apply_download(self, file_name: str, local_path: Path, download: DownloadResult,
                        remote: RemoteFileInfo):
        """Back up the existing local file, write the new content and copy the remote timestamp."""
        modified_at = download.modified_at or remote.modified_at
        try:
            if local_path.exists():
                shutil.copy2(local_path, self.folder_mgr.backup_path_for(local_path))

            with open(local_path, 'w', encoding='utf-8', newline='') as f:
                f.write(download.content)

            mtime_ns = micros_to_ns(timestamp_to_micros(modified_at))
            os.utime(local_path, ns=(mtime_ns, mtime_ns))
        except OSError as e:
            raise MnemeSyncWriteError(file_name, str(e)) from e

    # ==================== Push ====================

    def push(self) -> ReconcileResult:
        """
        Upload tracked local files that are strictly newer than the coordinator copy.

        A file missing on the coordinator counts as infinitely old. If the
        listing cannot be fetched every existing local file is offered.

        Returns:
            ReconcileResult with the names uploaded
        """
        listing = self.api.list_files()
        remote_files = listing.files if listing.success else {}
        if not listing.success:
            logger.warning("Could not list coordinator files; offering every local file")

        result = ReconcileResult()

        for tracked in TRACKED_FILES:
            local_path = self.folder_mgr.path_for(tracked.name)
            local_us = local_mtime_micros(local_path)
            if local_us is None:
                continue

            remote = remote_files.get(tracked.name)
            remote_us = timestamp_to_micros(remote.modified_at) if remote else 0
            if local_us <= remote_us:
                logger.debug(f"{tracked.name}: coordinator copy is current")
                continue

            try:
                with open(local_path, 'r', encoding='utf-8', newline='') as f:
                    content = f.read()
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"[mneme-sync] Failed to read {tracked.name}: {e}")
                result.failed[tracked.name] = SyncFailureReason.WRITE_FAILURE
                continue

            upload = self.api.upload_file(tracked.name, content)
            if not upload.success:
                logger.error(f"[mneme-sync] Failed to upload {tracked.name}: {upload.error}")
                result.failed[tracked.name] = SyncFailureReason.SERVER_ERROR
                continue

            result.transferred.append(tracked.name)
            logger.info(f"Pushed {tracked.name} to coordinator")

            if upload.modified_at is not None:
                self._stamp_local(local_path, upload.modified_at)

        return result
