"""
Mneme Sync Server - File Storage Management

This module handles storage of the tracked memory files:
- Storage directory structure creation
- Project and file path resolution (project ids are sanitized)
- Listing, reading and writing tracked files

Layout:
    <data_dir>/projects/<safe project id>/<file name>

A file's modification time is its coordinator timestamp. Writes stamp
receipt time, moved forward when needed so the timestamp of a file never
repeats or goes backwards.
"""

import logging
import os
import re
import threading
from datetime import datetime, timezone, timedelta
from pathlib import Path
from typing import List, Optional, Tuple

from mneme_server.models.api import FileInfo

logger = logging.getLogger(__name__)


# ==================== Storage Configuration ====================

SYNCABLE_FILES = ["log.jsonl", "summary.json", "remembered.json", "entities.json"]
MAX_FILE_BYTES = 10 * 1024 * 1024  # 10MB

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_UNSAFE_CHARS = re.compile(r'[^a-zA-Z0-9_-]')

# Serializes writes so timestamp bumps cannot interleave
_write_lock = threading.Lock()


# ==================== Storage Directory Management ====================

def InitializeStorage(data_dir: Path) -> None:
    """
    Initialize the file storage directory structure
    Called during server startup

    Args:
        data_dir: Root data directory
    """
    projects_path = Path(data_dir) / "projects"
    try:
        projects_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"Storage root directory ready: {projects_path.absolute()}")
    except OSError as e:
        logger.error(f"Failed to initialize storage: {str(e)}")
        raise


def SafeProjectName(project_id: str) -> str:
    """Replace anything outside [A-Za-z0-9_-] so the id is safe as a directory name"""
    return _UNSAFE_CHARS.sub('_', project_id)


def GetProjectPath(data_dir: Path, project_id: str) -> Path:
    return Path(data_dir) / "projects" / SafeProjectName(project_id)


def IsSyncableFile(file_name: str) -> bool:
    """Only the fixed set of memory files may be read or written"""
    return file_name in SYNCABLE_FILES


def _MtimeToDatetime(mtime_ns: int) -> datetime:
    return _EPOCH + timedelta(microseconds=mtime_ns // 1000)


def _DatetimeToNs(value: datetime) -> int:
    delta = value - _EPOCH
    micros = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
    return micros * 1000


# ==================== File Operations ====================

def ListFiles(data_dir: Path, project_id: str) -> List[FileInfo]:
    """
    List the tracked files stored for a project

    Returns:
        FileInfo entries for every syncable file that exists
    """
    project_path = GetProjectPath(data_dir, project_id)
    files = []

    for file_name in SYNCABLE_FILES:
        file_path = project_path / file_name
        try:
            stat_result = file_path.stat()
        except FileNotFoundError:
            continue
        files.append(FileInfo(
            name=file_name,
            size=stat_result.st_size,
            modified_at=_MtimeToDatetime(stat_result.st_mtime_ns)
        ))

    return files


def ReadFile(data_dir: Path, project_id: str, file_name: str) -> Optional[Tuple[str, datetime]]:
    """
    Read a tracked file

    Returns:
        (content, modified_at) or None if the file does not exist
    """
    file_path = GetProjectPath(data_dir, project_id) / file_name
    try:
        with open(file_path, 'r', encoding='utf-8', newline='') as f:
            content = f.read()
        modified_at = _MtimeToDatetime(file_path.stat().st_mtime_ns)
    except FileNotFoundError:
        return None

    return content, modified_at


def WriteFile(data_dir: Path, project_id: str, file_name: str, content: str,
              now: Optional[datetime] = None) -> datetime:
    """
    Write a tracked file and stamp its coordinator timestamp

    Args:
        data_dir: Root data directory
        project_id: Project the file belongs to
        file_name: Syncable file name
        content: New file content
        now: Clock override

    Returns:
        The new modified_at, strictly greater than the previous one
    """
    project_path = GetProjectPath(data_dir, project_id)
    file_path = project_path / file_name
    temp_path = project_path / f".{file_name}.tmp"

    with _write_lock:
        project_path.mkdir(parents=True, exist_ok=True)

        modified_at = now or datetime.now(timezone.utc)
        try:
            previous = _MtimeToDatetime(file_path.stat().st_mtime_ns)
        except FileNotFoundError:
            previous = None
        if previous is not None and modified_at <= previous:
            modified_at = previous + timedelta(microseconds=1)

        with open(temp_path, 'w', encoding='utf-8', newline='') as f:
            f.write(content)
        mtime_ns = _DatetimeToNs(modified_at)
        os.utime(temp_path, ns=(mtime_ns, mtime_ns))
        os.replace(temp_path, file_path)

    logger.info(f"Stored {file_name} for project '{project_id}' ({len(content)} chars)")
    return modified_at
