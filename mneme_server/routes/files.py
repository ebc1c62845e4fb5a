"""
Mneme Sync Server - File Endpoints

This module contains endpoints for listing, downloading and uploading
the tracked memory files of a project.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from mneme_server import runtime
from mneme_server.auth import VerifyApiKey, GetClientId
from mneme_server.file_storage import ListFiles, ReadFile, WriteFile, IsSyncableFile, MAX_FILE_BYTES
from mneme_server.locks import HoldingLease
from mneme_server.models.api import (
    FileListResponse,
    FileContentResponse,
    FileUploadRequest,
    FileUploadResponse
)
from mneme_server.rate_limit import CheckRateLimit


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter(
    prefix="/projects/{project_id}/files",
    tags=["Files"],
    dependencies=[Depends(CheckRateLimit), Depends(VerifyApiKey)]
)


def _RequireSyncable(file_name: str) -> None:
    if not IsSyncableFile(file_name):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File not allowed: {file_name}"
        )


# ==================== File Endpoints ====================

@router.get("", response_model=FileListResponse)
async def list_files(project_id: str):
    """List the tracked files stored for a project"""
    files = ListFiles(runtime.config_manager.GetDataDir(), project_id)
    return FileListResponse(files=files)


@router.get("/{file_name}", response_model=FileContentResponse)
async def download_file(project_id: str, file_name: str):
    """
    Download a tracked file

    Raises:
        HTTPException: 400 for a non-syncable name, 404 if not stored
    """
    _RequireSyncable(file_name)

    stored = ReadFile(runtime.config_manager.GetDataDir(), project_id, file_name)
    if stored is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found"
        )

    content, modified_at = stored
    return FileContentResponse(content=content, modified_at=modified_at)


@router.put("/{file_name}", response_model=FileUploadResponse)
async def upload_file(
    project_id: str,
    file_name: str,
    request: FileUploadRequest,
    client_id: str = Depends(GetClientId)
):
    """
    Upload a tracked file. The caller must hold the project lease.

    Raises:
        HTTPException: 400 for a non-syncable name, 403 without the lease,
            413 when the content is too large
    """
    _RequireSyncable(file_name)

    if len(request.content.encode('utf-8')) > MAX_FILE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="File too large"
        )

    # The lease cannot lapse or change hands between the check and the write
    with HoldingLease(project_id, client_id) as is_holder:
        if not is_holder:
            logger.warning(f"Upload of {file_name} to '{project_id}' by '{client_id}' rejected: no lock")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Must hold lock to upload"
            )

        modified_at = WriteFile(runtime.config_manager.GetDataDir(), project_id, file_name, request.content)

    return FileUploadResponse(success=True, modified_at=modified_at)
