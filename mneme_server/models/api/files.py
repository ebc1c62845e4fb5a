"""
Mneme Sync Server - File API Models

Pydantic models for the tracked-file endpoints.
"""

from datetime import datetime
from typing import List

from mneme_server.models.api.camel_model import CamelModel


class FileInfo(CamelModel):
    """One entry in a project's file listing"""
    name: str
    size: int
    modified_at: datetime


class FileListResponse(CamelModel):
    """Response model for file listing"""
    files: List[FileInfo]


class FileContentResponse(CamelModel):
    """Response model for file download"""
    content: str
    modified_at: datetime


class FileUploadRequest(CamelModel):
    """Request model for file upload"""
    content: str


class FileUploadResponse(CamelModel):
    """Response model for file upload"""
    success: bool
    modified_at: datetime
