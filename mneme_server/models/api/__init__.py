"""
Mneme Sync Server - API Models Package

This package contains Pydantic models for all API endpoints.
"""

from mneme_server.models.api.camel_model import CamelModel
from mneme_server.models.api.health import HealthResponse
from mneme_server.models.api.lease import (
    LeaseInfo,
    LockResponse,
    LockStatusResponse,
    LockReleaseResponse
)
from mneme_server.models.api.files import (
    FileInfo,
    FileListResponse,
    FileContentResponse,
    FileUploadRequest,
    FileUploadResponse
)

__all__ = [
    'CamelModel',
    'HealthResponse',
    'LeaseInfo',
    'LockResponse',
    'LockStatusResponse',
    'LockReleaseResponse',
    'FileInfo',
    'FileListResponse',
    'FileContentResponse',
    'FileUploadRequest',
    'FileUploadResponse',
]
