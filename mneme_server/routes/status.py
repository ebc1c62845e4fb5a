"""
Mneme Sync Server - Status Endpoints

This module contains the health check endpoint. It is never behind
authentication so clients can learn whether a key is required.
"""

from fastapi import APIRouter, Depends

from mneme_server import __version__
from mneme_server.auth import IsAuthRequired
from mneme_server.models.api import HealthResponse
from mneme_server.rate_limit import CheckRateLimit


# Create router instance
router = APIRouter(dependencies=[Depends(CheckRateLimit)])


# ==================== Health Check Endpoint ====================

@router.get("/health", response_model=HealthResponse, tags=["Status"])
async def health_check():
    """
    Health check endpoint to verify server is running

    Returns:
        HealthResponse with version and whether an API key is required
    """
    return HealthResponse(status="ok", version=__version__, auth_required=IsAuthRequired())
