"""
Mneme Sync Server - Authentication Utilities

This module provides authentication functionality including:
- Optional bearer API key check for project routes
- Client identity header extraction

Authentication is disabled when no API keys are configured. Keys are
compared in constant time.
"""

import logging
import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from mneme_server import runtime

logger = logging.getLogger(__name__)

CLIENT_ID_HEADER = "X-Client-Id"

# Security scheme for FastAPI (missing header is handled below, not by FastAPI)
security = HTTPBearer(auto_error=False)


def IsAuthRequired() -> bool:
    return bool(runtime.config_manager.GetApiKeys())


def IsValidApiKey(candidate: str) -> bool:
    """Compare against every configured key in constant time"""
    valid = False
    for api_key in runtime.config_manager.GetApiKeys():
        if secrets.compare_digest(candidate.encode('utf-8'), api_key.encode('utf-8')):
            valid = True
    return valid


# ==================== Authentication Dependencies ====================

def VerifyApiKey(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> None:
    """
    FastAPI dependency enforcing the bearer API key when keys are configured

    Raises:
        HTTPException: 401 if the header is missing, 403 if the key is wrong
    """
    if not IsAuthRequired():
        return

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not IsValidApiKey(credentials.credentials):
        logger.warning("Rejected request with invalid API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key"
        )


def GetClientId(
    x_client_id: Optional[str] = Header(None, alias=CLIENT_ID_HEADER)
) -> str:
    """
    FastAPI dependency returning the caller's client id

    Raises:
        HTTPException: 400 if the X-Client-Id header is missing
    """
    if not x_client_id or not x_client_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{CLIENT_ID_HEADER} header required"
        )
    return x_client_id.strip()
