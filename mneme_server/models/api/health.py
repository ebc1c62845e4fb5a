"""
Mneme Sync Server - Health API Models
"""

from mneme_server.models.api.camel_model import CamelModel


class HealthResponse(CamelModel):
    """Response model for /health"""
    status: str  # Always 'ok' when the server answers
    version: str
    auth_required: bool
