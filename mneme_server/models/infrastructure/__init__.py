"""
Mneme Sync Server - Infrastructure Models Package

This package contains dataclass models for in-memory server state.
"""

from mneme_server.models.infrastructure.project_lease import ProjectLease

__all__ = [
    'ProjectLease',
]
