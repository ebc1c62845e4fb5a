"""
Mneme Sync Client - Operations Package

This package contains the reconciliation and sync orchestration classes.
"""

from .file_reconciler import FileReconciler, local_mtime_micros
from .sync_operations import SyncOperations, create_sync_operations

__all__ = [
    'FileReconciler',
    'local_mtime_micros',
    'SyncOperations',
    'create_sync_operations'
]
