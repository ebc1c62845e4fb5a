"""
Mneme Sync Client - Managers Package

Contains manager classes for configuration, identity, the local memory
folder and the lease heartbeat.
"""

from .config_manager import ConfigManager, DEFAULT_CONFIG, get_default_base_path
from .identity_manager import get_client_id
from .memory_folder_manager import MemoryFolderManager, get_project_name, sanitize_name
from .heartbeat_manager import HeartbeatScheduler, effective_heartbeat_interval

__all__ = [
    'ConfigManager',
    'DEFAULT_CONFIG',
    'get_default_base_path',
    'get_client_id',
    'MemoryFolderManager',
    'get_project_name',
    'sanitize_name',
    'HeartbeatScheduler',
    'effective_heartbeat_interval'
]
