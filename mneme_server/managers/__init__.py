"""
Mneme Sync Server - Managers Package
"""

from mneme_server.managers.config_manager import ServerConfigManager, DEFAULT_SERVER_CONFIG, GetDefaultServerHome

__all__ = [
    'ServerConfigManager',
    'DEFAULT_SERVER_CONFIG',
    'GetDefaultServerHome',
]
