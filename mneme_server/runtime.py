"""
Mneme Sync Server - Runtime Module

This module exports the global config_manager instance for use across the application.
"""

from mneme_server.managers.config_manager import ServerConfigManager

# Global configuration manager instance
# Set by server.CreateApp
config_manager: ServerConfigManager = None
