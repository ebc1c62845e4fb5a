"""
Mneme Sync Server - Configuration Manager

This module loads the coordinator configuration from config.json in the
server home directory and fills in defaults for missing keys.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


DEFAULT_SERVER_CONFIG = {
    "host": "0.0.0.0",
    "port": 3847,
    "data_dir": None,  # None = server home directory
    "api_keys": [],  # Empty = no authentication
    "lock_ttl_minutes": 30,
    "allowed_origins": [],  # Empty = CORS disabled
    "rate_limit_per_minute": 120,  # Per client IP, 0 disables
    "log_level": "INFO"
}


def GetDefaultServerHome() -> Path:
    """
    Get the server home directory

    MNEME_SERVER_HOME overrides the default of ~/.mneme-server
    """
    override = os.environ.get("MNEME_SERVER_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".mneme-server"


class ServerConfigManager:
    """
    Manages coordinator configuration
    """

    def __init__(self, home: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration manager

        Args:
            home: Directory holding config.json (defaults to GetDefaultServerHome())
            overrides: Values applied on top of the loaded file (not persisted)
        """
        self.home = Path(home) if home else GetDefaultServerHome()
        self.config_file = self.home / "config.json"
        self.overrides = overrides or {}
        self.config: Dict[str, Any] = copy.deepcopy(DEFAULT_SERVER_CONFIG)

    def LoadConfig(self) -> Dict[str, Any]:
        """
        Load config.json, creating it with defaults on first run

        Returns:
            Configuration dictionary
        """
        config = copy.deepcopy(DEFAULT_SERVER_CONFIG)

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    config.update(loaded)
                else:
                    logger.error(f"Ignoring {self.config_file}: expected a JSON object")
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Failed to read {self.config_file}: {e}; using defaults")
        else:
            try:
                self.home.mkdir(parents=True, exist_ok=True)
                with open(self.config_file, 'w', encoding='utf-8') as f:
                    json.dump(DEFAULT_SERVER_CONFIG, f, indent=2)
                logger.info(f"Created default configuration at {self.config_file}")
            except OSError as e:
                logger.warning(f"Could not write default configuration: {e}")

        config.update(self.overrides)
        self.config = config
        return self.config

    def Get(self, key: str, default=None) -> Any:
        return self.config.get(key, default)

    def GetDataDir(self) -> Path:
        data_dir = self.config.get("data_dir")
        return Path(data_dir).expanduser() if data_dir else self.home

    def GetApiKeys(self) -> List[str]:
        return [key for key in (self.config.get("api_keys") or []) if key]

    def GetLockTtlSeconds(self) -> int:
        return int(float(self.config.get("lock_ttl_minutes") or 30) * 60)

    def GetAllowedOrigins(self) -> List[str]:
        return list(self.config.get("allowed_origins") or [])

    def GetRateLimitPerMinute(self) -> int:
        return int(self.config.get("rate_limit_per_minute") or 0)
