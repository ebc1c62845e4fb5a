"""
Mneme Sync Client - Configuration Manager

Handles loading and saving client configuration from/to config.json.
Manages OS credential store integration for the coordinator API key.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Optional, Dict, Any

# Configure logging
logger = logging.getLogger(__name__)

KEYRING_SERVICE = "mneme-sync"


# Default configuration values
DEFAULT_CONFIG = {
    "log_level": "INFO",
    "log_retention_days": 30,
    "sync": {
        "enabled": False,  # Local-only by default
        "server_url": None,  # e.g. "http://localhost:3847"
        "api_key": None,  # Optional bearer token; keyring is consulted when unset
        "project_id": None,  # Overrides the auto-detected project name
        "timeout_seconds": 10.0,  # Per-attempt request timeout
        "retries": 3,  # Retries after the first attempt, network failures only
        "heartbeat_interval_seconds": 300,  # 5 minutes
        "lock_ttl_seconds": 1800  # Coordinator TTL hint, used to clamp the heartbeat
    }
}


def get_default_base_path() -> Path:
    """
    Get the base directory for local memory and client state.

    MNEME_HOME overrides the default of ~/.claude-mneme.
    """
    override = os.environ.get("MNEME_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".claude-mneme"


class ConfigManager:
    """
    Manages client configuration and credentials.

    Responsibilities:
    - Load/save config.json in the base directory
    - Merge defaults into missing keys (nested sync section key-by-key)
    - Store/retrieve the API key from the OS credential store via keyring
    - Provide configuration values to other modules
    """

    def __init__(self, base_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            base_path: Directory holding config.json. Defaults to get_default_base_path().
        """
        self.base_path = Path(base_path) if base_path else get_default_base_path()
        self.config_file = self.base_path / "config.json"
        self.config: Dict[str, Any] = {}

    def load_config(self) -> Dict[str, Any]:
        """
        Load configuration from config.json.
        Creates default config if file doesn't exist.

        Returns:
            Configuration dictionary
        """
        if self.config_file.exists():
            logger.debug(f"Loading configuration from {self.config_file}")
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    loaded = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Error reading config {self.config_file}: {e}; using defaults")
                loaded = {}
            if not isinstance(loaded, dict):
                loaded = {}
            self.config = self._merge_defaults(loaded)
            logger.info("Configuration loaded successfully")
        else:
            logger.info(f"Configuration file not found, creating default at {self.config_file}")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            try:
                self.save_config()
            except OSError as e:
                logger.warning(f"Could not write default configuration: {e}")

        return self.config

    def _merge_defaults(self, loaded: Dict[str, Any]) -> Dict[str, Any]:
        merged = copy.deepcopy(DEFAULT_CONFIG)
        for key, value in loaded.items():
            if key == "sync" and isinstance(value, dict):
                merged["sync"].update(value)
            else:
                merged[key] = value
        return merged

    def save_config(self):
        """Save current configuration to config.json."""
        logger.debug(f"Saving configuration to {self.config_file}")
        self.base_path.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self.config, f, indent=2)
        logger.debug("Configuration saved successfully")

    def get(self, key: str, default=None) -> Any:
        """
        Get configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        return self.config.get(key, default)

    def set(self, key: str, value: Any):
        """
        Set configuration value and save to file.

        Args:
            key: Configuration key
            value: Configuration value
        """
        self.config[key] = value
        self.save_config()

    def get_sync_config(self) -> Dict[str, Any]:
        """
        Get the sync section, with the API key resolved.

        A key in config.json wins over the credential store.
        """
        sync_config = dict(self.config.get("sync") or DEFAULT_CONFIG["sync"])
        if not sync_config.get("api_key") and sync_config.get("server_url"):
            sync_config["api_key"] = self.get_api_key(sync_config["server_url"])
        return sync_config

    def is_sync_enabled(self) -> bool:
        """Sync runs only when explicitly enabled and a server URL is set."""
        sync_config = self.config.get("sync") or {}
        return sync_config.get("enabled") is True and bool(sync_config.get("server_url"))

    def store_api_key(self, server_url: str, api_key: str):
        """
        Store the coordinator API key in the OS credential store.

        Args:
            server_url: Coordinator URL, used as the keyring username
            api_key: Bearer token to store
        """
        import keyring

        logger.info(f"Storing API key for coordinator: {server_url}")
        keyring.set_password(KEYRING_SERVICE, server_url, api_key)
        logger.debug("API key stored successfully")

    def get_api_key(self, server_url: str) -> Optional[str]:
        """
        Retrieve the coordinator API key from the OS credential store.

        Returns:
            The key, or None if none is stored or no keyring backend is usable
        """
        import keyring
        from keyring.errors import KeyringError

        try:
            api_key = keyring.get_password(KEYRING_SERVICE, server_url)
        except KeyringError as e:
            logger.debug(f"Credential store unavailable: {e}")
            return None

        if not api_key:
            logger.debug(f"No API key in credential store for {server_url}")
            return None
        return api_key
