"""
Tests for configuration handling in Mneme Sync Server
"""

import json

from mneme_server.managers import ServerConfigManager, DEFAULT_SERVER_CONFIG, GetDefaultServerHome


def test_defaults_written_on_first_run(tmp_path):
    """Test that config.json is created with defaults"""
    config_manager = ServerConfigManager(tmp_path)
    config = config_manager.LoadConfig()

    assert config == DEFAULT_SERVER_CONFIG
    assert json.loads((tmp_path / "config.json").read_text(encoding='utf-8')) == DEFAULT_SERVER_CONFIG
    assert config_manager.GetDataDir() == tmp_path
    assert config_manager.GetLockTtlSeconds() == 1800
    assert config_manager.GetApiKeys() == []


def test_file_values_and_overrides(tmp_path):
    """Test that file values merge over defaults and overrides win"""
    (tmp_path / "config.json").write_text(json.dumps({
        "port": 4000,
        "api_keys": ["k1", ""],
        "lock_ttl_minutes": 5,
        "data_dir": str(tmp_path / "data")
    }), encoding='utf-8')

    config_manager = ServerConfigManager(tmp_path, overrides={"port": 5000})
    config_manager.LoadConfig()

    assert config_manager.Get("port") == 5000
    assert config_manager.GetApiKeys() == ["k1"]
    assert config_manager.GetLockTtlSeconds() == 300
    assert config_manager.GetDataDir() == tmp_path / "data"
    assert config_manager.GetRateLimitPerMinute() == 120


def test_invalid_file_uses_defaults(tmp_path):
    """Test that a corrupt config file does not stop the server"""
    (tmp_path / "config.json").write_text("[1, 2", encoding='utf-8')
    assert ServerConfigManager(tmp_path).LoadConfig() == DEFAULT_SERVER_CONFIG


def test_home_from_environment(tmp_path, monkeypatch):
    """Test MNEME_SERVER_HOME"""
    monkeypatch.setenv("MNEME_SERVER_HOME", str(tmp_path))
    assert GetDefaultServerHome() == tmp_path
