"""
Shared fixtures for Mneme Sync Server tests
"""

from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient

from mneme_server.managers import ServerConfigManager
from mneme_server.server import CreateApp


@pytest.fixture
def make_client(tmp_path):
    """Factory yielding a started TestClient for the given config overrides"""

    @contextmanager
    def _make(**overrides):
        config_manager = ServerConfigManager(tmp_path, overrides=overrides)
        config_manager.LoadConfig()
        with TestClient(CreateApp(config_manager)) as client:
            yield client

    return _make


@pytest.fixture
def client(make_client):
    with make_client() as test_client:
        yield test_client


def headers_for(client_id):
    return {"X-Client-Id": client_id}
