from unittest.mock import AsyncMock, MagicMock

import pytest

from mongodb_client.config import REQUIRED_VARIABLES, load_connection_config


@pytest.fixture
def connection_env():
    return {
        "MONGODB_HOST": "db.example.com",
        "MONGODB_PORT": "27017",
        "MONGODB_USER": "app",
        "MONGODB_PASSWORD": "s3cret",
        "MONGODB_ADMIN_PASSWORD": "adm1n",
        "MONGODB_DATABASE": "appdb",
    }


@pytest.fixture
def connection_config(connection_env):
    return load_connection_config(connection_env)


@pytest.fixture
def clean_env(monkeypatch):
    for name in REQUIRED_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def motor_clients():
    """Factory for fake Motor clients that record the order they are closed in."""
    closed = []
    created = []

    def make_client(uri, **kwargs):
        name = "admin" if uri.endswith("/admin") else "application"
        client = MagicMock(name=f"{name}-client")
        client.uri = uri
        client.options = kwargs
        client.close.side_effect = lambda: closed.append(name)
        client.admin.command = AsyncMock(return_value={"ok": 1})
        created.append(client)
        return client

    make_client.closed = closed
    make_client.created = created
    return make_client
