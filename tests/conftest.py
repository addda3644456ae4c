"""Shared fixtures: fake config, mocked HTTP session and a real SQLite store."""

from types import SimpleNamespace

import pytest
import requests

from farm_passport.api.client import APIClient
from farm_passport.database.connection import DatabaseConnection
from farm_passport.database.session_store import SQLiteSessionStore


@pytest.fixture
def config():
    return SimpleNamespace(base_api_url="http://backend.test/", api_timeout=5)


@pytest.fixture
def http(mocker):
    session = mocker.Mock(spec=requests.Session)
    session.headers = {}
    return session


@pytest.fixture
def client(config, http):
    return APIClient(config, session=http)


@pytest.fixture
def db(tmp_path):
    connection = DatabaseConnection(f"sqlite:///{tmp_path / 'sessions.db'}")
    yield connection
    connection.close()


@pytest.fixture
def store(db):
    return SQLiteSessionStore(db)


@pytest.fixture
def respond(mocker):
    """Factory for fake requests.Response objects."""
    def build(status=200, payload=None, json_error=False):
        response = mocker.Mock()
        response.status_code = status
        if json_error:
            response.json.side_effect = ValueError("no json")
        else:
            response.json.return_value = payload
        return response
    return build
