"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from app.main import create_app

from .fakes import FailingProvider, RecordingProvider, asset_app


@pytest.fixture
def provider():
    return RecordingProvider()


@pytest.fixture
def make_client():
    """Build a test client around the given provider; assets default to the fake."""

    def _make(provider, raise_server_exceptions=True, **kwargs):
        kwargs.setdefault("assets", asset_app)
        app = create_app(provider=provider, **kwargs)
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    return _make


@pytest.fixture
def client(make_client, provider):
    return make_client(provider)


@pytest.fixture
def failing_client(make_client):
    return make_client(FailingProvider())
