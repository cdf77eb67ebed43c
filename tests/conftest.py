"""Shared fixtures for the radctl test suite."""

import os

import pytest

from radctl.core.api import APIClient
from radctl.core.config import ClientConfig
from tests.fake_server import FakeAPIServer


BASE_URI = "http://127.0.0.1:8085/"


@pytest.fixture(autouse=True)
def clean_env(request, monkeypatch):
    """Keep REST_API_* variables from the developer shell out of unit tests."""
    if request.node.get_closest_marker("integration"):
        return
    for key in list(os.environ):
        if key.startswith("REST_API_"):
            monkeypatch.delenv(key)


@pytest.fixture
def fake_api() -> FakeAPIServer:
    return FakeAPIServer()


@pytest.fixture
def make_client(fake_api):
    """Factory fixture: APIClient wired to the fake API.

    Usage:
        client = make_client(copy_keys=["secret"], rate_limit=5)
    """
    def _make(**overrides) -> APIClient:
        settings = {"uri": BASE_URI, "operator_id": "op1"}
        settings.update(overrides)
        return APIClient(ClientConfig(**settings), transport=fake_api.transport())

    return _make


@pytest.fixture
def api_client(make_client) -> APIClient:
    return make_client()
