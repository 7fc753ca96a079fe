"""
Pytest configuration and fixtures for crisp-plugin tests.
"""

import sys
from pathlib import Path
from typing import Any

import pytest

# Add the repository root to path for imports
# This allows `from crisp_plugin import ...` to work without installing
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from crisp_plugin.base import ClientConfig, Request, Response  # noqa: E402
from crisp_plugin.plugin import PluginService  # noqa: E402


class FakeTransport:
    """Transport test double recording every request it is given."""

    def __init__(
        self,
        payload: Any = None,
        *,
        status_code: int = 200,
        error: Exception | None = None,
    ):
        self.payload = payload
        self.status_code = status_code
        self.error = error
        self.built: list[Request] = []
        self.executed: list[tuple[Request, type | None]] = []
        self.closed = False

    def build_request(self, method: str, path: str, body: Any = None) -> Request:
        request = Request(method=method, path=path, body=body)
        self.built.append(request)
        return request

    async def execute(self, request: Request, into=None):
        self.executed.append((request, into))
        if self.error is not None:
            raise self.error

        response = Response(status_code=self.status_code, headers={"x-test": "1"})
        if into is None or self.payload is None:
            return response, None
        return response, into.model_validate(self.payload)

    async def close(self) -> None:
        self.closed = True

    @property
    def last_request(self) -> Request:
        return self.executed[-1][0]


@pytest.fixture
def make_transport():
    """Factory for transports with a canned payload or error."""
    return FakeTransport


@pytest.fixture
def fake_transport():
    """Transport returning an empty success by default."""
    return FakeTransport()


@pytest.fixture
def service(fake_transport):
    """PluginService bound to the fake transport."""
    return PluginService(fake_transport)


@pytest.fixture
def client_config():
    """Test client configuration."""
    return ClientConfig(
        identifier="test-identifier",
        key="test-key",
        base_url="https://api.crisp.test/v1/",
    )


@pytest.fixture
def sample_subscription():
    """Subscription payload as returned by the API."""
    return {
        "id": "plugin-1",
        "urn": "urn:crisp.im:test:0",
        "type": "integration",
        "name": "Test Plugin",
        "description": "A plugin for tests",
        "features": ["sync", "notify"],
        "showcase": ["https://img.test/1.png"],
        "price": 0,
        "color": "blue",
        "icon": "https://img.test/icon.png",
        "banner": "https://img.test/banner.png",
        "since": "2024-01-01T00:00:00.000Z",
        "active": True,
        "website_id": "website-1",
        "card_id": "card-1",
    }
