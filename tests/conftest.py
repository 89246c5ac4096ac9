"""
Shared fixtures: a test client configuration and a scripted fake MemoryRelay API.
"""

import httpx
import pytest

from memoryrelay_mcp.services.memory_relay import MemoryRelayService
from memoryrelay_mcp.utils.config import ClientConfig

API_KEY = 'mem_test_1234567890abcdef'
API_URL = 'https://api.test.local'
MEMORY_ID = '550e8400-e29b-41d4-a716-446655440000'
ENTITY_ID = '6ba7b810-9dad-11d1-80b4-00c04fd430c8'

CATALOG = [
    'memory_store',
    'memory_search',
    'memory_list',
    'memory_get',
    'memory_update',
    'memory_delete',
    'entity_create',
    'entity_link',
    'memory_health',
]


class FakeAPI:
    """Replays scripted responses in order and records every request.

    Each script item is an httpx.Response, an exception to raise, or a callable
    taking the request. The last item repeats once the script runs out.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        return item

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def client_config():
    return ClientConfig(api_key=API_KEY,
                        api_url=API_URL,
                        agent_id='test-agent',
                        timeout=5000,
                        retry_attempts=4,
                        retry_delay=0.0)


@pytest.fixture
def make_service(client_config):
    """Build a MemoryRelayService wired to a FakeAPI with the given script."""

    def factory(*script, config=None):
        api = FakeAPI(*script)
        service = MemoryRelayService(config or client_config, transport=httpx.MockTransport(api))
        return service, api

    return factory
