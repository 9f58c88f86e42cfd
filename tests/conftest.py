"""
Pytest configuration and shared fixtures for SentiLight tests.

HTTP is faked by handing HttpClient a stub session; no test touches the network.
"""
import json
import pytest
import pytest_asyncio
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport

from sentilight.transport import HttpClient


class FakeResponse:
    """Stand-in for aiohttp.ClientResponse used as an async context manager."""

    def __init__(self, status: int = 200, body: str = ""):
        self.status = status
        self._body = body

    async def text(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeSession:
    """
    Stand-in for aiohttp.ClientSession.

    Each request consumes the next queued item; the last item repeats.
    Exceptions in the queue are raised instead of returning a response.
    """

    def __init__(self, responses):
        self._responses = list(responses)
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": str(url), **kwargs})
        item = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self):
        self.closed = True


def gemini_body(text: str) -> str:
    """generateContent response body carrying one candidate text."""
    return json.dumps({"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]})


@pytest.fixture
def make_http():
    """Factory: HttpClient backed by a FakeSession with the given responses."""
    def _make(*responses):
        session = FakeSession(responses)
        return HttpClient(timeout_seconds=20, session=session), session
    return _make


@pytest_asyncio.fixture
async def test_app():
    """Provide a test FastAPI app instance."""
    # Import here to avoid circular imports
    from sentilight.main import app
    return app


@pytest_asyncio.fixture
async def test_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test"
    ) as client:
        yield client
