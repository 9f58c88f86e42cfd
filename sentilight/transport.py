"""
Shared aiohttp client for the Gemini and Tasmota endpoints.

Each call is bounded by connect/read timeouts of ``timeout_seconds`` and an
overall budget of twice that. Connection-level failures (refused, dropped
before a response) are retried once inside a single call; callers layer
their own attempt/delay policy on top.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

import aiohttp
from yarl import URL

from .errors import TransportError

logger = logging.getLogger(__name__)

# Failures that never reached an HTTP response
CONNECTION_FAILURES = (aiohttp.ClientConnectorError, aiohttp.ServerDisconnectedError)


@dataclass(frozen=True)
class HttpResult:
    status: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HttpClient:
    """Lazily created aiohttp session shared by every request."""

    def __init__(
        self,
        timeout_seconds: float = 20,
        connection_retries: int = 1,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.connection_retries = connection_retries
        self.timeout = aiohttp.ClientTimeout(
            total=timeout_seconds * 2,
            connect=timeout_seconds,
            sock_connect=timeout_seconds,
            sock_read=timeout_seconds,
        )
        self.session = session

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
        return self.session

    async def close(self):
        """Close aiohttp session."""
        if self.session and not self.session.closed:
            await self.session.close()

    async def request(self, method: str, url: Union[str, URL], **kwargs: Any) -> HttpResult:
        """
        Perform one HTTP exchange and return status and body text.

        ``url`` strings are treated as already percent-encoded.

        Raises:
            TransportError: connection failure after the connection-level
                retry, timeout, or any other client error.
        """
        target = url if isinstance(url, URL) else URL(url, encoded=True)
        last_error: Optional[Exception] = None

        for attempt in range(self.connection_retries + 1):
            try:
                session = await self._get_session()
                async with session.request(method, target, **kwargs) as response:
                    body = await response.text()
                    return HttpResult(status=response.status, body=body)
            except CONNECTION_FAILURES as e:
                last_error = e
                logger.warning(
                    f"Connection failure on {method} {target.with_query(None)} "
                    f"(attempt {attempt + 1}): {e}"
                )
            except asyncio.TimeoutError as e:
                raise TransportError(
                    f"Timed out after {self.timeout_seconds}s: {method} {target.with_query(None)}"
                ) from e
            except aiohttp.ClientError as e:
                raise TransportError(f"{type(e).__name__}: {e}") from e

        raise TransportError(f"{type(last_error).__name__}: {last_error}") from last_error

    async def get(self, url: Union[str, URL], **kwargs: Any) -> HttpResult:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: Union[str, URL], **kwargs: Any) -> HttpResult:
        return await self.request("POST", url, **kwargs)
