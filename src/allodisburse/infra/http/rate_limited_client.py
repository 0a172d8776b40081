import asyncio
import time
from typing import Any

import httpx

from allodisburse.exceptions import RpcError


class RateLimitedClient:
    """Async HTTP client with interval-based rate limiting, tuned for JSON-RPC posts."""

    def __init__(self, rate_per_second: float = 10.0, timeout: float = 30.0) -> None:
        self._min_interval = 1.0 / rate_per_second
        self._last_request_time = 0.0
        self._lock = asyncio.Lock()
        self._client = httpx.AsyncClient(timeout=timeout)

    async def _wait_for_slot(self) -> None:
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_request_time
            if elapsed < self._min_interval:
                await asyncio.sleep(self._min_interval - elapsed)
            self._last_request_time = time.monotonic()

    async def post_json(self, url: str, payload: dict | list) -> Any:
        """POST a JSON body and return the decoded JSON response.

        Transport failures, HTTP errors (429, 5xx) and non-JSON bodies all
        surface as RpcError so callers can retry them uniformly.
        """
        await self._wait_for_slot()
        try:
            resp = await self._client.post(url, json=payload)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise RpcError(f"HTTP {e.response.status_code} from {url}") from e
        except httpx.HTTPError as e:
            raise RpcError(f"Request to {url} failed: {e!r}") from e
        except ValueError as e:
            raise RpcError(f"Invalid JSON from {url}") from e

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RateLimitedClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
