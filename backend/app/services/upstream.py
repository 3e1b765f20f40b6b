"""
Shared HTTP access for the fantasy platform and the stats provider.

Transport failures (timeouts, connection resets) are retried once; a bad
status or an unparseable body is surfaced immediately.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from app.config import settings
from app.exceptions import TransportError, UpstreamFormatError, UpstreamStatusError

logger = logging.getLogger(__name__)


class UpstreamClient:
    """Thin async JSON client with a concurrency limit and retry-once policy."""

    def __init__(
        self,
        base_url: str,
        timeout: float = None,
        headers: Optional[Dict[str, str]] = None,
        cookies: Optional[Dict[str, str]] = None,
        max_concurrent: int = None,
        retry_attempts: int = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.http_timeout_default
        self.headers = headers or {}
        self.cookies = cookies or {}
        self.retry_attempts = (
            retry_attempts if retry_attempts is not None else settings.upstream_retry_attempts
        )
        self._semaphore = asyncio.Semaphore(max_concurrent or settings.max_concurrent_requests)
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": "Fantasy Baseball League Tracker/1.0", **self.headers},
                cookies=self.cookies,
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
            logger.info(f"HTTP client for {self.base_url} closed")

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def get_json(self, path: str, params: Any = None) -> Any:
        """
        GET a JSON document.

        Raises:
            TransportError: network failure on every attempt
            UpstreamStatusError: non-2xx response
            UpstreamFormatError: body is not valid JSON
        """
        url = self._url(path)
        client = await self._get_client()

        attempt = 0
        while True:
            try:
                async with self._semaphore:
                    response = await client.get(url, params=params)
                break
            except httpx.TransportError as e:
                if attempt >= self.retry_attempts:
                    logger.error(f"Transport failure for {url} after {attempt + 1} attempts: {e}")
                    raise TransportError(f"{type(e).__name__} requesting {url}", url=url) from e
                attempt += 1
                logger.warning(f"Transport failure for {url} ({type(e).__name__}), retrying")

        if response.status_code < 200 or response.status_code >= 300:
            logger.error(f"Upstream returned {response.status_code} for {url}")
            raise UpstreamStatusError(
                f"HTTP {response.status_code} from {url}",
                status_code=response.status_code,
                url=url,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Malformed JSON from {url}: {e}")
            raise UpstreamFormatError(f"Malformed JSON from {url}", url=url) from e
