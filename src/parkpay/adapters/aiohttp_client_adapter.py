# parkpay/adapters/aiohttp_client_adapter.py
import asyncio
import aiohttp
from typing import Any, Dict, Optional

from parkpay.core.exceptions import GatewayTimeoutError, UpstreamUnavailableError
from parkpay.core.interfaces.http_client import HttpClientPort
from parkpay.core.settings import logger


class AioHttpClientAdapter(HttpClientPort):
    def __init__(self, total_timeout: float = 30.0, connect_timeout: float = 5.0):
        self._session: Optional[aiohttp.ClientSession] = None
        self._default_sock_connect = connect_timeout
        # Used when callers do not provide a timeout
        self._default_client_timeout = aiohttp.ClientTimeout(
            total=total_timeout,
            sock_connect=connect_timeout,
        )

    async def __aenter__(self):
        """Async context manager entry"""
        self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
        return False

    def _client_timeout(self, timeout: float | None) -> aiohttp.ClientTimeout:
        if timeout is None:
            return self._default_client_timeout
        return aiohttp.ClientTimeout(total=timeout, sock_connect=self._default_sock_connect)

    async def get(self, url: str, timeout: float | None = None) -> Dict[str, Any]:
        return await self._request("GET", url, timeout=timeout)

    async def post(self, url: str, json: Dict[str, Any] | None, timeout: float | None = None, headers: Dict[str, str] | None = None) -> Dict[str, Any]:
        return await self._request("POST", url, json=json, headers=headers, timeout=timeout)

    async def _request(
        self,
        method: str,
        url: str,
        timeout: float | None = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """Perform a request and return status, headers and decoded body.

        Translates network errors into domain exceptions so the retry adapter
        can classify them.
        """
        if self._session is None:
            raise RuntimeError("HTTP client not initialized. Use 'async with' context manager.")

        try:
            async with self._session.request(
                method, url, timeout=self._client_timeout(timeout), **kwargs
            ) as response:
                try:
                    body = await response.json()
                except aiohttp.ContentTypeError:
                    body = await response.text()

                return {
                    "status": response.status,
                    "headers": dict(response.headers),
                    "body": body,
                }

        except asyncio.TimeoutError as timeout_error:
            logger.error("Timeout when requesting remote service. %s %s", method, url)
            raise GatewayTimeoutError(
                f"The request to {url} timed out."
            ) from timeout_error

        except aiohttp.ClientError as client_error:
            logger.error(
                "Connection error when requesting remote service. %s %s, Error: %s",
                method,
                url,
                str(client_error),
            )
            raise UpstreamUnavailableError(
                f"There was a connection error with {url}: {client_error}"
            ) from client_error

    async def close(self) -> None:
        """Close the session"""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
