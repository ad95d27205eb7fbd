# parkpay/core/interfaces/http_client.py
from abc import ABC, abstractmethod
from typing import Any, Dict


class HttpClientPort(ABC):
    @abstractmethod
    async def __aenter__(self) -> "HttpClientPort":
        """Async context manager entry method"""
        pass

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit method"""
        pass

    @abstractmethod
    async def get(self, url: str, timeout: float | None = None) -> Dict[str, Any]:
        """Make a GET request. Returns a dict with keys: 'status' (int),
        'headers' (dict) and 'body' (parsed JSON or raw text).
        """
        pass

    @abstractmethod
    async def post(self, url: str, json: Dict[str, Any] | None, timeout: float | None = None, headers: Dict[str, str] | None = None) -> Dict[str, Any]:
        """Make a POST request; same return shape as `get`.

        HTTP error statuses are returned, not raised, so callers can inspect
        them. Network failures and timeouts raise GatewayError subclasses.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the HTTP client session"""
        pass
