"""
HTTP client for the POS API.

Wraps an httpx.AsyncClient whose cookie jar carries the session cookie
set by /api/login. Non-2xx responses raise ApiError with the server's
`message`.
"""

from __future__ import annotations

from typing import Any

import httpx


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"{status}: {message}")


class UnauthorizedError(ApiError):
    """401 response: no session or the session expired."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(401, message)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text or response.reason_phrase


class ApiClient:
    """
    Async API client.

    Usage:
        async with ApiClient("http://localhost:5000") as api:
            await api.send_json("POST", "/api/login", {"username": "admin", "password": "password"})
            tables = await api.get_json("/api/tenants/1/tables")
    """

    def __init__(
        self,
        base_url: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ):
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    @property
    def base_url(self) -> httpx.URL:
        return self._client.base_url

    async def request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Send a request and return the response.

        Raises:
            UnauthorizedError: On 401.
            ApiError: On any other non-2xx status.
        """
        response = await self._client.request(method, url, json=json, params=params)
        if response.status_code == 401:
            raise UnauthorizedError(_error_message(response))
        if response.is_error:
            raise ApiError(response.status_code, _error_message(response))
        return response

    async def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        response = await self.request("GET", url, params=params)
        return response.json()

    async def send_json(self, method: str, url: str, json: Any = None) -> Any:
        """Write request; returns the decoded body, or None when there is none."""
        response = await self.request(method, url, json=json)
        if not response.content:
            return None
        return response.json()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
