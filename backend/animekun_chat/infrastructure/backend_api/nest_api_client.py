"""NestJS admin backend client — implements the BackendClient interface.

Every call carries the caller's bearer token unchanged; the backend is the
one that validates it. JSON bodies go with POST/PUT/PATCH, query strings
with GET (``None`` values dropped), and any non-2xx status raises
``BackendAPIError`` with the response body.
"""

import logging
from typing import Any

import httpx

from animekun_chat.application.interfaces import BackendClient
from animekun_chat.domain.entities import AuthContext
from animekun_chat.domain.exceptions import BackendAPIError

logger = logging.getLogger(__name__)

_BODY_METHODS = {"POST", "PUT", "PATCH"}


class NestApiClient(BackendClient):
    """Infrastructure adapter — authenticated REST calls to the admin backend."""

    def __init__(
        self,
        base_url: str,
        auth: AuthContext,
        *,
        timeout_s: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._auth = auth
        self._timeout_s = timeout_s
        self._http_client = http_client

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": self._auth.authorization_header,
            "Accept": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout_s)

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        method = method.upper()
        query = {k: v for k, v in (params or {}).items() if v is not None}
        json_body = body if method in _BODY_METHODS and body is not None else None

        client = await self._get_client()
        should_close = self._http_client is None
        try:
            logger.debug("%s %s params=%s", method, endpoint, query)
            response = await client.request(
                method,
                f"{self._base_url}{endpoint}",
                params=query or None,
                json=json_body,
                headers=self._get_headers(),
                timeout=self._timeout_s,
            )
        finally:
            if should_close:
                await client.aclose()

        return self._handle_response(response, method, endpoint)

    async def upload_file(
        self,
        endpoint: str,
        *,
        filename: str,
        content: bytes,
        content_type: str,
        fields: dict[str, str] | None = None,
    ) -> Any:
        client = await self._get_client()
        should_close = self._http_client is None
        try:
            logger.debug("POST %s (multipart %s, %d bytes)", endpoint, filename, len(content))
            response = await client.post(
                f"{self._base_url}{endpoint}",
                files={"file": (filename, content, content_type)},
                data=fields or {},
                headers=self._get_headers(),
                timeout=self._timeout_s,
            )
        finally:
            if should_close:
                await client.aclose()

        return self._handle_response(response, "POST", endpoint)

    @staticmethod
    def _handle_response(response: httpx.Response, method: str, endpoint: str) -> Any:
        if not response.is_success:
            logger.warning("%s %s -> %d", method, endpoint, response.status_code)
            raise BackendAPIError(response.status_code, response.text, method, endpoint)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text
