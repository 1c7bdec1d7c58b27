"""Tavily web search client, implementing the WebSearchClient interface."""

import logging
from typing import Any

import httpx

from animekun_chat.application.interfaces import WebSearchClient
from animekun_chat.domain.exceptions import WebSearchError

logger = logging.getLogger(__name__)


class TavilyClient(WebSearchClient):
    """Free-text search through the Tavily API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.tavily.com",
        *,
        timeout_s: float = 15.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout_s)

    async def search(self, query: str, *, max_results: int = 5) -> dict[str, Any]:
        payload = {
            "api_key": self._api_key,
            "query": query,
            "max_results": max_results,
            "include_answer": True,
        }
        client = await self._get_client()
        should_close = self._http_client is None
        try:
            response = await client.post(
                f"{self._base_url}/search", json=payload, timeout=self._timeout_s
            )
        except httpx.HTTPError as e:
            raise WebSearchError(f"Web search failed: {type(e).__name__}: {e}") from e
        finally:
            if should_close:
                await client.aclose()

        if response.status_code != 200:
            raise WebSearchError(f"Web search failed: {response.status_code} - {response.text[:500]}")

        data = response.json()
        results = [
            {
                "title": item.get("title", ""),
                "url": item.get("url", ""),
                "content": item.get("content", ""),
            }
            for item in data.get("results", [])
        ]
        logger.info("Web search '%s': %d result(s)", query, len(results))
        return {"answer": data.get("answer"), "results": results}
