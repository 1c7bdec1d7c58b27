"""Port for the third-party web search used to complete missing metadata."""

from abc import ABC, abstractmethod
from typing import Any


class WebSearchClient(ABC):
    """Free-text web search."""

    @abstractmethod
    async def search(self, query: str, *, max_results: int = 5) -> dict[str, Any]:
        """Return ``{"answer": str | None, "results": [{title, url, content}]}``.

        Raises:
            WebSearchError: If the provider fails.
        """
        ...
