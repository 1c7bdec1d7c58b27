"""Web search infrastructure package."""

from .tavily_client import TavilyClient

__all__ = ["TavilyClient"]
